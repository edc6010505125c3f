"""
Script to sync channel calendars once

    python run_sync.py                   # every active integration
    python run_sync.py <integration_id>  # one integration, active or not

Useful from cron when the in-process periodic sync is disabled.
"""
import sys
sys.path.insert(0, '.')

from orbicity.database import SessionLocal, create_tables
from orbicity.errors import EngineError
from orbicity.services.channel_sync import ChannelSyncEngine
from orbicity.utils.logging_config import setup_logging
from orbicity.config import settings


def main():
    setup_logging(level=settings.log_level, json_format=settings.log_json, include_uvicorn=False)
    create_tables()
    db = SessionLocal()

    try:
        with ChannelSyncEngine(db) as engine:
            if len(sys.argv) > 1:
                outcomes = {}
                try:
                    outcomes[sys.argv[1]] = engine.sync(sys.argv[1])
                except EngineError as e:
                    outcomes[sys.argv[1]] = e.message
            else:
                outcomes = engine.sync_all_active()

        print("=" * 50)
        print("Channel sync results")
        print("=" * 50)

        failed = 0
        for integration_id, outcome in outcomes.items():
            if isinstance(outcome, str):
                failed += 1
                print(f"  FAILED {integration_id}: {outcome}")
            else:
                print(
                    f"  OK     {integration_id}: +{outcome.added} -{outcome.removed} "
                    f"~{outcome.updated} ({outcome.future_event_count} future events, "
                    f"{outcome.skipped} skipped, {outcome.conflicts} conflicts)"
                )

        if not outcomes:
            print("\nNo integrations to sync.")
        print("=" * 50)
        return 1 if failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
