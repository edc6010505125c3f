"""
HTTP API tests

Routers run against the per-test SQLite database through a get_db
override. Rate limiting is switched off; the lifespan (table creation,
periodic sync) is not started.
"""

import pytest
from datetime import timedelta

import httpx
from fastapi.testclient import TestClient

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orbicity.database import get_db
from orbicity.main import app
from orbicity.models.blocked_range import BlockedRange
from orbicity.services import channel_sync
from orbicity.utils.rate_limiter import limiter


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


def booking_body(check_in, check_out, **overrides):
    body = {
        "apartment_type": "studio",
        "check_in_date": check_in.isoformat(),
        "check_out_date": check_out.isoformat(),
        "guest_name": "Tamar Beridze",
        "guest_email": "tamar@example.com",
        "guests": 2,
    }
    body.update(overrides)
    return body


class TestApartments:

    def test_create_and_list(self, client):
        response = client.post("/api/apartments/", json={
            "slug": "deluxe-suite",
            "name": "Deluxe Suite",
            "base_price": "210.00",
            "max_guests": 4
        })
        assert response.status_code == 201
        assert response.json()["slug"] == "deluxe-suite"

        slugs = [a["slug"] for a in client.get("/api/apartments/").json()]
        assert "deluxe-suite" in slugs

    def test_unknown_slug(self, client):
        response = client.get("/api/apartments/penthouse")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NotFoundError"


class TestBookingsApi:

    def test_quote(self, client, studio, future):
        response = client.post("/api/bookings/quote", json={
            "apartment_type": "studio",
            "check_in_date": future(0).isoformat(),
            "check_out_date": future(3).isoformat(),
        })
        assert response.status_code == 200
        data = response.json()
        assert data["available"] is True
        assert data["nights"] == 3
        assert len(data["nightly_breakdown"]) == 3
        assert float(data["total"]) == 300.0
        assert data["currency"] == "GEL"

    def test_quote_rejects_reversed_dates(self, client, studio, future):
        response = client.post("/api/bookings/quote", json={
            "apartment_type": "studio",
            "check_in_date": future(3).isoformat(),
            "check_out_date": future(0).isoformat(),
        })
        assert response.status_code == 422

    def test_create_booking(self, client, studio, future):
        response = client.post("/api/bookings/", json=booking_body(future(0), future(2)))
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["apartment_slug"] == "studio"
        assert data["nights"] == 2
        assert float(data["total_price"]) == 200.0

    def test_pending_booking_is_pay_later(self, client, studio, future):
        response = client.post("/api/bookings/", json=booking_body(future(0), future(2), status="pending"))
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert response.json()["payment_status"] == "pay_later"

    def test_overlapping_booking_conflict(self, client, studio, future):
        first = client.post("/api/bookings/", json=booking_body(future(0), future(3))).json()

        response = client.post("/api/bookings/", json=booking_body(future(2), future(5)))
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error"] == "ConflictError"
        assert detail["booking_ids"] == [first["id"]]

    def test_invalid_email(self, client, studio, future):
        response = client.post("/api/bookings/", json=booking_body(future(0), future(2), guest_email="nope"))
        assert response.status_code == 422

    def test_cancel_and_rebook(self, client, studio, future):
        booking = client.post("/api/bookings/", json=booking_body(future(0), future(3))).json()

        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={"reason": "Change of plans"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        assert client.post("/api/bookings/", json=booking_body(future(0), future(3))).status_code == 201

    def test_reschedule(self, client, studio, future):
        booking = client.post("/api/bookings/", json=booking_body(future(10), future(15))).json()
        response = client.post(
            f"/api/bookings/{booking['id']}/reschedule",
            json={"new_check_in_date": future(12).isoformat()}
        )
        assert response.status_code == 200
        assert response.json()["check_in_date"] == future(12).isoformat()
        assert response.json()["check_out_date"] == future(17).isoformat()

    def test_unknown_booking(self, client):
        assert client.get("/api/bookings/missing").status_code == 404


class TestAvailabilityApi:

    def test_availability_and_calendar(self, client, studio, future):
        client.post("/api/bookings/", json=booking_body(future(1), future(2)))

        check = client.get("/api/availability/studio", params={
            "start": future(0).isoformat(), "end": future(3).isoformat()
        }).json()
        assert check["available"] is False
        assert len(check["conflicting_booking_ids"]) == 1

        days = client.get("/api/availability/studio/calendar", params={
            "start": future(0).isoformat(), "end": future(3).isoformat()
        }).json()
        assert [d["available"] for d in days] == [True, False, True]

    def test_reversed_range(self, client, studio, future):
        response = client.get("/api/availability/studio", params={
            "start": future(3).isoformat(), "end": future(0).isoformat()
        })
        assert response.status_code == 422


class TestBlocksApi:

    def test_manual_block_lifecycle(self, client, studio, future):
        response = client.post("/api/blocks/", json={
            "apartment_type": "studio",
            "start_date": future(0).isoformat(),
            "end_date": future(2).isoformat(),
            "reason": "Deep cleaning"
        })
        assert response.status_code == 201
        block = response.json()
        assert block["is_manual"] is True

        assert client.delete(f"/api/blocks/{block['id']}").status_code == 204

    def test_channel_block_delete_forbidden(self, client, db, studio, future):
        block = BlockedRange(
            apartment_type_id=studio.id, start_date=future(0), end_date=future(2),
            source="booking_com", external_id="bk-1"
        )
        db.add(block)
        db.commit()

        response = client.delete(f"/api/blocks/{block.id}")
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "OwnershipError"


class TestPricingApi:

    def test_seasonal_rate_and_price(self, client, studio, future):
        day = future(0)
        response = client.post("/api/pricing/seasonal-rates", json={
            "apartment_type": "studio",
            "month": day.month,
            "year": day.year,
            "price_per_night": "145.00"
        })
        assert response.status_code == 201

        price = client.get("/api/pricing/price", params={
            "apartment_type": "studio", "date": day.isoformat()
        }).json()
        assert float(price["price"]) == 145.0

    def test_duplicate_seasonal_rate(self, client, studio):
        body = {"apartment_type": "studio", "month": 8, "year": 2027, "price_per_night": "150.00"}
        assert client.post("/api/pricing/seasonal-rates", json=body).status_code == 201

        response = client.post("/api/pricing/seasonal-rates", json=body)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "DuplicateSeasonalRateError"

    def test_copy_year(self, client, studio):
        client.post("/api/pricing/seasonal-rates", json={
            "apartment_type": "studio", "month": 8, "year": 2027, "price_per_night": "150.00"
        })
        response = client.post("/api/pricing/seasonal-rates/copy", json={"from_year": 2027, "to_year": 2028})
        assert response.status_code == 200
        assert response.json() == {"created": 1, "updated": 0}


class TestIntegrationsApi:

    @pytest.fixture
    def integration(self, client, studio):
        response = client.post("/api/integrations/", json={
            "channel_name": "airbnb",
            "apartment_type": "studio",
            "ical_url": "https://www.airbnb.com/calendar/ical/1.ics"
        })
        assert response.status_code == 201
        return response.json()

    def test_sync_now(self, client, integration, monkeypatch, feed, calendar, vevent, future):
        feed.body = calendar(vevent("ab-1", future(0), future(2)))
        monkeypatch.setattr(channel_sync, "build_http_client", lambda timeout=None: feed.client())

        response = client.post(f"/api/integrations/{integration['id']}/sync")
        assert response.status_code == 200
        assert response.json()["added"] == 1

        status = client.get(f"/api/integrations/{integration['id']}").json()
        assert status["last_synced_at"] is not None
        assert status["last_sync_error"] is None

    def test_sync_upstream_failure(self, client, integration, monkeypatch, feed):
        feed.status_code = 500
        monkeypatch.setattr(channel_sync, "build_http_client", lambda timeout=None: feed.client())

        response = client.post(f"/api/integrations/{integration['id']}/sync")
        assert response.status_code == 502

        status = client.get(f"/api/integrations/{integration['id']}").json()
        assert "500" in status["last_sync_error"]

    def test_manual_channel_rejected(self, client, studio):
        response = client.post("/api/integrations/", json={
            "channel_name": "manual",
            "apartment_type": "studio",
            "ical_url": "https://example.com/cal.ics"
        })
        assert response.status_code == 422

    def test_conflicts_endpoint(self, client, integration, monkeypatch, feed, calendar, vevent, future):
        client.post("/api/bookings/", json=booking_body(future(0), future(3)))
        feed.body = calendar(vevent("ab-1", future(1), future(4)))
        monkeypatch.setattr(channel_sync, "build_http_client", lambda timeout=None: feed.client())
        client.post(f"/api/integrations/{integration['id']}/sync")

        conflicts = client.get("/api/integrations/conflicts").json()
        assert len(conflicts) == 1

        response = client.post(f"/api/integrations/conflicts/{conflicts[0]['id']}/resolve", json={"notes": "Moved"})
        assert response.status_code == 200
        assert client.get("/api/integrations/conflicts").json() == []


class TestNotificationsApi:

    def test_pending_and_ack(self, client, studio, future):
        client.post("/api/bookings/", json=booking_body(future(0), future(2)))

        pending = client.get("/api/notifications/pending").json()
        assert [n["event_type"] for n in pending] == ["booking_confirmed"]

        response = client.post(f"/api/notifications/{pending[0]['id']}/ack")
        assert response.status_code == 200
        assert client.get("/api/notifications/pending").json() == []


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/health/live").json()["status"] == "alive"
        assert client.get("/health/ready").status_code == 200

    def test_detailed(self, client):
        data = client.get("/health/detailed").json()
        assert data["checks"]["database"]["status"] == "up"
        assert data["checks"]["channel_sync"]["failing_integrations"] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
