"""
Shared fixtures: a throwaway SQLite database per test, seeded apartment
types, and helpers for building iCal feeds.
"""

import os
import sys
from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orbicity.database import Base
import orbicity.models  # noqa: F401
from orbicity.services.apartment_service import ApartmentService


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'orbicity_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30}
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def studio(db):
    """Base 100.00/night, sleeps 2"""
    return ApartmentService(db).create(
        slug="studio",
        name="Sea View Studio",
        base_price=Decimal("100.00"),
        max_guests=2
    )


@pytest.fixture
def family_suite(db):
    return ApartmentService(db).create(
        slug="family-suite",
        name="Family Suite",
        base_price=Decimal("180.00"),
        max_guests=5
    )


@pytest.fixture
def future():
    """future(n) -> a date n days after a fixed offset from today"""
    base = date.today() + timedelta(days=30)

    def _future(days: int = 0) -> date:
        return base + timedelta(days=days)
    return _future


def _vevent(uid, start, end=None, summary="Reserved", status=None, all_day=True):
    fmt = "%Y%m%d" if all_day else "%Y%m%dT140000Z"
    value_param = ";VALUE=DATE" if all_day else ""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTART{value_param}:{start.strftime(fmt)}",
    ]
    if end is not None:
        lines.append(f"DTEND{value_param}:{end.strftime(fmt)}")
    lines.append(f"SUMMARY:{summary}")
    if status:
        lines.append(f"STATUS:{status}")
    lines.append("END:VEVENT")
    return "\r\n".join(lines)


def _calendar(*events):
    return "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Channel Export//EN",
        *events,
        "END:VCALENDAR",
        ""
    ])


@pytest.fixture
def vevent():
    return _vevent


@pytest.fixture
def calendar():
    return _calendar


class FeedServer:
    """
    Serves whatever body/status the test sets, through httpx.MockTransport.
    """

    def __init__(self):
        self.body = _calendar()
        self.status_code = 200
        self.error = None
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body, headers={"Content-Type": "text/calendar"})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def feed():
    return FeedServer()
