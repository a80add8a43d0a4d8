# backend/tests/conftest.py

import datetime
import json

import pytest

from masjidtimes import create_app
from masjidtimes.extensions import db as _db
from masjidtimes.services.calendar_adapters.static_json_adapter import LocalJsonCalendarAdapter
from masjidtimes.services.calendar_store import CalendarStore
from masjidtimes.services.prayer_time.cache_layer import CacheStore
from masjidtimes.services.prayer_time.dst_resolver import DSTWindow, DSTWindowResolver


DST_WINDOWS = [
    DSTWindow(2024, datetime.date(2024, 3, 31), datetime.date(2024, 10, 27)),
    DSTWindow(2025, datetime.date(2025, 3, 30), datetime.date(2025, 10, 26)),
    DSTWindow(2026, datetime.date(2026, 3, 29), datetime.date(2026, 10, 25)),
]


def make_monthly_document(rows=None, iqamah_times=None, jummah="13:30", month="MARCH"):
    """A monthly calendar document in the stored shape."""
    if rows is None:
        rows = [
            {"date": 1, "fajr": "05:05", "shurooq": "06:45", "dhuhr": "12:20", "asr": "15:10", "maghrib": "17:45", "isha": "19:15"},
            {"date": 15, "fajr": "04:35", "shurooq": "06:14", "dhuhr": "12:16", "asr": "15:29", "maghrib": "18:09", "isha": "19:42"},
        ]
    if iqamah_times is None:
        iqamah_times = [
            {"date_range": "1-31", "fajr": "06:00", "dhuhr": "13:15", "asr": "Entry Time", "maghrib": "sunset", "isha": "Adhan + 10 mins"},
        ]
    return {"month": month, "prayer_times": rows, "iqamah_times": iqamah_times, "jummah_iqamah": jummah}


def make_ramadan_document(start="2025-03-01", end="2025-03-30", rows=None, iqamah_times=None, jummah="13:15"):
    if rows is None:
        rows = [
            {"ramadan_day": 1, "fajr": "05:02", "shurooq": "06:44", "dhuhr": "12:20", "asr": "15:11", "maghrib": "17:46", "isha": "19:16"},
            {"ramadan_day": 10, "fajr": "04:45", "shurooq": "06:25", "dhuhr": "12:17", "asr": "15:22", "maghrib": "18:00", "isha": "19:32"},
        ]
    if iqamah_times is None:
        iqamah_times = [
            {"date_range": "1-30", "fajr": "05:30", "dhuhr": "13:00", "asr": "16:00", "maghrib": "sunset", "isha": "20:15"},
        ]
    return {
        "month": "RAMADAN 1446",
        "gregorian_start": start,
        "gregorian_end": end,
        "prayer_times": rows,
        "iqamah_times": iqamah_times,
        "jummah_iqamah": jummah,
    }


def write_calendar(data_dir, slug, name, document):
    mosque_dir = data_dir / slug
    mosque_dir.mkdir(parents=True, exist_ok=True)
    (mosque_dir / f"{name}.json").write_text(json.dumps(document), encoding='utf-8')


@pytest.fixture
def calendar_dir(tmp_path):
    """An empty calendar directory laid out as <slug>/<month>.json."""
    path = tmp_path / "mosques"
    path.mkdir()
    return path


@pytest.fixture
def mosques_file(tmp_path):
    path = tmp_path / "mosques.json"
    path.write_text(json.dumps({"mosques": [
        {"id": "1", "slug": "example-mosque", "name": "Example Mosque", "address": "1 High Street", "lat": 51.5, "lng": -0.1},
        {"id": "2", "slug": "central-masjid", "name": "Central Masjid", "address": "2 Market Square", "lat": 51.4, "lng": -0.2},
        {"id": "3", "slug": "old-town-mosque", "name": "Old Town Mosque", "address": "3 Church Lane", "lat": 51.3, "lng": -0.3, "isHidden": True},
    ]}), encoding='utf-8')
    return path


@pytest.fixture
def dst_resolver():
    return DSTWindowResolver.from_windows(DST_WINDOWS)


@pytest.fixture
def store(calendar_dir, dst_resolver):
    """A calendar store reading JSON files from calendar_dir."""
    return CalendarStore(
        adapters=[LocalJsonCalendarAdapter(calendar_dir)],
        cache=CacheStore(ttl_seconds=600, max_monthly_entries=10, max_ramadan_entries=10),
        dst_resolver=dst_resolver,
    )


@pytest.fixture
def app(calendar_dir, mosques_file, dst_resolver):
    """Application for testing, reading calendars from a temporary directory."""
    app = create_app('testing', {
        'CALENDAR_DATA_DIR': str(calendar_dir),
        'MOSQUES_DATA_PATH': str(mosques_file),
    })
    app.extensions['calendar_store'].dst_resolver = dst_resolver
    with app.app_context():
        yield app


@pytest.fixture
def db(app):
    """Function-level database setup. Creates and tears down tables for each test function."""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture
def test_client(app):
    return app.test_client()
