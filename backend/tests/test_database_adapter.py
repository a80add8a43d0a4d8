import datetime

from masjidtimes.models import Mosque, MonthlyPrayerTimes, RamadanTimetable
from masjidtimes.services.calendar_adapters.database_adapter import DatabaseCalendarAdapter
from masjidtimes.services.calendar_adapters.static_json_adapter import LocalJsonCalendarAdapter
from masjidtimes.services.calendar_store import CalendarStore
from masjidtimes.services.prayer_time.cache_layer import CacheStore

from conftest import make_monthly_document, make_ramadan_document, write_calendar


def add_mosque(db, slug="example-mosque"):
    db.session.add(Mosque(slug=slug, name="Example Mosque", address="1 High Street", latitude=51.5, longitude=-0.1))


def test_fetch_monthly_from_database(app, db):
    add_mosque(db)
    document = make_monthly_document(jummah="13:40")
    db.session.add(MonthlyPrayerTimes(
        mosque_slug="example-mosque", month="march", year=2025, month_display="MARCH 2025",
        prayer_times=document['prayer_times'], iqamah_times=document['iqamah_times'], jummah_iqamah="13:40",
    ))
    db.session.commit()

    adapter = DatabaseCalendarAdapter()
    assert adapter.fetch_monthly("example-mosque", "march", 2025)['month'] == "MARCH 2025"
    assert adapter.fetch_monthly("example-mosque", "march", 2026) is None


def test_fetch_ramadan_newest_first(app, db):
    add_mosque(db)
    for start, end in (("2024-03-11", "2024-04-09"), ("2025-03-01", "2025-03-30")):
        document = make_ramadan_document(start=start, end=end)
        db.session.add(RamadanTimetable(
            mosque_slug="example-mosque", month="RAMADAN",
            gregorian_start=datetime.date.fromisoformat(start), gregorian_end=datetime.date.fromisoformat(end),
            prayer_times=document['prayer_times'], iqamah_times=document['iqamah_times'], jummah_iqamah="13:15",
        ))
    db.session.commit()

    documents = DatabaseCalendarAdapter().fetch_ramadan("example-mosque")
    assert [d['gregorian_start'] for d in documents] == ["2025-03-01", "2024-03-11"]


def test_database_miss_falls_back_to_files(app, db, calendar_dir, dst_resolver):
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document(month="MARCH FROM FILE"))
    store = CalendarStore([DatabaseCalendarAdapter(), LocalJsonCalendarAdapter(calendar_dir)], CacheStore(), dst_resolver)
    assert store.get_monthly("example-mosque", "march", 2025).display_label == "MARCH FROM FILE"


def test_database_error_falls_back_to_files(app, calendar_dir, dst_resolver):
    # No tables have been created, so every query fails.
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document())
    store = CalendarStore([DatabaseCalendarAdapter(), LocalJsonCalendarAdapter(calendar_dir)], CacheStore(), dst_resolver)
    assert store.get_monthly("example-mosque", "march", 2025) is not None
    assert store.get_ramadan("example-mosque") is None
