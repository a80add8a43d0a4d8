# backend/tests/test_prayer_service.py

import datetime

import pytest

from masjidtimes.errors import CalendarNotFoundError, RamadanOnlyError
from masjidtimes.services.prayer_time.calendar_types import MosqueRecord
from masjidtimes.services.prayer_time_service import (
    NO_DATA_LABEL,
    RAMADAN_ONLY_LABEL,
    compare_mosques,
    day_to_response,
    get_iqamah_time,
    get_jummah_time,
    get_monthly_timetable,
    get_prayer_times_for_date,
    get_ramadan_timetable,
    resolve_day,
)

from conftest import make_monthly_document, make_ramadan_document, write_calendar

OCTOBER_ROWS = [
    {"date": 1, "fajr": "05:40", "shurooq": "07:10", "dhuhr": "13:05", "asr": "16:10", "maghrib": "18:45", "isha": "20:10"},
    {"date": 27, "fajr": "05:15", "shurooq": "06:55", "dhuhr": "11:55", "asr": "14:35", "maghrib": "16:45", "isha": "18:10"},
]
NOVEMBER_ROWS = [
    {"date": 1, "fajr": "05:20", "shurooq": "07:00", "dhuhr": "11:55", "asr": "14:25", "maghrib": "16:35", "isha": "18:00"},
]


def iqamah_range(date_range="1-31", fajr="06:00", dhuhr="13:15", asr="Entry Time", isha="Adhan + 10 mins"):
    return {"date_range": date_range, "fajr": fajr, "dhuhr": dhuhr, "asr": asr, "maghrib": "sunset", "isha": isha}


def test_end_to_end_monthly_then_ramadan_precedence(app, store, calendar_dir):
    """Dhuhr iqamah comes from the monthly range until a covering Ramadan calendar appears."""
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document(iqamah_times=[iqamah_range("1-31", dhuhr="13:15")]))
    date_obj = datetime.date(2025, 3, 5)

    assert get_iqamah_time("example-mosque", "dhuhr", date_obj, store) == "13:15"
    assert resolve_day("example-mosque", date_obj, store).source == "monthly"

    write_calendar(calendar_dir, "example-mosque", "ramadan", make_ramadan_document(
        start="2025-03-01", end="2025-03-30",
        iqamah_times=[iqamah_range("1-30", dhuhr="13:00")],
    ))
    store.clear()

    resolved = resolve_day("example-mosque", date_obj, store)
    assert resolved.source == "ramadan"
    assert resolved.iqamah_times.dhuhr == "13:00"
    # Ramadan day 5 carries forward the day 1 sample
    assert resolved.prayer_times.fajr == "05:02"


def test_resolve_day_resolves_symbolic_iqamah(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document())
    resolved = resolve_day("example-mosque", datetime.date(2025, 3, 20), store)

    assert resolved.prayer_times.sunrise == "06:14"
    assert resolved.iqamah_times.asr == "15:29"
    assert resolved.iqamah_times.maghrib == "18:09"
    assert resolved.iqamah_times.isha == "19:52"
    assert resolved.iqamah_times.jummah == "13:30"
    assert not resolved.dst_adjusted


def test_summer_isha_override(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "june", make_monthly_document(month="JUNE"))
    resolved = resolve_day("example-mosque", datetime.date(2025, 6, 20), store)
    assert resolved.iqamah_times.isha == "After Maghrib"


def test_summer_window_comes_from_config(app, store, calendar_dir):
    app.config['SUMMER_ISHA_START'] = '07-01'
    write_calendar(calendar_dir, "example-mosque", "june", make_monthly_document(month="JUNE"))
    resolved = resolve_day("example-mosque", datetime.date(2025, 6, 20), store)
    assert resolved.iqamah_times.isha == "19:52"


def test_dst_window_uses_next_month_iqamah(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "october", make_monthly_document(
        month="OCTOBER", rows=OCTOBER_ROWS, iqamah_times=[iqamah_range("1-31", dhuhr="13:30")]))
    write_calendar(calendar_dir, "example-mosque", "november", make_monthly_document(
        month="NOVEMBER", rows=NOVEMBER_ROWS, iqamah_times=[iqamah_range("1-30", dhuhr="12:45")]))

    resolved = resolve_day("example-mosque", datetime.date(2025, 10, 28), store)
    assert resolved.dst_adjusted
    assert resolved.iqamah_times.dhuhr == "12:45"
    # Adhan times stay with October
    assert resolved.prayer_times.dhuhr == "11:55"

    before_change = resolve_day("example-mosque", datetime.date(2025, 10, 20), store)
    assert not before_change.dst_adjusted
    assert before_change.iqamah_times.dhuhr == "13:30"


def test_dst_substitution_failure_keeps_own_iqamah(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "october", make_monthly_document(
        month="OCTOBER", rows=OCTOBER_ROWS, iqamah_times=[iqamah_range("1-31", dhuhr="13:30")]))

    resolved = resolve_day("example-mosque", datetime.date(2025, 10, 28), store)
    assert not resolved.dst_adjusted
    assert resolved.iqamah_times.dhuhr == "13:30"


def test_dst_can_be_skipped(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "october", make_monthly_document(
        month="OCTOBER", rows=OCTOBER_ROWS, iqamah_times=[iqamah_range("1-31", dhuhr="13:30")]))
    write_calendar(calendar_dir, "example-mosque", "november", make_monthly_document(
        month="NOVEMBER", rows=NOVEMBER_ROWS, iqamah_times=[iqamah_range("1-30", dhuhr="12:45")]))

    resolved = resolve_day("example-mosque", datetime.date(2025, 10, 28), store, apply_dst=False)
    assert resolved.iqamah_times.dhuhr == "13:30"


def test_prayer_times_and_jummah_for_date(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document(jummah="13:45"))
    prayer_times = get_prayer_times_for_date("example-mosque", datetime.date(2025, 3, 16), store)
    assert prayer_times.date == "2025-03-16"
    assert prayer_times.fajr == "04:35"
    assert get_jummah_time("example-mosque", datetime.date(2025, 3, 14), store) == "13:45"


def test_unknown_prayer_iqamah_is_placeholder(app, store):
    assert get_iqamah_time("example-mosque", "tahajjud", datetime.date(2025, 3, 5), store) == "-"


def test_day_to_response(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document())
    data = day_to_response("example-mosque", resolve_day("example-mosque", datetime.date(2025, 3, 14), store), store)
    assert data['display_date'] == "Fri 14 March 2025"
    assert data['date'] == "2025-03-14"
    assert data['prayer_times']['dhuhr'] == "12:20"
    assert data['display']['prayer_times']['fajr'] == "5:05am"
    assert data['display']['prayer_times']['dhuhr'] == "12:20pm"
    assert "date" not in data['display']['prayer_times']
    assert data['display']['iqamah_times']['dhuhr'] == "1:15pm"
    assert data['dst'] == {'is_dst_period': False, 'transition': None, 'in_adjustment_window': False}


# --- Timetables ---

def test_monthly_timetable(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "march", make_monthly_document(iqamah_times=[
        iqamah_range("1-10"),
    ]))
    timetable = get_monthly_timetable("example-mosque", "march", 2025, store, today=datetime.date(2025, 3, 15))

    assert timetable['display_label'] == "MARCH"
    assert [row['day'] for row in timetable['rows']] == [1, 15]
    first, second = timetable['rows']
    assert first['date'] == "2025-03-01"
    assert first['iqamah']['asr'] == "15:10"
    assert first['iqamah']['isha'] == "19:25"
    assert not first['is_today']
    # No range covers day 15
    assert second['is_today']
    assert set(second['iqamah'].values()) == {"-"}
    assert first['display']['prayer_times']['maghrib'] == "5:45pm"
    assert first['display']['iqamah_times']['fajr'] == "6:00am"
    assert second['display']['iqamah_times']['fajr'] == "-"


def test_monthly_timetable_for_ramadan_only_mosque(app, store, calendar_dir):
    write_calendar(calendar_dir, "central-masjid", "ramadan", make_ramadan_document())
    with pytest.raises(RamadanOnlyError):
        get_monthly_timetable("central-masjid", "june", 2025, store, today=datetime.date(2025, 6, 1))


def test_monthly_timetable_without_any_data(app, store):
    with pytest.raises(CalendarNotFoundError):
        get_monthly_timetable("example-mosque", "june", 2025, store, today=datetime.date(2025, 6, 1))


def test_ramadan_timetable(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "ramadan", make_ramadan_document())
    timetable = get_ramadan_timetable("example-mosque", store, today=datetime.date(2025, 3, 12))

    assert timetable['is_active']
    assert timetable['date_range'] == "1 Mar 2025 – 30 Mar 2025"
    assert len(timetable['rows']) == 30
    assert timetable['rows'][0]['date'] == "2025-03-01"
    assert timetable['rows'][11]['is_today']
    assert timetable['rows'][11]['fajr'] == "04:45"
    assert timetable['rows'][29]['date'] == "2025-03-30"


def test_ramadan_timetable_missing(app, store):
    with pytest.raises(CalendarNotFoundError):
        get_ramadan_timetable("example-mosque", store, today=datetime.date(2025, 3, 12))


# --- Comparison ---

def test_compare_mosques_reports_each_status(app, store, calendar_dir):
    write_calendar(calendar_dir, "example-mosque", "june", make_monthly_document(month="JUNE"))
    write_calendar(calendar_dir, "central-masjid", "ramadan", make_ramadan_document())
    mosques = [
        MosqueRecord(slug="example-mosque", name="Example Mosque", address="1 High Street", lat=51.5, lng=-0.1),
        MosqueRecord(slug="central-masjid", name="Central Masjid", address="2 Market Square", lat=51.4, lng=-0.2),
        MosqueRecord(slug="empty-mosque", name="Empty Mosque", address="4 Side Road", lat=51.2, lng=-0.4),
    ]

    result = compare_mosques(mosques, datetime.date(2025, 6, 2), store)
    entries = {entry['mosque_slug']: entry for entry in result['mosques']}

    assert entries['example-mosque']['status'] == "ok"
    assert entries['example-mosque']['source'] == "monthly"
    assert entries['example-mosque']['iqamah_times']['dhuhr'] == "13:15"
    assert entries['example-mosque']['display']['iqamah_times']['dhuhr'] == "1:15pm"
    assert entries['central-masjid']['status'] == RAMADAN_ONLY_LABEL
    assert entries['central-masjid']['message'] == "1 Mar 2025 – 30 Mar 2025"
    assert entries['central-masjid']['display'] is None
    assert entries['empty-mosque']['status'] == NO_DATA_LABEL
    assert entries['empty-mosque']['prayer_times'] is None
