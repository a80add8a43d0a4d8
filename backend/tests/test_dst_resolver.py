import datetime
import json

from masjidtimes.services.prayer_time.calendar_types import DailyPrayerTimes
from masjidtimes.services.prayer_time.dst_resolver import (
    DSTWindowResolver,
    load_dst_table,
    parse_dst_table,
)


def test_adjustment_mapping_after_clocks_go_back(dst_resolver):
    mapping = dst_resolver.map_to_adjusted_iqamah_date(datetime.date(2025, 10, 28))
    assert (mapping.month, mapping.day) == (11, 3)

    mapping = dst_resolver.map_to_adjusted_iqamah_date(datetime.date(2025, 10, 31))
    assert (mapping.month, mapping.day) == (11, 6)

    assert dst_resolver.map_to_adjusted_iqamah_date(datetime.date(2025, 11, 1)) is None


def test_adjustment_window_starts_on_the_change_day(dst_resolver):
    assert not dst_resolver.is_in_adjustment_window(datetime.date(2025, 10, 25))
    assert dst_resolver.is_in_adjustment_window(datetime.date(2025, 10, 26))
    assert dst_resolver.adjusted_iqamah_date(datetime.date(2025, 10, 26)) == datetime.date(2025, 11, 1)


def test_adjustment_mapping_after_clocks_go_forward(dst_resolver):
    assert not dst_resolver.is_in_adjustment_window(datetime.date(2025, 3, 29))
    assert dst_resolver.adjusted_iqamah_date(datetime.date(2025, 3, 30)) == datetime.date(2025, 4, 1)
    # The March offset is clamped to a single day
    assert dst_resolver.adjusted_iqamah_date(datetime.date(2025, 3, 31)) == datetime.date(2025, 4, 2)


def test_missing_year_fails_open(dst_resolver):
    date_obj = datetime.date(2031, 10, 28)
    assert not dst_resolver.is_in_adjustment_window(date_obj)
    assert dst_resolver.map_to_adjusted_iqamah_date(date_obj) is None
    assert not dst_resolver.is_in_dst_period(date_obj)


def test_is_in_dst_period_excludes_end_date(dst_resolver):
    assert dst_resolver.is_in_dst_period(datetime.date(2025, 3, 30))
    assert dst_resolver.is_in_dst_period(datetime.date(2025, 10, 25))
    assert not dst_resolver.is_in_dst_period(datetime.date(2025, 10, 26))
    assert not dst_resolver.is_in_dst_period(datetime.date(2025, 3, 29))


def test_transition_types(dst_resolver):
    assert dst_resolver.get_transition_type(datetime.date(2025, 3, 30)) == 'start'
    assert dst_resolver.get_transition_type(datetime.date(2025, 10, 26)) == 'end'
    assert dst_resolver.get_transition_type(datetime.date(2025, 10, 27)) is None


def test_describe_reports_dst_flags(dst_resolver):
    assert dst_resolver.describe(datetime.date(2025, 10, 26)) == {
        'is_dst_period': False, 'transition': 'end', 'in_adjustment_window': True,
    }
    assert dst_resolver.describe(datetime.date(2025, 6, 1)) == {
        'is_dst_period': True, 'transition': None, 'in_adjustment_window': False,
    }


def test_adjust_adhan_for_display_shifts_dhuhr_and_maghrib_only(dst_resolver):
    times = DailyPrayerTimes("2025-10-28", "05:45", "07:00", "12:45", "15:10", "17:40", "19:05")
    adjusted = dst_resolver.adjust_adhan_for_display(times, datetime.date(2025, 10, 28))
    assert (adjusted.dhuhr, adjusted.maghrib) == ("11:45", "16:40")
    assert (adjusted.fajr, adjusted.asr, adjusted.isha) == ("05:45", "15:10", "19:05")

    outside = dst_resolver.adjust_adhan_for_display(times, datetime.date(2025, 11, 10))
    assert outside is times


def test_load_dst_table(tmp_path):
    path = tmp_path / "dst.json"
    path.write_text(json.dumps({"uk_dst_dates": [
        {"year": 2025, "start_date": "2025-03-30T01:00:00Z", "end_date": "2025-10-26"},
    ]}))
    windows = load_dst_table(path)
    assert len(windows) == 1
    assert windows[0].start_date == datetime.date(2025, 3, 30)


def test_load_dst_table_failure_yields_empty_table(tmp_path):
    assert load_dst_table(tmp_path / "missing.json") == []
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert load_dst_table(bad) == []


def test_resolver_reloads_after_ttl():
    now = [0.0]
    calls = []

    def loader():
        calls.append(1)
        return parse_dst_table({"uk_dst_dates": [{"year": 2025, "start_date": "2025-03-30", "end_date": "2025-10-26"}]})

    resolver = DSTWindowResolver(loader, ttl_seconds=600, clock=lambda: now[0])
    resolver.window_for_year(2025)
    resolver.window_for_year(2025)
    assert len(calls) == 1

    now[0] = 601.0
    resolver.window_for_year(2025)
    assert len(calls) == 2


def test_bundled_dst_table_covers_2025():
    from masjidtimes.config import Config
    resolver = DSTWindowResolver.from_path(Config.DST_DATES_PATH)
    window = resolver.window_for_year(2025)
    assert window.end_date == datetime.date(2025, 10, 26)
