import datetime
from types import SimpleNamespace

import pytest

from masjidtimes.errors import CalendarValidationError
from masjidtimes.services.prayer_time.calendar_types import DailyPrayerTimes
from masjidtimes.services.prayer_time.iqamah_rules import (
    AfterMaghrib,
    EntryTime,
    LiteralTime,
    Placeholder,
    RelativeOffset,
    StraightAfterMaghrib,
    Sunset,
    Various,
    apply_summer_isha_override,
    is_summer_period,
    parse_iqamah_rule,
    parse_month_day,
    resolve_daily_iqamah,
    resolve_iqamah,
)


def iqamah_row(**overrides):
    values = dict(fajr="06:00", dhuhr="13:15", asr="Entry Time", maghrib="sunset", isha="20:00", jummah="13:30")
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.parametrize("value, rule_type", [
    ("13:15", LiteralTime),
    ("Various", Various),
    ("entry time", EntryTime),
    ("Straight after Maghrib", StraightAfterMaghrib),
    ("SUNSET", Sunset),
    ("After Maghrib", AfterMaghrib),
    ("-", Placeholder),
    ("--:--", Placeholder),
    ("Adhan + 15 mins", RelativeOffset),
])
def test_parse_iqamah_rule(value, rule_type):
    rule = parse_iqamah_rule(value)
    assert type(rule) is rule_type
    assert rule.raw == value


def test_parse_relative_rule_keeps_minutes():
    assert parse_iqamah_rule("Adhan + 15 mins").minutes == 15


def test_parse_iqamah_rule_strict_rejects_unknown_values():
    with pytest.raises(CalendarValidationError):
        parse_iqamah_rule("after the khutbah")
    with pytest.raises(CalendarValidationError):
        parse_iqamah_rule(None)
    assert parse_iqamah_rule("after the khutbah", strict=False).display == "after the khutbah"


def test_literal_time_is_returned_without_padding():
    assert resolve_iqamah("dhuhr", "12:20", iqamah_row(dhuhr="13:15")) == "13:15"
    assert resolve_iqamah("dhuhr", "12:20", iqamah_row(dhuhr=" 13:15 ")) == "13:15"


def test_relative_offset_resolves_against_adhan():
    assert resolve_iqamah("fajr", "05:10", iqamah_row(fajr="Adhan + 15 mins")) == "05:25"
    assert resolve_iqamah("isha", "23:50", iqamah_row(isha="Adhan + 20 mins")) == "00:10"


def test_entry_time_means_adhan_for_asr_and_isha():
    assert resolve_iqamah("asr", "16:00", iqamah_row(asr="Entry Time")) == "16:00"
    assert resolve_iqamah("isha", "20:30", iqamah_row(isha="Entry Time")) == "20:30"


def test_straight_after_maghrib_uses_maghrib_adhan():
    row = iqamah_row(isha="Straight after Maghrib")
    assert resolve_iqamah("isha", "20:30", row, maghrib_adhan="19:45") == "19:45"
    assert resolve_iqamah("isha", "20:30", row) == "20:30"


def test_sunset_and_various_mean_adhan():
    assert resolve_iqamah("maghrib", "19:45", iqamah_row(maghrib="Sunset")) == "19:45"
    assert resolve_iqamah("fajr", "05:10", iqamah_row(fajr="Various")) == "05:10"


def test_tokens_on_other_prayers_are_displayed_as_published():
    assert resolve_iqamah("dhuhr", "12:20", iqamah_row(dhuhr="Various")) == "Various"
    assert resolve_iqamah("fajr", "05:10", iqamah_row(fajr="--:--")) == "--:--"


def test_jummah_and_unknown_prayers():
    assert resolve_iqamah("Jummah", "12:20", iqamah_row()) == "13:30"
    assert resolve_iqamah("tahajjud", "03:00", iqamah_row()) == "-"


def test_summer_period_bounds_are_inclusive():
    assert is_summer_period(datetime.date(2025, 5, 15))
    assert is_summer_period(datetime.date(2025, 8, 15))
    assert not is_summer_period(datetime.date(2025, 5, 14))
    assert not is_summer_period(datetime.date(2025, 8, 16))


def test_apply_summer_isha_override():
    assert apply_summer_isha_override("22:30", datetime.date(2025, 6, 20)) == "After Maghrib"
    assert apply_summer_isha_override("20:00", datetime.date(2025, 3, 5)) == "20:00"


def test_resolve_daily_iqamah():
    prayer_times = DailyPrayerTimes("2025-06-20", "02:45", "04:43", "13:05", "17:25", "21:20", "22:55")
    row = iqamah_row(fajr="Adhan + 30 mins", isha="Straight after Maghrib")

    resolved = resolve_daily_iqamah(prayer_times, row, datetime.date(2025, 6, 20))
    assert resolved.fajr == "03:15"
    assert resolved.maghrib == "21:20"
    assert resolved.isha == "After Maghrib"
    assert resolved.jummah == "13:30"

    without_summer = resolve_daily_iqamah(prayer_times, row, datetime.date(2025, 6, 20), summer_window=None)
    assert without_summer.isha == "21:20"


def test_parse_month_day():
    assert parse_month_day("05-15", (1, 1)) == (5, 15)
    assert parse_month_day(None, (8, 15)) == (8, 15)
