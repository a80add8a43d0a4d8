import datetime
import zoneinfo
from dataclasses import asdict
from typing import Any, Dict, List

import requests
from flask import current_app

from ..errors import (
    RAMADAN_ONLY_PREFIX,
    CalendarNotFoundError,
    IqamahRangeNotFoundError,
    MasjidTimesError,
    is_ramadan_only_message,
)
from ..utils.constants import MONTH_NUMBERS, PRAYER_NAMES, Sentinels
from ..utils.template_helpers import format_date_for_display, format_ramadan_date_range, format_times_to_12_hour
from .prayer_time.calendar_lookup import find_daily_row, get_iqamah_times_for_day
from .prayer_time.calendar_types import DailyIqamahTimes, DailyPrayerTimes, ResolvedDay, ResolvedIqamahTimes
from .prayer_time.countdown import CountdownProjection, get_current_prayer, project_countdown
from .prayer_time.iqamah_rules import SUMMER_ISHA_WINDOW, parse_month_day, resolve_daily_iqamah
from .prayer_time.ramadan_overlay import (
    MONTHLY_LOAD_ERRORS,
    CalendarState,
    ramadan_only_error,
    select_calendar,
)

RAMADAN_ONLY_LABEL = "Ramadan only"
NO_DATA_LABEL = "No data"


# --- Context helpers ---

def get_calendar_store():
    """The process-wide CalendarStore built by the application factory."""
    return current_app.extensions['calendar_store']


def get_local_timezone():
    return zoneinfo.ZoneInfo(current_app.config.get('LOCAL_TIMEZONE', 'Europe/London'))


def local_now():
    """Current wall-clock time where the mosques are."""
    return datetime.datetime.now(get_local_timezone())


def local_today():
    return local_now().date()


def get_summer_isha_window():
    return (
        parse_month_day(current_app.config.get('SUMMER_ISHA_START'), SUMMER_ISHA_WINDOW[0]),
        parse_month_day(current_app.config.get('SUMMER_ISHA_END'), SUMMER_ISHA_WINDOW[1]),
    )


# --- Single-day resolution ---

def _lookup_day(selection, date_obj):
    """Finds the adhan row and iqamah rules for a date in the selected calendar."""
    calendar = selection.calendar
    if selection.state is CalendarState.RAMADAN_ACTIVE:
        day = calendar.ramadan_day(date_obj)
        period_label = f"Ramadan day {day}"
    else:
        day = date_obj.day
        period_label = f"{calendar.month} {calendar.year}"

    row = find_daily_row(calendar.daily_rows, day, period_label)
    iqamah_row = get_iqamah_times_for_day(day, calendar.iqamah_ranges, calendar.jummah_time)
    return row, iqamah_row


def get_prayer_times_for_date(mosque_slug: str, date_obj: datetime.date, store=None) -> DailyPrayerTimes:
    store = store or get_calendar_store()
    selection = select_calendar(store, mosque_slug, date_obj)
    row, _ = _lookup_day(selection, date_obj)
    return DailyPrayerTimes.from_row(date_obj, row)


def get_iqamah_times_for_date(mosque_slug: str, date_obj: datetime.date, store=None) -> DailyIqamahTimes:
    """The unresolved iqamah rules governing a date, from whichever calendar applies."""
    store = store or get_calendar_store()
    selection = select_calendar(store, mosque_slug, date_obj)
    _, iqamah_row = _lookup_day(selection, date_obj)
    return iqamah_row


def _dst_adjusted_iqamah_row(store, mosque_slug, date_obj):
    """
    During the DST adjustment window, returns the iqamah rules of the mapped
    day in the following month. Returns None outside the window, or when the
    mapped day cannot be loaded; the day's own rules then stand.
    """
    alternate_date = store.dst_resolver.adjusted_iqamah_date(date_obj)
    if alternate_date is None:
        return None
    try:
        iqamah_row = get_iqamah_times_for_date(mosque_slug, alternate_date, store)
    except MONTHLY_LOAD_ERRORS as e:
        current_app.logger.warning(f"DST iqamah substitution for {mosque_slug} on {date_obj} failed; using the day's own iqamah: {e}")
        return None
    current_app.logger.debug(f"DST adjustment: {mosque_slug} {date_obj} uses iqamah from {alternate_date}.")
    return iqamah_row


def resolve_day(mosque_slug: str, date_obj: datetime.date, store=None, apply_dst: bool = True) -> ResolvedDay:
    """
    Resolves adhan and iqamah times for a mosque on a date.

    The Ramadan calendar wins when it covers the date; otherwise the monthly
    calendar is used. Inside the DST adjustment window the iqamah rules come
    from the mapped day of the following month while adhan times stay put.
    """
    store = store or get_calendar_store()
    selection = select_calendar(store, mosque_slug, date_obj)
    row, iqamah_row = _lookup_day(selection, date_obj)
    prayer_times = DailyPrayerTimes.from_row(date_obj, row)

    dst_adjusted = False
    if apply_dst:
        adjusted_row = _dst_adjusted_iqamah_row(store, mosque_slug, date_obj)
        if adjusted_row is not None:
            iqamah_row = adjusted_row
            dst_adjusted = True

    iqamah_times = resolve_daily_iqamah(prayer_times, iqamah_row, date_obj, get_summer_isha_window())
    return ResolvedDay(
        date=date_obj,
        source=selection.source,
        prayer_times=prayer_times,
        iqamah_times=iqamah_times,
        iqamah_row=iqamah_row,
        dst_adjusted=dst_adjusted,
    )


def display_times(prayer_times: Dict[str, str], iqamah_times: Dict[str, str]) -> Dict[str, Dict[str, str]]:
    """12-hour renderings of a day's adhan and iqamah times, as shown on mosque boards."""
    adhan = {name: value for name, value in prayer_times.items() if name != 'date'}
    return {
        'prayer_times': format_times_to_12_hour(adhan),
        'iqamah_times': format_times_to_12_hour(iqamah_times),
    }


def day_to_response(mosque_slug: str, resolved: ResolvedDay, store=None) -> Dict[str, Any]:
    store = store or get_calendar_store()
    data = resolved.to_dict()
    data['mosque_slug'] = mosque_slug
    data['display_date'] = format_date_for_display(resolved.date)
    data['display'] = display_times(data['prayer_times'], data['iqamah_times'])
    data['dst'] = store.dst_resolver.describe(resolved.date)
    return data


def get_iqamah_time(mosque_slug: str, prayer: str, date_obj: datetime.date, store=None) -> str:
    """The resolved iqamah for one prayer ("jummah" included); "-" for an unknown prayer."""
    prayer_lower = prayer.lower()
    if prayer_lower != 'jummah' and prayer_lower not in PRAYER_NAMES:
        return Sentinels.NO_TIME
    resolved = resolve_day(mosque_slug, date_obj, store)
    return getattr(resolved.iqamah_times, prayer_lower)


def get_jummah_time(mosque_slug: str, date_obj: datetime.date, store=None) -> str:
    """The Jummah time published in the calendar governing date_obj."""
    return get_iqamah_times_for_date(mosque_slug, date_obj, store).jummah


def get_countdown(mosque_slug: str, now: datetime.datetime = None, store=None) -> Dict[str, Any]:
    store = store or get_calendar_store()
    now = now or local_now()
    today = now.date()

    resolved = resolve_day(mosque_slug, today, store)
    projection: CountdownProjection = project_countdown(
        resolved.prayer_times,
        resolved.iqamah_row,
        now,
        dst_resolver=store.dst_resolver,
        summer_window=get_summer_isha_window(),
    )
    return {
        'mosque_slug': mosque_slug,
        'now': now.isoformat(),
        'current_prayer': projection.current_prayer or get_current_prayer(resolved.prayer_times, now),
        'next_prayer': projection.next_event.name,
        'next_time': projection.next_event.time,
        'countdown': asdict(projection.countdown),
        'is_iqamah_countdown': projection.is_iqamah_countdown,
        'is_jummah_countdown': projection.is_jummah_countdown,
        'is_tomorrow': projection.next_event.is_tomorrow,
    }


# --- Timetables ---

def _timetable_row(day, date_obj, row, iqamah_ranges, jummah_time, today):
    prayer_times = DailyPrayerTimes.from_row(date_obj or today, row)
    try:
        iqamah_row = get_iqamah_times_for_day(day, iqamah_ranges, jummah_time)
        iqamah_times = resolve_daily_iqamah(prayer_times, iqamah_row, date_obj or today, summer_window=None)
    except IqamahRangeNotFoundError:
        iqamah_times = ResolvedIqamahTimes()

    adhan = asdict(prayer_times)
    del adhan['date']
    iqamah = asdict(iqamah_times)
    return {
        'day': day,
        'date': date_obj.isoformat() if date_obj else None,
        'is_today': date_obj == today,
        **adhan,
        'iqamah': iqamah,
        'display': display_times(adhan, iqamah),
    }


def get_monthly_timetable(mosque_slug: str, month, year: int, store=None, today: datetime.date = None) -> Dict[str, Any]:
    """Every published row of a month, each with its resolved iqamah times."""
    store = store or get_calendar_store()
    today = today or local_today()
    try:
        calendar = store.get_monthly(mosque_slug, month, year)
    except MONTHLY_LOAD_ERRORS as e:
        ramadan = store.get_ramadan(mosque_slug)
        if ramadan is not None:
            raise ramadan_only_error(ramadan) from e
        raise
    if calendar is None:
        ramadan = store.get_ramadan(mosque_slug)
        if ramadan is not None:
            raise ramadan_only_error(ramadan)
        raise CalendarNotFoundError(f"Prayer times not found for {mosque_slug} {month} {year}.")

    month_number = MONTH_NUMBERS[calendar.month]
    rows = []
    for row in sorted(calendar.daily_rows, key=lambda r: r.day):
        try:
            date_obj = datetime.date(calendar.year, month_number, row.day)
        except ValueError:
            date_obj = None
        rows.append(_timetable_row(row.day, date_obj, row, calendar.iqamah_ranges, calendar.jummah_time, today))

    return {
        'mosque_slug': calendar.mosque_slug,
        'month': calendar.month,
        'year': calendar.year,
        'display_label': calendar.display_label,
        'jummah': calendar.jummah_time,
        'rows': rows,
    }


def get_ramadan_timetable(mosque_slug: str, store=None, today: datetime.date = None) -> Dict[str, Any]:
    """
    One row per day of the mosque's current (or most recent) Ramadan, using
    the nearest published sample for days without their own row.
    """
    store = store or get_calendar_store()
    today = today or local_today()
    calendar = store.get_ramadan(mosque_slug, today)
    if calendar is None:
        raise CalendarNotFoundError(f"No Ramadan timetable found for {mosque_slug}.")

    rows = []
    for day in range(1, calendar.length_in_days + 1):
        row = find_daily_row(calendar.daily_rows, day, f"Ramadan day {day}")
        rows.append(_timetable_row(day, calendar.gregorian_date_for(day), row, calendar.iqamah_ranges, calendar.jummah_time, today))

    return {
        'mosque_slug': calendar.mosque_slug,
        'month_label': calendar.month_label,
        'gregorian_start': calendar.gregorian_start.isoformat(),
        'gregorian_end': calendar.gregorian_end.isoformat(),
        'date_range': format_ramadan_date_range(calendar.gregorian_start, calendar.gregorian_end),
        'is_active': calendar.covers(today),
        'jummah': calendar.jummah_time,
        'rows': rows,
    }


# --- Multi-mosque comparison ---

def compare_mosques(mosques: List, date_obj: datetime.date, store=None) -> Dict[str, Any]:
    """
    Resolves every given mosque for one date. A mosque that cannot be
    resolved is reported with a status instead of failing the comparison.
    """
    store = store or get_calendar_store()
    entries = []
    for mosque in mosques:
        entry = {
            'mosque_slug': mosque.slug,
            'mosque_name': mosque.name,
            'status': 'ok',
            'source': None,
            'message': None,
            'prayer_times': None,
            'iqamah_times': None,
            'display': None,
        }
        try:
            resolved = resolve_day(mosque.slug, date_obj, store)
        except (MasjidTimesError, requests.exceptions.RequestException) as e:
            message = str(e)
            if is_ramadan_only_message(message):
                entry.update(status=RAMADAN_ONLY_LABEL, message=message[len(RAMADAN_ONLY_PREFIX):])
            else:
                current_app.logger.warning(f"Compare: no data for {mosque.slug} on {date_obj}: {e}")
                entry.update(status=NO_DATA_LABEL)
        else:
            prayer_times = asdict(resolved.prayer_times)
            iqamah_times = asdict(resolved.iqamah_times)
            entry.update(
                source=resolved.source,
                prayer_times=prayer_times,
                iqamah_times=iqamah_times,
                display=display_times(prayer_times, iqamah_times),
            )
        entries.append(entry)

    return {
        'date': date_obj.isoformat(),
        'display_date': format_date_for_display(date_obj),
        'mosques': entries,
    }

