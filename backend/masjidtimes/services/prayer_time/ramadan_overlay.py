# This module decides whether a mosque's Ramadan timetable or its monthly calendar governs a date.
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from ...errors import CalendarNotFoundError, MasjidTimesError, RamadanOnlyError
from ...metrics import RAMADAN_ONLY_RESPONSES_TOTAL
from ...utils.constants import CalendarSources, MONTH_NAMES
from ...utils.template_helpers import format_ramadan_date_range
from .calendar_types import MonthlyCalendar, RamadanCalendar

logger = logging.getLogger(__name__)

# Failures of the monthly load that may be reclassified as "Ramadan only".
MONTHLY_LOAD_ERRORS = (MasjidTimesError, requests.exceptions.RequestException)


class CalendarState(enum.Enum):
    RAMADAN_ACTIVE = 'ramadan_active'
    MONTHLY_ACTIVE = 'monthly_active'
    RAMADAN_ONLY_NO_MONTHLY = 'ramadan_only_no_monthly'
    NO_DATA_ANYWHERE = 'no_data_anywhere'


def decide_calendar_state(has_ramadan: bool, ramadan_covers_date: bool, has_monthly: bool) -> CalendarState:
    """
    A Ramadan calendar that covers the date always wins. Otherwise the
    monthly calendar is used; without one, a mosque that publishes Ramadan
    data is "Ramadan only" and any other mosque has no data at all.
    """
    if has_ramadan and ramadan_covers_date:
        return CalendarState.RAMADAN_ACTIVE
    if has_monthly:
        return CalendarState.MONTHLY_ACTIVE
    if has_ramadan:
        return CalendarState.RAMADAN_ONLY_NO_MONTHLY
    return CalendarState.NO_DATA_ANYWHERE


@dataclass
class CalendarSelection:
    state: CalendarState
    calendar: Union[MonthlyCalendar, RamadanCalendar]
    ramadan_calendar: Optional[RamadanCalendar] = None

    @property
    def source(self):
        return CalendarSources.RAMADAN if self.state is CalendarState.RAMADAN_ACTIVE else CalendarSources.MONTHLY


def ramadan_only_error(ramadan_calendar: RamadanCalendar) -> RamadanOnlyError:
    RAMADAN_ONLY_RESPONSES_TOTAL.inc()
    return RamadanOnlyError(format_ramadan_date_range(ramadan_calendar.gregorian_start, ramadan_calendar.gregorian_end))


def select_calendar(store, mosque_slug, date_obj) -> CalendarSelection:
    """
    Picks the authoritative calendar for a mosque on a date.

    Raises RamadanOnlyError when the monthly calendar cannot be loaded and
    the mosque's Ramadan calendar does not cover the date. When there is no
    Ramadan calendar either, the monthly load error propagates unchanged.
    """
    ramadan = store.get_ramadan(mosque_slug, date_obj)
    ramadan_covers_date = ramadan is not None and ramadan.covers(date_obj)
    if ramadan_covers_date:
        return CalendarSelection(CalendarState.RAMADAN_ACTIVE, ramadan, ramadan)

    monthly = None
    monthly_error = None
    try:
        monthly = store.get_monthly(mosque_slug, date_obj.month, date_obj.year)
    except MONTHLY_LOAD_ERRORS as e:
        if ramadan is None:
            raise
        monthly_error = e

    state = decide_calendar_state(ramadan is not None, ramadan_covers_date, monthly is not None)
    if state is CalendarState.MONTHLY_ACTIVE:
        return CalendarSelection(state, monthly, ramadan)
    if state is CalendarState.RAMADAN_ONLY_NO_MONTHLY:
        logger.info(f"{mosque_slug} only publishes Ramadan times; {date_obj} is outside Ramadan.")
        raise ramadan_only_error(ramadan) from monthly_error

    raise CalendarNotFoundError(f"Prayer times not found for {MONTH_NAMES[date_obj.month]} {date_obj.year}.")
