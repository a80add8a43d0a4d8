# This module contains the calendar store: validated, cached access to monthly and Ramadan calendars.
import logging
import re

import requests
from marshmallow import ValidationError

from ..errors import CalendarValidationError
from ..schemas import MonthlyDocumentSchema, RamadanDocumentSchema
from ..utils.constants import MAX_CALENDAR_YEAR, MAX_SLUG_LENGTH, MIN_CALENDAR_YEAR, MONTH_NAMES, MONTH_NUMBERS
from .calendar_adapters.static_json_adapter import LocalJsonCalendarAdapter, StaticJsonCalendarAdapter
from .prayer_time.api_adapter import fetch_options_from_config
from .prayer_time.cache_layer import CacheStore
from .prayer_time.calendar_types import MonthlyCalendar, RamadanCalendar
from .prayer_time.dst_resolver import DSTWindowResolver
from .prayer_time.key_utils import generate_monthly_cache_key, generate_ramadan_cache_key

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

_monthly_schema = MonthlyDocumentSchema()
_ramadan_schema = RamadanDocumentSchema()


# --- Input validation ---
# Runs before any cache or source access. Never retried.

def normalize_mosque_slug(mosque_slug):
    if not isinstance(mosque_slug, str):
        raise CalendarValidationError(f"Invalid mosque slug: {mosque_slug!r}")
    slug = mosque_slug.strip().lower()
    if not slug or len(slug) > MAX_SLUG_LENGTH or not SLUG_RE.match(slug):
        raise CalendarValidationError(f"Invalid mosque slug: {mosque_slug!r}")
    return slug


def validate_month(month):
    """Accepts a month name in any case or a month number; returns the lowercase name."""
    if isinstance(month, int) and not isinstance(month, bool):
        if month in MONTH_NAMES:
            return MONTH_NAMES[month]
    elif isinstance(month, str):
        name = month.strip().lower()
        if name in MONTH_NUMBERS:
            return name
    raise CalendarValidationError(f"Invalid month: {month!r}")


def validate_year(year):
    if isinstance(year, bool) or not isinstance(year, int):
        raise CalendarValidationError(f"Invalid year: {year!r}")
    if not MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR:
        raise CalendarValidationError(f"Year out of range ({MIN_CALENDAR_YEAR}-{MAX_CALENDAR_YEAR}): {year}")
    return year


# --- Document conversion ---

def build_monthly_calendar(document, mosque_slug, month_name, year) -> MonthlyCalendar:
    try:
        data = _monthly_schema.load(document)
    except ValidationError as e:
        raise CalendarValidationError(f"Invalid monthly calendar for {mosque_slug} {month_name} {year}: {e.messages}") from e
    return MonthlyCalendar(
        mosque_slug=mosque_slug,
        month=month_name,
        year=year,
        display_label=data['month'] or month_name.upper(),
        daily_rows=tuple(data['prayer_times']),
        iqamah_ranges=tuple(data['iqamah_times']),
        jummah_time=data['jummah_iqamah'],
    )


def build_ramadan_calendar(document, mosque_slug):
    """Returns a RamadanCalendar, or None for a document missing its Gregorian bounds."""
    try:
        data = _ramadan_schema.load(document)
    except ValidationError as e:
        raise CalendarValidationError(f"Invalid Ramadan calendar for {mosque_slug}: {e.messages}") from e
    if not data['gregorian_start'] or not data['gregorian_end']:
        logger.warning(f"Ramadan calendar for {mosque_slug} has no Gregorian range; ignoring it.")
        return None
    return RamadanCalendar(
        mosque_slug=mosque_slug,
        month_label=data['month'],
        gregorian_start=data['gregorian_start'],
        gregorian_end=data['gregorian_end'],
        daily_rows=tuple(data['prayer_times']),
        iqamah_ranges=tuple(data['iqamah_times']),
        jummah_time=data['jummah_iqamah'],
    )


def select_ramadan_calendar(calendars, on_date=None):
    """
    The calendar covering on_date if there is one, otherwise the most recent
    by start date. Callers check `covers()` before treating it as in range.
    """
    if not calendars:
        return None
    if on_date is not None:
        for calendar in calendars:
            if calendar.covers(on_date):
                return calendar
    return max(calendars, key=lambda calendar: calendar.gregorian_start)


class CalendarStore:
    """
    Validated, cached access to calendar documents.

    `adapters` are tried in order. A source that raises one of its
    `fallback_errors`, or has no document, hands over to the next one.
    """

    def __init__(self, adapters, cache: CacheStore, dst_resolver: DSTWindowResolver):
        if not adapters:
            raise ValueError("CalendarStore requires at least one calendar adapter.")
        self.adapters = list(adapters)
        self.cache = cache
        self.dst_resolver = dst_resolver

    def get_monthly(self, mosque_slug, month, year):
        """Returns the MonthlyCalendar for a mosque, month and year, or None if no source has it."""
        slug = normalize_mosque_slug(mosque_slug)
        month_name = validate_month(month)
        year = validate_year(year)
        key = generate_monthly_cache_key(slug, month_name, year)
        return self.cache.monthly.get_or_load(key, lambda: self._load_monthly(slug, month_name, year))

    def get_ramadan(self, mosque_slug, on_date=None):
        """
        Returns the mosque's Ramadan calendar covering on_date, or its most
        recent one when on_date is omitted or not covered. None if it has none.
        """
        slug = normalize_mosque_slug(mosque_slug)
        calendars = self.cache.ramadan.get_or_load(generate_ramadan_cache_key(slug), lambda: self._load_ramadan(slug))
        return select_ramadan_calendar(calendars, on_date)

    def clear(self):
        self.cache.clear()

    def _load_monthly(self, slug, month_name, year):
        last_error = None
        for adapter in self.adapters:
            try:
                document = adapter.fetch_monthly(slug, month_name, year)
            except adapter.fallback_errors as e:
                logger.warning(f"{adapter.name} source failed for {slug} {month_name} {year}, trying the next source: {e}")
                last_error = e
                continue
            if document is not None:
                logger.info(f"Loaded {month_name} {year} calendar for {slug} from {adapter.name} source.")
                return build_monthly_calendar(document, slug, month_name, year)
            logger.info(f"{adapter.name} source has no {month_name} {year} calendar for {slug}.")

        if last_error is not None:
            raise last_error
        return None

    def _load_ramadan(self, slug):
        # A failed Ramadan load is cached as "no Ramadan calendar" until the TTL expires.
        try:
            documents = self._fetch_ramadan_documents(slug)
            calendars = [build_ramadan_calendar(document, slug) for document in documents]
        except (CalendarValidationError, requests.exceptions.RequestException) as e:
            logger.warning(f"Error loading Ramadan data for {slug}: {e}", exc_info=True)
            return ()
        return tuple(sorted(
            (calendar for calendar in calendars if calendar is not None),
            key=lambda calendar: calendar.gregorian_start,
            reverse=True,
        ))

    def _fetch_ramadan_documents(self, slug):
        for adapter in self.adapters:
            try:
                documents = adapter.fetch_ramadan(slug)
            except adapter.fallback_errors as e:
                logger.warning(f"{adapter.name} Ramadan query failed for {slug}, trying the next source: {e}")
                continue
            if documents:
                return documents
        return []


def build_calendar_adapters(config):
    """
    Builds the calendar sources named by CALENDAR_SOURCE. The database source
    is always followed by a file source to fall back on.
    """
    source = (config.get('CALENDAR_SOURCE') or 'local').lower()
    base_url = config.get('STATIC_CALENDAR_BASE_URL')
    data_dir = config.get('CALENDAR_DATA_DIR')

    def file_adapter():
        if base_url:
            return StaticJsonCalendarAdapter(base_url, **fetch_options_from_config(config))
        return LocalJsonCalendarAdapter(data_dir)

    if source == 'database':
        from .calendar_adapters.database_adapter import DatabaseCalendarAdapter
        return [DatabaseCalendarAdapter(), file_adapter()]
    if source == 'static':
        if not base_url:
            raise ValueError("CALENDAR_SOURCE is 'static' but STATIC_CALENDAR_BASE_URL is not set.")
        return [file_adapter()]
    if source == 'local':
        return [LocalJsonCalendarAdapter(data_dir)]
    raise ValueError(f"Unsupported CALENDAR_SOURCE: {source}")


def build_calendar_store(config):
    ttl_seconds = config.get('CALENDAR_CACHE_TTL_SECONDS', 600)
    return CalendarStore(
        adapters=build_calendar_adapters(config),
        cache=CacheStore.from_config(config),
        dst_resolver=DSTWindowResolver.from_path(config.get('DST_DATES_PATH'), ttl_seconds=ttl_seconds),
    )
