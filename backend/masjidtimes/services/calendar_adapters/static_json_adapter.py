# masjidtimes/services/calendar_adapters/static_json_adapter.py

import json
import logging
from pathlib import Path

from ...errors import CalendarNotFoundError, CalendarValidationError
from ..prayer_time.api_adapter import (
    DEFAULT_TIMEOUT_SECONDS,
    build_session,
    fetch_calendar_response,
    is_retriable_status,
)
from ..prayer_time.key_utils import generate_static_monthly_path, generate_static_ramadan_path
from .base_adapter import BaseCalendarAdapter

logger = logging.getLogger(__name__)


class StaticJsonCalendarAdapter(BaseCalendarAdapter):
    """
    Calendar source for static JSON files published at
    `<base>/<slug>/<month>.json` and `<base>/<slug>/ramadan.json`.
    Static files are not keyed by year; the same month file serves every year.
    """

    name = 'static'

    def __init__(self, base_url, session=None, timeout=DEFAULT_TIMEOUT_SECONDS, retry=None):
        self.base_url = base_url
        self.session = session or build_session(retry)
        self.timeout = timeout

    def _load_document(self, location):
        """
        Returns the parsed document at location, or None if there is none.
        A retriable status that outlasts every retry raises requests.HTTPError.
        """
        response = fetch_calendar_response(self.session, location, timeout=self.timeout)
        if not response.ok:
            if is_retriable_status(response.status_code):
                response.raise_for_status()
            logger.info(f"StaticJsonCalendarAdapter: {location} returned {response.status_code}.")
            return None
        try:
            return response.json()
        except ValueError as e:
            raise CalendarValidationError(f"Malformed calendar JSON at {location}: {e}") from e

    def fetch_monthly(self, mosque_slug, month_name, year):
        location = generate_static_monthly_path(self.base_url, mosque_slug, month_name)
        document = self._load_document(location)
        if document is None:
            raise CalendarNotFoundError(f"Prayer times not found for {mosque_slug} {month_name} {year}.", status_code=404)
        return document

    def fetch_ramadan(self, mosque_slug):
        document = self._load_document(generate_static_ramadan_path(self.base_url, mosque_slug))
        return [] if document is None else [document]


class LocalJsonCalendarAdapter(StaticJsonCalendarAdapter):
    """The same file layout as StaticJsonCalendarAdapter, read from a local directory."""

    name = 'local'

    def __init__(self, data_dir):
        self.base_url = str(data_dir)

    def _load_document(self, location):
        path = Path(location)
        if not path.is_file():
            logger.info(f"LocalJsonCalendarAdapter: no calendar file at {path}.")
            return None
        try:
            with path.open('r', encoding='utf-8') as f:
                return json.load(f)
        except ValueError as e:
            raise CalendarValidationError(f"Malformed calendar JSON at {path}: {e}") from e
