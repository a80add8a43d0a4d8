# masjidtimes/errors.py

RAMADAN_ONLY_PREFIX = "RAMADAN_ONLY:"


class MasjidTimesError(Exception):
    """Base class for every error raised by the prayer-time resolution engine."""


class CalendarValidationError(MasjidTimesError, ValueError):
    """
    Raised for malformed input (slug, month, year) before any cache or network
    access, and for calendar documents whose stored values cannot be parsed.
    Never retried.
    """


class CalendarNotFoundError(MasjidTimesError):
    """Raised when no calendar document exists for the requested period."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class MosqueNotFoundError(MasjidTimesError):
    """Raised when a slug is not in the mosque registry, or names a hidden mosque."""

    def __init__(self, slug):
        super().__init__(f"Mosque not found: {slug}")
        self.slug = slug


class IqamahRangeNotFoundError(MasjidTimesError):
    """Raised when no iqamah range in a calendar covers the requested day."""

    def __init__(self, day):
        super().__init__(f"No Iqamah times found for date: {day}")
        self.day = day


class RamadanOnlyError(MasjidTimesError):
    """
    The mosque only publishes a Ramadan timetable and the requested date is
    outside it. The message always starts with RAMADAN_ONLY_PREFIX so the
    presentation layer can tell it apart from a generic "no data" error.
    """

    def __init__(self, date_range):
        super().__init__(f"{RAMADAN_ONLY_PREFIX}{date_range}")
        self.date_range = date_range


def is_ramadan_only_message(message):
    return bool(message) and message.startswith(RAMADAN_ONLY_PREFIX)
