# masjidtimes/utils/constants.py

MONTH_NAMES = {
    1: 'january',
    2: 'february',
    3: 'march',
    4: 'april',
    5: 'may',
    6: 'june',
    7: 'july',
    8: 'august',
    9: 'september',
    10: 'october',
    11: 'november',
    12: 'december',
}

MONTH_NUMBERS = {name: number for number, name in MONTH_NAMES.items()}

# Major prayers in the order they occur during the day.
PRAYER_NAMES = ('fajr', 'dhuhr', 'asr', 'maghrib', 'isha')

MIN_CALENDAR_YEAR = 2000
MAX_CALENDAR_YEAR = 2100
MAX_RAMADAN_DAYS = 30
MAX_SLUG_LENGTH = 64


class IqamahTokens:
    """
    Symbolic values a mosque may publish instead of a clock time.
    Matching is case-insensitive; these are the canonical spellings.
    """
    VARIOUS = 'Various'
    ENTRY_TIME = 'Entry Time'
    STRAIGHT_AFTER_MAGHRIB = 'Straight after Maghrib'
    SUNSET = 'sunset'
    AFTER_MAGHRIB = 'After Maghrib'


class Sentinels:
    """Display values that stand in for "no time"."""
    NO_TIME = '-'
    EMPTY_TIME = '--:--'


# Values that never parse as a clock time and must be excluded from any
# countdown or markup computation.
NON_CLOCK_DISPLAY_VALUES = frozenset({
    Sentinels.NO_TIME,
    Sentinels.EMPTY_TIME,
    IqamahTokens.VARIOUS,
    IqamahTokens.STRAIGHT_AFTER_MAGHRIB,
    IqamahTokens.ENTRY_TIME,
    IqamahTokens.AFTER_MAGHRIB,
})


class CalendarSources:
    RAMADAN = 'ramadan'
    MONTHLY = 'monthly'
