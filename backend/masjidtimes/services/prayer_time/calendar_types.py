# Domain types for calendar documents and resolved prayer times.
import datetime
from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple

from ...utils.constants import MAX_RAMADAN_DAYS, Sentinels
from .iqamah_rules import IqamahRule


@dataclass(frozen=True)
class DailyRow:
    """
    One sampled day of adhan times. `day` is the day of the month for monthly
    calendars and the Ramadan day (1-30) for Ramadan calendars.
    """
    day: int
    fajr: str
    shurooq: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    gregorian: Optional[str] = None


@dataclass(frozen=True)
class IqamahRange:
    date_range: str
    start_day: int
    end_day: int
    fajr: IqamahRule
    dhuhr: IqamahRule
    asr: IqamahRule
    maghrib: IqamahRule
    isha: IqamahRule

    def covers(self, day):
        return self.start_day <= day <= self.end_day


@dataclass(frozen=True)
class MonthlyCalendar:
    mosque_slug: str
    month: str
    year: int
    display_label: str
    daily_rows: Tuple[DailyRow, ...]
    iqamah_ranges: Tuple[IqamahRange, ...]
    jummah_time: str


@dataclass(frozen=True)
class RamadanCalendar:
    mosque_slug: str
    month_label: str
    gregorian_start: datetime.date
    gregorian_end: datetime.date
    daily_rows: Tuple[DailyRow, ...]
    iqamah_ranges: Tuple[IqamahRange, ...]
    jummah_time: str

    def covers(self, date_obj):
        return self.gregorian_start <= date_obj <= self.gregorian_end

    def ramadan_day(self, date_obj):
        """Day of Ramadan for a Gregorian date, clamped to 1..30."""
        offset = (date_obj - self.gregorian_start).days
        return min(MAX_RAMADAN_DAYS, max(1, offset + 1))

    @property
    def length_in_days(self):
        span = (self.gregorian_end - self.gregorian_start).days + 1
        return span if span > 0 else MAX_RAMADAN_DAYS

    def gregorian_date_for(self, ramadan_day):
        return self.gregorian_start + datetime.timedelta(days=ramadan_day - 1)


@dataclass(frozen=True)
class DailyIqamahTimes:
    """The iqamah rules that apply on one day, plus the calendar's Jummah time."""
    fajr: IqamahRule
    dhuhr: IqamahRule
    asr: IqamahRule
    maghrib: IqamahRule
    isha: IqamahRule
    jummah: str


@dataclass(frozen=True)
class AdjustedIqamahDate:
    month: int
    day: int


@dataclass
class DailyPrayerTimes:
    date: str
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str

    @classmethod
    def from_row(cls, date_obj, row: DailyRow):
        return cls(
            date=date_obj.isoformat(),
            fajr=row.fajr,
            sunrise=row.shurooq,
            dhuhr=row.dhuhr,
            asr=row.asr,
            maghrib=row.maghrib,
            isha=row.isha,
        )


@dataclass
class ResolvedIqamahTimes:
    fajr: str = Sentinels.NO_TIME
    dhuhr: str = Sentinels.NO_TIME
    asr: str = Sentinels.NO_TIME
    maghrib: str = Sentinels.NO_TIME
    isha: str = Sentinels.NO_TIME
    jummah: str = Sentinels.NO_TIME


@dataclass
class ResolvedDay:
    date: datetime.date
    source: str
    prayer_times: DailyPrayerTimes
    iqamah_times: ResolvedIqamahTimes
    iqamah_row: DailyIqamahTimes = field(repr=False, compare=False)
    dst_adjusted: bool = False

    def to_dict(self):
        return {
            'date': self.date.isoformat(),
            'source': self.source,
            'prayer_times': asdict(self.prayer_times),
            'iqamah_times': asdict(self.iqamah_times),
            'dst_adjusted': self.dst_adjusted,
        }


@dataclass(frozen=True)
class MosqueRecord:
    slug: str
    name: str
    address: str
    lat: float
    lng: float
    id: Optional[str] = None
    website: Optional[str] = None
    is_hidden: bool = False
