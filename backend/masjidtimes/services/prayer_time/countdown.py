# This module projects the current prayer, the next prayer event and a live countdown for a day.
import datetime
from dataclasses import dataclass
from typing import List, Optional

from ...utils.constants import PRAYER_NAMES, IqamahTokens, Sentinels
from ...utils.time_utils import combine_with_clock, is_clock_time, is_jummah_day, parse_time_internal
from .iqamah_rules import SUMMER_ISHA_WINDOW, resolve_daily_iqamah

HIGHLIGHT_GRACE_MINUTES = 10

# Iqamah values that never open a countdown window.
NO_IQAMAH_WINDOW = frozenset({Sentinels.NO_TIME, Sentinels.EMPTY_TIME, IqamahTokens.AFTER_MAGHRIB})

SIMPLE_CURRENT_PRAYER_FIELDS = ('fajr', 'sunrise', 'dhuhr', 'asr', 'maghrib', 'isha')


@dataclass
class Countdown:
    hours: int
    minutes: int
    seconds: int

    @classmethod
    def between(cls, now, target):
        """Time from now until target, compared in UTC so a clock change is counted correctly."""
        delta = target.astimezone(datetime.timezone.utc) - now.astimezone(datetime.timezone.utc)
        total_seconds = max(0, int(delta.total_seconds()))
        hours, remainder = divmod(total_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        return cls(hours=hours, minutes=minutes, seconds=seconds)


@dataclass
class PrayerAnchor:
    name: str
    adhan: str
    iqamah: str
    fallback_iqamah: Optional[str] = None

    @property
    def window_iqamah(self):
        """The iqamah that bounds the highlight window. Jummah without a time uses Dhuhr's."""
        if self.fallback_iqamah is not None and not is_clock_time(self.iqamah):
            return self.fallback_iqamah
        return self.iqamah


@dataclass
class NextEvent:
    name: str
    time: str
    is_iqamah: bool
    is_jummah: bool = False
    is_tomorrow: bool = False


@dataclass
class CountdownProjection:
    current_prayer: Optional[str]
    next_event: NextEvent
    countdown: Countdown

    @property
    def is_iqamah_countdown(self):
        return self.next_event.is_iqamah

    @property
    def is_jummah_countdown(self):
        return self.next_event.is_jummah


def build_anchors(prayer_times, iqamah_times, is_friday) -> List[PrayerAnchor]:
    """The five major prayers in order. On Fridays Jummah takes Dhuhr's place."""
    anchors = []
    for prayer in PRAYER_NAMES:
        if prayer == 'dhuhr' and is_friday:
            anchors.append(PrayerAnchor('jummah', prayer_times.dhuhr, iqamah_times.jummah, fallback_iqamah=iqamah_times.dhuhr))
        else:
            anchors.append(PrayerAnchor(prayer, getattr(prayer_times, prayer), getattr(iqamah_times, prayer)))
    return anchors


def _iqamah_instant(day, iqamah, tzinfo):
    if not iqamah or iqamah in NO_IQAMAH_WINDOW:
        return None
    return combine_with_clock(day, iqamah, tzinfo)


def get_highlighted_prayer(anchors: List[PrayerAnchor], now) -> Optional[str]:
    """
    The prayer whose window contains now. A window opens 10 minutes after
    the previous prayer's iqamah and closes at this prayer's iqamah; Fajr's
    window opens after yesterday's Isha. Prayers without a clock-time
    iqamah have no window.
    """
    today = now.date()
    grace = datetime.timedelta(minutes=HIGHLIGHT_GRACE_MINUTES)
    instants = [_iqamah_instant(today, anchor.window_iqamah, now.tzinfo) for anchor in anchors]

    for index, anchor in enumerate(anchors):
        end = instants[index]
        previous_end = instants[index - 1]
        if end is None or previous_end is None:
            continue
        start = previous_end + grace
        if index == 0:
            start -= datetime.timedelta(days=1)
        if start <= now < end:
            return anchor.name

    isha_iqamah = instants[-1]
    if isha_iqamah is not None and now >= isha_iqamah + grace:
        return 'fajr'
    return None


def get_next_prayer_and_countdown(anchors: List[PrayerAnchor], now) -> CountdownProjection:
    """
    Scans prayers in order, checking each adhan and then its iqamah; the
    first instant still in the future is the next event. On Fridays the
    Jummah entry only counts its iqamah. When everything today has passed,
    the next event is tomorrow's Fajr adhan.
    """
    today = now.date()

    for anchor in anchors:
        is_jummah = anchor.name == 'jummah'
        if not is_jummah:
            adhan_at = combine_with_clock(today, anchor.adhan, now.tzinfo)
            if adhan_at is not None and adhan_at > now:
                return CountdownProjection(None, NextEvent(anchor.name, anchor.adhan, is_iqamah=False), Countdown.between(now, adhan_at))

        if anchor.iqamah == anchor.adhan:
            continue
        iqamah_at = _iqamah_instant(today, anchor.iqamah, now.tzinfo)
        if iqamah_at is not None and iqamah_at > now:
            event = NextEvent(anchor.name, anchor.iqamah, is_iqamah=True, is_jummah=is_jummah)
            return CountdownProjection(None, event, Countdown.between(now, iqamah_at))

    fajr = anchors[0]
    tomorrow_fajr = combine_with_clock(today + datetime.timedelta(days=1), fajr.adhan, now.tzinfo)
    countdown = Countdown.between(now, tomorrow_fajr) if tomorrow_fajr else Countdown(0, 0, 0)
    return CountdownProjection(None, NextEvent('fajr', fajr.adhan, is_iqamah=False, is_tomorrow=True), countdown)


def get_current_prayer(prayer_times, now) -> Optional[str]:
    """The latest of the day's six times (sunrise included) that is not after now."""
    current_time = now.time().replace(tzinfo=None)
    current = None
    current_at = None
    for field_name in SIMPLE_CURRENT_PRAYER_FIELDS:
        time_obj = parse_time_internal(getattr(prayer_times, field_name))
        if time_obj is None or time_obj > current_time:
            continue
        if current_at is None or time_obj > current_at:
            current, current_at = field_name, time_obj
    return current


def project_countdown(prayer_times, iqamah_row, now, dst_resolver=None, summer_window=SUMMER_ISHA_WINDOW) -> CountdownProjection:
    """
    Builds the countdown for `now` from the day's adhan times and iqamah row.

    During the DST adjustment window Dhuhr and Maghrib adhan are shown an
    hour earlier, and iqamah is resolved against those shifted times.
    """
    today = now.date()
    if dst_resolver is not None:
        prayer_times = dst_resolver.adjust_adhan_for_display(prayer_times, today)
    iqamah_times = resolve_daily_iqamah(prayer_times, iqamah_row, today, summer_window)
    anchors = build_anchors(prayer_times, iqamah_times, is_jummah_day(today))

    projection = get_next_prayer_and_countdown(anchors, now)
    projection.current_prayer = get_highlighted_prayer(anchors, now)
    return projection
