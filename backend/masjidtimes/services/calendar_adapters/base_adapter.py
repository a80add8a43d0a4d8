# This module defines the base interface for all calendar document sources.
from abc import ABC, abstractmethod


class BaseCalendarAdapter(ABC):
    """
    Abstract base class for calendar sources. Every source returns documents
    in the stored calendar shape (`month`, `prayer_times`, `iqamah_times`,
    `jummah_iqamah`, and for Ramadan `gregorian_start`/`gregorian_end`) so the
    calendar store can validate them the same way.

    `fallback_errors` lists the exceptions after which the calendar store may
    move on to the next source instead of propagating.
    """

    name = 'base'
    fallback_errors = ()

    @abstractmethod
    def fetch_monthly(self, mosque_slug, month_name, year):
        """Returns the monthly document, or None when this source has none."""
        pass

    @abstractmethod
    def fetch_ramadan(self, mosque_slug):
        """Returns a list of the mosque's Ramadan documents, newest first; empty when none."""
        pass
