# masjidtimes/services/calendar_adapters/database_adapter.py

from sqlalchemy.exc import SQLAlchemyError

from ...models import MonthlyPrayerTimes, RamadanTimetable
from .base_adapter import BaseCalendarAdapter


class DatabaseCalendarAdapter(BaseCalendarAdapter):
    """Calendar source backed by the MonthlyPrayerTimes and RamadanTimetable tables."""

    name = 'database'
    fallback_errors = (SQLAlchemyError,)

    def fetch_monthly(self, mosque_slug, month_name, year):
        record = MonthlyPrayerTimes.query.filter_by(
            mosque_slug=mosque_slug,
            month=month_name,
            year=year,
        ).first()
        return record.to_document() if record else None

    def fetch_ramadan(self, mosque_slug):
        records = (
            RamadanTimetable.query
            .filter_by(mosque_slug=mosque_slug)
            .order_by(RamadanTimetable.gregorian_start.desc())
            .all()
        )
        return [record.to_document() for record in records]
