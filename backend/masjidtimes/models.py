# masjidtimes/models.py

from datetime import datetime

from .extensions import db


class Mosque(db.Model):
    """A mosque whose timetables are served. Calendars reference it by slug."""
    __tablename__ = 'mosque'

    id = db.Column(db.Integer, primary_key=True)
    external_id = db.Column(db.String(64), nullable=True)
    slug = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(255), nullable=False, default='')
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    website = db.Column(db.String(255), nullable=True)
    is_hidden = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Mosque {self.slug}>'


class MonthlyPrayerTimes(db.Model):
    """
    One month of a mosque's published timetable. Rows and iqamah ranges are
    stored as JSON in the same shape as the static calendar files.
    """
    __tablename__ = 'monthly_prayer_times'

    id = db.Column(db.Integer, primary_key=True)
    mosque_slug = db.Column(db.String(64), db.ForeignKey('mosque.slug'), nullable=False, index=True)
    month = db.Column(db.String(12), nullable=False)  # "january", "february", etc.
    year = db.Column(db.Integer, nullable=False)
    month_display = db.Column(db.String(50), nullable=False)  # "JANUARY", "FEBRUARY", etc.
    prayer_times = db.Column(db.JSON, nullable=False)
    iqamah_times = db.Column(db.JSON, nullable=False)
    jummah_iqamah = db.Column(db.String(20), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('mosque_slug', 'month', 'year', name='_mosque_month_year_uc'),)

    def to_document(self):
        return {
            'month': self.month_display,
            'prayer_times': self.prayer_times,
            'iqamah_times': self.iqamah_times,
            'jummah_iqamah': self.jummah_iqamah,
        }

    def __repr__(self):
        return f'<MonthlyPrayerTimes {self.mosque_slug} {self.month} {self.year}>'


class RamadanTimetable(db.Model):
    """A mosque's separate timetable for one Ramadan, keyed by its first Gregorian day."""
    __tablename__ = 'ramadan_timetable'

    id = db.Column(db.Integer, primary_key=True)
    mosque_slug = db.Column(db.String(64), db.ForeignKey('mosque.slug'), nullable=False, index=True)
    month = db.Column(db.String(50), nullable=False)
    gregorian_start = db.Column(db.Date, nullable=False)
    gregorian_end = db.Column(db.Date, nullable=False)
    prayer_times = db.Column(db.JSON, nullable=False)
    iqamah_times = db.Column(db.JSON, nullable=False)
    jummah_iqamah = db.Column(db.String(20), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('mosque_slug', 'gregorian_start', name='_mosque_ramadan_start_uc'),)

    def to_document(self):
        return {
            'month': self.month,
            'gregorian_start': self.gregorian_start.isoformat(),
            'gregorian_end': self.gregorian_end.isoformat(),
            'prayer_times': self.prayer_times,
            'iqamah_times': self.iqamah_times,
            'jummah_iqamah': self.jummah_iqamah,
        }

    def __repr__(self):
        return f'<RamadanTimetable {self.mosque_slug} {self.gregorian_start}>'
