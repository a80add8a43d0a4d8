# masjidtimes/schemas.py

import datetime

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validates_schema
from webargs import fields as webargs_fields

from .errors import CalendarValidationError
from .services.prayer_time.calendar_lookup import parse_date_range
from .services.prayer_time.calendar_types import DailyRow, IqamahRange
from .services.prayer_time.iqamah_rules import IqamahRule, Sunset, parse_iqamah_rule
from .utils.constants import IqamahTokens


# --- Calendar document schemas ---
# These load the stored calendar shape (static JSON files and database rows
# alike) into the engine's types. Iqamah values are parsed here, so a
# malformed value fails the whole document at load time.

class IqamahRuleField(fields.Field):
    """An iqamah value: a clock time, a known token or a relative expression."""

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return parse_iqamah_rule(value, strict=True)
        except CalendarValidationError as e:
            raise ValidationError(str(e)) from e

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return value.raw if isinstance(value, IqamahRule) else value


class CalendarDateField(fields.Field):
    """Accepts "YYYY-MM-DD" and ISO datetimes, keeping only the date."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, datetime.date):
            return value
        try:
            return datetime.date.fromisoformat(str(value).strip()[:10])
        except ValueError as e:
            raise ValidationError(f"Not a valid date: {value!r}") from e

    def _serialize(self, value, attr, obj, **kwargs):
        return value.isoformat() if value else None


class DocumentSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class DailyRowSchema(DocumentSchema):
    day = fields.Int(required=True, data_key='date')
    fajr = fields.Str(required=True)
    shurooq = fields.Str(required=True)
    dhuhr = fields.Str(required=True)
    asr = fields.Str(required=True)
    maghrib = fields.Str(required=True)
    isha = fields.Str(required=True)

    @post_load
    def make_row(self, data, **kwargs):
        return DailyRow(**data)


class RamadanDailyRowSchema(DailyRowSchema):
    day = fields.Int(required=True, data_key='ramadan_day')
    gregorian = fields.Str(load_default=None)


class IqamahRangeSchema(DocumentSchema):
    date_range = fields.Str(required=True)
    fajr = IqamahRuleField(required=True)
    dhuhr = IqamahRuleField(required=True)
    asr = IqamahRuleField(required=True)
    # Mosques that pray Maghrib at sunset often leave the field out.
    maghrib = IqamahRuleField(load_default=lambda: Sunset(raw=IqamahTokens.SUNSET))
    isha = IqamahRuleField(required=True)

    @post_load
    def make_range(self, data, **kwargs):
        try:
            start_day, end_day = parse_date_range(data['date_range'])
        except CalendarValidationError as e:
            raise ValidationError(str(e), field_name='date_range') from e
        return IqamahRange(start_day=start_day, end_day=end_day, **data)


class MonthlyDocumentSchema(DocumentSchema):
    month = fields.Str(load_default='')
    prayer_times = fields.List(fields.Nested(DailyRowSchema), required=True)
    iqamah_times = fields.List(fields.Nested(IqamahRangeSchema), required=True)
    jummah_iqamah = fields.Str(load_default='-')


class RamadanDocumentSchema(MonthlyDocumentSchema):
    prayer_times = fields.List(fields.Nested(RamadanDailyRowSchema), required=True)
    # A document without both bounds is not a usable Ramadan calendar; the
    # calendar store treats it as "no Ramadan calendar" instead of failing.
    gregorian_start = CalendarDateField(load_default=None)
    gregorian_end = CalendarDateField(load_default=None)

    @validates_schema
    def validate_bounds(self, data, **kwargs):
        start, end = data.get('gregorian_start'), data.get('gregorian_end')
        if start and end and start > end:
            raise ValidationError("gregorian_start must not be after gregorian_end.", field_name='gregorian_start')


# --- API response schemas ---

class MosqueSchema(Schema):
    """Schema for serializing mosque registry entries."""
    id = fields.Str(dump_only=True, allow_none=True)
    slug = fields.Str(dump_only=True)
    name = fields.Str(dump_only=True)
    address = fields.Str(dump_only=True)
    lat = fields.Float(dump_only=True)
    lng = fields.Float(dump_only=True)
    website = fields.Str(dump_only=True, allow_none=True)


class DailyPrayerTimesSchema(Schema):
    date = fields.Str(required=True)
    fajr = fields.Str(required=True)
    sunrise = fields.Str(required=True)
    dhuhr = fields.Str(required=True)
    asr = fields.Str(required=True)
    maghrib = fields.Str(required=True)
    isha = fields.Str(required=True)


class DailyIqamahTimesSchema(Schema):
    fajr = fields.Str(required=True)
    dhuhr = fields.Str(required=True)
    asr = fields.Str(required=True)
    maghrib = fields.Str(required=True)
    isha = fields.Str(required=True)
    jummah = fields.Str(required=True)


class AdhanTimesSchema(DailyPrayerTimesSchema):
    mosque_slug = fields.Str(required=True)


class DisplayTimesSchema(Schema):
    """12-hour renderings; tokens and placeholders are passed through."""
    prayer_times = fields.Dict(keys=fields.Str(), values=fields.Str(), required=True)
    iqamah_times = fields.Dict(keys=fields.Str(), values=fields.Str(), required=True)


class DSTStateSchema(Schema):
    is_dst_period = fields.Bool(required=True)
    transition = fields.Str(allow_none=True)
    in_adjustment_window = fields.Bool(required=True)


class ResolvedDaySchema(Schema):
    mosque_slug = fields.Str(required=True)
    date = fields.Str(required=True)
    display_date = fields.Str(required=True)
    source = fields.Str(required=True)
    dst_adjusted = fields.Bool(required=True)
    prayer_times = fields.Nested(DailyPrayerTimesSchema, required=True)
    iqamah_times = fields.Nested(DailyIqamahTimesSchema, required=True)
    display = fields.Nested(DisplayTimesSchema, required=True)
    dst = fields.Nested(DSTStateSchema, required=True)


class IqamahTimeSchema(Schema):
    mosque_slug = fields.Str(required=True)
    prayer = fields.Str(required=True)
    date = fields.Str(required=True)
    iqamah = fields.Str(required=True)


class JummahSchema(Schema):
    mosque_slug = fields.Str(required=True)
    date = fields.Str(required=True)
    is_jummah_day = fields.Bool(required=True)
    jummah = fields.Str(required=True)


class CountdownValueSchema(Schema):
    hours = fields.Int(required=True)
    minutes = fields.Int(required=True)
    seconds = fields.Int(required=True)


class CountdownSchema(Schema):
    mosque_slug = fields.Str(required=True)
    now = fields.Str(required=True)
    current_prayer = fields.Str(allow_none=True)
    next_prayer = fields.Str(required=True)
    next_time = fields.Str(required=True)
    countdown = fields.Nested(CountdownValueSchema, required=True)
    is_iqamah_countdown = fields.Bool(required=True)
    is_jummah_countdown = fields.Bool(required=True)
    is_tomorrow = fields.Bool(required=True)


class TimetableRowSchema(Schema):
    day = fields.Int(required=True)
    date = fields.Str(allow_none=True)
    is_today = fields.Bool(required=True)
    fajr = fields.Str(required=True)
    sunrise = fields.Str(required=True)
    dhuhr = fields.Str(required=True)
    asr = fields.Str(required=True)
    maghrib = fields.Str(required=True)
    isha = fields.Str(required=True)
    iqamah = fields.Nested(DailyIqamahTimesSchema, required=True)
    display = fields.Nested(DisplayTimesSchema, required=True)


class MonthlyTimetableSchema(Schema):
    mosque_slug = fields.Str(required=True)
    month = fields.Str(required=True)
    year = fields.Int(required=True)
    display_label = fields.Str(required=True)
    jummah = fields.Str(required=True)
    rows = fields.List(fields.Nested(TimetableRowSchema), required=True)


class RamadanTimetableSchema(Schema):
    mosque_slug = fields.Str(required=True)
    month_label = fields.Str(required=True)
    gregorian_start = fields.Str(required=True)
    gregorian_end = fields.Str(required=True)
    date_range = fields.Str(required=True)
    is_active = fields.Bool(required=True)
    jummah = fields.Str(required=True)
    rows = fields.List(fields.Nested(TimetableRowSchema), required=True)


class CompareEntrySchema(Schema):
    mosque_slug = fields.Str(required=True)
    mosque_name = fields.Str(required=True)
    status = fields.Str(required=True)
    source = fields.Str(allow_none=True)
    message = fields.Str(allow_none=True)
    prayer_times = fields.Nested(DailyPrayerTimesSchema, allow_none=True)
    iqamah_times = fields.Nested(DailyIqamahTimesSchema, allow_none=True)
    display = fields.Nested(DisplayTimesSchema, allow_none=True)


class CompareSchema(Schema):
    date = fields.Str(required=True)
    display_date = fields.Str(required=True)
    mosques = fields.List(fields.Nested(CompareEntrySchema), required=True)


class MessageSchema(Schema):
    message = fields.Str(required=True)


# --- Query argument schemas ---

class DateQueryArgsSchema(Schema):
    """Optional ?date=YYYY-MM-DD; defaults to today in the local timezone."""
    date = fields.Date(load_default=None)


class CompareQueryArgsSchema(DateQueryArgsSchema):
    """Optional ?slugs=a,b to compare only some mosques."""
    slugs = webargs_fields.DelimitedList(fields.Str(), load_default=None, metadata={"default": None})


class YearQueryArgsSchema(Schema):
    year = fields.Int(load_default=None)


class MosqueListQueryArgsSchema(Schema):
    include_hidden = fields.Bool(load_default=False)
