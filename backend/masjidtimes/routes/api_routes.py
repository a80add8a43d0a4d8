# masjidtimes/routes/api_routes.py
import functools
from dataclasses import asdict

import requests
from flask import current_app
from flask_smorest import Blueprint, abort
from prometheus_client import generate_latest

from ..errors import (
    CalendarNotFoundError,
    CalendarValidationError,
    IqamahRangeNotFoundError,
    MasjidTimesError,
    MosqueNotFoundError,
    RamadanOnlyError,
)
from ..extensions import limiter
from ..schemas import (
    AdhanTimesSchema,
    CompareQueryArgsSchema,
    CompareSchema,
    CountdownSchema,
    DateQueryArgsSchema,
    IqamahTimeSchema,
    JummahSchema,
    MessageSchema,
    MonthlyTimetableSchema,
    MosqueListQueryArgsSchema,
    MosqueSchema,
    RamadanTimetableSchema,
    ResolvedDaySchema,
    YearQueryArgsSchema,
)
from ..services.prayer_time_service import (
    compare_mosques,
    day_to_response,
    get_calendar_store,
    get_countdown,
    get_iqamah_time,
    get_jummah_time,
    get_monthly_timetable,
    get_prayer_times_for_date,
    get_ramadan_timetable,
    local_today,
    resolve_day,
)
from ..utils.time_utils import is_jummah_day

api_bp = Blueprint('API', __name__, url_prefix='/api', description="Mosque prayer and iqamah times")


@api_bp.route('/metrics')
def metrics():
    return generate_latest(), 200, {'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}


def get_mosque_registry():
    return current_app.extensions['mosque_registry']


def engine_errors_to_http(view):
    """
    Maps resolution errors onto HTTP errors: bad input is a 400, missing
    data a 404 (a Ramadan-only mosque keeps its RAMADAN_ONLY: message) and
    an unreachable calendar source a 502.
    """
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except CalendarValidationError as e:
            abort(400, message=str(e))
        except (MosqueNotFoundError, CalendarNotFoundError, IqamahRangeNotFoundError, RamadanOnlyError) as e:
            abort(404, message=str(e))
        except MasjidTimesError as e:
            current_app.logger.error(f"Unhandled resolution error: {e}", exc_info=True)
            abort(500, message="Data not available for this period.")
        except requests.exceptions.RequestException as e:
            current_app.logger.error(f"Calendar source unavailable: {e}", exc_info=True)
            abort(502, message="Calendar source is unavailable.")
    return wrapper


@api_bp.route('/mosques')
@api_bp.arguments(MosqueListQueryArgsSchema, location='query')
@api_bp.response(200, MosqueSchema(many=True))
def list_mosques(args):
    return get_mosque_registry().list_mosques(include_hidden=args['include_hidden'])


@api_bp.route('/mosques/<slug>/day')
@limiter.limit("120 per minute")
@api_bp.arguments(DateQueryArgsSchema, location='query')
@api_bp.response(200, ResolvedDaySchema)
@api_bp.alt_response(404, schema=MessageSchema, description="No data for the date, or the mosque only publishes Ramadan times.")
@engine_errors_to_http
def get_day(args, slug):
    mosque = get_mosque_registry().get_mosque(slug)
    date_obj = args['date'] or local_today()
    store = get_calendar_store()
    return day_to_response(mosque.slug, resolve_day(mosque.slug, date_obj, store), store)


@api_bp.route('/mosques/<slug>/adhan')
@api_bp.arguments(DateQueryArgsSchema, location='query')
@api_bp.response(200, AdhanTimesSchema)
@engine_errors_to_http
def get_adhan(args, slug):
    mosque = get_mosque_registry().get_mosque(slug)
    date_obj = args['date'] or local_today()
    return {'mosque_slug': mosque.slug, **asdict(get_prayer_times_for_date(mosque.slug, date_obj))}


@api_bp.route('/mosques/<slug>/iqamah/<prayer>')
@api_bp.arguments(DateQueryArgsSchema, location='query')
@api_bp.response(200, IqamahTimeSchema)
@engine_errors_to_http
def get_iqamah(args, slug, prayer):
    mosque = get_mosque_registry().get_mosque(slug)
    date_obj = args['date'] or local_today()
    return {
        'mosque_slug': mosque.slug,
        'prayer': prayer.lower(),
        'date': date_obj.isoformat(),
        'iqamah': get_iqamah_time(mosque.slug, prayer, date_obj),
    }


@api_bp.route('/mosques/<slug>/countdown')
@limiter.limit("120 per minute")
@api_bp.response(200, CountdownSchema)
@engine_errors_to_http
def get_mosque_countdown(slug):
    mosque = get_mosque_registry().get_mosque(slug)
    return get_countdown(mosque.slug)


@api_bp.route('/mosques/<slug>/jummah')
@api_bp.arguments(DateQueryArgsSchema, location='query')
@api_bp.response(200, JummahSchema)
@engine_errors_to_http
def get_jummah(args, slug):
    mosque = get_mosque_registry().get_mosque(slug)
    date_obj = args['date'] or local_today()
    return {
        'mosque_slug': mosque.slug,
        'date': date_obj.isoformat(),
        'is_jummah_day': is_jummah_day(date_obj),
        'jummah': get_jummah_time(mosque.slug, date_obj),
    }


@api_bp.route('/mosques/<slug>/timetable/<month>')
@api_bp.arguments(YearQueryArgsSchema, location='query')
@api_bp.response(200, MonthlyTimetableSchema)
@engine_errors_to_http
def get_timetable(args, slug, month):
    mosque = get_mosque_registry().get_mosque(slug)
    today = local_today()
    year = args['year'] or today.year
    return get_monthly_timetable(mosque.slug, month, year, today=today)


@api_bp.route('/mosques/<slug>/ramadan-timetable')
@api_bp.response(200, RamadanTimetableSchema)
@engine_errors_to_http
def get_mosque_ramadan_timetable(slug):
    mosque = get_mosque_registry().get_mosque(slug)
    return get_ramadan_timetable(mosque.slug)


@api_bp.route('/compare')
@limiter.limit("30 per minute")
@api_bp.arguments(CompareQueryArgsSchema, location='query')
@api_bp.response(200, CompareSchema)
@engine_errors_to_http
def compare(args):
    registry = get_mosque_registry()
    date_obj = args['date'] or local_today()
    if args['slugs']:
        mosques = [registry.get_mosque(slug) for slug in args['slugs']]
    else:
        mosques = registry.list_mosques()
    return compare_mosques(mosques, date_obj)
