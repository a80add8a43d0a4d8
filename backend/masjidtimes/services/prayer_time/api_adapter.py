# This module contains the retrying HTTP session used to load static calendar documents.
import logging
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...metrics import CALENDAR_FETCHES_TOTAL, CALENDAR_FETCH_DURATION_SECONDS, CALENDAR_FETCH_RETRIES_TOTAL

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 6
DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.25
DEFAULT_MAX_BACKOFF_SECONDS = 4
DEFAULT_JITTER_SECONDS = 0.15

RETRY_STATUS_CODES = (408, 425, 429, 500, 502, 503, 504)


def is_retriable_status(status_code):
    return status_code in RETRY_STATUS_CODES or status_code >= 500


def build_retry(attempts=DEFAULT_ATTEMPTS, backoff=DEFAULT_BACKOFF_SECONDS,
                max_backoff=DEFAULT_MAX_BACKOFF_SECONDS, jitter=DEFAULT_JITTER_SECONDS):
    """
    Retry policy for calendar GETs. `attempts` counts the first request, so
    three attempts are two retries. Timeouts, connection errors and the
    statuses in RETRY_STATUS_CODES are retried with exponential backoff plus
    jitter; a status still failing after the last retry is returned, not raised.
    """
    retries = max(int(attempts) - 1, 0)
    return Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        status_forcelist=RETRY_STATUS_CODES,
        backoff_factor=backoff,
        backoff_max=max_backoff,
        backoff_jitter=jitter,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )


def build_session(retry=None):
    adapter = HTTPAdapter(max_retries=retry or build_retry())
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _record_retries(response):
    raw = getattr(response, 'raw', None)
    retries = getattr(raw, 'retries', None)
    history = getattr(retries, 'history', None)
    if history:
        CALENDAR_FETCH_RETRIES_TOTAL.inc(len(history))
        logger.warning(f"Fetch of {response.url} needed {len(history)} retries.")


def fetch_calendar_response(session, url, timeout=DEFAULT_TIMEOUT_SECONDS):
    """
    GETs url through a session built by build_session(), which does the retrying.

    Returns the final response, whatever its status; callers decide what a
    404 or an exhausted 503 means. A transport error that outlasts the retry
    budget is re-raised unchanged.
    """
    started = time.perf_counter()
    try:
        response = session.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        CALENDAR_FETCHES_TOTAL.labels(outcome='error').inc()
        logger.error(f"Fetch of {url} failed: {e}")
        raise
    finally:
        CALENDAR_FETCH_DURATION_SECONDS.observe(time.perf_counter() - started)

    _record_retries(response)
    CALENDAR_FETCHES_TOTAL.labels(outcome='ok' if response.ok else 'http_error').inc()
    return response


def fetch_options_from_config(config):
    """Maps FETCH_* config keys onto StaticJsonCalendarAdapter keyword arguments."""
    return {
        'timeout': config.get('FETCH_TIMEOUT_SECONDS', DEFAULT_TIMEOUT_SECONDS),
        'retry': build_retry(
            attempts=config.get('FETCH_RETRY_ATTEMPTS', DEFAULT_ATTEMPTS),
            backoff=config.get('FETCH_RETRY_BACKOFF_SECONDS', DEFAULT_BACKOFF_SECONDS),
            max_backoff=config.get('FETCH_RETRY_MAX_BACKOFF_SECONDS', DEFAULT_MAX_BACKOFF_SECONDS),
            jitter=config.get('FETCH_RETRY_JITTER_SECONDS', DEFAULT_JITTER_SECONDS),
        ),
    }
