import json
import logging
import math

from sqlalchemy.exc import SQLAlchemyError

from ..errors import MosqueNotFoundError
from ..models import Mosque
from .calendar_store import normalize_mosque_slug
from .prayer_time.cache_layer import BoundedTTLCache
from .prayer_time.calendar_types import MosqueRecord

logger = logging.getLogger(__name__)

_ALL_MOSQUES_KEY = 'all'


def _to_number(value):
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_mosque(record):
    """
    Builds a MosqueRecord from a mosques.json entry. Entries missing a name,
    address, slug or coordinates are dropped (None).
    """
    if not isinstance(record, dict):
        return None
    name = str(record.get('name') or '').strip()
    address = str(record.get('address') or '').strip()
    slug = str(record.get('slug') or '').strip()
    lat = _to_number(record.get('lat'))
    lng = _to_number(record.get('lng'))
    if not name or not address or not slug or lat is None or lng is None:
        return None

    website = record.get('website')
    return MosqueRecord(
        id=str(record['id']).strip() if record.get('id') else None,
        slug=slug,
        name=name,
        address=address,
        lat=lat,
        lng=lng,
        website=website.strip() if isinstance(website, str) and website.strip() else None,
        is_hidden=record.get('isHidden') is True,
    )


def mosque_from_model(model):
    return MosqueRecord(
        id=model.external_id or str(model.id),
        slug=model.slug,
        name=model.name,
        address=model.address,
        lat=model.latitude,
        lng=model.longitude,
        website=model.website,
        is_hidden=bool(model.is_hidden),
    )


def dedupe_mosques(mosques):
    """One entry per slug (later entries win), sorted by name."""
    by_slug = {}
    for mosque in mosques:
        by_slug[mosque.slug] = mosque
    return sorted(by_slug.values(), key=lambda mosque: mosque.name.lower())


def load_static_mosques(path):
    if not path:
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load mosques from {path}: {e}", exc_info=True)
        return []
    return [mosque for mosque in map(normalize_mosque, data.get('mosques', [])) if mosque is not None]


def load_database_mosques():
    try:
        return [mosque_from_model(model) for model in Mosque.query.all()]
    except SQLAlchemyError as e:
        logger.error(f"Failed to load mosques from the database: {e}", exc_info=True)
        return []


class MosqueRegistry:
    """
    The list of mosques: the static mosques.json merged with database rows,
    cached for a short TTL. A slug in `hidden_slugs` is hidden as if the
    mosque itself were flagged hidden.
    """

    def __init__(self, static_path=None, use_database=False, hidden_slugs=(), ttl_seconds=60):
        self.static_path = static_path
        self.use_database = use_database
        self.hidden_slugs = frozenset(slug.strip().lower() for slug in hidden_slugs if slug.strip())
        self._cache = BoundedTTLCache('mosques', ttl_seconds, max_entries=1)

    @classmethod
    def from_config(cls, config):
        hidden = config.get('HIDDEN_MOSQUE_SLUGS') or ''
        if isinstance(hidden, str):
            hidden = hidden.split(',')
        return cls(
            static_path=config.get('MOSQUES_DATA_PATH'),
            use_database=(config.get('CALENDAR_SOURCE') or '').lower() == 'database',
            hidden_slugs=hidden,
            ttl_seconds=config.get('MOSQUES_CACHE_TTL_SECONDS', 60),
        )

    def _load_all(self):
        mosques = load_static_mosques(self.static_path)
        if self.use_database:
            mosques.extend(load_database_mosques())
        return tuple(dedupe_mosques(mosques))

    def is_hidden(self, mosque):
        return mosque.is_hidden or mosque.slug in self.hidden_slugs

    def list_mosques(self, include_hidden=False):
        mosques = self._cache.get_or_load(_ALL_MOSQUES_KEY, self._load_all)
        if include_hidden:
            return list(mosques)
        return [mosque for mosque in mosques if not self.is_hidden(mosque)]

    def get_mosque(self, slug, include_hidden=False):
        """Returns the mosque for slug, raising MosqueNotFoundError if it is unknown or hidden."""
        normalized = normalize_mosque_slug(slug)
        for mosque in self.list_mosques(include_hidden=include_hidden):
            if mosque.slug == normalized:
                return mosque
        raise MosqueNotFoundError(normalized)

    def clear(self):
        self._cache.clear()
