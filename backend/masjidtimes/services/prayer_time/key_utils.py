# masjidtimes/services/prayer_time/key_utils.py


def generate_monthly_cache_key(mosque_slug: str, month_name: str, year: int) -> str:
    """Generates a consistent cache key for a mosque's monthly calendar."""
    return f"monthly:{mosque_slug}:{month_name}:{year}"


def generate_ramadan_cache_key(mosque_slug: str) -> str:
    """All of a mosque's Ramadan calendars are cached together under one key."""
    return f"ramadan:{mosque_slug}"


def generate_static_monthly_path(base_url: str, mosque_slug: str, month_name: str) -> str:
    return f"{base_url.rstrip('/')}/{mosque_slug}/{month_name}.json"


def generate_static_ramadan_path(base_url: str, mosque_slug: str) -> str:
    return f"{base_url.rstrip('/')}/{mosque_slug}/ramadan.json"
