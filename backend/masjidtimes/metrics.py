# masjidtimes/metrics.py

from prometheus_client import Counter, Histogram

# Define Prometheus metrics

# Cache Metrics
CACHE_HITS = Counter('masjidtimes_cache_hits_total', 'Total cache hits', ['cache_type'])
CACHE_MISSES = Counter('masjidtimes_cache_misses_total', 'Total cache misses', ['cache_type'])
CACHE_COALESCED_LOADS = Counter('masjidtimes_cache_coalesced_loads_total', 'Requests that waited on an in-flight load instead of loading', ['cache_type'])
CACHE_EVICTIONS = Counter('masjidtimes_cache_evictions_total', 'Entries evicted to stay within the cache size limit', ['cache_type'])

# Calendar Fetch Metrics
CALENDAR_FETCHES_TOTAL = Counter('masjidtimes_calendar_fetches_total', 'Calendar fetches by outcome', ['outcome'])
CALENDAR_FETCH_RETRIES_TOTAL = Counter('masjidtimes_calendar_fetch_retries_total', 'Calendar fetch retries made by the HTTP session')
CALENDAR_FETCH_DURATION_SECONDS = Histogram('masjidtimes_calendar_fetch_duration_seconds', 'Calendar fetch duration in seconds, including retries')

# Resolution Metrics
RAMADAN_ONLY_RESPONSES_TOTAL = Counter('masjidtimes_ramadan_only_total', 'Lookups rejected because the mosque only publishes Ramadan data')
