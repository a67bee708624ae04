"""In-memory query cache -- singleton instance used across the app."""

from obd_dashboard.cache.query_cache import QueryCache
from obd_dashboard.config import settings

query_cache = QueryCache(
    ttl_seconds=settings.query_cache_ttl_seconds,
    max_size=settings.query_cache_max_size,
)

__all__ = ["query_cache", "QueryCache"]
