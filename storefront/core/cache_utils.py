"""
Caching utilities for public listings and admin reports
Uses Redis (django-redis) in production and the local-memory cache elsewhere
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
STYLING_LIST_CACHE_TTL = 120  # 2 minutes
REPORTS_CACHE_TTL = 60  # 1 minute


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_or_build(prefix, builder, ttl, **params):
    """
    Return the cached payload for ``prefix`` + ``params`` or build and cache it

    Usage:
        data = get_or_build("products_list", lambda: serialize(qs), 120, kind=kind)
    """
    cache_key = make_cache_key(prefix, **params)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for {prefix}: {cache_key}")
        return cached_data

    logger.debug(f"Cache MISS for {prefix}: {cache_key}")
    data = builder()
    cache.set(cache_key, data, ttl)
    return data


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Redis backends delete by SCAN pattern; other backends are cleared entirely
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Cache invalidation requested for pattern: {pattern} - Deleted {deleted} keys")
        else:
            cache.clear()
            logger.info(f"Cache invalidation requested for pattern: {pattern} - Cleared local cache")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_products_cache():
    """Invalidate all products-related cache"""
    invalidate_cache_pattern("products_list")


def invalidate_styling_cache():
    """Invalidate all styling-related cache"""
    invalidate_cache_pattern("styling_list")


def invalidate_reports_cache():
    """Invalidate cached analytics payloads"""
    invalidate_cache_pattern("reports")
