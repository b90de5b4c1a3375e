"""
Fixed-window rate limiting on Django's cache
"""

from django.core.cache import cache


def hit_rate_limit(key, limit, window):
    """
    Count one attempt against key and report whether it went over the limit

    The counter starts on the first attempt and expires `window` seconds later.
    Returns True when this attempt is over the limit.
    """
    cache_key = f'ratelimit:{key}'
    cache.add(cache_key, 0, window)
    try:
        count = cache.incr(cache_key)
    except ValueError:
        # Expired between add() and incr()
        cache.set(cache_key, 1, window)
        count = 1
    return count > limit

