# jukebox/services/redis_client.py
import redis
from jukebox.config import settings

_cached_client = None


def get_redis_client(host=None, port=None, password=None):
    global _cached_client

    if _cached_client is not None:
        return _cached_client

    _cached_client = redis.Redis(
        host=host or settings.REDIS_HOST,
        port=port or settings.REDIS_PORT,
        password=password or settings.REDIS_PASSWORD,
        decode_responses=True
    )
    return _cached_client
