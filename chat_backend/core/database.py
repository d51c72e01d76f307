import redis

from .config import REDIS_URL
from .store import Store

# One pool per process; redis-py pools are thread-safe, requests share it
pool = redis.ConnectionPool.from_url(REDIS_URL, decode_responses=True)


def get_client() -> redis.Redis:
    return redis.Redis(connection_pool=pool)


def get_db():
    store = Store(get_client())
    try:
        yield store
    finally:
        store.client.close()
