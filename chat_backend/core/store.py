# File: core/store.py
import logging
from typing import Iterable, Mapping, Optional

import redis

from .exceptions import StoreError

logger = logging.getLogger(__name__)


class Store:
    """Typed facade over the key-value primitives the backend relies on.

    This is the only object that talks to Redis. Every method is a single
    round trip; there is no multi-key atomicity here and none is simulated.
    Redis failures surface as ``StoreError``.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    def _call(self, op: str, key: str, *args, **kwargs):
        try:
            return getattr(self.client, op)(key, *args, **kwargs)
        except redis.RedisError as e:
            logger.error(f"Store {op} failed on {key}: {e}")
            raise StoreError(f"{op} failed") from e

    # --- strings ---
    def get(self, key: str) -> Optional[str]:
        return self._call("get", key)

    def set(self, key: str, value: str) -> None:
        self._call("set", key, value)

    # --- hashes ---
    def hget(self, key: str, field: str) -> Optional[str]:
        return self._call("hget", key, field)

    def hset(self, key: str, mapping: Mapping[str, object]) -> None:
        # Redis stores flat strings; None values are skipped, not stored as "None"
        clean = {k: str(v) for k, v in mapping.items() if v is not None}
        if clean:
            self._call("hset", key, mapping=clean)

    def hgetall(self, key: str) -> dict:
        return self._call("hgetall", key) or {}

    # --- sets ---
    def sadd(self, key: str, *members: str) -> int:
        """Returns how many members were new."""
        if not members:
            return 0
        return int(self._call("sadd", key, *members))

    def srem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return int(self._call("srem", key, *members))

    def sismember(self, key: str, member: str) -> bool:
        return bool(self._call("sismember", key, member))

    def smembers(self, key: str) -> set:
        return set(self._call("smembers", key) or ())

    # --- sorted sets ---
    def zadd(self, key: str, score: float, member: str) -> None:
        self._call("zadd", key, {member: score})

    def zrevrange(self, key: str, start: int, end: int) -> list:
        return list(self._call("zrevrange", key, start, end) or [])

    # --- keys ---
    def delete(self, *keys: str) -> int:
        keys = [k for k in keys if k]
        if not keys:
            return 0
        try:
            return int(self.client.delete(*keys))
        except redis.RedisError as e:
            logger.error(f"Store delete failed on {keys}: {e}")
            raise StoreError("delete failed") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


def members_of(values: Iterable[str]) -> list:
    """Sorted list of a set reply, so responses are deterministic."""
    return sorted(v for v in values if v)
