from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any, Callable, List, Optional, Sequence, Union

import yaml

__all__ = ['CacheClient', 'JSON', 'YAML', 'BATCH_SIZE']
logger = logging.getLogger(__name__)

JSON = 'json'
YAML = 'yaml'
BATCH_SIZE = 100

Expiration = Union[None, int, float, timedelta]


def _dumps(marshal: str) -> Callable[[Any], str]:
    if marshal == YAML:
        return lambda value: yaml.safe_dump(value, allow_unicode=True)
    return lambda value: json.dumps(value, ensure_ascii=False)


def _loads(marshal: str) -> Callable[[Union[str, bytes]], Any]:
    if marshal == YAML:
        return yaml.safe_load
    return json.loads


class CacheClient:
    """
    Prefix-scoped cache over a redis client.

    Values are marshalled with json (default) or yaml. ``expiration`` is in
    seconds; ``None`` or a non-positive value stores the key without expiry.
    """

    def __init__(self, redis_client: Any, prefix: str = '', marshal: str = JSON):
        if marshal not in (JSON, YAML):
            raise ValueError(f"cache marshal only support: {JSON}, {YAML}, got '{marshal}'")
        self.redis = redis_client
        self.prefix = prefix
        self.marshal = marshal
        self._dumps = _dumps(marshal)
        self._loads = _loads(marshal)

    def key(self, key: str) -> str:
        return f'{self.prefix}{key}'

    def keys(self, keys: Sequence[str]) -> List[str]:
        return [self.key(k) for k in keys]

    @staticmethod
    def _ex(expiration: Expiration) -> Optional[Union[int, timedelta]]:
        if expiration is None:
            return None
        if isinstance(expiration, timedelta):
            return expiration if expiration.total_seconds() > 0 else None
        return int(expiration) if expiration > 0 else None

    def get(self, key: str, default: Any = None) -> Any:
        raw = self.redis.get(self.key(key))
        if raw is None:
            return default
        return self._loads(raw)

    def set(self, key: str, value: Any, expiration: Expiration = None) -> bool:
        return bool(self.redis.set(self.key(key), self._dumps(value), ex=self._ex(expiration)))

    def set_nx(self, key: str, value: Any, expiration: Expiration = None) -> bool:
        return bool(self.redis.set(self.key(key), self._dumps(value), ex=self._ex(expiration), nx=True))

    def exists(self, *keys: str) -> int:
        return self._batched(self.redis.exists, keys)

    def delete(self, *keys: str) -> int:
        return self._batched(self.redis.delete, keys)

    def _batched(self, command: Callable[..., int], keys: Sequence[str]) -> int:
        total = 0
        for start in range(0, len(keys), BATCH_SIZE):
            total += int(command(*self.keys(keys[start:start + BATCH_SIZE])))
        return total
