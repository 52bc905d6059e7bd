from __future__ import annotations

import hashlib
import time
from typing import Any

import redis.exceptions as redis_exc


def _normalize_key(key: str | bytes) -> str:
    if isinstance(key, bytes):
        return key.decode("utf-8")
    return key


def _normalize_value(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _now() -> float:
    return time.monotonic()


class InMemoryRedis:
    """
    The subset of redis.asyncio.Redis used by the app.

    `evalsha` emulates the rate limiter's fixed window script.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._expires: dict[str, float] = {}
        self._scripts: dict[str, str] = {}
        self.closed = False

    def _purge_expired(self, key: str) -> None:
        expires_at = self._expires.get(key)
        if expires_at is not None and _now() >= expires_at:
            self._store.pop(key, None)
            self._expires.pop(key, None)

    async def get(self, key: str | bytes) -> str | None:
        key_norm = _normalize_key(key)
        self._purge_expired(key_norm)
        return self._store.get(key_norm)

    async def set(
        self,
        key: str | bytes,
        value: Any,
        *,
        ex: int | None = None,
        px: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        key_norm = _normalize_key(key)
        self._purge_expired(key_norm)
        if nx and key_norm in self._store:
            return None
        self._store[key_norm] = _normalize_value(value)
        if ex is not None:
            self._expires[key_norm] = _now() + int(ex)
        elif px is not None:
            self._expires[key_norm] = _now() + (int(px) / 1000)
        else:
            self._expires.pop(key_norm, None)
        return True

    async def delete(self, *keys: str | bytes) -> int:
        deleted = 0
        for key in keys:
            key_norm = _normalize_key(key)
            self._purge_expired(key_norm)
            if key_norm in self._store:
                self._store.pop(key_norm, None)
                self._expires.pop(key_norm, None)
                deleted += 1
        return deleted

    async def exists(self, key: str | bytes) -> int:
        key_norm = _normalize_key(key)
        self._purge_expired(key_norm)
        return int(key_norm in self._store)

    async def pttl(self, key: str | bytes) -> int:
        key_norm = _normalize_key(key)
        self._purge_expired(key_norm)
        if key_norm not in self._store:
            return -2
        expires_at = self._expires.get(key_norm)
        if expires_at is None:
            return -1
        return max(1, int((expires_at - _now()) * 1000))

    async def script_load(self, script: str) -> str:
        sha = hashlib.sha1(script.encode("utf-8")).hexdigest()
        self._scripts[sha] = script
        return sha

    def flush_scripts(self) -> None:
        self._scripts.clear()

    async def evalsha(self, sha: str, numkeys: int, *keys_and_args: Any) -> int:
        if sha not in self._scripts:
            raise redis_exc.NoScriptError(
                "NOSCRIPT No matching script. Please use EVAL."
            )
        key = _normalize_key(keys_and_args[0])
        limit = int(keys_and_args[numkeys])
        window_ms = int(keys_and_args[numkeys + 1])

        current = int(await self.get(key) or 0)
        if current == 0:
            await self.set(key, 1, px=window_ms)
            return 0
        if current + 1 > limit:
            return await self.pttl(key)
        self._store[key] = str(current + 1)
        return 0

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True
