from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import os

from api import HubApi, RequestError
from domain import DecodeError

logger = logging.getLogger(__name__)


class StoreConfigError(Exception):
    pass


@dataclass(frozen=True)
class StoreConfig:
    url: str
    key: str


def _normalize_url(url: str | None) -> str:
    return (url or "").strip().rstrip("/")


def load_store_config_from_env() -> StoreConfig | None:
    url = _normalize_url(os.getenv("SUPABASE_URL"))
    key = os.getenv("SUPABASE_ANON_KEY", "").strip()
    if url and key:
        return StoreConfig(url=url, key=key)
    return None


class StoreConfigResolver:
    """Resolves the store url/key once; failures are not cached."""

    def __init__(self, api: HubApi | None = None) -> None:
        self._api = api
        self._cached: StoreConfig | None = None
        self._pending: asyncio.Future[StoreConfig] | None = None

    @property
    def cached(self) -> StoreConfig | None:
        return self._cached

    async def resolve(self) -> StoreConfig:
        if self._cached is not None:
            return self._cached
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        pending = self._pending
        try:
            config = await asyncio.shield(pending)
        finally:
            if self._pending is pending and pending.done():
                self._pending = None
        self._cached = config
        return config

    async def _load(self) -> StoreConfig:
        from_env = load_store_config_from_env()
        if from_env is not None:
            return from_env
        if self._api is not None:
            try:
                remote = await self._api.store_config()
            except (RequestError, DecodeError) as exc:
                logger.error("store.config.remote_failed error=%s", exc)
            else:
                url = _normalize_url(remote.url)
                if url and remote.anon_key:
                    return StoreConfig(url=url, key=remote.anon_key)
        raise StoreConfigError("Missing backing-store client configuration")
