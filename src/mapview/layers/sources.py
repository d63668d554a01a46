"""Feature sources — where the presentation engine gets its collections.

The dashboard page itself is served a prebuilt style by the API, which
loads through the projector in-process.  HttpFeatureSource is the client
side counterpart: it reads the four feature endpoints of a running server
with httpx, for scripts and tools driving the engine remotely.
``fetch_all`` fans the requests out concurrently and fans in on an
all-or-nothing barrier.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Iterable

import httpx

from mapview.layers.config import LayerConfig
from mapview.layers.geojson import parse_feature_collection


class FeatureFetchError(Exception):
    """A layer's FeatureCollection could not be fetched."""


class FeatureSource(ABC):
    """Produces the FeatureCollection for one registry entry."""

    @abstractmethod
    async def fetch(self, config: LayerConfig) -> dict:
        """Fetch ``config``'s collection or raise FeatureFetchError."""


class HttpFeatureSource(FeatureSource):
    """Fetch collections from ``{base_url}{config.endpoint}``.

    Pass a shared ``httpx.AsyncClient`` to reuse connections (and to inject
    a mock transport in tests); otherwise a client is opened per fetch.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    async def fetch(self, config: LayerConfig) -> dict:
        url = f"{self.base_url}{config.endpoint}"
        try:
            if self._client is not None:
                resp = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(url)
        except httpx.HTTPError as e:
            raise FeatureFetchError(f"Gagal mengambil data dari {config.endpoint}: {e}") from e

        if not resp.is_success:
            raise FeatureFetchError(
                f"Gagal mengambil data dari {config.endpoint}: {resp.reason_phrase}"
            )

        try:
            return parse_feature_collection(resp.content)
        except ValueError as e:
            raise FeatureFetchError(f"Gagal mengambil data dari {config.endpoint}: {e}") from e


async def gather_all_or_nothing(awaitables: Iterable[Awaitable]) -> list:
    """Run awaitables concurrently and wait for every one to settle.

    All of them are scheduled before any is awaited.  Once all have
    finished, the first failure in input order is raised; otherwise the
    results are returned in input order.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def fetch_all(source: FeatureSource, configs: Iterable[LayerConfig]) -> dict[str, dict]:
    """Fetch every layer's collection; all succeed or the first error is raised."""
    configs = list(configs)
    collections = await gather_all_or_nothing(source.fetch(config) for config in configs)
    return {config.key: fc for config, fc in zip(configs, collections)}
