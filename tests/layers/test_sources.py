"""Tests for feature sources and the concurrent all-or-nothing fetch."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from mapview.layers import REGISTRY, FeatureFetchError, HttpFeatureSource
from mapview.layers.sources import fetch_all, gather_all_or_nothing
from tests.lib.fakes import StaticFeatureSource, feature_collection, point_feature, sample_collections

pytestmark = pytest.mark.unit


def _transport(status_by_path: dict[str, int] | None = None, seen: list | None = None):
    collections = sample_collections()
    endpoints = {c.endpoint: c.key for c in REGISTRY}
    status_by_path = status_by_path or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request.url.path)
        status = status_by_path.get(request.url.path, 200)
        if status != 200:
            return httpx.Response(status, json={"error": "Gagal"})
        return httpx.Response(200, json=collections[endpoints[request.url.path]])

    return httpx.MockTransport(handler)


class TestHttpFeatureSource:
    def test_fetch(self, loop):
        async def run():
            async with httpx.AsyncClient(transport=_transport()) as client:
                source = HttpFeatureSource("http://peta.local/", client=client)
                return await source.fetch(REGISTRY.get("sungai"))

        fc = loop.run_until_complete(run())
        assert fc["features"][0]["properties"]["nama"] == "Sungai Citarum"

    def test_error_status(self, loop):
        async def run():
            async with httpx.AsyncClient(transport=_transport({"/api/bangunan": 500})) as client:
                source = HttpFeatureSource("http://peta.local", client=client)
                await source.fetch(REGISTRY.get("bangunan"))

        with pytest.raises(FeatureFetchError) as excinfo:
            loop.run_until_complete(run())
        assert "/api/bangunan" in str(excinfo.value)
        assert "Internal Server Error" in str(excinfo.value)

    def test_invalid_body(self, loop):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))

        async def run():
            async with httpx.AsyncClient(transport=transport) as client:
                await HttpFeatureSource("http://peta.local", client=client).fetch(REGISTRY.get("sungai"))

        with pytest.raises(FeatureFetchError):
            loop.run_until_complete(run())

    def test_transport_error(self, loop):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
                await HttpFeatureSource("http://peta.local", client=client).fetch(REGISTRY.get("sungai"))

        with pytest.raises(FeatureFetchError) as excinfo:
            loop.run_until_complete(run())
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


class TestFetchAll:
    def test_keyed_by_layer(self, loop):
        source = StaticFeatureSource(sample_collections())
        collections = loop.run_until_complete(fetch_all(source, REGISTRY))
        assert list(collections) == REGISTRY.keys()

    def test_all_requests_made_even_when_one_fails(self, loop):
        seen = []

        async def run():
            async with httpx.AsyncClient(transport=_transport({"/api/sungai": 503}, seen)) as client:
                await fetch_all(HttpFeatureSource("http://peta.local", client=client), REGISTRY)

        with pytest.raises(FeatureFetchError):
            loop.run_until_complete(run())
        assert sorted(seen) == sorted(c.endpoint for c in REGISTRY)

    def test_first_failure_in_order(self, loop):
        collections = sample_collections()
        collections["sungai"] = FeatureFetchError("sungai gagal")
        collections["rumahsakit"] = FeatureFetchError("rumahsakit gagal")
        with pytest.raises(FeatureFetchError, match="sungai gagal"):
            loop.run_until_complete(fetch_all(StaticFeatureSource(collections), REGISTRY))


class TestGatherAllOrNothing:
    def test_all_started_before_any_finishes(self, loop):
        events = []

        async def job(name, delay):
            events.append(f"start:{name}")
            await asyncio.sleep(delay)
            events.append(f"end:{name}")
            return name

        results = loop.run_until_complete(
            gather_all_or_nothing([job("a", 0.02), job("b", 0.01), job("c", 0)])
        )
        assert results == ["a", "b", "c"]
        assert events[:3] == ["start:a", "start:b", "start:c"]

    def test_waits_for_slow_jobs_before_raising(self, loop):
        finished = []

        async def slow():
            await asyncio.sleep(0.02)
            finished.append("slow")
            return 1

        async def fail():
            raise ValueError("gagal")

        with pytest.raises(ValueError):
            loop.run_until_complete(gather_all_or_nothing([fail(), slow()]))
        assert finished == ["slow"]

    def test_empty(self, loop):
        assert loop.run_until_complete(gather_all_or_nothing([])) == []


def test_static_source_round_trip(loop):
    fc = feature_collection(point_feature(5, 1.0, 2.0))
    source = StaticFeatureSource({"bangunan": fc})
    assert loop.run_until_complete(source.fetch(REGISTRY.get("bangunan"))) == fc
