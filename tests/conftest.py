"""Shared fixtures: in-memory geometry source and event loop."""

from __future__ import annotations

import asyncio

import pytest

from tests.lib.fakes import SAMPLE_TABLES, FakeGeometrySource


@pytest.fixture
def fake_source() -> FakeGeometrySource:
    """Geometry source preloaded with rows for all four tables."""
    return FakeGeometrySource({name: list(rows) for name, rows in SAMPLE_TABLES.items()})


@pytest.fixture
def loop():
    """A fresh event loop per test for driving coroutines synchronously."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()
    asyncio.set_event_loop(None)
