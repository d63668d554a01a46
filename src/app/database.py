"""Geometry source — the PostGIS data-access handle.

The handle is constructed explicitly (in the app lifespan), stored on
``app.state`` and closed at shutdown.  Routers receive it through the
``get_geometry_source`` dependency so tests can substitute a fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fastapi import Request
from loguru import logger
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.config import Settings
from app.features import FeatureType, build_feature_query


class GeometrySourceError(Exception):
    """The geometry source is not configured or has been closed."""


class GeometrySource(ABC):
    """Anything that can return the raw rows of a feature type's table.

    Each row is a dict holding the id column, the mapped attribute columns
    and ``geometry`` (GeoJSON text or dict, or None).
    """

    @abstractmethod
    async def fetch_rows(self, feature_type: FeatureType, *, limit: int | None = None) -> list[dict]:
        """Run one retrieval for ``feature_type``."""

    async def close(self) -> None:
        """Release any pooled resources."""


def build_database_url(settings: Settings) -> URL:
    """Build the asyncpg URL from the DB_* settings.

    Raises:
        ValueError: If the port is not an integer or the database name is empty.
    """
    if not settings.db_name:
        raise ValueError("DB_NAME is not set")
    return URL.create(
        "postgresql+asyncpg",
        username=settings.db_user or None,
        password=settings.db_password or None,
        host=settings.db_host or None,
        port=int(settings.db_port) if settings.db_port else None,
        database=settings.db_name,
    )


class PostgisSource(GeometrySource):
    """PostGIS-backed geometry source on a SQLAlchemy async engine.

    Creating the engine never opens a connection, so a database that is
    down only shows up on the first fetch.  Invalid configuration is held
    as ``config_error`` and reported on every fetch instead of at startup.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self.config_error: str | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        """Create the connection pool."""
        try:
            url = build_database_url(self._settings)
        except ValueError as e:
            self.config_error = str(e)
            logger.warning(f"Database not configured: {e}; feature endpoints will return 500")
            return

        self._engine = create_async_engine(
            url,
            echo=self._settings.debug,
            pool_pre_ping=True,
        )
        self.config_error = None
        logger.info(f"PostGIS pool created ({self._settings.db_host}:{self._settings.db_port}/{self._settings.db_name})")

    async def fetch_rows(self, feature_type: FeatureType, *, limit: int | None = None) -> list[dict]:
        if self._engine is None:
            raise GeometrySourceError(self.config_error or "geometry source is closed")

        statement = build_feature_query(feature_type, limit)
        async with self._engine.connect() as conn:
            result = await conn.execute(statement)
            return [dict(row._mapping) for row in result]

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("PostGIS pool closed")


class UnavailableSource(GeometrySource):
    """Stand-in used before startup has installed a real source."""

    async def fetch_rows(self, feature_type: FeatureType, *, limit: int | None = None) -> list[dict]:
        raise GeometrySourceError("geometry source not initialised")


def get_geometry_source(request: Request) -> GeometrySource:
    """FastAPI dependency returning the app's geometry source."""
    source = getattr(request.app.state, "geometry_source", None)
    if source is None:
        return UnavailableSource()
    return source
