"""Configuration management using Pydantic settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated entries in a shared .env
    )

    # Application
    app_name: str = "GeoDisaster"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # PostGIS connection (DB_HOST, DB_PORT, ...).  Kept as plain strings so
    # a missing or malformed value degrades to retrieval failures instead of
    # refusing to boot.
    db_host: str = "localhost"
    db_port: str = "5432"
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""

    # Row-count ceiling per feature type key; keys not listed are unbounded.
    # Override with ROW_LIMITS='{"bangunan": 500, "sungai": 2000}'
    row_limits: dict[str, int] = {"bangunan": 1000}

    # Disaster events companion file for the raster map
    events_path: Path = Path("data/data-bencana.json")

    # Vector dashboard initial view (lng/lat, Jawa Barat)
    map_center_lng: float = 107.6
    map_center_lat: float = -7.0
    map_zoom: float = 9.0

    # Raster event map initial view (lat/lng, central Sumatra)
    events_center_lat: float = 0.9
    events_center_lng: float = 100.0
    events_zoom: int = 6

    def resolve_path(self, path: Path) -> Path:
        """Resolve a relative path against the project root."""
        return path if path.is_absolute() else PROJECT_ROOT / path

    def row_limit(self, key: str) -> int | None:
        """Row ceiling for a feature type, or None when unbounded."""
        limit = self.row_limits.get(key)
        if limit is None or limit <= 0:
            return None
        return limit


settings = Settings()
