"""Feature projector — spatial table rows to GeoJSON FeatureCollections.

Each feature type names one PostGIS table and a fixed mapping from table
columns to GeoJSON properties.  The projector runs a single retrieval per
call and either returns a complete FeatureCollection or raises
RetrievalError; callers never see a partially built collection.

Geometry is flattened to 2D twice: by ``ST_Force2D`` in the query, and
again on the decoded coordinates so that any source (including test fakes)
yields [lng, lat] pairs only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

if TYPE_CHECKING:
    from app.database import GeometrySource


class RetrievalError(Exception):
    """A feature type could not be retrieved from the geometry source.

    ``message`` is short and safe to show to clients; the underlying
    driver error is chained as ``__cause__`` and only logged.
    """

    def __init__(self, feature_type: FeatureType, message: str | None = None) -> None:
        self.feature_type = feature_type
        self.message = message or feature_type.error_message
        super().__init__(self.message)


@dataclass(frozen=True)
class FeatureType:
    """One projectable spatial table.

    Attributes:
        key: Layer key shared with the map registry ("sungai", ...).
        label: Human-readable name used in log lines.
        table: Table name, quoted verbatim in the query.
        properties: (property name, column) pairs copied onto each feature.
        error_message: Client-facing message when retrieval fails.
        id_column: Integer row identifier column.
        geometry_column: PostGIS geometry column.
    """

    key: str
    label: str
    table: str
    properties: tuple[tuple[str, str], ...]
    error_message: str
    id_column: str = "gid"
    geometry_column: str = "geom"


AREA_TERDAMPAK = FeatureType(
    key="areaTerdampak",
    label="Area Terdampak",
    table="20260131-area-terdampak",
    properties=(("jenis", "objectid"),),
    error_message="Gagal menarik data area terdampak",
)

SUNGAI = FeatureType(
    key="sungai",
    label="Sungai",
    table="sungai_ln_50k",
    properties=(("nama", "namobj"), ("jenis", "remark")),
    error_message="Gagal menarik data sungai",
)

BANGUNAN = FeatureType(
    key="bangunan",
    label="Bangunan",
    table="bangunan_pt_50k",
    properties=(("nama", "namobj"), ("jenis", "remark")),
    error_message="Gagal menarik data spasial",
)

RUMAHSAKIT = FeatureType(
    key="rumahsakit",
    label="Rumah Sakit",
    table="rumahsakit_pt_50k",
    properties=(("nama", "namobj"), ("jenis", "remark")),
    error_message="Gagal menarik data rumah sakit",
)

FEATURE_TYPES: dict[str, FeatureType] = {
    ft.key: ft for ft in (AREA_TERDAMPAK, SUNGAI, BANGUNAN, RUMAHSAKIT)
}


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------

def _quote(identifier: str) -> str:
    """Double-quote a SQL identifier (table names may contain dashes)."""
    return '"' + identifier.replace('"', '""') + '"'


def build_feature_query(feature_type: FeatureType, limit: int | None = None) -> TextClause:
    """Build the SELECT for one feature type.

    Columns come back under their own names plus ``geometry`` holding the
    ST_AsGeoJSON text of the 2D-forced shape.  Rows are ordered by the id
    column so repeated calls (and the row ceiling) are deterministic.
    """
    geom = _quote(feature_type.geometry_column)
    columns = [_quote(feature_type.id_column)]
    columns += [_quote(column) for _, column in feature_type.properties]
    sql = (
        f"SELECT {', '.join(columns)}, "
        f"ST_AsGeoJSON(ST_Force2D({geom})) AS geometry "
        f"FROM {_quote(feature_type.table)} "
        f"WHERE {geom} IS NOT NULL "
        f"ORDER BY {_quote(feature_type.id_column)}"
    )
    if limit is None:
        return text(sql)
    return text(sql + " LIMIT :limit").bindparams(bindparam("limit", value=int(limit)))


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------

def _flatten(coordinates: Any) -> Any:
    if not coordinates:
        return []
    if isinstance(coordinates[0], (int, float)):
        if len(coordinates) < 2:
            raise ValueError(f"Position needs at least two ordinates: {coordinates!r}")
        return [coordinates[0], coordinates[1]]
    return [_flatten(part) for part in coordinates]


def force_2d(geometry: dict) -> dict:
    """Return a copy of a GeoJSON geometry with every position cut to [x, y]."""
    if geometry.get("type") == "GeometryCollection":
        return {
            "type": "GeometryCollection",
            "geometries": [force_2d(g) for g in geometry.get("geometries", [])],
        }
    return {
        "type": geometry["type"],
        "coordinates": _flatten(geometry.get("coordinates", [])),
    }


def decode_geometry(raw: Any) -> dict | None:
    """Decode an ST_AsGeoJSON value (text, bytes or dict) into a 2D geometry.

    Returns None for a null geometry.

    Raises:
        ValueError: If the value is not a GeoJSON geometry object.
    """
    if raw is None:
        return None
    if isinstance(raw, (str, bytes, bytearray)):
        raw = json.loads(raw)
    if not isinstance(raw, dict) or "type" not in raw:
        raise ValueError(f"Not a GeoJSON geometry: {raw!r}")
    return force_2d(raw)


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def row_to_feature(feature_type: FeatureType, row: dict) -> dict | None:
    """Map one result row to a GeoJSON Feature, or None if it has no geometry."""
    geometry = decode_geometry(row.get("geometry"))
    if geometry is None:
        return None

    row_id = row[feature_type.id_column]
    properties = {"id": row_id}
    for name, column in feature_type.properties:
        properties[name] = row[column]

    return {
        "type": "Feature",
        "id": row_id,
        "geometry": geometry,
        "properties": properties,
    }


async def project_features(
    feature_type: FeatureType,
    source: GeometrySource,
    *,
    limit: int | None = None,
) -> dict:
    """Retrieve one feature type and wrap it in a FeatureCollection.

    Args:
        feature_type: Which table / mapping to project.
        source: Data-access handle providing ``fetch_rows``.
        limit: Optional row ceiling.

    Returns:
        ``{"type": "FeatureCollection", "features": [...]}``; the feature
        list is empty when no row has a geometry.

    Raises:
        RetrievalError: On any connectivity, query or schema failure.
    """
    try:
        rows = await source.fetch_rows(feature_type, limit=limit)
    except Exception as e:
        logger.error(f"Database error ({feature_type.label}): {e}")
        raise RetrievalError(feature_type) from e

    features = []
    try:
        for row in rows:
            feature = row_to_feature(feature_type, row)
            if feature is not None:
                features.append(feature)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Schema mismatch ({feature_type.label}): {e!r}")
        raise RetrievalError(feature_type) from e

    return {"type": "FeatureCollection", "features": features}
