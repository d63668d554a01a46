"""Validate fetched GeoJSON (RFC 7946) FeatureCollections.

Handles FeatureCollection input only; features must carry a geometry
object and a properties dict (null properties become ``{}``).
"""

from __future__ import annotations

import json

GEOMETRY_TYPES = (
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
)


def parse_feature_collection(data: str | bytes | dict) -> dict:
    """Check that ``data`` is a FeatureCollection and return it as a dict.

    Args:
        data: Raw JSON text or an already decoded object.

    Returns:
        The FeatureCollection with every feature's properties normalised.

    Raises:
        ValueError: If the document is not valid JSON or not a FeatureCollection.
    """
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise ValueError("Expected a GeoJSON FeatureCollection")

    raw_features = data.get("features")
    if not isinstance(raw_features, list):
        raise ValueError("FeatureCollection has no features array")

    features = [_check_feature(raw, idx) for idx, raw in enumerate(raw_features)]
    return {"type": "FeatureCollection", "features": features}


def _check_feature(raw: object, idx: int) -> dict:
    if not isinstance(raw, dict) or raw.get("type") != "Feature":
        raise ValueError(f"Feature {idx} is not a GeoJSON Feature")

    geometry = raw.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") not in GEOMETRY_TYPES:
        raise ValueError(f"Feature {idx} has no valid geometry")

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        raise ValueError(f"Feature {idx} properties must be an object")

    feature = dict(raw)
    feature["properties"] = properties
    return feature
