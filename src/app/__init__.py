"""GeoDisaster web service."""
