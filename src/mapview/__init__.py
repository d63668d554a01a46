"""GeoDisaster map views: the vector layer dashboard and the raster event map."""
