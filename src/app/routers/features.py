"""Feature endpoints — one read-only GeoJSON endpoint per feature type.

Each endpoint returns 200 with a FeatureCollection, or 500 with
``{"error": <message>}`` when the geometry source fails.  No query
parameters are accepted; the only bound on size is the configured row
ceiling for the feature type (ROW_LIMITS).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import GeometrySource, get_geometry_source
from app.features import (
    AREA_TERDAMPAK,
    BANGUNAN,
    RUMAHSAKIT,
    SUNGAI,
    FeatureType,
    RetrievalError,
    project_features,
)

router = APIRouter(prefix="/api", tags=["features"])


async def _feature_collection(feature_type: FeatureType, source: GeometrySource):
    try:
        return await project_features(
            feature_type,
            source,
            limit=settings.row_limit(feature_type.key),
        )
    except RetrievalError as e:
        return JSONResponse(status_code=500, content={"error": e.message})


@router.get("/area-terdampak")
async def get_area_terdampak(source: GeometrySource = Depends(get_geometry_source)):
    """Impacted-area polygons."""
    return await _feature_collection(AREA_TERDAMPAK, source)


@router.get("/sungai")
async def get_sungai(source: GeometrySource = Depends(get_geometry_source)):
    """River lines with name and category."""
    return await _feature_collection(SUNGAI, source)


@router.get("/bangunan")
async def get_bangunan(source: GeometrySource = Depends(get_geometry_source)):
    """Building points with name and category (row ceiling applies by default)."""
    return await _feature_collection(BANGUNAN, source)


@router.get("/rumahsakit")
async def get_rumahsakit(source: GeometrySource = Depends(get_geometry_source)):
    """Hospital points with name and category."""
    return await _feature_collection(RUMAHSAKIT, source)
