"""Dashboard endpoints — layer catalog and the rendered MapLibre layer style.

``/api/dashboard/style`` runs the presentation engine in-process: the four
feature types are projected concurrently straight from the geometry
source, and the resulting sources, sub-layers, ownership map and control
rows are returned for the browser page to draw.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import GeometrySource, get_geometry_source
from app.features import FEATURE_TYPES, project_features
from mapview.layers import (
    REGISTRY,
    ControlPanel,
    EngineState,
    FeatureSource,
    LayerConfig,
    MapPresentationEngine,
    StyleSurface,
)
from mapview.layers.presentation import POPUPS

router = APIRouter(prefix="/api", tags=["dashboard"])

POSITRON_STYLE_URL = "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json"


class ProjectorFeatureSource(FeatureSource):
    """Feature source that calls the projector directly (no HTTP hop)."""

    def __init__(self, geometry_source: GeometrySource) -> None:
        self._geometry_source = geometry_source

    async def fetch(self, config: LayerConfig) -> dict:
        feature_type = FEATURE_TYPES[config.key]
        return await project_features(
            feature_type,
            self._geometry_source,
            limit=settings.row_limit(config.key),
        )


@router.get("/layers")
async def list_layers():
    """Registry entries in display order."""
    return [config.to_dict() for config in REGISTRY]


@router.get("/layers/{key}")
async def get_layer(key: str):
    """One registry entry."""
    try:
        return REGISTRY.get(key).to_dict()
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Layer not found: {key}")


@router.get("/dashboard/style")
async def get_dashboard_style(source: GeometrySource = Depends(get_geometry_source)):
    """Build every layer, or report the first failure."""
    surface = StyleSurface()
    engine = MapPresentationEngine(surface, ProjectorFeatureSource(source))
    try:
        state = await engine.load()
        if state is not EngineState.READY:
            return JSONResponse(status_code=500, content={"error": engine.error})

        clickable = surface.listeners("click")
        return {
            "basemap": POSITRON_STYLE_URL,
            "center": [settings.map_center_lng, settings.map_center_lat],
            "zoom": settings.map_zoom,
            **surface.to_dict(),
            "ownership": engine.ownership,
            "visibility": dict(engine.visibility),
            "clickable": clickable,
            "popups": {
                layer_id: {"icon": POPUPS[layer_id].icon, "title": POPUPS[layer_id].fallback_title}
                for layer_id in clickable
            },
            "controls": [row.to_dict() for row in ControlPanel(engine).rows],
        }
    finally:
        engine.dispose()
