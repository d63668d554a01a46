"""Disaster event endpoints — the raster (Leaflet) map and its data file."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from pydantic import ValidationError

from app.config import settings
from mapview.events import DisasterEvent, load_events, render_event_page

router = APIRouter(tags=["events"])


def _read_events() -> list[DisasterEvent]:
    path = settings.resolve_path(settings.events_path)
    return load_events(path)


@router.get("/api/bencana")
async def get_events():
    """Validated contents of the events file."""
    try:
        events = _read_events()
    except (OSError, ValidationError) as e:
        logger.error(f"Gagal memuat data bencana: {e}")
        return JSONResponse(status_code=500, content={"error": "Gagal memuat data bencana"})
    return [event.model_dump() for event in events]


@router.get("/leaflet", response_class=HTMLResponse)
async def leaflet_map():
    """Raster map with one marker and radius circle per event."""
    try:
        events = _read_events()
    except (OSError, ValidationError) as e:
        logger.error(f"Gagal memuat data bencana: {e}")
        events = []
    page = render_event_page(
        events,
        center=(settings.events_center_lat, settings.events_center_lng),
        zoom=settings.events_zoom,
    )
    return HTMLResponse(content=page)
