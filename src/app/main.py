"""GeoDisaster - Dashboard Informasi Kebencanaan.

Main FastAPI application.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app.config import settings
from app.database import PostgisSource
from app.routers import dashboard_router, events_router, features_router

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the geometry source at startup and close it at shutdown."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} starting")
    logger.info("=" * 60)

    geometry_source = PostgisSource(settings)
    geometry_source.open()
    app.state.geometry_source = geometry_source

    yield

    await geometry_source.close()
    app.state.geometry_source = None
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title="GeoDisaster",
    description="Dashboard Informasi Kebencanaan",
    version=VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(features_router)
app.include_router(dashboard_router)
app.include_router(events_router)

# Static files
frontend_path = Path(__file__).parent.parent.parent / "frontend"
if frontend_path.exists():
    app.mount("/static", StaticFiles(directory=frontend_path), name="static")


@app.middleware("http")
async def no_cache_static(request: Request, call_next):
    """Disable caching for static CSS/JS during development."""
    response = await call_next(request)
    if request.url.path.startswith("/static/"):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


@app.get("/", response_class=HTMLResponse)
async def root():
    """Serve the vector layer dashboard (primary interface)."""
    return await maplibre_dashboard()


@app.get("/maplibre", response_class=HTMLResponse)
async def maplibre_dashboard():
    """Serve the MapLibre layer dashboard page."""
    page_path = frontend_path / "maplibre.html"
    if page_path.exists():
        return FileResponse(page_path)
    return HTMLResponse(
        content="""
        <html>
            <head><title>GeoDisaster</title></head>
            <body style="font-family: sans-serif;">
                <h1>GeoDisaster</h1>
                <p>Frontend not found. Please check installation.</p>
            </body>
        </html>
        """
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": VERSION,
        "system": "GeoDisaster",
    }


@app.get("/api/status")
async def status():
    """System status endpoint."""
    source = getattr(app.state, "geometry_source", None)
    return {
        "name": settings.app_name,
        "version": VERSION,
        "database": "configured" if source is not None and source.is_open else "unavailable",
        "database_error": getattr(source, "config_error", None),
        "events_path": str(settings.events_path),
    }


def run():
    """Serve the app with uvicorn on the configured HOST and PORT."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
