"""Map presentation engine — turns fetched collections into map sub-layers.

Lifecycle::

    UNINITIALIZED --load()--> LOADING --all fetches ok--> READY
                                      --any fetch fails--> FAILED
    any state --dispose()--> DISPOSED

Every registry key owns an explicit tuple of sub-layer ids (``{key}-{role}``)
recorded when the layers are built; visibility toggling walks that tuple
instead of matching id prefixes.  Loading is all-or-nothing: when any
fetch fails no source or layer is added to the surface.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable

from loguru import logger

from mapview.layers.config import REGISTRY, LayerConfig, LayerRegistry
from mapview.layers.sources import FeatureSource, fetch_all
from mapview.layers.surface import HIDDEN, VISIBLE, MapSurface, SurfaceDisposedError

# River labels fade in between these zoom levels
LABEL_FADE_START_ZOOM = 9
LABEL_FULL_ZOOM = 10


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class Popup:
    """A popup opened by clicking a point feature."""

    lng_lat: tuple[float, float]
    html: str


@dataclass(frozen=True)
class PopupTemplate:
    icon: str
    fallback_title: str


# ---------------------------------------------------------------------------
# Sub-layer builders, one per layer key
# ---------------------------------------------------------------------------

def _polygon_layers(config: LayerConfig) -> list[dict]:
    return [
        {
            "id": f"{config.key}-fill",
            "type": "fill",
            "source": config.key,
            "paint": {"fill-color": config.color, "fill-opacity": 0.3},
        },
        {
            "id": f"{config.key}-outline",
            "type": "line",
            "source": config.key,
            "paint": {"line-color": "#b91c1c", "line-width": 2},
        },
    ]


def _river_layers(config: LayerConfig) -> list[dict]:
    return [
        {
            "id": f"{config.key}-line",
            "type": "line",
            "source": config.key,
            "paint": {"line-color": config.color, "line-width": 2, "line-opacity": 0.85},
            "layout": {"line-join": "round", "line-cap": "round"},
        },
        {
            "id": f"{config.key}-label",
            "type": "symbol",
            "source": config.key,
            "layout": {
                "text-field": ["coalesce", ["get", "nama"], ""],
                "text-font": ["Open Sans Italic"],
                "text-size": ["interpolate", ["linear"], ["zoom"], 9, 9, 13, 12],
                "symbol-placement": "line",
                "symbol-spacing": 300,
                "text-max-angle": 30,
                "text-offset": [0, -0.8],
                "text-optional": True,
            },
            "paint": {
                "text-color": "#1e40af",
                "text-halo-color": "#eff6ff",
                "text-halo-width": 1.5,
                "text-opacity": [
                    "interpolate", ["linear"], ["zoom"],
                    LABEL_FADE_START_ZOOM, 0,
                    LABEL_FULL_ZOOM, 1,
                ],
            },
        },
    ]


def _building_layers(config: LayerConfig) -> list[dict]:
    return [
        {
            "id": f"{config.key}-circle",
            "type": "circle",
            "source": config.key,
            "paint": {
                "circle-radius": 5,
                "circle-color": config.color,
                "circle-stroke-color": "#92400e",
                "circle-stroke-width": 1,
                "circle-opacity": 0.85,
            },
        },
    ]


def _hospital_layers(config: LayerConfig) -> list[dict]:
    # Halo first so it draws beneath the main circle
    return [
        {
            "id": f"{config.key}-circle-outer",
            "type": "circle",
            "source": config.key,
            "paint": {"circle-radius": 12, "circle-color": config.color, "circle-opacity": 0.25},
        },
        {
            "id": f"{config.key}-circle",
            "type": "circle",
            "source": config.key,
            "paint": {
                "circle-radius": 7,
                "circle-color": config.color,
                "circle-stroke-color": "#065f46",
                "circle-stroke-width": 2,
            },
        },
        {
            "id": f"{config.key}-label",
            "type": "symbol",
            "source": config.key,
            "layout": {
                "text-field": ["get", "nama"],
                "text-font": ["Open Sans Regular"],
                "text-size": 11,
                "text-offset": [0, 1.5],
                "text-anchor": "top",
                "text-optional": True,
            },
            "paint": {"text-color": "#065f46", "text-halo-color": "#ffffff", "text-halo-width": 1.5},
        },
    ]


SUBLAYER_BUILDERS: dict[str, Callable[[LayerConfig], list[dict]]] = {
    "areaTerdampak": _polygon_layers,
    "sungai": _river_layers,
    "bangunan": _building_layers,
    "rumahsakit": _hospital_layers,
}

# Clickable sub-layers and the popup they open
POPUPS: dict[str, PopupTemplate] = {
    "rumahsakit-circle": PopupTemplate("\U0001F3E5", "Rumah Sakit"),
    "bangunan-circle": PopupTemplate("\U0001F3E0", "Bangunan"),
}


def popup_html(template: PopupTemplate, properties: dict) -> str:
    """Popup body showing a feature's name and category."""
    name = properties.get("nama")
    if name is None:
        name = template.fallback_title
    jenis = properties.get("jenis")
    if jenis is None:
        jenis = "-"
    return (
        '<div style="font-family: sans-serif; padding: 4px;">'
        f'<strong style="font-size: 14px;">{template.icon} {html.escape(str(name))}</strong>'
        "<br/>"
        f'<span style="font-size: 12px; color: #555;">Jenis: {html.escape(str(jenis))}</span>'
        "</div>"
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class MapPresentationEngine:
    """Loads every registry layer onto a surface and manages its visibility.

    Args:
        surface: Where sources and sub-layers are rendered.
        source: Where FeatureCollections come from.
        registry: Layers to show; each key needs a sub-layer builder.
    """

    def __init__(
        self,
        surface: MapSurface,
        source: FeatureSource,
        registry: LayerRegistry = REGISTRY,
    ) -> None:
        missing = [key for key in registry.keys() if key not in SUBLAYER_BUILDERS]
        if missing:
            raise ValueError(f"No sub-layer builder for: {', '.join(missing)}")

        self._surface = surface
        self._source = source
        self.registry = registry
        self.state = EngineState.UNINITIALIZED
        self.error: str | None = None
        self.visibility: dict[str, bool] = {c.key: c.default_visible for c in registry}
        self.cursor = ""
        self.popups: list[Popup] = []
        self._owned: dict[str, tuple[str, ...]] = {}

    # -- Loading --------------------------------------------------------------

    async def load(self) -> EngineState:
        """Fetch all layers concurrently and build them, or fail as a whole.

        Returns:
            The resulting state (READY, FAILED, or DISPOSED when the engine
            was torn down while the fetches were in flight).
        """
        if self.state is not EngineState.UNINITIALIZED:
            raise RuntimeError(f"load() called in state {self.state.value}")
        self.state = EngineState.LOADING

        try:
            collections = await fetch_all(self._source, self.registry)
        except Exception as e:
            if self.state is EngineState.DISPOSED:
                logger.debug(f"Discarding fetch failure after dispose: {e}")
                return self.state
            self.error = str(e) or e.__class__.__name__
            self.state = EngineState.FAILED
            logger.error(f"Error memuat layer peta: {self.error}")
            return self.state

        if self.state is EngineState.DISPOSED:
            logger.debug("Discarding fetched layers; map was disposed mid-load")
            return self.state

        for config in self.registry:
            self._build_layer(config, collections[config.key])
        self._attach_interactions()

        self.state = EngineState.READY
        counts = ", ".join(f"{k}={len(fc['features'])}" for k, fc in collections.items())
        logger.info(f"Map layers ready ({counts})")
        return self.state

    def _build_layer(self, config: LayerConfig, collection: dict) -> None:
        self._surface.add_source(config.key, collection)
        visibility = VISIBLE if self.visibility[config.key] else HIDDEN
        owned = []
        for layer in SUBLAYER_BUILDERS[config.key](config):
            layer.setdefault("layout", {})["visibility"] = visibility
            self._surface.add_layer(layer)
            owned.append(layer["id"])
        self._owned[config.key] = tuple(owned)

    def _attach_interactions(self) -> None:
        owned = {layer_id for ids in self._owned.values() for layer_id in ids}
        for layer_id, template in POPUPS.items():
            if layer_id not in owned:
                continue
            self._surface.on("click", layer_id, partial(self._on_click, template))
            self._surface.on("mouseenter", layer_id, self._on_mouseenter)
            self._surface.on("mouseleave", layer_id, self._on_mouseleave)

    # -- Interactions ---------------------------------------------------------

    def _on_click(self, template: PopupTemplate, features: list[dict] | None) -> Popup | None:
        if not features:
            return None
        feature = features[0]
        lng, lat = feature["geometry"]["coordinates"][:2]
        popup = Popup(lng_lat=(lng, lat), html=popup_html(template, feature.get("properties") or {}))
        self.popups.append(popup)
        return popup

    def _on_mouseenter(self, *_args) -> None:
        self.cursor = "pointer"
        self._surface.set_cursor(self.cursor)

    def _on_mouseleave(self, *_args) -> None:
        self.cursor = ""
        self._surface.set_cursor(self.cursor)

    # -- Visibility -----------------------------------------------------------

    def owned_layers(self, key: str) -> tuple[str, ...]:
        """Sub-layer ids belonging to ``key`` (empty until READY)."""
        self.registry.get(key)
        return self._owned.get(key, ())

    @property
    def ownership(self) -> dict[str, list[str]]:
        return {key: list(ids) for key, ids in self._owned.items()}

    def set_visible(self, key: str, visible: bool) -> None:
        """Show or hide every sub-layer owned by ``key``."""
        if self.state is EngineState.DISPOSED:
            raise SurfaceDisposedError("map engine has been disposed")
        self.registry.get(key)
        self.visibility[key] = visible
        for layer_id in self._owned.get(key, ()):
            self._surface.set_visibility(layer_id, visible)

    def toggle(self, key: str) -> bool:
        """Flip ``key``'s visibility and return the new value.

        Raises:
            KeyError: If ``key`` is not in the registry.
        """
        self.registry.get(key)
        visible = not self.visibility[key]
        self.set_visible(key, visible)
        return visible

    # -- Teardown -------------------------------------------------------------

    def dispose(self) -> None:
        """Release the surface; late fetch results are discarded."""
        if self.state is EngineState.DISPOSED:
            return
        self._surface.remove()
        self._owned.clear()
        self.popups.clear()
        self.cursor = ""
        self.state = EngineState.DISPOSED
