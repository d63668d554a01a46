"""Dashboard map layers — registry, presentation engine and control panel.

The engine renders onto any MapSurface; StyleSurface produces the
MapLibre GL ``sources``/``layers`` the browser page draws.
"""

from mapview.layers.config import LAYER_CONFIGS, REGISTRY, LayerConfig, LayerRegistry
from mapview.layers.control_panel import ControlPanel, ControlRow
from mapview.layers.presentation import EngineState, MapPresentationEngine, Popup
from mapview.layers.sources import FeatureFetchError, FeatureSource, HttpFeatureSource
from mapview.layers.surface import MapSurface, StyleSurface, SurfaceDisposedError

__all__ = [
    "LAYER_CONFIGS",
    "REGISTRY",
    "ControlPanel",
    "ControlRow",
    "EngineState",
    "FeatureFetchError",
    "FeatureSource",
    "HttpFeatureSource",
    "LayerConfig",
    "LayerRegistry",
    "MapPresentationEngine",
    "MapSurface",
    "Popup",
    "StyleSurface",
    "SurfaceDisposedError",
]
