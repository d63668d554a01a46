"""Map rendering surfaces.

A surface is the thing the presentation engine draws on: it holds named
GeoJSON sources, an ordered stack of typed sub-layers (MapLibre GL style
layer objects), per-layer visibility and event handlers.

StyleSurface keeps everything in memory and serialises it to the
``sources`` / ``layers`` fragment of a MapLibre style document, which the
browser adds on top of its basemap.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Callable

Handler = Callable[..., Any]

VISIBLE = "visible"
HIDDEN = "none"


class SurfaceDisposedError(RuntimeError):
    """The surface was removed; nothing can be added to or changed on it."""


class MapSurface(ABC):
    """Interface the presentation engine renders through."""

    @abstractmethod
    def add_source(self, source_id: str, data: dict) -> None:
        """Register a GeoJSON source."""

    @abstractmethod
    def add_layer(self, layer: dict) -> None:
        """Append a style layer (must carry ``id``, ``type`` and ``source``)."""

    @abstractmethod
    def set_visibility(self, layer_id: str, visible: bool) -> None:
        """Show or hide one sub-layer."""

    @abstractmethod
    def is_visible(self, layer_id: str) -> bool:
        """Current visibility of one sub-layer."""

    @abstractmethod
    def on(self, event: str, layer_id: str, handler: Handler) -> None:
        """Attach a handler for a pointer event on a sub-layer."""

    @abstractmethod
    def set_cursor(self, cursor: str) -> None:
        """Set the CSS cursor of the map canvas ("" restores the default)."""

    @abstractmethod
    def remove(self) -> None:
        """Release every source, layer and handler."""


class StyleSurface(MapSurface):
    """In-memory surface producing MapLibre style layers."""

    def __init__(self) -> None:
        self._sources: dict[str, dict] = {}
        self._layers: list[dict] = []
        self._index: dict[str, dict] = {}
        self._handlers: dict[tuple[str, str], list[Handler]] = {}
        self.cursor = ""
        self.disposed = False

    def _check(self) -> None:
        if self.disposed:
            raise SurfaceDisposedError("map surface has been removed")

    # -- MapSurface ---------------------------------------------------------

    def add_source(self, source_id: str, data: dict) -> None:
        self._check()
        if source_id in self._sources:
            raise ValueError(f"Source already exists: {source_id}")
        self._sources[source_id] = {"type": "geojson", "data": data}

    def add_layer(self, layer: dict) -> None:
        self._check()
        layer_id = layer["id"]
        if layer_id in self._index:
            raise ValueError(f"Layer already exists: {layer_id}")
        if layer.get("source") not in self._sources:
            raise ValueError(f"Layer {layer_id} references unknown source {layer.get('source')!r}")
        layer = copy.deepcopy(layer)
        layer.setdefault("layout", {}).setdefault("visibility", VISIBLE)
        self._layers.append(layer)
        self._index[layer_id] = layer

    def set_visibility(self, layer_id: str, visible: bool) -> None:
        self._check()
        self._layer(layer_id)["layout"]["visibility"] = VISIBLE if visible else HIDDEN

    def is_visible(self, layer_id: str) -> bool:
        return self._layer(layer_id)["layout"]["visibility"] == VISIBLE

    def on(self, event: str, layer_id: str, handler: Handler) -> None:
        self._check()
        self._layer(layer_id)
        self._handlers.setdefault((event, layer_id), []).append(handler)

    def set_cursor(self, cursor: str) -> None:
        self._check()
        self.cursor = cursor

    def remove(self) -> None:
        self._sources.clear()
        self._layers.clear()
        self._index.clear()
        self._handlers.clear()
        self.cursor = ""
        self.disposed = True

    # -- Introspection ------------------------------------------------------

    def _layer(self, layer_id: str) -> dict:
        try:
            return self._index[layer_id]
        except KeyError:
            raise KeyError(f"Layer not found: {layer_id}") from None

    @property
    def source_ids(self) -> list[str]:
        return list(self._sources)

    @property
    def layer_ids(self) -> list[str]:
        return [layer["id"] for layer in self._layers]

    def get_layer(self, layer_id: str) -> dict:
        return copy.deepcopy(self._layer(layer_id))

    def listeners(self, event: str) -> list[str]:
        """Layer ids that have at least one handler for ``event``."""
        return [lid for (ev, lid) in self._handlers if ev == event]

    def dispatch(self, event: str, layer_id: str, *args: Any) -> list[Any]:
        """Fire ``event`` on ``layer_id`` and collect handler return values."""
        self._check()
        return [handler(*args) for handler in self._handlers.get((event, layer_id), [])]

    def to_dict(self) -> dict:
        """The ``sources`` and ``layers`` members of a MapLibre style."""
        return {
            "sources": copy.deepcopy(self._sources),
            "layers": copy.deepcopy(self._layers),
        }
