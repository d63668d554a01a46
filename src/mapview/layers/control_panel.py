"""Layer control panel — one toggle row per registry entry.

The panel owns no state: rows are rendered from the registry and the
engine's visibility map, and a click is forwarded to ``engine.toggle``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mapview.layers.config import LayerRegistry

if TYPE_CHECKING:
    from mapview.layers.presentation import MapPresentationEngine

_OFF_SWATCH = "#d1d5db"


@dataclass(frozen=True)
class ControlRow:
    key: str
    label: str
    color: str
    visible: bool

    @property
    def indicator(self) -> str:
        return "ON" if self.visible else "OFF"

    @property
    def swatch(self) -> str:
        return self.color if self.visible else _OFF_SWATCH

    @property
    def title(self) -> str:
        if self.visible:
            return f"Sembunyikan layer {self.label}"
        return f"Tampilkan layer {self.label}"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "swatch": self.swatch,
            "visible": self.visible,
            "indicator": self.indicator,
            "title": self.title,
        }


def render_rows(registry: LayerRegistry, visibility: dict[str, bool]) -> list[ControlRow]:
    """Build the panel rows, in registry order."""
    return [
        ControlRow(
            key=config.key,
            label=config.label,
            color=config.color,
            visible=bool(visibility.get(config.key, config.default_visible)),
        )
        for config in registry
    ]


class ControlPanel:
    """Binds the rendered rows to an engine."""

    def __init__(self, engine: MapPresentationEngine) -> None:
        self._engine = engine

    @property
    def rows(self) -> list[ControlRow]:
        return render_rows(self._engine.registry, self._engine.visibility)

    def click(self, key: str) -> list[ControlRow]:
        """Toggle ``key`` on the engine and return the re-rendered rows."""
        self._engine.toggle(key)
        return self.rows
