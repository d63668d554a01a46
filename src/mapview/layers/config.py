"""Layer registry — the static list of map layers shown on the dashboard.

One LayerConfig per feature type.  The same entries drive the data fetch
(``endpoint``), the initial sub-layer visibility and the control panel.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator


@dataclass(frozen=True)
class LayerConfig:
    """Static description of one feature type's map layer.

    Attributes:
        key: Stable identifier; names the map source and prefixes its sub-layers.
        label: Text shown in the layer control panel.
        color: Hex colour for the panel swatch.
        default_visible: Visibility when the map first loads.
        endpoint: API path returning the layer's FeatureCollection.
    """

    key: str
    label: str
    color: str
    default_visible: bool
    endpoint: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "defaultVisible": self.default_visible,
            "endpoint": self.endpoint,
        }


class LayerRegistry:
    """Read-only, ordered collection of LayerConfig entries."""

    def __init__(self, configs: tuple[LayerConfig, ...] | list[LayerConfig]) -> None:
        entries = {}
        for config in configs:
            if config.key in entries:
                raise ValueError(f"Duplicate layer key: {config.key}")
            entries[config.key] = config
        self._entries = MappingProxyType(entries)

    def all(self) -> list[LayerConfig]:
        """All entries in display order."""
        return list(self._entries.values())

    def get(self, key: str) -> LayerConfig:
        """Look up one entry.

        Raises:
            KeyError: If no layer has this key.
        """
        try:
            return self._entries[key]
        except KeyError:
            raise KeyError(f"Layer not found: {key}") from None

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[LayerConfig]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


LAYER_CONFIGS: tuple[LayerConfig, ...] = (
    LayerConfig(
        key="areaTerdampak",
        label="Area Terdampak",
        color="#ef4444",
        default_visible=True,
        endpoint="/api/area-terdampak",
    ),
    LayerConfig(
        key="sungai",
        label="Sungai",
        color="#3b82f6",
        default_visible=True,
        endpoint="/api/sungai",
    ),
    LayerConfig(
        key="bangunan",
        label="Bangunan",
        color="#f59e0b",
        default_visible=False,  # Off at first load; the layer is dense
        endpoint="/api/bangunan",
    ),
    LayerConfig(
        key="rumahsakit",
        label="Rumah Sakit",
        color="#10b981",
        default_visible=True,
        endpoint="/api/rumahsakit",
    ),
)

REGISTRY = LayerRegistry(LAYER_CONFIGS)
