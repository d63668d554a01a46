"""Tests for StyleSurface, the in-memory MapLibre style surface."""

from __future__ import annotations

import pytest

from mapview.layers import StyleSurface, SurfaceDisposedError
from tests.lib.fakes import feature_collection, point_feature

pytestmark = pytest.mark.unit


@pytest.fixture
def surface():
    s = StyleSurface()
    s.add_source("titik", feature_collection(point_feature(1, 107.0, -7.0)))
    return s


def _circle(layer_id="titik-circle", source="titik"):
    return {"id": layer_id, "type": "circle", "source": source, "paint": {"circle-radius": 4}}


class TestSources:
    def test_geojson_source(self, surface):
        assert surface.to_dict()["sources"]["titik"]["type"] == "geojson"
        assert surface.source_ids == ["titik"]

    def test_duplicate_source(self, surface):
        with pytest.raises(ValueError):
            surface.add_source("titik", feature_collection())


class TestLayers:
    def test_visible_by_default(self, surface):
        surface.add_layer(_circle())
        assert surface.is_visible("titik-circle")
        assert surface.get_layer("titik-circle")["layout"] == {"visibility": "visible"}

    def test_keeps_given_visibility(self, surface):
        layer = _circle()
        layer["layout"] = {"visibility": "none"}
        surface.add_layer(layer)
        assert not surface.is_visible("titik-circle")

    def test_layer_is_copied(self, surface):
        layer = _circle()
        surface.add_layer(layer)
        layer["paint"]["circle-radius"] = 99
        assert surface.get_layer("titik-circle")["paint"]["circle-radius"] == 4

    def test_order_preserved(self, surface):
        surface.add_layer(_circle("a"))
        surface.add_layer(_circle("b"))
        assert surface.layer_ids == ["a", "b"]

    def test_duplicate_layer(self, surface):
        surface.add_layer(_circle())
        with pytest.raises(ValueError):
            surface.add_layer(_circle())

    def test_unknown_source(self, surface):
        with pytest.raises(ValueError):
            surface.add_layer(_circle(source="hilang"))

    def test_set_visibility(self, surface):
        surface.add_layer(_circle())
        surface.set_visibility("titik-circle", False)
        assert surface.get_layer("titik-circle")["layout"]["visibility"] == "none"
        surface.set_visibility("titik-circle", True)
        assert surface.is_visible("titik-circle")

    def test_unknown_layer(self, surface):
        with pytest.raises(KeyError):
            surface.set_visibility("hilang", True)


class TestEvents:
    def test_dispatch_collects_results(self, surface):
        surface.add_layer(_circle())
        surface.on("click", "titik-circle", lambda features: len(features))
        assert surface.dispatch("click", "titik-circle", [1, 2]) == [2]
        assert surface.listeners("click") == ["titik-circle"]
        assert surface.listeners("mouseenter") == []

    def test_dispatch_without_handlers(self, surface):
        surface.add_layer(_circle())
        assert surface.dispatch("click", "titik-circle") == []

    def test_handler_needs_layer(self, surface):
        with pytest.raises(KeyError):
            surface.on("click", "hilang", lambda: None)

    def test_cursor(self, surface):
        surface.set_cursor("pointer")
        assert surface.cursor == "pointer"


class TestRemove:
    def test_remove_clears_everything(self, surface):
        surface.add_layer(_circle())
        surface.on("click", "titik-circle", lambda: None)
        surface.remove()
        assert surface.disposed
        assert surface.to_dict() == {"sources": {}, "layers": []}
        assert surface.listeners("click") == []

    def test_no_changes_after_remove(self, surface):
        surface.remove()
        with pytest.raises(SurfaceDisposedError):
            surface.add_source("baru", feature_collection())
        with pytest.raises(SurfaceDisposedError):
            surface.set_cursor("pointer")
