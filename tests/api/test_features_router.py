"""Unit tests for the GeoJSON feature endpoints.

Tests:
  - Each endpoint returns a FeatureCollection built from the geometry source
  - Retrieval failure returns 500 with the per-type message and nothing else
  - Row ceiling applies to bangunan only by default and follows ROW_LIMITS
  - No source installed returns 500
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import settings
from app.database import get_geometry_source
from app.routers.features import router
from tests.lib.fakes import FakeGeometrySource, geojson_text


def _make_app(source=None):
    """Create a minimal FastAPI app with the features router."""
    app = FastAPI()
    app.include_router(router)
    if source is not None:
        app.dependency_overrides[get_geometry_source] = lambda: source
    return app


ENDPOINTS = [
    ("/api/area-terdampak", "Gagal menarik data area terdampak", "20260131-area-terdampak"),
    ("/api/sungai", "Gagal menarik data sungai", "sungai_ln_50k"),
    ("/api/bangunan", "Gagal menarik data spasial", "bangunan_pt_50k"),
    ("/api/rumahsakit", "Gagal menarik data rumah sakit", "rumahsakit_pt_50k"),
]


@pytest.mark.unit
class TestFeatureEndpoints:
    """GET /api/{area-terdampak,sungai,bangunan,rumahsakit}"""

    @pytest.mark.parametrize("path", [e[0] for e in ENDPOINTS])
    def test_returns_feature_collection(self, fake_source, path):
        client = TestClient(_make_app(fake_source))
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/json")
        data = resp.json()
        assert data["type"] == "FeatureCollection"
        assert len(data["features"]) >= 1

    def test_sungai_skips_null_geometry(self, fake_source):
        client = TestClient(_make_app(fake_source))
        data = client.get("/api/sungai").json()
        assert [f["id"] for f in data["features"]] == [10, 11]
        assert data["features"][0]["properties"] == {
            "id": 10, "nama": "Sungai Citarum", "jenis": "Sungai",
        }

    def test_area_terdampak_properties(self, fake_source):
        client = TestClient(_make_app(fake_source))
        feature = client.get("/api/area-terdampak").json()["features"][0]
        assert feature["properties"] == {"id": 1, "jenis": 101}

    def test_rumahsakit_coordinates_are_2d(self, fake_source):
        client = TestClient(_make_app(fake_source))
        feature = client.get("/api/rumahsakit").json()["features"][0]
        assert feature["geometry"]["coordinates"] == [107.52, -7.03]

    def test_empty_table(self):
        client = TestClient(_make_app(FakeGeometrySource()))
        resp = client.get("/api/bangunan")
        assert resp.status_code == 200
        assert resp.json() == {"type": "FeatureCollection", "features": []}

    def test_repeated_requests_identical(self, fake_source):
        client = TestClient(_make_app(fake_source))
        assert client.get("/api/sungai").json() == client.get("/api/sungai").json()

    def test_query_parameters_ignored(self, fake_source):
        client = TestClient(_make_app(fake_source))
        resp = client.get("/api/bangunan?limit=1&bbox=0,0,1,1")
        assert resp.status_code == 200
        assert len(resp.json()["features"]) == 2


@pytest.mark.unit
class TestFeatureEndpointFailures:
    """Retrieval failures map to 500 {"error": message}."""

    @pytest.mark.parametrize("path,message,table", ENDPOINTS)
    def test_failure_message(self, path, message, table):
        source = FakeGeometrySource(
            failures={table: ConnectionRefusedError("password authentication failed for user gis")},
        )
        client = TestClient(_make_app(source))
        resp = client.get(path)
        assert resp.status_code == 500
        assert resp.json() == {"error": message}

    def test_driver_detail_not_leaked(self):
        source = FakeGeometrySource(failures={"sungai_ln_50k": RuntimeError("relation does not exist")})
        client = TestClient(_make_app(source))
        assert "relation" not in client.get("/api/sungai").text

    def test_failure_of_one_type_leaves_others(self, fake_source):
        fake_source.failures["bangunan_pt_50k"] = TimeoutError("timeout")
        client = TestClient(_make_app(fake_source))
        assert client.get("/api/bangunan").status_code == 500
        assert client.get("/api/sungai").status_code == 200

    def test_schema_mismatch(self):
        source = FakeGeometrySource({
            "rumahsakit_pt_50k": [{"gid": 1, "geometry": geojson_text("Point", [1.0, 2.0])}],
        })
        client = TestClient(_make_app(source))
        resp = client.get("/api/rumahsakit")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Gagal menarik data rumah sakit"}

    def test_truncated_position(self):
        source = FakeGeometrySource({
            "sungai_ln_50k": [{"gid": 1, "namobj": "Citarum", "remark": "Sungai",
                               "geometry": geojson_text("Point", [107.5])}],
        })
        client = TestClient(_make_app(source))
        resp = client.get("/api/sungai")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Gagal menarik data sungai"}

    def test_no_source_installed(self):
        client = TestClient(_make_app())
        resp = client.get("/api/sungai")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Gagal menarik data sungai"}


@pytest.mark.unit
class TestRowLimits:
    """ROW_LIMITS ceiling per feature type."""

    def test_default_limits(self, fake_source):
        client = TestClient(_make_app(fake_source))
        for path, _, _ in ENDPOINTS:
            client.get(path)
        assert dict(fake_source.calls) == {
            "areaTerdampak": None,
            "sungai": None,
            "bangunan": 1000,
            "rumahsakit": None,
        }

    def test_bangunan_capped(self, monkeypatch):
        rows = [
            {"gid": i, "namobj": f"B{i}", "remark": "Rumah",
             "geometry": geojson_text("Point", [107.0 + i / 10000, -7.0])}
            for i in range(1005)
        ]
        monkeypatch.setattr(settings, "row_limits", {"bangunan": 1000})
        client = TestClient(_make_app(FakeGeometrySource({"bangunan_pt_50k": rows})))
        assert len(client.get("/api/bangunan").json()["features"]) == 1000

    def test_configured_limit(self, fake_source, monkeypatch):
        monkeypatch.setattr(settings, "row_limits", {"sungai": 1})
        client = TestClient(_make_app(fake_source))
        assert len(client.get("/api/sungai").json()["features"]) == 1
        client.get("/api/bangunan")
        assert fake_source.calls[-1] == ("bangunan", None)

    def test_non_positive_limit_means_unbounded(self, fake_source, monkeypatch):
        monkeypatch.setattr(settings, "row_limits", {"bangunan": 0})
        client = TestClient(_make_app(fake_source))
        client.get("/api/bangunan")
        assert fake_source.calls == [("bangunan", None)]
