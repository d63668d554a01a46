"""Raster disaster-event map built with folium.

Events come from an operator-editable JSON file (``data/data-bencana.json``).
Each event is drawn as a radius circle for the affected area plus a
coloured centre marker whose popup lists location, status and impact.
"""

from __future__ import annotations

import html
from pathlib import Path

import folium
from pydantic import BaseModel, Field, TypeAdapter

CARTO_VOYAGER_URL = "https://{s}.basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}{r}.png"
CARTO_ATTRIBUTION = '&copy; <a href="https://carto.com/">CARTO</a>'

# Marker fill per category; unknown categories fall back to grey
_MARKER_COLORS = {
    "Gempa Bumi": "#ef4444",
    "Banjir": "#3b82f6",
    "Karhutla": "#f97316",
    "Tanah Longsor": "#ca8a04",
}
_MARKER_DEFAULT = "#6b7280"

# Radius circle per category; anything else is drawn as a landslide
_RADIUS_COLORS = {
    "Gempa Bumi": "#ef4444",
    "Banjir": "#3b82f6",
    "Karhutla": "#f97316",
}
_RADIUS_DEFAULT = "#ca8a04"

_STATUS_COLORS = {
    "Tanggap Darurat": "#ef4444",
    "Waspada": "#eab308",
}
_STATUS_DEFAULT = "#22c55e"


class Impact(BaseModel):
    """Casualty and damage counts for one event."""
    korban_jiwa: int = 0
    luka_luka: int = 0
    kerusakan_bangunan: int = 0


class DisasterEvent(BaseModel):
    """One entry of the events file."""
    id: int
    jenis_bencana: str
    lokasi: str
    koordinat: tuple[float, float]  # (lat, lng)
    radius_meter: float = Field(ge=0)
    tanggal: str
    status: str
    dampak: Impact = Field(default_factory=Impact)
    deskripsi: str = ""


class EventSummary(BaseModel):
    """Sidebar figures."""
    titik_bencana: int
    total_korban: int


_EVENTS_ADAPTER = TypeAdapter(list[DisasterEvent])


def load_events(path: str | Path) -> list[DisasterEvent]:
    """Read and validate the events file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file is not a valid event list.
    """
    return _EVENTS_ADAPTER.validate_json(Path(path).read_bytes())


def marker_color(jenis: str) -> str:
    return _MARKER_COLORS.get(jenis, _MARKER_DEFAULT)


def radius_color(jenis: str) -> str:
    return _RADIUS_COLORS.get(jenis, _RADIUS_DEFAULT)


def status_color(status: str) -> str:
    return _STATUS_COLORS.get(status, _STATUS_DEFAULT)


def summarize(events: list[DisasterEvent]) -> EventSummary:
    """Count events and people killed or injured."""
    return EventSummary(
        titik_bencana=len(events),
        total_korban=sum(e.dampak.korban_jiwa + e.dampak.luka_luka for e in events),
    )


def event_popup_html(event: DisasterEvent) -> str:
    esc = html.escape
    radius_km = event.radius_meter / 1000
    return (
        '<div style="min-width: 220px;">'
        f'<h3 style="font-weight: bold; border-bottom: 1px solid #ddd; margin: 0 0 8px;">{esc(event.jenis_bencana)}</h3>'
        f"<p><strong>Lokasi:</strong> {esc(event.lokasi)}</p>"
        f"<p><strong>Radius Terdampak:</strong> {radius_km:g} km</p>"
        f"<p><strong>Status:</strong> "
        f'<span style="background: {status_color(event.status)}; color: white; '
        f'padding: 1px 6px; border-radius: 4px; font-size: 11px;">{esc(event.status)}</span></p>'
        '<div style="background: #f3f4f6; padding: 6px; border-radius: 4px; font-size: 12px;">'
        f"<p>Korban Jiwa: <strong>{event.dampak.korban_jiwa}</strong></p>"
        f"<p>Luka-luka: <strong>{event.dampak.luka_luka}</strong></p>"
        f"<p>Bangunan Rusak: <strong>{event.dampak.kerusakan_bangunan}</strong></p>"
        "</div>"
        f'<p style="font-size: 11px; color: #4b5563; font-style: italic;">{esc(event.deskripsi)}</p>'
        "</div>"
    )


def _marker_icon(event: DisasterEvent) -> folium.DivIcon:
    return folium.DivIcon(
        html=(
            '<div style="width: 20px; height: 20px; border-radius: 50%; '
            "border: 2px solid white; box-shadow: 0 1px 4px rgba(0,0,0,0.4); "
            f'background: {marker_color(event.jenis_bencana)};"></div>'
        ),
        icon_size=(20, 20),
        icon_anchor=(10, 10),
        popup_anchor=(0, -10),
        class_name="custom-div-icon",
    )


def build_event_map(
    events: list[DisasterEvent],
    center: tuple[float, float] = (0.9, 100.0),
    zoom: int = 6,
) -> folium.Map:
    """Build the folium map with one circle and one marker per event."""
    m = folium.Map(
        location=list(center),
        zoom_start=zoom,
        tiles=CARTO_VOYAGER_URL,
        attr=CARTO_ATTRIBUTION,
    )

    for event in events:
        color = radius_color(event.jenis_bencana)
        folium.Circle(
            location=list(event.koordinat),
            radius=event.radius_meter,
            color=color,
            fill=True,
            fill_color=color,
            fill_opacity=0.2,
            weight=2,
        ).add_to(m)

        folium.Marker(
            location=list(event.koordinat),
            icon=_marker_icon(event),
            popup=folium.Popup(event_popup_html(event), max_width=320),
            tooltip=html.escape(event.lokasi),
        ).add_to(m)

    return m


def sidebar_html(summary: EventSummary) -> str:
    return f"""
    <aside style="position: fixed; top: 0; left: 0; bottom: 0; width: 320px; z-index: 1000;
                  background: white; box-shadow: 0 0 24px rgba(0,0,0,0.2); font-family: sans-serif;">
      <div style="padding: 20px; background: #1d4ed8; color: white;">
        <h1 style="margin: 0; font-size: 22px;">GeoDisaster</h1>
        <p style="margin: 4px 0 0; font-size: 13px; color: #dbeafe;">Sistem Informasi Kebencanaan Sumatra</p>
      </div>
      <div style="padding: 20px;">
        <h2 style="font-size: 16px; border-bottom: 1px solid #e5e7eb; padding-bottom: 6px;">Ringkasan Situasi</h2>
        <div style="display: flex; gap: 12px;">
          <div style="flex: 1; background: #fef2f2; padding: 12px; border-radius: 8px;">
            <p style="margin: 0; font-size: 28px; font-weight: bold; color: #dc2626;">{summary.titik_bencana}</p>
            <p style="margin: 4px 0 0; font-size: 11px; color: #991b1b; text-transform: uppercase;">Titik Bencana</p>
          </div>
          <div style="flex: 1; background: #fff7ed; padding: 12px; border-radius: 8px;">
            <p style="margin: 0; font-size: 28px; font-weight: bold; color: #ea580c;">{summary.total_korban}</p>
            <p style="margin: 4px 0 0; font-size: 11px; color: #9a3412; text-transform: uppercase;">Total Luka/Korban</p>
          </div>
        </div>
        <div style="margin-top: 20px; background: #eff6ff; padding: 12px; border-radius: 8px; font-size: 12px; color: #1d4ed8;">
          <strong>Petunjuk Update Data:</strong>
          Tambahkan kejadian baru ke file <code>data/data-bencana.json</code>;
          peta memuat ulang titik lokasi saat halaman dibuka.
        </div>
      </div>
    </aside>
    """


def render_event_page(
    events: list[DisasterEvent],
    center: tuple[float, float] = (0.9, 100.0),
    zoom: int = 6,
) -> str:
    """Full HTML page: folium map plus the summary sidebar."""
    m = build_event_map(events, center=center, zoom=zoom)
    root = m.get_root()
    root.html.add_child(folium.Element(sidebar_html(summarize(events))))
    return root.render()
