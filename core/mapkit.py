# core/mapkit.py
from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import folium

from config.settings import FOCUS_ZOOM, MAP_TILES, MAP_VIEW, map_center
from core.data import DutyView
from services.time_utils import format_local
from utils.constants import (
    DEFAULT_COLOR,
    PREVIEW_COLORS,
    STATUS_COLORS,
    STATUS_DEFAULT_COLOR,
    TYPE_COLORS,
    TYPE_ICONS,
)
from utils.geo import LatLng, latlng_from_click, polygon_bounds


ClickHandler = Callable[[float, float], None]


@dataclass(frozen=True)
class Shape:
    kind: str                      # "marker" | "circle" | "polygon"
    points: Tuple[LatLng, ...]
    radius_m: float = 0.0
    popup: str = ""
    tooltip: str = ""
    icon: str = ""


class MapSurface(Protocol):
    def add_shape(self, shape: Shape, style: Optional[Dict[str, Any]] = None) -> int: ...
    def remove_shape(self, handle: int) -> None: ...
    def on_click(self, handler: ClickHandler) -> None: ...
    def fit_to_bounds(self, points: Sequence[LatLng]) -> None: ...
    def focus(self, point: LatLng, zoom: int = FOCUS_ZOOM) -> None: ...


# -------------------------
# Folium surface
# -------------------------
class FoliumMapSurface:
    """Keeps shapes by handle and builds a fresh folium.Map on render()."""

    def __init__(self, center: Optional[LatLng] = None, zoom: Optional[int] = None, tiles: str = MAP_TILES):
        self.center: LatLng = tuple(center) if center else map_center()
        self.zoom: int = int(zoom or MAP_VIEW["zoom"])
        self.tiles = tiles
        self._shapes: Dict[int, Tuple[Shape, Dict[str, Any]]] = {}
        self._handlers: List[ClickHandler] = []
        self._bounds: Optional[List[List[float]]] = None
        self._next = 0

    def add_shape(self, shape: Shape, style: Optional[Dict[str, Any]] = None) -> int:
        if shape.kind not in ("marker", "circle", "polygon"):
            raise ValueError(f"Unsupported shape kind: {shape.kind!r}")
        handle = self._next
        self._next += 1
        self._shapes[handle] = (shape, dict(style or {}))
        return handle

    def remove_shape(self, handle: int) -> None:
        self._shapes.pop(handle, None)

    def clear(self) -> None:
        self._shapes.clear()

    @property
    def shapes(self) -> List[Shape]:
        return [s for s, _ in self._shapes.values()]

    def on_click(self, handler: ClickHandler) -> None:
        self._handlers.append(handler)

    def emit_click(self, lat: float, lng: float) -> None:
        for fn in list(self._handlers):
            fn(lat, lng)

    def emit_click_from(self, ret: Any) -> Optional[LatLng]:
        """Forward the click carried by an st_folium return value, if any."""
        latlng = latlng_from_click(ret)
        if latlng is not None:
            self.emit_click(*latlng)
        return latlng

    def fit_to_bounds(self, points: Sequence[LatLng]) -> None:
        self._bounds = polygon_bounds(points) if len(points) else None

    def focus(self, point: LatLng, zoom: int = FOCUS_ZOOM) -> None:
        self.center = (float(point[0]), float(point[1]))
        self.zoom = int(zoom)
        self._bounds = None

    def render(self) -> folium.Map:
        m = folium.Map(location=list(self.center), zoom_start=self.zoom, tiles=self.tiles, control_scale=True)
        for shape, style in self._shapes.values():
            _to_folium(shape, style).add_to(m)
        if self._bounds:
            m.fit_bounds(self._bounds)
        return m


def _to_folium(shape: Shape, style: Dict[str, Any]):
    popup = folium.Popup(shape.popup, max_width=300) if shape.popup else None
    tooltip = shape.tooltip or None
    if shape.kind == "marker":
        icon = folium.DivIcon(html=f'<div class="duty-marker">{shape.icon}</div>') if shape.icon else None
        return folium.Marker(location=list(shape.points[0]), popup=popup, tooltip=tooltip, icon=icon)
    if shape.kind == "circle":
        return folium.Circle(location=list(shape.points[0]), radius=shape.radius_m, popup=popup, tooltip=tooltip, **style)
    return folium.Polygon(locations=[list(p) for p in shape.points], popup=popup, tooltip=tooltip, **style)


# -------------------------
# Duty shapes
# -------------------------
def duty_popup_html(v: DutyView) -> str:
    status = v.duty.status or "Unknown"
    color = STATUS_COLORS.get(v.duty.status, STATUS_DEFAULT_COLOR)
    assigned = format_local(v.duty.assigned_at, fmt="%d/%m/%Y, %H:%M:%S")
    esc = html.escape
    return (
        '<div style="min-width: 200px;">'
        f"<b>{esc(v.officer.name)}</b><br/>"
        f"<small>{esc(v.officer.designation)} • {esc(v.officer.staff_id)}</small><br/>"
        '<hr style="margin: 8px 0;">'
        f"<b>Type:</b> {esc((v.duty.duty_type or 'Unknown').upper())}<br/>"
        f'<b>Status:</b> <span style="color: {color}; font-weight: bold;">{esc(status)}</span><br/>'
        f"<small><b>Assigned:</b> {esc(assigned)}</small>"
        "</div>"
    )


def draw_duties(surface: MapSurface, views: Sequence[DutyView], fit: bool = False) -> List[int]:
    """Marker at the centroid plus a circle of effective radius, per duty."""
    handles = []
    for v in views:
        color = TYPE_COLORS.get(v.duty.duty_type, DEFAULT_COLOR)
        handles.append(surface.add_shape(Shape(
            kind="marker",
            points=(v.center,),
            popup=duty_popup_html(v),
            tooltip=v.officer.name,
            icon=TYPE_ICONS.get(v.duty.duty_type, "📍"),
        )))
        handles.append(surface.add_shape(
            Shape(kind="circle", points=(v.center,), radius_m=v.radius_m),
            {"color": color, "fill": True, "fill_color": color, "fill_opacity": 0.1, "weight": 1},
        ))
    if fit and views:
        surface.fit_to_bounds([v.center for v in views])
    return handles


def draw_assignment_preview(surface: MapSurface, center: LatLng, radius_m: float, duty_type: str) -> int:
    color = PREVIEW_COLORS.get(duty_type, DEFAULT_COLOR)
    return surface.add_shape(
        Shape(kind="circle", points=(tuple(center),), radius_m=radius_m, tooltip="New duty area"),
        {"color": color, "fill": True, "fill_color": color, "fill_opacity": 0.3, "weight": 3},
    )
