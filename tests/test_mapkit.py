from __future__ import annotations

from datetime import timedelta

import folium
import pytest

from core.data import derive_views
from core.mapkit import FoliumMapSurface, Shape, draw_assignment_preview, draw_duties, duty_popup_html
from duty.models import Duty


@pytest.fixture()
def views(now, area, roster):
    duties = [
        Duty(id="n1", officer_ids=("u1",), duty_type="naka", area=tuple(area), status="incomplete",
             end_time=now + timedelta(hours=1), assigned_at=now),
        Duty(id="p1", officer_ids=("ghost",), duty_type="patrol",
             area=tuple((lat + 0.05, lng) for lat, lng in area), status="active"),
    ]
    return derive_views(duties, roster, now)


def test_draw_duties_adds_marker_and_circle_each(views):
    surface = FoliumMapSurface()
    handles = draw_duties(surface, views)
    assert len(handles) == 4
    kinds = [s.kind for s in surface.shapes]
    assert kinds == ["marker", "circle", "marker", "circle"]
    circle = surface.shapes[1]
    assert circle.radius_m == pytest.approx(200, rel=1e-6)
    assert surface.shapes[0].icon == "🛑"
    assert surface.shapes[2].icon == "🚶"


def test_popup_escapes_and_summarises(views):
    html = duty_popup_html(views[0])
    assert "Ravi Naik" in html
    assert "NAKA" in html
    assert "incomplete" in html
    assert "1 Officer" in duty_popup_html(views[1])


def test_remove_and_clear(views):
    surface = FoliumMapSurface()
    handles = draw_duties(surface, views)
    surface.remove_shape(handles[0])
    surface.remove_shape(999)
    assert len(surface.shapes) == 3
    surface.clear()
    assert surface.shapes == []


def test_unknown_shape_kind_rejected():
    with pytest.raises(ValueError):
        FoliumMapSurface().add_shape(Shape(kind="hexagon", points=((0.0, 0.0),)))


def test_click_handlers_receive_st_folium_clicks():
    surface = FoliumMapSurface()
    got = []
    surface.on_click(lambda lat, lng: got.append((lat, lng)))
    assert surface.emit_click_from({"last_clicked": {"lat": 15.5, "lng": 73.8}}) == (15.5, 73.8)
    assert surface.emit_click_from({"last_clicked": None}) is None
    assert got == [(15.5, 73.8)]


def test_focus_and_fit(views):
    surface = FoliumMapSurface()
    draw_duties(surface, views, fit=True)
    assert surface._bounds is not None
    surface.focus((15.49, 73.82))
    assert surface.center == (15.49, 73.82)
    assert surface.zoom == 16
    assert surface._bounds is None


def test_render_builds_folium_map(views):
    surface = FoliumMapSurface()
    draw_duties(surface, views, fit=True)
    draw_assignment_preview(surface, (15.49, 73.82), 300, "naka")
    m = surface.render()
    assert isinstance(m, folium.Map)
    children = list(m._children.values())
    assert sum(isinstance(c, folium.Circle) for c in children) == 3
    assert sum(isinstance(c, folium.Marker) and not isinstance(c, folium.Circle) for c in children) == 2
    assert "New duty area" in m.get_root().render()
