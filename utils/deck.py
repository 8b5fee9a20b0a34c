# utils/deck.py
from __future__ import annotations

from typing import Dict, Optional, Sequence

import pandas as pd
import pydeck as pdk

from config.settings import MAP_VIEW
from core.data import DutyView
from utils.constants import DEFAULT_RGBA, TYPE_RGBA


def _frames(views: Sequence[DutyView]) -> tuple[pd.DataFrame, pd.DataFrame]:
    """(circle rows, area rows) for the overview layers."""
    circles = pd.DataFrame([{
        "lat": v.center[0],
        "lon": v.center[1],
        "radius": v.radius_m,
        "color": TYPE_RGBA.get(v.duty.duty_type, DEFAULT_RGBA),
        "officer": v.officer.name,
        "designation": v.officer.designation,
        "type": (v.duty.duty_type or "unknown").upper(),
        "status": v.duty.status or "unknown",
    } for v in views], columns=["lat", "lon", "radius", "color", "officer", "designation", "type", "status"])

    areas = pd.DataFrame([{
        # pydeck wants [lon, lat]
        "polygon": [[lng, lat] for lat, lng in v.duty.area],
        "color": TYPE_RGBA.get(v.duty.duty_type, DEFAULT_RGBA),
    } for v in views], columns=["polygon", "color"])
    return circles, areas


def build_duty_deck(
    views: Sequence[DutyView],
    map_style: Optional[str] = None,
    initial_view: Optional[Dict[str, float]] = None,
    show_areas: bool = False,
) -> pdk.Deck:
    """Overview deck: one translucent circle per active duty (+ stored areas)."""
    circles, areas = _frames(views)
    view = initial_view or MAP_VIEW

    layers = [
        pdk.Layer(
            "ScatterplotLayer",
            circles,
            get_position="[lon, lat]",
            get_radius="radius",
            radius_units="meters",
            get_fill_color="color",
            get_line_color=[40, 40, 40],
            line_width_min_pixels=1,
            stroked=True,
            pickable=True,
        )
    ]
    if show_areas and not areas.empty:
        layers.append(pdk.Layer(
            "PolygonLayer",
            areas,
            get_polygon="polygon",
            get_fill_color="color",
            get_line_color=[80, 80, 80],
            line_width_min_pixels=1,
            pickable=False,
        ))

    tooltip = {
        "html": "<b>{officer}</b><br/>{designation}<br/><b>Type:</b> {type}<br/><b>Status:</b> {status}",
        "style": {"backgroundColor": "rgba(30,30,30,0.8)", "color": "white"},
    }
    return pdk.Deck(
        layers=layers,
        initial_view_state=pdk.ViewState(latitude=view["lat"], longitude=view["lon"], zoom=view["zoom"]),
        map_style=map_style,
        tooltip=tooltip,
    )
