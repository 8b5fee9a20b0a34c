# ui/tab_assign.py
from __future__ import annotations

from datetime import date, time, timedelta

import streamlit as st
from streamlit_folium import st_folium

from config import settings
from core.data import derive_views
from core.mapkit import FoliumMapSurface, draw_assignment_preview, draw_duties
from duty.assignment import AssignmentError, AssignmentRequest, change_status, create_duty
from duty.officers import available_officers, available_vehicles, search_officers
from services.store import StoreWriteError
from services.time_utils import label_time_window, local_datetime, now_utc
from ui.state import get_draft, load_console_data, take_new_click
from utils.constants import DUTY_TYPES, STATUSES, TYPE_ICONS


def _officer_label(o) -> str:
    return f"{o.name or o.id} ({o.staff_id or '-'}) · {o.designation or '-'}"


def render_assignment(stores):
    draft = get_draft()
    data = load_console_data(stores, now_utc())
    views = derive_views(data.duties, data.roster, now_utc())

    left, right = st.columns([3, 2])

    # --- Map: existing duties + preview, click to place ---
    with left:
        surface = FoliumMapSurface(center=draft.center)
        if settings.UI_FLAGS.show_existing_duties:
            draw_duties(surface, views, fit=draft.center is None)
        if draft.center is not None:
            draw_assignment_preview(surface, draft.center, draft.radius_m, draft.duty_type)

        def _place(lat: float, lng: float) -> None:
            draft.center = (lat, lng)

        surface.on_click(_place)
        ret = st_folium(surface.render(), width=None, height=560, returned_objects=["last_clicked"], key="assign_map")
        clicked = take_new_click(ret)
        if clicked is not None:
            surface.emit_click(*clicked)
            st.rerun()

        if draft.center is None:
            st.info("Click on the map to place the duty location.")
        else:
            st.caption(f"Location: {draft.center[0]:.5f}, {draft.center[1]:.5f}")

    # --- Form ---
    with right:
        draft.duty_type = st.radio(
            "Duty type", DUTY_TYPES, index=DUTY_TYPES.index(draft.duty_type), horizontal=True,
            format_func=lambda t: f"{TYPE_ICONS.get(t, '')} {t.title()}",
        )
        draft.radius_m = float(st.slider(
            "Radius (m)", int(settings.MIN_RADIUS_M), 2000, int(draft.radius_m), 50,
        ))

        term = st.text_input("Search officers", key="officer_search")
        pool = search_officers(available_officers(data.roster), term)
        by_id = {o.id: o for o in pool}
        draft.officer_ids = st.multiselect(
            "Officers", list(by_id), default=[i for i in draft.officer_ids if i in by_id],
            format_func=lambda i: _officer_label(by_id[i]),
        )

        fleet = {v.id: v for v in available_vehicles(data.vehicles)}
        if settings.UI_FLAGS.show_vehicles and fleet:
            draft.vehicle_ids = st.multiselect(
                "Vehicles", list(fleet), default=[i for i in draft.vehicle_ids if i in fleet],
                format_func=lambda i: f"{fleet[i].number or i} ({fleet[i].kind or '-'})",
            )

        c1, c2, c3 = st.columns(3)
        day = c1.date_input("Date", value=date.today())
        start_at = c2.time_input("Start", value=time(9, 0))
        end_at = c3.time_input("End", value=time(17, 0))
        overnight = st.checkbox("Ends next day", value=end_at <= start_at)
        location_name = st.text_input("Location name")
        comments = st.text_area("Comments", height=80)

        if st.button("Assign duty", type="primary"):
            end_day = day + timedelta(days=1) if overnight else day
            req = AssignmentRequest(
                officer_ids=draft.officer_ids,
                duty_type=draft.duty_type,
                center=draft.center,
                start=local_datetime(day, start_at),
                end=local_datetime(end_day, end_at),
                radius_m=draft.radius_m,
                vehicle_ids=draft.vehicle_ids,
                comments=comments,
                location_name=location_name,
            )
            try:
                duty_id = create_duty(stores.duties, req, data.roster, data.vehicles)
            except AssignmentError as e:
                st.error(str(e))
            except StoreWriteError:
                st.error("Failed to assign duty")
            else:
                st.success(f"Duty assigned ({duty_id[:8]})")
                draft.reset()

    # --- Active duties with status controls ---
    st.subheader(f"Active duties ({len(views)})")
    if not views:
        st.caption("No active duties.")
    for v in views:
        d = v.duty
        with st.expander(f"{TYPE_ICONS.get(d.duty_type, '📍')} {v.officer.name} · {label_time_window(d.start_time, d.end_time)}"):
            st.write(f"**{v.officer.designation}** · {v.officer.staff_id}")
            if d.location_name:
                st.write(d.location_name)
            if d.comments:
                st.caption(d.comments)
            cols = st.columns([2, 1])
            new_status = cols[0].selectbox(
                "Status", STATUSES, index=STATUSES.index(d.status) if d.status in STATUSES else 0,
                key=f"status_{d.id}",
            )
            if cols[1].button("Update", key=f"update_{d.id}"):
                try:
                    change_status(stores.duties, d.id, new_status)
                except (AssignmentError, StoreWriteError):
                    st.error("Failed to update duty status")
                else:
                    st.success("Status updated")
