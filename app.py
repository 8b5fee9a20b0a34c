# app.py (duty console dashboard)

from __future__ import annotations

import streamlit as st

# ── Project components
from components.config import APP_NAME, APP_ROLE, get_stores
from core.data import active_duties_frame, dashboard_stats, derive_views
from duty import compliance
from services.time_utils import format_local, now_utc
from ui.state import load_console_data
from utils.deck import build_duty_deck

# ── Page setup
st.set_page_config(page_title=APP_NAME, layout="wide")

st.title(APP_NAME)
st.caption(f"Role: {APP_ROLE}")

stores = get_stores()
now = now_utc()
data = load_console_data(stores, now)
views = derive_views(data.duties, data.roster, now)

# ── KPIs
stats = dashboard_stats(data.duties, data.roster, data.vehicles, now)
c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Officers", stats["officers"])
c2.metric("On duty", stats["on_duty"])
c3.metric("Active duties", stats["active_duties"])
c4.metric("Completed", stats["completed_duties"])
c5.metric("Vehicles available", stats["vehicles_available"])

# ── Overview map + active list
left, right = st.columns([3, 2])
with left:
    show_areas = st.toggle("Show stored areas", value=False)
    st.pydeck_chart(build_duty_deck(views, show_areas=show_areas), use_container_width=True)
with right:
    st.subheader("Active duties")
    if views:
        st.dataframe(
            active_duties_frame(views).drop(columns=["id", "lat", "lng"]),
            use_container_width=True, hide_index=True,
        )
    else:
        st.info("No active duties right now.")

# ── Recent activity
st.subheader("Recent activity")
recent = compliance.recent(data.logs)
if recent:
    st.dataframe(compliance.logs_frame(recent, data.roster), use_container_width=True, hide_index=True)
else:
    st.caption("No activity logged yet.")

st.caption(f"Last refreshed {format_local(now, fmt='%d %b %Y %H:%M:%S')}")

links = st.columns([1, 1, 2])
with links[0]:
    st.page_link("pages/1_📝_Assign_Duty.py", label="Assign duty", icon="📝")
with links[1]:
    st.page_link("pages/2_📋_Compliance_Logs.py", label="Compliance logs", icon="📋")
