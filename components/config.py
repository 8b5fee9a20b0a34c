# components/config.py

import logging

import streamlit as st

from config import settings
from services.cache import CACHE
from services.store import Stores, build_stores
from services.sweeper import ExpirySweeper

try:
    _secrets = dict(st.secrets)
except Exception:
    # no secrets.toml
    _secrets = {}

APP_NAME = _secrets.get("APP_NAME", "Naka / Patrol Duty Console")
APP_ROLE = _secrets.get("APP_ROLE", "Control Room")

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def get_stores() -> Stores:
    """Process-wide stores, held in the snapshot cache, with the expiry sweeper running."""
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    stores = build_stores()
    for name, store in stores.items():
        CACHE.acquire(name, store)
    sweeper = ExpirySweeper(stores.duties, lambda: CACHE.snapshot(settings.DUTIES_COLLECTION))
    sweeper.start()
    logger.info("Console stores ready")
    return stores
