# config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple


# === Store backend ===
STORE_BACKEND: str = os.getenv("NAKA_STORE_BACKEND", "memory")  # "memory" | "firestore"
FIRESTORE_PROJECT: str = os.getenv("FIRESTORE_PROJECT", "")
FIRESTORE_DATABASE: str = os.getenv("FIRESTORE_DATABASE", "(default)")
FIRESTORE_API_KEY: str = os.getenv("FIRESTORE_API_KEY", "")
FIRESTORE_TIMEOUT_SEC: int = int(os.getenv("FIRESTORE_TIMEOUT_SEC", "30"))

# Collection names as the console created them
DUTIES_COLLECTION: str = "duties"
OFFICERS_COLLECTION: str = "officers"
VEHICLES_COLLECTION: str = "vehicles"
ACTIVITIES_COLLECTION: str = "activities"


# === Time ===
DEFAULT_TZ: str = os.getenv("NAKA_TZ", "Asia/Kolkata")
DISPLAY_TIME_FMT: str = "%d %b %H:%M"


# === Expiry sweep ===
SWEEP_INTERVAL_SEC: int = int(os.getenv("NAKA_SWEEP_INTERVAL_SEC", "60"))


# === Geofence geometry ===
EARTH_RADIUS_M: float = 6_371_000.0
CIRCLE_SIDES: int = 16
DEFAULT_RADIUS_M: float = 200.0
MIN_RADIUS_M: float = 50.0


# === Map ===
MAP_VIEW = {"lat": 15.2993, "lon": 74.1240, "zoom": 11}
MAP_TILES: str = "OpenStreetMap"
FOCUS_ZOOM: int = 16


# === Logs ===
RECENT_LOG_LIMIT: int = 10
LOG_LEVEL: str = os.getenv("NAKA_LOG_LEVEL", "INFO")


@dataclass
class UIFlags:
    show_existing_duties: bool = True
    show_vehicles: bool = True


UI_FLAGS = UIFlags()


def map_center() -> Tuple[float, float]:
    return float(MAP_VIEW["lat"]), float(MAP_VIEW["lon"])
