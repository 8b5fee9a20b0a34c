# utils/geo.py
from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config.settings import CIRCLE_SIDES, EARTH_RADIUS_M, MIN_RADIUS_M

__all__ = [
    "LatLng",
    "METERS_PER_DEGREE",
    "build_circle_polygon",
    "centroid",
    "coerce_float",
    "effective_radius",
    "normalize_polygon",
    "polygon_bounds",
    "latlng_from_click",
]

LatLng = Tuple[float, float]  # (lat, lng)

# Equirectangular scale shared by polygon construction and radius recovery.
METERS_PER_DEGREE: float = EARTH_RADIUS_M * math.pi / 180.0


# ── Circle ⇄ polygon ─────────────────────────────────────────────────────────
def build_circle_polygon(center: Sequence[float], radius_m: float, sides: int = CIRCLE_SIDES) -> List[LatLng]:
    """Approximate a circle of `radius_m` metres around `center` with `sides` vertices.

    Vertex 0 sits due north and the ring runs clockwise through east.
    Longitude offsets are divided by cos(lat) to correct for meridian
    convergence. Not geodesically exact; good to well under 1% at metro radii.
    """
    if radius_m is None or not radius_m > 0 or not math.isfinite(radius_m):
        raise ValueError(f"radius_m must be positive and finite, got {radius_m!r}")
    if sides < 3:
        raise ValueError(f"sides must be >= 3, got {sides!r}")

    lat, lng = float(center[0]), float(center[1])
    if not (abs(lat) < 90 and math.isfinite(lng)):
        raise ValueError(f"center must be off the poles and finite, got {center!r}")
    angles = np.deg2rad(np.arange(sides) * 360.0 / sides)
    dlat = radius_m * np.cos(angles) / METERS_PER_DEGREE
    dlng = radius_m * np.sin(angles) / (METERS_PER_DEGREE * math.cos(math.radians(lat)))
    lats, lngs = lat + dlat, lng + dlng
    # Overflow at extreme radii
    if not (np.isfinite(lats).all() and np.isfinite(lngs).all()):
        raise ValueError(f"cannot build a circle around {center!r} with radius {radius_m!r}")
    return [(float(a), float(b)) for a, b in zip(lats, lngs)]


def centroid(polygon: Sequence[Sequence[float]]) -> LatLng:
    """Arithmetic mean of vertex latitudes and longitudes."""
    if len(polygon) == 0:
        raise ValueError("centroid of an empty polygon is undefined")
    arr = np.asarray(polygon, dtype=float)
    return float(arr[:, 0].mean()), float(arr[:, 1].mean())


def effective_radius(
    polygon: Sequence[Sequence[float]],
    center: Sequence[float],
    minimum_m: float = MIN_RADIUS_M,
) -> float:
    """Largest vertex distance from `center` in metres, floored at `minimum_m`.

    The display radius is recovered from the stored vertices rather than a
    stored field, so the drawn circle always encloses every vertex.
    """
    if len(polygon) == 0:
        return float(minimum_m)
    arr = np.asarray(polygon, dtype=float)
    clat, clng = float(center[0]), float(center[1])
    dy = (arr[:, 0] - clat) * METERS_PER_DEGREE
    dx = (arr[:, 1] - clng) * METERS_PER_DEGREE * math.cos(math.radians(clat))
    return max(float(np.hypot(dx, dy).max()), float(minimum_m))


# ── Stored vertex decoding ───────────────────────────────────────────────────
def coerce_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _vertex(p: Any) -> Optional[LatLng]:
    if isinstance(p, dict):
        lat = p.get("lat", p.get("latitude"))
        lng = p.get("lng", p.get("lon", p.get("longitude")))
    elif isinstance(p, (list, tuple)) and len(p) >= 2:
        lat, lng = p[0], p[1]
    else:
        return None
    lat, lng = coerce_float(lat), coerce_float(lng)
    if lat is None or lng is None:
        return None
    return lat, lng


def normalize_polygon(raw: Any) -> List[LatLng]:
    """Decode a stored vertex list into (lat, lng) tuples.

    Accepts {"lat","lng"} / {"lat","lon"} / {"latitude","longitude"} mappings
    and [lat, lng] pairs. Vertices that are not numeric are dropped.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    out: List[LatLng] = []
    for p in raw:
        v = _vertex(p)
        if v is not None:
            out.append(v)
    return out


def polygon_bounds(points: Iterable[Sequence[float]]) -> List[List[float]]:
    """[[south, west], [north, east]] for a point set (folium fit_bounds order)."""
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        raise ValueError("bounds of an empty point set are undefined")
    return [
        [float(arr[:, 0].min()), float(arr[:, 1].min())],
        [float(arr[:, 0].max()), float(arr[:, 1].max())],
    ]


# ── Click resolver (Streamlit Folium) ────────────────────────────────────────
def latlng_from_click(ret: Any) -> Optional[LatLng]:
    """Extract (lat, lng) from the variety of st_folium return shapes."""
    if not ret or not isinstance(ret, dict):
        return None
    lc = ret.get("last_clicked")
    if lc is None:
        return None

    # 1) [lat, lng]
    if isinstance(lc, (list, tuple)) and len(lc) >= 2:
        return _vertex(lc)

    # 2) {"lat":..., "lng"|"lon":...}
    if isinstance(lc, dict):
        if "lat" in lc and ("lng" in lc or "lon" in lc):
            return _vertex(lc)
        # 3) {"latlng": {...}} or {"latlng": [lat, lng]}
        ll = lc.get("latlng")
        if ll is not None:
            return _vertex(ll)
    return None
