from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pandas as pd

from cidadao.db import RecordStore, Row
from cidadao.models import status_color
from cidadao.occurrences import TABLE, join_one

PERIOD_OPTIONS = {
    7: "Últimos 7 dias",
    30: "Últimos 30 dias",
    90: "Últimos 90 dias",
    365: "Último ano",
}
DEFAULT_PERIOD = 30

MAP_COLUMNS = """
  id, protocolo, titulo, descricao, status, endereco,
  latitude, longitude, created_at,
  usuarios (nome),
  categorias (nome, cor)
"""


def fetch_map_occurrences(store: RecordStore, days: int, *, now: Optional[datetime] = None) -> List[Row]:
    """Ocorrências com coordenadas criadas nos últimos ``days`` dias."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)
    return store.select(
        TABLE,
        MAP_COLUMNS,
        gte={"created_at": since.isoformat()},
        not_null=("latitude", "longitude"),
        order="created_at",
        desc=True,
    )


def _coord(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def valid_points(rows: List[Row]) -> List[Row]:
    """
    Mantém só coordenadas numéricas finitas dentro de ±90/±180 (e diferentes de zero).
    Os relacionamentos (usuarios/categorias) saem achatados em dict ou None.
    """
    out = []
    for r in rows:
        lat = _coord(r.get("latitude"))
        lng = _coord(r.get("longitude"))
        if not lat or not lng:
            continue
        if not (math.isfinite(lat) and math.isfinite(lng)):
            continue
        if abs(lat) > 90 or abs(lng) > 180:
            continue
        out.append({
            **r,
            "latitude": lat,
            "longitude": lng,
            "usuarios": join_one(r, "usuarios"),
            "categorias": join_one(r, "categorias"),
        })
    return out


def to_map_frame(points: List[Row]) -> pd.DataFrame:
    """DataFrame no formato do ``st.map`` (lat/lon/color)."""
    if not points:
        return pd.DataFrame(columns=["lat", "lon", "color", "protocolo", "status"])
    return pd.DataFrame({
        "lat": [p["latitude"] for p in points],
        "lon": [p["longitude"] for p in points],
        "color": [status_color(p.get("status")) for p in points],
        "protocolo": [p.get("protocolo") for p in points],
        "status": [p.get("status") for p in points],
    })


def google_maps_url(lat: float, lng: float) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={lat},{lng}"


def osm_embed_url(lat: float, lng: float, delta: float = 0.01) -> str:
    bbox = f"{lng - delta},{lat - delta},{lng + delta},{lat + delta}"
    return (
        "https://www.openstreetmap.org/export/embed.html"
        f"?bbox={bbox}&layer=mapnik&marker={lat},{lng}"
    )
