from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

from cidadao.db import RecordStore, Row
from cidadao.errors import RecordStoreError, ValidationError
from cidadao.models import ALL, canonical_status, norm_key, status_label

log = logging.getLogger(__name__)

TABLE = "ocorrencias"

OCCURRENCE_COLUMNS = """
  id,
  protocolo,
  titulo,
  descricao,
  status,
  endereco,
  latitude,
  longitude,
  fotos,
  created_at,
  updated_at,
  usuarios (nome, telefone),
  categorias (nome, icone, cor)
"""

SEARCH_FIELDS = ("protocolo", "titulo", "descricao", "endereco")


def join_one(row: Row, key: str) -> Optional[Dict[str, Any]]:
    """Relacionamento embutido pelo PostgREST: pode vir como dict ou lista."""
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value or None


def category_name(row: Row) -> Optional[str]:
    cat = join_one(row, "categorias")
    return cat.get("nome") if cat else None


def citizen_name(row: Row) -> Optional[str]:
    user = join_one(row, "usuarios")
    return user.get("nome") if user else None


def parse_ts(value: Any) -> Optional[datetime]:
    """Timestamp ISO do Supabase -> datetime com fuso (UTC); None se inválido."""
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def fetch_occurrences(
    store: RecordStore,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[str] = None,
) -> List[Row]:
    """Lista ocorrências (mais recentes primeiro) com usuário e categoria."""
    gte = {"created_at": f"{start.isoformat()}T00:00:00"} if start else None
    lte = {"created_at": f"{end.isoformat()}T23:59:59"} if end else None
    eq = {"status": status} if status and status != ALL else None

    return store.select(
        TABLE,
        OCCURRENCE_COLUMNS,
        eq=eq,
        gte=gte,
        lte=lte,
        order="created_at",
        desc=True,
    )


def fetch_categories(store: RecordStore) -> List[str]:
    rows = store.select("categorias", "nome", order="nome")
    return [r["nome"] for r in rows if r.get("nome")]


def _matches_search(row: Row, term: str) -> bool:
    values = [row.get(f) for f in SEARCH_FIELDS]
    values.append(citizen_name(row))
    return any(term in norm_key(str(v)) for v in values if v)


def filter_occurrences(
    rows: List[Row],
    *,
    status: str = ALL,
    category: str = ALL,
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: str = "",
) -> List[Row]:
    """
    Refaz a lista filtrada a partir do que já foi buscado (sem nova consulta).
    ``ALL`` ("todas") ou vazio desliga o filtro correspondente.
    """
    term = norm_key(search)
    out = []
    for row in rows:
        if status and status != ALL and row.get("status") != status:
            continue
        if category and category != ALL and category_name(row) != category:
            continue
        if start or end:
            created = parse_ts(row.get("created_at"))
            if created is None:
                continue
            if start and created.date() < start:
                continue
            if end and created.date() > end:
                continue
        if term and not _matches_search(row, term):
            continue
        out.append(row)
    return out


def update_status(
    store: RecordStore, occurrence_id: Any, new_status: str, *, now: Optional[datetime] = None
) -> Row:
    """
    Grava o novo status (aceita o rótulo ou variações: "Em Análise",
    "resolvida"). Zero linhas alteradas (ex.: RLS) conta como erro.
    """
    status = canonical_status(new_status)
    if status is None:
        raise ValidationError(f"Status inválido: {new_status}")

    now = now or datetime.now(timezone.utc)
    rows = store.update(
        TABLE,
        {"status": status, "updated_at": now.isoformat()},
        key="id",
        value=occurrence_id,
    )
    if not rows:
        raise RecordStoreError("Nenhum registro foi atualizado")

    log.info("Ocorrência %s -> %s", occurrence_id, status_label(status))
    return rows[0]


def merge_status(rows: List[Row], occurrence_id: Any, new_status: str) -> List[Row]:
    """Nova lista com o status trocado só na ocorrência indicada."""
    return [
        {**row, "status": new_status} if row.get("id") == occurrence_id else row
        for row in rows
    ]


def dashboard_counts(rows: List[Row]) -> Dict[str, int]:
    total = len(rows)
    resolvidas = sum(1 for r in rows if r.get("status") == "resolvido")
    return {"total": total, "pendentes": total - resolvidas, "resolvidas": resolvidas}
