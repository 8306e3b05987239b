"""
Relatórios agregados de ocorrências.

As agregações rodam em memória sobre as linhas já buscadas (uma varredura
por métrica), como na tela de relatórios.
"""

from __future__ import annotations

import csv
import io
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Tuple

from cidadao.db import Row
from cidadao.models import status_label
from cidadao.occurrences import category_name, citizen_name, parse_ts

#: Janela padrão da tela de relatórios
DEFAULT_PERIOD_DAYS = 30

TOP_CATEGORIES = 5
TOP_ADDRESSES = 10


@dataclass
class ReportStats:
    total: int = 0
    resolved: int = 0
    resolution_rate: float = 0.0
    avg_resolution_days: Optional[float] = None
    top_categories: List[Tuple[str, int]] = field(default_factory=list)
    status_distribution: List[Tuple[str, int]] = field(default_factory=list)
    daily_created: List[Tuple[date, int]] = field(default_factory=list)
    top_addresses: List[Tuple[str, int]] = field(default_factory=list)


def default_period(today: date) -> Tuple[date, date]:
    return today - timedelta(days=DEFAULT_PERIOD_DAYS), today


def address_area(endereco: Optional[str]) -> str:
    """Primeiro trecho do endereço (antes da vírgula): rua/bairro principal."""
    area = (endereco or "").split(",")[0].strip()
    return area or "Sem endereço"


def average_resolution_days(rows: List[Row]) -> Optional[float]:
    """
    Média de (updated_at - created_at) das ocorrências resolvidas, em dias.
    ``updated_at`` é gravado na troca de status, então para uma ocorrência
    resolvida marca o momento da resolução.
    """
    durations = []
    for r in rows:
        if r.get("status") != "resolvido":
            continue
        created = parse_ts(r.get("created_at"))
        updated = parse_ts(r.get("updated_at"))
        if created is None or updated is None or updated < created:
            continue
        durations.append((updated - created).total_seconds() / 86400)

    if not durations:
        return None
    return round(sum(durations) / len(durations), 1)


def report_stats(rows: List[Row]) -> ReportStats:
    total = len(rows)
    resolved = sum(1 for r in rows if r.get("status") == "resolvido")

    categories = Counter(category_name(r) or "Sem categoria" for r in rows)
    statuses = Counter(r.get("status") for r in rows)
    addresses = Counter(address_area(r.get("endereco")) for r in rows)

    daily = Counter()
    for r in rows:
        created = parse_ts(r.get("created_at"))
        if created is not None:
            daily[created.date()] += 1

    return ReportStats(
        total=total,
        resolved=resolved,
        resolution_rate=round(resolved / total * 100, 1) if total else 0.0,
        avg_resolution_days=average_resolution_days(rows),
        top_categories=categories.most_common(TOP_CATEGORIES),
        status_distribution=list(statuses.items()),
        daily_created=sorted(daily.items()),
        top_addresses=addresses.most_common(TOP_ADDRESSES),
    )


def _fmt_date(value) -> str:
    ts = parse_ts(value)
    return ts.strftime("%d/%m/%Y") if ts else ""


def build_report_csv(stats: ReportStats, rows: List[Row], start: date, end: date) -> str:
    """CSV em seções (resumo, categorias, status, locais, detalhamento)."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")

    avg = f"{stats.avg_resolution_days} dias" if stats.avg_resolution_days is not None else "N/A"

    w.writerow(["RELATÓRIO DETALHADO DE OCORRÊNCIAS"])
    w.writerow([f"Período: {start.isoformat()} a {end.isoformat()}"])
    w.writerow([])
    w.writerow(["RESUMO EXECUTIVO"])
    w.writerow(["Total de Ocorrências:", stats.total])
    w.writerow(["Ocorrências Resolvidas:", stats.resolved])
    w.writerow(["Taxa de Resolução:", f"{stats.resolution_rate}%"])
    w.writerow(["Tempo Médio de Resolução:", avg])
    w.writerow([])

    w.writerow(["CATEGORIAS MAIS REPORTADAS"])
    w.writerow(["Categoria", "Total"])
    w.writerows(stats.top_categories)
    w.writerow([])

    w.writerow(["DISTRIBUIÇÃO POR STATUS"])
    w.writerow(["Status", "Quantidade"])
    w.writerows([(status_label(s), n) for s, n in stats.status_distribution])
    w.writerow([])

    w.writerow(["LOCAIS COM MAIS OCORRÊNCIAS"])
    w.writerow(["Endereço/Área", "Total"])
    w.writerows(stats.top_addresses)
    w.writerow([])

    w.writerow(["DETALHAMENTO DAS OCORRÊNCIAS"])
    w.writerow(["Protocolo", "Título", "Status", "Categoria", "Endereço", "Data Criação", "Usuário"])
    for r in rows:
        w.writerow([
            r.get("protocolo") or "",
            r.get("titulo") or "",
            status_label(r.get("status")),
            category_name(r) or "N/A",
            r.get("endereco") or "",
            _fmt_date(r.get("created_at")),
            citizen_name(r) or "N/A",
        ])

    return buf.getvalue()


def report_filename(start: date, end: date) -> str:
    return f"relatorio-detalhado-{start.isoformat()}-{end.isoformat()}.csv"
