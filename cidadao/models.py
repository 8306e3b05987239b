"""Status, papéis e rótulos usados em todo o painel."""

from __future__ import annotations

import unicodedata

#: Valor dos selects que significa "sem filtro"
ALL = "todas"

# ============================================================
# Status das ocorrências
# ============================================================

STATUSES = ["recebido", "em_analise", "em_atendimento", "resolvido", "rejeitado"]

STATUS_LABELS = {
    "recebido": "Recebido",
    "em_analise": "Em Análise",
    "em_atendimento": "Em Atendimento",
    "resolvido": "Resolvido",
    "rejeitado": "Rejeitado",
}

# === Fonte única de cores (canônicas) ===
STATUS_COLORS = {
    "recebido": "#3B82F6",
    "em_analise": "#F59E0B",
    "em_atendimento": "#8B5CF6",
    "resolvido": "#10B981",
    "rejeitado": "#EF4444",
}

STATUS_ICONS = {
    "recebido": "🔵",
    "em_analise": "🟡",
    "em_atendimento": "🟣",
    "resolvido": "🟢",
    "rejeitado": "🔴",
}

DEFAULT_STATUS_COLOR = "#9CA3AF"

# Aliases -> canônico (resolve variações comuns digitadas ou vindas do app)
_STATUS_ALIASES = {
    "recebida": "recebido",
    "analise": "em_analise",
    "em analise": "em_analise",
    "atendimento": "em_atendimento",
    "em atendimento": "em_atendimento",
    "resolvida": "resolvido",
    "rejeitada": "rejeitado",
}

# ============================================================
# Papéis de administrador
# ============================================================

ROLE_SUPER_ADMIN = "super_admin"
ROLE_PREFECTURE_ADMIN = "admin_prefeitura"
ROLES = [ROLE_SUPER_ADMIN, ROLE_PREFECTURE_ADMIN]

ROLE_LABELS = {
    ROLE_SUPER_ADMIN: "Super Admin",
    ROLE_PREFECTURE_ADMIN: "Admin Prefeitura",
}


def norm_key(s: str | None) -> str:
    """Normaliza string para chave: trim + lower + sem acento."""
    s = (s or "").strip().lower()
    s = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def canonical_status(text: str | None) -> str | None:
    """Converte rótulo/variação no status canônico; None se não reconhecer."""
    key = norm_key(text)
    if key in STATUSES:
        return key
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    for status, label in STATUS_LABELS.items():
        if norm_key(label) == key:
            return status
    return None


def status_label(status: str | None) -> str:
    """Rótulo de exibição; status desconhecido aparece como veio do banco."""
    return STATUS_LABELS.get(status or "", status or "")


def status_color(status: str | None) -> str:
    return STATUS_COLORS.get(status or "", DEFAULT_STATUS_COLOR)


def role_label(role: str | None) -> str:
    return ROLE_LABELS.get(role or "", role or "")
