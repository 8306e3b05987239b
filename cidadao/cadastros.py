"""
Cadastros de referência: cidades (municípios), prefeituras e administradores.

Todas as funções seguem o mesmo padrão das telas: validar o formulário,
gravar no Supabase e deixar a tela recarregar a lista.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cidadao.db import RecordStore, Row
from cidadao.errors import ValidationError
from cidadao.models import ROLE_PREFECTURE_ADMIN, ROLE_SUPER_ADMIN, ROLES

log = logging.getLogger(__name__)

CITY_TABLE = "municipios"
STATE_TABLE = "estados"
PREFECTURE_TABLE = "prefeituras"
ADMIN_TABLE = "usuarios_admin"

# coluna de "ativo" muda de nome conforme a tabela
ACTIVE_FLAG = {
    CITY_TABLE: "ativo",
    ADMIN_TABLE: "ativo",
    PREFECTURE_TABLE: "is_active",
}

CITY_COLUMNS = """
  id, codigo_ibge, nome, estado_id, ativo, created_at,
  estados (nome, uf),
  prefeituras (id, nome)
"""

PREFECTURE_COLUMNS = """
  id, nome, municipio_id, cnpj, email, telefone, endereco, responsavel,
  is_active, created_at,
  municipios (nome, estados (uf)),
  usuarios_admin (nome, email, ativo)
"""

ADMIN_COLUMNS = """
  id, email, nome, tipo_admin, prefeitura_id, ativo, created_at,
  prefeituras (nome, municipios (nome, estados (uf)))
"""

PREFECTURE_FIELDS = ["nome", "municipio_id", "cnpj", "email", "telefone", "endereco", "responsavel"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(form: Dict[str, Any], fields: List[str]) -> Dict[str, Any]:
    out = {}
    for f in fields:
        v = form.get(f)
        out[f] = v.strip() if isinstance(v, str) else v
    return out


def _require(data: Dict[str, Any], fields: List[str]) -> None:
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValidationError(f"Campos obrigatórios: {', '.join(missing)}")


def toggle_active(store: RecordStore, table: str, row: Row) -> bool:
    """Inverte o flag de ativo da linha e devolve o novo valor."""
    flag = ACTIVE_FLAG[table]
    new_value = not bool(row.get(flag))
    store.update(table, {flag: new_value}, key="id", value=row["id"])
    log.info("%s %s: %s=%s", table, row["id"], flag, new_value)
    return new_value


# ============================================================
# Cidades
# ============================================================

def fetch_cities(store: RecordStore) -> List[Row]:
    return store.select(CITY_TABLE, CITY_COLUMNS, order="nome")


def fetch_states(store: RecordStore) -> List[Row]:
    return store.select(STATE_TABLE, "id, nome, uf", order="nome")


def save_city(store: RecordStore, form: Dict[str, Any], city_id: Optional[Any] = None) -> None:
    data = _clean(form, ["nome", "estado_id", "codigo_ibge"])
    _require(data, ["nome", "estado_id", "codigo_ibge"])

    if city_id is not None:
        store.update(CITY_TABLE, {**data, "updated_at": _now()}, key="id", value=city_id)
    else:
        store.insert(CITY_TABLE, [{**data, "ativo": True}])


def delete_city(store: RecordStore, city_id: Any) -> None:
    store.delete(CITY_TABLE, key="id", value=city_id)


# ============================================================
# Prefeituras
# ============================================================

def fetch_prefectures(store: RecordStore) -> List[Row]:
    return store.select(PREFECTURE_TABLE, PREFECTURE_COLUMNS, order="nome")


def fetch_active_municipalities(store: RecordStore) -> List[Row]:
    return store.select(
        CITY_TABLE, "id, nome, estados (nome, uf)", eq={"ativo": True}, order="nome"
    )


def save_prefecture(store: RecordStore, form: Dict[str, Any], prefecture_id: Optional[Any] = None) -> None:
    data = _clean(form, PREFECTURE_FIELDS)
    _require(data, ["nome", "municipio_id"])

    if prefecture_id is not None:
        store.update(PREFECTURE_TABLE, {**data, "updated_at": _now()}, key="id", value=prefecture_id)
    else:
        store.insert(PREFECTURE_TABLE, [{**data, "is_active": True}])


def delete_prefecture(store: RecordStore, prefecture_id: Any) -> None:
    store.delete(PREFECTURE_TABLE, key="id", value=prefecture_id)


# ============================================================
# Administradores
# ============================================================

def fetch_admins(store: RecordStore) -> List[Row]:
    return store.select(ADMIN_TABLE, ADMIN_COLUMNS, order="created_at", desc=True)


def fetch_active_prefectures(store: RecordStore) -> List[Row]:
    return store.select(
        PREFECTURE_TABLE,
        "id, nome, municipios (nome, estados (uf))",
        eq={"is_active": True},
        order="nome",
    )


def update_admin(store: RecordStore, admin_id: Any, form: Dict[str, Any]) -> None:
    """
    Edição de administrador (email não muda: é a chave do login).
    Super admin nunca fica vinculado a prefeitura.
    """
    data = _clean(form, ["nome", "tipo_admin", "prefeitura_id"])
    _require(data, ["nome", "tipo_admin"])

    role = data["tipo_admin"]
    if role not in ROLES:
        raise ValidationError(f"Tipo de administrador inválido: {role}")
    if role == ROLE_PREFECTURE_ADMIN and not data.get("prefeitura_id"):
        raise ValidationError("Selecione a prefeitura do administrador")

    store.update(
        ADMIN_TABLE,
        {
            "nome": data["nome"],
            "tipo_admin": role,
            "prefeitura_id": None if role == ROLE_SUPER_ADMIN else data["prefeitura_id"],
            "updated_at": _now(),
        },
        key="id",
        value=admin_id,
    )


def delete_admin(store: RecordStore, admin_id: Any) -> None:
    """Remove só a linha de ``usuarios_admin``; a conta de auth permanece."""
    store.delete(ADMIN_TABLE, key="id", value=admin_id)
