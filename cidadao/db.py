import logging
from typing import Any, Dict, Iterable, List, Optional

import streamlit as st
from supabase import Client, create_client

from cidadao.config import Settings, load_settings, require_service_role
from cidadao.errors import RecordStoreError

log = logging.getLogger(__name__)

Row = Dict[str, Any]


def _error_message(exc: Exception) -> str:
    # APIError (postgrest) traz a mensagem do banco em .message
    return getattr(exc, "message", None) or str(exc)


class RecordStore:
    """
    Acesso às tabelas do Supabase (PostgREST) usado por todas as telas.
    Cada método executa a consulta e devolve ``resp.data`` como lista de dicts.
    Qualquer falha vira ``RecordStoreError`` com a mensagem do banco.
    """

    def __init__(self, client: Client):
        self.client = client

    def _run(self, what: str, build):
        try:
            resp = build().execute()
        except Exception as exc:
            log.error("Erro no banco (%s): %s", what, _error_message(exc))
            raise RecordStoreError(_error_message(exc)) from exc
        if resp is None:
            return []
        return resp.data or []

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None,
        lte: Optional[Dict[str, Any]] = None,
        not_null: Iterable[str] = (),
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        def build():
            query = self.client.table(table).select(columns)
            for col, val in (eq or {}).items():
                query = query.eq(col, val)
            for col, val in (gte or {}).items():
                query = query.gte(col, val)
            for col, val in (lte or {}).items():
                query = query.lte(col, val)
            for col in not_null:
                query = query.not_.is_(col, "null")
            if order:
                query = query.order(order, desc=desc)
            if limit:
                query = query.limit(limit)
            return query

        return self._run(f"select {table}", build)

    def insert(self, table: str, rows: List[Row]) -> List[Row]:
        return self._run(f"insert {table}", lambda: self.client.table(table).insert(rows))

    def update(self, table: str, fields: Row, *, key: str, value: Any) -> List[Row]:
        """Atualiza e devolve as linhas efetivamente alteradas (RLS pode zerar)."""
        return self._run(
            f"update {table}",
            lambda: self.client.table(table).update(fields).eq(key, value),
        )

    def delete(self, table: str, *, key: str, value: Any) -> List[Row]:
        return self._run(
            f"delete {table}",
            lambda: self.client.table(table).delete().eq(key, value),
        )

    def rpc(self, function: str, params: Optional[Row] = None) -> List[Row]:
        data = self._run(f"rpc {function}", lambda: self.client.rpc(function, params or {}))
        if isinstance(data, dict):
            return [data]
        return data


def create_public_client(settings: Settings) -> Client:
    """Cliente com a chave anônima: sujeito às regras de RLS do usuário logado."""
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def create_service_client(settings: Settings) -> Client:
    """Cliente com service role: só a API administrativa usa."""
    return create_client(settings.supabase_url, require_service_role(settings))


def get_client() -> Client:
    """
    Um cliente Supabase por sessão do Streamlit.
    O cliente guarda a sessão de auth do usuário, então não pode ser
    compartilhado via cache_resource entre navegadores diferentes.
    """
    client = st.session_state.get("_supabase_client")
    if client is None:
        client = create_public_client(load_settings())
        st.session_state["_supabase_client"] = client
    return client


def get_store() -> RecordStore:
    return RecordStore(get_client())

