import logging

import streamlit as st

from cidadao.auth import IdentityProvider, SessionContext, authenticate, logout
from cidadao.config import ConfigError, load_settings, setup_logging
from cidadao.db import get_client, get_store
from cidadao.errors import IdentityError

log = logging.getLogger(__name__)

SESSION_KEY = "session_ctx"
LOGIN_PAGE = "app.py"


def bootstrap(page_title: str) -> None:
    """Primeira chamada de toda página: layout, configuração e logging."""
    st.set_page_config(page_title=f"{page_title} • Cidadão Ativo", page_icon="🏛️", layout="wide")
    try:
        settings = load_settings()
    except ConfigError as e:
        st.error(f"Configuração incompleta: {e}")
        st.stop()
    setup_logging(settings.log_level)


def get_identity() -> IdentityProvider:
    return IdentityProvider(get_client().auth)


def current_session() -> SessionContext | None:
    return st.session_state.get(SESSION_KEY)


def _clear_user_state() -> None:
    """
    Apaga tudo o que a sessão guardou (ocorrências em cache, formulários em
    edição, filtros, cliente Supabase). O próximo login começa do zero.
    """
    st.session_state.clear()


def login(email: str, password: str) -> SessionContext:
    ctx = authenticate(get_identity(), get_store(), email, password)
    st.session_state[SESSION_KEY] = ctx
    return ctx


def end_session() -> None:
    ctx = current_session()
    try:
        logout(get_identity(), ctx)
    except IdentityError:
        log.warning("Falha ao encerrar sessão no Supabase; limpando sessão local")
    finally:
        _clear_user_state()


def require_session() -> SessionContext:
    """Contexto do usuário logado; sem sessão válida volta para o login."""
    ctx = current_session()
    if ctx is not None:
        try:
            session = get_identity().get_session()
        except IdentityError:
            session = None
        if session is None:
            _clear_user_state()
            ctx = None

    if ctx is None:
        st.switch_page(LOGIN_PAGE)
    return ctx


def require_super_admin(ctx: SessionContext) -> None:
    if not ctx.is_super_admin:
        st.error("Acesso restrito a super administradores.")
        st.stop()
