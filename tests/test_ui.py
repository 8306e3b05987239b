"""
Testes da camada Streamlit (ui/ e pages/) com ``streamlit.testing.v1.AppTest``.

Cobre:
- menu lateral: cadastros só aparecem para super admin
- página de administradores bloqueada para admin de prefeitura
- logout apaga todo o estado da sessão (nada do usuário anterior sobra)
"""

from types import SimpleNamespace

import pytest
from streamlit.testing.v1 import AppTest

from cidadao.auth import AdminProfile, SessionContext, TenantInfo
from cidadao.cadastros import ADMIN_TABLE
from cidadao.config import load_settings
from ui.sidebar import ADMIN_PAGES, PAGES, pages_for

TIMEOUT = 30


def _ctx(tipo_admin, prefeitura_id=None):
    return SessionContext(
        access_token="token-1",
        user_id="uid-1",
        email="ana@pref.gov.br",
        profile=AdminProfile(
            email="ana@pref.gov.br",
            nome="Ana Lima",
            tipo_admin=tipo_admin,
            prefeitura_id=prefeitura_id,
            ativo=True,
        ),
        tenant=TenantInfo(
            prefeitura_id=prefeitura_id,
            prefeitura_nome="Prefeitura de Niterói" if prefeitura_id else None,
            cidade="Niterói" if prefeitura_id else None,
            nome="Ana Lima",
            cargo=None,
        ),
    )


@pytest.fixture
def ambiente(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SUPABASE_URL", "http://supabase.test")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def logged_in(fake):
    """Sessão de auth aberta no fake (require_session consulta get_session)."""
    fake.auth.session = SimpleNamespace(access_token="token-1")
    return fake


# ===========================================================================
# Menu por perfil
# ===========================================================================


def test_admin_prefeitura_nao_ve_cadastros():
    pages = pages_for(_ctx("admin_prefeitura", "pref-1"))

    assert list(pages) == list(PAGES)
    assert not set(ADMIN_PAGES) & set(pages)


def test_super_admin_ve_todas_as_paginas():
    pages = pages_for(_ctx("super_admin"))

    assert list(pages) == list(PAGES) + list(ADMIN_PAGES)


# ===========================================================================
# Página de administradores
# ===========================================================================


def _admin_page(fake, ctx):
    at = AppTest.from_file("../pages/7_Administradores.py", default_timeout=TIMEOUT)
    at.session_state["session_ctx"] = ctx
    at.session_state["_supabase_client"] = fake
    return at.run()


def test_pagina_de_administradores_bloqueada_para_admin_prefeitura(ambiente, logged_in):
    at = _admin_page(logged_in, _ctx("admin_prefeitura", "pref-1"))

    assert not at.exception
    assert [e.value for e in at.error] == ["Acesso restrito a super administradores."]
    # st.stop() antes do cabeçalho e de qualquer consulta
    assert len(at.header) == 0
    assert logged_in.calls == []


def test_pagina_de_administradores_liberada_para_super_admin(ambiente, logged_in):
    logged_in.tables[ADMIN_TABLE] = [{
        "id": 2, "email": "joao@pref.gov.br", "nome": "João", "tipo_admin": "admin_prefeitura",
        "prefeitura_id": "pref-1", "ativo": True, "created_at": "2024-01-01",
        "prefeituras": {"nome": "Prefeitura de Niterói", "municipios": {"nome": "Niterói", "estados": {"uf": "RJ"}}},
    }]

    at = _admin_page(logged_in, _ctx("super_admin"))

    assert not at.exception
    assert len(at.error) == 0
    assert at.header[0].value == "Administradores"
    assert (ADMIN_TABLE, "select") in logged_in.calls


# ===========================================================================
# Logout
# ===========================================================================


def _logout_script():
    import streamlit as st

    from ui.session import end_session

    if st.session_state.get("sair"):
        end_session()


def test_logout_apaga_dados_do_usuario_anterior(logged_in):
    at = AppTest.from_function(_logout_script, default_timeout=TIMEOUT)
    at.session_state["session_ctx"] = _ctx("super_admin")
    at.session_state["_supabase_client"] = logged_in
    at.session_state["occ_rows"] = [{"id": 1, "prefeitura": "OUTRA"}]
    at.session_state["occ_pending"] = {"id": 1, "status": "resolvido"}
    at.session_state["admin_editing"] = {"id": 2}
    at.session_state["pending_confirmation"] = "del_admin_2"
    at.session_state["sair"] = True

    at.run()

    assert not at.exception
    for key in ("session_ctx", "_supabase_client", "occ_rows", "occ_pending",
                "admin_editing", "pending_confirmation"):
        assert key not in at.session_state
    assert logged_in.auth.sign_outs == 1


def test_logout_limpa_estado_mesmo_se_supabase_falhar(logged_in):
    logged_in.auth.fail_on.add("sign_out")

    at = AppTest.from_function(_logout_script, default_timeout=TIMEOUT)
    at.session_state["session_ctx"] = _ctx("admin_prefeitura", "pref-1")
    at.session_state["_supabase_client"] = logged_in
    at.session_state["occ_rows"] = [{"id": 1}]
    at.session_state["sair"] = True

    at.run()

    assert not at.exception
    assert "occ_rows" not in at.session_state
    assert "session_ctx" not in at.session_state
