import streamlit as st

from cidadao.admins import request_admin_creation
from cidadao.cadastros import (
    ADMIN_TABLE,
    delete_admin,
    fetch_active_prefectures,
    fetch_admins,
    toggle_active,
    update_admin,
)
from cidadao.config import MIN_PASSWORD_LENGTH, load_settings
from cidadao.db import get_store
from cidadao.errors import AdminCreationError, RecordStoreError, ValidationError
from cidadao.helpers import confirm_action, request_confirmation
from cidadao.models import ROLE_PREFECTURE_ADMIN, ROLE_SUPER_ADMIN, ROLES, role_label
from ui.session import bootstrap, require_session, require_super_admin
from ui.sidebar import render_sidebar_menu

bootstrap("Administradores")
ctx = require_session()
render_sidebar_menu(ctx, "Administradores")
require_super_admin(ctx)

st.header("Administradores")

store = get_store()

try:
    admins = fetch_admins(store)
    prefeituras = fetch_active_prefectures(store)
except RecordStoreError as e:
    st.error(f"Erro ao carregar dados: {e}")
    st.stop()


def _pref_label(p):
    m = p.get("municipios") or {}
    uf = (m.get("estados") or {}).get("uf", "")
    return f"{p['nome']} ({m.get('nome', '')}/{uf})" if m else p["nome"]


pref_ids = [p["id"] for p in prefeituras]
pref_label = {p["id"]: _pref_label(p) for p in prefeituras}

# ============================================================
# Formulário (novo / edição)
# ============================================================

editing = st.session_state.get("admin_editing")
base = editing or {}

with st.expander("✏️ Editar administrador" if editing else "➕ Novo administrador", expanded=bool(editing)):
    # tipo fora do form: a prefeitura só aparece para admin_prefeitura
    tipo_admin = st.radio(
        "Tipo de administrador",
        ROLES,
        index=ROLES.index(base.get("tipo_admin")) if base.get("tipo_admin") in ROLES else ROLES.index(ROLE_PREFECTURE_ADMIN),
        format_func=role_label,
        horizontal=True,
        key=f"admin_role_{base.get('id', 'new')}",
    )

    with st.form("admin_form", clear_on_submit=not editing):
        email = st.text_input("Email *", value=base.get("email") or "", disabled=bool(editing))
        nome = st.text_input("Nome *", value=base.get("nome") or "")

        prefeitura_id = None
        if tipo_admin == ROLE_PREFECTURE_ADMIN:
            prefeitura_id = st.selectbox(
                "Prefeitura *",
                pref_ids,
                index=pref_ids.index(base["prefeitura_id"]) if base.get("prefeitura_id") in pref_ids else None,
                format_func=pref_label.get,
                placeholder="Selecione a prefeitura",
            )

        senha = None
        if not editing:
            senha = st.text_input(
                "Senha *",
                type="password",
                help=f"Mínimo de {MIN_PASSWORD_LENGTH} caracteres",
            )

        b1, b2 = st.columns(2)
        submitted = b1.form_submit_button("Salvar", type="primary", use_container_width=True)
        cancelled = b2.form_submit_button("Cancelar", use_container_width=True)

    if cancelled:
        st.session_state.pop("admin_editing", None)
        st.rerun()

    if submitted and editing:
        try:
            update_admin(
                store,
                editing["id"],
                {"nome": nome, "tipo_admin": tipo_admin, "prefeitura_id": prefeitura_id},
            )
        except (ValidationError, RecordStoreError) as e:
            st.error(f"Erro ao salvar: {e}")
        else:
            st.session_state.pop("admin_editing", None)
            st.toast("Administrador atualizado com sucesso!")
            st.rerun()

    elif submitted:
        if not senha or len(senha) < MIN_PASSWORD_LENGTH:
            st.error(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")
        else:
            payload = {
                "email": email,
                "nome": nome,
                "tipo_admin": tipo_admin,
                "prefeitura_id": prefeitura_id if tipo_admin == ROLE_PREFECTURE_ADMIN else None,
                "senha": senha,
            }
            try:
                with st.spinner("Criando administrador..."):
                    result = request_admin_creation(load_settings().admin_api_url, ctx.access_token, payload)
            except AdminCreationError as e:
                st.error(f"Erro ao criar administrador: {e.message}")
            else:
                st.toast(result.get("message") or "Administrador criado com sucesso!")
                st.rerun()

# ============================================================
# Lista
# ============================================================

st.caption(f"{len(admins)} administrador(es) cadastrado(s)")

for admin in admins:
    pref = admin.get("prefeituras") or {}

    with st.container(border=True):
        info, actions = st.columns([3, 2], vertical_alignment="center")

        with info:
            badge = "🛡️" if admin.get("tipo_admin") == ROLE_SUPER_ADMIN else "🏛️"
            st.markdown(
                f"**{admin.get('nome')}** {badge} {role_label(admin.get('tipo_admin'))} "
                f"{'🟢 Ativo' if admin.get('ativo') else '⚪ Inativo'}"
            )
            st.caption(admin.get("email") or "")
            if pref:
                st.caption(f"🏢 {_pref_label(pref)}")

        with actions:
            is_self = admin.get("email") == ctx.email
            a1, a2, a3 = st.columns(3)
            if a1.button("Editar", key=f"edit_{admin['id']}", use_container_width=True):
                st.session_state["admin_editing"] = admin
                st.rerun()
            if a2.button(
                "Desativar" if admin.get("ativo") else "Ativar",
                key=f"toggle_{admin['id']}",
                disabled=is_self,
                use_container_width=True,
            ):
                try:
                    toggle_active(store, ADMIN_TABLE, admin)
                except RecordStoreError as e:
                    st.error(f"Erro ao alterar status: {e}")
                else:
                    st.rerun()
            if a3.button("Excluir", key=f"del_{admin['id']}", disabled=is_self, use_container_width=True):
                request_confirmation(f"del_admin_{admin['id']}")
                st.rerun()

        if confirm_action(f"del_admin_{admin['id']}", f"Tem certeza que deseja excluir o administrador {admin.get('nome')}?"):
            try:
                delete_admin(store, admin["id"])
            except RecordStoreError as e:
                st.error(f"Erro ao excluir: {e}")
            else:
                st.toast("Administrador excluído com sucesso!")
                st.rerun()
