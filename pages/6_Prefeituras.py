import streamlit as st

from cidadao.cadastros import (
    PREFECTURE_TABLE,
    delete_prefecture,
    fetch_active_municipalities,
    fetch_prefectures,
    save_prefecture,
    toggle_active,
)
from cidadao.db import get_store
from cidadao.errors import RecordStoreError, ValidationError
from cidadao.helpers import confirm_action, request_confirmation
from ui.session import bootstrap, require_session, require_super_admin
from ui.sidebar import render_sidebar_menu

bootstrap("Prefeituras")
ctx = require_session()
render_sidebar_menu(ctx, "Prefeituras")
require_super_admin(ctx)

st.header("Prefeituras")

store = get_store()

try:
    prefeituras = fetch_prefectures(store)
    municipios = fetch_active_municipalities(store)
except RecordStoreError as e:
    st.error(f"Erro ao carregar dados: {e}")
    st.stop()


def _municipio_label(m):
    uf = (m.get("estados") or {}).get("uf", "")
    estado = (m.get("estados") or {}).get("nome", "")
    return f"{m['nome']} - {estado} ({uf})"


municipio_ids = [m["id"] for m in municipios]
municipio_label = {m["id"]: _municipio_label(m) for m in municipios}

# ============================================================
# Formulário (nova / edição)
# ============================================================

editing = st.session_state.get("pref_editing")
base = editing or {}

with st.expander("✏️ Editar prefeitura" if editing else "➕ Nova prefeitura", expanded=bool(editing)):
    with st.form("pref_form", clear_on_submit=not editing):
        nome = st.text_input("Nome da prefeitura *", value=base.get("nome") or "")
        municipio_id = st.selectbox(
            "Município *",
            municipio_ids,
            index=municipio_ids.index(base["municipio_id"]) if base.get("municipio_id") in municipio_ids else None,
            format_func=municipio_label.get,
            placeholder="Selecione o município",
        )
        c1, c2 = st.columns(2)
        cnpj = c1.text_input("CNPJ", value=base.get("cnpj") or "")
        responsavel = c2.text_input("Responsável", value=base.get("responsavel") or "")
        email = c1.text_input("Email", value=base.get("email") or "")
        telefone = c2.text_input("Telefone", value=base.get("telefone") or "")
        endereco = st.text_input("Endereço", value=base.get("endereco") or "")

        b1, b2 = st.columns(2)
        submitted = b1.form_submit_button("Salvar", type="primary", use_container_width=True)
        cancelled = b2.form_submit_button("Cancelar", use_container_width=True)

    if cancelled:
        st.session_state.pop("pref_editing", None)
        st.rerun()

    if submitted:
        form = {
            "nome": nome,
            "municipio_id": municipio_id,
            "cnpj": cnpj,
            "email": email,
            "telefone": telefone,
            "endereco": endereco,
            "responsavel": responsavel,
        }
        try:
            save_prefecture(store, form, prefecture_id=editing["id"] if editing else None)
        except (ValidationError, RecordStoreError) as e:
            st.error(f"Erro ao salvar: {e}")
        else:
            st.session_state.pop("pref_editing", None)
            st.toast("Prefeitura atualizada com sucesso!" if editing else "Prefeitura criada com sucesso!")
            st.rerun()

# ============================================================
# Lista
# ============================================================

st.caption(f"{len(prefeituras)} prefeitura(s) cadastrada(s)")

for pref in prefeituras:
    municipio = pref.get("municipios") or {}
    uf = (municipio.get("estados") or {}).get("uf", "")
    admins = pref.get("usuarios_admin") or []

    with st.container(border=True):
        info, actions = st.columns([3, 2], vertical_alignment="center")

        with info:
            st.markdown(f"**{pref['nome']}** {'🟢 Ativa' if pref.get('is_active') else '⚪ Inativa'}")
            st.caption(f"📍 {municipio.get('nome', '')}/{uf}")
            contato = " • ".join(
                v for v in (pref.get("email"), pref.get("telefone"), pref.get("responsavel")) if v
            )
            if contato:
                st.caption(contato)
            st.caption(f"👥 {len(admins)} administrador(es)")
            for a in admins:
                st.caption(f"• {a.get('nome')} ({a.get('email')}){'' if a.get('ativo') else ' – inativo'}")

        with actions:
            a1, a2, a3 = st.columns(3)
            if a1.button("Editar", key=f"edit_{pref['id']}", use_container_width=True):
                st.session_state["pref_editing"] = pref
                st.rerun()
            if a2.button("Desativar" if pref.get("is_active") else "Ativar", key=f"toggle_{pref['id']}", use_container_width=True):
                try:
                    toggle_active(store, PREFECTURE_TABLE, pref)
                except RecordStoreError as e:
                    st.error(f"Erro ao alterar status: {e}")
                else:
                    st.rerun()
            if a3.button("Excluir", key=f"del_{pref['id']}", use_container_width=True):
                request_confirmation(f"del_pref_{pref['id']}")
                st.rerun()

        if confirm_action(f"del_pref_{pref['id']}", f"Tem certeza que deseja excluir a prefeitura {pref['nome']}?"):
            try:
                delete_prefecture(store, pref["id"])
            except RecordStoreError as e:
                st.error(f"Erro ao excluir: {e}")
            else:
                st.toast("Prefeitura excluída com sucesso!")
                st.rerun()
