import streamlit as st

from cidadao.cadastros import CITY_TABLE, delete_city, fetch_cities, fetch_states, save_city, toggle_active
from cidadao.db import get_store
from cidadao.errors import RecordStoreError, ValidationError
from cidadao.helpers import confirm_action, request_confirmation
from ui.session import bootstrap, require_session, require_super_admin
from ui.sidebar import render_sidebar_menu

bootstrap("Cidades")
ctx = require_session()
render_sidebar_menu(ctx, "Cidades")
require_super_admin(ctx)

st.header("Cidades")
st.caption("Municípios atendidos pelo Cidadão Ativo")

store = get_store()

try:
    cities = fetch_cities(store)
    states = fetch_states(store)
except RecordStoreError as e:
    st.error(f"Erro ao carregar dados: {e}")
    st.stop()

state_ids = [s["id"] for s in states]
state_label = {s["id"]: f"{s['nome']} ({s['uf']})" for s in states}

# ============================================================
# Formulário (novo / edição)
# ============================================================

editing = st.session_state.get("city_editing")

with st.expander("✏️ Editar cidade" if editing else "➕ Nova cidade", expanded=bool(editing)):
    with st.form("city_form", clear_on_submit=not editing):
        nome = st.text_input("Nome da cidade *", value=(editing or {}).get("nome", ""))
        estado_id = st.selectbox(
            "Estado *",
            state_ids,
            index=state_ids.index(editing["estado_id"]) if editing and editing.get("estado_id") in state_ids else None,
            format_func=state_label.get,
            placeholder="Selecione o estado",
        )
        codigo_ibge = st.text_input("Código IBGE *", value=(editing or {}).get("codigo_ibge", ""))

        c1, c2 = st.columns(2)
        submitted = c1.form_submit_button("Salvar", type="primary", use_container_width=True)
        cancelled = c2.form_submit_button("Cancelar", use_container_width=True)

    if cancelled:
        st.session_state.pop("city_editing", None)
        st.rerun()

    if submitted:
        try:
            save_city(
                store,
                {"nome": nome, "estado_id": estado_id, "codigo_ibge": codigo_ibge},
                city_id=editing["id"] if editing else None,
            )
        except (ValidationError, RecordStoreError) as e:
            st.error(f"Erro ao salvar: {e}")
        else:
            st.session_state.pop("city_editing", None)
            st.toast("Cidade salva com sucesso!")
            st.rerun()

# ============================================================
# Lista
# ============================================================

st.caption(f"{len(cities)} cidade(s) cadastrada(s)")

for city in cities:
    estado = city.get("estados") or {}
    prefeituras = city.get("prefeituras") or []

    with st.container(border=True):
        info, actions = st.columns([3, 2], vertical_alignment="center")

        with info:
            st.markdown(f"**{city['nome']}** {'🟢 Ativa' if city.get('ativo') else '⚪ Inativa'}")
            st.caption(
                f"{estado.get('nome', '')} ({estado.get('uf', '')}) • IBGE: {city.get('codigo_ibge') or ''} • "
                f"{len(prefeituras)} prefeitura(s)"
            )

        with actions:
            a1, a2, a3 = st.columns(3)
            if a1.button("Editar", key=f"edit_{city['id']}", use_container_width=True):
                st.session_state["city_editing"] = city
                st.rerun()
            if a2.button("Desativar" if city.get("ativo") else "Ativar", key=f"toggle_{city['id']}", use_container_width=True):
                try:
                    toggle_active(store, CITY_TABLE, city)
                except RecordStoreError as e:
                    st.error(f"Erro ao alterar status: {e}")
                else:
                    st.rerun()
            if a3.button("Excluir", key=f"del_{city['id']}", use_container_width=True):
                request_confirmation(f"del_city_{city['id']}")
                st.rerun()

        if confirm_action(f"del_city_{city['id']}", f"Tem certeza que deseja excluir a cidade {city['nome']}?"):
            try:
                delete_city(store, city["id"])
            except RecordStoreError as e:
                st.error(f"Erro ao excluir: {e}")
            else:
                st.toast("Cidade excluída.")
                st.rerun()
