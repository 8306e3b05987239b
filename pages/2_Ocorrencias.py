import streamlit as st

from cidadao.db import get_store
from cidadao.errors import RecordStoreError, ValidationError
from cidadao.helpers import (
    PERIOD_KEYS,
    apply_shared_period_to_widgets,
    confirm_action,
    init_state,
    render_occurrence_table,
    request_confirmation,
    sync_shared_period_from_widgets,
)
from cidadao.models import ALL, STATUSES, STATUS_ICONS, status_label
from cidadao.occurrences import (
    fetch_categories,
    fetch_occurrences,
    filter_occurrences,
    merge_status,
    update_status,
)
from ui.session import bootstrap, require_session
from ui.sidebar import render_sidebar_menu

bootstrap("Ocorrências")
ctx = require_session()

init_state()
apply_shared_period_to_widgets()
render_sidebar_menu(ctx, "Ocorrências")

st.header("Ocorrências")


@st.cache_data(ttl=300)
def category_options(_store) -> list[str]:
    return fetch_categories(_store)


store = get_store()

# ----------------------------
# A) Carga (uma vez por sessão; "Atualizar" refaz a consulta)
# ----------------------------
if "occ_rows" not in st.session_state or st.session_state.get("occ_reload"):
    st.session_state.pop("occ_reload", None)
    try:
        with st.spinner("Carregando ocorrências..."):
            st.session_state["occ_rows"] = fetch_occurrences(store)
    except RecordStoreError as e:
        st.error(f"Erro ao carregar ocorrências: {e}")
        st.session_state["occ_rows"] = []

try:
    categories = category_options(store)
except RecordStoreError as e:
    st.warning(f"Não foi possível carregar as categorias: {e}")
    categories = []

# ----------------------------
# B) Filtros
# ----------------------------
with st.container(border=True):
    f_status, f_cat, f_start, f_end, f_btn = st.columns([1.3, 1.3, 1, 1, 0.8], vertical_alignment="bottom")

    with f_status:
        status = st.selectbox(
            "Status",
            [ALL] + STATUSES,
            format_func=lambda s: "Todas" if s == ALL else f"{STATUS_ICONS[s]} {status_label(s)}",
            key="occ_status",
        )
    with f_cat:
        category = st.selectbox(
            "Categoria",
            [ALL] + categories,
            format_func=lambda c: "Todas as categorias" if c == ALL else c,
            key="occ_category",
        )
    with f_start:
        start_date = st.date_input(
            "De",
            key=PERIOD_KEYS["date_start"],
            on_change=sync_shared_period_from_widgets,
            format="DD/MM/YYYY",
        )
    with f_end:
        end_date = st.date_input(
            "Até",
            key=PERIOD_KEYS["date_end"],
            on_change=sync_shared_period_from_widgets,
            format="DD/MM/YYYY",
        )
    with f_btn:
        if st.button("Atualizar", use_container_width=True):
            st.session_state["occ_reload"] = True
            st.rerun()

    search = st.text_input(
        "Buscar",
        placeholder="Protocolo, título, descrição, endereço ou cidadão",
        key="occ_search",
    ).strip()

rows = filter_occurrences(
    st.session_state["occ_rows"],
    status=status,
    category=category,
    start=start_date,
    end=end_date,
    search=search,
)

st.caption(f"{len(rows)} ocorrência(s) encontrada(s)")

if not rows:
    st.info("Nenhuma ocorrência encontrada para os filtros.")
    st.stop()

render_occurrence_table(rows)

# ----------------------------
# C) Triagem: troca de status
# ----------------------------
st.divider()
st.subheader("Alterar status")

by_id = {r["id"]: r for r in rows}

c1, c2, c3 = st.columns([2.4, 1.2, 0.8], vertical_alignment="bottom")
with c1:
    occ_id = st.selectbox(
        "Ocorrência",
        list(by_id.keys()),
        format_func=lambda i: f"#{by_id[i].get('protocolo')} – {by_id[i].get('titulo')} ({status_label(by_id[i].get('status'))})",
        key="occ_target",
    )
with c2:
    new_status = st.selectbox("Novo status", STATUSES, format_func=status_label, key="occ_new_status")
with c3:
    if st.button("Alterar", type="primary", use_container_width=True):
        st.session_state["occ_pending"] = {"id": occ_id, "status": new_status}
        request_confirmation("occ_status")

pending = st.session_state.get("occ_pending")
if pending and confirm_action("occ_status", f"Alterar status para: {status_label(pending['status'])}?"):
    st.session_state.pop("occ_pending", None)
    try:
        update_status(store, pending["id"], pending["status"])
    except (RecordStoreError, ValidationError) as e:
        st.error(f"❌ Erro: {e}")
    else:
        st.session_state["occ_rows"] = merge_status(st.session_state["occ_rows"], pending["id"], pending["status"])
        st.toast(f"✅ Status alterado para: {status_label(pending['status'])}")
        st.rerun()
