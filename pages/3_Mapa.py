import streamlit as st
import streamlit.components.v1 as components

from cidadao.db import get_store
from cidadao.errors import RecordStoreError
from cidadao.helpers import status_badge
from cidadao.mapa import (
    DEFAULT_PERIOD,
    PERIOD_OPTIONS,
    fetch_map_occurrences,
    google_maps_url,
    osm_embed_url,
    to_map_frame,
    valid_points,
)
from cidadao.models import ALL, STATUSES, STATUS_ICONS, status_label
from cidadao.occurrences import category_name, citizen_name, fetch_categories, filter_occurrences, parse_ts
from ui.session import bootstrap, require_session
from ui.sidebar import render_sidebar_menu

bootstrap("Mapa")
ctx = require_session()
render_sidebar_menu(ctx, "Mapa")

st.header("Mapa de Ocorrências")

store = get_store()

with st.container(border=True):
    f1, f2, f3 = st.columns(3)
    with f1:
        status = st.selectbox(
            "Status",
            [ALL] + STATUSES,
            format_func=lambda s: "Todos os Status" if s == ALL else f"{STATUS_ICONS[s]} {status_label(s)}",
            key="map_status",
        )
    with f2:
        try:
            categories = fetch_categories(store)
        except RecordStoreError as e:
            st.warning(f"Não foi possível carregar as categorias: {e}")
            categories = []
        category = st.selectbox(
            "Categoria",
            [ALL] + categories,
            format_func=lambda c: "Todas as Categorias" if c == ALL else c,
            key="map_category",
        )
    with f3:
        days = st.selectbox(
            "Período",
            list(PERIOD_OPTIONS.keys()),
            index=list(PERIOD_OPTIONS.keys()).index(DEFAULT_PERIOD),
            format_func=PERIOD_OPTIONS.get,
            key="map_days",
        )

try:
    with st.spinner("Carregando ocorrências..."):
        points = valid_points(fetch_map_occurrences(store, days))
except RecordStoreError as e:
    st.error(f"Erro ao carregar dados do mapa: {e}")
    st.stop()

points = filter_occurrences(points, status=status, category=category)

m1, m2 = st.columns(2)
m1.metric("Ocorrências no mapa", len(points))
m2.metric("Resolvidas", sum(1 for p in points if p.get("status") == "resolvido"))

if not points:
    st.info("Nenhuma ocorrência com localização para os filtros selecionados.")
    st.stop()

st.map(to_map_frame(points), latitude="lat", longitude="lon", color="color", size=30)

st.caption(" ".join(f"{STATUS_ICONS[s]} {status_label(s)}" for s in STATUSES))

st.divider()

# ----------------------------
# Detalhes
# ----------------------------
left, right = st.columns([1, 1.4])

by_id = {p["id"]: p for p in points}

with left:
    st.subheader("Ocorrências")
    selected = st.radio(
        "Selecione para ver detalhes",
        list(by_id.keys()),
        format_func=lambda i: f"{STATUS_ICONS.get(by_id[i].get('status'), '⚪')} #{by_id[i].get('protocolo')} – {by_id[i].get('titulo')}",
        key="map_selected",
        label_visibility="collapsed",
    )

with right:
    occ = by_id[selected]
    created = parse_ts(occ.get("created_at"))
    with st.container(border=True):
        st.subheader(f"Ocorrência #{occ.get('protocolo')}")
        st.markdown(f"**{occ.get('titulo') or ''}**")
        st.write(occ.get("descricao") or "")
        st.markdown(f"Status: {status_badge(occ.get('status') or '')}", unsafe_allow_html=True)
        st.write(f"Categoria: {category_name(occ) or 'N/A'}")
        st.write(f"Cidadão: {citizen_name(occ) or 'N/A'}")
        st.write(f"Data: {created.strftime('%d/%m/%Y') if created else 'N/A'}")
        st.write(f"Endereço: {occ.get('endereco') or ''}")
        st.caption(f"📍 {occ['latitude']:.6f}, {occ['longitude']:.6f}")
        st.link_button("Abrir no Google Maps", google_maps_url(occ["latitude"], occ["longitude"]))

    components.iframe(osm_embed_url(occ["latitude"], occ["longitude"], delta=0.005), height=320)
