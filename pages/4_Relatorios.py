import streamlit as st
import pandas as pd
import plotly.express as px

from cidadao.db import get_store
from cidadao.errors import RecordStoreError
from cidadao.helpers import init_state, apply_shared_period_to_widgets, sync_shared_period_from_widgets, PERIOD_KEYS
from cidadao.helpers import apply_plot_theme
from cidadao.models import ALL, STATUSES, STATUS_COLORS, status_label
from cidadao.occurrences import fetch_categories, fetch_occurrences, filter_occurrences
from cidadao.reports import build_report_csv, report_filename, report_stats
from ui.session import bootstrap, require_session
from ui.sidebar import render_sidebar_menu

bootstrap("Relatórios")
ctx = require_session()

init_state()
apply_shared_period_to_widgets()
render_sidebar_menu(ctx, "Relatórios")

# ============================================================
# PAGE: Relatórios (filtros em cima + gráficos embaixo)
# ============================================================

st.header("Relatórios Detalhados")
st.caption("Análise completa das ocorrências com filtros personalizados")

store = get_store()

with st.container(border=True):
    col_start, col_end, col_status, col_cat = st.columns(4, vertical_alignment="bottom")

    with col_start:
        start_date = st.date_input(
            "Data inicial",
            key=PERIOD_KEYS["date_start"],
            on_change=sync_shared_period_from_widgets,
            format="DD/MM/YYYY",
        )
    with col_end:
        end_date = st.date_input(
            "Data final",
            key=PERIOD_KEYS["date_end"],
            on_change=sync_shared_period_from_widgets,
            format="DD/MM/YYYY",
        )
    with col_status:
        status = st.selectbox(
            "Status",
            [ALL] + STATUSES,
            format_func=lambda s: "Todos os Status" if s == ALL else status_label(s),
            key="rel_status",
        )
    with col_cat:
        try:
            categories = fetch_categories(store)
        except RecordStoreError as e:
            st.warning(f"Não foi possível carregar as categorias: {e}")
            categories = []
        category = st.selectbox(
            "Categoria",
            [ALL] + categories,
            format_func=lambda c: "Todas as Categorias" if c == ALL else c,
            key="rel_category",
        )

if start_date > end_date:
    st.warning("A data inicial é posterior à data final.")
    st.stop()

try:
    with st.spinner("Gerando relatório..."):
        rows = fetch_occurrences(store, start=start_date, end=end_date, status=status)
except RecordStoreError as e:
    st.error(f"Erro ao gerar relatório: {e}")
    st.stop()

# categoria é filtrada em memória (nome vem do relacionamento)
rows = filter_occurrences(rows, category=category)
stats = report_stats(rows)

st.download_button(
    "⬇️ Exportar CSV",
    data=build_report_csv(stats, rows, start_date, end_date).encode("utf-8-sig"),
    file_name=report_filename(start_date, end_date),
    mime="text/csv",
)

# --- KPIs ---
c1, c2, c3, c4 = st.columns(4)
c1.metric("Total no Período", f"{stats.total:,}")
c2.metric("Resolvidas", f"{stats.resolved:,}")
c3.metric("Taxa de Resolução", f"{stats.resolution_rate}%")
c4.metric(
    "Tempo Médio de Resolução",
    f"{stats.avg_resolution_days} dias" if stats.avg_resolution_days is not None else "—",
)

st.divider()

colA, colB = st.columns(2)

with colA:
    st.subheader("Distribuição por Status")
    if not stats.status_distribution:
        st.info("Sem dados para o período.")
    else:
        df_status = pd.DataFrame(stats.status_distribution, columns=["status", "total"])
        df_status["rotulo"] = df_status["status"].map(status_label)
        fig = px.pie(
            df_status,
            names="rotulo",
            values="total",
            color="status",
            color_discrete_map=STATUS_COLORS,
            hole=0.4,
        )
        st.plotly_chart(apply_plot_theme(fig, height=340), use_container_width=True)

with colB:
    st.subheader("Categorias Mais Reportadas")
    if not stats.top_categories:
        st.info("Sem dados para o período.")
    else:
        df_cat = pd.DataFrame(stats.top_categories, columns=["categoria", "total"])
        fig = px.bar(df_cat, x="total", y="categoria", orientation="h")
        fig.update_yaxes(autorange="reversed")
        st.plotly_chart(apply_plot_theme(fig, height=340, x_title="Ocorrências", y_title=""), use_container_width=True)

if stats.daily_created:
    st.subheader("Ocorrências Criadas por Dia")
    df_day = pd.DataFrame(stats.daily_created, columns=["dia", "total"])
    df_day["dia"] = pd.to_datetime(df_day["dia"])
    fig = px.bar(df_day, x="dia", y="total")
    st.plotly_chart(apply_plot_theme(fig, height=300, x_title="", y_title="Ocorrências"), use_container_width=True)

st.subheader("Locais com Mais Ocorrências")
if not stats.top_addresses:
    st.info("Sem dados para o período.")
else:
    st.dataframe(
        pd.DataFrame(stats.top_addresses, columns=["Endereço/Área", "Total"]),
        use_container_width=True,
        hide_index=True,
    )

st.caption(f"{stats.total:,} ocorrência(s) no período {start_date:%d/%m/%Y} a {end_date:%d/%m/%Y}")
