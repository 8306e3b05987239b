import streamlit as st

from cidadao.db import get_store
from cidadao.errors import RecordStoreError
from cidadao.occurrences import TABLE, dashboard_counts
from ui.session import bootstrap, require_session
from ui.sidebar import render_sidebar_menu

bootstrap("Dashboard")
ctx = require_session()
render_sidebar_menu(ctx, "Dashboard")

st.title("Dashboard")
st.caption("Visão geral das ocorrências")

try:
    with st.spinner("Carregando..."):
        rows = get_store().select(TABLE, "status")
except RecordStoreError as e:
    st.error(f"Erro ao carregar ocorrências: {e}")
    rows = []

stats = dashboard_counts(rows)

c1, c2, c3 = st.columns(3)
c1.metric("Total de Ocorrências", f"{stats['total']:,}")
c2.metric("Pendentes", f"{stats['pendentes']:,}")
c3.metric("Resolvidas", f"{stats['resolvidas']:,}")

st.divider()

with st.container(border=True):
    st.subheader(f"Bem-vindo, {ctx.display_name}!")
    if ctx.is_super_admin:
        st.write("Você tem acesso a todas as prefeituras, cidades e administradores.")
    else:
        st.write(
            f"Aqui você pode gerenciar as ocorrências reportadas pelos cidadãos de "
            f"**{ctx.tenant.prefeitura_nome or 'sua prefeitura'}**"
            + (f" ({ctx.tenant.cidade})." if ctx.tenant.cidade else ".")
        )
