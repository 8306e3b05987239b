import streamlit as st

from cidadao.auth import SessionContext
from cidadao.models import role_label
from ui.session import LOGIN_PAGE, end_session

PAGES = {
    "Dashboard": "pages/1_Dashboard.py",
    "Ocorrências": "pages/2_Ocorrencias.py",
    "Mapa": "pages/3_Mapa.py",
    "Relatórios": "pages/4_Relatorios.py",
}

# só super admin enxerga os cadastros
ADMIN_PAGES = {
    "Cidades": "pages/5_Cidades.py",
    "Prefeituras": "pages/6_Prefeituras.py",
    "Administradores": "pages/7_Administradores.py",
}


def pages_for(ctx: SessionContext) -> dict:
    pages = dict(PAGES)
    if ctx.is_super_admin:
        pages.update(ADMIN_PAGES)
    return pages


def _on_nav_change():
    st.session_state["nav_target"] = st.session_state["nav_selected"]


def render_sidebar_menu(ctx: SessionContext, current: str):
    pages = pages_for(ctx)

    target = st.session_state.pop("nav_target", None)
    if target and target != current and target in pages:
        st.switch_page(pages[target])

    st.session_state["current_page"] = current
    # radio sempre reflete a página aberta (inclusive após switch_page/login)
    st.session_state["nav_selected"] = current if current in pages else next(iter(pages))

    with st.sidebar:
        st.sidebar.title("🏛️ Cidadão Ativo")
        st.caption(ctx.tenant.prefeitura_nome or "Todas as prefeituras")

        st.radio(
            "Ir para:",
            list(pages.keys()),
            key="nav_selected",
            on_change=_on_nav_change,
        )

        st.divider()
        st.write(f"**{ctx.display_name}**")
        st.caption(f"{ctx.email} • {ctx.tenant.cargo or role_label(ctx.profile.tipo_admin)}")

        if st.button("Sair", use_container_width=True):
            end_session()
            st.switch_page(LOGIN_PAGE)
