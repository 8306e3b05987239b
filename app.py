import streamlit as st

from cidadao.errors import AuthenticationError, RecordStoreError
from ui.session import bootstrap, current_session, login

bootstrap("Login")

# já logado: direto para o dashboard
if current_session() is not None:
    st.switch_page("pages/1_Dashboard.py")

_, col, _ = st.columns([1, 1.2, 1])

with col:
    st.title("🏛️ Cidadão Ativo")
    st.caption("Painel Administrativo - Prefeituras")

    with st.form("login", border=True):
        email = st.text_input("Email", placeholder="Email da prefeitura")
        password = st.text_input("Senha", type="password", placeholder="Senha")
        submitted = st.form_submit_button("Entrar no Painel", type="primary", use_container_width=True)

    if submitted:
        try:
            with st.spinner("Entrando..."):
                login(email, password)
        except (AuthenticationError, RecordStoreError) as e:
            st.error(str(e) or "Erro no login")
        else:
            st.switch_page("pages/1_Dashboard.py")

    st.caption("Acesso para administradores de prefeituras")
