from __future__ import annotations
import streamlit as st
import html
from typing import Optional, Dict, Any, List
from datetime import date
import streamlit.components.v1 as components
import plotly.graph_objects as go

from cidadao.models import status_label, status_color
from cidadao.occurrences import category_name, citizen_name, parse_ts
from cidadao.reports import default_period

# ============================================================
# Helpers: estado compartilhado entre páginas
# ============================================================

PERIOD_KEYS = {
    "date_start": "period_date_start",
    "date_end": "period_date_end",
}

def ensure_shared_period():
    st.session_state.setdefault("shared_filters", {})
    start, end = default_period(date.today())
    st.session_state["shared_filters"].setdefault("period", {
        "date_start": start,
        "date_end": end,
    })
    return st.session_state["shared_filters"]["period"]

def apply_shared_period_to_widgets():
    """SEMPRE aplica shared->widgets antes de criar os inputs."""
    p = ensure_shared_period()
    st.session_state[PERIOD_KEYS["date_start"]] = p["date_start"]
    st.session_state[PERIOD_KEYS["date_end"]] = p["date_end"]

def sync_shared_period_from_widgets():
    """Callback: widgets -> shared."""
    ensure_shared_period()
    st.session_state["shared_filters"]["period"] = {
        "date_start": st.session_state[PERIOD_KEYS["date_start"]],
        "date_end": st.session_state[PERIOD_KEYS["date_end"]],
    }

def init_state():
    st.session_state.setdefault("shared_filters", {})
    ensure_shared_period()

# ============================================================
# Confirmação de ações destrutivas (substitui o confirm() do navegador)
# ============================================================

def request_confirmation(key: str) -> None:
    st.session_state["pending_confirmation"] = key

def confirm_action(key: str, message: str) -> bool:
    """
    Mostra o aviso + Confirmar/Cancelar quando ``request_confirmation(key)``
    foi chamado no rerun anterior. Devolve True só no clique de Confirmar.
    """
    if st.session_state.get("pending_confirmation") != key:
        return False

    st.warning(message)
    c1, c2 = st.columns(2)
    if c1.button("Confirmar", key=f"{key}_yes", type="primary", use_container_width=True):
        st.session_state.pop("pending_confirmation", None)
        return True
    if c2.button("Cancelar", key=f"{key}_no", use_container_width=True):
        st.session_state.pop("pending_confirmation", None)
        st.rerun()
    return False

# ============================================================
# Gráficos
# ============================================================

def apply_plot_theme(
    fig: go.Figure,
    *,
    height: Optional[int] = None,
    margin: Optional[Dict[str, int]] = None,
    legend: Optional[Dict[str, Any]] = None,
    x_title: Optional[str] = None,
    y_title: Optional[str] = None,
) -> go.Figure:
    """Tema padrão (clean) dos gráficos Plotly do painel."""
    if margin is None:
        margin = dict(l=30, r=30, t=30, b=30)

    base_legend = dict(
        bgcolor="rgba(255,255,255,0.75)",
        bordercolor="rgba(0,0,0,0.08)",
        borderwidth=1,
        font=dict(size=11),
        title_text=None,
    )
    if legend:
        base_legend.update(legend)

    fig.update_layout(
        template="simple_white",
        margin=margin,
        font=dict(family="Inter, system-ui, -apple-system, Segoe UI, Roboto, Arial", size=12, color="#223"),
        legend=base_legend,
    )
    if height is not None:
        fig.update_layout(height=height)

    # update_xaxes/update_yaxes (evita keys antigas tipo titlefont)
    for update, title in ((fig.update_xaxes, x_title), (fig.update_yaxes, y_title)):
        update(
            title_text=title,
            showgrid=True,
            gridcolor="rgba(0,0,0,0.06)",
            zeroline=False,
            ticks="outside",
        )

    return fig

# ============================================================
# Tabela de ocorrências
# ============================================================

def status_badge(status: str) -> str:
    """Badge (cápsula) com a cor do status."""
    bg = status_color(status)
    return f"<span class='badge' style='background:{bg};'>{html.escape(status_label(status))}</span>"

def render_occurrence_table(rows: List[Dict[str, Any]], height: int = 600) -> None:
    """Tabela de ocorrências via components.html (iframe)."""
    css = """
    <style>
      body { font-family: Inter, system-ui, Arial; margin: 0; }
      .occ-table { width: 100%; border-collapse: collapse; }
      .occ-table th {
        text-align: left; font-size: 13px; color:#444; padding: 10px 12px;
        border-bottom:1px solid #eee; position: sticky; top: 0; background: white; z-index: 1;
      }
      .occ-table td {
        vertical-align: top; padding: 12px; border-bottom:1px solid #f0f0f0;
        font-size: 14px; color:#222;
      }
      .muted { color:#666; font-size: 12px; margin-top: 2px; }
      .line { margin: 0; line-height: 1.3; }
      .badge {
        display:inline-block; padding: 4px 10px; border-radius: 999px; color:#fff;
        font-size: 12px; font-weight: 600; width: fit-content;
      }
      .cell-stack { display:flex; flex-direction:column; gap:4px; }
      .row-hover:hover td { background: #fafafa; }
    </style>
    """

    rows_html = []
    for r in rows:
        created = parse_ts(r.get("created_at"))
        date_str = created.strftime("%d/%m/%Y") if created else ""
        time_str = created.strftime("%H:%M") if created else ""

        titulo = html.escape(str(r.get("titulo") or ""))
        descricao = html.escape(str(r.get("descricao") or ""))
        cidadao = html.escape(citizen_name(r) or "N/A")
        categoria = html.escape(category_name(r) or "Sem categoria")
        endereco = html.escape(str(r.get("endereco") or ""))

        rows_html.append(
            f"""
            <tr class="row-hover">
              <td>
                <div class="cell-stack">
                  <b>#{html.escape(str(r.get("protocolo") or ""))}</b>
                  <div class="muted">{html.escape(date_str)} {html.escape(time_str)}</div>
                </div>
              </td>
              <td>
                <p class="line"><b>{titulo}</b></p>
                <p class="line muted">{descricao}</p>
              </td>
              <td>{status_badge(r.get("status") or "")}</td>
              <td>{categoria}</td>
              <td>{endereco}</td>
              <td>{cidadao}</td>
            </tr>
            """
        )

    table_html = f"""
    <html>
      <head>{css}</head>
      <body>
        <table class="occ-table">
          <thead>
            <tr>
              <th>Protocolo</th>
              <th>Ocorrência</th>
              <th>Status</th>
              <th>Categoria</th>
              <th>Endereço</th>
              <th>Cidadão</th>
            </tr>
          </thead>
          <tbody>
            {''.join(rows_html)}
          </tbody>
        </table>
      </body>
    </html>
    """
    components.html(table_html, height=height, scrolling=True)
