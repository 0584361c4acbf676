import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from checklists.data import prepare_context
from checklists.dates import GRAINS
from checklists.filters import FILTER_FIELDS, sorted_facet_values
from checklists.metrics_debug import compute_debug
from checklists.metrics_overview import GRAIN_TITLES, compute_overview
from checklists.metrics_systems import compute_systems_matrix
from checklists.session import ChecklistSession, StatusMessage

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card-caption {color: #6b7280;font-size: 0.8rem;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, caption: Optional[str] = None):
    container = st.container(border=True)
    with container:
        st.markdown(f"**{title}**")
        if caption:
            st.markdown(f"<div class='card-caption'>{caption}</div>", unsafe_allow_html=True)
        yield container


def format_filter_summary(selections: Dict[str, List[str]]) -> str:
    chips = [f"{field}: {', '.join(v or '<empty>' for v in vals)}" for field, vals in selections.items() if vals]
    if not chips:
        chips = ["Filters: none"]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def show_status(status: StatusMessage):
    if status.tone == "error":
        st.error(status.text)
    elif status.tone == "success":
        st.success(status.text)
    else:
        st.info(status.text)


def reset_facet_widgets():
    for field in FILTER_FIELDS:
        st.session_state.pop(f"facet_{field}", None)


def get_session() -> ChecklistSession:
    if "checklist_session" not in st.session_state:
        st.session_state["checklist_session"] = ChecklistSession()
    return st.session_state["checklist_session"]


# ---------- UI setup ----------
st.set_page_config(page_title="Checklist Completion Dashboard", layout="wide")
inject_base_styles()
st.title("Checklist Completion Dashboard")
st.caption("Upload a checklist extract and a systems list to explore completion.")

session = get_session()

# ----- Upload + file list -----
uploaded = st.file_uploader(
    "Drop your data file and a systems list (.xlsx / .xls, max 2)",
    type=["xlsx", "xls"],
    accept_multiple_files=True,
    key=f"uploader_{st.session_state.get('_uploader_gen', 0)}",
)
if uploaded:
    session.ingest_uploads([(f.name, f.getvalue()) for f in uploaded])
    reset_facet_widgets()
    st.session_state["_uploader_gen"] = st.session_state.get("_uploader_gen", 0) + 1
    st.rerun()

for item in session.file_items():
    c1, c2 = st.columns([9, 1])
    c1.markdown(f"**{item['name']}**  \n{item['size']} • {item['label']}")
    if c2.button("Remove", key=f"remove_{item['role']}"):
        session.remove(item["role"])  # type: ignore[arg-type]
        reset_facet_widgets()
        st.rerun()

show_status(session.status)
if not session.ready:
    st.stop()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Dashboard", "Preview", "Data Quality"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    if st.button("Clear all"):
        session.clear_filters()
        reset_facet_widgets()
    for field in FILTER_FIELDS:
        options = sorted_facet_values(session.facets.get(field, []))
        current = [v for v in session.filters.selections.get(field, []) if v in options]
        chosen = st.multiselect(
            field,
            options=options,
            default=current,
            format_func=lambda v: v or "<empty>",
            key=f"facet_{field}",
        )
        session.set_selection(field, chosen)

    st.markdown("---")
    grain = st.radio(
        "Time grain",
        list(GRAINS),
        index=list(GRAINS).index(session.filters.grain),
        format_func=lambda g: GRAIN_TITLES[g],
        horizontal=True,
    )
    session.set_grain(grain)

filters = session.filters
ctx = prepare_context(filters, session.data_context())
filtered_rows: pd.DataFrame = ctx["filtered_rows"]
summary_html = format_filter_summary(filters.selections)

if nav_choice == "Preview":
    render_page_header("Preview", "Checklists / Preview", summary_html, export_df=filtered_rows, export_name="rows.csv")
    st.markdown(f"{len(session.all_rows)} row(s) • {len(filtered_rows)} after filters")
    st.dataframe(ctx["preview"], use_container_width=True, hide_index=True)

elif nav_choice == "Data Quality":
    render_page_header("Data Quality", "Checklists / Data Quality", summary_html)
    dbg = compute_debug(filters, ctx)
    st.json(dbg["row_counts"])
    st.json(dbg["date_checks"])
    if dbg["unparseable_samples"]:
        st.markdown("**Unparseable Actual values**")
        st.write(dbg["unparseable_samples"])
    if dbg["unmatched_systems"]:
        st.markdown("**Systems without a description**")
        st.dataframe(pd.DataFrame(dbg["unmatched_systems"]), hide_index=True)
    st.markdown("**Facet sizes**")
    st.json(dbg["facet_sizes"])

else:
    overview = compute_overview(filters, ctx)
    systems = compute_systems_matrix(filters, ctx)
    matrix_df = pd.DataFrame(systems["table"], columns=systems["headers"])
    render_page_header("Dashboard", "Checklists / Dashboard", summary_html, export_df=matrix_df, export_name="systems-matrix.csv")
    charts = overview["charts"]

    c1, c2 = st.columns(2)
    with c1:
        with card(overview["actual"]["title"], overview["actual"]["caption"]):
            if "actual" in charts:
                st.vega_lite_chart(charts["actual"], use_container_width=True)
    with c2:
        with card("Actual (UTC +8) - Cumulative", overview["actual_cumulative"]["caption"]):
            if "actual_cumulative" in charts:
                st.vega_lite_chart(charts["actual_cumulative"], use_container_width=True)

    c1, c2, c3 = st.columns(3)
    with c1:
        with card("Status", overview["captions"]["status"]):
            if "status" in charts:
                st.vega_lite_chart(charts["status"], use_container_width=True)
    with c2:
        with card("Cert Disc", overview["captions"]["disc"]):
            if "disc" in charts:
                st.vega_lite_chart(charts["disc"], use_container_width=True)
    with c3:
        with card(f"RespID (top {filters.top_n})", overview["captions"]["resp"]):
            if "resp" in charts:
                st.vega_lite_chart(charts["resp"], use_container_width=True)

    with card("Systems completion"):
        if matrix_df.empty:
            st.caption(systems["empty_message"])
        else:
            st.dataframe(matrix_df, use_container_width=True, hide_index=True)
