"""
Streamlit BioClock dashboard.
Tabs: Active (timer), Logbook, Tolerance, Substances (with interactions). Oracle in the sidebar.
Talks to the API only, run with: streamlit run bioclock/dashboard/streamlit_app.py
"""

from datetime import datetime

import httpx
import pandas as pd
import plotly.graph_objects as go
import streamlit as st
import os

# --- Config ---
API_BASE = os.getenv("BIOCLOCK_API_URL", "http://localhost:5000")
TICK_INTERVAL_SEC = int(os.getenv("BIOCLOCK_TICK_INTERVAL_SEC", "5"))
DOSE_UNITS = ["mg", "ug", "g", "ml", "tabs"]

STAGE_COLORS = {
    "Come Up": "#4ade80",
    "Peak/Plateau": "#f472b6",
    "Comedown": "#93c5fd",
    "Afterglow/Sober": "#6b7280",
}

STATUS_COLORS = {
    "Dangerous": "#ef4444",
    "Unsafe": "#f97316",
    "Caution": "#facc15",
    "Low Risk & Synergy": "#4ade80",
    "Low Risk & No Synergy": "#93c5fd",
    "Low Risk & Decrease": "#a5b4fc",
}


def api_get(path: str, params: dict | None = None) -> dict | list:
    try:
        r = httpx.get(f"{API_BASE}{path}", params=params, timeout=10)
        r.raise_for_status()
        return r.json()
    except Exception as e:
        st.error(f"API Error: {e}")
        return {}


def api_post(path: str, data: dict) -> dict:
    try:
        r = httpx.post(f"{API_BASE}{path}", json=data, timeout=10)
        r.raise_for_status()
        return r.json()
    except Exception as e:
        st.error(f"API Error: {e}")
        return {}


def api_delete(path: str) -> dict:
    try:
        r = httpx.delete(f"{API_BASE}{path}", timeout=10)
        r.raise_for_status()
        return r.json()
    except Exception as e:
        st.error(f"API Error: {e}")
        return {}


def fmt_elapsed(minutes: float) -> str:
    h, m = divmod(int(minutes), 60)
    return f"T+ {h}h {m:02d}m" if h else f"T+ {m}m"


# --- Page Config ---
st.set_page_config(
    page_title="BioClock",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .block-container { padding-top: 0.5rem; max-width: 100%; }
    .stButton > button { min-height: 48px; border-radius: 10px; }
</style>
""", unsafe_allow_html=True)

# =========================================================
# SIDEBAR — Oracle
# =========================================================
with st.sidebar:
    st.header("Oracle")
    if "oracle_phrase" not in st.session_state:
        st.session_state.oracle_phrase = None
    if st.button("Consult", use_container_width=True):
        r = api_get("/api/oracle", {"exclude": st.session_state.oracle_phrase or ""})
        if isinstance(r, dict) and r.get("phrase"):
            st.session_state.oracle_phrase = r["phrase"]
    if st.session_state.oracle_phrase:
        st.markdown(f"### *{st.session_state.oracle_phrase}*")
    st.divider()
    st.caption("Remember to drink water. You are loved.")

st.title("BioClock")
st.caption("Temporal metabolism tracker")

tab_active, tab_history, tab_tolerance, tab_info = st.tabs(
    ["Active", "Logbook", "Tolerance", "Substances"]
)

substances = api_get("/api/substances")
substances = substances if isinstance(substances, list) else []
name_by_key = {s["key"]: s["name"] for s in substances}


# =========================================================
# TAB: Active (new session + live timers)
# =========================================================
with tab_active:
    st.subheader("New Session")
    sel_key = st.selectbox(
        "Substance", [""] + list(name_by_key),
        format_func=lambda k: name_by_key.get(k, "-- Select Substance --"),
    )
    info = api_get(f"/api/substances/{sel_key}") if sel_key else {}
    routes = info.get("routes", ["Oral"]) if isinstance(info, dict) and info else ["Oral"]

    c1, c2, c3 = st.columns(3)
    with c1:
        route = st.selectbox("Route", routes)
    with c2:
        quantity = st.number_input("Dose", min_value=0.0, step=1.0, value=0.0)
    with c3:
        unit = st.selectbox("Unit", DOSE_UNITS)

    if st.button("Start Timer", type="primary", use_container_width=True, disabled=not sel_key):
        r = api_post("/api/doses", {
            "substance": name_by_key.get(sel_key, sel_key),
            "route": route,
            "quantity": f"{quantity:g}" if quantity else "0",
            "unit": unit,
            "doseTime": datetime.now().astimezone().isoformat(),
        })
        if r.get("id"):
            st.success(f"{r['substance']} logged")
            st.rerun()

    if isinstance(info, dict) and info:
        ic1, ic2, ic3 = st.columns(3)
        ic1.caption(f"Onset: {info.get('onset')}")
        ic2.caption(f"Duration: {info.get('duration')}")
        ic3.markdown(f"[Erowid]({info.get('experiences_url')})")

    st.divider()
    st.subheader("Currently Active")

    @st.fragment(run_every=TICK_INTERVAL_SEC)
    def active_doses():
        data = api_get("/api/timeline", {"active_only": True})
        doses = data.get("doses", []) if isinstance(data, dict) else []
        if not doses:
            st.info("No active compounds detected.")
            return
        for dose in doses:
            phase = dose["phase"]
            pct = phase["percent_complete"]
            color = STAGE_COLORS.get(phase["stage"], "#9ca3af")
            hc1, hc2 = st.columns([4, 1])
            with hc1:
                st.markdown(
                    f"**{dose['substance']}** · {dose['route']} · "
                    f"{dose['quantity']}{dose['unit']} · "
                    f"<span style='color:{color}'>{phase['stage']}</span>",
                    unsafe_allow_html=True,
                )
            with hc2:
                if st.button("Remove", key=f"rm_active_{dose['id']}"):
                    api_delete(f"/api/doses/{dose['id']}")
                    st.rerun()
            st.progress(pct / 100, text=f"{fmt_elapsed(phase['elapsed_minutes'])} · {pct:.0f}%")

    active_doses()


# =========================================================
# TAB: Logbook
# =========================================================
with tab_history:
    hc1, hc2 = st.columns([4, 1])
    with hc1:
        st.subheader("Logbook")
    with hc2:
        if st.button("Clear All", use_container_width=True):
            api_delete("/api/doses")
            st.rerun()

    history = api_get("/api/doses")
    if isinstance(history, list) and history:
        df = pd.DataFrame(history)
        df["doseTime"] = pd.to_datetime(df["doseTime"], format="ISO8601", utc=True)
        df["dose"] = df["quantity"] + df["unit"]
        st.dataframe(
            df[["id", "substance", "route", "dose", "doseTime"]],
            use_container_width=True,
            hide_index=True,
        )
        rm_id = st.selectbox("Remove entry", [d["id"] for d in history],
                             format_func=lambda i: f"#{i}")
        if st.button("Remove", key="rm_history"):
            api_delete(f"/api/doses/{rm_id}")
            st.rerun()
    else:
        st.info("History is empty.")


# =========================================================
# TAB: Tolerance
# =========================================================
with tab_tolerance:
    tc1, tc2, tc3 = st.columns(3)
    with tc1:
        last_dose = st.number_input("Last dose (ug/mg)", min_value=0.0, value=100.0)
    with tc2:
        days = st.number_input("Days ago", min_value=0.0, value=1.0, step=1.0)
    with tc3:
        desired = st.number_input("Desired dose (ug/mg)", min_value=0.0, value=100.0)

    if days <= 0:
        st.warning("Days since the last dose must be greater than 0.")
    else:
        tol = api_get("/api/tolerance", {
            "desired_dose": desired, "days_since": days, "last_dose": last_dose,
        })
        if isinstance(tol, dict) and "equivalent_dose" in tol:
            st.metric(
                "You need to take",
                f"{tol['equivalent_dose']:.0f} ug/mg",
                delta=f"{tol['tolerance_pct']:.0f}% of baseline",
                delta_color="off",
            )
            st.caption(f"To feel the same effects as {desired:g} ug/mg.")

        curve = api_get("/api/tolerance/curve", {"desired_dose": desired})
        points = curve.get("points", []) if isinstance(curve, dict) else []
        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=[p["days"] for p in points],
            y=[p["equivalent_dose"] for p in points],
            mode="lines+markers",
            name="Equivalent dose",
            line=dict(color="#a855f7"),
        ))
        fig.add_vline(x=days, line_dash="dash", line_color="#4ade80")
        fig.update_layout(
            template="plotly_dark",
            height=320,
            margin=dict(l=40, r=20, t=30, b=35),
            xaxis_title="Days since last dose",
            yaxis_title="ug/mg",
        )
        st.plotly_chart(fig, use_container_width=True)
    st.caption("*Approximation based on standard tryptamine tolerance models.")


# =========================================================
# TAB: Substances
# =========================================================
with tab_info:
    query = st.text_input("Search")
    matches = api_get("/api/substances", {"q": query})
    for sub in matches if isinstance(matches, list) else []:
        with st.expander(sub["name"]):
            card = api_get(f"/api/substances/{sub['key']}")
            if not card:
                continue
            st.write(card.get("summary") or "No summary.")
            st.caption(
                f"Onset: {card['onset']} · Duration: {card['duration']} · "
                f"Resolved ({card['route']}): {card['onset_minutes']:.0f} / "
                f"{card['duration_minutes']:.0f} min"
            )
            st.caption("Routes: " + ", ".join(card.get("routes", [])))
            st.markdown(f"[Experience reports]({card['experiences_url']})")
            if card.get("categories"):
                st.caption("Categories: " + ", ".join(card["categories"]))
            if card.get("doses"):
                st.dataframe(pd.DataFrame(card["doses"]).T, use_container_width=True)

            report = api_get(f"/api/substances/{sub['key']}/interactions")
            combos = report.get("interactions", []) if isinstance(report, dict) else []
            if not combos:
                st.caption("No interaction data.")
                continue
            st.markdown("**Interactions**")
            for item in combos:
                color = STATUS_COLORS.get(item["status"], "#9ca3af")
                line = f"{item['name']} · <span style='color:{color}'>{item['status']}</span>"
                if item.get("note"):
                    line += f" · {item['note']}"
                st.markdown(line, unsafe_allow_html=True)
