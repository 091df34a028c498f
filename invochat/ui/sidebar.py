"""Sidebar: branding, language selector, and session controls."""

import streamlit as st
from loguru import logger

from invochat.ui.state import LANGUAGE_LABELS, get_orchestrator, run_action


def render_sidebar() -> None:
    """Render the full sidebar: branding, language, reset, session details."""
    orch = get_orchestrator()
    with st.sidebar:
        # ── Branding ──────────────────────────────────────────────
        st.markdown("## 🧾 Invoice Generator")
        st.caption("AI-powered invoice assistant")

        st.divider()

        # ── Language ─────────────────────────────────────────────
        _render_language_selector()

        st.divider()

        # ── Session ──────────────────────────────────────────────
        st.markdown("##### 💬 Chat Session")
        st.caption(f"Session: `{orch.session_id}`")
        if st.button(
            "🔄 Start New Chat",
            use_container_width=True,
            type="primary",
            disabled=orch.busy,
        ):
            run_action(orch.request_reset)

        with st.expander("Conversation context"):
            if orch.has_active_flow:
                st.json(orch.context)
            else:
                st.caption("No flow in progress.")


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _render_language_selector() -> None:
    """Render the language dropdown; switching language restarts the chat."""
    orch = get_orchestrator()
    st.markdown("##### 🌐 Language")

    options = list(LANGUAGE_LABELS)
    selected = st.selectbox(
        label="Language",
        options=options,
        index=options.index(orch.language.value),
        format_func=lambda code: LANGUAGE_LABELS.get(code, code),
        label_visibility="collapsed",
        disabled=orch.busy,
    )

    if selected and selected != orch.language.value:
        if orch.set_language(selected):
            logger.info("Language switched to {}", selected)
            st.rerun()
