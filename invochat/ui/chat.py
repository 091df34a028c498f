"""
Chat page: message history, quick actions, OCR upload, and free-text input.
"""

import streamlit as st

from invochat.agents.types import InputStage, UploadFile
from invochat.ui.components import chat_transcript, render_message
from invochat.ui.state import QUICK_ACTIONS, get_orchestrator, run_action


def render_chat() -> None:
    """
    Render the chat interface.
    Input is progressively disclosed: quick actions and the image uploader are
    always shown, the text box only once a flow has started."""
    orch = get_orchestrator()

    # ── Message history ──────────────────────────────────────
    for msg in orch.messages:
        render_message(msg)

    # ── Download current chat ────────────────────────────────
    if len(orch.messages) > 1:
        st.download_button(
            label="📥 Download chat (.txt)",
            data=chat_transcript(orch.messages),
            file_name=f"chat_{orch.session_id}.txt",
            mime="text/plain",
        )

    # ── Quick actions ────────────────────────────────────────
    cols = st.columns(len(QUICK_ACTIONS))
    for col, (label, command) in zip(cols, QUICK_ACTIONS):
        with col:
            if st.button(label, use_container_width=True, disabled=orch.busy):
                run_action(orch.submit_text, command)

    # ── Image upload for OCR ─────────────────────────────────
    _render_uploader()

    # ── Chat input ───────────────────────────────────────────
    if orch.input_stage is InputStage.VISIBLE:
        if prompt := st.chat_input(
            "Type your message about invoices...", disabled=orch.busy
        ):
            run_action(orch.submit_text, prompt)
    else:
        st.caption("Pick a quick action or upload an image to get started.")


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _render_uploader() -> None:
    """Render the image uploader and hand new uploads to the OCR pipeline."""
    orch = get_orchestrator()
    uploaded = st.file_uploader(
        "📎 Upload an image",
        type=["png", "jpg", "jpeg", "webp", "bmp", "tiff", "pdf"],
        key=f"uploader_{st.session_state.uploader_key}",
        disabled=orch.busy,
    )
    if uploaded is None:
        return

    file = UploadFile(
        name=uploaded.name,
        content=uploaded.getvalue(),
        mime_type=uploaded.type or "application/octet-stream",
    )
    # A fresh widget key clears the selection so the file is processed once.
    st.session_state.uploader_key += 1
    run_action(orch.submit_file, file)
