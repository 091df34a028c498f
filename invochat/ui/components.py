"""
Shared rendering helpers for chat messages and notifications.
"""

import html
from typing import Iterable

import streamlit as st

from invochat.agents.types import Notification
from invochat.core.state.messages import DownloadLink, Message
from invochat.ui.state import load_invoice_pdf


# ---------------------------------------------------------------------------
# Data-processing helpers (pure functions – no Streamlit calls)
# ---------------------------------------------------------------------------


def chat_transcript(messages: Iterable[Message]) -> str:
    """
    Build a plain-text export of the conversation.

    Args:
        messages: The chat log.

    Returns:
        One paragraph per message, prefixed with role and timestamp.
    """
    chat_text = ""
    for msg in messages:
        chat_text += f"[{msg.timestamp}] {msg.role.upper()}: {msg.as_plain_text()}\n\n"
    return chat_text


def download_anchor(link: DownloadLink) -> str:
    """
    Build an HTML anchor that downloads ``link`` under its suggested filename.

    Args:
        link: The download reference attached to a bot message.

    Returns:
        The anchor markup.
    """
    return (
        f'<a href="{html.escape(link.url, quote=True)}" target="_blank" '
        f'rel="noopener noreferrer" download="{html.escape(link.filename, quote=True)}">'
        f"{html.escape(link.label)}</a>"
    )


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def render_message(message: Message) -> None:
    """
    Render one chat bubble.

    Args:
        message: The message to render.
    """
    with st.chat_message(message.role):
        if message.text:
            st.markdown(message.text)
        if message.attachment is not None:
            _render_invoice_download(message)
        st.caption(message.timestamp)


def render_toasts() -> None:
    """Show and clear notifications buffered since the last render."""
    pending: list[Notification] = st.session_state.get("pending_toasts", [])
    for notification in pending:
        icon = "❌" if notification.is_failure else "✅"
        body = notification.title
        if notification.description:
            body = f"**{notification.title}**  \n{notification.description}"
        st.toast(body, icon=icon)
    st.session_state.pending_toasts = []


def _render_invoice_download(message: Message) -> None:
    """
    Offer the attached invoice as a download under its ``invoice_<id>.pdf`` name.

    Falls back to a plain link when the PDF cannot be fetched.
    """
    link = message.attachment
    data = load_invoice_pdf(link)
    if data is None:
        st.markdown(download_anchor(link), unsafe_allow_html=True)
        return
    st.download_button(
        label=f"📄 {link.label}",
        data=data,
        file_name=link.filename,
        mime="application/pdf",
        key=f"pdf_{message.id}",
    )
