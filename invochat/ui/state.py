"""Centralized session-state initialization and orchestrator access."""

from typing import Any, Awaitable, Callable

import anyio
import streamlit as st
from loguru import logger

from invochat.agents.orchestrator import ConversationOrchestrator
from invochat.agents.types import Language, Notification
from invochat.core.state.messages import DownloadLink
from invochat.core.transport import TransportError

LANGUAGE_LABELS: dict[str, str] = {
    Language.EN.value: "English",
    Language.KN.value: "ಕನ್ನಡ (Kannada)",
}
"""Display label for each supported language."""

QUICK_ACTIONS: list[tuple[str, str]] = [
    ("🧾 Create invoice", "create invoice"),
    ("👤 Create customer", "create customer"),
    ("📋 List items", "list items"),
]
"""Bootstrap buttons shown above the chat: (label, command)."""


def _queue_toast(notification: Notification) -> None:
    """
    Buffer a notification until the next render, so it survives ``st.rerun``.

    Args:
        notification: The notification emitted by the orchestrator.
    """
    st.session_state.pending_toasts.append(notification)


def init_session_state() -> None:
    """
    Initialise all session-state keys with sane defaults.

    Must be called once, before any widget is rendered, so that every key
    referenced elsewhere already exists.
    """
    defaults: dict[str, object] = {
        "pending_toasts": [],
        "uploader_key": 0,
        "pdf_cache": {},
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

    if "orchestrator" not in st.session_state:
        st.session_state.orchestrator = ConversationOrchestrator.from_env(
            notify=_queue_toast
        )


def get_orchestrator() -> ConversationOrchestrator:
    """Return the orchestrator owned by this browser session."""
    return st.session_state.orchestrator


def run_action(func: Callable[..., Awaitable[Any]], *args: Any) -> None:
    """
    Drive one async orchestrator entry point to completion and rerun the page.

    Args:
        func: The coroutine function to run (e.g. ``submit_text``).
        *args: Positional arguments for ``func``.
    """
    with st.spinner("Thinking…"):
        anyio.run(func, *args)
    st.rerun()


def load_invoice_pdf(link: DownloadLink) -> bytes | None:
    """
    Fetch an invoice PDF once per browser session.

    Bytes are cached in ``st.session_state.pdf_cache`` by URL. Failures are not
    cached, so the next render retries.

    Args:
        link: The download reference attached to an ``invoice_created`` reply.

    Returns:
        The PDF bytes, or ``None`` if the download failed.
    """
    cache: dict[str, bytes] = st.session_state.pdf_cache
    if link.url in cache:
        return cache[link.url]

    try:
        data = anyio.run(get_orchestrator().transport.fetch_invoice_pdf, link.url)
    except TransportError as e:
        logger.error("Invoice download failed for {}: {}", link.filename, e.detail)
        st.error(f"❌ {e.detail}")
        return None

    cache[link.url] = data
    return data
