import sys
from pathlib import Path

import streamlit as st
from loguru import logger
from streamlit.runtime import exists
from streamlit.web import cli as st_cli

from invochat.ui.chat import render_chat
from invochat.ui.components import render_toasts
from invochat.ui.sidebar import render_sidebar
from invochat.ui.state import init_session_state
from invochat.utils.logging_cfg import setup_logging


@st.cache_resource
def _init_logging() -> Path:
    """Configure loguru once per server process."""
    return setup_logging()


def setup_app() -> None:
    """
    Initialize application state and configuration.
    """
    _init_logging()
    st.set_page_config(page_title="Invoice Generator", page_icon="🧾", layout="centered")
    init_session_state()


def main() -> None:
    setup_app()
    render_sidebar()
    st.title("🧾 Invoice Generator")
    st.caption("AI-powered invoice assistant")
    render_toasts()
    render_chat()


# ---- Streamlit CLI wrapper ----------------------------------------------- #
def run() -> None:
    """
    CLI entry point for the Streamlit app. This function is used to run the app from the command
    line. It sets up the command line arguments as if the user typed them. For example: `streamlit
    run app.py <any extra args>`.
    """
    app_path = Path(__file__).resolve()
    sys.argv = ["streamlit", "run", str(app_path)] + sys.argv[1:]
    sys.exit(st_cli.main())


if __name__ == "__main__":
    try:
        if exists():
            main()
        else:
            run()
    except ImportError as e:
        logger.exception(f"Failed to run the Streamlit app: {e}")
        run()
