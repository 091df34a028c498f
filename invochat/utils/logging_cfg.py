from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from invochat.utils.env_cfg import load_path_env

CONSOLE_FORMAT = "{time:HH:mm:ss} | {level:<8} | {name} | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{line} | {message}"


def setup_logging(console_level: str = "INFO", log_path: Path | None = None) -> Path:
    """
    Route loguru to stderr and to a rotating debug file.

    The Streamlit app logs at INFO; the terminal client passes WARNING so log
    lines do not interleave with the chat.

    Args:
        console_level (str, optional): Minimum level written to stderr. Defaults to "INFO".
        log_path (Path | None, optional): Log file. Defaults to ``LOG_PATH`` from the environment.

    Returns:
        Path: The path to the log file.
    """
    log_path = log_path or load_path_env().logs
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT)
    logger.add(
        log_path,
        level="DEBUG",
        rotation="5 MB",
        retention=3,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        format=FILE_FORMAT,
    )
    return log_path
