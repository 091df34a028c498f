import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BOOTSTRAP_COMMANDS = "create invoice,create customer,list items,show items"


@dataclass(frozen=True)
class HostConfig:
    """
    Dataclass for host configuration.
    """

    backend_host: str
    request_timeout: int


@dataclass(frozen=True)
class EndpointConfig:
    """
    Dataclass for backend endpoint paths.
    """

    turn: str
    extraction: str
    items: str


@dataclass(frozen=True)
class ChatConfig:
    """
    Dataclass for conversation configuration.
    """

    session_id: str
    default_language: str
    bootstrap_commands: tuple[str, ...]
    reset_command: str
    ocr_failure_hint: str


@dataclass(frozen=True)
class PathConfig:
    """
    Dataclass for path configuration.
    """

    logs: Path
    downloads: Path


def load_host_env() -> HostConfig:
    """
    Loads host configuration from environment variables or defaults.

    Returns:
        HostConfig: Dataclass containing host configuration.
        - backend_host (str): The dialogue backend base URL.
        - request_timeout (int): Per-request timeout in seconds.
    """
    return HostConfig(
        backend_host=os.getenv("BACKEND_HOST", "http://localhost:8000").rstrip("/"),
        request_timeout=int(os.getenv("REQUEST_TIMEOUT", "60")),
    )


def load_endpoint_env() -> EndpointConfig:
    """
    Loads the backend endpoint paths from environment variables or defaults.

    Returns:
        EndpointConfig: Dataclass containing endpoint paths.
        - turn (str): Path of the conversational turn endpoint.
        - extraction (str): Path of the OCR extraction endpoint.
        - items (str): Path of the invoice item listing endpoint.
    """
    return EndpointConfig(
        turn=os.getenv("TURN_ENDPOINT", "/process"),
        extraction=os.getenv("OCR_ENDPOINT", "/process-ocr"),
        items=os.getenv("ITEMS_ENDPOINT", "/invoice/items"),
    )


def load_chat_env() -> ChatConfig:
    """
    Loads conversation configuration from environment variables or defaults.

    Returns:
        ChatConfig: Dataclass containing conversation configuration.
        - session_id (str): Session identifier sent with every turn.
        - default_language (str): Language code used at start-up.
        - bootstrap_commands (tuple[str, ...]): Phrases that reveal the text input.
        - reset_command (str): Literal input that resets the chat locally.
        - ocr_failure_hint (str): Hint appended to OCR failure messages.
    """
    raw_commands = os.getenv("BOOTSTRAP_COMMANDS", DEFAULT_BOOTSTRAP_COMMANDS)
    commands = tuple(
        cmd.strip().lower() for cmd in raw_commands.split(",") if cmd.strip()
    )
    return ChatConfig(
        session_id=os.getenv("CHAT_SESSION_ID", "my_unique_chat_session"),
        default_language=os.getenv("CHAT_LANGUAGE", "kn").lower(),
        bootstrap_commands=commands,
        reset_command=os.getenv("RESET_COMMAND", "reset").strip().lower(),
        ocr_failure_hint=os.getenv(
            "OCR_FAILURE_HINT",
            "Please ensure Tesseract/Poppler are installed on the backend.",
        ),
    )


def load_path_env() -> PathConfig:
    """
    Loads path configuration from environment variables or defaults.

    Returns:
        PathConfig: Dataclass containing path configuration.
        - logs (Path): Path to the log file.
        - downloads (Path): Directory where invoice PDFs are saved by the CLI.
    """
    project_root: Path = Path(__file__).parents[2].resolve()
    return PathConfig(
        logs=Path(
            os.getenv("LOG_PATH", project_root / ".logs" / "invochat.log")
        ).expanduser(),
        downloads=Path(
            os.getenv("DOWNLOAD_PATH", Path.home() / "invochat" / "invoices")
        ).expanduser(),
    )
