"""Shared types for conversation orchestration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class Language(str, Enum):
    """Languages the chat client can operate in."""

    EN = "en"
    KN = "kn"

    @classmethod
    def parse(cls, value: "str | Language") -> "Language":
        """
        Resolve a language code, case-insensitively.

        Args:
            value (str | Language): Language code such as ``"en"``.

        Returns:
            Language: The matching language.

        Raises:
            ValueError: If the code is not supported.
        """
        if isinstance(value, Language):
            return value
        return cls(str(value).strip().lower())


class InputStage(str, Enum):
    """Progressive disclosure state of the free-text input."""

    HIDDEN = "hidden"
    VISIBLE = "visible"


class Action(str, Enum):
    """Action codes returned by the dialogue backend."""

    GENERAL_RESPONSE = "general_response"
    LIST_ITEMS = "list_items"
    ASK_QUESTION = "ask_question"
    REQUEST_INVOICE_INFO = "request_invoice_info"
    CUSTOMER_CREATED = "customer_created"
    CUSTOMER_EXISTS = "customer_exists"
    CUSTOMER_CREATION_FAILED = "customer_creation_failed"
    CUSTOMER_CREATION_ERROR = "customer_creation_error"
    INVOICE_CREATED = "invoice_created"
    INVOICE_CREATION_FAILED = "invoice_creation_failed"
    INVOICE_CREATION_ERROR = "invoice_creation_error"
    RESET_SUCCESS = "reset_success"
    FILE_UPLOADED = "file_uploaded"
    ERROR = "error"
    CUSTOMER_LOOKUP_ERROR = "customer_lookup_error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Action":
        """
        Map a raw action tag to an ``Action``, falling back to ``UNKNOWN``.

        Args:
            value (Any): The raw ``action`` field of a backend response.

        Returns:
            Action: The matching action, or ``Action.UNKNOWN``.
        """
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class UploadFile:
    """A file handed to the OCR pipeline."""

    name: str
    content: bytes
    mime_type: str = "application/octet-stream"


@dataclass
class TurnResult:
    """Decoded response of a conversational turn."""

    action: str
    message: str | None = None
    context: dict[str, Any] | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TurnResult":
        """
        Build a turn result from a decoded JSON body.

        Args:
            payload (dict[str, Any]): The backend response body.

        Returns:
            TurnResult: The structured result; non-mapping contexts are dropped.
        """
        context = payload.get("context")
        message = payload.get("message")
        return cls(
            action=str(payload.get("action") or ""),
            message=str(message) if message is not None else None,
            context=dict(context) if isinstance(context, dict) else None,
            payload=dict(payload),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Return an action-specific field such as ``invoice_id``."""
        return self.payload.get(key, default)


@dataclass(frozen=True)
class ExtractionResult:
    """OCR output; an empty ``text`` means nothing was extracted."""

    text: str = ""


@dataclass(frozen=True)
class Notification:
    """A transient user notification (toast)."""

    title: str
    description: str = ""
    variant: str = "default"

    @property
    def is_failure(self) -> bool:
        return self.variant == "destructive"


class DialogueTransport(Protocol):
    """Interface of the remote dialogue service client."""

    async def send_turn(
        self, text: str, session_id: str, context: dict[str, Any]
    ) -> TurnResult:  # pragma: no cover - interface
        """Send one conversational turn."""
        ...

    async def upload_for_extraction(
        self, file: UploadFile, context: dict[str, Any]
    ) -> ExtractionResult:  # pragma: no cover - interface
        """Upload an image and return the extracted text."""
        ...

    async def reset_session(
        self, session_id: str, language: str
    ) -> TurnResult:  # pragma: no cover - interface
        """Ask the backend to forget the session's state."""
        ...
