from typing import Any

import anyio
import pytest

from invochat.agents.orchestrator import ConversationOrchestrator
from invochat.agents.types import ExtractionResult, TurnResult, UploadFile
from invochat.utils.env_cfg import ChatConfig


class FakeTransport:
    """
    In-memory stand-in for the dialogue backend client.

    Replies are consumed in order; an ``Exception`` instance in a reply slot is raised.
    """

    def __init__(self) -> None:
        self.turns: list[tuple[str, str, dict[str, Any]]] = []
        self.uploads: list[tuple[UploadFile, dict[str, Any]]] = []
        self.resets: list[tuple[str, str]] = []
        self.turn_replies: list[TurnResult | Exception] = []
        self.extraction: ExtractionResult | Exception = ExtractionResult(text="")
        self.reset_reply: TurnResult | Exception = TurnResult(action="reset_success")
        self.gate: anyio.Event | None = None
        self.on_send = None

    async def send_turn(
        self, text: str, session_id: str, context: dict[str, Any]
    ) -> TurnResult:
        self.turns.append((text, session_id, dict(context)))
        if self.on_send is not None:
            self.on_send(text)
        if self.gate is not None:
            await self.gate.wait()
        reply = (
            self.turn_replies.pop(0)
            if self.turn_replies
            else TurnResult(action="general_response", message="ok")
        )
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def upload_for_extraction(
        self, file: UploadFile, context: dict[str, Any]
    ) -> ExtractionResult:
        self.uploads.append((file, dict(context)))
        if isinstance(self.extraction, Exception):
            raise self.extraction
        return self.extraction

    async def reset_session(self, session_id: str, language: str) -> TurnResult:
        self.resets.append((session_id, language))
        if isinstance(self.reset_reply, Exception):
            raise self.reset_reply
        return self.reset_reply


@pytest.fixture
def anyio_backend() -> str:
    """
    Run async tests on asyncio only.

    Returns:
        str: The anyio backend name.
    """
    return "asyncio"


@pytest.fixture
def chat_cfg() -> ChatConfig:
    """
    Conversation settings independent of the environment.

    Returns:
        ChatConfig: English, fixed session id, default bootstrap commands.
    """
    return ChatConfig(
        session_id="test-session",
        default_language="en",
        bootstrap_commands=("create invoice", "create customer", "list items"),
        reset_command="reset",
        ocr_failure_hint="Check the OCR service.",
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def notifications() -> list:
    return []


@pytest.fixture
def orchestrator(
    transport: FakeTransport, chat_cfg: ChatConfig, notifications: list
) -> ConversationOrchestrator:
    """
    Orchestrator wired to the fake transport.

    Args:
        transport (FakeTransport): The fake backend.
        chat_cfg (ChatConfig): Conversation settings.
        notifications (list): Collects emitted notifications.

    Returns:
        ConversationOrchestrator: A fresh orchestrator in English.
    """
    return ConversationOrchestrator(
        transport=transport, chat_cfg=chat_cfg, notify=notifications.append
    )
