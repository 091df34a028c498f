from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from loguru import logger

from invochat.agents.policies import reveal_input
from invochat.agents.types import (
    Action,
    DialogueTransport,
    InputStage,
    Language,
    Notification,
)
from invochat.core.state.context import ContextStore
from invochat.core.state.messages import Message, MessageLog

GREETINGS: dict[Language, str] = {
    Language.EN: "Hello! I'm your Invoice Generator AI assistant. How can I assist you today?",
    Language.KN: "ನಮಸ್ಕಾರ! ನಾನು ನಿಮ್ಮ ಇನ್‌ವಾಯ್ಸ್ ಜನರೇಟರ್ AI ಸಹಾಯಕ. ಇಂದು ನಾನು ನಿಮಗೆ ಹೇಗೆ ಸಹಾಯ ಮಾಡಬಹುದು?",
}
"""Greeting that seeds the log after every reset, per language."""


def greeting_message(language: Language) -> Message:
    """
    Build the greeting that opens a fresh conversation.

    Args:
        language (Language): The active language.

    Returns:
        Message: A bot message in that language.
    """
    return Message(text=GREETINGS[language], is_bot=True)


class SessionBusyError(RuntimeError):
    """Raised when a turn is started while another one is in flight."""


@dataclass(slots=True)
class SessionManager:
    """
    Owns the chat session state and the reset protocol.

    The session id is stable for the lifetime of the instance. The context store
    and the message log are only mutated through this class and the orchestrator.
    """

    session_id: str
    language: Language | str = Language.KN
    on_notify: Callable[[Notification], None] | None = None
    context: ContextStore = field(init=False)
    messages: MessageLog = field(init=False)
    input_stage: InputStage = field(default=InputStage.HIDDEN, init=False)
    notifications: list[Notification] = field(default_factory=list, init=False)
    _busy: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.language = Language.parse(self.language)
        self.context = ContextStore(session_id=self.session_id, language=self.language)
        self.messages = MessageLog([greeting_message(self.language)])

    # ------------------------------------------------------------------
    # Busy flag
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def busy_scope(self) -> Iterator[None]:
        """
        Hold the busy flag for the duration of a turn.

        The flag is released whether the turn succeeds or fails.

        Raises:
            SessionBusyError: If a turn is already in flight.
        """
        if self._busy:
            raise SessionBusyError("A turn is already in flight.")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Notifications and disclosure
    # ------------------------------------------------------------------

    def notify(self, notification: Notification) -> None:
        """
        Record a notification and forward it to the UI callback.

        Args:
            notification (Notification): The notification to emit.
        """
        self.notifications.append(notification)
        if self.on_notify is None:
            return
        try:
            self.on_notify(notification)
        except Exception:
            # The turn is already recorded; a broken sink must not fail it.
            logger.exception("Notification callback failed for {!r}", notification.title)

    def reveal_input(self) -> None:
        self.input_stage = reveal_input(self.input_stage)

    # ------------------------------------------------------------------
    # Reset protocol
    # ------------------------------------------------------------------

    def reset_local(self) -> None:
        """
        Clear local state: greeting-only log, ``{language}`` context, hidden input.

        Idempotent.
        """
        self.messages.replace([greeting_message(self.context.language)])
        self.context.clear()
        self.input_stage = InputStage.HIDDEN
        logger.info("Chat session {} reset locally", self.session_id)

    async def reset(self, transport: DialogueTransport) -> None:
        """
        Reset locally, then ask the backend to forget the session.

        The remote call is best effort: its failure is reported as a notification
        and never undoes or blocks the local reset.

        Args:
            transport (DialogueTransport): Client used for the remote reset request.
        """
        self.reset_local()
        try:
            reply = await transport.reset_session(
                self.session_id, self.context.language.value
            )
        except Exception as e:
            logger.warning("Remote reset for session {} failed: {}", self.session_id, e)
            self.notify(
                Notification(
                    title="Reset Error",
                    description="Could not communicate with backend to reset. Local chat cleared.",
                    variant="destructive",
                )
            )
            return

        if Action.parse(reply.action) is Action.RESET_SUCCESS:
            self.notify(
                Notification(
                    title="Chat Reset",
                    description=reply.message or "Conversation successfully reset.",
                )
            )
        else:
            logger.warning(
                "Backend answered reset with action {!r}", reply.action
            )
            self.notify(
                Notification(
                    title="Reset Failed",
                    description=reply.message
                    or "Failed to reset conversation on the backend. Clearing local chat.",
                    variant="destructive",
                )
            )

    def set_language(self, language: Language | str) -> None:
        """
        Switch language and start over with a greeting in that language.

        Args:
            language (Language | str): The new language.
        """
        self.language = Language.parse(language)
        self.context.set_language(self.language)
        self.reset_local()

    def state(self) -> dict[str, Any]:
        """
        Return a JSON-friendly view of the session, for debugging and exports.
        """
        return {
            "session_id": self.session_id,
            "language": self.context.language.value,
            "busy": self._busy,
            "input_stage": self.input_stage.value,
            "context": self.context.snapshot(),
            "messages": [
                {
                    "id": m.id,
                    "role": m.role,
                    "text": m.text,
                    "timestamp": m.timestamp,
                    "attachment": m.attachment.filename if m.attachment else None,
                }
                for m in self.messages
            ],
        }
