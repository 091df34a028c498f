"""Conversation orchestrator: serializes turns against the dialogue backend."""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from invochat.agents.interpreter import ActionInterpreter, Interpretation
from invochat.agents.policies import InputPolicy, next_context
from invochat.agents.types import (
    DialogueTransport,
    InputStage,
    Language,
    Notification,
    TurnResult,
    UploadFile,
)
from invochat.core.ingestion_pipeline import OcrIngestionPipeline
from invochat.core.session_manager import SessionManager
from invochat.core.state.messages import Message
from invochat.core.transport import TransportClient, TransportError
from invochat.utils.env_cfg import ChatConfig, load_chat_env


class ConversationOrchestrator:
    """
    Coordinate one conversational turn at a time.

    Entry points (``submit_text``, ``submit_file``, ``request_reset``,
    ``set_language``) are all gated by the session's busy flag and return
    ``False`` when they are rejected. Failures never escape an entry point; they
    become a single bot message.
    """

    def __init__(
        self,
        transport: DialogueTransport,
        session: SessionManager | None = None,
        chat_cfg: ChatConfig | None = None,
        interpreter: ActionInterpreter | None = None,
        notify: Callable[[Notification], None] | None = None,
    ) -> None:
        """
        Initialize the ConversationOrchestrator.

        Args:
            transport (DialogueTransport): Client for the dialogue backend.
            session (SessionManager | None, optional): Session state. Defaults to a new session from ``chat_cfg``.
            chat_cfg (ChatConfig | None, optional): Conversation settings. Defaults to the environment.
            interpreter (ActionInterpreter | None, optional): Action interpreter. Defaults to ActionInterpreter().
            notify (Callable[[Notification], None] | None, optional): UI notification callback. Defaults to None.
        """
        cfg = chat_cfg or load_chat_env()
        self.transport = transport
        self.session = session or SessionManager(
            session_id=cfg.session_id, language=cfg.default_language
        )
        if notify is not None:
            self.session.on_notify = notify
        self.interpreter = interpreter or ActionInterpreter()
        self.policy = InputPolicy(
            bootstrap_commands=cfg.bootstrap_commands,
            reset_command=cfg.reset_command,
        )
        self.pipeline = OcrIngestionPipeline(
            transport=transport,
            session=self.session,
            failure_hint=cfg.ocr_failure_hint,
        )

    @classmethod
    def from_env(
        cls, notify: Callable[[Notification], None] | None = None
    ) -> "ConversationOrchestrator":
        """Build an orchestrator wired to the HTTP transport configured in the environment."""
        return cls(transport=TransportClient(), notify=notify)

    # ------------------------------------------------------------------
    # Read-only views for the rendering layer
    # ------------------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.session.messages.snapshot()

    @property
    def busy(self) -> bool:
        return self.session.busy

    @property
    def input_stage(self) -> InputStage:
        return self.session.input_stage

    @property
    def language(self) -> Language:
        return self.session.context.language

    @property
    def context(self) -> dict[str, Any]:
        return self.session.context.snapshot()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def has_active_flow(self) -> bool:
        """Whether the backend is in the middle of a multi-turn flow."""
        return not self.session.context.is_empty()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def _reject_if_busy(self, what: str) -> bool:
        if self.session.busy:
            logger.warning("Ignoring {} while a turn is in flight", what)
            return True
        return False

    async def submit_text(self, text: str) -> bool:
        """
        Run one turn for typed (or extracted) text.

        Args:
            text (str): The user's input.

        Returns:
            bool: ``True`` if the submission was accepted.
        """
        text = (text or "").strip()
        if not text:
            return False
        if self._reject_if_busy("submission"):
            return False

        if self.policy.is_reset(text):
            return await self.request_reset()

        if self.policy.is_bootstrap(text):
            self.session.reveal_input()

        with self.session.busy_scope():
            self.session.messages.add_user(text)
            await self._run_turn(text)
        return True

    async def submit_file(self, file: UploadFile) -> bool:
        """
        Run the OCR pipeline, then resubmit any extracted text as a turn.

        Args:
            file (UploadFile): The uploaded image.

        Returns:
            bool: ``True`` if the upload was accepted.
        """
        if self._reject_if_busy("file upload"):
            return False

        with self.session.busy_scope():
            extracted = await self.pipeline.ingest(file)

        # Continuation: runs only after the extraction notice is in the log
        # and the busy flag has been released.
        if extracted:
            await self.submit_text(extracted)
        return True

    async def request_reset(self) -> bool:
        """
        Reset the conversation locally and on the backend.

        Returns:
            bool: ``True`` if the reset was accepted.
        """
        if self._reject_if_busy("reset"):
            return False
        with self.session.busy_scope():
            await self.session.reset(self.transport)
        return True

    def set_language(self, language: Language | str) -> bool:
        """
        Switch the conversation language; the chat starts over locally.

        Args:
            language (Language | str): The new language.

        Returns:
            bool: ``True`` if the change was applied.
        """
        if self._reject_if_busy("language change"):
            return False
        new_language = Language.parse(language)
        if new_language is self.language:
            return True
        logger.info("Switching language to {}", new_language.value)
        self.session.set_language(new_language)
        return True

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    async def _run_turn(self, text: str) -> None:
        try:
            result = await self.transport.send_turn(
                text, self.session.session_id, self.session.context.snapshot()
            )
            self._apply(result)
        except TransportError as e:
            logger.error("Error communicating with backend: {}", e.detail)
            self._fail_turn(e.detail)
        except Exception as e:
            logger.exception("Unexpected error while processing a turn")
            self._fail_turn(str(e) or "Unknown error")

    def _apply(self, result: TurnResult) -> Interpretation:
        interpretation = self.interpreter.interpret(result)
        logger.debug(
            "Backend action {} -> {}", result.action, interpretation.action.value
        )

        if interpretation.reset:
            # Backend already dropped its state; only the local side is reset.
            self.session.reset_local()
        else:
            self.session.context.replace(
                next_context(
                    interpretation.action,
                    result.context,
                    self.session.context.snapshot(),
                    self.session.context.language,
                )
            )

        self.session.messages.add_bot(interpretation.text, interpretation.attachment)
        for notification in interpretation.notifications:
            self.session.notify(notification)
        return interpretation

    def _fail_turn(self, detail: str) -> None:
        self.session.messages.add_bot(
            f"❌ Failed to connect to backend or process request: {detail}. "
            "Please check the logs for details."
        )
        self.session.context.clear()
