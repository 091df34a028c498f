"""Context-update and input-disclosure policies."""

from dataclasses import dataclass, field
from typing import Any, Iterable

from invochat.agents.types import Action, InputStage, Language

TERMINAL_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.CUSTOMER_CREATED,
        Action.CUSTOMER_EXISTS,
        Action.CUSTOMER_CREATION_FAILED,
        Action.CUSTOMER_CREATION_ERROR,
        Action.INVOICE_CREATED,
        Action.INVOICE_CREATION_FAILED,
        Action.INVOICE_CREATION_ERROR,
        Action.RESET_SUCCESS,
        Action.LIST_ITEMS,
    }
)
"""Actions that conclude a sub-flow; their context does not persist unless re-supplied."""


def next_context(
    action: Action,
    response_context: dict[str, Any] | None,
    current_context: dict[str, Any],
    language: Language,
) -> dict[str, Any]:
    """
    Compute the context that follows a successful turn.

    Args:
        action (Action): The backend's action code.
        response_context (dict[str, Any] | None): The ``context`` returned by the backend, if any.
        current_context (dict[str, Any]): The context held before the turn.
        language (Language): The client's active language.

    Returns:
        dict[str, Any]: The next context. ``language`` always comes from the client.
    """
    if response_context is not None:
        return {**response_context, "language": language.value}
    if action in TERMINAL_ACTIONS:
        return {"language": language.value}
    return {**current_context, "language": language.value}


def _normalize(text: str) -> str:
    return " ".join(text.strip().lower().split())


@dataclass
class InputPolicy:
    """
    Decides when the free-text input is revealed and which inputs are local commands.
    """

    bootstrap_commands: Iterable[str] = field(
        default=("create invoice", "create customer", "list items", "show items")
    )
    reset_command: str = "reset"

    def __post_init__(self) -> None:
        self.bootstrap_commands = frozenset(
            _normalize(cmd) for cmd in self.bootstrap_commands if cmd.strip()
        )
        self.reset_command = _normalize(self.reset_command)

    def is_reset(self, text: str) -> bool:
        return _normalize(text) == self.reset_command

    def is_bootstrap(self, text: str) -> bool:
        return _normalize(text) in self.bootstrap_commands


_REVEAL: dict[InputStage, InputStage] = {
    InputStage.HIDDEN: InputStage.VISIBLE,
    InputStage.VISIBLE: InputStage.VISIBLE,
}


def reveal_input(stage: InputStage) -> InputStage:
    """
    The single transition that discloses the text input.

    Used both by bootstrap-command detection and by a successful OCR extraction.
    Revealing is one-way; only a reset hides the input again.
    """
    return _REVEAL[stage]
