"""Conversation agents package.

Provides the action vocabulary, the context and disclosure policies, and the
action interpreter. The orchestrator lives in ``invochat.agents.orchestrator``.
"""

from invochat.agents.types import (
    Action,
    DialogueTransport,
    ExtractionResult,
    InputStage,
    Language,
    Notification,
    TurnResult,
    UploadFile,
)
from invochat.agents.policies import (
    TERMINAL_ACTIONS,
    InputPolicy,
    next_context,
    reveal_input,
)
from invochat.agents.interpreter import (
    ActionInterpreter,
    Interpretation,
    invoice_filename,
)

__all__ = [
    "Action",
    "ActionInterpreter",
    "DialogueTransport",
    "ExtractionResult",
    "InputPolicy",
    "InputStage",
    "Interpretation",
    "Language",
    "Notification",
    "TERMINAL_ACTIONS",
    "TurnResult",
    "UploadFile",
    "invoice_filename",
    "next_context",
    "reveal_input",
]
