from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from invochat.agents.types import Language


@dataclass(slots=True)
class ContextStore:
    """
    Holds the opaque conversation context, the active language, and the session id.

    The ``language`` key is owned by the client: whatever the backend echoes back,
    the stored value always reflects ``self.language``.
    """

    session_id: str
    language: Language = Language.KN
    _data: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.language = Language.parse(self.language)
        self.clear()

    def snapshot(self) -> dict[str, Any]:
        """
        Return a deep copy of the context with the client's language asserted.

        Returns:
            dict[str, Any]: The context to send with the next request.
        """
        data = copy.deepcopy(self._data)
        data["language"] = self.language.value
        return data

    def replace(self, context: dict[str, Any]) -> None:
        """
        Replace the whole mapping, overriding any backend-supplied language.

        Args:
            context (dict[str, Any]): The new context.
        """
        echoed = context.get("language")
        if echoed is not None and echoed != self.language.value:
            logger.debug(
                "Ignoring backend language {!r}; keeping {!r}",
                echoed,
                self.language.value,
            )
        self._data = {**copy.deepcopy(context), "language": self.language.value}

    def clear(self) -> None:
        """Reset the context to ``{language}``."""
        self._data = {"language": self.language.value}

    def set_language(self, language: Language | str) -> None:
        """
        Switch the client language; the stored ``language`` key follows.

        Args:
            language (Language | str): The new language.
        """
        self.language = Language.parse(language)
        self._data["language"] = self.language.value

    def is_empty(self) -> bool:
        """Whether the context carries nothing besides the language."""
        return set(self._data) <= {"language"}
