"""Chat message model and the append-only message log."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Sequence


def _now_display() -> str:
    return datetime.now().strftime("%H:%M")


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class DownloadLink:
    """
    Actionable download reference attached to a bot message.

    Fetching the resource is left to the rendering layer.
    """

    url: str
    filename: str
    label: str = "Download PDF"


@dataclass(frozen=True)
class Message:
    """A single chat entry."""

    text: str
    is_bot: bool
    id: str = field(default_factory=_new_id)
    timestamp: str = field(default_factory=_now_display)
    attachment: DownloadLink | None = None

    @property
    def role(self) -> str:
        return "assistant" if self.is_bot else "user"

    def as_markdown(self) -> str:
        """
        Render the message as Markdown.

        Returns:
            str: The text, followed by the download link when one is attached.
        """
        if self.attachment is None:
            return self.text
        link = f"[{self.attachment.label}]({self.attachment.url})"
        return f"{self.text} {link}" if self.text else link

    def as_plain_text(self) -> str:
        """
        Render the message for terminals.

        Returns:
            str: The text, followed by the download reference when one is attached.
        """
        if self.attachment is None:
            return self.text
        ref = f"{self.attachment.label}: {self.attachment.url} ({self.attachment.filename})"
        return f"{self.text}\n{ref}" if self.text else ref


class MessageLog(Sequence[Message]):
    """
    Ordered, append-only list of chat messages.

    Only ``append`` and ``replace`` mutate the log; readers get a tuple view.
    """

    def __init__(self, messages: Sequence[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or [])

    def __getitem__(self, index):  # type: ignore[override]
        return self._messages[index]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def add_user(self, text: str) -> Message:
        return self.append(Message(text=text, is_bot=False))

    def add_bot(self, text: str, attachment: DownloadLink | None = None) -> Message:
        return self.append(Message(text=text, is_bot=True, attachment=attachment))

    def replace(self, messages: Sequence[Message]) -> None:
        """
        Swap the whole log; used only by a reset.

        Args:
            messages (Sequence[Message]): The new contents.
        """
        self._messages = list(messages)

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def last_attachment(self) -> DownloadLink | None:
        """Return the most recent download link in the log, if any."""
        for message in reversed(self._messages):
            if message.attachment is not None:
                return message.attachment
        return None
