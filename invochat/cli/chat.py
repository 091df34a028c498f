import json
import mimetypes
import sys
from pathlib import Path

import anyio
from dotenv import load_dotenv
from loguru import logger

from invochat.agents.orchestrator import ConversationOrchestrator
from invochat.agents.types import InputStage, Notification, UploadFile
from invochat.core.state.messages import Message
from invochat.core.transport import TransportClient, TransportError
from invochat.utils.env_cfg import load_path_env
from invochat.utils.logging_cfg import setup_logging

HELP_TEXT = """Commands:
  /upload <path>   extract text from an image and send it
  /lang <en|kn>    switch language (starts a new chat)
  /reset           start a new chat
  /download        save the last invoice PDF
  /items           list invoice items
  /state           show the session state
  /help            show this help
  /quit            exit"""


def print_notification(notification: Notification) -> None:
    """
    Print a notification line.

    Args:
        notification (Notification): The notification to show.
    """
    marker = "!!" if notification.is_failure else "**"
    suffix = f" - {notification.description}" if notification.description else ""
    print(f"{marker} {notification.title}{suffix}")


def format_message(message: Message) -> str:
    """
    Format a chat message for the terminal.

    Args:
        message (Message): The message to format.

    Returns:
        str: ``[HH:MM] BOT|YOU: text``.
    """
    who = "BOT" if message.is_bot else "YOU"
    return f"[{message.timestamp}] {who}: {message.as_plain_text()}"


def print_new_messages(orch: ConversationOrchestrator, seen: set[str]) -> None:
    """
    Print messages not shown yet.

    Args:
        orch (ConversationOrchestrator): The orchestrator whose log is printed.
        seen (set[str]): Ids of messages already printed; updated in place.
    """
    for message in orch.messages:
        if message.id not in seen:
            seen.add(message.id)
            print(format_message(message))


def load_upload(path: str | Path) -> UploadFile:
    """
    Read a local file for the OCR pipeline.

    Args:
        path (str | Path): Path to the image.

    Returns:
        UploadFile: The file contents with a guessed MIME type.
    """
    file_path = Path(path).expanduser()
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return UploadFile(
        name=file_path.name,
        content=file_path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
    )


def save_last_invoice(
    orch: ConversationOrchestrator, transport: TransportClient, out_dir: Path
) -> Path | None:
    """
    Download the most recent invoice PDF referenced in the chat.

    Args:
        orch (ConversationOrchestrator): The orchestrator holding the log.
        transport (TransportClient): Client used to fetch the PDF.
        out_dir (Path): Target directory.

    Returns:
        Path | None: The saved file, or ``None`` when no invoice link exists.
    """
    link = orch.session.messages.last_attachment()
    if link is None:
        return None
    data = anyio.run(transport.fetch_invoice_pdf, link.url)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / link.filename
    target.write_bytes(data)
    logger.info("Invoice saved to {}", target)
    return target


def handle_command(
    line: str, orch: ConversationOrchestrator, transport: TransportClient
) -> bool:
    """
    Execute one slash command.

    Args:
        line (str): The raw input starting with ``/``.
        orch (ConversationOrchestrator): The orchestrator.
        transport (TransportClient): The HTTP client, for downloads and listings.

    Returns:
        bool: ``False`` when the user asked to quit.
    """
    cmd, _, arg = line.partition(" ")
    cmd = cmd.lower()
    arg = arg.strip()

    if cmd in {"/quit", "/exit"}:
        return False
    if cmd == "/help":
        print(HELP_TEXT)
    elif cmd == "/upload":
        if not arg:
            print("Usage: /upload <path>")
            return True
        try:
            upload = load_upload(arg)
        except OSError as e:
            print(f"Cannot read {arg}: {e}")
            return True
        anyio.run(orch.submit_file, upload)
    elif cmd == "/lang":
        try:
            orch.set_language(arg)
        except ValueError:
            print("Usage: /lang <en|kn>")
    elif cmd == "/reset":
        anyio.run(orch.request_reset)
    elif cmd == "/download":
        try:
            saved = save_last_invoice(orch, transport, load_path_env().downloads)
        except TransportError as e:
            print(f"❌ {e.detail}")
            return True
        print(f"Saved {saved}" if saved else "No invoice to download yet.")
    elif cmd == "/items":
        try:
            items = anyio.run(transport.fetch_items)
        except TransportError as e:
            print(f"❌ {e.detail}")
            return True
        for item in items:
            print(f"- {item.get('name')} ({item.get('item_id')}): {item.get('rate')}")
        if not items:
            print("No items available.")
    elif cmd == "/state":
        print(json.dumps(orch.session.state(), ensure_ascii=False, indent=2))
    else:
        print(f"Unknown command {cmd}. Type /help for the list of commands.")
    return True


def resolve_hidden_input(text: str, orch: ConversationOrchestrator) -> str | None:
    """
    Map input typed while the text box is still hidden.

    Only quick actions (by number or phrase) and the reset command are accepted.

    Args:
        text (str): The raw input.
        orch (ConversationOrchestrator): The orchestrator.

    Returns:
        str | None: The text to submit, or ``None`` if it is not allowed yet.
    """
    commands = sorted(orch.policy.bootstrap_commands)
    if text.isdigit() and 1 <= int(text) <= len(commands):
        return commands[int(text) - 1]
    if orch.policy.is_bootstrap(text) or orch.policy.is_reset(text):
        return text
    print("Start with a quick action or /upload an image:")
    for index, command in enumerate(commands, start=1):
        print(f"  {index}. {command}")
    return None


def main() -> None:
    """
    Main entry point for the terminal chat client.
    """
    load_dotenv()
    setup_logging(console_level="WARNING")
    transport = TransportClient()
    orch = ConversationOrchestrator(transport=transport, notify=print_notification)
    seen: set[str] = set()

    print(HELP_TEXT)
    print_new_messages(orch, seen)
    while True:
        try:
            line = input("> " if orch.input_stage is InputStage.VISIBLE else "action> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        line = line.strip()
        if not line:
            continue
        if line.startswith("/"):
            if not handle_command(line, orch, transport):
                break
        else:
            if orch.input_stage is InputStage.HIDDEN:
                resolved = resolve_hidden_input(line, orch)
                if resolved is None:
                    continue
                line = resolved
            anyio.run(orch.submit_text, line)
        print_new_messages(orch, seen)
    logger.info("Chat client closed.")


if __name__ == "__main__":
    sys.path.append(str(Path(__file__).parents[2].resolve()))
    main()
