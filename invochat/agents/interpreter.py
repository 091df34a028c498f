"""Maps backend action codes to bot messages and notifications."""

import json
from dataclasses import dataclass, field

from invochat.agents.types import Action, Notification, TurnResult
from invochat.core.state.messages import DownloadLink


@dataclass
class Interpretation:
    """User-visible effect of one backend response."""

    action: Action
    text: str
    attachment: DownloadLink | None = None
    notifications: list[Notification] = field(default_factory=list)
    reset: bool = False


def invoice_filename(invoice_id: object) -> str:
    """Suggested local filename for an invoice PDF."""
    return f"invoice_{invoice_id}.pdf"


class ActionInterpreter:
    """
    Total mapping from a backend response to its visible effect.

    Unrecognized actions never raise; they degrade to a diagnostic message.
    """

    def interpret(self, result: TurnResult) -> Interpretation:
        """
        Interpret a decoded backend response.

        Args:
            result (TurnResult): The backend response.

        Returns:
            Interpretation: Bot text, optional download link, notifications, reset flag.
        """
        action = Action.parse(result.action)
        handler = self._handlers.get(action, ActionInterpreter._unknown)
        return handler(self, action, result)

    # ── Conversational replies ───────────────────────────────

    def _passthrough(self, action: Action, result: TurnResult) -> Interpretation:
        return Interpretation(action=action, text=result.message or "")

    # ── Customer outcomes ────────────────────────────────────

    def _customer_success(self, action: Action, result: TurnResult) -> Interpretation:
        contact_id = result.get("contact_id")
        if action is Action.CUSTOMER_CREATED:
            fallback = f"Customer created with ID: {contact_id}"
            title = "Customer Created!"
        else:
            fallback = f"Customer already exists with ID: {contact_id}"
            title = "Customer Found!"
        return Interpretation(
            action=action,
            text=result.message or fallback,
            notifications=[Notification(title=title, description=f"ID: {contact_id}")],
        )

    def _customer_failure(self, action: Action, result: TurnResult) -> Interpretation:
        return Interpretation(
            action=action,
            text=result.message or "Failed to complete customer creation.",
            notifications=[
                Notification(
                    title="Customer Creation Failed",
                    description=result.message or "",
                    variant="destructive",
                )
            ],
        )

    # ── Invoice outcomes ─────────────────────────────────────

    def _invoice_created(self, action: Action, result: TurnResult) -> Interpretation:
        invoice_id = result.get("invoice_id")
        pdf_url = result.get("pdf_url")
        attachment = None
        if invoice_id and pdf_url:
            text = result.message or ""
            attachment = DownloadLink(url=str(pdf_url), filename=invoice_filename(invoice_id))
        else:
            text = result.message or (
                f"Invoice created successfully with ID: {invoice_id}. "
                "PDF processed on backend."
            )
        return Interpretation(
            action=action,
            text=text,
            attachment=attachment,
            notifications=[
                Notification(title="Invoice Created!", description=f"ID: {invoice_id}")
            ],
        )

    def _invoice_failure(self, action: Action, result: TurnResult) -> Interpretation:
        return Interpretation(
            action=action,
            text=result.message or "Failed to complete invoice creation.",
            notifications=[
                Notification(
                    title="Invoice Creation Failed",
                    description=result.message or "",
                    variant="destructive",
                )
            ],
        )

    # ── Session and files ────────────────────────────────────

    def _reset(self, action: Action, result: TurnResult) -> Interpretation:
        return Interpretation(
            action=action, text=result.message or "Chat has been reset.", reset=True
        )

    def _file_uploaded(self, action: Action, result: TurnResult) -> Interpretation:
        text = result.message or "File uploaded successfully."
        extracted = result.get("extracted_data")
        if extracted:
            block = json.dumps(extracted, indent=2, ensure_ascii=False)
            text += f"\nExtracted data: \n```json\n{block}\n```"
        return Interpretation(
            action=action,
            text=text,
            notifications=[Notification(title="File Uploaded", description="File processed.")],
        )

    # ── Errors ───────────────────────────────────────────────

    def _error(self, action: Action, result: TurnResult) -> Interpretation:
        text = f"❌ Error: {result.message or 'An unknown error occurred.'}"
        return Interpretation(
            action=action,
            text=text,
            notifications=[
                Notification(title="API Error", description=text, variant="destructive")
            ],
        )

    def _unknown(self, action: Action, result: TurnResult) -> Interpretation:
        detail = result.message or json.dumps(result.payload, ensure_ascii=False, default=str)
        return Interpretation(
            action=action,
            text=(
                f"Backend response received, but action '{result.action}' is "
                f"unhandled. Message: {detail}"
            ),
        )

    _handlers = {
        Action.GENERAL_RESPONSE: _passthrough,
        Action.LIST_ITEMS: _passthrough,
        Action.ASK_QUESTION: _passthrough,
        Action.REQUEST_INVOICE_INFO: _passthrough,
        Action.CUSTOMER_CREATED: _customer_success,
        Action.CUSTOMER_EXISTS: _customer_success,
        Action.CUSTOMER_CREATION_FAILED: _customer_failure,
        Action.CUSTOMER_CREATION_ERROR: _customer_failure,
        Action.INVOICE_CREATED: _invoice_created,
        Action.INVOICE_CREATION_FAILED: _invoice_failure,
        Action.INVOICE_CREATION_ERROR: _invoice_failure,
        Action.RESET_SUCCESS: _reset,
        Action.FILE_UPLOADED: _file_uploaded,
        Action.ERROR: _error,
        Action.CUSTOMER_LOOKUP_ERROR: _error,
    }
