"""
OCR ingestion: upload an image, show what was read, hand the text back for a turn.
"""

from __future__ import annotations

from loguru import logger

from invochat.agents.types import DialogueTransport, UploadFile
from invochat.core.session_manager import SessionManager
from invochat.core.transport import TransportError


class OcrIngestionPipeline:
    """
    Turns an uploaded image into a synthetic user turn.

    The pipeline only appends the upload notice and the extraction outcome. The
    caller resubmits the returned text once the busy flag has been released, so
    the extracted text goes through exactly the same path as typed input.
    """

    def __init__(
        self,
        transport: DialogueTransport,
        session: SessionManager,
        failure_hint: str = "",
    ) -> None:
        """
        Initialize the OcrIngestionPipeline.

        Args:
            transport (DialogueTransport): Client used for the extraction upload.
            session (SessionManager): The session whose log and input stage are updated.
            failure_hint (str, optional): Extra guidance appended to failure messages. Defaults to "".
        """
        self.transport = transport
        self.session = session
        self.failure_hint = failure_hint

    async def ingest(self, file: UploadFile) -> str | None:
        """
        Upload ``file`` for OCR and record the outcome in the chat.

        Args:
            file (UploadFile): The image to read.

        Returns:
            str | None: The extracted text to resubmit, or ``None`` when nothing
            was extracted or the upload failed.
        """
        session = self.session
        session.messages.add_user(f"📎 Uploading and processing: {file.name}...")
        logger.info("Uploading {} ({} bytes) for OCR", file.name, len(file.content))

        try:
            result = await self.transport.upload_for_extraction(
                file, session.context.snapshot()
            )
        except TransportError as e:
            logger.error("Error processing OCR for {}: {}", file.name, e.detail)
            self._fail(file, e.detail)
            return None
        except Exception as e:
            logger.exception("Unexpected OCR failure for {}", file.name)
            self._fail(file, str(e) or "Unknown error")
            return None

        if not result.text:
            logger.info("No text extracted from {}", file.name)
            session.messages.add_bot(
                f'❌ No text could be extracted from "{file.name}". '
                "Please try another image or type your request."
            )
            return None

        session.reveal_input()
        session.messages.add_bot(f'🤖 Extracted from image: "{result.text}"')
        return result.text

    def _fail(self, file: UploadFile, detail: str) -> None:
        text = f'❌ Failed to perform OCR on "{file.name}": {detail}.'
        if self.failure_hint:
            text = f"{text} {self.failure_hint}"
        self.session.messages.add_bot(text)
