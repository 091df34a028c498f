"""
HTTP client for the remote dialogue backend.

Every call is a single attempt. Blocking ``requests`` calls are pushed to a
worker thread so the orchestrator's event loop stays responsive.
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any

import anyio
import requests
from loguru import logger

from invochat.agents.types import ExtractionResult, TurnResult, UploadFile
from invochat.utils.env_cfg import (
    EndpointConfig,
    HostConfig,
    load_endpoint_env,
    load_host_env,
)

RESET_CONVERSATION_COMMAND = "reset_conversation_command"


class TransportError(Exception):
    """
    Raised when a call to the dialogue backend does not succeed.

    Attributes:
        status: HTTP status code, or ``None`` for network-level failures.
        body: Raw error body (or the underlying exception text).
    """

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def detail(self) -> str:
        """User-facing description including the raw HTTP error body."""
        message = str(self)
        if self.status is not None and self.body:
            return f"{message} - {self.body}"
        return message


def _raise_for_status(resp: requests.Response, what: str) -> None:
    """
    Convert a non-2xx response into a ``TransportError``.

    Args:
        resp (requests.Response): The HTTP response.
        what (str): Short description of the failed operation.

    Raises:
        TransportError: If the response status is not 2xx.
    """
    if 200 <= resp.status_code < 300:
        return
    logger.error("{} failed with status {}: {}", what, resp.status_code, resp.text)
    raise TransportError(
        f"{what} failed! status: {resp.status_code}",
        status=resp.status_code,
        body=resp.text,
    )


def _decode_json(resp: requests.Response, what: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        logger.error("{} returned a non-JSON body: {}", what, resp.text)
        raise TransportError(
            f"{what} returned an invalid response",
            status=resp.status_code,
            body=resp.text,
        ) from e


class TransportClient:
    """
    Request/response client for the dialogue, OCR, and invoice endpoints.
    """

    def __init__(
        self,
        host_cfg: HostConfig | None = None,
        endpoints: EndpointConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the TransportClient.

        Args:
            host_cfg (HostConfig | None, optional): Backend host settings. Defaults to the environment.
            endpoints (EndpointConfig | None, optional): Endpoint paths. Defaults to the environment.
            session (requests.Session | None, optional): HTTP session to reuse. Defaults to a new one.
        """
        self.host_cfg = host_cfg or load_host_env()
        self.endpoints = endpoints or load_endpoint_env()
        self.http = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.host_cfg.backend_host}{path}"

    def _request(self, method: str, url: str, what: str, **kwargs: Any) -> requests.Response:
        """
        Perform one blocking HTTP request.

        Raises:
            TransportError: On network failure or a non-2xx status.
        """
        kwargs.setdefault("timeout", self.host_cfg.request_timeout)
        try:
            resp = self.http.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error("{} could not reach {}: {}", what, url, e)
            raise TransportError(f"{what} failed: {e}", body=str(e)) from e
        _raise_for_status(resp, what)
        return resp

    # ------------------------------------------------------------------
    # Blocking calls
    # ------------------------------------------------------------------

    def send_turn_sync(
        self, text: str, session_id: str, context: dict[str, Any]
    ) -> TurnResult:
        """
        Send one conversational turn and decode the backend's action.

        Args:
            text (str): The user text.
            session_id (str): The chat session identifier.
            context (dict[str, Any]): The conversation context, including ``language``.

        Returns:
            TurnResult: The decoded backend response.

        Raises:
            TransportError: If the call does not succeed.
        """
        resp = self._request(
            "POST",
            self._url(self.endpoints.turn),
            "Turn request",
            json={"text": text, "session_id": session_id, "context": context},
        )
        payload = _decode_json(resp, "Turn request")
        if not isinstance(payload, dict):
            raise TransportError(
                "Turn request returned an invalid response",
                status=resp.status_code,
                body=resp.text,
            )
        logger.debug("Turn response action={}", payload.get("action"))
        return TurnResult.from_payload(payload)

    def upload_for_extraction_sync(
        self, file: UploadFile, context: dict[str, Any]
    ) -> ExtractionResult:
        """
        Upload an image for OCR.

        Args:
            file (UploadFile): The image to process.
            context (dict[str, Any]): The conversation context, sent as a form field.

        Returns:
            ExtractionResult: The extracted text; empty when nothing was found.

        Raises:
            TransportError: If the upload does not succeed.
        """
        resp = self._request(
            "POST",
            self._url(self.endpoints.extraction),
            "File upload",
            files={"file": (file.name, file.content, file.mime_type)},
            data={"context": json.dumps(context, ensure_ascii=False)},
        )
        payload = _decode_json(resp, "File upload")
        text = payload.get("text") if isinstance(payload, dict) else None
        return ExtractionResult(text=str(text or "").strip())

    def reset_session_sync(self, session_id: str, language: str) -> TurnResult:
        """
        Ask the backend to drop its state for the session.

        Args:
            session_id (str): The chat session identifier.
            language (str): The active language code.

        Returns:
            TurnResult: The backend's reply, ``reset_success`` on success.
        """
        return self.send_turn_sync(
            RESET_CONVERSATION_COMMAND, session_id, {"language": language}
        )

    def fetch_invoice_pdf_sync(self, pdf_url: str) -> bytes:
        """
        Download an invoice PDF.

        Args:
            pdf_url (str): Content address returned with ``invoice_created``.

        Returns:
            bytes: The PDF document.

        Raises:
            TransportError: If the download fails; the detail prefers the backend's JSON ``message``.
        """
        try:
            resp = self.http.get(pdf_url, timeout=self.host_cfg.request_timeout)
        except requests.RequestException as e:
            logger.error("Failed to download PDF from {}: {}", pdf_url, e)
            raise TransportError(f"Failed to download PDF: {e}", body=str(e)) from e

        if not resp.ok:
            detail = f"{resp.status_code} {resp.reason}"
            try:
                error_json = resp.json()
                if isinstance(error_json, dict) and error_json.get("message"):
                    detail = str(error_json["message"])
            except ValueError:
                pass
            logger.error("Failed to download PDF from {}: {}", pdf_url, detail)
            raise TransportError(
                f"Failed to download PDF: {detail}",
                status=resp.status_code,
                body=resp.text,
            )
        return resp.content

    def fetch_items_sync(self) -> list[dict[str, Any]]:
        """
        List the invoice items known to the backend.

        Returns:
            list[dict[str, Any]]: Item dicts (``item_id``, ``name``, ``rate``).
        """
        resp = self._request("GET", self._url(self.endpoints.items), "Item listing")
        payload = _decode_json(resp, "Item listing")
        if isinstance(payload, dict):
            payload = payload.get("items", [])
        return [item for item in payload or [] if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # Async facade
    # ------------------------------------------------------------------

    async def send_turn(
        self, text: str, session_id: str, context: dict[str, Any]
    ) -> TurnResult:
        return await anyio.to_thread.run_sync(
            partial(self.send_turn_sync, text, session_id, context)
        )

    async def upload_for_extraction(
        self, file: UploadFile, context: dict[str, Any]
    ) -> ExtractionResult:
        return await anyio.to_thread.run_sync(
            partial(self.upload_for_extraction_sync, file, context)
        )

    async def reset_session(self, session_id: str, language: str) -> TurnResult:
        return await anyio.to_thread.run_sync(
            partial(self.reset_session_sync, session_id, language)
        )

    async def fetch_invoice_pdf(self, pdf_url: str) -> bytes:
        return await anyio.to_thread.run_sync(
            partial(self.fetch_invoice_pdf_sync, pdf_url)
        )

    async def fetch_items(self) -> list[dict[str, Any]]:
        return await anyio.to_thread.run_sync(self.fetch_items_sync)
