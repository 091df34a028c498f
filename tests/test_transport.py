import json
from unittest.mock import MagicMock

import pytest
import requests

from invochat.agents.types import UploadFile
from invochat.core.transport import (
    RESET_CONVERSATION_COMMAND,
    TransportClient,
    TransportError,
)
from invochat.utils.env_cfg import EndpointConfig, HostConfig


def _response(status: int = 200, payload=None, text: str = "") -> MagicMock:
    """
    Build a fake ``requests.Response``.

    Args:
        status (int, optional): HTTP status code. Defaults to 200.
        payload (optional): Value returned by ``json()``; ``ValueError`` when None.
        text (str, optional): Raw body. Defaults to "".

    Returns:
        MagicMock: The response mock.
    """
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = "Error" if status >= 400 else "OK"
    resp.text = text or (json.dumps(payload) if payload is not None else "")
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http: MagicMock) -> TransportClient:
    return TransportClient(
        host_cfg=HostConfig(backend_host="http://backend:8000", request_timeout=5),
        endpoints=EndpointConfig(
            turn="/process", extraction="/process-ocr", items="/invoice/items"
        ),
        session=http,
    )


def test_send_turn_posts_text_session_and_context(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(
        payload={"action": "ask_question", "message": "Phone?", "context": {"s": 1}}
    )

    result = client.send_turn_sync("create invoice", "sess", {"language": "en"})

    http.request.assert_called_once_with(
        "POST",
        "http://backend:8000/process",
        json={"text": "create invoice", "session_id": "sess", "context": {"language": "en"}},
        timeout=5,
    )
    assert result.action == "ask_question"
    assert result.message == "Phone?"
    assert result.context == {"s": 1}


def test_send_turn_keeps_action_specific_fields(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(
        payload={"action": "invoice_created", "invoice_id": "INV-1", "pdf_url": "u"}
    )
    result = client.send_turn_sync("yes", "sess", {})
    assert result.context is None
    assert result.get("invoice_id") == "INV-1"
    assert result.get("pdf_url") == "u"


def test_non_2xx_raises_with_status_and_body(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(status=502, text="bad gateway")

    with pytest.raises(TransportError) as exc:
        client.send_turn_sync("hi", "sess", {})

    assert exc.value.status == 502
    assert exc.value.body == "bad gateway"
    assert "502" in exc.value.detail
    assert "bad gateway" in exc.value.detail


def test_network_failure_raises_without_status(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(TransportError) as exc:
        client.send_turn_sync("hi", "sess", {})

    assert exc.value.status is None
    assert "refused" in exc.value.detail


def test_invalid_json_raises(client: TransportClient, http: MagicMock) -> None:
    http.request.return_value = _response(status=200, payload=None, text="<html>")
    with pytest.raises(TransportError):
        client.send_turn_sync("hi", "sess", {})


def test_upload_sends_multipart_and_returns_text(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(payload={"text": " create customer \n"})
    upload = UploadFile(name="card.png", content=b"\x89PNG", mime_type="image/png")

    result = client.upload_for_extraction_sync(upload, {"language": "kn"})

    assert result.text == "create customer"
    args, kwargs = http.request.call_args
    assert args == ("POST", "http://backend:8000/process-ocr")
    assert kwargs["files"] == {"file": ("card.png", b"\x89PNG", "image/png")}
    assert json.loads(kwargs["data"]["context"]) == {"language": "kn"}


def test_upload_with_no_text_is_empty_result(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(payload={"text": ""})
    result = client.upload_for_extraction_sync(UploadFile("a.png", b"x"), {})
    assert result.text == ""


def test_reset_session_sends_reset_command(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(payload={"action": "reset_success"})

    result = client.reset_session_sync("sess", "kn")

    assert result.action == "reset_success"
    kwargs = http.request.call_args.kwargs
    assert kwargs["json"] == {
        "text": RESET_CONVERSATION_COMMAND,
        "session_id": "sess",
        "context": {"language": "kn"},
    }


def test_fetch_invoice_pdf_returns_bytes(client: TransportClient, http: MagicMock) -> None:
    resp = _response(payload=None)
    resp.content = b"%PDF-1.7"
    http.get.return_value = resp

    assert client.fetch_invoice_pdf_sync("http://backend/pdf/1") == b"%PDF-1.7"


def test_fetch_invoice_pdf_prefers_backend_message(
    client: TransportClient, http: MagicMock
) -> None:
    http.get.return_value = _response(status=404, payload={"message": "Invoice not found"})

    with pytest.raises(TransportError) as exc:
        client.fetch_invoice_pdf_sync("http://backend/pdf/1")

    assert str(exc.value) == "Failed to download PDF: Invoice not found"
    assert exc.value.status == 404


def test_fetch_invoice_pdf_falls_back_to_status(
    client: TransportClient, http: MagicMock
) -> None:
    http.get.return_value = _response(status=500, payload=None, text="oops")

    with pytest.raises(TransportError) as exc:
        client.fetch_invoice_pdf_sync("http://backend/pdf/1")

    assert str(exc.value) == "Failed to download PDF: 500 Error"


def test_fetch_items_accepts_list_or_wrapped(
    client: TransportClient, http: MagicMock
) -> None:
    items = [{"item_id": "1", "name": "Cement", "rate": 350}]
    http.request.return_value = _response(payload=items)
    assert client.fetch_items_sync() == items

    http.request.return_value = _response(payload={"items": items})
    assert client.fetch_items_sync() == items


@pytest.mark.anyio
async def test_async_facade_runs_blocking_call(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.return_value = _response(
        payload={"action": "general_response", "message": "hi"}
    )
    result = await client.send_turn("hello", "sess", {"language": "en"})
    assert result.message == "hi"


@pytest.mark.anyio
async def test_async_facade_propagates_transport_error(
    client: TransportClient, http: MagicMock
) -> None:
    http.request.side_effect = requests.Timeout("slow")
    with pytest.raises(TransportError):
        await client.upload_for_extraction(UploadFile("a.png", b"x"), {})
