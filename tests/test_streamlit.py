from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from streamlit.testing.v1 import AppTest

from invochat.core.state.messages import DownloadLink, Message
from invochat.ui.components import chat_transcript, download_anchor

APP_PATH = Path(__file__).resolve().parents[1] / "invochat" / "app.py"


def test_chat_transcript_lists_roles_and_links() -> None:
    messages = [
        Message(text="create invoice", is_bot=False, timestamp="09:00"),
        Message(
            text="Done",
            is_bot=True,
            timestamp="09:01",
            attachment=DownloadLink(url="http://x/1.pdf", filename="invoice_1.pdf"),
        ),
    ]
    text = chat_transcript(messages)
    assert "[09:00] USER: create invoice" in text
    assert "[09:01] ASSISTANT: Done" in text
    assert "http://x/1.pdf" in text


def test_download_anchor_sets_filename_and_escapes() -> None:
    anchor = download_anchor(
        DownloadLink(url='http://x/1.pdf?a=1&b="2"', filename="invoice_1.pdf")
    )
    assert 'download="invoice_1.pdf"' in anchor
    assert "&amp;" in anchor
    assert "&quot;2&quot;" in anchor


def test_streamlit_app_loads(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Test that the Streamlit app loads and greets the user without network calls.
    """
    monkeypatch.setenv("CHAT_LANGUAGE", "en")
    at = AppTest.from_file(str(APP_PATH))
    at.run(timeout=30)
    assert not at.exception
    assert "Invoice Generator AI assistant" in at.chat_message[0].markdown[0].value
    # Text input stays hidden until a flow starts.
    assert len(at.chat_input) == 0


@patch("requests.Session.request")
def test_quick_action_reveals_chat_input(
    mock_request: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    """
    Clicking a quick action runs a turn and discloses the free-text input.

    Args:
        mock_request (MagicMock): The mock object for requests.Session.request.
    """
    monkeypatch.setenv("CHAT_LANGUAGE", "en")
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = {
        "action": "ask_question",
        "message": "What is the customer phone?",
    }
    mock_request.return_value = mock_response

    at = AppTest.from_file(str(APP_PATH))
    at.run(timeout=30)
    button = next(b for b in at.button if b.label == "🧾 Create invoice")
    button.click().run(timeout=30)

    assert not at.exception
    assert len(at.chat_input) == 1
    rendered = [m.markdown[0].value for m in at.chat_message if m.markdown]
    assert "create invoice" in rendered
    assert "What is the customer phone?" in rendered


@patch("requests.Session.request")
def test_invoice_created_offers_pdf_download(
    mock_request: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    """
    An ``invoice_created`` reply renders a PDF download button backed by the fetched bytes.

    Args:
        mock_request (MagicMock): The mock object for requests.Session.request.
    """
    monkeypatch.setenv("CHAT_LANGUAGE", "en")
    pdf_url = "https://x/1.pdf"

    def fake_request(method: str, url: str, *args, **kwargs) -> MagicMock:
        resp = MagicMock()
        resp.status_code = 200
        resp.ok = True
        if method.upper() == "GET" and url == pdf_url:
            resp.content = b"%PDF-1.4 invoice"
        else:
            resp.json.return_value = {
                "action": "invoice_created",
                "message": "Invoice INV-1 created.",
                "invoice_id": "INV-1",
                "pdf_url": pdf_url,
            }
        return resp

    mock_request.side_effect = fake_request

    at = AppTest.from_file(str(APP_PATH))
    at.run(timeout=30)
    button = next(b for b in at.button if b.label == "🧾 Create invoice")
    button.click().run(timeout=30)

    assert not at.exception
    # Transcript export plus the invoice PDF.
    assert len(at.get("download_button")) == 2
    assert at.session_state.pdf_cache == {pdf_url: b"%PDF-1.4 invoice"}
    pdf_fetches = [
        c for c in mock_request.call_args_list if c.args[:2] == ("GET", pdf_url)
    ]
    assert len(pdf_fetches) == 1


@patch("requests.Session.request")
def test_invoice_pdf_failure_shows_error_and_link(
    mock_request: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    """
    A failed PDF fetch surfaces the backend's message and keeps a plain link.

    Args:
        mock_request (MagicMock): The mock object for requests.Session.request.
    """
    monkeypatch.setenv("CHAT_LANGUAGE", "en")
    pdf_url = "https://x/2.pdf"

    def fake_request(method: str, url: str, *args, **kwargs) -> MagicMock:
        resp = MagicMock()
        if method.upper() == "GET" and url == pdf_url:
            resp.status_code = 404
            resp.ok = False
            resp.reason = "Not Found"
            resp.text = '{"message": "PDF not found"}'
            resp.json.return_value = {"message": "PDF not found"}
        else:
            resp.status_code = 200
            resp.ok = True
            resp.json.return_value = {
                "action": "invoice_created",
                "message": "Invoice INV-2 created.",
                "invoice_id": "INV-2",
                "pdf_url": pdf_url,
            }
        return resp

    mock_request.side_effect = fake_request

    at = AppTest.from_file(str(APP_PATH))
    at.run(timeout=30)
    button = next(b for b in at.button if b.label == "🧾 Create invoice")
    button.click().run(timeout=30)

    assert not at.exception
    assert any("PDF not found" in e.value for e in at.error)
    assert len(at.get("download_button")) == 1
    assert at.session_state.pdf_cache == {}
