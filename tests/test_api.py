import pytest
from fastapi.testclient import TestClient

import llm_handler
import main
from form_store import FormStore


QUOTE_FORM = {
    "config": {
        "theme": {"colors": {"primary": "#0E565B"}},
        "steps": [
            {"type": "tiles", "title": "Use case", "options": [{"id": "X", "title": "X"}]},
            {"type": "multiSelect", "title": "Languages", "options": [{"id": "de", "title": "German"}]},
            {"type": "documentUpload", "title": "Upload"},
            {"type": "documentInfo", "title": "Quote"},
            {"type": "contact", "title": "Contact"},
        ],
    },
    "promptHistory": ["translation quote form"],
}


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(main, "form_store", FormStore())
    monkeypatch.setattr(main, "sessions", {})
    monkeypatch.setattr(main.settings, "upload_dir", str(tmp_path))
    return TestClient(main.app)


def _start(client) -> dict:
    form = client.post("/api/forms", json=QUOTE_FORM).json()
    response = client.post(f"/api/forms/{form['id']}/session")
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_save_and_fetch_form(client):
    form = client.post("/api/forms", json=QUOTE_FORM).json()

    fetched = client.get(f"/api/forms/{form['id']}").json()

    assert fetched["promptHistory"] == ["translation quote form"]
    assert fetched["iconMode"] == "lucide"
    assert fetched["config"]["steps"][0]["options"] == [{"id": "X", "title": "X"}]
    assert client.get("/api/forms/999").status_code == 404


def test_new_session_starts_fresh(client):
    state = _start(client)

    assert state["currentStep"] == 1
    assert state["totalSteps"] == 5
    assert state["formResponses"] == {}
    assert state["tempJson"] == {}
    assert state["sessionNo"] == 1
    assert state["isCurrentStepValid"] is False


def test_unknown_session_404(client):
    assert client.get("/api/sessions/123").status_code == 404
    assert client.post("/api/sessions/123/next").status_code == 404


def test_full_quote_flow(client, monkeypatch):
    captured = {}

    async def fake_quotation(form_responses, document_content, content_prompt):
        captured["document_content"] = document_content
        return {"success": True, "error": None, "quotationHtml": "<div>120 €</div>"}

    monkeypatch.setattr(main, "generate_quotation", fake_quotation)
    sid = _start(client)["sessionId"]

    state = client.post(f"/api/sessions/{sid}/responses", json={"stepTitle": "Use case", "value": "X"}).json()
    assert state["tempJson"] == {"Use case": "X"}
    assert client.post(f"/api/sessions/{sid}/advance").json() == {"ok": True, "currentStep": 2, "error": None}

    assert client.post(f"/api/sessions/{sid}/advance").status_code == 400
    state = client.post(f"/api/sessions/{sid}/toggle", json={"stepTitle": "Languages", "optionId": "de"}).json()
    assert state["formResponses"]["Languages"] == ["de"]
    assert client.post(f"/api/sessions/{sid}/advance").json()["currentStep"] == 3

    state = client.post(
        f"/api/sessions/{sid}/upload",
        files={"file": ("letter.txt", b"hello", "text/plain")},
    ).json()
    assert state["tempJson"]["documentContent"] == "hello"
    assert state["tempJson"]["Upload"]["fileName"] == "letter.txt"
    assert state["hasDocumentUploaded"] is True

    state = client.post(f"/api/sessions/{sid}/next").json()
    assert state["currentStep"] == 4

    quote = client.post(f"/api/sessions/{sid}/quotation").json()
    assert quote == {"success": True, "quotationHtml": "<div>120 €</div>", "error": None}
    assert captured["document_content"] == "hello"

    html = client.get(f"/api/sessions/{sid}/document-info").json()["html"]
    assert "letter.txt" in html

    state = client.post(f"/api/sessions/{sid}/next").json()
    assert state["currentStep"] == 5
    state = client.post(f"/api/sessions/{sid}/submit").json()
    assert state["isFormComplete"] is True
    assert "Quote" not in state["tempJson"]


def test_upload_rejects_unsupported_type(client):
    sid = _start(client)["sessionId"]

    response = client.post(
        f"/api/sessions/{sid}/upload",
        files={"file": ("photo.exe", b"MZ", "application/octet-stream")},
    )

    assert response.status_code == 400


def test_next_skips_document_info_without_upload(client):
    sid = _start(client)["sessionId"]
    client.post(f"/api/sessions/{sid}/next")
    client.post(f"/api/sessions/{sid}/next")

    state = client.post(f"/api/sessions/{sid}/next").json()

    assert state["currentStep"] == 5


def test_step_validity_and_reset(client):
    sid = _start(client)["sessionId"]
    client.post(f"/api/sessions/{sid}/responses", json={"stepTitle": "Use case", "value": "X"})

    assert client.get(f"/api/sessions/{sid}/steps/0/valid").json() == {"stepIndex": 0, "valid": True}
    assert client.get(f"/api/sessions/{sid}/steps/4/valid").json()["valid"] is True
    assert client.get(f"/api/sessions/{sid}/steps/9/valid").json()["valid"] is False

    state = client.post(f"/api/sessions/{sid}/reset").json()
    assert state["formResponses"] == {}
    assert state["formId"] is not None


def test_theme_update_and_reset_server_config(client):
    sid = _start(client)["sessionId"]
    client.post(f"/api/sessions/{sid}/responses", json={"stepTitle": "Use case", "value": "X"})

    state = client.patch(
        f"/api/sessions/{sid}/theme",
        json={"colorType": "accent", "colorValue": "#123456", "fontFamily": "Inter"},
    ).json()
    assert state["formConfig"]["theme"]["colors"]["accent"] == "#123456"
    assert state["formConfig"]["theme"]["font"]["family"] == "Inter"
    assert state["formResponses"] == {"Use case": "X"}

    state = client.post(f"/api/sessions/{sid}/reset-server-config").json()
    assert "accent" not in state["formConfig"]["theme"]["colors"]
    assert state["formResponses"] == {}
    assert state["promptHistory"] == ["translation quote form"]


def test_generate_quotation_fallback(client, monkeypatch):
    monkeypatch.setattr(llm_handler, "get_llm", lambda: None)

    response = client.post(
        "/api/generate-quotation",
        json={"formResponses": {"Use case": "X"}, "documentData": {"documentContent": "hello"}},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert "quotation-content" in body["quotationHtml"]


def test_uploaded_document_is_served(client):
    sid = _start(client)["sessionId"]

    state = client.post(
        f"/api/sessions/{sid}/upload",
        files={"file": ("letter.txt", b"hello", "text/plain")},
    ).json()
    document_url = state["formResponses"]["Upload"]["documentUrl"]

    response = client.get(document_url)

    assert response.status_code == 200
    assert response.content == b"hello"
    assert client.get(f"/uploads/{sid}/missing.txt").status_code == 404


def test_failed_extraction_removes_stored_file(client, monkeypatch, tmp_path):
    def broken_extract(file_path):
        raise ValueError("Unreadable document")

    monkeypatch.setattr(main, "extract_document_text", broken_extract)
    sid = _start(client)["sessionId"]

    response = client.post(
        f"/api/sessions/{sid}/upload",
        files={"file": ("letter.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert list((tmp_path / str(sid)).iterdir()) == []
    assert client.get(f"/api/sessions/{sid}").json()["formResponses"] == {}
