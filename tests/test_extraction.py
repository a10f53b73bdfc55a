"""
Tests del ingreso inteligente: extracción con IA y documentos guardados
"""
import io
import json
from types import SimpleNamespace

import pytest

from backoffice.api import smart_entry
from backoffice.services.extraction import (
    ExtractionError, extract_ticket_data, extract_visa_data, to_data_uri,
)
from backoffice.utils import storage


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(payload):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content)))


PDF_URI = to_data_uri(b"%PDF-1.4 fake")


def test_to_data_uri():
    assert to_data_uri(b"abc", "image/png") == "data:image/png;base64,YWJj"


def test_extract_ticket_normalizes_response():
    client = fake_client({
        "pnr": " abc123 ",
        "route": "bgw-dxb",
        "airline": "Emirates",
        "airlineIataCode": "ek",
        "issueDate": "2024-05-01",
        "passengers": [
            {"name": "ALI HASSAN", "ticketNumber": "1761234567890", "passengerType": "Adult"},
            {"name": "BABY HASSAN", "passengerType": "Baby", "ticketType": "Lost"},
        ],
    })

    data = extract_ticket_data(PDF_URI, client=client)

    assert data["pnr"] == "ABC123"
    assert data["route"] == "BGW-DXB"
    assert data["airlineIataCode"] == "EK"
    assert data["airlineLogoUrl"].endswith("/EK.svg")
    assert data["travelDate"] == ""
    assert data["passengers"][1]["passengerType"] == "Adult"
    assert data["passengers"][1]["ticketType"] == "Issue"

    request = client.chat.completions.calls[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["messages"][1]["content"][1]["type"] == "file"


def test_extract_ticket_ignores_invalid_iata_code():
    data = extract_ticket_data(PDF_URI, client=fake_client({"pnr": "X1", "airlineIataCode": "EMIRATES"}))
    assert "airlineIataCode" not in data
    assert "airlineLogoUrl" not in data


def test_extract_visa_from_image():
    client = fake_client({
        "destination": "Turkey", "visaType": "Tourist", "applicationNumber": 778899,
        "passengers": [{"name": "SARA ALI", "passportNumber": "A1234567"}],
    })

    data = extract_visa_data(to_data_uri(b"img", "image/jpeg"), client=client)

    assert data == {
        "destination": "Turkey",
        "visaType": "Tourist",
        "applicationNumber": "778899",
        "passengers": [{"name": "SARA ALI", "passportNumber": "A1234567"}],
    }
    assert client.chat.completions.calls[0]["messages"][1]["content"][1]["type"] == "image_url"


def test_extraction_errors():
    with pytest.raises(ExtractionError):
        extract_ticket_data("not-a-data-uri", client=fake_client({}))
    with pytest.raises(ExtractionError):
        extract_ticket_data(PDF_URI, client=fake_client("no es json"))
    with pytest.raises(ExtractionError):
        extract_ticket_data(PDF_URI, client=fake_client("   "))
    with pytest.raises(ExtractionError):
        extract_ticket_data(PDF_URI, client=fake_client("[1, 2]"))
    with pytest.raises(ExtractionError):
        extract_ticket_data(PDF_URI, api_key=None)


def test_smart_entry_without_api_key(client, auth_headers):
    response = client.post("/api/smart-entry/ticket", json={"file_data_uri": PDF_URI}, headers=auth_headers)
    assert response.status_code == 400
    assert "OPENAI_API_KEY" in response.get_json()["error"]

    assert client.post("/api/smart-entry/hotel", json={}, headers=auth_headers).status_code == 404
    assert client.post("/api/smart-entry/ticket", json={}, headers=auth_headers).status_code == 400


def test_smart_entry_upload_saves_document(client, auth_headers, monkeypatch, tmp_path):
    monkeypatch.setattr(storage, "UPLOADS_DIR", str(tmp_path))

    def fake_extractor(file_data_uri, api_key=None, model=None):
        assert file_data_uri.startswith("data:application/pdf;base64,")
        return {"pnr": "ABC123", "passengers": []}

    monkeypatch.setitem(smart_entry.EXTRACTORS, "ticket", (fake_extractor, "tickets"))

    response = client.post(
        "/api/smart-entry/ticket",
        data={"file": (io.BytesIO(b"%PDF-1.4 boleto"), "boleto.pdf", "application/pdf")},
        headers=auth_headers,
        content_type="multipart/form-data",
    )
    body = response.get_json()
    assert response.status_code == 200
    assert body["data"]["pnr"] == "ABC123"
    assert body["document_url"].startswith("/api/documents/tickets/")

    document = client.get(body["document_url"], headers=auth_headers)
    assert document.status_code == 200
    assert document.data == b"%PDF-1.4 boleto"
    assert document.mimetype == "application/pdf"


def test_smart_entry_rejects_extension(client, auth_headers):
    response = client.post(
        "/api/smart-entry/visa",
        data={"file": (io.BytesIO(b"MZ"), "virus.exe")},
        headers=auth_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


def test_missing_document(client, auth_headers, monkeypatch, tmp_path):
    monkeypatch.setattr(storage, "UPLOADS_DIR", str(tmp_path))
    response = client.get("/api/documents/tickets/missing.pdf", headers=auth_headers)
    assert response.status_code == 404
    assert response.mimetype == "text/plain"
