"""
Tests de recordatorios de cuotas por WhatsApp
"""
from datetime import datetime

import pytest
import requests

from backoffice.db import db
from backoffice.models import AppSettings
from backoffice.services import whatsapp
from backoffice.services.subscriptions import create_subscription


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


@pytest.fixture
def whatsapp_configured(app):
    app.config["WHATSAPP_INSTANCE_ID"] = "instance1"
    app.config["WHATSAPP_API_TOKEN"] = "token"
    return app


@pytest.fixture
def sent_messages(monkeypatch):
    messages = []

    def fake_post(url, data=None, timeout=None):
        messages.append({"url": url, **data})
        return FakeResponse()

    monkeypatch.setattr(whatsapp.requests, "post", fake_post)
    return messages


def test_not_configured_does_not_send(app, sent_messages):
    assert whatsapp.send_whatsapp_message("+9647700000000", "hola") is False
    assert sent_messages == []


def test_send_message(whatsapp_configured, sent_messages):
    assert whatsapp.send_whatsapp_message("+9647700000000", "hola") is True
    assert sent_messages == [{
        "url": "https://api.ultramsg.com/instance1/messages/chat",
        "token": "token", "to": "+9647700000000", "body": "hola",
    }]


def test_send_message_api_error(whatsapp_configured, monkeypatch):
    monkeypatch.setattr(whatsapp.requests, "post", lambda *args, **kwargs: FakeResponse(500))
    assert whatsapp.send_whatsapp_message("+9647700000000", "hola") is False


def test_installment_reminders(whatsapp_configured, sent_messages, customer, supplier, box):
    create_subscription({
        "client_id": customer.id, "supplier_id": supplier.id, "service_name": "Seguro de viaje",
        "purchase_price": 40, "unit_price": 100, "quantity": 1, "start_date": datetime(2024, 6, 10),
        "number_of_installments": 2, "currency": "USD", "box_id": box.id,
    })
    db.session.commit()

    result = whatsapp.send_installment_reminders(today=datetime(2024, 6, 8))
    db.session.commit()

    assert result == {"sent": 1, "skipped": 0}
    assert sent_messages[0]["to"] == customer.phone
    assert "Seguro de viaje" in sent_messages[0]["body"]
    assert "2024-06-10" in sent_messages[0]["body"]

    # La misma cuota no se recuerda dos veces
    result = whatsapp.send_installment_reminders(today=datetime(2024, 6, 8))
    assert result == {"sent": 0, "skipped": 1}


def test_reminder_with_broken_template_is_skipped(whatsapp_configured, sent_messages, customer, supplier, box):
    settings = AppSettings.get_instance()
    settings.data = {"whatsapp_settings": {"installment_reminder_template": "Hola {nombre}, cuota {0}"}}
    create_subscription({
        "client_id": customer.id, "supplier_id": supplier.id, "service_name": "Seguro de viaje",
        "purchase_price": 40, "unit_price": 100, "quantity": 1, "start_date": datetime(2024, 6, 10),
        "number_of_installments": 1, "currency": "USD", "box_id": box.id,
    })
    db.session.commit()

    result = whatsapp.send_installment_reminders(today=datetime(2024, 6, 8))

    assert result == {"sent": 0, "skipped": 1}
    assert sent_messages == []
