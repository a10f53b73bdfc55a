"""
Tests de segmentos: ganancia por servicio y reparto con socios
"""
from datetime import datetime

import pytest

from backoffice.db import db
from backoffice.models import SegmentEntry
from backoffice.services.segments import (
    compute_service, compute_company_total, split_profit, create_segment_period,
    update_segment_entry, delete_segment_period,
)


def test_compute_service():
    assert compute_service(0, "fixed", 10) == 0
    assert compute_service(5, "fixed", 0) == 0
    assert compute_service(4, "fixed", 12.5) == 50
    assert compute_service(10, "percentage", 50) == 5


def test_company_total_uses_defaults():
    # tickets 50 %, visas 100 %
    assert compute_company_total({"tickets": 10, "visas": 3}) == 8


def test_split_profit_without_partner():
    result = split_profit(100, has_partner=False, company_share_percentage=30)
    assert result == {"company_share": 100, "partner_pool": 0, "partner_shares": []}


def test_split_profit_with_partners():
    result = split_profit(200, True, 60, [
        {"partner_id": "p1", "percentage": 75},
        {"partner_id": "p2", "percentage": 25},
    ])
    assert result["partner_pool"] == 80
    assert result["company_share"] == 120
    assert result["company_share"] + result["partner_pool"] == 200
    assert [s["amount"] for s in result["partner_shares"]] == [60, 20]


def test_split_profit_rejects_invalid_percentage():
    with pytest.raises(ValueError):
        split_profit(100, True, 120)
    with pytest.raises(ValueError):
        split_profit(100, True, 50, [{"partner_id": "p1", "percentage": -5}])


def test_create_period_shares_invoice_number(app, customer):
    entries = create_segment_period(datetime(2024, 1, 1), datetime(2024, 1, 31), [
        {
            "company_name": "Ahmed Travel", "client_id": customer.id, "tickets": 20,
            "ticket_profit_type": "fixed", "ticket_profit_value": 5,
            "has_partner": True, "company_share_percentage": 50,
            "partners": [{"partner_id": "p1", "partner_name": "Socio", "percentage": 100}],
        },
        {"company_name": "Walk-in", "visas": 2, "visa_profit_type": "fixed", "visa_profit_value": 15},
    ])
    db.session.commit()

    assert {e.invoice_number for e in entries} == {"SEG-00001"}
    first, second = entries
    assert first.total == 100
    assert first.company_share == 50
    assert first.partner_shares[0]["amount"] == 50
    assert first.partner_shares[0]["invoice_number"] == "PARTNER-00001"
    assert second.total == 30
    assert second.partner_share == 0

    assert customer.segment_settings["ticket_profit_type"] == "fixed"
    assert customer.partner_share_settings["company_share_percentage"] == 50


def test_create_period_validates_dates(app):
    with pytest.raises(ValueError):
        create_segment_period(datetime(2024, 2, 1), datetime(2024, 1, 1), [{"company_name": "X"}])


def test_update_keeps_partner_invoice_number(app, customer):
    entry = create_segment_period(datetime(2024, 1, 1), datetime(2024, 1, 31), [{
        "company_name": "Ahmed Travel", "client_id": customer.id, "tickets": 10,
        "ticket_profit_type": "fixed", "ticket_profit_value": 10,
        "has_partner": True, "company_share_percentage": 80,
        "partners": [{"partner_id": "p1", "percentage": 100}],
    }])[0]
    db.session.commit()

    update_segment_entry(entry, {"tickets": 20})
    db.session.commit()

    assert entry.total == 200
    assert entry.partner_share == 40
    assert entry.partner_shares[0]["invoice_number"] == "PARTNER-00001"


def test_delete_period(app):
    create_segment_period(datetime(2024, 1, 1), datetime(2024, 1, 31), [{"company_name": "A"}, {"company_name": "B"}])
    create_segment_period(datetime(2024, 2, 1), datetime(2024, 2, 29), [{"company_name": "C"}])
    db.session.commit()

    assert delete_segment_period(datetime(2024, 1, 1), datetime(2024, 1, 31)) == 2
    db.session.commit()
    assert SegmentEntry.query.count() == 1


def test_segments_api(client, auth_headers):
    response = client.post("/api/segments", json={
        "from_date": "2024-03-01", "to_date": "2024-03-31",
        "entries": [{"company_name": "Agencia Norte", "tickets": 4, "ticket_profit_type": "fixed",
                     "ticket_profit_value": 25}],
    }, headers=auth_headers)
    assert response.status_code == 201
    entry_id = response.get_json()["entries"][0]["id"]

    response = client.post(f"/api/segments/{entry_id}/soft-delete", headers=auth_headers)
    assert response.status_code == 200
    assert client.get("/api/segments", headers=auth_headers).get_json() == []

    response = client.post(f"/api/segments/{entry_id}/restore", headers=auth_headers)
    assert response.get_json()["entry"]["total"] == 100

    response = client.delete("/api/segments/period?from=2024-03-01&to=2024-03-31", headers=auth_headers)
    assert response.get_json()["deleted"] == 1


def test_partner_percentages_must_add_up_to_100():
    with pytest.raises(ValueError):
        split_profit(100, True, 50, [
            {"partner_id": "p1", "percentage": 60},
            {"partner_id": "p2", "percentage": 60},
        ])
    with pytest.raises(ValueError):
        split_profit(100, True, 50, [{"partner_id": "p1", "percentage": 30}])


def test_period_rejects_partial_partner_split(app):
    with pytest.raises(ValueError):
        create_segment_period(datetime(2024, 1, 1), datetime(2024, 1, 31), [{
            "company_name": "Agencia Sur", "tickets": 10, "ticket_profit_type": "fixed",
            "ticket_profit_value": 10, "has_partner": True, "company_share_percentage": 50,
            "partners": [{"partner_id": "p1", "percentage": 30}],
        }])


def test_partner_pool_needs_partners():
    with pytest.raises(ValueError):
        split_profit(100, True, 60, [])
    assert split_profit(100, True, 100, [])["company_share"] == 100


def test_split_rounding_goes_to_last_partner():
    result = split_profit(100, True, 0, [
        {"partner_id": "p1", "percentage": 33.33},
        {"partner_id": "p2", "percentage": 33.33},
        {"partner_id": "p3", "percentage": 33.34},
    ])
    amounts = [s["amount"] for s in result["partner_shares"]]
    assert round(sum(amounts), 2) == result["partner_pool"] == 100


def test_fixed_partner_share():
    result = split_profit(200, True, 50, [
        {"partner_id": "p1", "type": "fixed", "value": 30},
        {"partner_id": "p2", "type": "percentage", "value": 100},
    ])
    assert result["partner_pool"] == 100
    assert [s["amount"] for s in result["partner_shares"]] == [30, 70]
    assert result["company_share"] == 100


def test_fixed_shares_only_return_rest_to_agency():
    result = split_profit(200, True, 50, [{"partner_id": "p1", "type": "fixed", "value": 40}])
    assert result["partner_pool"] == 40
    assert result["company_share"] == 160


def test_fixed_shares_cannot_exceed_pool():
    with pytest.raises(ValueError):
        split_profit(200, True, 50, [{"partner_id": "p1", "type": "fixed", "value": 150}])
    with pytest.raises(ValueError):
        split_profit(200, True, 50, [{"partner_id": "p1", "type": "bonus", "value": 10}])


def test_zero_profit_value_uses_default():
    # tickets al 50 % y visas al 100 % aunque el valor venga en 0
    assert compute_company_total({"tickets": 10, "ticket_profit_value": 0, "visas": 3, "visa_profit_value": ""}) == 8
