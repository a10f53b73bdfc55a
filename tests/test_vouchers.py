"""
Tests de comprobantes: recibos, pagos, gastos, asientos manuales y recibos distribuidos
"""
import pytest

from backoffice.db import db
from backoffice.models import JournalVoucher, Notification, AppSettings
from backoffice.services.vouchers import (
    validate_distribution, build_distributed_entries, save_distributed_voucher,
    UNKNOWN_DISTRIBUTION_ACCOUNT,
)


def _lines(voucher):
    return {(e.account_id, e.side): e.amount for e in voucher.entries}


# ---------------------------------------------------------------------------
# Recibo distribuido
# ---------------------------------------------------------------------------

def test_validate_distribution():
    assert validate_distribution(100, 40, {"a": 60})
    assert validate_distribution(100, 40, {"a": {"enabled": True, "amount": 59.995}})
    assert not validate_distribution(100, 40, {"a": 50})
    # Sin distribución la validación del formulario no aplica
    assert validate_distribution(100, 0, {})
    assert validate_distribution(100, 0, {"a": {"enabled": False, "amount": 100}})


def test_build_distributed_entries_unknown_channel():
    settings = {"channels": [{"id": "ch_office", "name": "Oficina", "account_id": "acc_office"}]}
    entries = build_distributed_entries(
        {"box_id": "box1", "account_id": "rel1", "total_amount": 100, "company_amount": 40,
         "distributions": {"ch_office": 30, "ch_missing": 30}},
        settings,
    )
    accounts = [e["account_id"] for e in entries]
    assert "acc_office" in accounts
    assert UNKNOWN_DISTRIBUTION_ACCOUNT in accounts


def test_build_distributed_entries_mismatch():
    with pytest.raises(ValueError):
        build_distributed_entries(
            {"box_id": "box1", "account_id": "rel1", "total_amount": 100, "company_amount": 40,
             "distributions": {"ch_office": 30}},
            {"channels": []},
        )


def test_save_distributed_voucher(app, customer, box, distribution_channels):
    voucher = save_distributed_voucher({
        "account_id": customer.id,
        "box_id": box.id,
        "total_amount": 1000,
        "company_amount": 600,
        "currency": "USD",
        "reference": "REF-1",
        "distributions": {
            "ch_office": {"enabled": True, "amount": 250},
            "ch_online": {"enabled": True, "amount": 150},
        },
    })
    db.session.commit()

    assert voucher.invoice_number.startswith("DS-")
    assert voucher.voucher_type == "journal_from_distributed_receipt"
    assert _lines(voucher) == {
        (box.id, "debit"): 1000,
        (customer.id, "credit"): 600,
        ("acc_office", "credit"): 250,
        ("acc_online", "credit"): 150,
    }
    assert customer.use_count == 1
    assert box.use_count == 1


def test_zero_distribution_still_needs_balance(app, customer, box, distribution_channels):
    with pytest.raises(ValueError):
        save_distributed_voucher({
            "account_id": customer.id, "box_id": box.id, "total_amount": 100,
            "company_amount": 0, "currency": "USD", "distributions": {},
        })


def test_distributed_without_settings(app, customer, box):
    settings = AppSettings.get_instance()
    settings.data = {"voucher_settings": {"distributed": None}}
    db.session.commit()

    with pytest.raises(ValueError, match="configuración de recibos distribuidos"):
        save_distributed_voucher({
            "account_id": customer.id, "box_id": box.id, "total_amount": 100,
            "company_amount": 100, "currency": "USD",
        })


def test_update_distributed_voucher_via_api(client, auth_headers, customer, box, distribution_channels):
    payload = {
        "account_id": customer.id, "box_id": box.id, "total_amount": "1,000",
        "company_amount": 1000, "currency": "USD",
    }
    response = client.post("/api/vouchers/distributed", json=payload, headers=auth_headers)
    assert response.status_code == 201
    voucher_id = response.get_json()["voucher"]["id"]
    number = response.get_json()["voucher"]["invoice_number"]

    payload.update({"company_amount": 700, "distributions": {"ch_office": 300}})
    response = client.put(f"/api/vouchers/distributed/{voucher_id}", json=payload, headers=auth_headers)
    assert response.status_code == 200

    voucher = JournalVoucher.query.get(voucher_id)
    assert voucher.invoice_number == number
    assert _lines(voucher)[("acc_office", "credit")] == 300
    assert voucher.total_credit == 1000


def test_distributed_mismatch_returns_400(client, auth_headers, customer, box, distribution_channels):
    response = client.post("/api/vouchers/distributed", json={
        "account_id": customer.id, "box_id": box.id, "total_amount": 100,
        "company_amount": 50, "distributions": {"ch_office": 10}, "currency": "USD",
    }, headers=auth_headers)

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert JournalVoucher.query.count() == 0


# ---------------------------------------------------------------------------
# Otros comprobantes
# ---------------------------------------------------------------------------

def test_standard_receipt(client, auth_headers, customer, box):
    response = client.post("/api/vouchers/standard", json={
        "from": customer.id, "to_box": box.id, "amount": 250, "currency": "USD", "details": "Abono",
    }, headers=auth_headers)

    assert response.status_code == 201
    data = response.get_json()["voucher"]
    assert data["invoice_number"] == "RC-00001"
    assert data["total_debit"] == data["total_credit"] == 250
    assert Notification.query.filter_by(user_id=customer.id).count() == 1


def test_payment_voucher(client, auth_headers, supplier, box):
    response = client.post("/api/vouchers/payment", json={
        "to_supplier_id": supplier.id, "box_id": box.id, "amount": 80, "purpose": "services",
    }, headers=auth_headers)

    assert response.status_code == 201
    entries = response.get_json()["voucher"]["entries"]
    debit = next(e for e in entries if e["side"] == "debit")
    assert debit["account_id"] == supplier.id
    assert supplier.use_count == 1 and box.use_count == 1


def test_payment_voucher_invalid_purpose(client, auth_headers, supplier, box):
    response = client.post("/api/vouchers/payment", json={
        "to_supplier_id": supplier.id, "box_id": box.id, "amount": 10, "purpose": "gifts",
    }, headers=auth_headers)
    assert response.status_code == 400


def test_expense_voucher(client, auth_headers, box):
    response = client.post("/api/vouchers/expense", json={
        "expense_type": "rent", "box_id": box.id, "amount": 500,
    }, headers=auth_headers)

    assert response.status_code == 201
    entries = response.get_json()["voucher"]["entries"]
    assert {"expense_rent", box.id} == {e["account_id"] for e in entries}


def test_journal_voucher_requires_both_sides(client, auth_headers):
    response = client.post("/api/vouchers/journal", json={
        "entries": [{"account_id": "a", "debit": 10}, {"account_id": "b", "debit": 10}],
    }, headers=auth_headers)
    assert response.status_code == 400

    response = client.post("/api/vouchers/journal", json={
        "entries": [{"account_id": "a", "debit": 10}, {"account_id": "b", "credit": 10}],
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.get_json()["voucher"]["invoice_number"].startswith("JE-")


def test_delete_restore_and_deleted_log(client, auth_headers, customer, box):
    created = client.post("/api/vouchers/standard", json={
        "from": customer.id, "to_box": box.id, "amount": 10,
    }, headers=auth_headers).get_json()["voucher"]

    response = client.delete(f"/api/vouchers/{created['id']}", json={"reason": "error"}, headers=auth_headers)
    assert response.status_code == 200

    deleted = client.get("/api/vouchers/deleted", headers=auth_headers).get_json()
    assert deleted[0]["voucher_id"] == created["id"]
    assert deleted[0]["reason"] == "error"

    listed = client.get("/api/vouchers", headers=auth_headers).get_json()
    assert listed == []

    response = client.post(f"/api/vouchers/{created['id']}/restore", headers=auth_headers)
    assert response.status_code == 200
    assert len(client.get("/api/vouchers", headers=auth_headers).get_json()) == 1


def test_vouchers_require_auth(client):
    assert client.get("/api/vouchers").status_code == 401
    assert client.get("/api/vouchers/999", headers={"Authorization": "Bearer nope"}).status_code == 401
