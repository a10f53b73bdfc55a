"""
Tests de reservas de boletos, operaciones sobre boletos y visas
"""
import pytest

from backoffice.db import db
from backoffice.models import JournalVoucher, Booking
from backoffice.services.bookings import apply_ticket_operation, create_booking
from backoffice.services.ledger import account_balances


def _booking_payload(customer, supplier, **overrides):
    data = {
        "pnr": "abc123",
        "client_id": customer.id,
        "supplier_id": supplier.id,
        "route": "BGW-IST",
        "airline": "Turkish Airlines",
        "currency": "USD",
        "issue_date": "2024-05-02",
        "passengers": [
            {"name": "Ali Hassan", "ticket_number": "2351234567890", "purchase_price": 300, "sale_price": 350},
            {"name": "Sara Hassan", "ticket_number": "2351234567891", "purchase_price": "300", "sale_price": "340"},
        ],
    }
    data.update(overrides)
    return data


def test_create_booking_posts_revenue_and_cost(client, auth_headers, customer, supplier):
    response = client.post("/api/bookings", json=_booking_payload(customer, supplier), headers=auth_headers)
    assert response.status_code == 201
    booking = response.get_json()["booking"]

    assert booking["pnr"] == "ABC123"
    assert booking["invoice_number"] == "BK-00001"
    assert booking["total_sale"] == 690
    assert booking["total_purchase"] == 600
    assert booking["profit"] == 90

    vouchers = JournalVoucher.query.filter_by(source_type="booking").all()
    assert len(vouchers) == 2
    assert {v.invoice_number for v in vouchers} == {"BK-00001"}

    balances = account_balances([customer.id, supplier.id])
    assert balances[customer.id]["USD"]["balance"] == 690
    assert balances[supplier.id]["USD"]["balance"] == -600


def test_booking_requires_passengers(client, auth_headers, customer, supplier):
    response = client.post("/api/bookings", json=_booking_payload(customer, supplier, passengers=[]),
                           headers=auth_headers)
    assert response.status_code == 400
    assert Booking.query.count() == 0


def test_list_bookings_paginated(client, auth_headers, customer, supplier):
    for pnr in ("AAA111", "BBB222", "CCC333"):
        client.post("/api/bookings", json=_booking_payload(customer, supplier, pnr=pnr), headers=auth_headers)

    data = client.get("/api/bookings?page=1&limit=2", headers=auth_headers).get_json()
    assert data["total"] == 3
    assert len(data["bookings"]) == 2

    data = client.get("/api/bookings?all=true", headers=auth_headers).get_json()
    assert len(data["bookings"]) == 3


def test_find_by_pnr_or_ticket(client, auth_headers, customer, supplier):
    client.post("/api/bookings", json=_booking_payload(customer, supplier), headers=auth_headers)

    assert len(client.get("/api/bookings/find?ref=abc123", headers=auth_headers).get_json()) == 1
    assert len(client.get("/api/bookings/find?ref=2351234567891", headers=auth_headers).get_json()) == 1
    assert client.get("/api/bookings/find?ref=ZZZ", headers=auth_headers).get_json() == []


def test_update_booking_reposts_journal(client, auth_headers, customer, supplier):
    booking_id = client.post("/api/bookings", json=_booking_payload(customer, supplier),
                             headers=auth_headers).get_json()["booking"]["id"]

    response = client.put(f"/api/bookings/{booking_id}", json={
        "passengers": [{"name": "Ali Hassan", "purchase_price": 300, "sale_price": 400}],
    }, headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["booking"]["route"] == "BGW-IST"

    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 400


def test_refund_single_ticket(app, customer, supplier):
    booking = create_booking({
        "pnr": "XYZ789", "client_id": customer.id, "supplier_id": supplier.id, "currency": "USD",
        "passengers": [
            {"name": "Ali", "ticket_number": "T1", "purchase_price": 300, "sale_price": 350},
            {"name": "Sara", "ticket_number": "T2", "purchase_price": 300, "sale_price": 350},
        ],
    })
    db.session.commit()

    operation = apply_ticket_operation(booking, "Refund", passenger_ticket_number="T1",
                                       airline_fee=50, office_fee=20)
    db.session.commit()

    voucher = JournalVoucher.query.get(operation.journal_voucher_id)
    assert voucher.invoice_number.startswith("RF-")
    assert voucher.total_debit == voucher.total_credit
    assert booking.passengers[0].ticket_type == "Refund"
    assert booking.status == "Issued"

    # Cliente: 700 de venta menos 280 devueltos
    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 420

    with pytest.raises(ValueError):
        apply_ticket_operation(booking, "Refund", passenger_ticket_number="T1")

    apply_ticket_operation(booking, "Void", passenger_ticket_number="T2")
    db.session.commit()
    assert booking.passengers[1].ticket_type == "Void"
    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 70


def test_full_refund_sets_status(app, customer, supplier):
    booking = create_booking({
        "pnr": "QQQ111", "client_id": customer.id, "supplier_id": supplier.id,
        "passengers": [{"name": "Ali", "purchase_price": 100, "sale_price": 120}],
    })
    apply_ticket_operation(booking, "Refund")
    db.session.commit()

    assert booking.status == "Refunded"
    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 0


def test_exchange_operation(client, auth_headers, customer, supplier):
    booking_id = client.post("/api/bookings", json=_booking_payload(customer, supplier),
                             headers=auth_headers).get_json()["booking"]["id"]

    response = client.post(f"/api/bookings/{booking_id}/operations", json={
        "type": "Exchange", "ticket_number": "2351234567890", "price_difference": 40, "office_fee": 10,
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.get_json()["booking"]["status"] == "Exchanged"
    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 740


def test_soft_delete_restore_booking(client, auth_headers, customer, supplier):
    booking_id = client.post("/api/bookings", json=_booking_payload(customer, supplier),
                             headers=auth_headers).get_json()["booking"]["id"]

    assert client.delete(f"/api/bookings/{booking_id}", headers=auth_headers).status_code == 200
    assert JournalVoucher.query.filter_by(is_deleted=False).count() == 0
    assert client.get("/api/bookings", headers=auth_headers).get_json()["total"] == 0

    assert client.post(f"/api/bookings/{booking_id}/restore", headers=auth_headers).status_code == 200
    assert JournalVoucher.query.filter_by(is_deleted=False).count() == 2

    assert client.delete(f"/api/bookings/{booking_id}/permanent", headers=auth_headers).status_code == 200
    assert Booking.query.count() == 0
    assert JournalVoucher.query.count() == 0


def test_visa_posts_client_supplier_transaction(client, auth_headers, customer, supplier):
    response = client.post("/api/visas", json={
        "client_id": customer.id, "supplier_id": supplier.id, "destination": "Turquía",
        "passengers": [
            {"name": "Ali", "visa_type": "Turismo", "purchase_price": 60, "sale_price": 80},
            {"name": "Sara", "visa_type": "Turismo", "purchase_price": 60, "sale_price": 80},
        ],
    }, headers=auth_headers)
    assert response.status_code == 201
    visa = response.get_json()["visa"]
    assert visa["invoice_number"] == "VS-00001"

    voucher = JournalVoucher.query.filter_by(source_type="visa", source_id=str(visa["id"])).one()
    assert voucher.total_debit == 160

    balances = account_balances([customer.id, supplier.id])
    assert balances[customer.id]["USD"]["balance"] == 160
    assert balances[supplier.id]["USD"]["balance"] == -160

    client.delete(f"/api/visas/{visa['id']}", headers=auth_headers)
    assert voucher.is_deleted
    client.post(f"/api/visas/{visa['id']}/restore", headers=auth_headers)
    assert not voucher.is_deleted
