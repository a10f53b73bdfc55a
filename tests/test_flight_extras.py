"""
Tests de cambios de vuelo y compras de equipaje
"""
from backoffice.models import JournalVoucher, FlightExtra
from backoffice.services.ledger import account_balances


def _payload(customer, supplier, **overrides):
    data = {
        "kind": "change",
        "pnr": "xyz789",
        "supplier_id": supplier.id,
        "beneficiary_id": customer.id,
        "purchase_price": 40,
        "sale_price": "65",
        "currency": "USD",
        "issue_date": "2024-06-10",
    }
    data.update(overrides)
    return data


def test_fly_change_posts_one_balanced_voucher(client, auth_headers, customer, supplier):
    response = client.post("/api/flight-extras", json=_payload(customer, supplier), headers=auth_headers)
    assert response.status_code == 201
    extra = response.get_json()["flight_extra"]

    assert extra["pnr"] == "XYZ789"
    assert extra["invoice_number"] == "FC-00001"
    assert extra["profit"] == 25

    vouchers = JournalVoucher.query.filter_by(source_type="flight_extra").all()
    assert len(vouchers) == 1
    assert vouchers[0].voucher_type == "flight_change"
    assert vouchers[0].total_debit == vouchers[0].total_credit == 105

    balances = account_balances([customer.id, supplier.id])
    assert balances[customer.id]["USD"]["balance"] == 65
    assert balances[supplier.id]["USD"]["balance"] == -40


def test_baggage_without_purchase(client, auth_headers, customer, supplier):
    response = client.post("/api/flight-extras", json=_payload(
        customer, supplier, kind="baggage", purchase_price=0, sale_price=30,
    ), headers=auth_headers)
    assert response.status_code == 201
    assert response.get_json()["flight_extra"]["invoice_number"] == "BG-00001"

    voucher = JournalVoucher.query.filter_by(source_type="flight_extra").one()
    assert {e.account_id for e in voucher.entries} == {customer.id, "revenue_tickets"}


def test_invalid_kind_or_missing_pnr(client, auth_headers, customer, supplier):
    response = client.post("/api/flight-extras", json=_payload(customer, supplier, kind="upgrade"),
                           headers=auth_headers)
    assert response.status_code == 400

    response = client.post("/api/flight-extras", json=_payload(customer, supplier, pnr=" "),
                           headers=auth_headers)
    assert response.status_code == 400
    assert FlightExtra.query.count() == 0


def test_combined_list_newest_first(client, auth_headers, customer, supplier):
    client.post("/api/flight-extras", json=_payload(customer, supplier, issue_date="2024-01-05"),
                headers=auth_headers)
    client.post("/api/flight-extras", json=_payload(customer, supplier, kind="baggage", issue_date="2024-03-01"),
                headers=auth_headers)

    listed = client.get("/api/flight-extras", headers=auth_headers).get_json()
    assert [e["kind"] for e in listed] == ["baggage", "change"]

    only_changes = client.get("/api/flight-extras?kind=change", headers=auth_headers).get_json()
    assert len(only_changes) == 1


def test_update_reposts_and_delete_removes_voucher(client, auth_headers, customer, supplier):
    created = client.post("/api/flight-extras", json=_payload(customer, supplier),
                          headers=auth_headers).get_json()["flight_extra"]

    response = client.put(f"/api/flight-extras/{created['id']}", json={"sale_price": 90}, headers=auth_headers)
    assert response.status_code == 200

    voucher = JournalVoucher.query.filter_by(source_type="flight_extra").one()
    assert voucher.invoice_number == "FC-00001"
    assert account_balances([customer.id])[customer.id]["USD"]["balance"] == 90

    response = client.delete(f"/api/flight-extras/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert FlightExtra.query.count() == 0
    assert JournalVoucher.query.filter_by(source_type="flight_extra").count() == 0
