"""
Tests de reportes: estado de cuenta, deudas, resumen de cliente y panel
"""
from datetime import datetime

import pytest

from backoffice.db import db
from backoffice.services.ledger import record_financial_transaction
from backoffice.services.reports import account_statement, debts_report, resolve_account, to_csv


@pytest.fixture
def movements(app, customer, box):
    # Venta de 500 en enero, pagos de 200 en febrero y 100 en marzo, y 1.000.000 IQD en marzo
    record_financial_transaction(customer.id, "revenue_tickets", 500, date=datetime(2024, 1, 10),
                                 description="Venta", voucher_type="booking", source_type="booking")
    record_financial_transaction(box.id, customer.id, 200, date=datetime(2024, 2, 5),
                                 description="Pago", voucher_type="journal_from_standard_receipt",
                                 source_type="standard_receipt")
    record_financial_transaction(box.id, customer.id, 100, date=datetime(2024, 3, 5),
                                 description="Pago", voucher_type="journal_from_standard_receipt",
                                 source_type="standard_receipt")
    record_financial_transaction(box.id, customer.id, 1000000, currency="IQD", date=datetime(2024, 3, 6),
                                 voucher_type="journal_from_standard_receipt", source_type="standard_receipt")
    db.session.commit()


def test_resolve_account(app, customer, box):
    assert resolve_account(customer.id)["type"] == "client"
    assert resolve_account(box.id)["type"] == "box"
    assert resolve_account("rent")["id"] == "expense_rent"
    with pytest.raises(ValueError):
        resolve_account("missing")


def test_statement_running_and_opening_balance(app, customer, movements):
    statement = account_statement(customer.id, date_from=datetime(2024, 2, 1), currency="USD")

    assert statement["opening_balance"]["USD"] == -500
    assert [tx["balance"] for tx in statement["transactions"]] == [-300, -200]
    assert statement["closing_balance"]["USD"] == -200
    assert statement["totals"]["USD"] == {"debit": 0, "credit": 300}


def test_statement_filters(app, customer, movements):
    both = account_statement(customer.id)
    assert len(both["transactions"]) == 4
    assert both["closing_balance"]["IQD"] == 1000000

    profits = account_statement(customer.id, transaction_type="profits")
    assert all(tx["credit"] > 0 for tx in profits["transactions"])

    expenses = account_statement(customer.id, transaction_type="expenses")
    assert len(expenses["transactions"]) == 1

    january = account_statement(customer.id, date_from=datetime(2024, 1, 1), date_to=datetime(2024, 1, 31))
    assert len(january["transactions"]) == 1


def test_debts_report(app, customer, supplier, movements):
    report = debts_report()
    rows = {row["id"]: row for row in report["entries"]}

    assert rows[customer.id]["balance_usd"] == 200
    assert rows[customer.id]["balance_iqd"] == -1000000
    assert rows[supplier.id]["balance_usd"] == 0
    assert report["summary"]["total_debit_usd"] == 200
    assert report["summary"]["total_credit_iqd"] == 1000000


def test_to_csv():
    content = to_csv([("name", "Nombre"), ("amount", "Monto")], [{"name": "Ali", "amount": 10.5}])
    assert content.splitlines() == ["Nombre,Monto", "Ali,10.5"]


def test_statement_api_and_csv(client, auth_headers, customer, movements):
    response = client.get(f"/api/reports/account-statement?account_id={customer.id}&currency=USD",
                          headers=auth_headers)
    assert response.status_code == 200
    assert len(response.get_json()["transactions"]) == 3

    response = client.get(f"/api/reports/account-statement/csv?account_id={customer.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert response.get_data(as_text=True).startswith("Fecha,Número")

    response = client.get("/api/reports/account-statement?account_id=missing", headers=auth_headers)
    assert response.status_code == 400


def test_client_summary_api(client, auth_headers, customer, movements):
    response = client.get(f"/api/reports/clients/{customer.id}/summary", headers=auth_headers)
    data = response.get_json()

    assert response.status_code == 200
    assert data["paid_amount"] == 1000300


def test_dashboard(client, auth_headers, customer):
    response = client.get("/api/dashboard", headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["clients"] == 1
