"""
Tests del libro diario: asientos balanceados, numeración y ciclo de vida
"""
import pytest

from backoffice.db import db
from backoffice.models import JournalVoucher, DeletedVoucher
from backoffice.services.ledger import (
    LedgerError, post_journal_entry, record_financial_transaction,
    soft_delete_voucher, restore_voucher, permanently_delete_voucher, account_balances,
)
from backoffice.services.sequences import next_number, resolve_prefix


def test_post_journal_entry_balanced(app):
    voucher = post_journal_entry(
        source_type="journal_voucher",
        entries=[
            {"account_id": "box_a", "debit": 100},
            {"account_id": "client_a", "credit": 60},
            {"account_id": "client_b", "credit": 40},
        ],
    )
    db.session.commit()

    assert voucher.invoice_number == "JE-00001"
    assert voucher.total_debit == voucher.total_credit == 100
    assert len(voucher.entries) == 3


def test_post_journal_entry_rejects_unbalanced(app):
    with pytest.raises(LedgerError):
        post_journal_entry(
            source_type="journal_voucher",
            entries=[
                {"account_id": "box_a", "debit": 100},
                {"account_id": "client_a", "credit": 99},
            ],
        )


def test_post_journal_entry_rejects_empty(app):
    with pytest.raises(LedgerError):
        post_journal_entry(source_type="journal_voucher", entries=[{"account_id": "box_a", "debit": 0}])


def test_record_financial_transaction_validates_accounts(app):
    with pytest.raises(LedgerError):
        record_financial_transaction("box_a", "box_a", 10)
    with pytest.raises(LedgerError):
        record_financial_transaction("box_a", "client_a", 0)


def test_sequence_numbers_per_prefix(app):
    assert next_number("RC") == "RC-00001"
    assert next_number("RC") == "RC-00002"
    assert next_number("DS") == "DS-00001"
    assert resolve_prefix("distributed_receipt") == "DS"
    assert resolve_prefix("something_new") == "SOMETHING_NEW"


def test_soft_delete_and_restore_voucher(app):
    voucher = record_financial_transaction("box_a", "client_a", 50, currency="USD")
    db.session.commit()

    soft_delete_voucher(voucher, reason="duplicado")
    db.session.commit()

    assert voucher.is_deleted
    assert all(e.is_deleted for e in voucher.entries)
    assert DeletedVoucher.query.filter_by(voucher_id=voucher.id).count() == 1
    assert account_balances(["box_a"]) == {}

    with pytest.raises(ValueError):
        soft_delete_voucher(voucher)

    restore_voucher(voucher)
    db.session.commit()

    assert not voucher.is_deleted
    assert DeletedVoucher.query.count() == 0
    assert account_balances(["box_a"])["box_a"]["USD"]["balance"] == 50


def test_permanent_delete_removes_lines(app):
    voucher = record_financial_transaction("box_a", "client_a", 10)
    db.session.commit()

    permanently_delete_voucher(voucher)
    db.session.commit()

    assert JournalVoucher.query.count() == 0


def test_account_balances_per_currency(app):
    record_financial_transaction("box_a", "client_a", 100, currency="USD")
    record_financial_transaction("box_a", "client_a", 150000, currency="IQD")
    record_financial_transaction("client_a", "box_a", 30, currency="USD")
    db.session.commit()

    balances = account_balances(["box_a", "client_a"])

    assert balances["box_a"]["USD"] == {"debit": 100, "credit": 30, "balance": 70}
    assert balances["box_a"]["IQD"]["balance"] == 150000
    assert balances["client_a"]["USD"]["balance"] == -70
