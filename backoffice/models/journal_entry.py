"""
Modelo: Línea de asiento
Un movimiento al debe o al haber de una cuenta
"""
from datetime import datetime
from ..db import db


class JournalEntry(db.Model):
    __tablename__ = "journal_entries"

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.Integer, db.ForeignKey("journal_vouchers.id"), nullable=False)

    # Id de relación, caja o cuenta interna (expense_*, revenue_*, ...)
    account_id = db.Column(db.String(60), nullable=False, index=True)

    side = db.Column(db.String(6), nullable=False)
    # debit | credit
    amount = db.Column(db.Float, nullable=False, default=0)

    description = db.Column(db.Text, nullable=True)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    relation_id = db.Column(db.String(20), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def debit(self):
        return self.amount if self.side == "debit" else 0

    @property
    def credit(self):
        return self.amount if self.side == "credit" else 0

    def to_dict(self):
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "account_id": self.account_id,
            "side": self.side,
            "amount": self.amount,
            "debit": self.debit,
            "credit": self.credit,
            "description": self.description,
            "currency": self.currency,
            "relation_id": self.relation_id,
            "is_deleted": self.is_deleted,
        }
