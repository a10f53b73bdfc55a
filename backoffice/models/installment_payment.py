"""
Modelo: Pago de cuota
Cada pago aplicado a una cuota (un pago grande puede tocar varias cuotas)
"""
from datetime import datetime
from ..db import db


class InstallmentPayment(db.Model):
    __tablename__ = "installment_payments"

    id = db.Column(db.Integer, primary_key=True)
    installment_id = db.Column(db.Integer, db.ForeignKey("subscription_installments.id"), nullable=False)
    subscription_id = db.Column(db.Integer, nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    date = db.Column(db.DateTime, default=datetime.utcnow)

    journal_voucher_id = db.Column(db.Integer, nullable=True)
    invoice_number = db.Column(db.String(40), nullable=True)
    box_id = db.Column(db.String(20), nullable=True)
    paid_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "installment_id": self.installment_id,
            "subscription_id": self.subscription_id,
            "amount": self.amount,
            "discount": self.discount,
            "currency": self.currency,
            "date": self.date.isoformat() if self.date else None,
            "journal_voucher_id": self.journal_voucher_id,
            "invoice_number": self.invoice_number,
            "box_id": self.box_id,
            "paid_by": self.paid_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
