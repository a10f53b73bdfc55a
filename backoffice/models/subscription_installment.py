"""
Modelo: Cuota de suscripción
"""
from ..db import db


class SubscriptionInstallment(db.Model):
    __tablename__ = "subscription_installments"

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey("subscriptions.id"), nullable=False)

    client_name = db.Column(db.String(160), nullable=True)
    service_name = db.Column(db.String(160), nullable=True)

    amount = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    due_date = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(10), nullable=False, default="Unpaid")
    # Paid | Unpaid
    paid_at = db.Column(db.DateTime, nullable=True)
    paid_amount = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)

    reminder_sent_at = db.Column(db.DateTime, nullable=True)

    payments = db.relationship(
        "InstallmentPayment",
        backref="installment",
        cascade="all, delete-orphan",
    )

    @property
    def remaining(self):
        return round(self.amount - self.paid_amount - self.discount, 2)

    def to_dict(self):
        return {
            "id": self.id,
            "subscription_id": self.subscription_id,
            "client_name": self.client_name,
            "service_name": self.service_name,
            "amount": self.amount,
            "currency": self.currency,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "paid_amount": self.paid_amount,
            "discount": self.discount,
            "remaining": self.remaining,
        }
