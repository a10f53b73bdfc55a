"""
Modelo: Suscripción
Servicio vendido a un cliente y cobrado en cuotas mensuales
"""
from datetime import datetime
from ..db import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(40), nullable=False)

    supplier_id = db.Column(db.String(20), nullable=False)
    supplier_name = db.Column(db.String(160), nullable=True)
    client_id = db.Column(db.String(20), nullable=False)
    client_name = db.Column(db.String(160), nullable=True)

    service_name = db.Column(db.String(160), nullable=False)
    purchase_date = db.Column(db.DateTime, nullable=True)

    # purchase_price y sale_price son totales (cantidad incluida)
    purchase_price = db.Column(db.Float, nullable=False, default=0)
    unit_price = db.Column(db.Float, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    discount = db.Column(db.Float, nullable=False, default=0)
    sale_price = db.Column(db.Float, nullable=False, default=0)
    profit = db.Column(db.Float, nullable=False, default=0)

    start_date = db.Column(db.DateTime, nullable=False)
    number_of_installments = db.Column(db.Integer, nullable=False, default=1)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    notes = db.Column(db.Text, nullable=True)

    paid_amount = db.Column(db.Float, nullable=False, default=0)

    status = db.Column(db.String(12), nullable=False, default="Active")
    # Active | Paid | Cancelled | Suspended
    cancellation_date = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    box_id = db.Column(db.String(20), nullable=True)
    journal_voucher_id = db.Column(db.Integer, nullable=True)
    created_by = db.Column(db.String(120), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    installments = db.relationship(
        "SubscriptionInstallment",
        backref="subscription",
        cascade="all, delete-orphan",
        order_by="SubscriptionInstallment.due_date",
    )

    @property
    def remaining_amount(self):
        return round(self.sale_price - self.paid_amount, 2)

    def to_dict(self, include_installments=False):
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "service_name": self.service_name,
            "purchase_date": self.purchase_date.isoformat() if self.purchase_date else None,
            "purchase_price": self.purchase_price,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "discount": self.discount,
            "sale_price": self.sale_price,
            "profit": self.profit,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "number_of_installments": self.number_of_installments,
            "currency": self.currency,
            "notes": self.notes,
            "paid_amount": self.paid_amount,
            "remaining_amount": self.remaining_amount,
            "status": self.status,
            "cancellation_date": self.cancellation_date.isoformat() if self.cancellation_date else None,
            "cancellation_reason": self.cancellation_reason,
            "box_id": self.box_id,
            "journal_voucher_id": self.journal_voucher_id,
            "created_by": self.created_by,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_installments:
            data["installments"] = [i.to_dict() for i in self.installments]
        return data
