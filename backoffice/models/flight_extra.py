"""
Modelo: Cambio de vuelo o compra de equipaje
Servicios cobrados sobre un PNR ya emitido
"""
from datetime import datetime
from ..db import db


class FlightExtra(db.Model):
    __tablename__ = "flight_extras"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(10), nullable=False, index=True)
    # change | baggage

    invoice_number = db.Column(db.String(40), nullable=False)
    pnr = db.Column(db.String(20), nullable=False, index=True)

    supplier_id = db.Column(db.String(20), db.ForeignKey("relations.id"), nullable=False)
    beneficiary_id = db.Column(db.String(20), db.ForeignKey("relations.id"), nullable=False)

    purchase_price = db.Column(db.Float, nullable=False, default=0)
    sale_price = db.Column(db.Float, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    issue_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    is_entered = db.Column(db.Boolean, nullable=False, default=True)
    is_audited = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    supplier = db.relationship("Relation", foreign_keys=[supplier_id])
    beneficiary = db.relationship("Relation", foreign_keys=[beneficiary_id])

    @property
    def profit(self):
        return round((self.sale_price or 0) - (self.purchase_price or 0), 2)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "invoice_number": self.invoice_number,
            "pnr": self.pnr,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "beneficiary_id": self.beneficiary_id,
            "beneficiary_name": self.beneficiary.name if self.beneficiary else None,
            "purchase_price": self.purchase_price,
            "sale_price": self.sale_price,
            "profit": self.profit,
            "currency": self.currency,
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "notes": self.notes,
            "is_entered": self.is_entered,
            "is_audited": self.is_audited,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
