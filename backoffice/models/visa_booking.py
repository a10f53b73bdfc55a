"""
Modelo: Solicitud de visa
"""
from datetime import datetime
from ..db import db


class VisaBooking(db.Model):
    __tablename__ = "visa_bookings"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(40), nullable=True)

    supplier_id = db.Column(db.String(20), db.ForeignKey("relations.id"), nullable=False)
    client_id = db.Column(db.String(20), db.ForeignKey("relations.id"), nullable=False)

    destination = db.Column(db.String(120), nullable=True)
    submission_date = db.Column(db.DateTime, nullable=True)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    box_id = db.Column(db.String(20), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    document_url = db.Column(db.String(500), nullable=True)

    is_entered = db.Column(db.Boolean, nullable=False, default=True)
    is_audited = db.Column(db.Boolean, nullable=False, default=False)
    entered_by = db.Column(db.String(120), nullable=True)
    entered_at = db.Column(db.DateTime, default=datetime.utcnow)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    passengers = db.relationship(
        "VisaPassenger",
        backref="visa_booking",
        cascade="all, delete-orphan",
        order_by="VisaPassenger.id",
    )
    supplier = db.relationship("Relation", foreign_keys=[supplier_id])
    client = db.relationship("Relation", foreign_keys=[client_id])

    @property
    def total_purchase(self):
        return round(sum(p.purchase_price or 0 for p in self.passengers), 2)

    @property
    def total_sale(self):
        return round(sum(p.sale_price or 0 for p in self.passengers), 2)

    def to_dict(self):
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "client_id": self.client_id,
            "client_name": self.client.name if self.client else None,
            "destination": self.destination,
            "submission_date": self.submission_date.isoformat() if self.submission_date else None,
            "currency": self.currency,
            "box_id": self.box_id,
            "notes": self.notes,
            "document_url": self.document_url,
            "is_entered": self.is_entered,
            "is_audited": self.is_audited,
            "entered_by": self.entered_by,
            "entered_at": self.entered_at.isoformat() if self.entered_at else None,
            "is_deleted": self.is_deleted,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "passengers": [p.to_dict() for p in self.passengers],
            "total_purchase": self.total_purchase,
            "total_sale": self.total_sale,
            "profit": round(self.total_sale - self.total_purchase, 2),
        }
