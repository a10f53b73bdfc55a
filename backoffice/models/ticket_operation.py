"""
Modelo: Operación sobre boleto
Reembolso, cambio o anulación de un boleto ya emitido
"""
from datetime import datetime
from ..db import db


class TicketOperation(db.Model):
    __tablename__ = "ticket_operations"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False)
    passenger_ticket_number = db.Column(db.String(40), nullable=True)

    type = db.Column(db.String(10), nullable=False)
    # Refund | Exchange | Void

    # Montos en la moneda de la reserva
    airline_fee = db.Column(db.Float, nullable=False, default=0)
    office_fee = db.Column(db.Float, nullable=False, default=0)
    price_difference = db.Column(db.Float, nullable=False, default=0)

    journal_voucher_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    booking = db.relationship("Booking", backref="operations")

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "passenger_ticket_number": self.passenger_ticket_number,
            "type": self.type,
            "airline_fee": self.airline_fee,
            "office_fee": self.office_fee,
            "price_difference": self.price_difference,
            "journal_voucher_id": self.journal_voucher_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
