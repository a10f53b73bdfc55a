"""
Modelo: Pasajero de una reserva
"""
from ..db import db


class BookingPassenger(db.Model):
    __tablename__ = "booking_passengers"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False)

    name = db.Column(db.String(160), nullable=False)
    passport_number = db.Column(db.String(40), nullable=True)
    ticket_number = db.Column(db.String(40), nullable=True, index=True)

    purchase_price = db.Column(db.Float, nullable=False, default=0)
    sale_price = db.Column(db.Float, nullable=False, default=0)

    passenger_type = db.Column(db.String(10), nullable=False, default="Adult")
    # Adult | Child | Infant
    ticket_type = db.Column(db.String(10), nullable=False, default="Issue")
    # Issue | Change | Refund | Void

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "name": self.name,
            "passport_number": self.passport_number,
            "ticket_number": self.ticket_number,
            "purchase_price": self.purchase_price,
            "sale_price": self.sale_price,
            "passenger_type": self.passenger_type,
            "ticket_type": self.ticket_type,
        }
