"""
Modelo: Solicitante de visa
"""
from ..db import db


class VisaPassenger(db.Model):
    __tablename__ = "visa_passengers"

    id = db.Column(db.Integer, primary_key=True)
    visa_booking_id = db.Column(db.Integer, db.ForeignKey("visa_bookings.id"), nullable=False)

    name = db.Column(db.String(160), nullable=False)
    passport_number = db.Column(db.String(40), nullable=True)
    application_number = db.Column(db.String(60), nullable=True)
    visa_type = db.Column(db.String(60), nullable=True)

    purchase_price = db.Column(db.Float, nullable=False, default=0)
    sale_price = db.Column(db.Float, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "visa_booking_id": self.visa_booking_id,
            "name": self.name,
            "passport_number": self.passport_number,
            "application_number": self.application_number,
            "visa_type": self.visa_type,
            "purchase_price": self.purchase_price,
            "sale_price": self.sale_price,
        }
