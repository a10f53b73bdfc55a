"""
Modelo: Segmento
Ganancia de un periodo con un cliente (empresa) y su reparto con socios
"""
from datetime import datetime
from ..db import db


class SegmentEntry(db.Model):
    __tablename__ = "segment_entries"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(40), nullable=False, index=True)

    from_date = db.Column(db.DateTime, nullable=False)
    to_date = db.Column(db.DateTime, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")

    company_name = db.Column(db.String(160), nullable=False)
    client_id = db.Column(db.String(20), nullable=True)

    # Cantidades
    tickets = db.Column(db.Integer, nullable=False, default=0)
    visas = db.Column(db.Integer, nullable=False, default=0)
    hotels = db.Column(db.Integer, nullable=False, default=0)
    groups = db.Column(db.Integer, nullable=False, default=0)

    # Tipo de ganancia por servicio: fixed | percentage
    ticket_profit_type = db.Column(db.String(12), nullable=False, default="percentage")
    ticket_profit_value = db.Column(db.Float, nullable=False, default=50)
    visa_profit_type = db.Column(db.String(12), nullable=False, default="percentage")
    visa_profit_value = db.Column(db.Float, nullable=False, default=100)
    hotel_profit_type = db.Column(db.String(12), nullable=False, default="percentage")
    hotel_profit_value = db.Column(db.Float, nullable=False, default=100)
    group_profit_type = db.Column(db.String(12), nullable=False, default="percentage")
    group_profit_value = db.Column(db.Float, nullable=False, default=100)

    ticket_profits = db.Column(db.Float, nullable=False, default=0)
    other_profits = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False, default=0)

    has_partner = db.Column(db.Boolean, nullable=False, default=False)
    company_share_percentage = db.Column(db.Float, nullable=False, default=100)
    company_share = db.Column(db.Float, nullable=False, default=0)
    partner_share = db.Column(db.Float, nullable=False, default=0)

    # [{"partner_id", "partner_name", "percentage", "amount", "invoice_number"}]
    partner_shares = db.Column(db.JSON, nullable=True)

    entered_by = db.Column(db.String(120), nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "from_date": self.from_date.isoformat() if self.from_date else None,
            "to_date": self.to_date.isoformat() if self.to_date else None,
            "currency": self.currency,
            "company_name": self.company_name,
            "client_id": self.client_id,
            "tickets": self.tickets,
            "visas": self.visas,
            "hotels": self.hotels,
            "groups": self.groups,
            "ticket_profit_type": self.ticket_profit_type,
            "ticket_profit_value": self.ticket_profit_value,
            "visa_profit_type": self.visa_profit_type,
            "visa_profit_value": self.visa_profit_value,
            "hotel_profit_type": self.hotel_profit_type,
            "hotel_profit_value": self.hotel_profit_value,
            "group_profit_type": self.group_profit_type,
            "group_profit_value": self.group_profit_value,
            "ticket_profits": self.ticket_profits,
            "other_profits": self.other_profits,
            "total": self.total,
            "has_partner": self.has_partner,
            "company_share_percentage": self.company_share_percentage,
            "company_share": self.company_share,
            "partner_share": self.partner_share,
            "partner_shares": self.partner_shares or [],
            "entered_by": self.entered_by,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
