"""
Modelo: Parte de un socio en la ganancia de un periodo
"""
from datetime import datetime
from ..db import db


class ProfitShare(db.Model):
    __tablename__ = "profit_shares"

    id = db.Column(db.Integer, primary_key=True)
    profit_month_id = db.Column(db.String(40), db.ForeignKey("monthly_profits.id"), nullable=False, index=True)

    partner_id = db.Column(db.String(40), nullable=False)
    partner_name = db.Column(db.String(160), nullable=True)
    percentage = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "profit_month_id": self.profit_month_id,
            "partner_id": self.partner_id,
            "partner_name": self.partner_name,
            "percentage": self.percentage,
            "amount": self.amount,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
