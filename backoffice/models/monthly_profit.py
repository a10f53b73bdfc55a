"""
Modelo: Ganancia del periodo para repartir con socios
Mensual calculada por el sistema (id "YYYY-MM") o periodo manual
"""
from datetime import datetime
from ..db import db


class MonthlyProfit(db.Model):
    __tablename__ = "monthly_profits"

    id = db.Column(db.String(40), primary_key=True)
    total_profit = db.Column(db.Float, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="USD")

    # True: calculada desde reservas, visas y suscripciones
    from_system = db.Column(db.Boolean, nullable=False, default=True)

    from_date = db.Column(db.DateTime, nullable=True)
    to_date = db.Column(db.DateTime, nullable=True)
    source_account_id = db.Column(db.String(40), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    shares = db.relationship(
        "ProfitShare",
        backref="profit",
        cascade="all, delete-orphan",
        order_by="ProfitShare.id",
    )

    @property
    def distributed(self):
        return round(sum(s.amount for s in self.shares), 2)

    def to_dict(self, include_shares=False):
        data = {
            "id": self.id,
            "total_profit": self.total_profit,
            "currency": self.currency,
            "from_system": self.from_system,
            "from_date": self.from_date.isoformat() if self.from_date else None,
            "to_date": self.to_date.isoformat() if self.to_date else None,
            "source_account_id": self.source_account_id,
            "notes": self.notes,
            "distributed": self.distributed,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_shares:
            data["shares"] = [s.to_dict() for s in self.shares]
        return data
