"""
Modelo: Caja
Cuenta de efectivo donde entran y salen los pagos
"""
from datetime import datetime
from ..db import db, generate_id


class Box(db.Model):
    __tablename__ = "boxes"

    id = db.Column(db.String(20), primary_key=True, default=generate_id)
    name = db.Column(db.String(120), nullable=False)

    opening_balance_usd = db.Column(db.Float, nullable=False, default=0)
    opening_balance_iqd = db.Column(db.Float, nullable=False, default=0)

    use_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "opening_balance_usd": self.opening_balance_usd,
            "opening_balance_iqd": self.opening_balance_iqd,
            "use_count": self.use_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
