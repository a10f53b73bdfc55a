"""
Modelo: Relación
Cliente y/o proveedor (empresa o persona)
"""
from datetime import datetime
from ..db import db, generate_id


class Relation(db.Model):
    __tablename__ = "relations"

    id = db.Column(db.String(20), primary_key=True, default=generate_id)
    name = db.Column(db.String(160), nullable=False)

    type = db.Column(db.String(20), nullable=False, default="company")
    # company | individual

    relation_type = db.Column(db.String(20), nullable=False, default="client")
    # client | supplier | both

    phone = db.Column(db.String(40), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    country = db.Column(db.String(80), nullable=True)
    province = db.Column(db.String(80), nullable=True)
    street_address = db.Column(db.String(200), nullable=True)
    details = db.Column(db.Text, nullable=True)
    code = db.Column(db.String(40), nullable=True)

    payment_type = db.Column(db.String(10), nullable=False, default="cash")
    # cash | credit

    status = db.Column(db.String(10), nullable=False, default="active")
    # active | inactive

    # Contador de movimientos (impide borrar relaciones con transacciones)
    use_count = db.Column(db.Integer, nullable=False, default=0)

    # Última configuración usada en segmentos y reparto con socios
    segment_settings = db.Column(db.JSON, nullable=True)
    partner_share_settings = db.Column(db.JSON, nullable=True)

    created_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_client(self):
        return self.relation_type in ("client", "both")

    @property
    def is_supplier(self):
        return self.relation_type in ("supplier", "both")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "relation_type": self.relation_type,
            "phone": self.phone,
            "email": self.email,
            "country": self.country,
            "province": self.province,
            "street_address": self.street_address,
            "details": self.details,
            "code": self.code,
            "payment_type": self.payment_type,
            "status": self.status,
            "use_count": self.use_count,
            "segment_settings": self.segment_settings,
            "partner_share_settings": self.partner_share_settings,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
