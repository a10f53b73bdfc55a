"""
Modelo: Secuencia de comprobantes
Un contador por prefijo (RC, DS, JE, BK, VS, SUB, ...)
"""
from ..db import db


class VoucherSequence(db.Model):
    __tablename__ = "voucher_sequences"

    id = db.Column(db.Integer, primary_key=True)
    prefix = db.Column(db.String(20), nullable=False, unique=True)
    label = db.Column(db.String(80), nullable=True)
    value = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "prefix": self.prefix,
            "label": self.label,
            "value": self.value,
        }
