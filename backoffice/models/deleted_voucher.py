"""
Modelo: Comprobante eliminado
Copia del comprobante al momento de borrarlo (permite restaurar)
"""
from datetime import datetime
from ..db import db


class DeletedVoucher(db.Model):
    __tablename__ = "deleted_vouchers"

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.Integer, nullable=False, index=True)
    data = db.Column(db.JSON, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    deleted_by = db.Column(db.String(120), nullable=True)
    deleted_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "data": self.data,
            "reason": self.reason,
            "deleted_by": self.deleted_by,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
