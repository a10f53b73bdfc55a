"""
Modelo: Registro de auditoría
"""
from datetime import datetime
from ..db import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(20), nullable=True)
    user_name = db.Column(db.String(120), nullable=True)

    level = db.Column(db.String(10), nullable=False, default="info")
    # info | warning | error
    action = db.Column(db.String(20), nullable=False)
    # CREATE | UPDATE | DELETE | RESTORE | LOGIN | ...

    target_type = db.Column(db.String(40), nullable=True)
    target_id = db.Column(db.String(40), nullable=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "level": self.level,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
