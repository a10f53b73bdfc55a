"""
Modelo: Usuario
Empleados con rol y permisos
"""
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from ..db import db, generate_id


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(20), primary_key=True, default=generate_id)
    name = db.Column(db.String(120), nullable=False)
    username = db.Column(db.String(80), nullable=True, unique=True)
    email = db.Column(db.String(120), nullable=False, unique=True)
    phone = db.Column(db.String(40), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.String(40), nullable=False, default="employee")
    # admin | employee | ...

    status = db.Column(db.String(20), nullable=False, default="pending")
    # pending | active | rejected | blocked

    # Lista de permisos tipo "vouchers:create"
    permissions = db.Column(db.JSON, nullable=True)

    # Caja asignada por defecto
    box_id = db.Column(db.String(20), db.ForeignKey("boxes.id"), nullable=True)

    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_permission(self, permission):
        if self.role == "admin":
            return True
        granted = self.permissions or []
        if permission.startswith("reports:") and "reports:read:all" in granted:
            return True
        return permission in granted

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "status": self.status,
            "permissions": self.permissions or [],
            "box_id": self.box_id,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
