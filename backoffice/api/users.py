"""
API: Usuarios
Administración de empleados, roles y permisos
"""
from flask import Blueprint, request, jsonify, g
from ..db import db
from ..models import User
from ..services.audit import log_action, notify
from .auth import permission_required, PERMISSIONS

bp = Blueprint("users", __name__)


USER_STATUSES = ("pending", "active", "rejected", "blocked")


def _validate_permissions(permissions):
    unknown = [p for p in permissions or [] if p not in PERMISSIONS]
    if unknown:
        raise ValueError(f"Permisos desconocidos: {', '.join(unknown)}")
    return list(permissions or [])


@bp.route("", methods=["GET"])
@permission_required("users:read")
def get_users():
    status = request.args.get("status")
    query = User.query
    if status:
        query = query.filter_by(status=status)
    users = query.order_by(User.created_at.desc()).all()
    return jsonify([u.to_dict() for u in users])


@bp.route("", methods=["POST"])
@permission_required("users:create")
def create_user():
    """Crea un usuario activo (alta directa por un administrador)"""
    data = request.json or {}
    email = (data.get("email") or "").strip().lower()
    name = (data.get("name") or "").strip()
    password = data.get("password") or ""

    if not email or not name or not password:
        return jsonify({"success": False, "error": "Nombre, email y contraseña son obligatorios"}), 400

    if User.query.filter(db.func.lower(User.email) == email).first():
        return jsonify({"success": False, "error": "El email ya está registrado"}), 400

    user = User(
        name=name,
        email=email,
        username=data.get("username"),
        phone=data.get("phone"),
        role=data.get("role", "employee"),
        status=data.get("status", "active"),
        permissions=_validate_permissions(data.get("permissions")),
        box_id=data.get("box_id"),
    )
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    log_action("CREATE", "user", user.id, f"Usuario {user.email} creado")
    db.session.commit()

    return jsonify(user.to_dict()), 201


@bp.route("/<id>", methods=["PUT"])
@permission_required("users:update")
def update_user(id):
    """Actualiza datos, rol, estado o permisos de un usuario"""
    user = User.query.get_or_404(id)
    data = request.json or {}
    previous_status = user.status

    for field in ("name", "username", "phone", "role", "box_id"):
        if field in data:
            setattr(user, field, data[field])

    if "status" in data:
        if data["status"] not in USER_STATUSES:
            raise ValueError(f"Estado inválido: {data['status']}")
        user.status = data["status"]

    if "permissions" in data:
        user.permissions = _validate_permissions(data["permissions"])

    if data.get("password"):
        user.set_password(data["password"])

    if previous_status == "pending" and user.status == "active":
        notify(user.id, "Cuenta aprobada", "Tu cuenta fue activada por un administrador.", type="account")

    log_action("UPDATE", "user", user.id, f"Usuario {user.email} actualizado")
    db.session.commit()

    return jsonify(user.to_dict())


@bp.route("/<id>", methods=["DELETE"])
@permission_required("users:delete")
def delete_user(id):
    user = User.query.get_or_404(id)

    if user.id == g.current_user.id:
        return jsonify({"success": False, "error": "No puedes eliminar tu propio usuario"}), 400

    db.session.delete(user)
    log_action("DELETE", "user", id, f"Usuario {user.email} eliminado", level="warning")
    db.session.commit()

    return jsonify({"success": True, "message": "Usuario eliminado"})
