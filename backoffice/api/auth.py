"""
API: Autenticación
Login de usuarios con JWT, verificación de token y permisos por ruta
"""
from functools import wraps
from datetime import datetime, timedelta
from flask import Blueprint, request, jsonify, current_app, g
import jwt
from ..db import db
from ..models import User
from ..services.audit import log_action

bp = Blueprint("auth", __name__)


PERMISSIONS = {
    "dashboard:read": "Ver panel",
    "bookings:read": "Ver reservas",
    "bookings:create": "Crear reservas",
    "bookings:update": "Editar reservas",
    "bookings:delete": "Eliminar reservas",
    "bookings:operations": "Operaciones sobre boletos (reembolso, cambio, anulación)",
    "visas:read": "Ver visas",
    "visas:create": "Crear visas",
    "visas:update": "Editar visas",
    "visas:delete": "Eliminar visas",
    "subscriptions:read": "Ver suscripciones",
    "subscriptions:create": "Crear suscripciones",
    "subscriptions:update": "Editar suscripciones",
    "subscriptions:delete": "Eliminar suscripciones",
    "subscriptions:payments": "Gestionar pagos de cuotas",
    "vouchers:read": "Ver comprobantes",
    "vouchers:create": "Crear comprobantes",
    "vouchers:update": "Editar comprobantes",
    "vouchers:delete": "Eliminar comprobantes",
    "segments:read": "Ver segmentos",
    "segments:create": "Crear segmentos",
    "segments:update": "Editar segmentos",
    "segments:delete": "Eliminar segmentos",
    "profit_sharing:read": "Ver reparto de ganancias",
    "profit_sharing:manage": "Gestionar reparto de ganancias",
    "relations:read": "Ver clientes y proveedores",
    "relations:create": "Crear clientes y proveedores",
    "relations:update": "Editar clientes y proveedores",
    "relations:delete": "Eliminar clientes y proveedores",
    "users:read": "Ver usuarios",
    "users:create": "Crear usuarios",
    "users:update": "Editar usuarios",
    "users:delete": "Eliminar usuarios",
    "reports:read:all": "Ver todos los reportes",
    "reports:account_statement": "Ver estado de cuenta",
    "reports:debts": "Ver reporte de deudas",
    "reports:client_summary": "Ver resumen de cliente",
    "settings:read": "Ver configuración",
    "settings:update": "Editar configuración",
    "system:audit_log:read": "Ver registro de actividad",
    "system:error_log:read": "Ver registro de errores",
}


def issue_token(user, impersonated_by=None):
    """Genera el JWT de sesión de un usuario"""
    payload = {
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "exp": datetime.utcnow() + timedelta(days=current_app.config.get("JWT_EXPIRATION_DAYS", 7)),
    }
    if impersonated_by:
        payload["impersonated_by"] = impersonated_by
    return jwt.encode(payload, current_app.config.get("SECRET_KEY"), algorithm="HS256")


def decode_token():
    """Lee el Bearer token de la request. Retorna el payload o None"""
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ", 1)[1]

    try:
        return jwt.decode(token, current_app.config.get("SECRET_KEY"), algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return None


def load_current_user():
    payload = decode_token()
    if not payload:
        return None
    user = User.query.get(payload.get("user_id"))
    if not user or user.status != "active":
        return None
    return user


def login_required(f):
    """Exige usuario autenticado; lo deja en g.current_user"""
    @wraps(f)
    def decorated(*args, **kwargs):
        user = load_current_user()
        if not user:
            return jsonify({"success": False, "error": "No autenticado"}), 401
        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def permission_required(permission):
    """Exige usuario autenticado con el permiso indicado (admin tiene todos)"""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = load_current_user()
            if not user:
                return jsonify({"success": False, "error": "No autenticado"}), 401
            if not user.has_permission(permission):
                return jsonify({"success": False, "error": f"Sin permiso: {permission}"}), 403
            g.current_user = user
            return f(*args, **kwargs)
        return decorated
    return decorator


@bp.route("/login", methods=["POST"])
def login():
    """Login con email (o usuario) y contraseña"""
    data = request.json or {}
    identifier = (data.get("email") or data.get("username") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter(
        (db.func.lower(User.email) == identifier) | (db.func.lower(User.username) == identifier)
    ).first()

    if not user or not user.check_password(password):
        print(f"⚠️ Login fallido para '{identifier}'")
        return jsonify({"success": False, "error": "Email o contraseña incorrectos"}), 401

    if user.status != "active":
        return jsonify({"success": False, "error": f"Cuenta {user.status}"}), 403

    user.last_login = datetime.utcnow()
    g.current_user = user
    log_action("LOGIN", "user", user.id, f"{user.name} inició sesión")
    db.session.commit()

    return jsonify({
        "success": True,
        "token": issue_token(user),
        "user": user.to_dict(),
    })


@bp.route("/register", methods=["POST"])
def register():
    """Registro de empleado: queda pendiente hasta que un admin lo active"""
    data = request.json or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()

    if not email or not password or not name:
        return jsonify({"success": False, "error": "Nombre, email y contraseña son obligatorios"}), 400

    if User.query.filter(db.func.lower(User.email) == email).first():
        return jsonify({"success": False, "error": "El email ya está registrado"}), 400

    user = User(name=name, email=email, phone=data.get("phone"), status="pending", permissions=[])
    user.set_password(password)
    db.session.add(user)
    log_action("CREATE", "user", None, f"Registro pendiente de {email}")
    db.session.commit()

    return jsonify({"success": True, "user": user.to_dict()}), 201


@bp.route("/verify", methods=["GET"])
def verify():
    """Verifica si el token es válido"""
    user = load_current_user()
    if not user:
        return jsonify({"valid": False}), 401
    return jsonify({"valid": True, "user": user.to_dict()})


@bp.route("/me", methods=["GET"])
@login_required
def me():
    payload = decode_token() or {}
    data = g.current_user.to_dict()
    data["impersonated_by"] = payload.get("impersonated_by")
    return jsonify(data)


@bp.route("/sign-in-as/<user_id>", methods=["POST"])
@login_required
def sign_in_as(user_id):
    """Token para entrar como otro usuario (solo admin)"""
    if g.current_user.role != "admin":
        return jsonify({"success": False, "error": "Solo un administrador puede entrar como otro usuario"}), 403

    target = User.query.get_or_404(user_id)
    if target.status != "active":
        return jsonify({"success": False, "error": "El usuario no está activo"}), 400

    log_action("LOGIN", "user", target.id, f"{g.current_user.name} entró como {target.name}", level="warning")
    db.session.commit()

    return jsonify({
        "success": True,
        "token": issue_token(target, impersonated_by=g.current_user.id),
        "user": target.to_dict(),
    })


@bp.route("/permissions", methods=["GET"])
@login_required
def list_permissions():
    return jsonify(PERMISSIONS)
