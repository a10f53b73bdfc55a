"""
Servicio: Auditoría y notificaciones
Registro de acciones de usuarios y avisos internos
"""
from flask import g, has_request_context
from ..db import db
from ..models import AuditLog, Notification


def current_actor():
    """Usuario autenticado de la request actual (o None fuera de request)"""
    if has_request_context():
        return g.get("current_user")
    return None


def actor_name(default="system"):
    user = current_actor()
    return user.name if user else default


def log_action(action, target_type=None, target_id=None, description=None, level="info"):
    """
    Agrega un registro de auditoría a la sesión actual.
    Nunca lanza excepción: un fallo de auditoría no debe romper la operación.
    """
    try:
        user = current_actor()
        entry = AuditLog(
            user_id=user.id if user else None,
            user_name=user.name if user else "system",
            level=level,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            description=description,
        )
        db.session.add(entry)
        return entry
    except Exception as e:
        print(f"⚠️ No se pudo registrar auditoría ({action} {target_type}): {e}")
        return None


def notify(user_id, title, body=None, type="info", link=None):
    """Crea una notificación para un usuario o relación"""
    if not user_id:
        return None
    notification = Notification(
        user_id=str(user_id),
        title=title,
        body=body,
        type=type,
        link=link,
    )
    db.session.add(notification)
    return notification
