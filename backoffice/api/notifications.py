"""
API: Notificaciones
"""
from flask import Blueprint, request, jsonify, g
from ..db import db
from ..models import Notification
from ..services.audit import notify
from ..utils.parsing import parse_bool
from .auth import login_required

bp = Blueprint("notifications", __name__)


@bp.route("", methods=["GET"])
@login_required
def get_notifications():
    """Notificaciones del usuario actual (filtros: unread, limit)"""
    query = Notification.query.filter_by(user_id=g.current_user.id)

    if parse_bool(request.args.get("unread", "false")):
        query = query.filter_by(is_read=False)

    limit = request.args.get("limit", 50, type=int)
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()

    unread = Notification.query.filter_by(user_id=g.current_user.id, is_read=False).count()
    return jsonify({"notifications": [n.to_dict() for n in notifications], "unread": unread})


@bp.route("", methods=["POST"])
@login_required
def create_notification():
    data = request.json or {}
    if not data.get("user_id") or not data.get("title"):
        return jsonify({"success": False, "error": "user_id y title son obligatorios"}), 400

    notification = notify(data["user_id"], data["title"], data.get("body"),
                          type=data.get("type", "info"), link=data.get("link"))
    db.session.commit()

    return jsonify(notification.to_dict()), 201


@bp.route("/<int:id>/read", methods=["POST"])
@login_required
def mark_read(id):
    notification = Notification.query.get_or_404(id)
    if notification.user_id != g.current_user.id:
        return jsonify({"success": False, "error": "Notificación ajena"}), 403

    notification.is_read = True
    db.session.commit()

    return jsonify(notification.to_dict())


@bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read():
    updated = Notification.query.filter_by(user_id=g.current_user.id, is_read=False).update({"is_read": True})
    db.session.commit()
    return jsonify({"success": True, "updated": updated})
