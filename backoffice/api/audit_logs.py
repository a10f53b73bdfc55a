"""
API: Registro de actividad y de errores
"""
from flask import Blueprint, request, jsonify
from ..models import AuditLog
from .auth import permission_required

bp = Blueprint("audit_logs", __name__)


@bp.route("", methods=["GET"])
@permission_required("system:audit_log:read")
def get_audit_logs():
    """Últimas 200 acciones (sin errores)"""
    query = AuditLog.query.filter(AuditLog.level != "error")

    action = request.args.get("action")
    if action:
        query = query.filter_by(action=action)
    target_type = request.args.get("target_type")
    if target_type:
        query = query.filter_by(target_type=target_type)

    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(200).all()
    return jsonify([log.to_dict() for log in logs])


@bp.route("/errors", methods=["GET"])
@permission_required("system:error_log:read")
def get_error_logs():
    logs = AuditLog.query.filter_by(level="error").order_by(
        AuditLog.created_at.desc(), AuditLog.id.desc()
    ).limit(200).all()
    return jsonify([log.to_dict() for log in logs])
