"""
API: Configuración
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import AppSettings
from ..models.app_settings import deep_merge
from ..services.audit import log_action
from .auth import permission_required

bp = Blueprint("settings", __name__)


@bp.route("", methods=["GET"])
@permission_required("settings:read")
def get_settings():
    settings = AppSettings.get_instance()
    db.session.commit()
    return jsonify(settings.to_dict())


@bp.route("", methods=["PUT"])
@permission_required("settings:update")
def update_settings():
    """Mezcla los valores recibidos sobre la configuración guardada"""
    data = request.json or {}
    data.pop("updated_at", None)

    settings = AppSettings.get_instance()
    # Columna JSON: reasignar para que SQLAlchemy detecte el cambio
    settings.data = deep_merge(settings.data or {}, data)

    log_action("UPDATE", "settings", settings.id, f"Configuración actualizada: {', '.join(data.keys())}")
    db.session.commit()

    return jsonify(settings.to_dict())
