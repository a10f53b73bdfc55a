"""
API: Panel principal
"""
from flask import Blueprint, jsonify
from ..services.reports import dashboard_stats
from ..services.subscriptions import upcoming_installments
from .auth import permission_required

bp = Blueprint("dashboard", __name__)


@bp.route("", methods=["GET"])
@permission_required("dashboard:read")
def get_dashboard():
    """Conteos, venta y ganancia por mes, y cuotas de los próximos 7 días"""
    stats = dashboard_stats()
    stats["upcoming_installments"] = [i.to_dict() for i in upcoming_installments(days=7)]
    return jsonify(stats)
