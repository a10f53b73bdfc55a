"""
API: Reparto de ganancias
Ganancias mensuales o manuales y la parte de cada socio
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import MonthlyProfit, ProfitShare
from ..services import profit_sharing as profit_service
from ..utils.parsing import parse_amount, parse_date, parse_currency
from .auth import permission_required

bp = Blueprint("profit_sharing", __name__)


@bp.route("", methods=["GET"])
@permission_required("profit_sharing:read")
def get_profits():
    return jsonify([p.to_dict() for p in profit_service.list_profits()])


@bp.route("/system/<month_id>", methods=["GET"])
@permission_required("profit_sharing:read")
def get_system_profit(month_id):
    """Ganancia calculada del mes sin guardarla (?currency=)"""
    currency = parse_currency(request.args.get("currency"))
    return jsonify(profit_service.compute_system_profit(month_id, currency))


@bp.route("/months", methods=["POST"])
@permission_required("profit_sharing:manage")
def seed_month():
    """Body: {"month": "YYYY-MM", "currency", "total_profit"?, "notes"}"""
    data = request.json or {}
    total = data.get("total_profit")
    profit = profit_service.seed_monthly_profit(
        data.get("month"),
        currency=parse_currency(data.get("currency")),
        total_profit=parse_amount(total, "total_profit") if total not in (None, "") else None,
        notes=data.get("notes"),
    )
    db.session.commit()

    print(f"✅ Ganancia de {profit.id}: {profit.total_profit} {profit.currency}")
    return jsonify({"success": True, "profit": profit.to_dict(include_shares=True)})


@bp.route("/manual", methods=["POST"])
@permission_required("profit_sharing:manage")
def create_manual_profit():
    data = request.json or {}
    profit = profit_service.create_manual_profit({
        **data,
        "from_date": parse_date(data.get("from_date"), "from_date"),
        "to_date": parse_date(data.get("to_date"), "to_date"),
        "profit": parse_amount(data.get("profit"), "profit"),
        "currency": parse_currency(data.get("currency")),
    })
    db.session.commit()
    return jsonify({"success": True, "profit": profit.to_dict(include_shares=True)}), 201


@bp.route("/<profit_id>", methods=["DELETE"])
@permission_required("profit_sharing:manage")
def delete_profit(profit_id):
    profit = MonthlyProfit.query.get_or_404(profit_id)
    db.session.delete(profit)
    db.session.commit()
    return jsonify({"success": True, "message": "Ganancia eliminada"})


@bp.route("/<profit_id>/shares", methods=["GET"])
@permission_required("profit_sharing:read")
def get_shares(profit_id):
    profit = MonthlyProfit.query.get_or_404(profit_id)
    return jsonify(profit.to_dict(include_shares=True))


@bp.route("/<profit_id>/shares", methods=["POST"])
@permission_required("profit_sharing:manage")
def create_share(profit_id):
    profit = MonthlyProfit.query.get_or_404(profit_id)
    data = request.json or {}
    share = profit_service.save_profit_share(profit, {
        **data, "percentage": parse_amount(data.get("percentage"), "percentage"),
    })
    db.session.commit()
    return jsonify({"success": True, "share": share.to_dict()}), 201


@bp.route("/shares/<int:id>", methods=["PUT"])
@permission_required("profit_sharing:manage")
def update_share(id):
    share = ProfitShare.query.get_or_404(id)
    data = dict(request.json or {})
    if "percentage" in data:
        data["percentage"] = parse_amount(data["percentage"], "percentage")
    profit_service.update_profit_share(share, data)
    db.session.commit()
    return jsonify({"success": True, "share": share.to_dict()})


@bp.route("/shares/<int:id>", methods=["DELETE"])
@permission_required("profit_sharing:manage")
def delete_share(id):
    share = ProfitShare.query.get_or_404(id)
    profit_service.delete_profit_share(share)
    db.session.commit()
    return jsonify({"success": True, "message": "Parte eliminada"})
