"""
API: Cajas
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import Box
from ..services.ledger import account_balances
from ..services.audit import log_action
from ..utils.parsing import parse_amount
from .auth import permission_required, login_required

bp = Blueprint("boxes", __name__)


@bp.route("", methods=["GET"])
@login_required
def get_boxes():
    """Lista cajas con su saldo actual por moneda"""
    boxes = Box.query.order_by(Box.name).all()
    balances = account_balances([b.id for b in boxes])

    result = []
    for box in boxes:
        data = box.to_dict()
        per_currency = balances.get(box.id, {})
        data["balance_usd"] = round(box.opening_balance_usd + per_currency.get("USD", {}).get("balance", 0), 2)
        data["balance_iqd"] = round(box.opening_balance_iqd + per_currency.get("IQD", {}).get("balance", 0), 2)
        result.append(data)

    return jsonify(result)


@bp.route("", methods=["POST"])
@permission_required("settings:update")
def create_box():
    data = request.json or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"success": False, "error": "El nombre es obligatorio"}), 400

    box = Box(
        name=name,
        opening_balance_usd=parse_amount(data.get("opening_balance_usd"), "opening_balance_usd"),
        opening_balance_iqd=parse_amount(data.get("opening_balance_iqd"), "opening_balance_iqd"),
    )
    db.session.add(box)
    db.session.flush()
    log_action("CREATE", "box", box.id, f"Caja {box.name} creada")
    db.session.commit()

    return jsonify(box.to_dict()), 201


@bp.route("/<id>", methods=["PUT"])
@permission_required("settings:update")
def update_box(id):
    box = Box.query.get_or_404(id)
    data = request.json or {}

    box.name = data.get("name", box.name)
    if "opening_balance_usd" in data:
        box.opening_balance_usd = parse_amount(data["opening_balance_usd"], "opening_balance_usd")
    if "opening_balance_iqd" in data:
        box.opening_balance_iqd = parse_amount(data["opening_balance_iqd"], "opening_balance_iqd")

    log_action("UPDATE", "box", box.id, f"Caja {box.name} actualizada")
    db.session.commit()

    return jsonify(box.to_dict())


@bp.route("/<id>", methods=["DELETE"])
@permission_required("settings:update")
def delete_box(id):
    box = Box.query.get_or_404(id)

    if (box.use_count or 0) > 0:
        return jsonify({"success": False, "error": "No se puede eliminar, la caja tiene movimientos"}), 400

    db.session.delete(box)
    log_action("DELETE", "box", id, f"Caja {box.name} eliminada")
    db.session.commit()

    return jsonify({"success": True, "message": "Caja eliminada"})
