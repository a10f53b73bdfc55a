"""
API: Cambios de vuelo y equipaje
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import FlightExtra
from ..services import flight_extras as extra_service
from ..utils.parsing import parse_amount, parse_date, parse_currency, parse_bool
from .auth import permission_required

bp = Blueprint("flight_extras", __name__)


def _parse_extra(data):
    parsed = dict(data)
    for field in ("purchase_price", "sale_price"):
        if field in data:
            parsed[field] = parse_amount(data[field], field)
    if "issue_date" in data:
        parsed["issue_date"] = parse_date(data["issue_date"], "issue_date")
    if "currency" in data:
        parsed["currency"] = parse_currency(data["currency"])
    for field in ("is_entered", "is_audited"):
        if field in data:
            parsed[field] = parse_bool(data[field])
    return parsed


@bp.route("", methods=["GET"])
@permission_required("bookings:read")
def get_flight_extras():
    """Cambios y equipajes juntos (?kind=change|baggage)"""
    extras = extra_service.list_flight_extras(request.args.get("kind"))
    return jsonify([e.to_dict() for e in extras])


@bp.route("/<int:id>", methods=["GET"])
@permission_required("bookings:read")
def get_flight_extra(id):
    return jsonify(FlightExtra.query.get_or_404(id).to_dict())


@bp.route("", methods=["POST"])
@permission_required("bookings:create")
def create_flight_extra():
    data = request.json or {}
    extra = extra_service.create_flight_extra(data.get("kind"), _parse_extra(data))
    db.session.commit()

    print(f"✅ {extra.kind} {extra.pnr} registrado ({extra.invoice_number})")
    return jsonify({"success": True, "flight_extra": extra.to_dict()}), 201


@bp.route("/<int:id>", methods=["PUT"])
@permission_required("bookings:update")
def update_flight_extra(id):
    extra = FlightExtra.query.get_or_404(id)
    extra_service.update_flight_extra(extra, _parse_extra(request.json or {}))
    db.session.commit()
    return jsonify({"success": True, "flight_extra": extra.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("bookings:delete")
def delete_flight_extra(id):
    extra = FlightExtra.query.get_or_404(id)
    extra_service.delete_flight_extra(extra)
    db.session.commit()
    return jsonify({"success": True, "message": "Registro eliminado"})
