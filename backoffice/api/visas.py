"""
API: Visas
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import VisaBooking
from ..services import bookings as booking_service
from ..utils.parsing import parse_amount, parse_date, parse_currency, parse_bool
from .auth import permission_required

bp = Blueprint("visas", __name__)


def _parse_visa(data):
    parsed = dict(data)
    if "submission_date" in data:
        parsed["submission_date"] = parse_date(data["submission_date"], "submission_date")
    if "currency" in data:
        parsed["currency"] = parse_currency(data["currency"])
    if "passengers" in data:
        parsed["passengers"] = [
            {
                **p,
                "purchase_price": parse_amount(p.get("purchase_price"), "purchase_price"),
                "sale_price": parse_amount(p.get("sale_price"), "sale_price"),
            }
            for p in data.get("passengers") or []
        ]
    return parsed


@bp.route("", methods=["GET"])
@permission_required("visas:read")
def get_visas():
    query = VisaBooking.query

    if not parse_bool(request.args.get("include_deleted", "false")):
        query = query.filter_by(is_deleted=False)

    client_id = request.args.get("client_id")
    if client_id:
        query = query.filter_by(client_id=client_id)

    query = query.order_by(VisaBooking.entered_at.desc(), VisaBooking.id.desc())
    total = query.count()

    if not parse_bool(request.args.get("all", "false")):
        page = max(request.args.get("page", 1, type=int), 1)
        limit = max(request.args.get("limit", 20, type=int), 1)
        query = query.offset((page - 1) * limit).limit(limit)

    return jsonify({"visas": [v.to_dict() for v in query.all()], "total": total})


@bp.route("/<int:id>", methods=["GET"])
@permission_required("visas:read")
def get_visa(id):
    visa = VisaBooking.query.get_or_404(id)
    return jsonify(visa.to_dict())


@bp.route("", methods=["POST"])
@permission_required("visas:create")
def create_visa():
    visa = booking_service.create_visa(_parse_visa(request.json or {}))
    db.session.commit()

    print(f"✅ Visa creada ({visa.invoice_number})")
    return jsonify({"success": True, "visa": visa.to_dict()}), 201


@bp.route("/bulk", methods=["POST"])
@permission_required("visas:create")
def create_visas():
    items = (request.json or {}).get("visas") or []
    if not items:
        return jsonify({"success": False, "error": "No hay visas para crear"}), 400

    visas = [booking_service.create_visa(_parse_visa(item)) for item in items]
    db.session.commit()

    return jsonify({"success": True, "visas": [v.to_dict() for v in visas]}), 201


@bp.route("/<int:id>", methods=["PUT"])
@permission_required("visas:update")
def update_visa(id):
    visa = VisaBooking.query.get_or_404(id)
    data = request.json or {}

    if set(data) <= {"is_audited", "is_entered"}:
        if "is_audited" in data:
            visa.is_audited = parse_bool(data["is_audited"])
        if "is_entered" in data:
            visa.is_entered = parse_bool(data["is_entered"])
    else:
        booking_service.update_visa(visa, _parse_visa(data))

    db.session.commit()
    return jsonify({"success": True, "visa": visa.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("visas:delete")
def delete_visa(id):
    visa = VisaBooking.query.get_or_404(id)

    booking_service.soft_delete_visa(visa)
    db.session.commit()

    return jsonify({"success": True, "message": "Visa eliminada"})


@bp.route("/<int:id>/restore", methods=["POST"])
@permission_required("visas:delete")
def restore_visa(id):
    visa = VisaBooking.query.get_or_404(id)

    booking_service.restore_visa(visa)
    db.session.commit()

    return jsonify({"success": True, "visa": visa.to_dict()})


@bp.route("/<int:id>/permanent", methods=["DELETE"])
@permission_required("visas:delete")
def permanent_delete_visa(id):
    visa = VisaBooking.query.get_or_404(id)

    booking_service.permanently_delete_visa(visa)
    db.session.commit()

    return jsonify({"success": True, "message": "Visa eliminada permanentemente"})
