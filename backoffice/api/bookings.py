"""
API: Reservas de boletos
CRUD, búsqueda por PNR / boleto y operaciones (reembolso, cambio, anulación)
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import Booking
from ..services import bookings as booking_service
from ..utils.parsing import parse_amount, parse_date, parse_currency, parse_bool
from .auth import permission_required

bp = Blueprint("bookings", __name__)


def _parse_booking(data):
    """Normaliza montos y fechas del formulario"""
    parsed = dict(data)
    for field in ("travel_date", "issue_date"):
        if field in data:
            parsed[field] = parse_date(data[field], field)
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
@permission_required("bookings:read")
def get_bookings():
    """Lista paginada (page, limit, all, include_deleted)"""
    query = Booking.query

    if not parse_bool(request.args.get("include_deleted", "false")):
        query = query.filter_by(is_deleted=False)

    client_id = request.args.get("client_id")
    if client_id:
        query = query.filter_by(client_id=client_id)

    query = query.order_by(Booking.entered_at.desc(), Booking.id.desc())
    total = query.count()

    if not parse_bool(request.args.get("all", "false")):
        page = max(request.args.get("page", 1, type=int), 1)
        limit = max(request.args.get("limit", 20, type=int), 1)
        query = query.offset((page - 1) * limit).limit(limit)

    return jsonify({"bookings": [b.to_dict() for b in query.all()], "total": total})


@bp.route("/<int:id>", methods=["GET"])
@permission_required("bookings:read")
def get_booking(id):
    booking = Booking.query.get_or_404(id)
    data = booking.to_dict()
    data["operations"] = [op.to_dict() for op in booking.operations]
    return jsonify(data)


@bp.route("/find", methods=["GET"])
@permission_required("bookings:read")
def find_booking():
    """Busca por PNR o número de boleto (?ref=)"""
    bookings = booking_service.find_bookings(request.args.get("ref"))
    return jsonify([b.to_dict() for b in bookings])


@bp.route("", methods=["POST"])
@permission_required("bookings:create")
def create_booking():
    booking = booking_service.create_booking(_parse_booking(request.json or {}))
    db.session.commit()

    print(f"✅ Reserva {booking.pnr} creada ({booking.invoice_number})")
    return jsonify({"success": True, "booking": booking.to_dict()}), 201


@bp.route("/bulk", methods=["POST"])
@permission_required("bookings:create")
def create_bookings():
    """Varias reservas en un solo commit (si una falla no se guarda ninguna)"""
    items = (request.json or {}).get("bookings") or []
    if not items:
        return jsonify({"success": False, "error": "No hay reservas para crear"}), 400

    bookings = [booking_service.create_booking(_parse_booking(item)) for item in items]
    db.session.commit()

    return jsonify({"success": True, "bookings": [b.to_dict() for b in bookings]}), 201


@bp.route("/<int:id>", methods=["PUT"])
@permission_required("bookings:update")
def update_booking(id):
    booking = Booking.query.get_or_404(id)
    data = request.json or {}

    if set(data) <= {"is_audited", "is_entered"}:
        # Solo marcas de revisión: no se tocan los asientos
        if "is_audited" in data:
            booking.is_audited = parse_bool(data["is_audited"])
        if "is_entered" in data:
            booking.is_entered = parse_bool(data["is_entered"])
    else:
        booking_service.update_booking(booking, _parse_booking(data))

    db.session.commit()
    return jsonify({"success": True, "booking": booking.to_dict()})


@bp.route("/<int:id>/operations", methods=["POST"])
@permission_required("bookings:operations")
def create_operation(id):
    """
    Operación sobre boletos

    Body: {"type": "Refund|Exchange|Void", "ticket_number"?, "airline_fee", "office_fee",
           "price_difference", "notes", "date"}
    """
    booking = Booking.query.get_or_404(id)
    data = request.json or {}

    operation = booking_service.apply_ticket_operation(
        booking,
        data.get("type"),
        passenger_ticket_number=data.get("ticket_number"),
        airline_fee=parse_amount(data.get("airline_fee"), "airline_fee"),
        office_fee=parse_amount(data.get("office_fee"), "office_fee"),
        price_difference=parse_amount(data.get("price_difference"), "price_difference"),
        notes=data.get("notes"),
        date=parse_date(data.get("date")),
    )
    db.session.commit()

    return jsonify({"success": True, "operation": operation.to_dict(), "booking": booking.to_dict()}), 201


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("bookings:delete")
def delete_booking(id):
    booking = Booking.query.get_or_404(id)

    booking_service.soft_delete_booking(booking)
    db.session.commit()

    return jsonify({"success": True, "message": "Reserva eliminada"})


@bp.route("/<int:id>/restore", methods=["POST"])
@permission_required("bookings:delete")
def restore_booking(id):
    booking = Booking.query.get_or_404(id)

    booking_service.restore_booking(booking)
    db.session.commit()

    return jsonify({"success": True, "booking": booking.to_dict()})


@bp.route("/<int:id>/permanent", methods=["DELETE"])
@permission_required("bookings:delete")
def permanent_delete_booking(id):
    booking = Booking.query.get_or_404(id)

    booking_service.permanently_delete_booking(booking)
    db.session.commit()

    return jsonify({"success": True, "message": "Reserva eliminada permanentemente"})
