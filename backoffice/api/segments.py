"""
API: Segmentos
Ganancia por periodo con empresas clientes y reparto con socios
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import SegmentEntry
from ..services import segments as segment_service
from ..utils.parsing import parse_date, parse_currency, parse_bool, require
from .auth import permission_required

bp = Blueprint("segments", __name__)


@bp.route("", methods=["GET"])
@permission_required("segments:read")
def get_segments():
    """Registros (filtros: from, to, client_id, include_deleted)"""
    query = SegmentEntry.query

    if not parse_bool(request.args.get("include_deleted", "false")):
        query = query.filter_by(is_deleted=False)

    date_from = parse_date(request.args.get("from"), "from")
    date_to = parse_date(request.args.get("to"), "to")
    if date_from:
        query = query.filter(SegmentEntry.from_date >= date_from)
    if date_to:
        query = query.filter(SegmentEntry.to_date <= date_to)

    client_id = request.args.get("client_id")
    if client_id:
        query = query.filter_by(client_id=client_id)

    entries = query.order_by(SegmentEntry.from_date.desc(), SegmentEntry.id).all()
    return jsonify([e.to_dict() for e in entries])


@bp.route("/preview", methods=["POST"])
@permission_required("segments:read")
def preview_segment():
    """Calcula montos sin guardar"""
    data = request.json or {}
    percentage = data.get("company_share_percentage")
    values = segment_service.build_segment_values(
        data,
        has_partner=bool(data.get("has_partner")),
        company_share_percentage=100 if percentage in (None, "") else float(percentage),
        partners=data.get("partners"),
    )
    return jsonify(values)


@bp.route("", methods=["POST"])
@permission_required("segments:create")
def create_period():
    """
    Crea un periodo

    Body: {"from_date", "to_date", "currency", "entries": [{company_name, client_id, tickets, ...,
           has_partner, company_share_percentage, partners: [{partner_id, partner_name, percentage}]}]}
    """
    data = request.json or {}
    require(data, "from_date", "to_date")

    entries = segment_service.create_segment_period(
        parse_date(data["from_date"], "from_date"),
        parse_date(data["to_date"], "to_date"),
        data.get("entries") or [],
        currency=parse_currency(data.get("currency")),
    )
    db.session.commit()

    return jsonify({
        "success": True,
        "invoice_number": entries[0].invoice_number,
        "entries": [e.to_dict() for e in entries],
    }), 201


@bp.route("/<int:id>", methods=["PUT"])
@permission_required("segments:update")
def update_entry(id):
    entry = SegmentEntry.query.get_or_404(id)

    segment_service.update_segment_entry(entry, request.json or {})
    db.session.commit()

    return jsonify({"success": True, "entry": entry.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("segments:delete")
def delete_entry(id):
    """Borra un registro (definitivo)"""
    entry = SegmentEntry.query.get_or_404(id)

    db.session.delete(entry)
    db.session.commit()

    return jsonify({"success": True, "message": "Registro eliminado"})


@bp.route("/<int:id>/soft-delete", methods=["POST"])
@permission_required("segments:delete")
def soft_delete_entry(id):
    entry = SegmentEntry.query.get_or_404(id)

    segment_service.set_segment_deleted(entry, True)
    db.session.commit()

    return jsonify({"success": True, "entry": entry.to_dict()})


@bp.route("/<int:id>/restore", methods=["POST"])
@permission_required("segments:delete")
def restore_entry(id):
    entry = SegmentEntry.query.get_or_404(id)

    segment_service.set_segment_deleted(entry, False)
    db.session.commit()

    return jsonify({"success": True, "entry": entry.to_dict()})


@bp.route("/period", methods=["DELETE"])
@permission_required("segments:delete")
def delete_period():
    """Borra todos los registros de un periodo (?from=&to=)"""
    date_from = parse_date(request.args.get("from"), "from")
    date_to = parse_date(request.args.get("to"), "to")
    if not date_from or not date_to:
        return jsonify({"success": False, "error": "Debe indicar from y to"}), 400

    count = segment_service.delete_segment_period(date_from, date_to)
    db.session.commit()

    return jsonify({"success": True, "deleted": count})
