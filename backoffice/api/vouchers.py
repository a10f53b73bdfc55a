"""
API: Comprobantes
Recibos, pagos, gastos, asientos manuales, recibos distribuidos y papelera
"""
from datetime import datetime
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import JournalVoucher, DeletedVoucher
from ..services import vouchers as voucher_service
from ..services.ledger import soft_delete_voucher, restore_voucher, permanently_delete_voucher
from ..services.audit import log_action
from ..utils.parsing import parse_amount, parse_date, parse_currency, parse_bool, require
from .auth import permission_required

bp = Blueprint("vouchers", __name__)


def _base_fields(data):
    return {
        "date": parse_date(data.get("date"), default=datetime.utcnow()),
        "currency": parse_currency(data.get("currency")),
        "exchange_rate": parse_amount(data.get("exchange_rate"), "exchange_rate", default=None),
    }


@bp.route("", methods=["GET"])
@permission_required("vouchers:read")
def list_vouchers():
    """Lista comprobantes (filtros: type, source_type, from, to, include_deleted)"""
    query = JournalVoucher.query

    if not parse_bool(request.args.get("include_deleted", "false")):
        query = query.filter_by(is_deleted=False)

    voucher_type = request.args.get("type")
    if voucher_type:
        query = query.filter_by(voucher_type=voucher_type)

    source_type = request.args.get("source_type")
    if source_type:
        query = query.filter_by(source_type=source_type)

    date_from = parse_date(request.args.get("from"), "from")
    date_to = parse_date(request.args.get("to"), "to")
    if date_from:
        query = query.filter(JournalVoucher.date >= date_from)
    if date_to:
        query = query.filter(JournalVoucher.date <= date_to)

    vouchers = query.order_by(JournalVoucher.date.desc(), JournalVoucher.id.desc()).all()
    return jsonify([v.to_dict() for v in vouchers])


@bp.route("/<int:id>", methods=["GET"])
@permission_required("vouchers:read")
def get_voucher(id):
    voucher = JournalVoucher.query.get_or_404(id)
    return jsonify(voucher.to_dict())


@bp.route("/standard", methods=["POST"])
@permission_required("vouchers:create")
def create_standard_receipt():
    """Recibo normal: una relación entrega dinero a una caja"""
    data = request.json or {}
    require(data, "from", "to_box", "amount")

    payload = _base_fields(data)
    payload.update({
        "from": data["from"],
        "to_box": data["to_box"],
        "amount": parse_amount(data["amount"]),
        "details": data.get("details"),
    })

    voucher = voucher_service.create_standard_receipt(payload)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()}), 201


@bp.route("/payment", methods=["POST"])
@permission_required("vouchers:create")
def create_payment_voucher():
    """Pago a proveedor desde una caja"""
    data = request.json or {}
    require(data, "to_supplier_id", "box_id", "amount")

    payload = _base_fields(data)
    payload.update({
        "to_supplier_id": data["to_supplier_id"],
        "box_id": data["box_id"],
        "amount": parse_amount(data["amount"]),
        "purpose": data.get("purpose", "tickets"),
        "details": data.get("details"),
    })

    voucher = voucher_service.create_payment_voucher(payload)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()}), 201


@bp.route("/expense", methods=["POST"])
@permission_required("vouchers:create")
def create_expense_voucher():
    data = request.json or {}
    require(data, "expense_type", "box_id", "amount")

    payload = _base_fields(data)
    payload.update({
        "expense_type": data["expense_type"],
        "box_id": data["box_id"],
        "amount": parse_amount(data["amount"]),
        "details": data.get("details"),
    })

    voucher = voucher_service.create_expense_voucher(payload)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()}), 201


@bp.route("/journal", methods=["POST"])
@permission_required("vouchers:create")
def create_journal_voucher():
    """Asiento manual: entries = [{account_id, debit, credit, description}]"""
    data = request.json or {}

    payload = _base_fields(data)
    payload["notes"] = data.get("notes")
    payload["entries"] = [
        {
            "account_id": e.get("account_id"),
            "debit": parse_amount(e.get("debit"), "debit"),
            "credit": parse_amount(e.get("credit"), "credit"),
            "description": e.get("description"),
            "relation_id": e.get("relation_id"),
        }
        for e in data.get("entries") or []
    ]

    voucher = voucher_service.create_journal_voucher(payload)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()}), 201


def _distributed_payload(data):
    require(data, "account_id", "box_id", "total_amount")

    payload = _base_fields(data)
    payload.update({
        "account_id": data["account_id"],
        "box_id": data["box_id"],
        "reference": data.get("reference"),
        "notes": data.get("notes"),
        "total_amount": parse_amount(data["total_amount"], "total_amount"),
        "company_amount": parse_amount(data.get("company_amount"), "company_amount"),
        "distributions": {},
    })

    for channel_id, value in (data.get("distributions") or {}).items():
        if isinstance(value, dict):
            payload["distributions"][channel_id] = {
                "enabled": value.get("enabled", True) is not False,
                "amount": parse_amount(value.get("amount"), channel_id),
            }
        else:
            payload["distributions"][channel_id] = {"enabled": True, "amount": parse_amount(value, channel_id)}

    return payload


@bp.route("/distributed", methods=["POST"])
@permission_required("vouchers:create")
def create_distributed_voucher():
    """Recibo distribuido: el total entra a caja y se reparte entre la relación y los canales"""
    payload = _distributed_payload(request.json or {})

    voucher = voucher_service.save_distributed_voucher(payload)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()}), 201


@bp.route("/distributed/<int:id>", methods=["PUT"])
@permission_required("vouchers:update")
def update_distributed_voucher(id):
    voucher = JournalVoucher.query.get_or_404(id)
    if voucher.voucher_type != "journal_from_distributed_receipt":
        return jsonify({"success": False, "error": "El comprobante no es un recibo distribuido"}), 400

    payload = _distributed_payload(request.json or {})

    voucher = voucher_service.save_distributed_voucher(payload, voucher=voucher)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()})


@bp.route("/<int:id>", methods=["PUT"])
@permission_required("vouchers:update")
def update_voucher(id):
    """Actualiza datos de cabecera (notas, fecha, auditado, confirmado, responsable)"""
    voucher = JournalVoucher.query.get_or_404(id)
    data = request.json or {}

    if "notes" in data:
        voucher.notes = data["notes"]
    if "date" in data and data["date"]:
        voucher.date = parse_date(data["date"])
    if "is_audited" in data:
        voucher.is_audited = parse_bool(data["is_audited"])
    if "is_confirmed" in data:
        voucher.is_confirmed = parse_bool(data["is_confirmed"])
    if "officer" in data:
        voucher.officer = data["officer"]

    log_action("UPDATE", "voucher", voucher.id, f"Comprobante {voucher.invoice_number} actualizado")
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("vouchers:delete")
def delete_voucher(id):
    """Elimina (soft) un comprobante; queda en el registro de eliminados"""
    voucher = JournalVoucher.query.get_or_404(id)
    data = request.get_json(silent=True) or {}

    soft_delete_voucher(voucher, reason=data.get("reason"))
    db.session.commit()

    return jsonify({"success": True, "message": "Comprobante eliminado"})


@bp.route("/deleted", methods=["GET"])
@permission_required("vouchers:read")
def list_deleted_vouchers():
    """Registro de comprobantes eliminados"""
    deleted = DeletedVoucher.query.order_by(DeletedVoucher.deleted_at.desc()).all()
    return jsonify([d.to_dict() for d in deleted])


@bp.route("/<int:id>/restore", methods=["POST"])
@permission_required("vouchers:delete")
def restore(id):
    voucher = JournalVoucher.query.get_or_404(id)

    restore_voucher(voucher)
    db.session.commit()

    return jsonify({"success": True, "voucher": voucher.to_dict()})


@bp.route("/<int:id>/permanent", methods=["DELETE"])
@permission_required("vouchers:delete")
def permanent_delete(id):
    voucher = JournalVoucher.query.get_or_404(id)

    permanently_delete_voucher(voucher)
    db.session.commit()

    return jsonify({"success": True, "message": "Comprobante eliminado permanentemente"})
