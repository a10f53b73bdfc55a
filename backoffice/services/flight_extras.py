"""
Servicio: Cambios de vuelo y compras de equipaje
Cargos sobre un PNR ya emitido con su asiento de venta y costo
"""
from datetime import datetime
from ..db import db
from ..models import FlightExtra, Relation, AppSettings
from .ledger import post_journal_entry, delete_source_vouchers
from .sequences import next_number
from .audit import log_action, actor_name


# tipo -> (prefijo del comprobante, etiqueta)
EXTRA_KINDS = {
    "change": ("FC", "Cambio de vuelo"),
    "baggage": ("BG", "Equipaje"),
}


def _finance_account(key):
    return AppSettings.get_instance().merged["finance_accounts"].get(key, key)


def _fill_extra(extra, data):
    pnr = (data.get("pnr") or "").strip().upper()
    if not pnr:
        raise ValueError("El PNR es obligatorio")

    supplier = Relation.query.get(data.get("supplier_id")) if data.get("supplier_id") else None
    beneficiary = Relation.query.get(data.get("beneficiary_id")) if data.get("beneficiary_id") else None
    if not supplier:
        raise ValueError("Proveedor no encontrado")
    if not beneficiary:
        raise ValueError("Beneficiario no encontrado")

    purchase_price = float(data.get("purchase_price") or 0)
    sale_price = float(data.get("sale_price") or 0)
    if purchase_price < 0 or sale_price < 0:
        raise ValueError("Los precios no pueden ser negativos")
    if sale_price <= 0:
        raise ValueError("El precio de venta debe ser mayor a cero")

    extra.pnr = pnr
    extra.supplier_id = supplier.id
    extra.beneficiary_id = beneficiary.id
    extra.purchase_price = purchase_price
    extra.sale_price = sale_price
    extra.currency = data.get("currency") or "USD"
    extra.issue_date = data.get("issue_date") or extra.issue_date or datetime.utcnow()
    extra.notes = data.get("notes")
    return supplier, beneficiary


def _post_extra_journal(extra):
    """Un solo comprobante: beneficiario / ingresos y, si hay compra, costo / proveedor"""
    label = EXTRA_KINDS[extra.kind][1]
    entries = [
        {"account_id": extra.beneficiary_id, "debit": extra.sale_price, "relation_id": extra.beneficiary_id,
         "description": f"{label} PNR {extra.pnr}"},
        {"account_id": _finance_account("revenue_tickets"), "credit": extra.sale_price},
    ]
    if extra.purchase_price > 0:
        entries += [
            {"account_id": _finance_account("cost_tickets"), "debit": extra.purchase_price},
            {"account_id": extra.supplier_id, "credit": extra.purchase_price, "relation_id": extra.supplier_id,
             "description": f"Costo {label.lower()} PNR {extra.pnr}"},
        ]

    original = extra.to_dict()
    original.pop("supplier_name", None)
    original.pop("beneficiary_name", None)

    return post_journal_entry(
        source_type="flight_extra",
        source_id=extra.id,
        entries=entries,
        date=extra.issue_date,
        description=f"{label} PNR {extra.pnr}",
        currency=extra.currency,
        voucher_type=f"flight_{extra.kind}",
        invoice_number=extra.invoice_number,
        original_data=original,
        meta={"kind": extra.kind, "pnr": extra.pnr},
    )


def create_flight_extra(kind, data):
    """Registra un cambio de vuelo o una compra de equipaje"""
    if kind not in EXTRA_KINDS:
        raise ValueError(f"Tipo inválido: {kind}")

    extra = FlightExtra(
        kind=kind,
        invoice_number=next_number(EXTRA_KINDS[kind][0]),
        created_by=actor_name(),
    )
    supplier, beneficiary = _fill_extra(extra, data)
    extra.is_entered = bool(data.get("is_entered", True))
    extra.is_audited = bool(data.get("is_audited", False))
    db.session.add(extra)
    db.session.flush()

    _post_extra_journal(extra)
    for account in (supplier, beneficiary):
        account.use_count = (account.use_count or 0) + 1

    log_action("CREATE", "flight_extra", extra.id,
               f"{EXTRA_KINDS[kind][1]} {extra.pnr} ({extra.invoice_number}): venta {extra.sale_price} {extra.currency}")
    return extra


def update_flight_extra(extra, data):
    """Actualiza datos y vuelve a generar el comprobante (mismo número)"""
    merged = {
        "pnr": extra.pnr, "supplier_id": extra.supplier_id, "beneficiary_id": extra.beneficiary_id,
        "purchase_price": extra.purchase_price, "sale_price": extra.sale_price,
        "currency": extra.currency, "issue_date": extra.issue_date, "notes": extra.notes,
        **data,
    }
    _fill_extra(extra, merged)
    if "is_entered" in data:
        extra.is_entered = bool(data["is_entered"])
    if "is_audited" in data:
        extra.is_audited = bool(data["is_audited"])
    db.session.flush()

    delete_source_vouchers("flight_extra", extra.id)
    db.session.flush()
    _post_extra_journal(extra)

    log_action("UPDATE", "flight_extra", extra.id, f"{EXTRA_KINDS[extra.kind][1]} {extra.pnr} actualizado")
    return extra


def delete_flight_extra(extra):
    """Elimina el registro junto con su comprobante"""
    delete_source_vouchers("flight_extra", extra.id)
    log_action("DELETE", "flight_extra", extra.id,
               f"{EXTRA_KINDS[extra.kind][1]} {extra.pnr} ({extra.invoice_number}) eliminado", level="warning")
    db.session.delete(extra)


def list_flight_extras(kind=None):
    """Cambios y equipajes juntos, del más reciente al más antiguo"""
    query = FlightExtra.query
    if kind:
        query = query.filter_by(kind=kind)
    return query.order_by(FlightExtra.issue_date.desc(), FlightExtra.id.desc()).all()
