"""
Servicio: Reservas de boletos y visas
Alta con pasajeros, asientos de venta y costo, operaciones sobre boletos
"""
from datetime import datetime
from ..db import db
from ..models import (
    Booking, BookingPassenger, TicketOperation,
    VisaBooking, VisaPassenger, Relation, Box, AppSettings,
)
from .ledger import (
    post_journal_entry, record_financial_transaction, vouchers_for_source,
    soft_delete_source_vouchers, restore_source_vouchers, delete_source_vouchers,
)
from .sequences import next_number
from .audit import log_action, actor_name


OPERATION_TYPES = {
    # tipo -> (estado de la reserva, tipo de boleto del pasajero)
    "Refund": ("Refunded", "Refund"),
    "Void": ("Voided", "Void"),
    "Exchange": ("Exchanged", "Change"),
}


def _finance_account(key):
    return AppSettings.get_instance().merged["finance_accounts"].get(key, key)


def _get_parties(data):
    client = Relation.query.get(data.get("client_id")) if data.get("client_id") else None
    supplier = Relation.query.get(data.get("supplier_id")) if data.get("supplier_id") else None
    if not client:
        raise ValueError("Cliente no encontrado")
    if not supplier:
        raise ValueError("Proveedor no encontrado")
    return client, supplier


def _increment_use_count(*accounts):
    for account in accounts:
        if account is not None:
            account.use_count = (account.use_count or 0) + 1


BOOKING_FIELDS = (
    "pnr", "client_id", "supplier_id", "route", "airline", "currency",
    "travel_date", "issue_date", "notes", "box_id", "document_url",
)
VISA_FIELDS = (
    "client_id", "supplier_id", "destination", "submission_date",
    "currency", "box_id", "notes", "document_url",
)


def _current_values(record, fields):
    return {field: getattr(record, field) for field in fields}


def _snapshot(record):
    """Datos del documento que se guardan en el comprobante (original_data)"""
    data = record.to_dict()
    data.pop("client_name", None)
    data.pop("supplier_name", None)
    return data


# ---------------------------------------------------------------------------
# Boletos
# ---------------------------------------------------------------------------

def _fill_booking(booking, data):
    booking.pnr = (data.get("pnr") or "").strip().upper()
    if not booking.pnr:
        raise ValueError("El PNR es obligatorio")

    booking.route = data.get("route")
    booking.airline = data.get("airline")
    booking.currency = data.get("currency", "USD")
    booking.travel_date = data.get("travel_date")
    booking.issue_date = data.get("issue_date") or datetime.utcnow()
    booking.notes = data.get("notes")
    booking.box_id = data.get("box_id")
    booking.document_url = data.get("document_url")

    passengers = data.get("passengers") or []
    if not passengers:
        raise ValueError("La reserva necesita al menos un pasajero")

    booking.passengers.clear()
    for p in passengers:
        if not (p.get("name") or "").strip():
            raise ValueError("Todos los pasajeros necesitan nombre")
        booking.passengers.append(BookingPassenger(
            name=p["name"].strip(),
            passport_number=p.get("passport_number"),
            ticket_number=p.get("ticket_number"),
            purchase_price=p.get("purchase_price") or 0,
            sale_price=p.get("sale_price") or 0,
            passenger_type=p.get("passenger_type") or "Adult",
            ticket_type=p.get("ticket_type") or "Issue",
        ))


def _post_booking_journals(booking, client, supplier):
    """Asiento de venta (cliente / ingresos) y de costo (costo / proveedor) si hay compra"""
    vouchers = []
    original = _snapshot(booking)

    if booking.total_sale > 0:
        vouchers.append(record_financial_transaction(
            debit_account_id=client.id,
            credit_account_id=_finance_account("revenue_tickets"),
            debit_relation_id=client.id,
            amount=booking.total_sale,
            currency=booking.currency,
            source_type="booking",
            source_id=booking.id,
            voucher_type="booking",
            invoice_number=booking.invoice_number,
            date=booking.issue_date,
            description=f"Venta boletos PNR {booking.pnr}",
            meta={"kind": "revenue", "pnr": booking.pnr},
            original_data=original,
            skip_audit_log=True,
        ))

    if booking.total_purchase > 0:
        vouchers.append(record_financial_transaction(
            debit_account_id=_finance_account("cost_tickets"),
            credit_account_id=supplier.id,
            credit_relation_id=supplier.id,
            amount=booking.total_purchase,
            currency=booking.currency,
            source_type="booking",
            source_id=booking.id,
            voucher_type="booking",
            invoice_number=booking.invoice_number,
            date=booking.issue_date,
            description=f"Costo boletos PNR {booking.pnr}",
            meta={"kind": "cost", "pnr": booking.pnr},
            original_data=original,
            skip_audit_log=True,
        ))

    return vouchers


def create_booking(data):
    """Crea una reserva con sus pasajeros y asientos"""
    client, supplier = _get_parties(data)

    booking = Booking(
        invoice_number=next_number("BK"),
        client_id=client.id,
        supplier_id=supplier.id,
        status="Issued",
        entered_by=actor_name(),
        entered_at=datetime.utcnow(),
    )
    _fill_booking(booking, data)
    db.session.add(booking)
    db.session.flush()

    _post_booking_journals(booking, client, supplier)

    box = Box.query.get(booking.box_id) if booking.box_id else None
    _increment_use_count(client, supplier, box)

    log_action("CREATE", "booking", booking.id,
               f"Reserva {booking.pnr} ({booking.invoice_number}) para {client.name}: "
               f"venta {booking.total_sale} {booking.currency}")
    return booking


def update_booking(booking, data):
    """Reemplaza datos y pasajeros; los asientos se vuelven a generar"""
    if booking.is_deleted:
        raise ValueError("No se puede editar una reserva eliminada")

    merged = {**_current_values(booking, BOOKING_FIELDS), **data}
    if "passengers" not in data:
        merged["passengers"] = [p.to_dict() for p in booking.passengers]
    client, supplier = _get_parties(merged)
    booking.client_id = client.id
    booking.supplier_id = supplier.id
    _fill_booking(booking, merged)
    db.session.flush()

    for voucher in vouchers_for_source("booking", booking.id):
        db.session.delete(voucher)
    db.session.flush()
    _post_booking_journals(booking, client, supplier)

    log_action("UPDATE", "booking", booking.id, f"Reserva {booking.pnr} actualizada")
    return booking


def find_bookings(reference):
    """Busca reservas por PNR o número de boleto"""
    reference = (reference or "").strip().upper()
    if not reference:
        return []
    by_pnr = Booking.query.filter(Booking.pnr == reference, Booking.is_deleted.is_(False)).all()
    by_ticket = Booking.query.join(BookingPassenger).filter(
        BookingPassenger.ticket_number == reference,
        Booking.is_deleted.is_(False),
    ).all()
    seen, result = set(), []
    for booking in by_pnr + by_ticket:
        if booking.id not in seen:
            seen.add(booking.id)
            result.append(booking)
    return result


def _operation_entries(op_type, sale, purchase, airline_fee, office_fee, price_difference, client, supplier):
    revenue = _finance_account("revenue_tickets")
    cost = _finance_account("cost_tickets")
    fees = _finance_account("ticket_fees")

    if op_type in ("Refund", "Void"):
        if airline_fee > purchase:
            raise ValueError("La penalidad de la aerolínea no puede superar el costo del boleto")
        refund_to_client = sale - airline_fee - office_fee
        if refund_to_client < 0:
            raise ValueError("Las penalidades superan el precio de venta")
        # Se revierte la venta y el costo; el cliente paga las penalidades
        return [
            {"account_id": revenue, "debit": sale - airline_fee, "description": "Reversa de venta"},
            {"account_id": client.id, "credit": refund_to_client, "relation_id": client.id,
             "description": "Devolución al cliente"},
            {"account_id": fees, "credit": office_fee, "description": "Cargo de oficina"},
            {"account_id": supplier.id, "debit": purchase - airline_fee, "relation_id": supplier.id,
             "description": "Devolución del proveedor"},
            {"account_id": cost, "credit": purchase - airline_fee, "description": "Reversa de costo"},
        ]

    # Exchange: el cliente paga diferencia de tarifa y cargos
    charged = price_difference + airline_fee
    return [
        {"account_id": client.id, "debit": charged + office_fee, "relation_id": client.id,
         "description": "Cargo por cambio de boleto"},
        {"account_id": revenue, "credit": charged, "description": "Diferencia de tarifa"},
        {"account_id": fees, "credit": office_fee, "description": "Cargo de oficina"},
        {"account_id": cost, "debit": charged, "description": "Costo del cambio"},
        {"account_id": supplier.id, "credit": charged, "relation_id": supplier.id,
         "description": "Por pagar al proveedor"},
    ]


def apply_ticket_operation(booking, op_type, passenger_ticket_number=None, airline_fee=0,
                           office_fee=0, price_difference=0, notes=None, date=None):
    """
    Reembolso, anulación o cambio de boletos de una reserva

    Sin número de boleto la operación aplica a todos los pasajeros vigentes.
    """
    if op_type not in OPERATION_TYPES:
        raise ValueError(f"Operación inválida: {op_type}")
    if booking.is_deleted:
        raise ValueError("La reserva está eliminada")
    if min(airline_fee, office_fee, price_difference) < 0:
        raise ValueError("Los montos no pueden ser negativos")

    passengers = [p for p in booking.passengers if p.ticket_type not in ("Refund", "Void")]
    if passenger_ticket_number:
        passengers = [p for p in passengers if p.ticket_number == passenger_ticket_number]
    if not passengers:
        raise ValueError("No hay boletos vigentes para esta operación")

    sale = round(sum(p.sale_price or 0 for p in passengers), 2)
    purchase = round(sum(p.purchase_price or 0 for p in passengers), 2)
    client, supplier = booking.client, booking.supplier

    entries = _operation_entries(op_type, sale, purchase, airline_fee, office_fee, price_difference,
                                 client, supplier)

    operation = TicketOperation(
        booking_id=booking.id,
        passenger_ticket_number=passenger_ticket_number,
        type=op_type,
        airline_fee=airline_fee,
        office_fee=office_fee,
        price_difference=price_difference,
        notes=notes,
        created_by=actor_name(),
    )
    db.session.add(operation)
    db.session.flush()

    voucher = None
    if any((e.get("debit") or e.get("credit") or 0) > 0 for e in entries):
        voucher = post_journal_entry(
            source_type="ticket_operation",
            source_id=booking.id,
            voucher_type="ticket_operation",
            entries=entries,
            date=date,
            currency=booking.currency,
            description=notes or f"{op_type} PNR {booking.pnr}",
            meta={"operation_id": operation.id, "type": op_type},
            original_data=operation.to_dict(),
        )
        operation.journal_voucher_id = voucher.id

    booking_status, ticket_type = OPERATION_TYPES[op_type]
    for passenger in passengers:
        passenger.ticket_type = ticket_type

    if op_type == "Exchange" or all(p.ticket_type in ("Refund", "Void") for p in booking.passengers):
        booking.status = booking_status

    log_action("UPDATE", "booking", booking.id,
               f"{op_type} sobre PNR {booking.pnr} ({len(passengers)} boleto(s))")
    return operation


def soft_delete_booking(booking):
    if booking.is_deleted:
        raise ValueError("La reserva ya está eliminada")
    booking.is_deleted = True
    booking.deleted_at = datetime.utcnow()
    count = soft_delete_source_vouchers("booking", booking.id, reason=f"Reserva {booking.pnr} eliminada")
    count += soft_delete_source_vouchers("ticket_operation", booking.id)
    log_action("DELETE", "booking", booking.id, f"Reserva {booking.pnr} eliminada ({count} comprobantes)")
    return booking


def restore_booking(booking):
    if not booking.is_deleted:
        raise ValueError("La reserva no está eliminada")
    booking.is_deleted = False
    booking.deleted_at = None
    restore_source_vouchers("booking", booking.id)
    restore_source_vouchers("ticket_operation", booking.id)
    log_action("RESTORE", "booking", booking.id, f"Reserva {booking.pnr} restaurada")
    return booking


def permanently_delete_booking(booking):
    delete_source_vouchers("booking", booking.id)
    delete_source_vouchers("ticket_operation", booking.id)
    for operation in TicketOperation.query.filter_by(booking_id=booking.id).all():
        db.session.delete(operation)
    log_action("DELETE", "booking", booking.id, f"Reserva {booking.pnr} eliminada permanentemente",
               level="warning")
    db.session.delete(booking)


# ---------------------------------------------------------------------------
# Visas
# ---------------------------------------------------------------------------

def _fill_visa(visa, data):
    visa.destination = data.get("destination")
    visa.submission_date = data.get("submission_date") or datetime.utcnow()
    visa.currency = data.get("currency", "USD")
    visa.box_id = data.get("box_id")
    visa.notes = data.get("notes")
    visa.document_url = data.get("document_url")

    passengers = data.get("passengers") or []
    if not passengers:
        raise ValueError("La visa necesita al menos un solicitante")

    visa.passengers.clear()
    for p in passengers:
        if not (p.get("name") or "").strip():
            raise ValueError("Todos los solicitantes necesitan nombre")
        visa.passengers.append(VisaPassenger(
            name=p["name"].strip(),
            passport_number=p.get("passport_number"),
            application_number=p.get("application_number"),
            visa_type=p.get("visa_type"),
            purchase_price=p.get("purchase_price") or 0,
            sale_price=p.get("sale_price") or 0,
        ))


def _post_visa_journal(visa, client, supplier):
    # Debe cliente / haber proveedor por el total de venta
    if visa.total_sale <= 0:
        return None
    return record_financial_transaction(
        debit_account_id=client.id,
        credit_account_id=supplier.id,
        debit_relation_id=client.id,
        credit_relation_id=supplier.id,
        amount=visa.total_sale,
        currency=visa.currency,
        source_type="visa",
        source_id=visa.id,
        voucher_type="visa",
        invoice_number=visa.invoice_number,
        date=visa.submission_date,
        description=f"Visa {visa.destination or ''}".strip(),
        original_data=_snapshot(visa),
        skip_audit_log=True,
    )


def create_visa(data):
    client, supplier = _get_parties(data)

    visa = VisaBooking(
        invoice_number=next_number("VS"),
        client_id=client.id,
        supplier_id=supplier.id,
        entered_by=actor_name(),
        entered_at=datetime.utcnow(),
    )
    _fill_visa(visa, data)
    db.session.add(visa)
    db.session.flush()

    _post_visa_journal(visa, client, supplier)

    box = Box.query.get(visa.box_id) if visa.box_id else None
    _increment_use_count(client, supplier, box)

    log_action("CREATE", "visa", visa.id,
               f"Visa {visa.destination or ''} ({visa.invoice_number}) para {client.name}")
    return visa


def update_visa(visa, data):
    if visa.is_deleted:
        raise ValueError("No se puede editar una visa eliminada")

    merged = {**_current_values(visa, VISA_FIELDS), **data}
    client, supplier = _get_parties(merged)
    visa.client_id = client.id
    visa.supplier_id = supplier.id
    if "passengers" not in data:
        merged["passengers"] = [p.to_dict() for p in visa.passengers]
    _fill_visa(visa, merged)
    db.session.flush()

    for voucher in vouchers_for_source("visa", visa.id):
        db.session.delete(voucher)
    db.session.flush()
    _post_visa_journal(visa, client, supplier)

    log_action("UPDATE", "visa", visa.id, f"Visa {visa.invoice_number} actualizada")
    return visa


def soft_delete_visa(visa):
    if visa.is_deleted:
        raise ValueError("La visa ya está eliminada")
    visa.is_deleted = True
    visa.deleted_at = datetime.utcnow()
    count = soft_delete_source_vouchers("visa", visa.id, reason=f"Visa {visa.invoice_number} eliminada")
    log_action("DELETE", "visa", visa.id, f"Visa {visa.invoice_number} eliminada ({count} comprobantes)")
    return visa


def restore_visa(visa):
    if not visa.is_deleted:
        raise ValueError("La visa no está eliminada")
    visa.is_deleted = False
    visa.deleted_at = None
    restore_source_vouchers("visa", visa.id)
    log_action("RESTORE", "visa", visa.id, f"Visa {visa.invoice_number} restaurada")
    return visa


def permanently_delete_visa(visa):
    delete_source_vouchers("visa", visa.id)
    log_action("DELETE", "visa", visa.id, f"Visa {visa.invoice_number} eliminada permanentemente",
               level="warning")
    db.session.delete(visa)
