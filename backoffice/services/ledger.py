"""
Servicio: Libro diario
Registro de asientos balanceados y ciclo de vida de los comprobantes

Las funciones agregan a la sesión y hacen flush; el commit lo hace la API
al final de cada operación, así comprobante y líneas quedan en un solo commit.
"""
from datetime import datetime
from sqlalchemy import case, func
from ..db import db
from ..models import JournalVoucher, JournalEntry, DeletedVoucher
from .sequences import next_number, resolve_prefix
from .audit import log_action, actor_name


# Diferencia máxima aceptada entre debe y haber (redondeo de floats)
BALANCE_TOLERANCE = 0.0001


class LedgerError(ValueError):
    """Asiento inválido (sin líneas, desbalanceado, cuentas faltantes)"""


def _normalize_entries(entries, currency):
    normalized = []
    for entry in entries or []:
        account_id = entry.get("account_id")
        if not account_id:
            continue
        debit = round(float(entry.get("debit") or 0), 2)
        credit = round(float(entry.get("credit") or 0), 2)
        if debit < 0 or credit < 0:
            raise LedgerError(f"Montos negativos en la cuenta {account_id}")
        if debit == 0 and credit == 0:
            continue
        normalized.append({
            "account_id": str(account_id),
            "debit": debit,
            "credit": credit,
            "description": entry.get("description"),
            "currency": entry.get("currency") or currency,
            "relation_id": entry.get("relation_id"),
        })
    return normalized


def is_balanced(entries):
    total_debit = sum(e["debit"] for e in entries)
    total_credit = sum(e["credit"] for e in entries)
    return abs(total_debit - total_credit) < BALANCE_TOLERANCE


def post_journal_entry(source_type, source_id=None, entries=None, date=None, description=None,
                       currency="USD", meta=None, voucher_type=None, invoice_number=None,
                       original_data=None, exchange_rate=None, voucher=None):
    """
    Registra un asiento contable

    Args:
        source_type: Origen (booking, visa, standard_receipt, ...). Define el prefijo del número
        entries: [{account_id, debit, credit, description, relation_id}]
        voucher: Comprobante existente cuyas líneas se reemplazan (edición)

    Returns:
        JournalVoucher

    Raises:
        LedgerError si no hay líneas o el asiento no cuadra
    """
    lines = _normalize_entries(entries, currency)

    if not lines:
        raise LedgerError("El asiento no tiene líneas")

    if not is_balanced(lines):
        total_debit = round(sum(e["debit"] for e in lines), 2)
        total_credit = round(sum(e["credit"] for e in lines), 2)
        raise LedgerError(f"Asiento desbalanceado: debe {total_debit} / haber {total_credit}")

    if voucher is None:
        voucher = JournalVoucher(
            invoice_number=invoice_number or next_number(resolve_prefix(source_type)),
            created_by=actor_name(),
        )
        db.session.add(voucher)
    else:
        voucher.entries.clear()
        if invoice_number:
            voucher.invoice_number = invoice_number

    voucher.date = date or voucher.date or datetime.utcnow()
    voucher.currency = currency
    voucher.exchange_rate = exchange_rate
    voucher.notes = description
    voucher.voucher_type = voucher_type or voucher.voucher_type or source_type
    voucher.source_type = source_type
    voucher.source_id = str(source_id) if source_id is not None else None
    voucher.meta = meta
    if original_data is not None:
        voucher.original_data = original_data

    for line in lines:
        for side in ("debit", "credit"):
            if line[side] > 0:
                voucher.entries.append(JournalEntry(
                    account_id=line["account_id"],
                    side=side,
                    amount=line[side],
                    description=line["description"] or description,
                    currency=line["currency"],
                    relation_id=line["relation_id"],
                ))

    db.session.flush()
    return voucher


def record_financial_transaction(debit_account_id, credit_account_id, amount, currency="USD",
                                 source_type="journal", source_id=None, date=None, description=None,
                                 voucher_type=None, invoice_number=None, meta=None, original_data=None,
                                 debit_relation_id=None, credit_relation_id=None, skip_audit_log=False):
    """Asiento simple de dos líneas: debe en una cuenta, haber en otra"""
    amount = round(float(amount or 0), 2)

    if amount <= 0:
        raise LedgerError("El monto debe ser mayor a cero")
    if not debit_account_id or not credit_account_id:
        raise LedgerError("Se requieren cuenta de débito y de crédito")
    if debit_account_id == credit_account_id:
        raise LedgerError("La cuenta de débito y la de crédito no pueden ser la misma")

    voucher = post_journal_entry(
        source_type=source_type,
        source_id=source_id,
        entries=[
            {"account_id": debit_account_id, "debit": amount, "relation_id": debit_relation_id},
            {"account_id": credit_account_id, "credit": amount, "relation_id": credit_relation_id},
        ],
        date=date,
        description=description,
        currency=currency,
        meta=meta,
        voucher_type=voucher_type,
        invoice_number=invoice_number,
        original_data=original_data,
    )

    if not skip_audit_log:
        log_action(
            "CREATE", "voucher", voucher.id,
            f"Transacción {voucher.invoice_number}: {amount} {currency} ({debit_account_id} → {credit_account_id})",
        )

    return voucher


# ---------------------------------------------------------------------------
# Ciclo de vida de comprobantes
# ---------------------------------------------------------------------------

def soft_delete_voucher(voucher, reason=None):
    """Marca el comprobante y sus líneas como eliminados y guarda una copia"""
    if voucher.is_deleted:
        raise ValueError(f"El comprobante {voucher.invoice_number} ya está eliminado")

    voucher.is_deleted = True
    voucher.deleted_at = datetime.utcnow()
    voucher.deleted_by = actor_name()
    for entry in voucher.entries:
        entry.is_deleted = True

    db.session.add(DeletedVoucher(
        voucher_id=voucher.id,
        data=voucher.to_dict(),
        reason=reason,
        deleted_by=voucher.deleted_by,
    ))
    log_action("DELETE", "voucher", voucher.id, f"Comprobante {voucher.invoice_number} eliminado")
    return voucher


def restore_voucher(voucher):
    if not voucher.is_deleted:
        raise ValueError(f"El comprobante {voucher.invoice_number} no está eliminado")

    voucher.is_deleted = False
    voucher.deleted_at = None
    voucher.deleted_by = None
    for entry in voucher.entries:
        entry.is_deleted = False

    DeletedVoucher.query.filter_by(voucher_id=voucher.id).delete()
    log_action("RESTORE", "voucher", voucher.id, f"Comprobante {voucher.invoice_number} restaurado")
    return voucher


def permanently_delete_voucher(voucher):
    DeletedVoucher.query.filter_by(voucher_id=voucher.id).delete()
    log_action("DELETE", "voucher", voucher.id,
               f"Comprobante {voucher.invoice_number} eliminado permanentemente", level="warning")
    db.session.delete(voucher)


def vouchers_for_source(source_type, source_id, include_deleted=True):
    query = JournalVoucher.query.filter_by(source_type=source_type, source_id=str(source_id))
    if not include_deleted:
        query = query.filter_by(is_deleted=False)
    return query.all()


def soft_delete_source_vouchers(source_type, source_id, reason=None):
    """Elimina (soft) todos los comprobantes generados por un documento. Retorna cantidad"""
    vouchers = vouchers_for_source(source_type, source_id, include_deleted=False)
    for voucher in vouchers:
        soft_delete_voucher(voucher, reason=reason)
    return len(vouchers)


def restore_source_vouchers(source_type, source_id):
    vouchers = [v for v in vouchers_for_source(source_type, source_id) if v.is_deleted]
    for voucher in vouchers:
        restore_voucher(voucher)
    return len(vouchers)


def delete_source_vouchers(source_type, source_id):
    vouchers = vouchers_for_source(source_type, source_id)
    for voucher in vouchers:
        permanently_delete_voucher(voucher)
    return len(vouchers)


# ---------------------------------------------------------------------------
# Saldos
# ---------------------------------------------------------------------------

def account_balances(account_ids=None):
    """
    Saldos por cuenta y moneda de comprobantes vigentes

    Returns:
        dict: {account_id: {currency: {"debit", "credit", "balance"}}}
        donde balance = debit - credit
    """
    debit_sum = func.sum(case((JournalEntry.side == "debit", JournalEntry.amount), else_=0))
    credit_sum = func.sum(case((JournalEntry.side == "credit", JournalEntry.amount), else_=0))

    query = db.session.query(
        JournalEntry.account_id,
        JournalEntry.currency,
        debit_sum,
        credit_sum,
    ).join(JournalVoucher, JournalEntry.voucher_id == JournalVoucher.id).filter(
        JournalVoucher.is_deleted.is_(False),
        JournalEntry.is_deleted.is_(False),
    )

    if account_ids is not None:
        query = query.filter(JournalEntry.account_id.in_(list(account_ids)))

    balances = {}
    for account_id, currency, debit, credit in query.group_by(JournalEntry.account_id, JournalEntry.currency):
        debit = round(debit or 0, 2)
        credit = round(credit or 0, 2)
        balances.setdefault(account_id, {})[currency] = {
            "debit": debit,
            "credit": credit,
            "balance": round(debit - credit, 2),
        }
    return balances
