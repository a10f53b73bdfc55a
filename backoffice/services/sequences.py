"""
Servicio: Numeración de comprobantes
"""
from ..db import db
from ..models import VoucherSequence


# Tipo de origen -> prefijo del número de comprobante
SEQUENCE_PREFIXES = {
    "journal": "JE",
    "journal_voucher": "JE",
    "booking": "BK",
    "visa": "VS",
    "refund": "RF",
    "ticket_operation": "RF",
    "payment": "PV",
    "receipt": "RC",
    "standard_receipt": "RC",
    "distributed_receipt": "DS",
    "expense": "EX",
    "manual_expense": "EX",
    "subscription": "SUB",
    "subscription_installment": "SUBP",
    "subscription_overpayment": "SUBP",
    "segment": "SEG",
    "partner_share": "PARTNER",
}


def resolve_prefix(source_type):
    """Prefijo para un tipo de origen (si no está mapeado se usa en mayúsculas)"""
    if not source_type:
        return "JE"
    key = str(source_type).strip().lower()
    return SEQUENCE_PREFIXES.get(key, key.upper())


def next_number(prefix):
    """
    Incrementa el contador del prefijo y retorna el número formateado (ej: RC-00012).
    El contador queda en la sesión; se confirma con el commit de la operación.
    """
    sequence = VoucherSequence.query.filter_by(prefix=prefix).first()
    if not sequence:
        sequence = VoucherSequence(prefix=prefix, label=prefix, value=0)
        db.session.add(sequence)

    sequence.value = (sequence.value or 0) + 1
    db.session.flush()

    return f"{prefix}-{sequence.value:05d}"
