"""
Servicio: Comprobantes
Recibos, pagos, gastos, asientos manuales y recibos distribuidos
"""
from ..models import Relation, Box, AppSettings
from .ledger import post_journal_entry, record_financial_transaction, LedgerError
from .audit import log_action, notify


# Diferencia máxima aceptada entre lo recibido y lo distribuido
DISTRIBUTION_TOLERANCE = 0.01

UNKNOWN_DISTRIBUTION_ACCOUNT = "unknown_distribution_account"

PAYMENT_PURPOSES = ("tickets", "services")


def _get_relation(relation_id, label="Relación"):
    relation = Relation.query.get(relation_id) if relation_id else None
    if not relation:
        raise ValueError(f"{label} no encontrada")
    return relation


def _get_box(box_id):
    box = Box.query.get(box_id) if box_id else None
    if not box:
        raise ValueError("Caja no encontrada")
    return box


def _increment_use_count(*accounts):
    for account in accounts:
        account.use_count = (account.use_count or 0) + 1


def create_standard_receipt(data):
    """Recibo: entra dinero a la caja desde una relación (debe caja, haber relación)"""
    payer = _get_relation(data.get("from"), "Pagador")
    box = _get_box(data.get("to_box"))
    details = data.get("details")

    voucher = record_financial_transaction(
        debit_account_id=box.id,
        credit_account_id=payer.id,
        credit_relation_id=payer.id,
        amount=data["amount"],
        currency=data["currency"],
        date=data.get("date"),
        source_type="standard_receipt",
        voucher_type="journal_from_standard_receipt",
        description=f"Recibo: {details or 'pago'}",
        meta={"payer_id": payer.id, "box_id": box.id, "details": details},
        original_data=_serializable(data),
    )
    _increment_use_count(payer, box)

    notify(payer.id, "Pago recibido", f"Recibimos un pago de {data['amount']} {data['currency']}.",
           type="payment", link=f"/relations/{payer.id}")
    return voucher


def create_payment_voucher(data):
    """Comprobante de pago a proveedor (debe proveedor, haber caja)"""
    supplier = _get_relation(data.get("to_supplier_id"), "Proveedor")
    box = _get_box(data.get("box_id"))
    purpose = data.get("purpose") or "tickets"
    if purpose not in PAYMENT_PURPOSES:
        raise ValueError(f"Propósito inválido: {purpose}")

    voucher = record_financial_transaction(
        debit_account_id=supplier.id,
        credit_account_id=box.id,
        debit_relation_id=supplier.id,
        amount=data["amount"],
        currency=data["currency"],
        date=data.get("date"),
        source_type="payment",
        voucher_type="journal_from_payment",
        description=data.get("details") or f"Pago a {supplier.name} ({purpose})",
        meta={"payee_id": supplier.id, "box_id": box.id, "purpose": purpose},
        original_data=_serializable(data),
    )
    _increment_use_count(supplier, box)
    return voucher


def create_expense_voucher(data):
    """Gasto: debe expense_<tipo>, haber caja"""
    box = _get_box(data.get("box_id"))
    expense_type = data.get("expense_type")
    settings = AppSettings.get_instance().merged
    known = {e["id"]: e.get("name") for e in settings["voucher_settings"]["expense_accounts"]}
    if expense_type not in known:
        raise ValueError(f"Tipo de gasto desconocido: {expense_type}")

    voucher = record_financial_transaction(
        debit_account_id=f"expense_{expense_type}",
        credit_account_id=box.id,
        amount=data["amount"],
        currency=data["currency"],
        date=data.get("date"),
        source_type="expense",
        voucher_type="journal_from_expense",
        description=data.get("details") or f"Gasto: {known[expense_type]}",
        meta={"expense_type": expense_type, "box_id": box.id},
        original_data=_serializable(data),
    )
    _increment_use_count(box)
    return voucher


def create_journal_voucher(data):
    """
    Asiento manual con líneas arbitrarias

    Args:
        data: {"date", "currency", "notes", "entries": [{account_id, debit, credit, description}]}
    """
    entries = data.get("entries") or []
    debit_lines = [e for e in entries if float(e.get("debit") or 0) > 0]
    credit_lines = [e for e in entries if float(e.get("credit") or 0) > 0]
    if not debit_lines or not credit_lines:
        raise LedgerError("El asiento necesita al menos una línea al debe y una al haber")

    voucher = post_journal_entry(
        source_type="journal_voucher",
        voucher_type="journal_voucher",
        entries=debit_lines + credit_lines,
        date=data.get("date"),
        currency=data["currency"],
        exchange_rate=data.get("exchange_rate"),
        description=data.get("notes"),
        original_data=_serializable(data),
    )
    log_action("CREATE", "voucher", voucher.id, f"Asiento manual {voucher.invoice_number}")
    return voucher


def _channel_amount(value):
    """Un canal puede venir como {"enabled", "amount"} o solo el monto"""
    if isinstance(value, dict):
        if value.get("enabled") is False:
            return 0.0
        return float(value.get("amount") or 0)
    return float(value or 0)


def validate_distribution(total_amount, company_amount, distributions):
    """
    Validación del formulario: lo distribuido + parte de la relación = total.
    Si no se distribuye nada (todo en cero) la validación no aplica.
    """
    distributed = sum(_channel_amount(v) for v in (distributions or {}).values())
    company_amount = company_amount or 0

    if distributed == 0 and company_amount == 0 and total_amount > 0:
        return True
    return abs(distributed + company_amount - total_amount) < DISTRIBUTION_TOLERANCE


def build_distributed_entries(data, distributed_settings):
    """
    Líneas del recibo distribuido

    Debe: caja por el total
    Haber: relación por company_amount y cada canal habilitado por su monto
    """
    channels = {c.get("id"): c for c in distributed_settings.get("channels", [])}
    total = float(data["total_amount"])

    entries = [{
        "account_id": data["box_id"],
        "debit": total,
        "description": f"Total recibido de {data['account_id']}",
    }]

    company_amount = float(data.get("company_amount") or 0)
    if company_amount > 0:
        entries.append({
            "account_id": data["account_id"],
            "credit": company_amount,
            "relation_id": data["account_id"],
            "description": "Abono a su cuenta",
        })

    for channel_id, value in (data.get("distributions") or {}).items():
        amount = _channel_amount(value)
        if amount <= 0:
            continue
        channel = channels.get(channel_id) or {}
        entries.append({
            "account_id": channel.get("account_id") or UNKNOWN_DISTRIBUTION_ACCOUNT,
            "credit": amount,
            "description": f"Distribución a {channel.get('name') or 'canal de distribución'}",
        })

    total_credit = sum(e.get("credit", 0) for e in entries)
    if abs(total_credit - total) > DISTRIBUTION_TOLERANCE:
        raise ValueError("La suma de las distribuciones y la parte de la relación no coincide con el total recibido")

    return entries


def save_distributed_voucher(data, voucher=None):
    """Crea (o reescribe si se pasa voucher) un recibo distribuido"""
    settings = AppSettings.get_instance().merged
    distributed_settings = settings.get("voucher_settings", {}).get("distributed")
    if not distributed_settings:
        raise ValueError("La configuración de recibos distribuidos no existe")

    payer = _get_relation(data.get("account_id"), "Relación")
    box = _get_box(data.get("box_id"))

    if float(data.get("total_amount") or 0) <= 0:
        raise ValueError("El total recibido debe ser mayor a cero")
    if float(data.get("company_amount") or 0) < 0:
        raise ValueError("La parte de la relación no puede ser negativa")
    if not validate_distribution(float(data["total_amount"]), float(data.get("company_amount") or 0),
                                 data.get("distributions")):
        raise ValueError("La suma de las distribuciones y la parte de la relación no coincide con el total recibido")

    entries = build_distributed_entries(data, distributed_settings)

    result = post_journal_entry(
        source_type="distributed_receipt",
        voucher_type="journal_from_distributed_receipt",
        entries=entries,
        date=data.get("date"),
        currency=data["currency"],
        exchange_rate=data.get("exchange_rate"),
        description=data.get("notes") or "",
        original_data=_serializable(data),
        voucher=voucher,
    )

    if voucher is None:
        _increment_use_count(payer, box)
        log_action("CREATE", "voucher", result.id,
                   f"Recibo distribuido {result.invoice_number} de {payer.name} por "
                   f"{data['total_amount']} {data['currency']}")
    else:
        log_action("UPDATE", "voucher", result.id, f"Recibo distribuido {result.invoice_number} modificado")
    return result


def _serializable(data):
    """Copia del formulario apta para guardar en JSON (fechas a ISO)"""
    result = {}
    for key, value in data.items():
        result[key] = value.isoformat() if hasattr(value, "isoformat") else value
    return result
