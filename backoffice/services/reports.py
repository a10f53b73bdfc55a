"""
Servicio: Reportes
Estado de cuenta, reporte de deudas, resumen de cliente y estadísticas
"""
import csv
import io
from datetime import datetime, time
from sqlalchemy import select
from ..models import (
    Relation, Box, AppSettings, JournalVoucher, JournalEntry,
    Booking, VisaBooking, Subscription,
)
from .ledger import account_balances


VOUCHER_TYPE_LABELS = {
    "journal_from_standard_receipt": "Recibo",
    "journal_from_distributed_receipt": "Recibo distribuido",
    "journal_from_payment": "Comprobante de pago",
    "journal_from_expense": "Gasto",
    "journal_from_installment": "Pago de cuota",
    "journal_voucher": "Asiento manual",
    "booking": "Reserva de boletos",
    "visa": "Visa",
    "subscription": "Suscripción",
    "ticket_operation": "Operación de boleto",
    "flight_change": "Cambio de vuelo",
    "flight_baggage": "Equipaje",
    "reversal": "Reversa",
    "adjustment": "Ajuste",
}


def voucher_type_label(voucher_type):
    return VOUCHER_TYPE_LABELS.get(voucher_type, voucher_type or "Comprobante")


def build_accounts_map(settings=None):
    """id de cuenta -> nombre visible (relaciones, cajas, canales y gastos)"""
    settings = settings or AppSettings.get_instance().merged
    accounts = {}
    for relation in Relation.query.all():
        accounts[relation.id] = relation.name
    for box in Box.query.all():
        accounts[box.id] = box.name

    voucher_settings = settings.get("voucher_settings", {})
    for channel in (voucher_settings.get("distributed") or {}).get("channels", []):
        if channel.get("account_id") and channel["account_id"] not in accounts:
            accounts[channel["account_id"]] = channel.get("name") or channel["account_id"]
    for expense in voucher_settings.get("expense_accounts", []):
        accounts[f"expense_{expense['id']}"] = expense.get("name") or expense["id"]
    return accounts


def resolve_account(account_id, settings=None):
    """
    Busca la cuenta entre relaciones, cajas y cuentas de gasto

    Returns:
        dict: {"id", "name", "type"}

    Raises:
        ValueError si la cuenta no existe
    """
    relation = Relation.query.get(account_id)
    if relation:
        return {"id": relation.id, "name": relation.name, "type": relation.relation_type}

    box = Box.query.get(account_id)
    if box:
        return {"id": box.id, "name": box.name, "type": "box"}

    settings = settings or AppSettings.get_instance().merged
    for expense in settings["voucher_settings"].get("expense_accounts", []):
        if account_id in (expense["id"], f"expense_{expense['id']}"):
            return {"id": f"expense_{expense['id']}", "name": expense.get("name"), "type": "expense"}

    raise ValueError(f"Cuenta {account_id} no encontrada")


# ---------------------------------------------------------------------------
# Descripciones detalladas
# ---------------------------------------------------------------------------

def _distributed_description(voucher, accounts, channel_names):
    data = voucher.original_data or {}
    distributions = []
    for channel_id, value in (data.get("distributions") or {}).items():
        amount = value.get("amount") if isinstance(value, dict) else value
        if isinstance(value, dict) and value.get("enabled") is False:
            continue
        if amount:
            distributions.append({"channel": channel_names.get(channel_id, channel_id), "amount": amount})
    return {
        "title": f"Recibo distribuido de {accounts.get(data.get('account_id'), data.get('account_id'))}"
                 f" - ref: {data.get('reference') or 'N/A'}",
        "total_received": data.get("total_amount"),
        "self_receipt": data.get("company_amount"),
        "distributions": distributions,
        "notes": data.get("notes") or "",
    }


def _booking_description(voucher):
    data = voucher.original_data or {}
    return {
        "title": f"Reserva PNR {data.get('pnr', '')} - {data.get('route') or ''}".strip(" -"),
        "passengers": [
            {"name": p.get("name"), "ticket_number": p.get("ticket_number"), "sale_price": p.get("sale_price")}
            for p in data.get("passengers", [])
        ],
        "notes": data.get("notes") or "",
    }


def _visa_description(voucher):
    data = voucher.original_data or {}
    return {
        "title": f"Visa {data.get('destination') or ''}".strip(),
        "passengers": [
            {"name": p.get("name"), "visa_type": p.get("visa_type"), "sale_price": p.get("sale_price")}
            for p in data.get("passengers", [])
        ],
        "notes": data.get("notes") or "",
    }


def _detailed_description(voucher, accounts, channel_names):
    if not voucher.original_data:
        return None
    if voucher.voucher_type == "journal_from_distributed_receipt":
        return _distributed_description(voucher, accounts, channel_names)
    if voucher.voucher_type == "booking":
        return _booking_description(voucher)
    if voucher.voucher_type == "visa":
        return _visa_description(voucher)
    return None


def account_transactions(account_id, accounts, report_type="summary", channel_names=None):
    """Movimientos (uno por lado) de los comprobantes vigentes que tocan la cuenta"""
    voucher_ids = select(JournalEntry.voucher_id).where(JournalEntry.account_id == account_id)
    vouchers = JournalVoucher.query.filter(
        JournalVoucher.id.in_(voucher_ids),
        JournalVoucher.is_deleted.is_(False),
    ).all()

    transactions = []
    for voucher in vouchers:
        lines = [e for e in voucher.entries if not e.is_deleted]
        for side in ("debit", "credit"):
            own = [e for e in lines if e.account_id == account_id and e.side == side]
            if not own:
                continue
            other_side = "credit" if side == "debit" else "debit"
            other_parties = ", ".join(
                accounts.get(e.account_id, e.account_id) for e in lines if e.side == other_side
            )

            description = None
            if report_type == "detailed":
                description = _detailed_description(voucher, accounts, channel_names or {})
            if description is None:
                prefix = "a" if side == "debit" else "de"
                description = f"{voucher.notes or 'Movimiento'} ({prefix}: {other_parties})"

            amount = round(sum(e.amount for e in own), 2)
            transactions.append({
                "id": f"journal-{voucher.id}-{side}",
                "voucher_id": voucher.id,
                "invoice_number": voucher.invoice_number,
                "date": voucher.date,
                "description": description,
                "type": voucher_type_label(voucher.voucher_type),
                "debit": amount if side == "debit" else 0,
                "credit": amount if side == "credit" else 0,
                "currency": own[0].currency or voucher.currency,
                "other_party": other_parties,
                "officer": voucher.officer or voucher.created_by,
            })
    return transactions


def account_statement(account_id, date_from=None, date_to=None, currency="both",
                      report_type="summary", transaction_type=None):
    """
    Estado de cuenta

    Args:
        currency: USD | IQD | both
        report_type: summary | detailed
        transaction_type: None | profits (haber) | expenses (debe)

    El saldo se lleva como haber - debe, separado por moneda.
    """
    settings = AppSettings.get_instance().merged
    account = resolve_account(account_id, settings)
    accounts = build_accounts_map(settings)

    channel_names = {
        c.get("id"): c.get("name") for c in (settings["voucher_settings"].get("distributed") or {}).get("channels", [])
    }
    all_transactions = account_transactions(account["id"], accounts, report_type, channel_names)

    start = datetime.combine(date_from.date(), time.min) if date_from else datetime.min
    end = datetime.combine(date_to.date(), time.max) if date_to else datetime.max

    filtered = [
        tx for tx in all_transactions
        if start <= tx["date"] <= end and (currency == "both" or tx["currency"] == currency)
    ]
    if transaction_type == "profits":
        filtered = [tx for tx in filtered if tx["credit"] > 0]
    elif transaction_type == "expenses":
        filtered = [tx for tx in filtered if tx["debit"] > 0]

    filtered.sort(key=lambda tx: tx["date"])

    opening = {"USD": 0.0, "IQD": 0.0}
    for tx in all_transactions:
        if tx["date"] < start:
            opening[tx["currency"]] = opening.get(tx["currency"], 0) + tx["credit"] - tx["debit"]

    running = dict(opening)
    totals = {cur: {"debit": 0.0, "credit": 0.0} for cur in opening}
    for tx in filtered:
        cur = tx["currency"]
        running[cur] = round(running.get(cur, 0) + tx["credit"] - tx["debit"], 2)
        tx["balance"] = running[cur]
        totals.setdefault(cur, {"debit": 0.0, "credit": 0.0})
        totals[cur]["debit"] = round(totals[cur]["debit"] + tx["debit"], 2)
        totals[cur]["credit"] = round(totals[cur]["credit"] + tx["credit"], 2)

    return {
        "title": f"Estado de cuenta de {account['name']}",
        "account": account,
        "currency": currency,
        "report_type": report_type,
        "opening_balance": {cur: round(value, 2) for cur, value in opening.items()},
        "closing_balance": {cur: round(value, 2) for cur, value in running.items()},
        "totals": totals,
        "transactions": filtered,
    }


def debts_report(relation_type=None):
    """
    Saldos de todas las relaciones (debe - haber) por moneda

    En el resumen, para clientes un saldo positivo suma al total deudor;
    para proveedores la regla es la inversa.
    """
    query = Relation.query
    if relation_type:
        query = query.filter_by(relation_type=relation_type)
    relations = query.order_by(Relation.name.asc()).all()

    balances = account_balances([r.id for r in relations])

    last_dates = {}
    rows = JournalVoucher.query.join(JournalEntry).filter(
        JournalEntry.account_id.in_([r.id for r in relations]),
        JournalVoucher.is_deleted.is_(False),
    ).with_entities(JournalEntry.account_id, JournalVoucher.date).all()
    for account_id, date in rows:
        if account_id not in last_dates or date > last_dates[account_id]:
            last_dates[account_id] = date

    entries = []
    summary = {"total_debit_usd": 0.0, "total_credit_usd": 0.0, "total_debit_iqd": 0.0, "total_credit_iqd": 0.0}

    for relation in relations:
        account = balances.get(relation.id, {})
        balance_usd = account.get("USD", {}).get("balance", 0)
        balance_iqd = account.get("IQD", {}).get("balance", 0)
        last = last_dates.get(relation.id)

        entries.append({
            "id": relation.id,
            "name": relation.name,
            "phone": relation.phone,
            "account_type": relation.relation_type,
            "balance_usd": balance_usd,
            "balance_iqd": balance_iqd,
            "last_transaction": last.isoformat() if last else None,
        })

        for cur, balance in (("usd", balance_usd), ("iqd", balance_iqd)):
            if relation.relation_type in ("client", "both"):
                if balance > 0:
                    summary[f"total_debit_{cur}"] += balance
                else:
                    summary[f"total_credit_{cur}"] -= balance
            else:
                if balance < 0:
                    summary[f"total_debit_{cur}"] -= balance
                else:
                    summary[f"total_credit_{cur}"] += balance

    summary = {key: round(value, 2) for key, value in summary.items()}
    summary["balance_usd"] = round(summary["total_credit_usd"] - summary["total_debit_usd"], 2)
    summary["balance_iqd"] = round(summary["total_credit_iqd"] - summary["total_debit_iqd"], 2)

    return {"entries": entries, "summary": summary}


def client_summary(client_id):
    """Ventas, pagado, pendiente y ganancia de un cliente"""
    client = Relation.query.get(client_id)
    if not client:
        raise ValueError("Cliente no encontrado")

    total_sales = 0.0
    total_profit = 0.0
    paid_amount = 0.0
    transactions = []

    for booking in Booking.query.filter_by(client_id=client_id, is_deleted=False).all():
        total_sales += booking.total_sale
        total_profit += booking.profit
        transactions.append({
            "id": booking.id, "date": booking.issue_date or booking.entered_at, "type": "Reserva de boletos",
            "description": f"PNR: {booking.pnr}", "debit": booking.total_sale, "credit": 0,
            "currency": booking.currency, "invoice_number": booking.invoice_number,
        })

    for visa in VisaBooking.query.filter_by(client_id=client_id, is_deleted=False).all():
        total_sales += visa.total_sale
        total_profit += visa.total_sale - visa.total_purchase
        first = visa.passengers[0].name if visa.passengers else ""
        transactions.append({
            "id": visa.id, "date": visa.submission_date or visa.entered_at, "type": "Visa",
            "description": f"Para {first}", "debit": visa.total_sale, "credit": 0,
            "currency": visa.currency, "invoice_number": visa.invoice_number,
        })

    for subscription in Subscription.query.filter_by(client_id=client_id, is_deleted=False).all():
        total_sales += subscription.sale_price
        total_profit += subscription.profit
        transactions.append({
            "id": subscription.id, "date": subscription.purchase_date or subscription.created_at,
            "type": "Suscripción", "description": subscription.service_name,
            "debit": subscription.sale_price, "credit": 0,
            "currency": subscription.currency, "invoice_number": subscription.invoice_number,
        })

    lines = JournalEntry.query.join(JournalVoucher).filter(
        JournalEntry.account_id == client_id,
        JournalEntry.is_deleted.is_(False),
        JournalVoucher.is_deleted.is_(False),
    ).all()
    for line in lines:
        voucher = line.voucher
        voucher_type = voucher.voucher_type or ""
        if ("receipt" in voucher_type or "installment" in voucher_type) and line.side == "credit":
            paid_amount += line.amount
        elif "payment" in voucher_type and line.side == "debit":
            paid_amount -= line.amount
        else:
            continue
        transactions.append({
            "id": voucher.id, "date": voucher.date, "type": voucher_type_label(voucher_type),
            "description": voucher.notes or "Pago", "debit": 0, "credit": line.amount,
            "currency": line.currency, "invoice_number": voucher.invoice_number,
        })

    transactions.sort(key=lambda tx: tx["date"] or datetime.min, reverse=True)

    return {
        "client": client.to_dict(),
        "total_sales": round(total_sales, 2),
        "paid_amount": round(paid_amount, 2),
        "due_amount": round(total_sales - paid_amount, 2),
        "total_profit": round(total_profit, 2),
        "currency": "USD",
        "transactions": transactions,
    }


def dashboard_stats():
    """Conteos generales y venta / ganancia por mes"""
    bookings = Booking.query.filter_by(is_deleted=False).all()
    visas = VisaBooking.query.filter_by(is_deleted=False).all()
    subscriptions = Subscription.query.filter_by(is_deleted=False).all()

    by_month = {}

    def add(date, revenue, profit):
        if not date:
            return
        key = date.strftime("%Y-%m")
        month = by_month.setdefault(key, {"month": key, "revenue": 0.0, "profit": 0.0})
        month["revenue"] = round(month["revenue"] + revenue, 2)
        month["profit"] = round(month["profit"] + profit, 2)

    for b in bookings:
        add(b.issue_date or b.entered_at, b.total_sale, b.profit)
    for v in visas:
        add(v.submission_date or v.entered_at, v.total_sale, v.total_sale - v.total_purchase)
    for s in subscriptions:
        add(s.purchase_date or s.created_at, s.sale_price, s.profit)

    return {
        "bookings": len(bookings),
        "visas": len(visas),
        "subscriptions": len(subscriptions),
        "active_subscriptions": len([s for s in subscriptions if s.status == "Active"]),
        "clients": Relation.query.filter(Relation.relation_type.in_(["client", "both"])).count(),
        "suppliers": Relation.query.filter(Relation.relation_type.in_(["supplier", "both"])).count(),
        "monthly": [by_month[k] for k in sorted(by_month)],
    }


# ---------------------------------------------------------------------------
# Exportación
# ---------------------------------------------------------------------------

def to_csv(columns, rows):
    """
    Genera CSV a partir de filas (dicts)

    Args:
        columns: [(clave, encabezado)]
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([header for _, header in columns])
    for row in rows:
        values = []
        for key, _ in columns:
            value = row.get(key)
            if isinstance(value, datetime):
                value = value.strftime("%Y-%m-%d %H:%M")
            elif isinstance(value, dict):
                value = value.get("title", "")
            values.append("" if value is None else value)
        writer.writerow(values)
    return output.getvalue()


STATEMENT_COLUMNS = [
    ("date", "Fecha"),
    ("invoice_number", "Número"),
    ("type", "Tipo"),
    ("description", "Descripción"),
    ("debit", "Debe"),
    ("credit", "Haber"),
    ("balance", "Saldo"),
    ("currency", "Moneda"),
    ("officer", "Usuario"),
]

DEBTS_COLUMNS = [
    ("name", "Nombre"),
    ("phone", "Teléfono"),
    ("account_type", "Tipo"),
    ("balance_usd", "Saldo USD"),
    ("balance_iqd", "Saldo IQD"),
    ("last_transaction", "Último movimiento"),
]
