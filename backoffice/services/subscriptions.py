"""
Servicio: Suscripciones
Alta con plan de cuotas, cobro de cuotas y reversas
"""
import calendar
from datetime import datetime, timedelta
from ..db import db
from ..models import (
    Subscription, SubscriptionInstallment, InstallmentPayment,
    Relation, Box, AppSettings, JournalVoucher,
)
from .ledger import (
    post_journal_entry, soft_delete_source_vouchers, restore_source_vouchers, delete_source_vouchers,
)
from .sequences import next_number
from .audit import log_action, notify, current_actor, actor_name


# Margen de redondeo para dar una cuota o suscripción por pagada
PAID_TOLERANCE = 0.01

STATUSES = ("Active", "Paid", "Cancelled", "Suspended")


def add_months(date, months):
    """Suma meses a una fecha; si el día no existe en el mes destino usa el último día"""
    month_index = date.month - 1 + months
    year = date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return date.replace(year=year, month=month, day=day)


def compute_totals(quantity, purchase_price, unit_price, discount=0):
    """Totales de una suscripción a partir de precios unitarios"""
    quantity = quantity or 1
    total_purchase = round(quantity * (purchase_price or 0), 2)
    total_sale = round(quantity * (unit_price or 0) - (discount or 0), 2)
    return {
        "purchase_price": total_purchase,
        "sale_price": total_sale,
        "profit": round(total_sale - total_purchase, 2),
    }


def build_schedule(total_sale, number_of_installments, start_date):
    """Lista de (monto, vencimiento): N cuotas iguales mensuales desde start_date"""
    if not number_of_installments or number_of_installments < 1:
        raise ValueError("El número de cuotas debe ser al menos 1")
    amount = round(total_sale / number_of_installments, 2)
    # La última cuota absorbe el redondeo para que la suma sea exacta
    last = round(total_sale - amount * (number_of_installments - 1), 2)
    amounts = [amount] * (number_of_installments - 1) + [last]
    return [(value, add_months(start_date, i)) for i, value in enumerate(amounts)]


def _finance_account(key):
    return AppSettings.get_instance().merged["finance_accounts"].get(key, key)


def _increment_use_count(*accounts):
    for account in accounts:
        if account is not None:
            account.use_count = (account.use_count or 0) + 1


def create_subscription(data):
    """
    Crea una suscripción con sus cuotas y el asiento de venta

    Args:
        data: dict con supplier_id, client_id, service_name, purchase_price (unitario),
              unit_price, quantity, discount, start_date, number_of_installments, ...
    """
    client = Relation.query.get(data["client_id"])
    supplier = Relation.query.get(data["supplier_id"])
    if not client:
        raise ValueError("Cliente no encontrado")
    if not supplier:
        raise ValueError("Proveedor no encontrado")

    totals = compute_totals(
        data.get("quantity"), data.get("purchase_price"),
        data.get("unit_price"), data.get("discount"),
    )
    if totals["sale_price"] <= 0:
        raise ValueError("El total de venta debe ser mayor a cero")

    schedule = build_schedule(totals["sale_price"], data.get("number_of_installments"), data["start_date"])

    subscription = Subscription(
        invoice_number=next_number("SUB"),
        supplier_id=supplier.id,
        supplier_name=supplier.name,
        client_id=client.id,
        client_name=client.name,
        service_name=data["service_name"],
        purchase_date=data.get("purchase_date") or datetime.utcnow(),
        unit_price=data.get("unit_price") or 0,
        quantity=data.get("quantity") or 1,
        discount=data.get("discount") or 0,
        start_date=data["start_date"],
        number_of_installments=len(schedule),
        currency=data.get("currency", "USD"),
        notes=data.get("notes"),
        box_id=data.get("box_id"),
        status="Active",
        paid_amount=0,
        created_by=actor_name(),
        **totals,
    )
    db.session.add(subscription)

    for amount, due_date in schedule:
        subscription.installments.append(SubscriptionInstallment(
            client_name=client.name,
            service_name=subscription.service_name,
            amount=amount,
            currency=subscription.currency,
            due_date=due_date,
            status="Unpaid",
        ))

    db.session.flush()

    service = subscription.service_name
    voucher = post_journal_entry(
        source_type="subscription",
        source_id=subscription.id,
        invoice_number=subscription.invoice_number,
        voucher_type="subscription",
        date=subscription.purchase_date,
        currency=subscription.currency,
        description=subscription.notes or f"Suscripción {service}",
        entries=[
            {"account_id": client.id, "debit": subscription.sale_price,
             "description": f"Suscripción: {service}", "relation_id": client.id},
            {"account_id": _finance_account("expense_subscriptions"), "debit": subscription.purchase_price,
             "description": f"Costo suscripción: {service}"},
            {"account_id": supplier.id, "credit": subscription.purchase_price,
             "description": f"Por pagar suscripción: {service}", "relation_id": supplier.id},
            {"account_id": _finance_account("revenue_subscriptions"), "credit": subscription.sale_price,
             "description": f"Ingreso suscripción: {service}"},
        ],
        original_data={"subscription_id": subscription.id, **subscription.to_dict()},
    )
    subscription.journal_voucher_id = voucher.id

    box = Box.query.get(subscription.box_id) if subscription.box_id else None
    _increment_use_count(client, supplier, box)

    log_action("CREATE", "subscription", subscription.id,
               f"Suscripción {service} para {client.name} ({subscription.invoice_number})")
    user = current_actor()
    if user:
        notify(user.id, "Nueva suscripción", f"{service} para {client.name}",
               type="subscription", link=f"/subscriptions/{subscription.id}")

    return subscription


def pay_installment(installment, box_id, payment_amount, currency=None, exchange_rate=None, discount=0):
    """
    Cobra un pago sobre las cuotas pendientes de la suscripción

    El pago y el descuento se aplican a las cuotas impagas en orden de vencimiento.
    Si sobra dinero después de cubrir todas, se registra un recibo de saldo a favor.

    Returns:
        dict: {"voucher", "payments", "overpayment_voucher"}
    """
    subscription = installment.subscription
    payment_amount = round(float(payment_amount or 0), 2)
    discount = round(float(discount or 0), 2)

    if payment_amount < 0 or discount < 0:
        raise ValueError("El pago y el descuento no pueden ser negativos")
    if payment_amount + discount <= 0:
        raise ValueError("Debe ingresar un monto a pagar")
    if not box_id:
        raise ValueError("Debe seleccionar una caja")
    if subscription.status in ("Cancelled", "Suspended"):
        raise ValueError(f"La suscripción está {subscription.status}")

    box = Box.query.get(box_id)
    if not box:
        raise ValueError("Caja no encontrada")

    currency = currency or subscription.currency
    now = datetime.utcnow()

    unpaid = sorted(
        [i for i in subscription.installments if i.status == "Unpaid"],
        key=lambda i: i.due_date,
    )

    remaining_payment = payment_amount
    remaining_discount = discount
    applied = []

    for inst in unpaid:
        if remaining_payment <= 0 and remaining_discount <= 0:
            break

        due = round(inst.amount - (inst.paid_amount or 0) - (inst.discount or 0), 2)
        if due <= 0:
            continue

        payment_applied = round(min(remaining_payment, due), 2)
        discount_applied = round(min(remaining_discount, due - payment_applied), 2)

        inst.paid_amount = round((inst.paid_amount or 0) + payment_applied, 2)
        inst.discount = round((inst.discount or 0) + discount_applied, 2)
        remaining_payment = round(remaining_payment - payment_applied, 2)
        remaining_discount = round(remaining_discount - discount_applied, 2)

        if inst.paid_amount + inst.discount >= inst.amount - PAID_TOLERANCE:
            inst.status = "Paid"
            inst.paid_at = now

        if payment_applied + discount_applied > 0:
            applied.append((inst, payment_applied, discount_applied))

    applied_payment = round(payment_amount - remaining_payment, 2)
    applied_discount = round(discount - remaining_discount, 2)

    voucher = None
    if applied_payment + applied_discount > 0:
        entries = [{
            "account_id": box.id, "debit": applied_payment,
            "description": f"Cobro cuota de {subscription.client_name}",
        }]
        if applied_discount > 0:
            entries.append({
                "account_id": _finance_account("expense_discounts"), "debit": applied_discount,
                "description": f"Descuento en cuota {subscription.service_name}",
            })
        entries.append({
            "account_id": subscription.client_id, "credit": round(applied_payment + applied_discount, 2),
            "description": f"Pago cuota suscripción {subscription.service_name}",
            "relation_id": subscription.client_id,
        })
        voucher = post_journal_entry(
            source_type="subscription_installment",
            source_id=subscription.id,
            voucher_type="journal_from_installment",
            currency=currency,
            exchange_rate=exchange_rate,
            description=f"Pago cuota suscripción: {subscription.service_name}",
            entries=entries,
            original_data={
                "installment_id": installment.id,
                "payment_amount": payment_amount,
                "discount": discount,
                "box_id": box.id,
            },
        )
        voucher.is_audited = True
        voucher.is_confirmed = True

    payments = []
    for inst, payment_applied, discount_applied in applied:
        payment = InstallmentPayment(
            installment_id=inst.id,
            subscription_id=subscription.id,
            amount=payment_applied,
            discount=discount_applied,
            currency=inst.currency,
            date=now,
            journal_voucher_id=voucher.id if voucher else None,
            invoice_number=voucher.invoice_number if voucher else None,
            box_id=box.id,
            paid_by=actor_name(),
        )
        db.session.add(payment)
        payments.append(payment)

    subscription.paid_amount = round((subscription.paid_amount or 0) + applied_payment + applied_discount, 2)

    overpayment_voucher = None
    if remaining_payment > PAID_TOLERANCE:
        overpayment_voucher = post_journal_entry(
            source_type="standard_receipt",
            source_id=subscription.id,
            voucher_type="journal_from_standard_receipt",
            currency=currency,
            description=f"Saldo a favor después de pagar todas las cuotas de {subscription.client_name}",
            entries=[
                {"account_id": box.id, "debit": remaining_payment, "description": "Depósito de saldo a favor"},
                {"account_id": subscription.client_id, "credit": remaining_payment,
                 "description": "Saldo a favor del cliente", "relation_id": subscription.client_id},
            ],
        )
        overpayment_voucher.is_audited = True
        overpayment_voucher.is_confirmed = True

    if subscription.paid_amount >= subscription.sale_price - PAID_TOLERANCE:
        subscription.status = "Paid"

    db.session.flush()

    log_action("UPDATE", "subscription", subscription.id,
               f"Pago de {payment_amount} {currency} en suscripción {subscription.invoice_number}")

    return {
        "voucher": voucher,
        "payments": payments,
        "overpayment_voucher": overpayment_voucher,
    }


def delete_payment(payment):
    """Elimina un pago de cuota: revierte montos y registra asiento de reversa"""
    installment = payment.installment
    subscription = installment.subscription

    if payment.journal_voucher_id:
        original = JournalVoucher.query.get(payment.journal_voucher_id)
        if original and not original.is_deleted:
            # El comprobante puede cubrir varias cuotas: se revierte solo este pago
            amount = round(payment.amount + (payment.discount or 0), 2)
            entries = [{
                "account_id": subscription.client_id, "debit": amount,
                "relation_id": subscription.client_id,
                "description": f"Reversa pago {original.invoice_number}",
            }]
            if payment.amount > 0:
                entries.append({
                    "account_id": payment.box_id, "credit": payment.amount,
                    "description": f"Reversa pago {original.invoice_number}",
                })
            if payment.discount:
                entries.append({
                    "account_id": _finance_account("expense_discounts"), "credit": payment.discount,
                    "description": f"Reversa descuento {original.invoice_number}",
                })
            post_journal_entry(
                source_type="reversal",
                source_id=subscription.id,
                invoice_number=next_number("REV"),
                voucher_type="reversal",
                currency=original.currency,
                description=f"Reversa de pago de cuota {original.invoice_number}",
                entries=entries,
                original_data={"reversed_voucher_id": original.id, "payment_id": payment.id},
            )

    total = round(payment.amount + (payment.discount or 0), 2)
    subscription.paid_amount = round((subscription.paid_amount or 0) - total, 2)
    if subscription.status == "Paid":
        subscription.status = "Active"

    installment.paid_amount = round((installment.paid_amount or 0) - payment.amount, 2)
    installment.discount = round((installment.discount or 0) - (payment.discount or 0), 2)
    installment.status = "Unpaid"
    installment.paid_at = None

    log_action("DELETE", "installment_payment", payment.id,
               f"Pago de {payment.amount} eliminado de suscripción {subscription.invoice_number}")
    db.session.delete(payment)


def update_payment(payment, amount=None, date=None):
    """Modifica monto y/o fecha de un pago, con asiento de ajuste por la diferencia"""
    installment = payment.installment
    subscription = installment.subscription

    difference = 0
    if amount is not None:
        if amount < 0:
            raise ValueError("El monto no puede ser negativo")
        difference = round(amount - payment.amount, 2)

    if abs(difference) > PAID_TOLERANCE:
        box_id = payment.box_id
        client_id = subscription.client_id
        note = "Aumento de pago de cuota" if difference > 0 else "Disminución de pago de cuota"
        post_journal_entry(
            source_type="adjustment",
            source_id=subscription.id,
            invoice_number=next_number("ADJ"),
            voucher_type="adjustment",
            date=date,
            currency=payment.currency,
            description=f"{note} #{payment.id}",
            entries=[
                {"account_id": box_id if difference > 0 else client_id, "debit": abs(difference)},
                {"account_id": client_id if difference > 0 else box_id, "credit": abs(difference)},
            ],
        )

    if difference:
        payment.amount = round(payment.amount + difference, 2)
        installment.paid_amount = round((installment.paid_amount or 0) + difference, 2)
        subscription.paid_amount = round((subscription.paid_amount or 0) + difference, 2)

        if installment.paid_amount + installment.discount >= installment.amount - PAID_TOLERANCE:
            installment.status = "Paid"
            installment.paid_at = installment.paid_at or datetime.utcnow()
        else:
            installment.status = "Unpaid"
            installment.paid_at = None

        if subscription.paid_amount >= subscription.sale_price - PAID_TOLERANCE:
            subscription.status = "Paid"
        elif subscription.status == "Paid":
            subscription.status = "Active"

    if date:
        payment.date = date

    log_action("UPDATE", "installment_payment", payment.id, f"Pago de cuota modificado ({difference:+})")
    return payment


def update_status(subscription, status, reason=None):
    if status not in STATUSES:
        raise ValueError(f"Estado inválido: {status}")

    subscription.status = status
    if status in ("Cancelled", "Suspended"):
        default_reason = AppSettings.get_instance().merged["subscription_settings"]["default_cancellation_reason"]
        subscription.cancellation_date = datetime.utcnow()
        subscription.cancellation_reason = reason or default_reason
    elif status == "Active":
        subscription.cancellation_date = None
        subscription.cancellation_reason = None

    log_action("UPDATE", "subscription", subscription.id,
               f"Estado de suscripción {subscription.invoice_number} cambiado a {status}")
    return subscription


def upcoming_installments(days=30, today=None):
    """Cuotas impagas que vencen dentro de los próximos `days` días (incluye vencidas)"""
    today = today or datetime.utcnow()
    limit = today + timedelta(days=days)

    return SubscriptionInstallment.query.join(Subscription).filter(
        SubscriptionInstallment.status == "Unpaid",
        SubscriptionInstallment.due_date <= limit,
        Subscription.is_deleted.is_(False),
        Subscription.status == "Active",
    ).order_by(SubscriptionInstallment.due_date.asc()).all()


# Orígenes de los comprobantes que genera una suscripción (source_id = id de la suscripción)
SUBSCRIPTION_SOURCES = ("subscription", "subscription_installment", "standard_receipt", "reversal", "adjustment")


def soft_delete_subscription(subscription):
    if subscription.is_deleted:
        raise ValueError("La suscripción ya está eliminada")
    subscription.is_deleted = True
    subscription.deleted_at = datetime.utcnow()
    count = 0
    for source_type in SUBSCRIPTION_SOURCES:
        count += soft_delete_source_vouchers(source_type, subscription.id,
                                             reason=f"Suscripción {subscription.invoice_number} eliminada")
    log_action("DELETE", "subscription", subscription.id,
               f"Suscripción {subscription.invoice_number} eliminada ({count} comprobantes)")
    return subscription


def restore_subscription(subscription):
    if not subscription.is_deleted:
        raise ValueError("La suscripción no está eliminada")
    subscription.is_deleted = False
    subscription.deleted_at = None
    for source_type in SUBSCRIPTION_SOURCES:
        restore_source_vouchers(source_type, subscription.id)
    log_action("RESTORE", "subscription", subscription.id,
               f"Suscripción {subscription.invoice_number} restaurada")
    return subscription


def permanently_delete_subscription(subscription):
    """Borra suscripción, cuotas, pagos y comprobantes"""
    for source_type in SUBSCRIPTION_SOURCES:
        delete_source_vouchers(source_type, subscription.id)
    log_action("DELETE", "subscription", subscription.id,
               f"Suscripción {subscription.invoice_number} eliminada permanentemente", level="warning")
    db.session.delete(subscription)
