"""
API: Suscripciones
Alta con cuotas, cobro, reversas, estados y recordatorios
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import Subscription, SubscriptionInstallment, InstallmentPayment
from ..services import subscriptions as subscription_service
from ..services.whatsapp import send_installment_reminders
from ..utils.parsing import parse_amount, parse_date, parse_currency, parse_bool, require
from .auth import permission_required

bp = Blueprint("subscriptions", __name__)


@bp.route("", methods=["GET"])
@permission_required("subscriptions:read")
def get_subscriptions():
    """Lista suscripciones (filtros: status, client_id, include_deleted)"""
    query = Subscription.query

    if not parse_bool(request.args.get("include_deleted", "false")):
        query = query.filter_by(is_deleted=False)

    status = request.args.get("status")
    if status:
        query = query.filter_by(status=status)

    client_id = request.args.get("client_id")
    if client_id:
        query = query.filter_by(client_id=client_id)

    subscriptions = query.order_by(Subscription.created_at.desc(), Subscription.id.desc()).all()
    return jsonify([s.to_dict() for s in subscriptions])


@bp.route("/<int:id>", methods=["GET"])
@permission_required("subscriptions:read")
def get_subscription(id):
    subscription = Subscription.query.get_or_404(id)
    return jsonify(subscription.to_dict(include_installments=True))


@bp.route("", methods=["POST"])
@permission_required("subscriptions:create")
def create_subscription():
    data = request.json or {}
    require(data, "client_id", "supplier_id", "service_name", "unit_price", "start_date")

    subscription = subscription_service.create_subscription({
        "client_id": data["client_id"],
        "supplier_id": data["supplier_id"],
        "service_name": data["service_name"].strip(),
        "purchase_date": parse_date(data.get("purchase_date"), "purchase_date"),
        "purchase_price": parse_amount(data.get("purchase_price"), "purchase_price"),
        "unit_price": parse_amount(data["unit_price"], "unit_price"),
        "quantity": int(data.get("quantity") or 1),
        "discount": parse_amount(data.get("discount"), "discount"),
        "start_date": parse_date(data["start_date"], "start_date"),
        "number_of_installments": int(data.get("number_of_installments") or 1),
        "currency": parse_currency(data.get("currency")),
        "notes": data.get("notes"),
        "box_id": data.get("box_id"),
    })
    db.session.commit()

    print(f"✅ Suscripción {subscription.invoice_number} creada")
    return jsonify({"success": True, "subscription": subscription.to_dict(include_installments=True)}), 201


@bp.route("/<int:id>/status", methods=["PUT"])
@permission_required("subscriptions:update")
def update_status(id):
    """Activa, suspende o cancela (motivo opcional)"""
    subscription = Subscription.query.get_or_404(id)
    data = request.json or {}

    subscription_service.update_status(subscription, data.get("status"), data.get("reason"))
    db.session.commit()

    return jsonify({"success": True, "subscription": subscription.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@permission_required("subscriptions:delete")
def delete_subscription(id):
    subscription = Subscription.query.get_or_404(id)

    subscription_service.soft_delete_subscription(subscription)
    db.session.commit()

    return jsonify({"success": True, "message": "Suscripción eliminada"})


@bp.route("/<int:id>/restore", methods=["POST"])
@permission_required("subscriptions:delete")
def restore_subscription(id):
    subscription = Subscription.query.get_or_404(id)

    subscription_service.restore_subscription(subscription)
    db.session.commit()

    return jsonify({"success": True, "subscription": subscription.to_dict()})


@bp.route("/<int:id>/permanent", methods=["DELETE"])
@permission_required("subscriptions:delete")
def permanent_delete_subscription(id):
    subscription = Subscription.query.get_or_404(id)

    subscription_service.permanently_delete_subscription(subscription)
    db.session.commit()

    return jsonify({"success": True, "message": "Suscripción eliminada permanentemente"})


# ---------------------------------------------------------------------------
# Cuotas y pagos
# ---------------------------------------------------------------------------

@bp.route("/installments", methods=["GET"])
@permission_required("subscriptions:read")
def get_installments():
    """Cuotas (filtros: subscription_id, status)"""
    query = SubscriptionInstallment.query.join(Subscription).filter(Subscription.is_deleted.is_(False))

    subscription_id = request.args.get("subscription_id", type=int)
    if subscription_id:
        query = query.filter(SubscriptionInstallment.subscription_id == subscription_id)

    status = request.args.get("status")
    if status:
        query = query.filter(SubscriptionInstallment.status == status)

    installments = query.order_by(SubscriptionInstallment.due_date.asc()).all()
    return jsonify([i.to_dict() for i in installments])


@bp.route("/installments/upcoming", methods=["GET"])
@permission_required("subscriptions:read")
def get_upcoming_installments():
    days = request.args.get("days", 30, type=int)
    installments = subscription_service.upcoming_installments(days=days)
    return jsonify([i.to_dict() for i in installments])


@bp.route("/installments/<int:id>/pay", methods=["POST"])
@permission_required("subscriptions:payments")
def pay_installment(id):
    """
    Cobra una cuota

    Body: {"box_id", "amount", "discount"?, "currency"?, "exchange_rate"?}
    """
    installment = SubscriptionInstallment.query.get_or_404(id)
    data = request.json or {}

    result = subscription_service.pay_installment(
        installment,
        box_id=data.get("box_id"),
        payment_amount=parse_amount(data.get("amount"), "amount"),
        currency=parse_currency(data["currency"]) if data.get("currency") else None,
        exchange_rate=parse_amount(data.get("exchange_rate"), "exchange_rate", default=None),
        discount=parse_amount(data.get("discount"), "discount"),
    )
    db.session.commit()

    voucher = result["voucher"]
    overpayment = result["overpayment_voucher"]
    return jsonify({
        "success": True,
        "voucher": voucher.to_dict() if voucher else None,
        "overpayment_voucher": overpayment.to_dict() if overpayment else None,
        "payments": [p.to_dict() for p in result["payments"]],
        "subscription": installment.subscription.to_dict(include_installments=True),
    })


@bp.route("/payments/<int:id>", methods=["PUT"])
@permission_required("subscriptions:payments")
def update_payment(id):
    payment = InstallmentPayment.query.get_or_404(id)
    data = request.json or {}

    subscription_service.update_payment(
        payment,
        amount=parse_amount(data.get("amount"), "amount", default=None),
        date=parse_date(data.get("date")),
    )
    db.session.commit()

    return jsonify({"success": True, "payment": payment.to_dict()})


@bp.route("/payments/<int:id>", methods=["DELETE"])
@permission_required("subscriptions:payments")
def delete_payment(id):
    payment = InstallmentPayment.query.get_or_404(id)
    subscription = payment.installment.subscription

    subscription_service.delete_payment(payment)
    db.session.commit()

    return jsonify({"success": True, "subscription": subscription.to_dict(include_installments=True)})


@bp.route("/reminders", methods=["POST"])
@permission_required("subscriptions:update")
def send_reminders():
    """Envía recordatorios por WhatsApp de cuotas próximas a vencer"""
    result = send_installment_reminders()
    db.session.commit()

    print(f"📱 Recordatorios: {result['sent']} enviados, {result['skipped']} omitidos")
    return jsonify({"success": True, **result})
