"""
Servicio: Reparto de ganancias con socios
Ganancia mensual calculada desde las operaciones, periodos manuales y partes de cada socio
"""
from datetime import datetime
from ..db import db
from ..models import (
    MonthlyProfit, ProfitShare, Booking, VisaBooking, Subscription, FlightExtra,
)
from .segments import split_profit
from .sequences import next_number
from .audit import log_action, actor_name


def _month_range(month_id):
    """'YYYY-MM' -> (inicio, inicio del mes siguiente)"""
    try:
        start = datetime.strptime(month_id, "%Y-%m")
    except (TypeError, ValueError):
        raise ValueError(f"Mes inválido: {month_id} (formato YYYY-MM)")
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def compute_system_profit(month_id, currency="USD"):
    """
    Ganancia del mes desde reservas, visas, suscripciones y cargos de vuelo

    Returns:
        dict: {"bookings", "visas", "subscriptions", "flight_extras", "total"}
    """
    start, end = _month_range(month_id)

    bookings = Booking.query.filter(
        Booking.is_deleted.is_(False), Booking.currency == currency,
        Booking.issue_date >= start, Booking.issue_date < end,
    ).all()
    visas = VisaBooking.query.filter(
        VisaBooking.is_deleted.is_(False), VisaBooking.currency == currency,
        VisaBooking.submission_date >= start, VisaBooking.submission_date < end,
    ).all()
    subscriptions = Subscription.query.filter(
        Subscription.is_deleted.is_(False), Subscription.currency == currency,
        Subscription.start_date >= start, Subscription.start_date < end,
    ).all()
    extras = FlightExtra.query.filter(
        FlightExtra.currency == currency,
        FlightExtra.issue_date >= start, FlightExtra.issue_date < end,
    ).all()

    breakdown = {
        "bookings": round(sum(b.profit for b in bookings), 2),
        "visas": round(sum(v.total_sale - v.total_purchase for v in visas), 2),
        "subscriptions": round(sum(s.profit or 0 for s in subscriptions), 2),
        "flight_extras": round(sum(e.profit for e in extras), 2),
    }
    breakdown["total"] = round(sum(breakdown.values()), 2)
    return breakdown


def _split_by_total_percentage(total, partners):
    """
    Reparte usando porcentajes sobre el total de la ganancia.
    Lo que los socios no cubren queda para la agencia.
    """
    partners = [p for p in partners if float(p.get("percentage") or 0) > 0]
    partner_total = round(sum(float(p["percentage"]) for p in partners), 4)
    if partner_total > 100 + 0.01:
        raise ValueError(f"Los porcentajes de los socios superan 100 (suman {round(partner_total, 2)})")
    if not partners:
        return split_profit(total)

    # split_profit trabaja sobre el pozo de socios: se reescalan a 100
    result = split_profit(
        total,
        has_partner=True,
        company_share_percentage=max(0.0, 100 - partner_total),
        partners=[
            {**p, "type": "percentage", "value": float(p["percentage"]) * 100 / partner_total}
            for p in partners
        ],
    )
    for share, partner in zip(result["partner_shares"], partners):
        share["percentage"] = float(partner["percentage"])
    return result


def _recompute_shares(profit):
    shares = list(profit.shares)
    if not shares:
        return
    result = _split_by_total_percentage(profit.total_profit, [
        {"percentage": s.percentage} for s in shares
    ])
    for share, computed in zip(shares, result["partner_shares"]):
        share.amount = computed["amount"]


def seed_monthly_profit(month_id, currency="USD", total_profit=None, notes=None):
    """
    Crea o actualiza la ganancia del mes.
    Sin total_profit se calcula desde las operaciones del mes.
    """
    _month_range(month_id)
    if total_profit is None:
        total_profit = compute_system_profit(month_id, currency)["total"]

    profit = MonthlyProfit.query.get(month_id)
    if not profit:
        profit = MonthlyProfit(id=month_id, from_system=True, created_by=actor_name())
        db.session.add(profit)

    profit.total_profit = round(float(total_profit), 2)
    profit.currency = currency
    profit.notes = notes or profit.notes or f"Ganancia del mes {month_id}"
    _recompute_shares(profit)
    db.session.flush()

    log_action("UPDATE", "monthly_profit", profit.id,
               f"Ganancia de {month_id}: {profit.total_profit} {currency}")
    return profit


def create_manual_profit(data):
    """
    Ganancia manual de un periodo con su reparto

    Body: {from_date, to_date, profit, currency, source_account_id, notes,
           partners: [{partner_id, partner_name, percentage}]}
    """
    from_date = data.get("from_date")
    to_date = data.get("to_date")
    if not from_date or not to_date:
        raise ValueError("Debe indicar el periodo (desde / hasta)")
    if from_date > to_date:
        raise ValueError("La fecha inicial no puede ser posterior a la final")

    total = float(data.get("profit") or 0)
    if total <= 0:
        raise ValueError("La ganancia debe ser mayor a cero")

    partners = data.get("partners") or []
    for partner in partners:
        if not partner.get("partner_id"):
            raise ValueError("Cada socio necesita partner_id")
        percentage = float(partner.get("percentage") or 0)
        if percentage < 0 or percentage > 100:
            raise ValueError("El porcentaje de cada socio debe estar entre 0 y 100")

    result = _split_by_total_percentage(total, partners)

    profit = MonthlyProfit(
        id=next_number("MP"),
        total_profit=round(total, 2),
        currency=data.get("currency") or "USD",
        from_system=False,
        from_date=from_date,
        to_date=to_date,
        source_account_id=data.get("source_account_id"),
        notes=data.get("notes") or f"Ganancia manual del {from_date:%Y-%m-%d} al {to_date:%Y-%m-%d}",
        created_by=actor_name(),
    )
    for share in result["partner_shares"]:
        profit.shares.append(ProfitShare(
            partner_id=share["partner_id"],
            partner_name=share.get("partner_name"),
            percentage=share["percentage"],
            amount=share["amount"],
            notes="Parte de reparto manual",
        ))
    db.session.add(profit)
    db.session.flush()

    log_action("CREATE", "monthly_profit", profit.id,
               f"Ganancia manual {profit.id}: {profit.total_profit} {profit.currency}, "
               f"agencia {result['company_share']}")
    return profit


def _check_total_percentage(profit, percentage, exclude_id=None):
    used = sum(s.percentage for s in profit.shares if s.id != exclude_id)
    if used + percentage > 100 + 0.01:
        raise ValueError(f"El reparto supera el 100% (ya asignado {round(used, 2)}%)")


def save_profit_share(profit, data):
    """Agrega la parte de un socio; el monto sale del porcentaje sobre el total"""
    if not data.get("partner_id"):
        raise ValueError("Debe indicar el socio")
    percentage = float(data.get("percentage") or 0)
    if percentage <= 0 or percentage > 100:
        raise ValueError("El porcentaje debe ser mayor a 0 y no superar 100")
    _check_total_percentage(profit, percentage)

    share = ProfitShare(
        partner_id=data["partner_id"],
        partner_name=data.get("partner_name"),
        percentage=percentage,
        notes=data.get("notes"),
    )
    profit.shares.append(share)
    _recompute_shares(profit)
    db.session.flush()

    log_action("CREATE", "profit_share", share.id,
               f"Parte de {share.partner_name or share.partner_id} en {profit.id}: {share.percentage}% = {share.amount}")
    return share


def update_profit_share(share, data):
    profit = share.profit
    if "partner_id" in data and data["partner_id"]:
        share.partner_id = data["partner_id"]
    if "partner_name" in data:
        share.partner_name = data["partner_name"]
    if "notes" in data:
        share.notes = data["notes"]
    if "percentage" in data:
        percentage = float(data["percentage"] or 0)
        if percentage <= 0 or percentage > 100:
            raise ValueError("El porcentaje debe ser mayor a 0 y no superar 100")
        _check_total_percentage(profit, percentage, exclude_id=share.id)
        share.percentage = percentage
    _recompute_shares(profit)
    db.session.flush()

    log_action("UPDATE", "profit_share", share.id, f"Parte de {share.partner_name or share.partner_id} actualizada")
    return share


def delete_profit_share(share):
    profit = share.profit
    log_action("DELETE", "profit_share", share.id,
               f"Parte de {share.partner_name or share.partner_id} en {profit.id} eliminada", level="warning")
    profit.shares.remove(share)
    _recompute_shares(profit)
    db.session.flush()


def list_profits():
    """Meses del sistema (más reciente primero) seguidos de los periodos manuales"""
    system = MonthlyProfit.query.filter_by(from_system=True).order_by(MonthlyProfit.id.desc()).all()
    manual = MonthlyProfit.query.filter_by(from_system=False).order_by(
        MonthlyProfit.created_at.desc(), MonthlyProfit.id.desc()
    ).all()
    return system + manual
