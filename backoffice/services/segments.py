"""
Servicio: Segmentos
Cálculo de ganancia por servicio y reparto entre la agencia y sus socios
"""
from ..db import db
from ..models import SegmentEntry, Relation
from .sequences import next_number
from .audit import log_action, actor_name


# Porcentaje por defecto de cada servicio cuando el tipo es "percentage"
DEFAULT_PROFIT_SETTINGS = {
    "ticket": ("percentage", 50),
    "visa": ("percentage", 100),
    "hotel": ("percentage", 100),
    "group": ("percentage", 100),
}

# servicio -> campo de cantidad en el registro
SERVICE_COUNT_FIELDS = {
    "ticket": "tickets",
    "visa": "visas",
    "hotel": "hotels",
    "group": "groups",
}


def compute_service(count, profit_type, value):
    """
    Ganancia de un servicio

    fixed: count × value
    percentage: count × value / 100
    """
    count = float(count or 0)
    value = float(value or 0)
    if not count or not value:
        return 0.0
    if profit_type == "fixed":
        return round(count * value, 2)
    return round(count * value / 100, 2)


def _profit_value(value, default_value):
    # Vacío o 0 toma el valor por defecto del servicio
    return float(value or 0) or float(default_value)


def service_breakdown(entry):
    """Ganancia por servicio de un registro (dict con cantidades y tipos)"""
    breakdown = {}
    for service, count_field in SERVICE_COUNT_FIELDS.items():
        default_type, default_value = DEFAULT_PROFIT_SETTINGS[service]
        profit_type = entry.get(f"{service}_profit_type") or default_type
        value = _profit_value(entry.get(f"{service}_profit_value"), default_value)
        breakdown[service] = compute_service(entry.get(count_field), profit_type, value)
    return breakdown


def compute_company_total(entry):
    """Total de ganancia de un registro: suma de los cuatro servicios"""
    return round(sum(service_breakdown(entry).values()), 2)


PARTNER_SHARE_TYPES = ("percentage", "fixed")


def _partner_value(partner, share_type):
    value = partner.get("value")
    if value is None or value == "":
        value = partner.get("percentage") if share_type == "percentage" else partner.get("amount")
    return float(value or 0)


def split_profit(total, has_partner=False, company_share_percentage=100, partners=None):
    """
    Reparte una ganancia entre la agencia y los socios

    Args:
        total: Ganancia total del periodo
        has_partner: Si hay socios en el reparto
        company_share_percentage: % que se queda la agencia
        partners: [{"partner_id", "partner_name", "type", "value"}]
            type "fixed": monto fijo tomado del pozo de socios
            type "percentage" (default): % de lo que queda del pozo después de los fijos;
            los porcentajes deben sumar 100

    Si solo hay socios con monto fijo, lo que no reparten vuelve a la agencia.

    Returns:
        dict: {"company_share", "partner_pool", "partner_shares": [... + "amount"]}
    """
    total = float(total or 0)
    partners = (partners or []) if has_partner else []

    if has_partner:
        percentage = float(company_share_percentage if company_share_percentage is not None else 100)
        if percentage < 0 or percentage > 100:
            raise ValueError("El porcentaje de la agencia debe estar entre 0 y 100")
        partner_pool = round(total * (100 - percentage) / 100, 2)
        if partner_pool > 0 and not partners:
            raise ValueError("Debe indicar al menos un socio para repartir la ganancia")
    else:
        partner_pool = 0.0

    shares = []
    for partner in partners:
        share_type = partner.get("type") or "percentage"
        if share_type not in PARTNER_SHARE_TYPES:
            raise ValueError(f"Tipo de reparto inválido: {share_type}")
        value = _partner_value(partner, share_type)
        if value < 0 or (share_type == "percentage" and value > 100):
            raise ValueError("El porcentaje de cada socio debe estar entre 0 y 100")
        share = dict(partner)
        share["type"] = share_type
        share["value"] = value
        if share_type == "percentage":
            share["percentage"] = value
        shares.append(share)

    fixed = [s for s in shares if s["type"] == "fixed"]
    by_percentage = [s for s in shares if s["type"] == "percentage"]

    fixed_total = round(sum(s["value"] for s in fixed), 2)
    if fixed_total > partner_pool + 0.01:
        raise ValueError(f"Los montos fijos de socios ({fixed_total}) superan el pozo de socios ({partner_pool})")
    for share in fixed:
        share["amount"] = round(share["value"], 2)

    if by_percentage:
        percentage_total = sum(s["value"] for s in by_percentage)
        if abs(percentage_total - 100) > 0.01:
            raise ValueError(f"Los porcentajes de los socios deben sumar 100 (suman {round(percentage_total, 2)})")
        remaining = round(partner_pool - fixed_total, 2)
        for share in by_percentage:
            share["amount"] = round(remaining * share["value"] / 100, 2)
        # El último socio absorbe el redondeo
        by_percentage[-1]["amount"] = round(
            remaining - sum(s["amount"] for s in by_percentage[:-1]), 2
        )
    else:
        partner_pool = fixed_total

    company_share = round(total - partner_pool, 2)

    return {
        "company_share": company_share,
        "partner_pool": partner_pool,
        "partner_shares": shares,
    }


def build_segment_values(entry, has_partner=False, company_share_percentage=100, partners=None):
    """Calcula todos los montos derivados de un registro de segmento"""
    breakdown = service_breakdown(entry)
    total = round(sum(breakdown.values()), 2)
    split = split_profit(total, has_partner, company_share_percentage, partners)

    return {
        "ticket_profits": breakdown["ticket"],
        "other_profits": round(breakdown["visa"] + breakdown["hotel"] + breakdown["group"], 2),
        "total": total,
        "company_share": split["company_share"],
        "partner_share": split["partner_pool"],
        "partner_shares": split["partner_shares"],
    }


# ---------------------------------------------------------------------------
# Registros de segmento
# ---------------------------------------------------------------------------

ENTRY_FIELDS = (
    "company_name", "client_id", "tickets", "visas", "hotels", "groups",
    "ticket_profit_type", "ticket_profit_value", "visa_profit_type", "visa_profit_value",
    "hotel_profit_type", "hotel_profit_value", "group_profit_type", "group_profit_value",
)

PROFIT_SETTING_FIELDS = tuple(f for f in ENTRY_FIELDS if "_profit_" in f)


def _entry_values(data):
    """Campos del registro con defaults aplicados"""
    values = {}
    for service, count_field in SERVICE_COUNT_FIELDS.items():
        default_type, default_value = DEFAULT_PROFIT_SETTINGS[service]
        values[count_field] = int(data.get(count_field) or 0)
        profit_type = data.get(f"{service}_profit_type") or default_type
        if profit_type not in ("fixed", "percentage"):
            raise ValueError(f"Tipo de ganancia inválido: {profit_type}")
        values[f"{service}_profit_type"] = profit_type
        values[f"{service}_profit_value"] = _profit_value(data.get(f"{service}_profit_value"), default_value)
    return values


def _apply_values(entry, data, previous_shares=None):
    company_name = (data.get("company_name") or "").strip()
    if not company_name:
        raise ValueError("El nombre de la empresa es obligatorio")

    values = _entry_values(data)
    has_partner = bool(data.get("has_partner"))
    company_share_percentage = data.get("company_share_percentage")
    if company_share_percentage is None or company_share_percentage == "":
        company_share_percentage = 100
    company_share_percentage = float(company_share_percentage)

    computed = build_segment_values(values, has_partner, company_share_percentage, data.get("partners"))

    # Cada reparto a socio lleva su propio número PARTNER (se conserva al editar)
    previous = {s.get("partner_id"): s.get("invoice_number") for s in previous_shares or []}
    for share in computed["partner_shares"]:
        share["invoice_number"] = previous.get(share.get("partner_id")) or next_number("PARTNER")

    entry.company_name = company_name
    entry.client_id = data.get("client_id") or None
    for field, value in values.items():
        setattr(entry, field, value)
    entry.has_partner = has_partner
    entry.company_share_percentage = company_share_percentage
    entry.ticket_profits = computed["ticket_profits"]
    entry.other_profits = computed["other_profits"]
    entry.total = computed["total"]
    entry.company_share = computed["company_share"]
    entry.partner_share = computed["partner_share"]
    entry.partner_shares = computed["partner_shares"]

    if entry.client_id:
        _remember_settings(entry)


def _remember_settings(entry):
    """Guarda en la relación la última configuración usada"""
    relation = Relation.query.get(entry.client_id)
    if not relation:
        raise ValueError("Cliente no encontrado")
    relation.segment_settings = {field: getattr(entry, field) for field in PROFIT_SETTING_FIELDS}
    relation.partner_share_settings = {
        "has_partner": entry.has_partner,
        "company_share_percentage": entry.company_share_percentage,
        "partners": [
            {"partner_id": s.get("partner_id"), "partner_name": s.get("partner_name"),
             "type": s.get("type"), "value": s.get("value")}
            for s in entry.partner_shares or []
        ],
    }


def create_segment_period(from_date, to_date, entries, currency="USD"):
    """
    Registra un periodo: todos los registros comparten un número SEG

    Returns:
        list[SegmentEntry]
    """
    if not from_date or not to_date:
        raise ValueError("El periodo necesita fecha desde y hasta")
    if from_date > to_date:
        raise ValueError("La fecha desde no puede ser posterior a la fecha hasta")
    if not entries:
        raise ValueError("El periodo no tiene registros")

    invoice_number = next_number("SEG")
    created = []
    for data in entries:
        entry = SegmentEntry(
            invoice_number=invoice_number,
            from_date=from_date,
            to_date=to_date,
            currency=currency,
            entered_by=actor_name(),
        )
        _apply_values(entry, data)
        db.session.add(entry)
        created.append(entry)

    db.session.flush()
    total = round(sum(e.total for e in created), 2)
    log_action("CREATE", "segment", invoice_number,
               f"Periodo {invoice_number} con {len(created)} registros, total {total} {currency}")
    return created


def update_segment_entry(entry, data):
    """Actualiza un registro y recalcula montos y reparto"""
    if entry.is_deleted:
        raise ValueError("El registro está eliminado")
    merged = {field: getattr(entry, field) for field in ENTRY_FIELDS}
    merged.update({
        "has_partner": entry.has_partner,
        "company_share_percentage": entry.company_share_percentage,
        "partners": entry.partner_shares or [],
    })
    merged.update(data)
    _apply_values(entry, merged, previous_shares=entry.partner_shares)

    log_action("UPDATE", "segment", entry.id, f"Registro de {entry.company_name} ({entry.invoice_number})")
    return entry


def delete_segment_period(from_date, to_date):
    """Elimina todos los registros de un periodo. Retorna la cantidad"""
    entries = SegmentEntry.query.filter_by(from_date=from_date, to_date=to_date).all()
    for entry in entries:
        db.session.delete(entry)
    log_action("DELETE", "segment", None,
               f"Periodo {from_date:%Y-%m-%d} a {to_date:%Y-%m-%d} eliminado ({len(entries)} registros)",
               level="warning")
    return len(entries)


def set_segment_deleted(entry, deleted):
    if entry.is_deleted == deleted:
        raise ValueError("El registro ya está eliminado" if deleted else "El registro no está eliminado")
    entry.is_deleted = deleted
    log_action("DELETE" if deleted else "RESTORE", "segment", entry.id,
               f"Registro de {entry.company_name} ({entry.invoice_number})")
    return entry
