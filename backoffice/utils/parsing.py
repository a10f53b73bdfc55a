"""
Utilidad: Parseo de datos de formularios
Montos, fechas y campos obligatorios
"""
from datetime import datetime


CURRENCIES = ("USD", "IQD")


def parse_amount(value, field="amount", default=0.0):
    """
    Convierte un monto a float (acepta "1,250.50")

    Raises:
        ValueError si el valor no es numérico
    """
    if value is None or value == "":
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        raise ValueError(f"Monto inválido en '{field}': {value}")


def parse_date(value, field="date", default=None):
    """Parsea fecha ISO (con o sin Z) a datetime naive"""
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value
    try:
        date_str = str(value).replace('Z', '+00:00')
        parsed = datetime.fromisoformat(date_str)
    except ValueError:
        raise ValueError(f"Fecha inválida en '{field}': {value}")
    return parsed.replace(tzinfo=None)


def parse_currency(value, default="USD"):
    currency = (value or default).upper()
    if currency not in CURRENCIES:
        raise ValueError(f"Moneda no soportada: {currency}")
    return currency


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "si", "on")


def require(data, *fields):
    """Verifica que los campos obligatorios vengan con valor"""
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValueError(f"Campos obligatorios faltantes: {', '.join(missing)}")
