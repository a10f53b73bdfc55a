"""
Modelo: Configuración de la aplicación
Una sola fila con un documento JSON
"""
import copy
from datetime import datetime
from ..db import db


DEFAULT_SETTINGS = {
    "currency_settings": {
        "default_currency": "USD",
        "usd_to_iqd": 1310,
    },
    "voucher_settings": {
        # Canales a los que se puede repartir un recibo
        "distributed": {
            "enabled": True,
            "channels": [],
            # [{"id": "ch_office", "name": "Oficina", "account_id": "...", "enabled": True}]
        },
        # Tipos de gasto: la cuenta contable es expense_<id>
        "expense_accounts": [
            {"id": "rent", "name": "Renta"},
            {"id": "salaries", "name": "Sueldos"},
            {"id": "utilities", "name": "Servicios básicos"},
            {"id": "other", "name": "Otros"},
        ],
    },
    "subscription_settings": {
        "reminder_days_before": 3,
        "default_cancellation_reason": "Cancelada por el administrador",
    },
    # Cuentas internas usadas por los asientos automáticos
    "finance_accounts": {
        "revenue_tickets": "revenue_tickets",
        "cost_tickets": "cost_tickets",
        "revenue_visas": "revenue_visas",
        "cost_visas": "cost_visas",
        "revenue_subscriptions": "revenue_subscriptions",
        "expense_subscriptions": "expense_subscriptions",
        "expense_discounts": "expense_discounts",
        "revenue_segments": "revenue_segments",
        "ticket_fees": "revenue_ticket_fees",
    },
    "whatsapp_settings": {
        "enabled": False,
        "installment_reminder_template": (
            "Hola {client_name}, le recordamos que la cuota de {service_name} "
            "por {amount} {currency} vence el {due_date}."
        ),
    },
}


def deep_merge(base, updates):
    """Mezcla updates sobre base (dicts anidados), retorna un dict nuevo"""
    result = copy.deepcopy(base)
    for key, value in (updates or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class AppSettings(db.Model):
    __tablename__ = "app_settings"

    id = db.Column(db.Integer, primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def get_instance(cls):
        """Obtiene la fila de configuración, creándola si no existe"""
        settings = cls.query.first()
        if not settings:
            settings = cls(data={})
            db.session.add(settings)
            db.session.flush()
        return settings

    @property
    def merged(self):
        return deep_merge(DEFAULT_SETTINGS, self.data)

    def to_dict(self):
        data = self.merged
        data["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return data
