"""
Servicio: Mensajes WhatsApp
Recordatorios de cuotas a clientes (API tipo UltraMsg)
"""
from datetime import datetime
import requests
from flask import current_app
from ..models import AppSettings, Relation
from .subscriptions import upcoming_installments


def send_whatsapp_message(phone, message):
    """
    Envía un mensaje de texto

    Returns:
        bool: True si la API aceptó el mensaje
    """
    api_url = current_app.config.get("WHATSAPP_API_URL")
    instance_id = current_app.config.get("WHATSAPP_INSTANCE_ID")
    token = current_app.config.get("WHATSAPP_API_TOKEN")

    if not instance_id or not token:
        print(f"⚠️ WhatsApp no configurado. Mensaje a {phone}: {message}")
        return False

    if not phone:
        print("⚠️ Relación sin teléfono, no se envía WhatsApp")
        return False

    try:
        response = requests.post(
            f"{api_url}/{instance_id}/messages/chat",
            data={"token": token, "to": phone, "body": message},
            timeout=15,
        )
        response.raise_for_status()
        print(f"📱 WhatsApp enviado a {phone}")
        return True
    except requests.RequestException as e:
        print(f"❌ Error enviando WhatsApp a {phone}: {e}")
        return False


def send_installment_reminders(today=None):
    """
    Envía recordatorio por cada cuota impaga que vence dentro de
    reminder_days_before días y que aún no tiene recordatorio.

    Returns:
        dict: {"sent": n, "skipped": n}
    """
    settings = AppSettings.get_instance().merged
    days = settings["subscription_settings"].get("reminder_days_before", 3)
    template = settings["whatsapp_settings"]["installment_reminder_template"]

    sent = 0
    skipped = 0
    for installment in upcoming_installments(days=days, today=today):
        if installment.reminder_sent_at:
            skipped += 1
            continue

        subscription = installment.subscription
        client = Relation.query.get(subscription.client_id)
        try:
            message = template.format(
                client_name=subscription.client_name,
                service_name=subscription.service_name,
                amount=installment.remaining,
                currency=installment.currency,
                due_date=installment.due_date.strftime("%Y-%m-%d"),
            )
        except (KeyError, IndexError, ValueError) as e:
            print(f"⚠️ Plantilla de recordatorio inválida ({e}), cuota {installment.id} omitida")
            skipped += 1
            continue

        if send_whatsapp_message(client.phone if client else None, message):
            installment.reminder_sent_at = datetime.utcnow()
            sent += 1
        else:
            skipped += 1

    return {"sent": sent, "skipped": skipped}
