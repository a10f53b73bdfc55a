"""
Servicio: Extracción de documentos con IA
Lee PDFs de boletos y visas y devuelve los datos estructurados
"""
import base64
import json
import re
from openai import OpenAI


AIRLINE_LOGO_URL = "https://assets.duffel.com/img/airlines/for-light-background/full-color-logo/{code}.svg"

PASSENGER_TYPES = ("Adult", "Child", "Infant")
TICKET_TYPES = ("Issue", "Change", "Refund")

TICKET_PROMPT = """
Eres un asistente experto de agencia de viajes. Extrae los datos del boleto aéreo adjunto.

Devuelve SOLO un JSON con estas claves:
- "pnr": código de reserva (PNR / Booking Reference), 6 caracteres alfanuméricos. Sé preciso y devuelve solo uno.
- "route": ruta en formato "ORIGEN-DESTINO" (ej: "BGW-DXB").
- "airline": nombre de la aerolínea.
- "airlineIataCode": código IATA de 2 letras de la aerolínea (ej: "EK", "FZ", "QR"). Omite la clave si no lo encuentras.
- "issueDate": fecha de emisión en formato YYYY-MM-DD.
- "travelDate": fecha del primer tramo en formato YYYY-MM-DD.
- "passengers": lista con "name", "ticketNumber", "passportNumber" (si existe),
  "passengerType" (Adult | Child | Infant) y "ticketType" (Issue | Change | Refund, por defecto Issue).
"""

VISA_PROMPT = """
Eres un asistente experto en trámites de visas. Extrae los datos de la solicitud de visa adjunta.

Devuelve SOLO un JSON con estas claves:
- "destination": país de destino (ej: "Turkey", "UAE", "Schengen").
- "visaType": tipo de visa (ej: "Tourist", "Work", "Student").
- "applicationNumber": número de solicitud si aparece.
- "passengers": lista con "name" (como aparece en el pasaporte) y "passportNumber" (si existe).
"""


class ExtractionError(ValueError):
    """No se pudo extraer información del documento"""


def to_data_uri(content, content_type="application/pdf"):
    """Convierte bytes a data URI base64"""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def _document_part(file_data_uri, filename):
    if file_data_uri.startswith("data:image/"):
        return {"type": "image_url", "image_url": {"url": file_data_uri}}
    return {"type": "file", "file": {"filename": filename, "file_data": file_data_uri}}


def _ask_model(prompt, file_data_uri, filename, api_key, model, client=None):
    if not file_data_uri or not file_data_uri.startswith("data:"):
        raise ExtractionError("El archivo debe venir como data URI (data:<mime>;base64,...)")

    if client is None:
        if not api_key:
            raise ExtractionError("OPENAI_API_KEY no configurada")
        client = OpenAI(api_key=api_key)

    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": "Respondes únicamente con JSON válido."},
            {"role": "user", "content": [
                {"type": "text", "text": prompt},
                _document_part(file_data_uri, filename),
            ]},
        ],
        response_format={"type": "json_object"},
        temperature=0,
    )

    content = response.choices[0].message.content if response.choices else None
    if not content or not content.strip():
        raise ExtractionError("La IA no devolvió datos del documento")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        print(f"⚠️ Respuesta de IA no es JSON: {content[:200]}")
        raise ExtractionError("La respuesta de la IA no es un JSON válido")

    if not isinstance(data, dict):
        raise ExtractionError("La respuesta de la IA no tiene el formato esperado")
    return data


def normalize_ticket_data(data):
    """Limpia la respuesta del modelo para boletos (tipos, código IATA, logo)"""
    result = {
        "pnr": (data.get("pnr") or "").strip().upper(),
        "route": (data.get("route") or "").strip().upper(),
        "airline": (data.get("airline") or "").strip(),
        "issueDate": data.get("issueDate") or "",
        "travelDate": data.get("travelDate") or "",
        "passengers": [],
    }

    code = (data.get("airlineIataCode") or "").strip().upper()
    if re.fullmatch(r"[A-Z0-9]{2}", code):
        result["airlineIataCode"] = code
        result["airlineLogoUrl"] = AIRLINE_LOGO_URL.format(code=code)

    for passenger in data.get("passengers") or []:
        passenger_type = passenger.get("passengerType")
        ticket_type = passenger.get("ticketType")
        result["passengers"].append({
            "name": (passenger.get("name") or "").strip(),
            "ticketNumber": (passenger.get("ticketNumber") or "").strip(),
            "passportNumber": passenger.get("passportNumber") or None,
            "passengerType": passenger_type if passenger_type in PASSENGER_TYPES else "Adult",
            "ticketType": ticket_type if ticket_type in TICKET_TYPES else "Issue",
        })
    return result


def normalize_visa_data(data):
    result = {
        "destination": (data.get("destination") or "").strip(),
        "visaType": (data.get("visaType") or "").strip(),
        "passengers": [
            {
                "name": (p.get("name") or "").strip(),
                "passportNumber": p.get("passportNumber") or None,
            }
            for p in data.get("passengers") or []
        ],
    }
    if data.get("applicationNumber"):
        result["applicationNumber"] = str(data["applicationNumber"]).strip()
    return result


def extract_ticket_data(file_data_uri, api_key=None, model="gpt-4o", client=None):
    """
    Extrae datos de un boleto aéreo

    Returns:
        dict: {pnr, route, airline, airlineIataCode?, airlineLogoUrl?, issueDate, travelDate, passengers}
    """
    data = _ask_model(TICKET_PROMPT, file_data_uri, "ticket.pdf", api_key, model, client)
    result = normalize_ticket_data(data)
    print(f"✅ Boleto extraído: PNR {result['pnr']} ({len(result['passengers'])} pasajeros)")
    return result


def extract_visa_data(file_data_uri, api_key=None, model="gpt-4o", client=None):
    """
    Extrae datos de una solicitud de visa

    Returns:
        dict: {destination, visaType, applicationNumber?, passengers}
    """
    data = _ask_model(VISA_PROMPT, file_data_uri, "visa.pdf", api_key, model, client)
    result = normalize_visa_data(data)
    print(f"✅ Visa extraída: {result['destination']} ({len(result['passengers'])} solicitantes)")
    return result
