"""
API: Ingreso inteligente
Extrae datos de boletos y visas desde el PDF usando OpenAI
"""
from flask import Blueprint, request, jsonify, current_app
from ..services.extraction import extract_ticket_data, extract_visa_data, to_data_uri
from ..utils.storage import save_document
from .auth import login_required

bp = Blueprint("smart_entry", __name__)


EXTRACTORS = {
    "ticket": (extract_ticket_data, "tickets"),
    "visa": (extract_visa_data, "visas"),
}


def _allowed_file(filename):
    allowed = current_app.config.get("ALLOWED_EXTENSIONS", {"pdf"})
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


@bp.route("/<kind>", methods=["POST"])
@login_required
def extract(kind):
    """
    Extrae datos de un documento

    Acepta multipart con "file" (PDF o imagen) o JSON {"file_data_uri": "data:..."}.
    El documento se guarda y su URL vuelve en "document_url".
    """
    if kind not in EXTRACTORS:
        return jsonify({"success": False, "error": f"Tipo de documento desconocido: {kind}"}), 404
    extractor, folder = EXTRACTORS[kind]

    document_url = None
    if "file" in request.files:
        file = request.files["file"]
        if not file.filename:
            return jsonify({"success": False, "error": "Archivo vacío"}), 400
        if not _allowed_file(file.filename):
            return jsonify({"success": False, "error": "Tipo de archivo no permitido"}), 400

        content = file.read()
        content_type = file.mimetype or "application/pdf"
        document_url = save_document(content, file.filename, folder=folder, content_type=content_type)
        file_data_uri = to_data_uri(content, content_type)
    else:
        file_data_uri = (request.get_json(silent=True) or {}).get("file_data_uri")
        if not file_data_uri:
            return jsonify({"success": False, "error": "No se envió archivo"}), 400

    data = extractor(
        file_data_uri,
        api_key=current_app.config.get("OPENAI_API_KEY"),
        model=current_app.config.get("OPENAI_MODEL", "gpt-4o"),
    )

    return jsonify({"success": True, "data": data, "document_url": document_url})
