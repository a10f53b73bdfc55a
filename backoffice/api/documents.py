"""
API: Documentos
Sirve los PDFs guardados (Cloud Storage o carpeta local)
"""
from flask import Blueprint, Response
from ..utils.storage import get_document
from .auth import login_required

bp = Blueprint("documents", __name__)


@bp.route("/<path:document_path>", methods=["GET"])
@login_required
def serve_document(document_path):
    """
    Args:
        document_path: ej. tickets/3f2a..._boleto.pdf
    """
    content, content_type = get_document(document_path)

    if content is None:
        return Response("Documento no encontrado", status=404, mimetype="text/plain")

    response = Response(content, mimetype=content_type)
    response.headers["Cache-Control"] = "private, max-age=3600"
    return response
