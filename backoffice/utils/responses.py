"""
Utilidad: Respuestas JSON de error
"""
import traceback
from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from ..db import db


def error_response(message, status=400):
    return jsonify({"success": False, "error": message}), status


def _record_error(e):
    """Deja el error en el registro de errores (level=error)"""
    from ..services.audit import log_action

    try:
        log_action("ERROR", "request", None, f"{request.method} {request.path}: {e}", level="error")
        db.session.commit()
    except SQLAlchemyError as log_error:
        db.session.rollback()
        print(f"⚠️ No se pudo guardar el error en el registro: {log_error}")


def register_error_handlers(app):
    """Errores de validación -> 400, inesperados -> 500 (con rollback y traceback)"""

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        db.session.rollback()
        print(f"⚠️ Error de validación: {e}")
        return error_response(str(e), 400)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return error_response(e.description, e.code)
        db.session.rollback()
        print(f"❌ Error inesperado: {e}")
        traceback.print_exc()
        _record_error(e)
        return error_response(str(e), 500)
