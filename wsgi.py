"""
Back office de agencia de viajes - Aplicación Flask Principal
Boletos, visas, suscripciones, comprobantes y reportes
"""
import os
from flask import Flask
from flask_cors import CORS
from backoffice.config import get_config
from backoffice.db import db, init_db
from backoffice.utils.responses import register_error_handlers


def create_app():
    """Factory para crear la aplicación Flask"""
    app = Flask(__name__)

    # Cargar configuración
    app.config.from_object(get_config())

    print(f"📍 Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")

    # Habilitar CORS
    allowed_origins = os.getenv("ALLOWED_ORIGINS", "*").split(",")
    if "*" in allowed_origins:
        CORS(app, resources={r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }})
    else:
        CORS(app, resources={r"/api/*": {
            "origins": allowed_origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": True
        }})

    # Importar modelos antes de crear tablas
    from backoffice import models

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
        os.makedirs(os.path.join(os.path.dirname(__file__), 'instance'), exist_ok=True)

    init_db(app)

    with app.app_context():
        if app.config["FLASK_ENV"] != "testing":
            ensure_admin_user(app)

        if app.config["FLASK_ENV"] == "development":
            init_dev_data()

    # Registrar blueprints de APIs
    from backoffice.api import (
        auth_bp, users_bp, relations_bp, boxes_bp, settings_bp,
        notifications_bp, audit_logs_bp, vouchers_bp, bookings_bp, visas_bp,
        subscriptions_bp, segments_bp, reports_bp, dashboard_bp,
        smart_entry_bp, documents_bp, flight_extras_bp, profit_sharing_bp,
    )

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(relations_bp, url_prefix="/api/relations")
    app.register_blueprint(boxes_bp, url_prefix="/api/boxes")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")
    app.register_blueprint(audit_logs_bp, url_prefix="/api/audit-logs")
    app.register_blueprint(vouchers_bp, url_prefix="/api/vouchers")
    app.register_blueprint(bookings_bp, url_prefix="/api/bookings")
    app.register_blueprint(visas_bp, url_prefix="/api/visas")
    app.register_blueprint(flight_extras_bp, url_prefix="/api/flight-extras")
    app.register_blueprint(subscriptions_bp, url_prefix="/api/subscriptions")
    app.register_blueprint(segments_bp, url_prefix="/api/segments")
    app.register_blueprint(profit_sharing_bp, url_prefix="/api/profit-sharing")
    app.register_blueprint(reports_bp, url_prefix="/api/reports")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")
    app.register_blueprint(smart_entry_bp, url_prefix="/api/smart-entry")
    app.register_blueprint(documents_bp, url_prefix="/api/documents")

    register_error_handlers(app)

    # Ruta de health check
    @app.route("/health")
    def health():
        return {"status": "ok", "message": "Back office is running! ✈️"}

    return app


def ensure_admin_user(app):
    """Crea el administrador inicial (ADMIN_EMAIL / ADMIN_PASSWORD) si no hay ninguno"""
    from backoffice.models import User

    if User.query.filter_by(role="admin").first():
        return

    admin = User(
        name="Administrador",
        email=app.config["ADMIN_EMAIL"],
        role="admin",
        status="active",
        permissions=[],
    )
    admin.set_password(app.config["ADMIN_PASSWORD"])
    db.session.add(admin)
    db.session.commit()
    print(f"✅ Administrador inicial creado: {admin.email}")


def init_dev_data():
    """Inicializa datos de desarrollo"""
    from backoffice.models import Box, Relation, AppSettings

    # Verificar si ya hay datos
    if Box.query.first():
        return

    print("🌱 Inicializando datos de desarrollo...")

    boxes = [
        Box(name="Caja principal"),
        Box(name="Caja dinares"),
    ]
    for box in boxes:
        db.session.add(box)

    relations = [
        Relation(name="Cliente de ejemplo", relation_type="client", type="individual", phone="+9647700000000"),
        Relation(name="Aerolínea mayorista", relation_type="supplier", type="company"),
        Relation(name="Agencia socia", relation_type="both", type="company"),
    ]
    for relation in relations:
        db.session.add(relation)

    AppSettings.get_instance()

    db.session.commit()
    print("✅ Datos de desarrollo inicializados (2 cajas, 3 relaciones, configuración)")


# Crear instancia de la app para gunicorn
app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
