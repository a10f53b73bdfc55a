"""
Fixtures de tests: app con SQLite en memoria, usuario admin y datos básicos
"""
import os

os.environ["FLASK_ENV"] = "testing"
os.environ.pop("GCS_BUCKET_NAME", None)

import pytest

from wsgi import create_app
from backoffice.db import db
from backoffice.models import User, Relation, Box, AppSettings
from backoffice.api.auth import issue_token


@pytest.fixture
def app():
    app = create_app()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    user = User(name="Admin", email="admin@test.local", role="admin", status="active", permissions=[])
    user.set_password("secret123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_headers(admin):
    return {"Authorization": f"Bearer {issue_token(admin)}"}


@pytest.fixture
def customer(app):
    relation = Relation(name="Ahmed Travel", relation_type="client", phone="+9647701112233")
    db.session.add(relation)
    db.session.commit()
    return relation


@pytest.fixture
def supplier(app):
    relation = Relation(name="Iraqi Airways Agent", relation_type="supplier")
    db.session.add(relation)
    db.session.commit()
    return relation


@pytest.fixture
def box(app):
    box = Box(name="Caja principal")
    db.session.add(box)
    db.session.commit()
    return box


@pytest.fixture
def distribution_channels(app):
    settings = AppSettings.get_instance()
    settings.data = {
        "voucher_settings": {
            "distributed": {
                "enabled": True,
                "channels": [
                    {"id": "ch_office", "name": "Oficina", "account_id": "acc_office", "enabled": True},
                    {"id": "ch_online", "name": "Online", "account_id": "acc_online", "enabled": True},
                ],
            }
        }
    }
    db.session.commit()
    return settings
