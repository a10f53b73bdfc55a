"""
Tests de autenticación, registro y permisos
"""
from backoffice.db import db
from backoffice.models import User
from backoffice.api.auth import issue_token


def _employee(permissions=None, status="active"):
    user = User(name="Empleado", email="staff@test.local", username="staff", status=status,
                permissions=permissions or [])
    user.set_password("pass1234")
    db.session.add(user)
    db.session.commit()
    return user


def test_login_with_email_and_username(client, admin):
    response = client.post("/api/auth/login", json={"email": "ADMIN@test.local", "password": "secret123"})
    assert response.status_code == 200
    assert response.get_json()["token"]

    _employee()
    response = client.post("/api/auth/login", json={"username": "staff", "password": "pass1234"})
    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "staff@test.local"


def test_login_wrong_password(client, admin):
    response = client.post("/api/auth/login", json={"email": "admin@test.local", "password": "nope"})
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_pending_user_cannot_login(client):
    _employee(status="pending")
    response = client.post("/api/auth/login", json={"email": "staff@test.local", "password": "pass1234"})
    assert response.status_code == 403


def test_register_creates_pending_user(client):
    response = client.post("/api/auth/register", json={
        "name": "Nuevo", "email": "new@test.local", "password": "abc12345",
    })
    assert response.status_code == 201
    assert response.get_json()["user"]["status"] == "pending"

    response = client.post("/api/auth/register", json={
        "name": "Otro", "email": "NEW@test.local", "password": "abc12345",
    })
    assert response.status_code == 400


def test_verify_and_me(client, auth_headers):
    assert client.get("/api/auth/verify").status_code == 401

    response = client.get("/api/auth/verify", headers=auth_headers)
    assert response.get_json()["valid"] is True

    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.get_json()["email"] == "admin@test.local"
    assert response.get_json()["impersonated_by"] is None


def test_invalid_token_rejected(client):
    response = client.get("/api/relations", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_sign_in_as_only_for_admin(client, admin, auth_headers):
    staff = _employee()

    response = client.post(f"/api/auth/sign-in-as/{staff.id}", headers=auth_headers)
    assert response.status_code == 200
    token = response.get_json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).get_json()
    assert me["id"] == staff.id
    assert me["impersonated_by"] == admin.id

    response = client.post(f"/api/auth/sign-in-as/{admin.id}", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_permission_checks(client):
    staff = _employee(permissions=["relations:read", "reports:read:all"])
    headers = {"Authorization": f"Bearer {issue_token(staff)}"}

    assert client.get("/api/relations", headers=headers).status_code == 200
    assert client.post("/api/relations", json={"name": "X", "relation_type": "client"},
                       headers=headers).status_code == 403
    assert client.get("/api/reports/debts", headers=headers).status_code == 200
    assert client.get("/api/users", headers=headers).status_code == 403
