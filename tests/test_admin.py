"""
Tests de relaciones, cajas, usuarios, configuración, notificaciones y auditoría
"""
from backoffice.db import db
from backoffice.models import Relation, Notification, AuditLog, User


def test_create_and_filter_relations(client, auth_headers):
    response = client.post("/api/relations", json={"name": "Basra Tours", "relation_type": "both"},
                           headers=auth_headers)
    assert response.status_code == 201
    client.post("/api/relations", json={"name": "Qatar Airways", "relation_type": "supplier"}, headers=auth_headers)
    client.post("/api/relations", json={"name": "Karim", "relation_type": "client", "phone": "0770"},
                headers=auth_headers)

    clients = client.get("/api/relations?relation_type=client", headers=auth_headers).get_json()
    assert sorted(r["name"] for r in clients) == ["Basra Tours", "Karim"]

    found = client.get("/api/relations?search=0770", headers=auth_headers).get_json()
    assert [r["name"] for r in found] == ["Karim"]

    quick = client.get("/api/relations/search?q=air", headers=auth_headers).get_json()
    assert quick == [{"id": quick[0]["id"], "name": "Qatar Airways", "relation_type": "supplier"}]


def test_relation_validation(client, auth_headers):
    assert client.post("/api/relations", json={"name": " "}, headers=auth_headers).status_code == 400
    response = client.post("/api/relations", json={"name": "X", "relation_type": "partner"}, headers=auth_headers)
    assert response.status_code == 400
    assert Relation.query.count() == 0


def test_bulk_relations_all_or_nothing(client, auth_headers):
    response = client.post("/api/relations/bulk", json={"relations": [
        {"name": "Uno"}, {"name": ""},
    ]}, headers=auth_headers)
    assert response.status_code == 400
    assert Relation.query.count() == 0

    response = client.post("/api/relations/bulk", json={"relations": [{"name": "Uno"}, {"name": "Dos"}]},
                           headers=auth_headers)
    assert response.status_code == 201
    assert Relation.query.count() == 2


def test_relation_with_transactions_cannot_be_deleted(client, auth_headers, customer, supplier):
    customer.use_count = 2
    db.session.commit()

    assert client.delete(f"/api/relations/{customer.id}", headers=auth_headers).status_code == 400

    response = client.post("/api/relations/bulk-delete", json={"ids": [customer.id, supplier.id]},
                           headers=auth_headers)
    data = response.get_json()
    assert data["deleted"] == [supplier.id]
    assert data["skipped"] == [customer.id]


def test_boxes_include_balance(client, auth_headers):
    response = client.post("/api/boxes", json={"name": "Caja dólares", "opening_balance_usd": 100},
                           headers=auth_headers)
    assert response.status_code == 201

    boxes = client.get("/api/boxes", headers=auth_headers).get_json()
    assert boxes[0]["balance_usd"] == 100
    assert boxes[0]["balance_iqd"] == 0


def test_user_approval_notifies(client, auth_headers):
    pending = User(name="Nuevo", email="new@test.local", status="pending", permissions=[])
    db.session.add(pending)
    db.session.commit()

    response = client.put(f"/api/users/{pending.id}", json={"status": "active", "permissions": ["vouchers:read"]},
                          headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["permissions"] == ["vouchers:read"]
    assert Notification.query.filter_by(user_id=pending.id, title="Cuenta aprobada").count() == 1

    response = client.put(f"/api/users/{pending.id}", json={"permissions": ["made:up"]}, headers=auth_headers)
    assert response.status_code == 400


def test_cannot_delete_yourself(client, admin, auth_headers):
    assert client.delete(f"/api/users/{admin.id}", headers=auth_headers).status_code == 400


def test_settings_deep_merge(client, auth_headers):
    response = client.put("/api/settings", json={"currency_settings": {"usd_to_iqd": 1500}}, headers=auth_headers)
    assert response.status_code == 200

    settings = client.get("/api/settings", headers=auth_headers).get_json()
    assert settings["currency_settings"] == {"default_currency": "USD", "usd_to_iqd": 1500}
    assert settings["voucher_settings"]["expense_accounts"][0]["id"] == "rent"


def test_notifications_read_flow(client, admin, auth_headers):
    for title in ("Uno", "Dos"):
        client.post("/api/notifications", json={"user_id": admin.id, "title": title}, headers=auth_headers)
    other = client.post("/api/notifications", json={"user_id": "someone-else", "title": "Ajena"},
                        headers=auth_headers).get_json()

    data = client.get("/api/notifications", headers=auth_headers).get_json()
    assert data["unread"] == 2

    first_id = data["notifications"][0]["id"]
    assert client.post(f"/api/notifications/{first_id}/read", headers=auth_headers).status_code == 200
    assert client.post(f"/api/notifications/{other['id']}/read", headers=auth_headers).status_code == 403

    response = client.post("/api/notifications/read-all", headers=auth_headers)
    assert response.get_json()["updated"] == 1


def test_audit_log_separates_errors(client, auth_headers):
    client.post("/api/relations", json={"name": "Karim"}, headers=auth_headers)
    db.session.add(AuditLog(level="error", action="ERROR", description="boom"))
    db.session.commit()

    logs = client.get("/api/audit-logs?target_type=relation", headers=auth_headers).get_json()
    assert [log["action"] for log in logs] == ["CREATE"]

    errors = client.get("/api/audit-logs/errors", headers=auth_headers).get_json()
    assert [log["description"] for log in errors] == ["boom"]
