"""
Tests de reparto de ganancias: mes calculado, periodos manuales y partes de socios
"""
import pytest

from backoffice.db import db
from backoffice.models import MonthlyProfit, ProfitShare
from backoffice.services.bookings import create_booking
from backoffice.services.profit_sharing import (
    compute_system_profit, seed_monthly_profit, create_manual_profit, save_profit_share,
)
from backoffice.utils.parsing import parse_date


def test_system_profit_only_counts_the_month(app, customer, supplier):
    for issue_date, sale in (("2024-05-10", 350), ("2024-06-01", 500)):
        create_booking({
            "pnr": "MAY001", "client_id": customer.id, "supplier_id": supplier.id,
            "issue_date": parse_date(issue_date),
            "passengers": [{"name": "Ali Hassan", "purchase_price": 300, "sale_price": sale}],
        })
    db.session.commit()

    result = compute_system_profit("2024-05")
    assert result["bookings"] == 50
    assert result["total"] == 50

    with pytest.raises(ValueError):
        compute_system_profit("mayo")


def test_seed_month_recomputes_shares(app):
    profit = seed_monthly_profit("2024-05", total_profit=1000)
    save_profit_share(profit, {"partner_id": "p1", "partner_name": "Omar", "percentage": 30})
    db.session.commit()
    assert profit.shares[0].amount == 300

    seed_monthly_profit("2024-05", total_profit=2000)
    db.session.commit()
    assert MonthlyProfit.query.count() == 1
    assert profit.shares[0].amount == 600
    assert profit.distributed == 600


def test_shares_cannot_exceed_100(app):
    profit = seed_monthly_profit("2024-07", total_profit=500)
    save_profit_share(profit, {"partner_id": "p1", "percentage": 70})

    with pytest.raises(ValueError, match="100"):
        save_profit_share(profit, {"partner_id": "p2", "percentage": 40})

    share = save_profit_share(profit, {"partner_id": "p2", "percentage": 30})
    assert share.amount == 150


def test_manual_profit_rest_goes_to_agency(app):
    profit = create_manual_profit({
        "from_date": parse_date("2024-01-01"),
        "to_date": parse_date("2024-03-31"),
        "profit": 1000,
        "currency": "IQD",
        "partners": [
            {"partner_id": "p1", "partner_name": "Omar", "percentage": 25},
            {"partner_id": "p2", "partner_name": "Layla", "percentage": 15},
        ],
    })
    db.session.commit()

    assert profit.id.startswith("MP-")
    assert profit.from_system is False
    assert [(s.percentage, s.amount) for s in profit.shares] == [(25, 250), (15, 150)]
    assert profit.distributed == 400


def test_manual_profit_validation(app):
    base = {"from_date": parse_date("2024-01-01"), "to_date": parse_date("2024-01-31"), "profit": 100}

    with pytest.raises(ValueError):
        create_manual_profit({**base, "profit": 0})
    with pytest.raises(ValueError):
        create_manual_profit({**base, "from_date": parse_date("2024-02-01")})
    with pytest.raises(ValueError):
        create_manual_profit({**base, "partners": [
            {"partner_id": "p1", "percentage": 60}, {"partner_id": "p2", "percentage": 60},
        ]})
    assert MonthlyProfit.query.count() == 0


def test_profit_sharing_api(client, auth_headers):
    response = client.post("/api/profit-sharing/months", json={"month": "2024-08", "total_profit": "1,200"},
                           headers=auth_headers)
    assert response.status_code == 200

    response = client.post("/api/profit-sharing/2024-08/shares",
                           json={"partner_id": "p1", "partner_name": "Omar", "percentage": 50},
                           headers=auth_headers)
    assert response.status_code == 201
    share_id = response.get_json()["share"]["id"]
    assert response.get_json()["share"]["amount"] == 600

    response = client.put(f"/api/profit-sharing/shares/{share_id}", json={"percentage": 25},
                          headers=auth_headers)
    assert response.get_json()["share"]["amount"] == 300

    listed = client.get("/api/profit-sharing", headers=auth_headers).get_json()
    assert listed[0]["id"] == "2024-08"
    assert listed[0]["distributed"] == 300

    response = client.delete(f"/api/profit-sharing/shares/{share_id}", headers=auth_headers)
    assert response.status_code == 200
    assert ProfitShare.query.count() == 0

    assert client.get("/api/profit-sharing").status_code == 401
