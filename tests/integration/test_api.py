"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from household_ledger.infrastructure.database.models import Loan, RecurringBill
from tests.conftest import HOUSEHOLD_ID, MARCH


@pytest.fixture
def bill_payload():
    return {
        "owner_id": "member_simon",
        "name": "Internet",
        "amount_cents": 3999,
        "currency": "EUR",
        "category": "Utilities",
        "day_of_month": 20,
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get(f"/v1/households/{HOUSEHOLD_ID}/settlement", params={"month": MARCH})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "household_settlement_views_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_and_list_bills(client: TestClient, bill_payload: dict):
    """Test POST then GET of a household's bills"""
    response = client.post(f"/v1/households/{HOUSEHOLD_ID}/bills", json=bill_payload)

    assert response.status_code == 201
    created = response.json()
    assert created["household_id"] == HOUSEHOLD_ID
    assert created["is_active"] is True

    response = client.get(f"/v1/households/{HOUSEHOLD_ID}/bills")
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [created["id"]]


@pytest.mark.parametrize(
    "field,value",
    [
        ("amount_cents", 0),
        ("currency", "euro"),
        ("day_of_month", 32),
        ("day_of_month", 0),
        ("name", ""),
    ],
)
def test_create_bill_validation(client: TestClient, bill_payload: dict, field: str, value):
    """Test invalid bill input is rejected before reaching the store"""
    bill_payload[field] = value

    response = client.post(f"/v1/households/{HOUSEHOLD_ID}/bills", json=bill_payload)

    assert response.status_code == 422


def test_update_and_deactivate_bill(client: TestClient, electric_bill: RecurringBill):
    response = client.patch(f"/v1/bills/{electric_bill.id}", json={"amount_cents": 9000})
    assert response.status_code == 200
    assert response.json()["amount_cents"] == 9000
    assert response.json()["name"] == "Electric"

    response = client.delete(f"/v1/bills/{electric_bill.id}")
    assert response.status_code == 204

    assert client.get(f"/v1/households/{HOUSEHOLD_ID}/bills").json() == []
    assert client.get(f"/v1/bills/{electric_bill.id}").json()["is_active"] is False


def test_update_bill_ignores_explicit_nulls(client: TestClient, electric_bill: RecurringBill):
    """Test null fields in a PATCH body leave the stored values alone"""
    response = client.patch(f"/v1/bills/{electric_bill.id}", json={"name": None, "category": None, "amount_cents": 9100})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Electric"
    assert data["category"] == "Utilities"
    assert data["amount_cents"] == 9100


def test_bill_not_found(client: TestClient):
    assert client.get("/v1/bills/missing").status_code == 404
    assert client.delete("/v1/bills/missing").status_code == 404
    response = client.patch("/v1/bill-payments/missing_2024-03", json={"is_paid": True})
    assert response.status_code == 404


def test_set_bill_payment_status(client: TestClient, electric_bill: RecurringBill):
    payment_id = f"{electric_bill.id}_{MARCH}"

    response = client.patch(f"/v1/bill-payments/{payment_id}", json={"is_paid": True})

    assert response.status_code == 200
    data = response.json()
    assert data["is_paid"] is True
    assert data["paid_at"] is not None
    assert data["month_year"] == MARCH


def test_settlement_view(client: TestClient, electric_bill: RecurringBill, car_loan: Loan):
    """Test GET /v1/households/{id}/settlement merges bills and installments"""
    response = client.get(f"/v1/households/{HOUSEHOLD_ID}/settlement", params={"month": MARCH})

    assert response.status_code == 200
    data = response.json()
    assert data["month_year"] == MARCH
    assert data["month_name"] == "March 2024"
    assert [(i["kind"], i["name"], i["due_day"], i["amount_cents"], i["is_paid"]) for i in data["items"]] == [
        ("bill", "Electric", 5, 8000, False),
        ("loan", "Car (Installment)", 10, 15000, False),
    ]
    assert data["items"][0]["payment_id"] == f"{electric_bill.id}_{MARCH}"
    assert data["items"][1]["due_date"] == "2024-03-10"


def test_settlement_view_rejects_bad_month(client: TestClient):
    response = client.get(f"/v1/households/{HOUSEHOLD_ID}/settlement", params={"month": "2024-13"})
    assert response.status_code == 422


def test_settlement_view_empty_household(client: TestClient):
    response = client.get("/v1/households/nobody/settlement", params={"month": MARCH})
    assert response.status_code == 200
    assert response.json()["items"] == []


def test_mark_items_paid(client: TestClient, electric_bill: RecurringBill, car_loan: Loan):
    """Test PUT on settlement items for both kinds"""
    base = f"/v1/households/{HOUSEHOLD_ID}/settlement/{MARCH}/items"

    response = client.put(f"{base}/bill/{electric_bill.id}", json={"is_paid": True})
    assert response.status_code == 200
    assert response.json()["items"][0]["is_paid"] is True

    response = client.put(f"{base}/loan/{car_loan.id}", json={"is_paid": True})
    assert response.status_code == 200
    assert all(i["is_paid"] for i in response.json()["items"])
    assert client.get(f"/v1/loans/{car_loan.id}").json()["remaining_cents"] == 285000


def test_loan_installment_state_conflicts(client: TestClient, car_loan: Loan):
    """Test unpaying or re-paying an installment returns 409"""
    base = f"/v1/households/{HOUSEHOLD_ID}/settlement/{MARCH}/items/loan/{car_loan.id}"

    assert client.put(base, json={"is_paid": False}).status_code == 409
    assert client.put(base, json={"is_paid": True}).status_code == 200
    assert client.put(base, json={"is_paid": True}).status_code == 409


def test_mark_item_paid_rejects_unknown_kind_and_item(client: TestClient):
    base = f"/v1/households/{HOUSEHOLD_ID}/settlement/{MARCH}/items"

    assert client.put(f"{base}/rent/abc", json={"is_paid": True}).status_code == 422
    assert client.put(f"{base}/bill/missing", json={"is_paid": True}).status_code == 404


def test_loan_payments(client: TestClient, car_loan: Loan):
    """Test recording a payment defaults household and currency from the loan"""
    response = client.post(f"/v1/loans/{car_loan.id}/payments", json={"amount_cents": 50000, "note": "Bonus"})

    assert response.status_code == 201
    payment = response.json()
    assert payment["currency"] == "EUR"
    assert payment["household_id"] == HOUSEHOLD_ID
    assert payment["month_year"] is None

    history = client.get(f"/v1/loans/{car_loan.id}/payments").json()
    assert [p["id"] for p in history] == [payment["id"]]
    assert client.get(f"/v1/loans/{car_loan.id}").json()["remaining_cents"] == 250000


def test_loan_payment_rejects_bad_month_tag(client: TestClient, car_loan: Loan):
    response = client.post(f"/v1/loans/{car_loan.id}/payments", json={"amount_cents": 100, "month_year": "03-2024"})
    assert response.status_code == 422


def test_create_loan_and_listings(client: TestClient):
    response = client.post(
        f"/v1/households/{HOUSEHOLD_ID}/loans",
        json={"owner_id": "member_reni", "name": "Sofa", "original_cents": 90000, "currency": "EUR"},
    )
    assert response.status_code == 201
    loan = response.json()
    assert loan["remaining_cents"] == 90000
    assert loan["monthly_installment_cents"] is None

    client.post(f"/v1/loans/{loan['id']}/payments", json={"amount_cents": 90000})

    assert client.get(f"/v1/households/{HOUSEHOLD_ID}/loans").json() == []
    assert [item["id"] for item in client.get(f"/v1/households/{HOUSEHOLD_ID}/loans/all").json()] == [loan["id"]]

    assert client.delete(f"/v1/loans/{loan['id']}").status_code == 204
    assert client.get(f"/v1/loans/{loan['id']}").status_code == 404


def test_savings_endpoints(client: TestClient):
    response = client.post(
        f"/v1/households/{HOUSEHOLD_ID}/savings",
        json={"owner_id": "member_reni", "description": "Car repair", "withdrawn_cents": 40000, "currency": "EUR"},
    )
    assert response.status_code == 201
    withdrawal = response.json()
    assert withdrawal["progress_percent"] == 0

    response = client.post(f"/v1/savings/{withdrawal['id']}/paybacks", json={"amount_cents": 10000})
    assert response.status_code == 201
    assert response.json()["currency"] == "EUR"

    fetched = client.get(f"/v1/savings/{withdrawal['id']}").json()
    assert fetched["paid_back_cents"] == 10000
    assert fetched["progress_percent"] == 25
    assert len(client.get(f"/v1/households/{HOUSEHOLD_ID}/savings").json()) == 1
    assert len(client.get(f"/v1/savings/{withdrawal['id']}/paybacks").json()) == 1

    assert client.delete(f"/v1/savings/{withdrawal['id']}").status_code == 204
    assert client.get(f"/v1/savings/{withdrawal['id']}").status_code == 404


def test_summary_endpoint(client: TestClient, electric_bill: RecurringBill, car_loan: Loan):
    response = client.get(f"/v1/households/{HOUSEHOLD_ID}/summary", params={"month": MARCH})

    assert response.status_code == 200
    data = response.json()
    assert data["household_id"] == HOUSEHOLD_ID
    assert data["loans_outstanding_cents"] == {"EUR": 300000}
    assert data["due_this_month_cents"] == {"EUR": 23000}
    assert data["unpaid_item_count"] == 2


def test_create_defaults_to_configured_currency(client: TestClient, bill_payload: dict):
    del bill_payload["currency"]

    response = client.post(f"/v1/households/{HOUSEHOLD_ID}/bills", json=bill_payload)

    assert response.status_code == 201
    assert response.json()["currency"] == "EUR"
