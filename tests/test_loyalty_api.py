"""Tests for the loyalty endpoints."""
from boxoffice.models.customer import Customer
from tests.conftest import create_test_customer, create_test_event


def _attend(client, customer_id: str, event_id: str, times: int):
    for _ in range(times):
        resp = client.post("/api/reservations/confirmed", json={
            "customer_id": customer_id, "event_id": event_id, "ticket_type": "General",
        })
        assert resp.status_code == 201, resp.text


class TestLoyaltyEndpoints:

    def test_customer_summary(self, client):
        customer = create_test_customer(client)
        event = create_test_event(client)
        _attend(client, customer["customer_id"], event["event_id"], 6)
        resp = client.get(f"/api/loyalty/customers/{customer['customer_id']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["attendance_count"] == 6
        assert data["free_passes"] == 1
        assert data["is_frequent"] is True
        assert data["attendances_until_next_pass"] == 4

    def test_statistics_and_ranking(self, client):
        top = create_test_customer(client, first_name="Top")
        create_test_customer(client, first_name="Idle")
        event = create_test_event(client)
        _attend(client, top["customer_id"], event["event_id"], 5)

        stats = client.get("/api/loyalty/statistics").json()
        assert stats["total_customers"] == 2
        assert stats["frequent_customers"] == 1
        assert stats["frequent_percentage"] == 50.0

        ranking = client.get("/api/loyalty/ranking", params={"limit": 1}).json()
        assert [c["customer_id"] for c in ranking] == [top["customer_id"]]

    def test_integrity_and_reconcile(self, client, db):
        customer = create_test_customer(client, first_name="Drift")
        row = db.get(Customer, customer["customer_id"])
        row.attendance_count = 5
        db.commit()

        report = client.get("/api/loyalty/integrity").json()
        assert report["system_consistent"] is False
        assert report["inconsistencies_found"] == 1
        eligible = client.get("/api/loyalty/eligible").json()
        assert [c["customer_id"] for c in eligible] == [customer["customer_id"]]

        resp = client.post("/api/loyalty/reconcile")
        assert resp.status_code == 200
        assert resp.json()["inconsistencies_found"] == 1
        assert client.post("/api/loyalty/reconcile").json()["inconsistencies_found"] == 0
        assert client.get("/api/loyalty/integrity").json()["system_consistent"] is True
        assert client.get(f"/api/customers/{customer['customer_id']}").json()["free_passes"] == 1


class TestHealth:

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}
