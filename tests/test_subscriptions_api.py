"""Tests for the subscriptions API."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from nebula.main import app
from nebula.repositories.log_repository import LogRepository


@pytest.fixture
def client():
    return TestClient(app)


def _payload(**overrides):
    data = {
        "name": "Netflix",
        "price": "15.99",
        "currency": "usd",
        "payment_cycle": "monthly",
        "start_date": "2024-03-15",
    }
    data.update(overrides)
    return data


def _create(client, **overrides):
    response = client.post("/v1/subscriptions/", json=_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateSubscription:
    def test_monthly_next_due_date(self, client):
        data = _create(client)

        assert data["name"] == "Netflix"
        assert Decimal(data["price"]) == Decimal("15.99")
        assert data["currency"] == "USD"
        assert data["next_due_date"] == "2024-04-15"
        assert data["status"] == "active"
        assert data["notify_enabled"] is False
        assert data["notify_days"] == "7,3,1,0"
        assert data["notify_time"] == "09:00"
        assert data["notify_channel_ids"] is None

    def test_month_end_clamps(self, client):
        assert _create(client, start_date="2024-01-31")["next_due_date"] == "2024-02-29"

    def test_yearly_from_leap_day(self, client):
        data = _create(client, payment_cycle="yearly", start_date="2024-02-29")
        assert data["next_due_date"] == "2025-02-28"

    def test_custom_days(self, client):
        data = _create(client, payment_cycle="custom_days", custom_days=10)
        assert data["next_due_date"] == "2024-03-25"
        assert data["custom_days"] == 10

    def test_explicit_next_due_date(self, client):
        assert _create(client, next_due_date="2024-03-20")["next_due_date"] == "2024-03-20"

    def test_notify_settings(self, client):
        data = _create(
            client,
            notify_enabled=True,
            notify_days="3,0",
            notify_time="20:30",
            notify_channel_ids=[2, 1],
        )
        assert data["notify_enabled"] is True
        assert data["notify_days"] == "3,0"
        assert data["notify_time"] == "20:30"
        assert data["notify_channel_ids"] == [2, 1]

    def test_custom_days_required(self, client):
        response = client.post("/v1/subscriptions/", json=_payload(payment_cycle="custom_days"))
        assert response.status_code == 400
        assert response.json()["detail"] == "custom_days required"

    @pytest.mark.parametrize(
        "overrides",
        [{"start_date": "2024-02-30"}, {"next_due_date": "2023-02-29"}],
    )
    def test_invalid_dates(self, client, overrides):
        response = client.post("/v1/subscriptions/", json=_payload(**overrides))
        assert response.status_code == 400
        assert "Invalid" in response.json()["detail"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"currency": "US"},
            {"currency": "U$D"},
            {"price": "-1"},
            {"payment_cycle": "weekly"},
            {"notify_time": "25:00"},
            {"url": "ftp://example.com"},
            {"notify_channel_ids": [0]},
            {"name": "   "},
        ],
    )
    def test_validation_errors(self, client, overrides):
        response = client.post("/v1/subscriptions/", json=_payload(**overrides))
        assert response.status_code == 422

    def test_create_is_logged(self, client, db_session):
        data = _create(client)

        entries = LogRepository(db_session).get_all(scope="subscription.create")
        assert len(entries) == 1
        assert entries[0].meta == {"id": data["id"], "name": "Netflix"}


class TestReadSubscriptions:
    def test_list_ordered_by_next_due_date(self, client):
        later = _create(client, name="Later", start_date="2099-05-01")
        sooner = _create(client, name="Sooner", start_date="2099-01-01")

        response = client.get("/v1/subscriptions/")

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        data = response.json()
        assert [s["id"] for s in data] == [sooner["id"], later["id"]]
        assert all(isinstance(s["days_left"], int) and s["days_left"] > 0 for s in data)

    def test_list_pagination(self, client):
        for i in range(3):
            _create(client, name=f"Sub {i}")

        response = client.get("/v1/subscriptions/?skip=1&limit=1")

        assert response.headers["X-Total-Count"] == "3"
        assert len(response.json()) == 1

    def test_get(self, client):
        created = _create(client)
        response = client.get(f"/v1/subscriptions/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Netflix"

    def test_get_not_found(self, client):
        response = client.get("/v1/subscriptions/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Subscription not found"


class TestUpdateSubscription:
    def test_full_replacement_recomputes_due_date(self, client):
        created = _create(client)

        response = client.put(
            f"/v1/subscriptions/{created['id']}",
            json=_payload(name="Netflix 4K", payment_cycle="yearly", start_date="2024-02-29"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Netflix 4K"
        assert data["payment_cycle"] == "yearly"
        assert data["next_due_date"] == "2025-02-28"

    def test_update_invalid_custom_days(self, client):
        created = _create(client)
        response = client.put(
            f"/v1/subscriptions/{created['id']}",
            json=_payload(payment_cycle="custom_days", custom_days=0),
        )
        assert response.status_code == 400

    def test_update_not_found(self, client):
        response = client.put("/v1/subscriptions/999", json=_payload())
        assert response.status_code == 404


class TestRenewSubscription:
    def test_renew_advances_one_cycle(self, client, db_session):
        created = _create(client, start_date="2024-01-31")
        assert created["next_due_date"] == "2024-02-29"

        response = client.post(f"/v1/subscriptions/{created['id']}/renew")

        assert response.status_code == 200
        data = response.json()
        assert data["start_date"] == "2024-02-29"
        assert data["next_due_date"] == "2024-03-29"

        entry = LogRepository(db_session).get_all(scope="subscription.renew")[0]
        assert entry.meta["previous_next_due_date"] == "2024-02-29"

    def test_renew_custom_days(self, client):
        created = _create(client, payment_cycle="custom_days", custom_days=30)

        data = client.post(f"/v1/subscriptions/{created['id']}/renew").json()

        assert data["start_date"] == "2024-04-14"
        assert data["next_due_date"] == "2024-05-14"

    def test_renew_not_found(self, client):
        assert client.post("/v1/subscriptions/999/renew").status_code == 404


class TestDeleteSubscription:
    def test_delete(self, client):
        created = _create(client)

        response = client.delete(f"/v1/subscriptions/{created['id']}")

        assert response.status_code == 204
        assert client.get(f"/v1/subscriptions/{created['id']}").status_code == 404

    def test_delete_not_found(self, client):
        assert client.delete("/v1/subscriptions/999").status_code == 404


class TestStartDateFormat:
    @pytest.mark.parametrize("start_date", ["2024-01-31\n", "２０２４-０１-３１", "0000-01-31"])
    def test_rejects_non_iso_start_dates(self, client, start_date):
        response = client.post("/v1/subscriptions/", json=_payload(start_date=start_date))
        assert response.status_code == 400
        assert client.get("/v1/subscriptions/").json() == []
