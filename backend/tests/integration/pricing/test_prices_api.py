"""Integration tests for the tier price API

Tests the HTTP surface of tier pricing:
- PUT replaces tiers (200 fully synced, 207 partial failure)
- GET lists tiers with the active flag
- POST .../sync retries a partial failure
- GET .../price quotes a quantity
- Error mapping (400, 404, 409, 422)
"""

import pytest
from uuid import uuid4

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from pricing.locks import item_locks
from models.price_tier import PricedItemKind, PricedItemRef

TIERS = [{"min_qty": 1, "unit_amount": 100}, {"min_qty": 10, "unit_amount": 80}]


def _prices_url(variant):
    return f"/api/v1/variants/{variant.id}/prices"


class TestReplacePrices:
    """Test cases for PUT .../prices"""

    def test_replace_with_bare_array(self, client, variant, memory_gateway):
        response = client.put(_prices_url(variant), json=TIERS)

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "DONE"
        assert data["synced_count"] == 2
        assert [(t["min_qty"], t["max_qty"], t["unit_amount"]) for t in data["tiers"]] == [
            (1, 9, 100),
            (10, None, 80),
        ]
        assert all(t["sync_status"] == "synced" for t in data["tiers"])
        assert len(memory_gateway.active_refs()) == 2

    def test_replace_with_object_body(self, client, lock_tech):
        response = client.put(
            f"/api/v1/lock-techs/{lock_tech.id}/prices",
            json={"currency": "EUR", "tiers": [{"min_qty": 1, "unit_amount": 2500}]},
        )

        assert response.status_code == 200
        tier = response.json()["tiers"][0]
        assert tier["currency"] == "eur"
        assert tier["lock_tech_id"] == str(lock_tech.id)
        assert tier["variant_id"] is None

    def test_partial_failure_returns_207(self, client, variant, memory_gateway):
        client.put(_prices_url(variant), json=TIERS)
        memory_gateway.fail_unit_amounts = {75}

        response = client.put(_prices_url(variant), json=[
            {"min_qty": 1, "unit_amount": 90},
            {"min_qty": 10, "unit_amount": 75},
        ])

        assert response.status_code == 207
        data = response.json()
        assert data["state"] == "PARTIAL_FAILURE"
        assert data["summary"] == "1 of 2 new bands synced; old prices retained"
        failed = [t for t in data["tiers"] if t["sync_status"] == "failed"]
        assert len(failed) == 1
        assert failed[0]["sync_error"]
        assert memory_gateway.archive_calls == []

    @pytest.mark.parametrize("body", [
        [],
        [{"min_qty": 0, "unit_amount": 50}],
        [{"min_qty": 5, "unit_amount": -1}],
        [{"min_qty": 1, "unit_amount": 10}, {"min_qty": 1, "unit_amount": 20}],
        {"tiers": [{"min_qty": 1, "unit_amount": 10, "currency": "usdollar"}]},
        [{"min_qty": 1, "unit_amount": 100}, {"min_qty": 10**20, "unit_amount": 80}],
        [{"min_qty": 1, "unit_amount": 10**20}],
    ])
    def test_invalid_tiers_return_400(self, client, variant, memory_gateway, body):
        response = client.put(_prices_url(variant), json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert memory_gateway.create_calls == []

    def test_malformed_body_returns_422(self, client, variant):
        response = client.put(_prices_url(variant), json={"rows": []})

        assert response.status_code == 422

    def test_unknown_variant_returns_404(self, client):
        response = client.put(f"/api/v1/variants/{uuid4()}/prices", json=TIERS)

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Variant not found"}

    def test_replace_in_progress_returns_409(self, client, variant, monkeypatch):
        from config import get_settings

        monkeypatch.setattr(get_settings(), "REPLACE_LOCK_TIMEOUT_SECONDS", 0.05)
        item = PricedItemRef(PricedItemKind.VARIANT, variant.id)

        with item_locks.hold(item):
            response = client.put(_prices_url(variant), json=TIERS)

        assert response.status_code == 409
        assert response.json()["error"] == "replace_in_progress"


class TestListPrices:
    """Test cases for GET .../prices"""

    @pytest.fixture
    def two_generations(self, client, variant):
        client.put(_prices_url(variant), json=[{"min_qty": 1, "unit_amount": 100}])
        client.put(_prices_url(variant), json=TIERS)

    @pytest.mark.parametrize("flag,expected", [
        (None, 2),
        ("1", 2),
        ("0", 1),
        ("all", 3),
        ("synced", 2),
        ("failed", 0),
    ])
    def test_active_flag(self, client, variant, two_generations, flag, expected):
        params = {"active": flag} if flag is not None else {}

        response = client.get(_prices_url(variant), params=params)

        assert response.status_code == 200
        assert response.json()["total"] == expected

    def test_invalid_active_flag_returns_400(self, client, variant):
        response = client.get(_prices_url(variant), params={"active": "yes"})

        assert response.status_code == 400

    def test_retired_rows_keep_refs(self, client, variant, two_generations):
        retired = client.get(_prices_url(variant), params={"active": "0"}).json()["items"]

        assert retired[0]["remote_price_ref"]
        assert retired[0]["archived_at"] is not None


class TestSyncPrices:
    """Test cases for POST .../prices/sync"""

    def test_sync_completes_partial_failure(self, client, variant, memory_gateway):
        client.put(_prices_url(variant), json=TIERS)
        memory_gateway.fail_unit_amounts = {75}
        client.put(_prices_url(variant), json=[{"min_qty": 1, "unit_amount": 90}, {"min_qty": 10, "unit_amount": 75}])
        memory_gateway.fail_unit_amounts = set()

        response = client.post(f"{_prices_url(variant)}/sync")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "DONE"
        assert len(data["archived_refs"]) == 2

    def test_sync_without_tiers_returns_404(self, client, variant):
        response = client.post(f"{_prices_url(variant)}/sync")

        assert response.status_code == 404


class TestQuote:
    """Test cases for GET .../price"""

    def test_quote_end_to_end(self, client, variant):
        client.put(_prices_url(variant), json=TIERS)

        response = client.get(f"/api/v1/variants/{variant.id}/price", params={"qty": 37})

        assert response.status_code == 200
        data = response.json()
        assert data["unit_amount"] == 80
        assert data["subtotal"] == 2960
        assert data["min_qty"] == 10
        assert data["max_qty"] is None
        assert data["remote_price_ref"]

    @pytest.mark.parametrize("qty", ["0", "-4", "2.5", "many"])
    def test_invalid_qty_returns_400(self, client, variant, qty):
        client.put(_prices_url(variant), json=TIERS)

        response = client.get(f"/api/v1/variants/{variant.id}/price", params={"qty": qty})

        assert response.status_code == 400

    def test_no_active_tiers_returns_404(self, client, lock_tech):
        response = client.get(f"/api/v1/lock-techs/{lock_tech.id}/price", params={"qty": 3})

        assert response.status_code == 404


class TestObservability:
    """Smoke tests for health and metrics endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "healthy"

    def test_metrics_exposes_pricing_counters(self, client, variant):
        client.put(_prices_url(variant), json=TIERS)

        body = client.get("/metrics").text

        assert "lts_tier_replacements_total" in body
        assert "lts_remote_price_syncs_total" in body

    def test_request_id_is_echoed(self, client):
        response = client.get("/ready", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
