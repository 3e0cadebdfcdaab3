"""
Integration tests for offer and status endpoints.

WHAT: Test /api/v1/offers, /api/v1/deals/{id}/best-offer and /api/v1/health
WHY: Ensure the HTTP layer relays engine results and maps errors correctly
HOW: TestClient with the service/store factories patched to use the fake store
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wtb_offers.main import app
from wtb_offers.services.offer_service import OfferService


@pytest.fixture
def client():
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def service(fake_store, engine_config):
    fake_store.add_seller("SE-00001")
    fake_store.add_deal("rec1", fallback_ceiling=150)
    with patch("wtb_offers.api.v1.endpoints.offers.get_offer_service",
               return_value=OfferService(fake_store, engine_config)) as mock:
        yield mock.return_value


@pytest.mark.integration
class TestSubmitOfferEndpoint:
    """Test POST /api/v1/offers."""

    def test_accepted(self, client, service, fake_store):
        response = client.post("/api/v1/offers", json={
            "dealId": "rec1", "sellerCode": "00001", "price": "120,50", "taxType": "Margin",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is True
        assert data["outcome"] == "accepted"
        assert data["normalizedValue"] == 120.5
        assert data["bidId"] == "bid1"
        assert data["currentBest"]["display"] == "€150.00 (Margin) / €123.97 (VAT0)"
        assert data["maxAllowed"] is None
        assert fake_store.created[0].price == 120.5

    def test_numeric_price(self, client, service):
        response = client.post("/api/v1/offers", json={
            "dealId": "rec1", "sellerCode": "00001", "price": 100, "taxType": "VAT0",
        })

        assert response.json()["normalizedValue"] == pytest.approx(121.0)

    def test_undercut_rejection(self, client, service):
        response = client.post("/api/v1/offers", json={
            "dealId": "rec1", "sellerCode": "00001", "price": "200", "taxType": "VAT21",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is False
        assert data["outcome"] == "undercut_required"
        assert data["maxAllowed"]["raw"] == 147.5
        assert data["maxAllowed"]["taxType"] == "VAT21"
        assert data["maxAllowed"]["display"] == "€147.50 (VAT21) / €121.90 (VAT0)"

    def test_input_rejection(self, client, service):
        response = client.post("/api/v1/offers", json={
            "dealId": "rec1", "sellerCode": "SE-1", "price": "10", "taxType": "Margin",
        })

        assert response.status_code == 200
        assert response.json()["outcome"] == "invalid_seller_code"

    def test_unknown_deal_is_rejected_not_retried(self, client, service, fake_store):
        response = client.post("/api/v1/offers", json={
            "dealId": "no-such-deal", "sellerCode": "00001", "price": "100", "taxType": "Margin",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is False
        assert data["outcome"] == "deal_not_found"
        assert fake_store.created == []

    def test_missing_fields(self, client, service):
        response = client.post("/api/v1/offers", json={"dealId": "rec1"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_save_failure_is_503(self, client, service, fake_store):
        fake_store.failing = {"create_bid"}

        response = client.post("/api/v1/offers", json={
            "dealId": "rec1", "sellerCode": "00001", "price": "100", "taxType": "Margin",
        })

        assert response.status_code == 503
        assert response.json()["error"] == "OFFER_NOT_SAVED"


@pytest.mark.integration
class TestBestOfferEndpoint:
    """Test GET /api/v1/deals/{deal_id}/best-offer."""

    def test_with_offers(self, client, service, fake_store):
        fake_store.add_bid("rec1", 90, "VAT0")

        response = client.get("/api/v1/deals/rec1/best-offer")

        assert response.status_code == 200
        data = response.json()
        assert data["dealId"] == "rec1"
        assert data["best"]["raw"] == 90
        assert data["best"]["display"] == "€90.00 (VAT0) / €108.90 (VAT21)"
        assert data["undercutStep"] == 2.5
        assert data["maxAllowedGross"] == pytest.approx(106.4)

    def test_fallback_ceiling(self, client, service):
        data = client.get("/api/v1/deals/rec1/best-offer").json()

        assert data["best"]["taxType"] == "Margin"
        assert data["maxAllowedGross"] == 147.5

    def test_no_baseline(self, client, service):
        data = client.get("/api/v1/deals/other/best-offer").json()

        assert data["best"] is None
        assert data["maxAllowedGross"] is None


@pytest.mark.integration
class TestStatusEndpoints:
    """Test / and /api/v1/health."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client, fake_store):
        with patch("wtb_offers.api.v1.endpoints.status.get_store", return_value=fake_store):
            response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["store"]["available"] is True

    def test_health_degraded(self, client, fake_store):
        fake_store.failing = {"ping"}

        with patch("wtb_offers.api.v1.endpoints.status.get_store", return_value=fake_store):
            data = client.get("/api/v1/health").json()

        assert data["status"] == "degraded"
        assert data["components"]["store"]["error"] == "ping failed"
