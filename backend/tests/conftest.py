"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, singleton resets, and store/engine fixtures
"""

import pytest

from wtb_offers.chat.discord_client import reset_discord_client
from wtb_offers.models.offer import EngineConfig
from wtb_offers.services.deal_messenger import reset_deal_messenger
from wtb_offers.services.interaction_handler import reset_interaction_handler
from wtb_offers.services.offer_service import OfferService, reset_offer_service
from wtb_offers.stores.factory import reset_store

from tests.fixtures.fake_store import FakeStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (HTTP layer with fake store)"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset module-level singletons before and after each test.

    WHAT: Clear store, service, client and handler caches
    WHY: Prevent test pollution through shared instances
    """
    def reset():
        reset_interaction_handler()
        reset_deal_messenger()
        reset_offer_service()
        reset_discord_client()
        reset_store()

    reset()
    yield
    reset()


@pytest.fixture
def engine_config():
    """Default bidding rules: 2.5 step, 1.21 VAT multiplier."""
    return EngineConfig()


@pytest.fixture
def fake_store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def offer_service(fake_store, engine_config):
    """OfferService over the fake store."""
    return OfferService(fake_store, engine_config)
