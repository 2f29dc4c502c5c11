import json
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from apps.draft_orders.app import create_app
from apps.draft_orders.services.tiers.config_cache import StaticTierConfigProvider
from apps.draft_orders.services.tiers.models import TierDefinition, TierConfig


def make_response(status: int, body=None, headers: dict = None) -> requests.Response:
    """Real requests.Response with a canned status/body/headers."""
    r = requests.Response()
    r.status_code = status
    if body is None:
        r._content = b""
    elif isinstance(body, (dict, list)):
        r._content = json.dumps(body).encode("utf-8")
        r.headers["Content-Type"] = "application/json"
    else:
        r._content = str(body).encode("utf-8")
    if headers:
        r.headers.update(headers)
    return r


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def spend_tiers():
    return (
        TierDefinition("DIAMOND",  "DIAMOND",  8, Decimal("5000")),
        TierDefinition("PLATINUM", "PLATINUM", 6, Decimal("2500")),
        TierDefinition("GOLD",     "GOLD",     4, Decimal("1000")),
        TierDefinition("SILVER",   "SILVER",   2, Decimal("500")),
        TierDefinition("MEMBER",   "MEMBER",   0, Decimal("0")),
    )


@pytest.fixture
def settings_blob():
    return {
        "current": {
            "tier_prioritize_tags": True,
            "tier_1_name": "BLACK DIAMOND", "tier_1_tag": "BLACK DIAMOND", "tier_1_discount": 12, "tier_1_threshold": "20000",
            "tier_2_name": "DIAMOND",       "tier_2_tag": "DIAMOND",       "tier_2_discount": 9,  "tier_2_threshold": "8000",
            "tier_3_name": "PLATINUM",      "tier_3_tag": "PLATINUM",      "tier_3_discount": 7,  "tier_3_threshold": "4000",
            "tier_4_name": "GOLD",          "tier_4_tag": "GOLD",          "tier_4_discount": 5,  "tier_4_threshold": "1500",
            "tier_5_name": "SILVER",        "tier_5_tag": "SILVER",        "tier_5_discount": 3,  "tier_5_threshold": "600",
            "tier_6_name": "MEMBER",        "tier_6_tag": "MEMBER",        "tier_6_discount": 0,  "tier_6_threshold": "0",
        }
    }


@pytest.fixture
def shopify():
    client = MagicMock()
    client.create_draft_order.return_value = {
        "id": 1122334455,
        "invoice_url": "https://test-shop.myshopify.com/123/invoices/abc",
        "total_price": "57.57",
    }
    return client


@pytest.fixture
def app(shopify):
    app = create_app({
        "TESTING": True,
        "SHOPIFY_STORE": "test-shop.myshopify.com",
        "SHOPIFY_TOKEN": "shpat_test_token_123456",
        "SHOPIFY_CLIENT": shopify,
        "TIER_PROVIDER": StaticTierConfigProvider(),
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()
