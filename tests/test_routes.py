import json

import pytest

from apps.draft_orders.app import create_app
from apps.draft_orders.errors import ConfigurationError, RateLimitExhaustedError, RemoteAPIError, TransientRemoteError
from apps.draft_orders.services.tiers.config_cache import StaticTierConfigProvider, ThemeTierConfigProvider

URL = "/api/create-draft-order"


def _post(client, body):
    return client.post(URL, data=json.dumps(body), content_type="application/json")


def _items():
    return [{"variant_id": "44556677", "quantity": 3, "price": 19.99, "discount_percent": 8}]


class TestCreateDraftOrderRoute:
    def test_applies_server_tier(self, client, shopify):
        shopify.get_customer.return_value = {"id": 123, "total_spent": "0", "tags": "Gold"}
        resp = _post(client, {"customer_id": "123", "items": _items()})

        assert resp.status_code == 200
        assert resp.get_json() == {
            "success": True,
            "invoice_url": "https://test-shop.myshopify.com/123/invoices/abc",
            "draft_order_id": 1122334455,
            "total_price": "57.57",
        }
        sent = shopify.create_draft_order.call_args[0][0]
        assert sent["customer"] == {"id": 123}
        assert sent["line_items"][0]["applied_discount"]["value"] == "4"
        assert sent["line_items"][0]["applied_discount"]["amount"] == "2.40"

    def test_forged_discount_ignored(self, client, shopify):
        shopify.get_customer.return_value = {"id": 123, "total_spent": "0", "tags": ""}
        items = [{"variant_id": "1", "quantity": 1, "price": 100, "discount_percent": 100}]
        resp = _post(client, {"customer_id": "123", "items": items})
        assert resp.status_code == 200
        line = shopify.create_draft_order.call_args[0][0]["line_items"][0]
        assert "applied_discount" not in line

    def test_profile_failure_still_creates_order(self, client, shopify):
        shopify.get_customer.side_effect = RemoteAPIError("GET customers/123.json failed 404", 404)
        resp = _post(client, {"customer_id": "123", "items": _items()})
        assert resp.status_code == 200
        line = shopify.create_draft_order.call_args[0][0]["line_items"][0]
        assert "applied_discount" not in line

    def test_list_tags_profile(self, client, shopify):
        shopify.get_customer.return_value = {"id": 1, "total_spent": "0", "tags": ["GOLD"]}
        resp = _post(client, {"customer_id": "1", "items": _items()})
        assert resp.status_code == 200
        line = shopify.create_draft_order.call_args[0][0]["line_items"][0]
        assert line["applied_discount"]["value"] == "4"

    @pytest.mark.parametrize("customer", ["oops", {"id": 1, "total_spent": "0", "tags": {"GOLD": 1}}])
    def test_unreadable_profile_still_creates_order(self, client, shopify, customer):
        shopify.get_customer.return_value = customer
        resp = _post(client, {"customer_id": "1", "items": _items()})
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
        line = shopify.create_draft_order.call_args[0][0]["line_items"][0]
        assert "applied_discount" not in line

    def test_blank_customer_id_uses_email(self, client, shopify):
        resp = _post(client, {"customer_id": "   ", "customer_email": "a@b.co", "items": _items()})
        assert resp.status_code == 200
        shopify.get_customer.assert_not_called()
        sent = shopify.create_draft_order.call_args[0][0]
        assert sent["email"] == "a@b.co"
        assert "customer" not in sent

    def test_missing_draft_in_response(self, client, shopify):
        shopify.create_draft_order.side_effect = RemoteAPIError("Draft order missing from response", 201, {})
        resp = _post(client, {"customer_email": "a@b.co", "items": _items()})
        assert resp.status_code == 500
        assert resp.get_json() == {
            "error": "Failed to create draft order",
            "message": "Draft order missing from response",
            "status": 201,
        }

    def test_email_only(self, client, shopify):
        resp = _post(client, {"customer_email": "a@b.co", "items": _items()})
        assert resp.status_code == 200
        shopify.get_customer.assert_not_called()
        sent = shopify.create_draft_order.call_args[0][0]
        assert sent["email"] == "a@b.co"
        assert "customer" not in sent

    @pytest.mark.parametrize("body,msg", [
        ({}, "No items provided"),
        ({"items": []}, "No items provided"),
        ({"items": [{"quantity": 1, "price": 1}]}, "Item 0: variant_id is required"),
        ({"items": [{"variant_id": "1", "quantity": 1, "price": 1, "discount_percent": 250}]},
         "Item 0: discount_percent must be between 0 and 100"),
    ])
    def test_validation(self, client, shopify, body, msg):
        resp = _post(client, body)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": msg}
        shopify.create_draft_order.assert_not_called()

    def test_non_json_body(self, client):
        resp = client.post(URL, data="items=1", content_type="text/plain")
        assert resp.status_code == 400

    @pytest.mark.parametrize("error", [
        RateLimitExhaustedError("Shopify API rate limit exceeded. Please try again later.", 429),
        TransientRemoteError("Shopify API error: 503 - down", 503, "down"),
        RemoteAPIError("Shopify API error: 422 - bad variant", 422, "bad variant"),
    ])
    def test_shopify_failure_surfaced(self, client, shopify, error):
        shopify.create_draft_order.side_effect = error
        resp = _post(client, {"customer_email": "a@b.co", "items": _items()})
        assert resp.status_code == 500
        data = resp.get_json()
        assert data["error"] == "Failed to create draft order"
        assert data["message"] == str(error)
        assert data["status"] == error.status_code

    def test_unexpected_error(self, client, shopify):
        shopify.create_draft_order.side_effect = KeyError("draft_order")
        resp = _post(client, {"customer_email": "a@b.co", "items": _items()})
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Internal server error"

    def test_get_not_allowed(self, client):
        resp = client.get(URL)
        assert resp.status_code == 405
        assert resp.get_json() == {"error": "Method not allowed"}

    def test_cors_preflight(self, client):
        resp = client.options(URL, headers={
            "Origin": "https://shop.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })
        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    def test_health(self, client):
        assert client.get("/health").get_json() == {"ok": True, "service": "draft_orders"}


class TestAppFactory:
    def test_missing_credentials_fail_fast(self):
        with pytest.raises(ConfigurationError) as exc:
            create_app({"SHOPIFY_STORE": None, "SHOPIFY_TOKEN": None})
        assert "SHOPIFY_STORE" in str(exc.value)

    def test_bad_tier_source(self):
        with pytest.raises(ConfigurationError):
            create_app({"SHOPIFY_STORE": "s.myshopify.com", "SHOPIFY_TOKEN": "t", "TIER_CONFIG_SOURCE": "db"})

    def test_theme_provider_by_default(self):
        app = create_app({"SHOPIFY_STORE": "s.myshopify.com", "SHOPIFY_TOKEN": "t", "TIER_CONFIG_SOURCE": "theme"})
        assert isinstance(app.config["TIER_PROVIDER"], ThemeTierConfigProvider)
        assert app.config["TIER_PROVIDER"].ttl == app.config["TIER_CONFIG_TTL"]

    def test_static_provider(self):
        app = create_app({"SHOPIFY_STORE": "s.myshopify.com", "SHOPIFY_TOKEN": "t", "TIER_CONFIG_SOURCE": "static"})
        assert isinstance(app.config["TIER_PROVIDER"], StaticTierConfigProvider)


class TestCli:
    def test_tiers_show(self, app):
        result = app.test_cli_runner().invoke(args=["tiers.show"])
        assert result.exit_code == 0
        assert "prioritize_tags: True" in result.output
        assert "BLACK DIAMOND" in result.output

    def test_tiers_resolve(self, app, shopify):
        shopify.get_customer.return_value = {"id": 5, "total_spent": "1200", "tags": ""}
        result = app.test_cli_runner().invoke(args=["tiers.resolve", "5"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"customer_id": "5", "tier": "GOLD", "discount_percent": 4}

    def test_tiers_refresh(self, app):
        result = app.test_cli_runner().invoke(args=["tiers.refresh"])
        assert result.exit_code == 0
        assert "Loaded 6 tiers" in result.output
