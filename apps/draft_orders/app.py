import logging

from flask import Flask, jsonify
from flask_cors import CORS

from .config import Config
from .cli import register_cli
from .adapters.shopify_client import ShopifyClient
from .services.tiers.config_cache import StaticTierConfigProvider, ThemeTierConfigProvider
from .services.tiers.resolver import TierResolver
from .blueprints.draft_orders import bp as draft_orders_bp


def build_tier_provider(cfg, client):
    if cfg["TIER_CONFIG_SOURCE"] == "static":
        return StaticTierConfigProvider()
    return ThemeTierConfigProvider.for_client(
        client, cfg["TIER_SETTINGS_ASSET"], ttl=cfg["TIER_CONFIG_TTL"],
    )


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    # no point serving without credentials
    Config.validate(app.config)

    token = app.config["SHOPIFY_TOKEN"]
    app.logger.info(
        f"[draft] config shop={app.config['SHOPIFY_STORE']} token={token[:10]}... "
        f"api_version={app.config['API_VERSION']} tiers={app.config['TIER_CONFIG_SOURCE']}"
    )

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
         methods=["POST", "OPTIONS"], allow_headers=["Content-Type"], send_wildcard=True)

    with app.app_context():
        client = app.config.get("SHOPIFY_CLIENT") or ShopifyClient.from_app()
        provider = app.config.get("TIER_PROVIDER") or build_tier_provider(app.config, client)
        app.config["SHOPIFY_CLIENT"] = client
        app.config["TIER_PROVIDER"] = provider
        app.config["TIER_RESOLVER"] = TierResolver(client, provider)

    app.register_blueprint(draft_orders_bp)
    register_cli(app)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(404)
    def not_found(_e):
        return jsonify({"error": "Not found"}), 404

    return app
