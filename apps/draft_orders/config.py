import os
from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


class Config:
    SHOPIFY_STORE        = os.getenv("SHOPIFY_STORE")
    SHOPIFY_TOKEN        = os.getenv("SHOPIFY_TOKEN") or os.getenv("SHOPIFY_ACCESS_TOKEN")
    API_VERSION          = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    HTTP_TIMEOUT         = int(os.getenv("SHOPIFY_HTTP_TIMEOUT", "30"))
    DRAFT_MAX_RETRIES    = int(os.getenv("DRAFT_MAX_RETRIES", "3"))
    DRAFT_RETRY_DELAY    = float(os.getenv("DRAFT_RETRY_DELAY", "1.0"))  # seconds
    TIER_CONFIG_TTL      = int(os.getenv("TIER_CONFIG_TTL", "300"))      # 5 minutes
    TIER_SETTINGS_ASSET  = os.getenv("TIER_SETTINGS_ASSET", "config/settings_data.json")
    TIER_CONFIG_SOURCE   = os.getenv("TIER_CONFIG_SOURCE", "theme")      # theme|static
    CORS_ORIGINS         = os.getenv("CORS_ORIGINS", "*")
    DEBUG                = os.getenv("DEBUG", "false").lower() == "true"

    REQUIRED = ("SHOPIFY_STORE", "SHOPIFY_TOKEN")

    @classmethod
    def validate(cls, cfg) -> None:
        """Fail fast if the Shopify credentials are not set. `cfg` is any mapping (app.config)."""
        missing = [k for k in cls.REQUIRED if not cfg.get(k)]
        if missing:
            raise ConfigurationError(
                f"Missing {' or '.join(missing)} in environment."
            )
        if cfg.get("TIER_CONFIG_SOURCE", "theme") not in ("theme", "static"):
            raise ConfigurationError(
                f"TIER_CONFIG_SOURCE must be 'theme' or 'static', got {cfg.get('TIER_CONFIG_SOURCE')!r}"
            )
