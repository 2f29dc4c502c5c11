import time
import logging
from typing import Callable, Optional

from .defaults import DEFAULT_TIER_CONFIG
from .models import TierConfig
from .settings import tier_config_from_settings, fetch_theme_settings, SETTINGS_ASSET_KEY
from ...errors import ConfigFetchError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class TierConfigProvider:
    """Anything with get_tier_config() -> TierConfig."""

    def get_tier_config(self) -> TierConfig:
        raise NotImplementedError

    def invalidate(self) -> None:
        pass


class StaticTierConfigProvider(TierConfigProvider):
    def __init__(self, config: TierConfig = DEFAULT_TIER_CONFIG):
        self.config = config

    def get_tier_config(self) -> TierConfig:
        return self.config


class ThemeTierConfigProvider(TierConfigProvider):
    """
    Read-through, single-entry cache over the theme settings.

    fetch_settings() returns the decoded settings blob (or raises).
    On failure the default config is returned and NOT stored, so the next
    call tries the theme again. No lock: two requests missing at once both
    fetch and the last one wins, which is harmless.
    """

    def __init__(self, fetch_settings: Callable[[], dict], *,
                 clock: Callable[[], float] = time.monotonic,
                 ttl: float = DEFAULT_TTL_SECONDS,
                 default: TierConfig = DEFAULT_TIER_CONFIG):
        self._fetch_settings = fetch_settings
        self._clock = clock
        self.ttl = ttl
        self.default = default
        self._cached: Optional[TierConfig] = None
        self._expires_at = 0.0

    @classmethod
    def for_client(cls, client, asset_key: str = SETTINGS_ASSET_KEY, **kwargs):
        return cls(lambda: fetch_theme_settings(client, asset_key), **kwargs)

    def get_tier_config(self) -> TierConfig:
        now = self._clock()
        if self._cached is not None and now < self._expires_at:
            return self._cached

        try:
            cfg = tier_config_from_settings(self._fetch_settings())
        except ConfigFetchError as e:
            logger.warning(f"[tiers] theme settings unavailable, using built-in tiers: {e}")
            return self.default
        except Exception:
            logger.exception("[tiers] unexpected error loading theme settings, using built-in tiers")
            return self.default

        self._cached = cfg
        self._expires_at = self._clock() + self.ttl
        logger.info(f"[tiers] loaded {len(cfg.tiers)} tiers from theme (prioritize_tags={cfg.prioritize_tags})")
        return cfg

    def invalidate(self) -> None:
        self._cached = None
        self._expires_at = 0.0
