from decimal import Decimal

from .models import TierDefinition, TierConfig

# Built-in tier table. Used when the theme settings can't be read, and as the
# per-slot fallback for any field missing from the theme settings.
# Order matters: with prioritize_tags on, the first matching tag wins, so the
# highest tier comes first.
DEFAULT_TIERS = (
    TierDefinition("BLACK DIAMOND", "BLACK DIAMOND", 10, Decimal("10000")),
    TierDefinition("DIAMOND",       "DIAMOND",        8, Decimal("5000")),
    TierDefinition("PLATINUM",      "PLATINUM",       6, Decimal("2500")),
    TierDefinition("GOLD",          "GOLD",           4, Decimal("1000")),
    TierDefinition("SILVER",        "SILVER",         2, Decimal("500")),
    TierDefinition("MEMBER",        "MEMBER",         0, Decimal("0")),
)

DEFAULT_PRIORITIZE_TAGS = True

DEFAULT_TIER_CONFIG = TierConfig(prioritize_tags=DEFAULT_PRIORITIZE_TAGS, tiers=DEFAULT_TIERS)

MAX_TIER_SLOTS = len(DEFAULT_TIERS)
