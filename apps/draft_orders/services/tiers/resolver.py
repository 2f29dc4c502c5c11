import logging
from decimal import Decimal
from typing import Iterable, Optional

import requests

from .config_cache import TierConfigProvider
from .models import TierDefinition, TierConfig, CustomerProfile, ResolvedTier, NO_TIER, normalize_tag
from ...errors import RemoteAPIError, ProfileFetchError

logger = logging.getLogger(__name__)


def tier_from_spend(tiers: Iterable[TierDefinition], total_spent: Decimal) -> Optional[TierDefinition]:
    """
    Highest threshold the customer has reached. Equal thresholds keep the
    first one in table order (strict > below).
    """
    best = None
    for t in tiers:
        if total_spent >= t.spend_threshold:
            if best is None or t.spend_threshold > best.spend_threshold:
                best = t
    return best


def tier_from_tags(tiers: Iterable[TierDefinition], tags: Iterable[str]) -> Optional[TierDefinition]:
    """First tier in table order whose tag the customer carries."""
    have = {normalize_tag(t) for t in tags}
    for t in tiers:
        if normalize_tag(t.tag) in have:
            return t
    return None


def resolve_for_profile(profile: CustomerProfile, cfg: TierConfig) -> ResolvedTier:
    tier = None
    if cfg.prioritize_tags:
        tier = tier_from_tags(cfg.tiers, profile.tags)
        if tier is not None:
            logger.info(f"[tiers] customer {profile.id} tag override -> {tier.name} ({tier.discount_percent}%)")
    if tier is None:
        tier = tier_from_spend(cfg.tiers, profile.total_spent)
        if tier is not None:
            logger.info(f"[tiers] customer {profile.id} spent {profile.total_spent} -> {tier.name} ({tier.discount_percent}%)")
    if tier is None:
        logger.info(f"[tiers] customer {profile.id} has no tier")
        return NO_TIER
    return ResolvedTier(tier.name, tier.discount_percent)


class TierResolver:
    def __init__(self, client, provider: TierConfigProvider):
        self.client = client
        self.provider = provider

    def fetch_profile(self, customer_id) -> CustomerProfile:
        try:
            customer = self.client.get_customer(customer_id)
        except RemoteAPIError as e:
            raise ProfileFetchError(f"Failed to fetch customer {customer_id}: {e}", e.status_code, e.body) from e
        except (requests.RequestException, ValueError) as e:
            raise ProfileFetchError(f"Failed to fetch customer {customer_id}: {e}") from e
        if not customer:
            raise ProfileFetchError(f"Customer {customer_id} not found")
        try:
            return CustomerProfile.from_shopify(customer)
        except Exception as e:
            raise ProfileFetchError(f"Unreadable profile for customer {customer_id}: {e}") from e

    def resolve_tier(self, customer_id) -> ResolvedTier:
        """
        Tier + discount for a customer. Never raises: a lookup failure means
        no discount, it must not block the order.
        """
        if not customer_id or not str(customer_id).strip():
            return NO_TIER
        try:
            profile = self.fetch_profile(customer_id)
        except ProfileFetchError as e:
            logger.warning(f"[tiers] {e}")
            return NO_TIER
        return resolve_for_profile(profile, self.provider.get_tier_config())
