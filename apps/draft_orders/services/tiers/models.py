from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple, FrozenSet


def normalize_tag(t) -> str:
    """'Black Diamond' / 'BLACKDIAMOND' / ' black diamond ' -> 'BLACKDIAMOND'."""
    return str(t or "").strip().upper().replace(" ", "")


@dataclass(frozen=True)
class TierDefinition:
    name: str
    tag: str
    discount_percent: int
    spend_threshold: Decimal = Decimal("0")


@dataclass(frozen=True)
class TierConfig:
    prioritize_tags: bool
    tiers: Tuple[TierDefinition, ...] = ()

    def describe(self) -> list[dict]:
        return [
            {
                "name": t.name,
                "tag": t.tag,
                "discount_percent": t.discount_percent,
                "spend_threshold": str(t.spend_threshold),
            }
            for t in self.tiers
        ]


@dataclass(frozen=True)
class CustomerProfile:
    id: str
    total_spent: Decimal = Decimal("0")
    tags: FrozenSet[str] = field(default_factory=frozenset)
    email: Optional[str] = None

    @classmethod
    def from_shopify(cls, customer: dict) -> "CustomerProfile":
        """
        Build from a REST customers/{id}.json `customer` object. Tags come as a
        CSV string from REST and as a list from GraphQL-shaped payloads.
        """
        if not isinstance(customer, dict):
            raise ValueError(f"customer must be an object, got {type(customer).__name__}")
        raw_tags = customer.get("tags") or ""
        if isinstance(raw_tags, str):
            raw_tags = raw_tags.split(",")
        elif not isinstance(raw_tags, (list, tuple)):
            raise ValueError(f"unexpected tags value: {raw_tags!r}")
        tags = frozenset(str(t).strip().upper() for t in raw_tags if str(t or "").strip())
        try:
            spent = Decimal(str(customer.get("total_spent") or "0"))
        except ArithmeticError:
            spent = Decimal("0")
        if not spent.is_finite() or spent < 0:
            spent = Decimal("0")
        return cls(
            id=str(customer.get("id", "")),
            total_spent=spent,
            tags=tags,
            email=customer.get("email"),
        )


@dataclass(frozen=True)
class ResolvedTier:
    tier_name: Optional[str] = None
    discount_percent: int = 0

    @property
    def has_discount(self) -> bool:
        return self.tier_name is not None and self.discount_percent > 0


NO_TIER = ResolvedTier(None, 0)
