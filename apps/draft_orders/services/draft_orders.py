"""
Draft order assembly.

The storefront sends line items with its own idea of the discount; that
value is checked for shape and then thrown away. The discount on every
outgoing line comes from the customer's tier as resolved here.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Sequence
import logging

from .tiers.models import ResolvedTier
from ..adapters.shopify_client import gid_numeric
from ..errors import ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class LineItemRequest:
    variant_id: str
    quantity: int
    price: Decimal
    client_discount_percent: Optional[Decimal] = None


@dataclass(frozen=True)
class DraftOrderResult:
    invoice_url: str
    draft_order_id: Any
    total_price: str

    def to_dict(self) -> dict:
        return {
            "invoice_url": self.invoice_url,
            "draft_order_id": self.draft_order_id,
            "total_price": self.total_price,
        }


def _number(v) -> Optional[Decimal]:
    if v is None or isinstance(v, bool):
        return None
    try:
        d = Decimal(str(v))
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def parse_line_items(raw) -> list[LineItemRequest]:
    """Validate the request's `items` array. Raises ValidationError naming the bad item."""
    if not raw or not isinstance(raw, list):
        raise ValidationError("No items provided")

    items = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {i}: must be an object")

        variant_id = item.get("variant_id")
        if variant_id in (None, "") or isinstance(variant_id, bool):
            raise ValidationError(f"Item {i}: variant_id is required")

        qty = item.get("quantity")
        if isinstance(qty, float) and qty.is_integer():
            qty = int(qty)
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(f"Item {i}: quantity must be greater than 0")

        price = _number(item.get("price"))
        if price is None or price < 0:
            raise ValidationError(f"Item {i}: price must be a positive number")

        client_pct = None
        if item.get("discount_percent") is not None:
            client_pct = _number(item.get("discount_percent"))
            if client_pct is None or client_pct < 0 or client_pct > 100:
                raise ValidationError(f"Item {i}: discount_percent must be between 0 and 100")

        items.append(LineItemRequest(
            variant_id=str(variant_id),
            quantity=int(qty),
            price=price,
            client_discount_percent=client_pct,
        ))
    return items


def discount_amount(price: Decimal, quantity: int, percent: int) -> str:
    """Line discount, half-up to the cent: 19.99 x 3 @ 8% -> '4.80'."""
    amount = (Decimal(price) * quantity * Decimal(percent) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{amount:.2f}"


def _variant_ref(variant_id: str):
    # REST wants the numeric id; accept "gid://shopify/ProductVariant/123" too
    vid = gid_numeric(variant_id)
    return int(vid) if vid.isdigit() else vid


def build_line_item(item: LineItemRequest, tier: ResolvedTier) -> dict:
    line = {"variant_id": _variant_ref(item.variant_id), "quantity": item.quantity}
    if tier.has_discount:
        pct = tier.discount_percent
        line["applied_discount"] = {
            "description": f"{tier.tier_name} Tier Discount {pct}%",
            "value_type": "percentage",
            "value": str(pct),
            "amount": discount_amount(item.price, item.quantity, pct),
        }
    return line


def build_payload(items: Sequence[LineItemRequest], tier: ResolvedTier,
                  customer_id=None, customer_email: Optional[str] = None) -> dict:
    """
    Draft order body for POST draft_orders.json. No applied_discount key at
    all when the tier gives 0%. Customer id wins over email; never both.
    """
    payload = {
        "line_items": [build_line_item(it, tier) for it in items],
        "use_customer_default_address": True,
    }
    cid = gid_numeric(customer_id) if customer_id else ""
    if cid:
        payload["customer"] = {"id": int(cid) if cid.isdigit() else cid}
    elif customer_email:
        payload["email"] = customer_email
    return payload


def create_draft_order(client, resolver, items: Sequence[LineItemRequest],
                       customer_id=None, customer_email: Optional[str] = None) -> DraftOrderResult:
    """
    Resolve tier -> build payload -> POST (with retry). The draft is left
    open on purpose so its invoice_url stays payable.
    """
    tier = resolver.resolve_tier(customer_id)
    logger.info(f"[draft] server-validated tier={tier.tier_name} discount={tier.discount_percent}%")

    for it in items:
        if it.client_discount_percent is not None and it.client_discount_percent != tier.discount_percent:
            logger.warning(
                f"[draft] ignoring client discount {it.client_discount_percent}% for variant "
                f"{it.variant_id} (server tier gives {tier.discount_percent}%)"
            )

    payload = build_payload(items, tier, customer_id=customer_id, customer_email=customer_email)
    logger.info(f"[draft] creating draft order: {len(payload['line_items'])} line(s), customer={customer_id or customer_email or '-'}")

    draft = client.create_draft_order(payload)
    return DraftOrderResult(
        invoice_url=draft.get("invoice_url"),
        draft_order_id=draft.get("id"),
        total_price=draft.get("total_price"),
    )
