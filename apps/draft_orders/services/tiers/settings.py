"""
Read the tier table out of the live theme's settings_data.json.

Theme settings (section `current`, or the preset it names):

    tier_prioritize_tags: true
    tier_1_name: "BLACK DIAMOND"   tier_1_tag: "BLACK DIAMOND"
    tier_1_discount: 10            tier_1_threshold: 10000
    ...
    tier_6_*                        (six slots max)

A missing key falls back to the built-in value for that slot. A slot whose
name is present but blank is switched off.
"""

import json
import logging
from decimal import Decimal, InvalidOperation

import requests

from .defaults import DEFAULT_TIERS, DEFAULT_PRIORITIZE_TAGS, MAX_TIER_SLOTS
from .models import TierDefinition, TierConfig
from ...errors import ConfigFetchError, RemoteAPIError

logger = logging.getLogger(__name__)

SETTINGS_ASSET_KEY = "config/settings_data.json"


def _as_bool(v, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "1", "yes", "on"):
            return True
        if s in ("false", "0", "no", "off"):
            return False
    return default


def _as_percent(v, default: int) -> int:
    if v is None or isinstance(v, bool):
        return default
    try:
        i = int(Decimal(str(v).strip().rstrip("%")))
    except (InvalidOperation, ValueError, OverflowError):
        return default
    return max(0, min(100, i))


def _as_threshold(v, default: Decimal) -> Decimal:
    if v is None or isinstance(v, bool):
        return default
    try:
        d = Decimal(str(v).strip().replace(",", "").lstrip("$"))
    except InvalidOperation:
        return default
    if not d.is_finite():
        return default
    return max(d, Decimal("0"))


def _current_section(data: dict) -> dict:
    current = data.get("current")
    if isinstance(current, str):
        # theme is on a named preset; settings live under presets[name]
        current = (data.get("presets") or {}).get(current)
    return current if isinstance(current, dict) else {}


def tier_config_from_settings(data) -> TierConfig:
    """Build a TierConfig from a decoded settings_data.json blob."""
    if not isinstance(data, dict):
        raise ConfigFetchError(f"settings blob is {type(data).__name__}, expected object")

    s = _current_section(data)
    tiers, seen = [], set()
    for n in range(1, MAX_TIER_SLOTS + 1):
        base = DEFAULT_TIERS[n - 1]
        name = s.get(f"tier_{n}_name", base.name)
        name = str(name).strip() if name is not None else base.name
        if not name:
            continue
        if name.upper() in seen:
            logger.warning(f"[tiers] duplicate tier name {name!r} in slot {n}, skipped")
            continue
        seen.add(name.upper())

        tag = s.get(f"tier_{n}_tag")
        tag = str(tag).strip() if tag not in (None, "") else (name if f"tier_{n}_name" in s else base.tag)

        tiers.append(TierDefinition(
            name=name,
            tag=tag,
            discount_percent=_as_percent(s.get(f"tier_{n}_discount"), base.discount_percent),
            spend_threshold=_as_threshold(s.get(f"tier_{n}_threshold"), base.spend_threshold),
        ))

    return TierConfig(
        prioritize_tags=_as_bool(s.get("tier_prioritize_tags"), DEFAULT_PRIORITIZE_TAGS),
        tiers=tuple(tiers),
    )


def find_main_theme(themes: list) -> dict:
    for t in themes or []:
        if t.get("role") == "main":
            return t
    raise ConfigFetchError("No published (role=main) theme found")


def fetch_theme_settings(client, asset_key: str = SETTINGS_ASSET_KEY) -> dict:
    """
    Two reads: themes.json -> main theme, then the settings asset on it.
    Any failure comes out as ConfigFetchError.
    """
    try:
        theme = find_main_theme(client.list_themes())
        asset = client.get_theme_asset(theme["id"], asset_key)
        raw = asset.get("value")
        if not raw:
            raise ConfigFetchError(f"Asset {asset_key} on theme {theme['id']} is empty")
        return json.loads(raw)
    except ConfigFetchError:
        raise
    except RemoteAPIError as e:
        raise ConfigFetchError(str(e), e.status_code, e.body) from e
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        raise ConfigFetchError(f"Theme settings fetch failed: {e}") from e
