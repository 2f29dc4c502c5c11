import time
import logging

import requests
from flask import current_app

from .backoff import execute_with_retry
from ..errors import RemoteAPIError, ConfigurationError

logger = logging.getLogger(__name__)


def gid_numeric(gid) -> str:
    # "gid://shopify/Customer/7836399894748" -> "7836399894748"
    return str(gid).strip().rsplit("/", 1)[-1]


class ShopifyClient:
    """
    Thin Admin REST client. Reads are single attempts; draft order creation
    goes through execute_with_retry.
    """

    def __init__(self, store: str, token: str, api_version: str = "2024-10", *,
                 timeout: int = 30, max_retries: int = 3, retry_delay: float = 1.0,
                 session: requests.Session = None, sleep=time.sleep):
        if not store or not token:
            raise ConfigurationError("Missing SHOPIFY_STORE or SHOPIFY_TOKEN in environment.")
        self.base_url = f"https://{store}/admin/api/{api_version}"
        self.headers = {
            "X-Shopify-Access-Token": token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self._sleep = sleep

    @classmethod
    def from_app(cls):
        cfg = current_app.config
        return cls(
            cfg["SHOPIFY_STORE"], cfg["SHOPIFY_TOKEN"], cfg["API_VERSION"],
            timeout=cfg["HTTP_TIMEOUT"],
            max_retries=cfg["DRAFT_MAX_RETRIES"],
            retry_delay=cfg["DRAFT_RETRY_DELAY"],
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, *, params: dict = None, json_body: dict = None):
        return self.session.request(
            method, self._url(path), headers=self.headers,
            params=params, json=json_body, timeout=self.timeout,
        )

    def get_json(self, path: str, params: dict = None) -> dict:
        """One GET, no retry. Raises RemoteAPIError on non-2xx."""
        r = self._send("GET", path, params=params)
        if r.status_code >= 400:
            raise RemoteAPIError(f"GET {path} failed {r.status_code}: {r.text[:300]}", r.status_code, r.text)
        return r.json() or {}

    # ------------------------------------------------------------------
    # Customers / themes
    # ------------------------------------------------------------------

    def get_customer(self, customer_id) -> dict:
        cid = gid_numeric(customer_id)
        data = self.get_json(f"customers/{cid}.json")
        return data.get("customer") or {}

    def list_themes(self) -> list:
        data = self.get_json("themes.json")
        return data.get("themes") or []

    def get_theme_asset(self, theme_id, key: str) -> dict:
        data = self.get_json(f"themes/{theme_id}/assets.json", params={"asset[key]": key})
        return data.get("asset") or {}

    # ------------------------------------------------------------------
    # Draft orders
    # ------------------------------------------------------------------

    def create_draft_order(self, draft_order: dict) -> dict:
        """
        POST draft_orders.json with retry. Returns the created draft_order dict.
        Never completes the draft: completing converts it to an Order and the
        invoice_url stops working.
        """
        r = execute_with_retry(
            lambda: self._send("POST", "draft_orders.json", json_body={"draft_order": draft_order}),
            max_attempts=self.max_retries,
            initial_delay=self.retry_delay,
            sleep=self._sleep,
            label="draft_orders",
        )
        try:
            body = r.json()
        except ValueError:
            body = r.text
        draft = body.get("draft_order") if isinstance(body, dict) else None
        if not isinstance(draft, dict) or not draft.get("id") or not draft.get("invoice_url"):
            logger.error(f"[shopify] draft order missing from {r.status_code} response: {str(body)[:300]}")
            raise RemoteAPIError("Draft order missing from response", r.status_code, body)
        logger.info(f"[shopify] draft order created: {draft.get('id')}")
        return draft
