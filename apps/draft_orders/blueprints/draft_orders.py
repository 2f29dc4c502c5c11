from flask import Blueprint, request, jsonify, current_app

from ..errors import ValidationError, ConfigurationError, RemoteAPIError
from ..services.draft_orders import parse_line_items, create_draft_order

bp = Blueprint("draft_orders", __name__)


@bp.get("/health")
def health():
    return jsonify({"ok": True, "service": "draft_orders"}), 200


@bp.post("/api/create-draft-order")
def create():
    """
    POST {"customer_id": "...", "customer_email": "...",
          "items": [{"variant_id": "...", "quantity": 1, "price": 19.99, "discount_percent": 8}]}
    Returns {"success": true, "invoice_url", "draft_order_id", "total_price"}.
    discount_percent from the client is validated and ignored; the tier decides.
    """
    client = current_app.config["SHOPIFY_CLIENT"]
    resolver = current_app.config["TIER_RESOLVER"]

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    customer_id = payload.get("customer_id")
    customer_email = payload.get("customer_email")

    try:
        items = parse_line_items(payload.get("items"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info(f"[draft] request customer={customer_id or customer_email or '-'} items={len(items)}")

    try:
        result = create_draft_order(
            client, resolver, items,
            customer_id=customer_id, customer_email=customer_email,
        )
    except ConfigurationError as e:
        current_app.logger.error(f"[draft] configuration error: {e}")
        return jsonify({"error": "Server configuration error", "message": str(e)}), 500
    except RemoteAPIError as e:
        current_app.logger.error(f"[draft] Shopify failure status={e.status_code}: {e}")
        return jsonify({
            "error": "Failed to create draft order",
            "message": str(e),
            "status": e.status_code,
        }), 500
    except Exception as e:
        current_app.logger.exception("[draft] unexpected error")
        return jsonify({"error": "Internal server error", "message": str(e)}), 500

    return jsonify({"success": True, **result.to_dict()}), 200
