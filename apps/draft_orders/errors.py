"""
Error types for the draft order service.

Discount lookups (ProfileFetchError, ConfigFetchError) are caught inside the
tier code and never reach the route. Everything else bubbles up to the
blueprint, which maps it to a JSON response.
"""


class DraftOrderError(Exception):
    """Base for everything this service raises on purpose."""


class ValidationError(DraftOrderError):
    """Bad request body or line item."""


class ConfigurationError(DraftOrderError):
    """Missing or unusable process configuration (credentials, shop)."""


class RemoteAPIError(DraftOrderError):
    """Shopify API error with status code and body"""
    def __init__(self, message: str, status_code: int = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransientRemoteError(RemoteAPIError):
    """5xx or network failure that survived every retry."""


class RateLimitExhaustedError(TransientRemoteError):
    """Still 429 after the last retry."""


class ProfileFetchError(RemoteAPIError):
    pass


class ConfigFetchError(RemoteAPIError):
    pass
