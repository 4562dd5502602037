"""Account-data provider clients."""

from .base import AccountDataProvider
from .plaid import PlaidClient, classify_provider_error

__all__ = ["AccountDataProvider", "PlaidClient", "classify_provider_error"]
