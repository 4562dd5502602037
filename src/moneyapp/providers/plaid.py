"""Plaid REST client.

Async httpx client for the handful of Plaid endpoints the sync pipeline uses.
Plaid authenticates with ``client_id`` + ``secret`` in the JSON body and
reports failures as 4xx/5xx responses carrying an ``error_code``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from moneyapp.config import settings
from moneyapp.core.exceptions import ProviderAuthError, ProviderError
from moneyapp.schemas.provider import ExchangeResult, RawAccount, RawTransaction

logger = logging.getLogger(__name__)

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

# Error codes meaning the access credential itself is unusable: the user has
# to re-link, retrying won't help.
CREDENTIAL_ERROR_CODES = frozenset(
    {
        "INVALID_ACCESS_TOKEN",
        "ITEM_LOGIN_REQUIRED",
        "ACCESS_NOT_GRANTED",
        "INVALID_CREDENTIALS",
        "ITEM_LOCKED",
    }
)


def classify_provider_error(
    error_code: str | None, status_code: int | None = None, error_type: str | None = None
) -> ProviderError:
    """Map a Plaid error response to the matching application exception."""
    details = {"provider_code": error_code, "status_code": status_code, "error_type": error_type}
    if error_code in CREDENTIAL_ERROR_CODES:
        return ProviderAuthError("PROV_002", details=details, provider_code=error_code)
    return ProviderError("PROV_001", details=details, provider_code=error_code)


class PlaidClient:
    """Minimal async Plaid client.

    Usage::

        client = PlaidClient()
        accounts = await client.get_accounts(access_token)
        await client.close()
    """

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        *,
        timeout: float | None = None,
        country_codes: list[str] | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id if client_id is not None else settings.plaid_client_id
        self.secret = secret if secret is not None else settings.plaid_secret
        self.environment = environment or settings.plaid_env
        self.timeout = timeout or settings.plaid_timeout_seconds
        self.country_codes = country_codes or settings.plaid_country_codes
        self.page_size = page_size or settings.plaid_page_size
        self._base_url = PLAID_ENVIRONMENTS.get(self.environment, PLAID_ENVIRONMENTS["sandbox"])
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()

    async def _api_post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to a Plaid endpoint and return the decoded body.

        Raises:
            ProviderAuthError: Credential-level failure (re-link required)
            ProviderError: Any other failure (HTTP, timeout, malformed body)
        """
        client = await self._get_client()
        body = {"client_id": self.client_id, "secret": self.secret, **payload}

        try:
            resp = await client.post(f"/{endpoint}", json=body)
        except httpx.TimeoutException as exc:
            logger.warning("Plaid request timed out", extra={"endpoint": endpoint})
            raise ProviderError("PROV_001", details={"endpoint": endpoint, "reason": "timeout"}) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Plaid request failed",
                extra={"endpoint": endpoint, "error_type": type(exc).__name__},
            )
            raise ProviderError("PROV_001", details={"endpoint": endpoint}) from exc

        if resp.status_code >= 400:
            try:
                error_data = resp.json()
            except ValueError:
                error_data = {}
            error_code = error_data.get("error_code")
            logger.warning(
                "Plaid API error",
                extra={
                    "endpoint": endpoint,
                    "status_code": resp.status_code,
                    "error_code": error_code,
                },
            )
            raise classify_provider_error(error_code, resp.status_code, error_data.get("error_type"))

        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError("PROV_003", details={"endpoint": endpoint}) from exc

    async def exchange_public_token(self, public_token: str) -> ExchangeResult:
        data = await self._api_post("item/public_token/exchange", {"public_token": public_token})
        try:
            return ExchangeResult(access_token=data["access_token"], item_id=data["item_id"])
        except KeyError as exc:
            raise ProviderError("PROV_003", details={"endpoint": "item/public_token/exchange"}) from exc

    async def get_item_institution_id(self, access_token: str) -> str | None:
        data = await self._api_post("item/get", {"access_token": access_token})
        return (data.get("item") or {}).get("institution_id")

    async def get_institution_name(self, institution_id: str) -> str | None:
        data = await self._api_post(
            "institutions/get_by_id",
            {"institution_id": institution_id, "country_codes": self.country_codes},
        )
        return (data.get("institution") or {}).get("name")

    async def get_accounts(self, access_token: str) -> list[RawAccount]:
        data = await self._api_post("accounts/get", {"access_token": access_token})
        accounts = []
        for raw in data.get("accounts", []):
            try:
                accounts.append(RawAccount.from_provider(raw))
            except (PydanticValidationError, TypeError, ValueError):
                logger.warning("Skipping malformed provider account record")
        return accounts

    async def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> list[RawTransaction]:
        """Fetch every transaction in [start_date, end_date], following offset paging."""
        transactions: list[RawTransaction] = []
        offset = 0
        skipped = 0
        while True:
            data = await self._api_post(
                "transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "options": {"count": self.page_size, "offset": offset},
                },
            )
            page = data.get("transactions", [])
            for raw in page:
                try:
                    transactions.append(RawTransaction.from_provider(raw))
                except (PydanticValidationError, TypeError, ValueError):
                    skipped += 1
            offset += len(page)
            total = data.get("total_transactions", offset)
            if not page or offset >= total:
                break

        if skipped:
            logger.warning("Skipped malformed provider transactions", extra={"skipped": skipped})
        return transactions

    async def remove_item(self, access_token: str) -> None:
        await self._api_post("item/remove", {"access_token": access_token})
