"""What the sync pipeline needs from an account-data provider."""

from datetime import date
from typing import Protocol

from moneyapp.schemas.provider import ExchangeResult, RawAccount, RawTransaction


class AccountDataProvider(Protocol):
    """Token-scoped pull API for accounts and transactions.

    Implementations raise ``ProviderAuthError`` when the access credential is
    invalid or expired and ``ProviderError`` for every other failure.
    """

    async def exchange_public_token(self, public_token: str) -> ExchangeResult: ...

    async def get_institution_name(self, institution_id: str) -> str | None: ...

    async def get_item_institution_id(self, access_token: str) -> str | None: ...

    async def get_accounts(self, access_token: str) -> list[RawAccount]: ...

    async def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> list[RawTransaction]: ...

    async def remove_item(self, access_token: str) -> None: ...
