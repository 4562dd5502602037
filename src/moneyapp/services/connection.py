"""Provider connection lifecycle: link and unlink a user's bank item."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.suggestions import KeywordIndexRegistry, keyword_indexes
from moneyapp.core.exceptions import NotConnectedError, ProviderError
from moneyapp.models.account import Account
from moneyapp.models.user import SyncStatus, User
from moneyapp.providers.base import AccountDataProvider
from moneyapp.repositories.account import AccountRepository
from moneyapp.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)


class ConnectionService:
    def __init__(
        self,
        db: AsyncSession,
        provider: AccountDataProvider,
        registry: KeywordIndexRegistry = keyword_indexes,
    ):
        self.db = db
        self.provider = provider
        self.registry = registry
        self.account_repo = AccountRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def connect(self, user: User, public_token: str) -> User:
        """Exchange a Link public token and store the long-lived credential.

        The user's sync state is reset so the first sync uses the initial
        lookback window. The caller schedules that sync.
        """
        exchanged = await self.provider.exchange_public_token(public_token)

        institution_id = None
        institution_name = None
        try:
            institution_id = await self.provider.get_item_institution_id(exchanged.access_token)
            if institution_id:
                institution_name = await self.provider.get_institution_name(institution_id)
        except ProviderError as exc:
            # Institution metadata is cosmetic; the link itself succeeded.
            logger.warning(
                "Could not look up institution",
                extra={"user_id": str(user.id), "error_code": exc.error_code},
            )

        user.provider_access_token = exchanged.access_token
        user.provider_item_id = exchanged.item_id
        user.institution_id = institution_id
        user.institution_name = institution_name
        user.sync_status = SyncStatus.NEVER_SYNCED
        user.last_sync_at = None
        user.last_sync_error = None
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "Provider connected",
            extra={"user_id": str(user.id), "institution_id": institution_id},
        )
        return user

    async def disconnect(self, user: User) -> dict[str, int]:
        """Revoke the credential and remove every synced account and transaction.

        Revocation at the provider is best-effort; local data is removed
        either way.
        """
        if not user.is_connected:
            raise NotConnectedError("SYNC_002", details={"user_id": str(user.id)})

        if user.provider_access_token:
            try:
                await self.provider.remove_item(user.provider_access_token)
            except ProviderError as exc:
                logger.warning(
                    "Provider item removal failed, clearing local link anyway",
                    extra={"user_id": str(user.id), "error_code": exc.error_code},
                )

        transactions = await self.transaction_repo.delete_by_user(user.id)
        accounts = await self.account_repo.delete_by_user(user.id)

        user.provider_access_token = None
        user.provider_item_id = None
        user.institution_id = None
        user.institution_name = None
        user.sync_status = SyncStatus.NEVER_SYNCED
        user.last_sync_at = None
        user.last_sync_error = None
        await self.db.commit()
        self.registry.discard(user.id)

        logger.info(
            "Provider disconnected",
            extra={"user_id": str(user.id), "accounts": accounts, "transactions": transactions},
        )
        return {"accounts_removed": accounts, "transactions_removed": transactions}

    async def list_accounts(self, user: User) -> list[Account]:
        return await self.account_repo.get_all_by_user(user.id, active_only=True)
