"""Reconciliation of fetched provider data against stored state.

Upsert-by-external-id for accounts, then transactions. Every record is
processed independently: a bad record is logged and recorded in
``ReconciliationResult.errors`` and the rest of the batch carries on.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.resolver import CategoryRuleSet, resolve
from moneyapp.models.account import Account
from moneyapp.models.base import utcnow
from moneyapp.models.transaction import Transaction
from moneyapp.repositories.account import AccountRepository
from moneyapp.repositories.category_rule import CategoryRuleRepository
from moneyapp.repositories.transaction import TransactionRepository
from moneyapp.schemas.provider import RawAccount, RawTransaction

logger = logging.getLogger(__name__)


@dataclass
class RecordError:
    kind: str
    external_id: str
    reason: str


@dataclass
class ReconciliationResult:
    new_accounts: int = 0
    updated_accounts: int = 0
    new_transactions: int = 0
    updated_transactions: int = 0
    skipped_transactions: int = 0
    errors: list[RecordError] = field(default_factory=list)
    categories: Counter = field(default_factory=Counter)

    def as_counts(self) -> dict[str, int]:
        return {
            "new_accounts": self.new_accounts,
            "updated_accounts": self.updated_accounts,
            "new_transactions": self.new_transactions,
            "updated_transactions": self.updated_transactions,
        }


def _apply_changes(obj: Any, values: Mapping[str, Any]) -> bool:
    """Set only the attributes whose value differs; report whether any did."""
    changed = False
    for key, value in values.items():
        if getattr(obj, key) != value:
            setattr(obj, key, value)
            changed = True
    return changed


def check_column_widths(model: Any, values: Mapping[str, Any]) -> None:
    """Reject string values longer than their column.

    The batch is written with one flush; a value the database refuses there
    would abort every record, so it is caught per record here instead.
    """
    columns = model.__table__.columns
    for key, value in values.items():
        length = getattr(columns[key].type, "length", None)
        if isinstance(value, str) and length is not None and len(value) > length:
            raise ValueError(f"{key} is longer than {length} characters")


def account_values(raw: RawAccount) -> dict[str, Any]:
    """Mutable account fields taken from a provider record."""
    return {
        "name": raw.name,
        "official_name": raw.official_name,
        "type": raw.type,
        "subtype": raw.subtype or "unknown",
        "mask": raw.mask,
        "current_balance": raw.current_balance,
        "available_balance": raw.available_balance,
        "credit_limit": raw.credit_limit,
        "is_active": True,
    }


def transaction_values(
    raw: RawTransaction, account_id: UUID, rule_set: CategoryRuleSet
) -> dict[str, Any]:
    """Mutable transaction fields, including the freshly resolved category."""
    return {
        "account_id": account_id,
        "name": raw.name,
        "merchant_name": raw.merchant_name,
        "amount": raw.amount,
        "date": raw.date,
        "authorized_date": raw.authorized_date,
        "provider_categories": list(raw.category),
        "display_category": resolve(
            raw.category, raw.merchant_name, raw.name, raw.amount, rule_set
        ),
        "detailed_category": raw.detailed_category,
        "pending": raw.pending,
        "city": raw.city,
        "region": raw.region,
        "country": raw.country,
    }


class ReconciliationEngine:
    """Computes and applies the insert/update delta for one user's batch.

    The engine flushes but never commits; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.account_repo = AccountRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.rule_repo = CategoryRuleRepository(db)

    async def load_rule_set(self, user_id: UUID) -> CategoryRuleSet:
        return CategoryRuleSet(await self.rule_repo.get_all_by_user(user_id))

    async def reconcile(
        self,
        user_id: UUID,
        fetched_accounts: Sequence[RawAccount],
        fetched_transactions: Sequence[RawTransaction],
        existing_account_index: Mapping[str, UUID] | None = None,
        rule_set: CategoryRuleSet | None = None,
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Upsert accounts, then transactions, for one user.

        Args:
            user_id: Owner of every record in the batch
            fetched_accounts: Accounts returned by the provider
            fetched_transactions: Transactions returned by the provider
            existing_account_index: Known provider account id -> local id;
                loaded from the store when omitted
            rule_set: The user's override rules; loaded when omitted
            now: Timestamp stamped on refreshed accounts

        Returns:
            Insert/update counts and the per-record errors
        """
        now = now or utcnow()
        result = ReconciliationResult()
        if rule_set is None:
            rule_set = await self.load_rule_set(user_id)

        account_index = dict(
            existing_account_index
            if existing_account_index is not None
            else await self.account_repo.get_external_index(user_id)
        )
        account_index.update(await self._reconcile_accounts(user_id, fetched_accounts, now, result))

        await self._reconcile_transactions(
            user_id, fetched_transactions, account_index, rule_set, result
        )

        logger.info(
            "Reconciled provider batch",
            extra={
                "user_id": str(user_id),
                **result.as_counts(),
                "skipped_transactions": result.skipped_transactions,
                "errors": len(result.errors),
            },
        )
        if result.categories:
            logger.debug(
                "Categorization results",
                extra={"user_id": str(user_id), "categories": dict(result.categories)},
            )
        return result

    async def _reconcile_accounts(
        self,
        user_id: UUID,
        fetched: Sequence[RawAccount],
        now: datetime,
        result: ReconciliationResult,
    ) -> dict[str, UUID]:
        existing = await self.account_repo.get_by_external_ids([a.account_id for a in fetched])
        index: dict[str, UUID] = {}

        for raw in fetched:
            try:
                values = account_values(raw)
                check_column_widths(Account, {"external_account_id": raw.account_id, **values})
                account = existing.get(raw.account_id)
                if account is None:
                    account = Account(
                        external_account_id=raw.account_id,
                        user_id=user_id,
                        last_updated_at=now,
                        **values,
                    )
                    self.db.add(account)
                    existing[raw.account_id] = account
                    result.new_accounts += 1
                elif account.user_id != user_id:
                    raise ValueError("account belongs to another user")
                else:
                    if _apply_changes(account, values):
                        result.updated_accounts += 1
                    account.last_updated_at = now
            except Exception as exc:
                logger.warning(
                    "Skipping account record",
                    extra={"user_id": str(user_id), "error_type": type(exc).__name__},
                )
                result.errors.append(RecordError("account", raw.account_id, str(exc)))

        await self.db.flush()
        for external_id, account in existing.items():
            if account.user_id == user_id:
                index[external_id] = account.id
        return index

    async def _reconcile_transactions(
        self,
        user_id: UUID,
        fetched: Sequence[RawTransaction],
        account_index: Mapping[str, UUID],
        rule_set: CategoryRuleSet,
        result: ReconciliationResult,
    ) -> None:
        existing = await self.transaction_repo.get_by_external_ids(
            [t.transaction_id for t in fetched]
        )

        for raw in fetched:
            account_id = account_index.get(raw.account_id)
            if account_id is None:
                logger.warning(
                    "Account not found for transaction, skipping",
                    extra={"user_id": str(user_id), "transaction_id": raw.transaction_id},
                )
                result.skipped_transactions += 1
                continue

            try:
                values = transaction_values(raw, account_id, rule_set)
                check_column_widths(
                    Transaction, {"external_transaction_id": raw.transaction_id, **values}
                )
                txn = existing.get(raw.transaction_id)
                if txn is None:
                    txn = Transaction(
                        external_transaction_id=raw.transaction_id,
                        user_id=user_id,
                        **values,
                    )
                    self.db.add(txn)
                    existing[raw.transaction_id] = txn
                    result.new_transactions += 1
                elif txn.user_id != user_id:
                    raise ValueError("transaction belongs to another user")
                elif _apply_changes(txn, values):
                    result.updated_transactions += 1
                result.categories[values["display_category"]] += 1
            except Exception as exc:
                logger.warning(
                    "Skipping transaction record",
                    extra={"user_id": str(user_id), "error_type": type(exc).__name__},
                )
                result.errors.append(RecordError("transaction", raw.transaction_id, str(exc)))

        await self.db.flush()
