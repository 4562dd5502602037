"""Integration tests for budget windows, overlap checks and spending."""

from datetime import date, datetime, timezone

import pytest

from moneyapp.core.exceptions import ConflictError, NotFoundError, ValidationError
from moneyapp.models.budget import BudgetPeriod
from moneyapp.services.budget import BudgetService


def at(year, month, day, hour=12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def service(db_session) -> BudgetService:
    return BudgetService(db_session)


@pytest.fixture
async def march_spending(seed, test_user, make_transaction):
    await seed(
        test_user,
        [
            make_transaction("tx_feb", amount=9900, txn_date=date(2024, 2, 29)),
            make_transaction("tx_mar1", amount=1000, txn_date=date(2024, 3, 1)),
            make_transaction("tx_mar10", amount=2000, txn_date=date(2024, 3, 10)),
            make_transaction("tx_mar31", amount=500, txn_date=date(2024, 3, 31)),
            make_transaction("tx_apr", amount=7000, txn_date=date(2024, 4, 1)),
            make_transaction(
                "tx_other", amount=3000, merchant_name="Amazon", txn_date=date(2024, 3, 5)
            ),
            make_transaction(
                "tx_refund", amount=-800, merchant_name="Starbucks", txn_date=date(2024, 3, 6)
            ),
        ],
    )


async def test_create_monthly_budget_derives_window(service, test_user):
    budget = await service.create_budget(
        test_user.id, "Eating out", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 10)
    )

    assert budget.start_date == datetime(2024, 3, 10, tzinfo=timezone.utc)
    assert budget.end_date.date() == date(2024, 3, 31)
    assert budget.is_active is True


async def test_overlapping_budget_rejected(service, test_user):
    await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    with pytest.raises(ConflictError) as exc_info:
        await service.create_budget(
            test_user.id, "Week", "Food & Dining", 5000, BudgetPeriod.WEEKLY, date(2024, 3, 20)
        )
    assert exc_info.value.error_code == "BUDGET_002"


async def test_adjacent_windows_and_other_categories_allowed(service, test_user):
    await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    april = await service.create_budget(
        test_user.id, "April", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 4, 1)
    )
    shopping = await service.create_budget(
        test_user.id, "Shops", "Shopping", 10000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    assert april.id != shopping.id


async def test_other_users_budgets_do_not_overlap(service, test_user, another_user):
    await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    budget = await service.create_budget(
        another_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    assert budget.user_id == another_user.id


@pytest.mark.parametrize("amount", [0, -100])
async def test_non_positive_amount_rejected(service, test_user, amount):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_budget(test_user.id, "Bad", "Shopping", amount)
    assert exc_info.value.error_code == "BUDGET_001"


async def test_blank_category_rejected(service, test_user):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_budget(test_user.id, "Bad", "   ", 1000)
    assert exc_info.value.error_code == "VAL_002"


async def test_spending_counts_only_window_category_and_expenses(
    service, test_user, march_spending
):
    budget = await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    spending = await service.compute_spending(budget, now=at(2024, 3, 15))

    assert spending.spent == 3500
    assert spending.remaining == 16500
    assert spending.percent_used == 17.5


async def test_spending_outside_window_is_zero(service, test_user, march_spending):
    budget = await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    before = await service.compute_spending(budget, now=at(2024, 2, 28))
    after = await service.compute_spending(budget, now=at(2024, 4, 2))

    assert before.spent == 0 and before.remaining == 20000
    assert after.spent == 0 and after.percent_used == 0.0


async def test_overspent_budget_goes_negative(service, test_user, march_spending):
    budget = await service.create_budget(
        test_user.id, "Tight", "Food & Dining", 2000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    spending = await service.compute_spending(budget, now=at(2024, 3, 31))

    assert spending.spent == 3500
    assert spending.remaining == -1500
    assert spending.percent_used == 175.0


async def test_update_amount_and_period(service, test_user):
    budget = await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    updated = await service.update_budget(
        test_user.id, budget.id, {"amount": 60000, "period": BudgetPeriod.QUARTERLY}
    )

    assert updated.amount == 60000
    assert updated.end_date.date() == date(2024, 5, 31)


async def test_update_into_overlap_rejected(service, test_user):
    await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    april = await service.create_budget(
        test_user.id, "April", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 4, 1)
    )

    with pytest.raises(ConflictError):
        await service.update_budget(test_user.id, april.id, {"start_date": date(2024, 3, 25)})


async def test_inactive_budget_does_not_block(service, test_user):
    march = await service.create_budget(
        test_user.id, "March", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    await service.update_budget(test_user.id, march.id, {"is_active": False})

    replacement = await service.create_budget(
        test_user.id, "March v2", "Food & Dining", 25000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    budgets = await service.list_budgets(test_user.id, now=at(2024, 3, 15))

    assert [b.id for b, _ in budgets] == [replacement.id]


async def test_get_budget_of_another_user_is_not_found(service, test_user, another_user):
    budget = await service.create_budget(test_user.id, "Mine", "Shopping", 1000)

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_budget(another_user.id, budget.id)
    assert exc_info.value.error_code == "BUDGET_003"


async def test_delete_budget(service, test_user):
    budget = await service.create_budget(test_user.id, "Mine", "Shopping", 1000)

    await service.delete_budget(test_user.id, budget.id)

    with pytest.raises(NotFoundError):
        await service.get_budget(test_user.id, budget.id)


async def test_available_categories_need_history(service, seed, test_user, make_transaction):
    await seed(
        test_user,
        [make_transaction(f"tx_food_{i}", amount=100 + i) for i in range(5)]
        + [make_transaction(f"tx_shop_{i}", merchant_name="Amazon") for i in range(2)],
    )

    assert await service.get_available_categories(test_user.id) == ["Food & Dining"]


async def test_sync_user_budgets_computes_each_active_budget(
    service, test_user, march_spending
):
    food = await service.create_budget(
        test_user.id, "Food", "Food & Dining", 20000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )
    shops = await service.create_budget(
        test_user.id, "Shops", "Shopping", 10000, BudgetPeriod.MONTHLY, date(2024, 3, 1)
    )

    results = await service.sync_user_budgets(test_user.id, now=at(2024, 3, 20))

    assert results[food.id].spent == 3500
    assert results[shops.id].spent == 3000
