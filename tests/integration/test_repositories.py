"""Integration tests for repository queries."""

from datetime import date, datetime, timezone

from moneyapp.models.budget import Budget, BudgetPeriod
from moneyapp.repositories.budget import BudgetRepository
from moneyapp.repositories.category_rule import CategoryRuleRepository
from moneyapp.repositories.transaction import TransactionFilters, TransactionRepository
from moneyapp.repositories.user import UserRepository


async def test_user_lookups(db_session, connected_user):
    repo = UserRepository(db_session)

    assert (await repo.get_by_email("connected@example.com")).id == connected_user.id
    assert (await repo.get_by_item_id("item-existing")).id == connected_user.id
    assert await repo.get_by_email("nobody@example.com") is None


async def test_get_for_user_enforces_ownership(db_session, seed, test_user, another_user, make_transaction):
    await seed(test_user, [make_transaction()])
    repo = TransactionRepository(db_session)
    txn = (await repo.get_all_by_user(test_user.id))[0]

    assert await repo.get_for_user(test_user.id, txn.id) is not None
    assert await repo.get_for_user(another_user.id, txn.id) is None


async def test_summarize_and_search(db_session, seed, test_user, make_transaction):
    await seed(
        test_user,
        [
            make_transaction("t1", amount=1000, merchant_name="Corner Deli"),
            make_transaction("t2", amount=-5000, merchant_name=None, name="Refund from DELI"),
            make_transaction("t3", amount=2000, merchant_name="Shell", txn_date=date(2020, 1, 1)),
        ],
    )
    repo = TransactionRepository(db_session)

    income, expenses, count = await repo.summarize(test_user.id, TransactionFilters(search="deli"))
    assert (income, expenses, count) == (5000, 1000, 2)

    _, total = await repo.list_filtered(
        test_user.id, TransactionFilters(end_date=date(2020, 12, 31))
    )
    assert total == 1


async def test_categorized_history(db_session, seed, test_user, make_transaction):
    await seed(
        test_user,
        [make_transaction("t1"), make_transaction("t2", merchant_name=None, name="ATM 42")],
    )

    history = await TransactionRepository(db_session).get_categorized_history(test_user.id)

    assert history == [("Starbucks", "Food & Dining")]


async def test_find_overlapping_budget(db_session, test_user):
    repo = BudgetRepository(db_session)
    await repo.create(
        Budget(
            user_id=test_user.id,
            name="Open ended",
            category="Shopping",
            amount=1000,
            period=BudgetPeriod.MONTHLY,
            start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            end_date=None,
        )
    )

    clash = await repo.find_overlapping(
        test_user.id,
        "Shopping",
        datetime(2030, 1, 1, tzinfo=timezone.utc),
        datetime(2030, 1, 31, tzinfo=timezone.utc),
    )
    assert clash is not None

    none = await repo.find_overlapping(
        test_user.id,
        "Groceries",
        datetime(2030, 1, 1, tzinfo=timezone.utc),
        datetime(2030, 1, 31, tzinfo=timezone.utc),
    )
    assert none is None


async def test_rule_upsert_overwrites_category(db_session, test_user):
    repo = CategoryRuleRepository(db_session)

    first = await repo.upsert(test_user.id, "Starbucks", False, "Coffee", 10)
    second = await repo.upsert(test_user.id, "Starbucks", False, "Treats", 1)
    await db_session.commit()

    assert first.id == second.id
    rules = await repo.get_all_by_user(test_user.id)
    assert len(rules) == 1
    assert rules[0].category == "Treats"
    assert rules[0].priority == 10
