"""Integration tests for savings goals."""

from datetime import date, datetime, timedelta, timezone

import pytest

from moneyapp.core.exceptions import NotFoundError, ValidationError
from moneyapp.models.base import utcnow
from moneyapp.services.savings_goal import SavingsGoalService, as_deadline, compute_progress


@pytest.fixture
def service(db_session) -> SavingsGoalService:
    return SavingsGoalService(db_session)


async def create(service, user, target=100000, **kwargs):
    kwargs.setdefault("target_date", date.today() + timedelta(days=90))
    return await service.create_goal(user.id, kwargs.pop("name", "Holiday"), target, **kwargs)


def test_date_deadline_is_end_of_day():
    assert as_deadline(date(2024, 12, 31)) == datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


async def test_create_and_progress(service, test_user):
    goal = await create(service, test_user)
    goal = await service.add_to_goal(test_user.id, goal.id, 25000)

    progress = compute_progress(goal)
    assert goal.current_amount == 25000
    assert goal.is_completed is False
    assert progress.progress_percentage == 25.0
    assert progress.remaining_amount == 75000
    assert progress.is_overdue is False
    assert progress.days_remaining > 0


async def test_reaching_target_completes_goal(service, test_user):
    goal = await create(service, test_user, target=5000)

    goal = await service.add_to_goal(test_user.id, goal.id, 5000)

    assert goal.is_completed is True


async def test_remove_never_goes_below_zero(service, test_user):
    goal = await create(service, test_user, target=5000)
    await service.add_to_goal(test_user.id, goal.id, 5000)

    goal = await service.remove_from_goal(test_user.id, goal.id, 8000)

    assert goal.current_amount == 0
    assert goal.is_completed is False


@pytest.mark.parametrize("amount", [0, -1])
async def test_non_positive_amounts_rejected(service, test_user, amount):
    goal = await create(service, test_user)

    with pytest.raises(ValidationError) as exc_info:
        await service.add_to_goal(test_user.id, goal.id, amount)
    assert exc_info.value.error_code == "GOAL_002"

    with pytest.raises(ValidationError):
        await create(service, test_user, target=amount)


async def test_goal_of_another_user_is_not_found(service, test_user, another_user):
    goal = await create(service, test_user)

    with pytest.raises(NotFoundError) as exc_info:
        await service.add_to_goal(another_user.id, goal.id, 100)
    assert exc_info.value.error_code == "GOAL_001"


async def test_lowering_target_can_complete_goal(service, test_user):
    goal = await create(service, test_user, target=10000)
    await service.add_to_goal(test_user.id, goal.id, 6000)

    goal = await service.update_goal(test_user.id, goal.id, {"target_amount": 5000, "name": None})

    assert goal.target_amount == 5000
    assert goal.name == "Holiday"
    assert goal.is_completed is True


async def test_overdue_goal(service, test_user):
    goal = await create(service, test_user, target_date=date.today() - timedelta(days=2))

    progress = compute_progress(goal)

    assert progress.is_overdue is True
    assert progress.days_remaining < 0


async def test_goal_analytics(service, test_user):
    first = await create(service, test_user, target=10000, name="Bike")
    await create(service, test_user, target=30000, name="Laptop")
    await service.add_to_goal(test_user.id, first.id, 10000)

    analytics = await service.get_goal_analytics(test_user.id)

    assert analytics.total_goals == 2
    assert analytics.completed_goals == 1
    assert analytics.active_goals == 1
    assert analytics.total_target_amount == 40000
    assert analytics.total_current_amount == 10000
    assert analytics.total_remaining == 30000
    assert analytics.average_progress == 50.0
    assert analytics.overall_progress == 25.0


async def test_progress_history_against_linear_plan(service, test_user):
    goal = await create(service, test_user, target_date=utcnow() + timedelta(days=100))
    await service.add_to_goal(test_user.id, goal.id, 60000)

    history = await service.get_progress_history(
        test_user.id, goal.id, now=goal.created_at + timedelta(days=50)
    )

    assert history.days_since_start == 50
    assert history.total_days == 100
    assert history.expected_progress == 50.0
    assert history.is_on_track is True


async def test_contribution_suggestion(service, seed, test_user, make_transaction):
    today = date(2024, 3, 20)
    await seed(
        test_user,
        [
            make_transaction(
                "pay", amount=-300000, category=["Transfer", "Payroll"], merchant_name=None,
                name="ACME PAYROLL", txn_date=date(2024, 3, 1),
            ),
            make_transaction(
                "old_pay", amount=-300000, category=["Transfer", "Payroll"], merchant_name=None,
                name="ACME PAYROLL", txn_date=date(2024, 1, 1),
            ),
        ],
    )
    await create(service, test_user)

    suggestion = await service.suggest_contribution(test_user.id, today=today)

    assert suggestion.total_income == 300000
    assert suggestion.active_goals == 1
    assert suggestion.potential_contribution == 30000


async def test_delete_goal(service, test_user):
    goal = await create(service, test_user)

    await service.delete_goal(test_user.id, goal.id)

    with pytest.raises(NotFoundError):
        await service.get_goal(test_user.id, goal.id)
