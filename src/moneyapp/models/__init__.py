"""Database models."""
from moneyapp.models.base import Base
from moneyapp.models.user import SyncStatus, User
from moneyapp.models.account import Account
from moneyapp.models.transaction import Transaction
from moneyapp.models.budget import Budget, BudgetPeriod
from moneyapp.models.savings_goal import SavingsGoal
from moneyapp.models.category_rule import CategoryRule

__all__ = [
    "Base",
    "User",
    "SyncStatus",
    "Account",
    "Transaction",
    "Budget",
    "BudgetPeriod",
    "SavingsGoal",
    "CategoryRule",
]
