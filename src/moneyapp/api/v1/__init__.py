"""API version 1 routes."""

from fastapi import APIRouter

from moneyapp.api.v1 import (
    accounts,
    admin,
    analytics,
    budgets,
    category_rules,
    goals,
    sync,
    transactions,
)

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(sync.router)
router.include_router(accounts.router)
router.include_router(transactions.router)
router.include_router(category_rules.router)
router.include_router(budgets.router)
router.include_router(goals.router)
router.include_router(analytics.router)
router.include_router(admin.router)
