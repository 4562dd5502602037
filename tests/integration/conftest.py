import pytest

from moneyapp.services.reconciliation import ReconciliationEngine


@pytest.fixture
def seed(db_session, make_account):
    """Store provider records for a user the same way a sync would."""

    async def _seed(user, transactions, accounts=None):
        if accounts is None:
            accounts = [make_account()]
        result = await ReconciliationEngine(db_session).reconcile(user.id, accounts, transactions)
        await db_session.commit()
        return result

    return _seed
