"""FastAPI dependency injection for authentication, database and provider access."""

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneyapp.config import settings
from moneyapp.core.exceptions import MoneyAppError
from moneyapp.core.security import get_user_id_from_token
from moneyapp.db.session import AsyncSessionLocal, get_db
from moneyapp.models.user import User
from moneyapp.providers.base import AccountDataProvider
from moneyapp.providers.plaid import PlaidClient
from moneyapp.repositories.user import UserRepository
from moneyapp.services.sync import SyncOrchestrator

# OAuth2 bearer token scheme
security = HTTPBearer()

_provider: PlaidClient | None = None


async def get_user_repository(
    db: AsyncSession = Depends(get_db),
) -> UserRepository:
    return UserRepository(db)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    user_repo: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Extract and validate user from JWT token.

    Args:
        credentials: HTTP bearer token credentials
        user_repo: User repository for database queries

    Returns:
        Authenticated user object

    Raises:
        HTTPException: If token is invalid, expired, or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError:
        raise credentials_exception
    except ValueError:
        raise credentials_exception

    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


def get_provider() -> AccountDataProvider:
    """Process-wide provider client; its HTTP connection pool is shared."""
    global _provider
    if _provider is None:
        _provider = PlaidClient()
    return _provider


async def close_provider() -> None:
    global _provider
    if _provider is not None:
        await _provider.close()
        _provider = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


def get_sync_orchestrator(
    provider: AccountDataProvider = Depends(get_provider),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SyncOrchestrator:
    return SyncOrchestrator(session_factory, provider)


async def require_admin_key(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard for operator endpoints. Without a configured key they stay closed."""
    expected = settings.admin_api_key
    if not expected or not x_admin_key or not secrets.compare_digest(x_admin_key, expected):
        raise MoneyAppError("AUTH_001", http_status=status.HTTP_403_FORBIDDEN)
