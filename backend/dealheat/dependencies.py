"""FastAPI dependency injection providers."""

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.core.exceptions import PermissionDeniedError, UnauthenticatedError
from dealheat.db.session import async_session_factory
from dealheat.models.user import User
from dealheat.services.auth_service import AuthService, decode_access_token

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is committed on success or rolled back on error, and always
    closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolve the bearer token to an active user, or None."""
    if not credentials:
        return None

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None

    user = await AuthService(db).get_user_by_id(user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Like get_optional_user but raises UnauthenticatedError (401)."""
    if user is None:
        raise UnauthenticatedError()
    return user


async def get_current_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Require an authenticated administrator (403 otherwise)."""
    if not user.is_admin:
        raise PermissionDeniedError()
    return user
