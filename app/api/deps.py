"""Shared API dependencies."""

from typing import AsyncGenerator

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.db.session import async_session_maker
from app.models.operator import Operator
from app.services.analytics import AnalyticsRecorder
from app.services.notifications import NotificationDispatcher

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory; overridden in tests to point at a scratch database."""
    return async_session_maker


async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_analytics_recorder(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AnalyticsRecorder:
    """Recorder writing in its own sessions, apart from the request's transaction."""
    return AnalyticsRecorder(session_factory)


def get_notification_dispatcher(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory)


def _decode_token(token: str) -> str:
    """Decode and validate JWT token, return username."""
    payload = jwt.decode(
        token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
    )
    username: str | None = payload.get("sub")
    if username is None:
        raise JWTError("No subject in token")
    return username


async def get_current_operator(
    token: str | None = Depends(oauth2_scheme),
    access_token: str | None = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> Operator:
    """Resolve the operator from a bearer token or the auth cookie."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = token or access_token
    if not raw_token:
        raise credentials_exception

    try:
        username = _decode_token(raw_token)
    except JWTError:
        raise credentials_exception

    result = await db.execute(select(Operator).where(Operator.username == username))
    operator = result.scalar_one_or_none()
    if operator is None or not operator.is_active:
        raise credentials_exception
    return operator


async def get_current_user(operator: Operator = Depends(get_current_operator)) -> str:
    """Username of the authenticated operator (API routes)."""
    return operator.username


def request_context(request: Request) -> dict[str, str | None]:
    """Client details recorded alongside analytics events."""
    return {
        "source": request.query_params.get("source"),
        "user_agent": request.headers.get("user-agent"),
        "referrer": request.headers.get("referer"),
    }
