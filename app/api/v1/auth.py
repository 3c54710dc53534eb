"""Authentication endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_operator, get_db
from app.config import get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.operator import Operator
from app.schemas.auth import OperatorInfo, PasswordChange, Token

router = APIRouter()
settings = get_settings()


@router.post("/login", response_model=Token)
async def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate operator and return JWT token."""
    result = await db.execute(
        select(Operator).where(Operator.username == form_data.username)
    )
    operator = result.scalar_one_or_none()

    if not operator or not verify_password(form_data.password, operator.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not operator.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    operator.last_login = datetime.now(timezone.utc)
    await db.commit()

    access_token = create_access_token(data={"sub": operator.username})

    # Set cookie for browser-based access
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )

    return Token(access_token=access_token, token_type="bearer")


@router.post("/logout")
async def logout(response: Response) -> dict:
    """Log out operator by clearing the auth cookie."""
    response.delete_cookie(key="access_token")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=OperatorInfo)
async def me(operator: Operator = Depends(get_current_operator)) -> OperatorInfo:
    """Get current authenticated operator info."""
    return OperatorInfo.model_validate(operator)


@router.post("/password")
async def change_password(
    payload: PasswordChange,
    operator: Operator = Depends(get_current_operator),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Change the signed-in operator's password."""
    if not verify_password(payload.current_password, operator.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    operator.password_hash = get_password_hash(payload.new_password)
    await db.commit()

    return {"success": True, "message": "Password updated successfully"}
