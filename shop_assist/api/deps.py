from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.db import get_session
from shop_assist.core.errors import ValidationError
from shop_assist.core.security import decode_access_token
from shop_assist.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def parse_uuid(raw_value: str, field_name: str) -> UUID:
    try:
        return UUID(str(raw_value or "").strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid {field_name}") from exc


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    token: str = Depends(oauth2_scheme),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token)
    except (ValueError, TypeError):
        raise unauthorized

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise unauthorized
    return user
