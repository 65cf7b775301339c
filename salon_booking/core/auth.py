from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from salon_booking.core.config import settings
from salon_booking.core.errors import Forbidden
from salon_booking.schemas.user import Caller, Role
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )

    return encoded_jwt

async def get_current_user(token: str = Depends(oauth2_scheme)) -> Caller:
    """Get the calling user from a token issued by the identity provider.

    Expected claims: { sub: <user id>, role: "customer" | "specialist" | "admin",
    name, email, phone }. For specialists `sub` is the id of the specialist
    record they manage.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        subject: str = payload.get("sub")
        if subject is None:
            raise credentials_exception
        return Caller(
            id=subject,
            name=payload.get("name"),
            email=payload.get("email"),
            phone=payload.get("phone"),
            role=payload.get("role") or Role.CUSTOMER,
        )
    except JWTError as jwt_error:
        logger.warning(f"JWT decode error: {jwt_error}")
        raise credentials_exception
    except ValidationError as e:
        logger.warning(f"Invalid claims in token: {e}")
        raise credentials_exception

def require_role(*roles: Role):
    """Dependency factory letting only the given roles through."""
    async def checker(current_user: Caller = Depends(get_current_user)) -> Caller:
        if current_user.role not in roles:
            raise Forbidden()
        return current_user
    return checker

def ensure_manages_specialist(current_user: Caller, specialist_id: str) -> None:
    """Allow admins and the specialist owning the schedule."""
    if current_user.role == Role.ADMIN:
        return
    if current_user.role == Role.SPECIALIST and current_user.id == specialist_id:
        return
    raise Forbidden("You can only manage your own schedule")
