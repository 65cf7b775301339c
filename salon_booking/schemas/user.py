from pydantic import BaseModel, field_validator
from typing import Optional
from enum import Enum

class Role(str, Enum):
    CUSTOMER = "customer"
    SPECIALIST = "specialist"
    ADMIN = "admin"

class Caller(BaseModel):
    """Authenticated caller as supplied by the identity provider."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Role.CUSTOMER

    @field_validator("role", mode="before")
    @classmethod
    def legacy_user_role(cls, value):
        # Older clients tag customers as "user"
        if value == "user":
            return Role.CUSTOMER
        return value
