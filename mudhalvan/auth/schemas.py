import re
from typing import Optional

from pydantic import BaseModel, Field

REAL_NAME_PATTERN = re.compile(r"^[A-Za-z\s.]+$")


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class RealNameRequest(BaseModel):
    realName: Optional[str] = None


class SetRoleRequest(BaseModel):
    email: Optional[str] = None


class UserInfoUpdate(BaseModel):
    name: Optional[str] = None
    emailPreferences: Optional[dict] = None


def validate_real_name(value) -> str:
    """
    Returns the trimmed real name

    Raises:
        ValueError: empty, or contains anything but letters, spaces and dots
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Valid real name is required")
    if not REAL_NAME_PATTERN.match(value):
        raise ValueError("Name can only contain letters, spaces, and dots")
    return value.strip()
