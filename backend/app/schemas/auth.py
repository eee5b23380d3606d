"""Authentication request/response schemas."""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator


def _validate_password_complexity(v: str) -> str:
    """Enforce password complexity: 1 letter, 1 digit."""
    if not re.search(r"[A-Za-z]", v):
        raise ValueError("Password must contain at least one letter.")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one digit.")
    return v


class LoginRequest(BaseModel):
    user_name: EmailStr = Field(alias="UserName")
    password: str = Field(min_length=1, alias="Password")

    model_config = {"populate_by_name": True}


class RegisterRequest(BaseModel):
    user_name: EmailStr = Field(alias="UserName")
    password: str = Field(min_length=6, max_length=128, alias="Password")

    model_config = {"populate_by_name": True}

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_complexity(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=6, max_length=128, alias="newPassword")

    model_config = {"populate_by_name": True}

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_complexity(v)


class UserRead(BaseModel):
    id: int = Field(serialization_alias="PKID")
    user_name: str = Field(serialization_alias="UserName")
    admin: int

    model_config = {"from_attributes": True}
