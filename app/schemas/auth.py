# app/schemas/auth.py
from typing import Literal

from pydantic import EmailStr, ConfigDict
from sqlmodel import SQLModel, Field

# App-level roles, stored in the provider's user metadata.
Role = Literal["user", "admin"]


class RegisterRequest(SQLModel):
    """
    Sign-up payload.

    username and role end up in the provider's user_metadata.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)
    username: str | None = None
    role: Role = "user"


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)
