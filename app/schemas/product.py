# app/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ProductRead(SQLModel):
    """
    Food item representation for clients.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    category: str | None = None
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductCreate(SQLModel):
    """
    Form fields for creating a food item.

    price stays a raw string here; the service parses it so an
    unparseable value is reported as InvalidPrice.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    description: str | None = None
    price: str
    category: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("description", "category")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProductUpdate(SQLModel):
    """
    Partial update form for food items.
    All fields are optional; only provided ones are written.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price: str | None = None
    category: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("description", "category")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ImageUpload(SQLModel):
    """
    Uploaded image as read from the multipart request.
    """

    filename: str | None = None
    content_type: str | None = None
    data: bytes = b""
