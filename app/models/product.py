# app/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(SQLModel, table=True):
    """
    Food item in the catalog.

    image_url points at the current image in Storage. Replacing the image
    repoints this column; the previous object stays in the bucket.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the dish",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    price: Decimal = Field(
        ge=0,
        max_digits=10,
        decimal_places=2,
        description="Unit price",
    )

    category: str | None = Field(
        default=None,
        max_length=100,
        index=True,
    )

    image_url: str | None = Field(
        default=None,
        description="Public URL of the image in Supabase Storage",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        index=True,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last modification timestamp (UTC)",
    )
