# app/models/cart.py
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship

from app.models.product import Product

# cart_lines.quantity is a 32-bit INTEGER column
MAX_QUANTITY = 2**31 - 1


class Cart(SQLModel, table=True):
    """
    Shopping cart of one identity.

    owner_id is the Supabase auth user id (JWT "sub"). It is unique:
    an owner can never have two carts, the database rejects the second.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    owner_id: uuid.UUID = Field(
        unique=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    lines: list["CartLine"] = Relationship(back_populates="cart")


class CartLine(SQLModel, table=True):
    """
    One product inside a cart.
    A cart cannot have 2 rows for the same product.
    """

    __tablename__ = "cart_lines"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_lines_cart_product"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        le=MAX_QUANTITY,
        description="Must be >= 1",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    cart: Optional[Cart] = Relationship(back_populates="lines")
    product: Optional[Product] = Relationship()
