# app/schemas/cart.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel

from app.schemas.product import ProductRead


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    quantity is checked by the service (not the schema) so a bad value
    yields the InvalidQuantity error instead of a generic 422.
    """

    food_item_id: uuid.UUID
    quantity: int = 1


class CartItemUpdate(SQLModel):
    """
    Payload for setting the quantity of a cart line.
    """

    quantity: int


class CartLineRead(SQLModel):
    id: uuid.UUID
    cart_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    created_at: datetime
    updated_at: datetime


class CartLineDetail(CartLineRead):
    """
    Cart line with the linked food item snapshot and line_total.
    """

    food_item: ProductRead | None = None
    line_total: Decimal


class CartRead(SQLModel):
    """
    Full cart response model with totals.

    id and created_at are None while the owner has no cart row yet.
    """

    id: uuid.UUID | None = None
    owner_id: uuid.UUID
    created_at: datetime | None = None
    items: list[CartLineDetail]
    total_quantity: int
    total_price: Decimal
