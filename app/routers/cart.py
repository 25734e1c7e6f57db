# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from app.core.auth import Identity, require_identity
from app.database import get_session
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartItemCreate, CartItemUpdate, CartLineRead, CartRead
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=CartRead)
def get_my_cart(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_identity),
):
    """
    Get the caller's cart with food items and totals.

    A caller who never added anything gets an empty cart (id = null).
    """
    return service.get_cart(session, identity.id)


@router.post("/add", response_model=CartLineRead)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_identity),
):
    """
    Add a food item to the caller's cart.

    Adding an item that is already in the cart increases its quantity.
    Returns the resulting cart line.
    """
    return service.add_item(
        session,
        owner_id=identity.id,
        product_id=payload.food_item_id,
        quantity=payload.quantity,
    )


@router.delete("/remove/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_cart_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_identity),
):
    """
    Remove a line from the caller's cart.
    """
    service.remove_line(session, identity.id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/update/{item_id}", response_model=CartLineRead)
def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_identity),
):
    """
    Set the quantity of a line in the caller's cart.

    Quantity must be positive; use DELETE /cart/remove/{item_id} to drop a line.
    """
    return service.update_line_quantity(
        session,
        owner_id=identity.id,
        line_id=item_id,
        quantity=payload.quantity,
    )
