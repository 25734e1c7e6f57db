# app/services/cart_service.py
import logging
import uuid
from decimal import Decimal

from sqlmodel import Session

from app.core.errors import InvalidQuantity, NotFound
from app.models.cart import MAX_QUANTITY, CartLine
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartLineDetail, CartRead
from app.schemas.product import ProductRead

logger = logging.getLogger(__name__)


def _validate_quantity(quantity: int) -> None:
    # bool is an int subclass; True is not a quantity.
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity()
    if quantity > MAX_QUANTITY:
        raise InvalidQuantity(f"Quantity cannot exceed {MAX_QUANTITY}")


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - lazily create the owner's single cart on first add
      - merge repeated adds of a food item into one line
      - check that a line belongs to the caller before touching it
      - compute line totals and cart totals for reads
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_owned_line(
        self, session: Session, owner_id: uuid.UUID, line_id: uuid.UUID
    ) -> CartLine:
        line = self.cart_repo.find_owned_line(session, owner_id, line_id)
        if line is None:
            raise NotFound("Cart item not found")
        return line

    # ---- public operations ----

    def get_cart(self, session: Session, owner_id: uuid.UUID) -> CartRead:
        """
        Return the owner's cart with food item snapshots and totals.

        An owner without a cart gets an empty view; no row is created.
        """
        cart = self.cart_repo.get_cart_with_lines(session, owner_id)
        if cart is None:
            return CartRead(
                owner_id=owner_id,
                items=[],
                total_quantity=0,
                total_price=Decimal("0"),
            )

        items: list[CartLineDetail] = []
        total_qty = 0
        total_price = Decimal("0")

        for line in sorted(cart.lines, key=lambda ln: ln.created_at):
            food_item = None
            line_total = Decimal("0")
            if line.product is not None:
                food_item = ProductRead.model_validate(line.product)
                line_total = line.product.price * line.quantity

            total_qty += line.quantity
            total_price += line_total

            items.append(
                CartLineDetail(
                    id=line.id,
                    cart_id=line.cart_id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    created_at=line.created_at,
                    updated_at=line.updated_at,
                    food_item=food_item,
                    line_total=line_total,
                )
            )

        return CartRead(
            id=cart.id,
            owner_id=cart.owner_id,
            created_at=cart.created_at,
            items=items,
            total_quantity=total_qty,
            total_price=total_price,
        )

    def add_item(
        self,
        session: Session,
        owner_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int,
    ) -> CartLine:
        """
        Add a food item to the owner's cart.

        Rules:
          - quantity must be a positive integer (checked before any store call)
          - the food item must exist
          - the cart is created on the first add
          - adding an item already in the cart accumulates its quantity
        """
        _validate_quantity(quantity)

        if self.product_repo.get_by_id(session, product_id) is None:
            raise NotFound("Food item not found")

        cart = self.cart_repo.get_or_create_cart(session, owner_id)
        line = self.cart_repo.upsert_line_quantity(session, cart.id, product_id, quantity)
        logger.info(
            "Cart %s: food item %s now at quantity %s", cart.id, product_id, line.quantity
        )
        return line

    def update_line_quantity(
        self,
        session: Session,
        owner_id: uuid.UUID,
        line_id: uuid.UUID,
        quantity: int,
    ) -> CartLine:
        """
        Set the quantity of a line directly (no merging).

        A line outside the caller's cart is reported as not found.
        """
        _validate_quantity(quantity)
        line = self._get_owned_line(session, owner_id, line_id)

        updated = self.cart_repo.set_line_quantity(session, line.id, quantity)
        if updated is None:
            raise NotFound("Cart item not found")
        return updated

    def remove_line(
        self,
        session: Session,
        owner_id: uuid.UUID,
        line_id: uuid.UUID,
    ) -> None:
        """
        Remove a line from the caller's cart.

        Removing a line that is already gone raises NotFound.
        """
        line = self._get_owned_line(session, owner_id, line_id)
        if not self.cart_repo.delete_line(session, line.id):
            raise NotFound("Cart item not found")
