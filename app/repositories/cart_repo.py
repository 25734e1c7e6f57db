# app/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from app.core.errors import InvalidQuantity, StoreError
from app.database import store_errors
from app.models.cart import MAX_QUANTITY, Cart, CartLine


class CartRepository:
    """
    Data access layer for Cart & CartLine.

    - One cart per owner and one line per (cart, product) are enforced by
      unique constraints; losing an insert race is handled here by reading
      the winner's row, never by creating a second one.
    - Quantities are incremented in SQL so concurrent adds accumulate.
      An increment that would take a line past MAX_QUANTITY is refused.
    - Database failures surface as StoreError.
    """

    # ----- Carts -----

    def get_by_owner(self, session: Session, owner_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.owner_id == owner_id)
        return session.exec(stmt).first()

    def get_cart_with_lines(
        self, session: Session, owner_id: uuid.UUID
    ) -> Cart | None:
        """
        Cart of `owner_id` with its lines and each line's product loaded.

        None means the owner has no cart yet; it is not an error.
        """
        stmt = (
            select(Cart)
            .where(Cart.owner_id == owner_id)
            .options(selectinload(Cart.lines).selectinload(CartLine.product))
        )
        with store_errors(session, "loading cart"):
            return session.exec(stmt).first()

    def get_or_create_cart(self, session: Session, owner_id: uuid.UUID) -> Cart:
        with store_errors(session, "getting or creating cart"):
            cart = self.get_by_owner(session, owner_id)
            if cart is not None:
                return cart

            cart = Cart(owner_id=owner_id)
            session.add(cart)
            try:
                session.commit()
            except IntegrityError:
                # Someone else created this owner's cart first; use theirs.
                session.rollback()
                cart = self.get_by_owner(session, owner_id)
                if cart is None:
                    raise
                return cart

            session.refresh(cart)
            return cart

    # ----- Lines -----

    def find_line(
        self, session: Session, cart_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartLine | None:
        stmt = select(CartLine).where(
            CartLine.cart_id == cart_id, CartLine.product_id == product_id
        )
        with store_errors(session, "reading cart line"):
            return session.exec(stmt).first()

    def find_owned_line(
        self, session: Session, owner_id: uuid.UUID, line_id: uuid.UUID
    ) -> CartLine | None:
        """Return the line only if it sits in the cart owned by `owner_id`."""
        stmt = (
            select(CartLine)
            .join(Cart, CartLine.cart_id == Cart.id)
            .where(CartLine.id == line_id, Cart.owner_id == owner_id)
        )
        with store_errors(session, "reading cart line"):
            return session.exec(stmt).first()

    def _increment(
        self,
        session: Session,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int,
    ) -> int:
        stmt = (
            update(CartLine)
            .where(
                CartLine.cart_id == cart_id,
                CartLine.product_id == product_id,
                CartLine.quantity <= MAX_QUANTITY - quantity,
            )
            .values(
                quantity=CartLine.quantity + quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return session.exec(stmt).rowcount

    def _reject_overflow(
        self,
        session: Session,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int,
    ) -> None:
        """
        Raise InvalidQuantity if the line exists and adding `quantity`
        would take it past MAX_QUANTITY.
        """
        stmt = select(CartLine.id).where(
            CartLine.cart_id == cart_id,
            CartLine.product_id == product_id,
            CartLine.quantity > MAX_QUANTITY - quantity,
        )
        if session.exec(stmt).first() is not None:
            session.rollback()
            raise InvalidQuantity(f"Quantity cannot exceed {MAX_QUANTITY}")

    def upsert_line_quantity(
        self,
        session: Session,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int,
    ) -> CartLine:
        """
        Add `quantity` to the existing line, or create the line with it.

        Validation of `quantity` belongs to the service; a merged total
        above MAX_QUANTITY raises InvalidQuantity and leaves the line as is.
        """
        with store_errors(session, "merging cart line"):
            if self._increment(session, cart_id, product_id, quantity) == 0:
                self._reject_overflow(session, cart_id, product_id, quantity)
                session.add(
                    CartLine(cart_id=cart_id, product_id=product_id, quantity=quantity)
                )
                try:
                    session.commit()
                except IntegrityError:
                    # A concurrent add inserted the line first; fold into it.
                    session.rollback()
                    if self._increment(session, cart_id, product_id, quantity) == 0:
                        self._reject_overflow(session, cart_id, product_id, quantity)
                        raise
                    session.commit()
            else:
                session.commit()

        line = self.find_line(session, cart_id, product_id)
        if line is None:
            # Removed by a concurrent request between the write and the read.
            raise StoreError()
        return line

    def set_line_quantity(
        self, session: Session, line_id: uuid.UUID, quantity: int
    ) -> CartLine | None:
        """
        Overwrite the quantity of a line. Returns None if the line is gone.

        Zero is not a way to delete: non-positive values raise InvalidQuantity.
        """
        if quantity <= 0:
            raise InvalidQuantity()
        if quantity > MAX_QUANTITY:
            raise InvalidQuantity(f"Quantity cannot exceed {MAX_QUANTITY}")

        with store_errors(session, "updating cart line"):
            line = session.get(CartLine, line_id)
            if line is None:
                return None
            line.quantity = quantity
            line.updated_at = datetime.now(timezone.utc)
            session.add(line)
            session.commit()
            session.refresh(line)
            return line

    def delete_line(self, session: Session, line_id: uuid.UUID) -> bool:
        """Delete a line. False if there was nothing to delete."""
        stmt = delete(CartLine).where(CartLine.id == line_id)
        with store_errors(session, "deleting cart line"):
            deleted = session.exec(stmt).rowcount
            session.commit()
        return deleted > 0
