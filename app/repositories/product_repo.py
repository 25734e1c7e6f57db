# app/repositories/product_repo.py
import uuid

from sqlmodel import Session, select

from app.database import store_errors
from app.models.asset import OrphanedAsset, OrphanReason
from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product & the orphaned asset ledger.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        with store_errors(session, "reading product"):
            return session.get(Product, product_id)

    def list_newest_first(self, session: Session) -> list[Product]:
        stmt = select(Product).order_by(Product.created_at.desc())
        with store_errors(session, "listing products"):
            return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        with store_errors(session, "creating product"):
            session.add(product)
            session.commit()
            session.refresh(product)
            return product

    def update(self, session: Session, product: Product) -> Product:
        with store_errors(session, "updating product"):
            session.add(product)
            session.commit()
            session.refresh(product)
            return product

    # ----- Orphaned assets -----

    def record_orphaned_asset(
        self,
        session: Session,
        asset_key: str,
        reason: OrphanReason,
    ) -> OrphanedAsset:
        entry = OrphanedAsset(asset_key=asset_key, reason=reason)
        with store_errors(session, "recording orphaned asset"):
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry
