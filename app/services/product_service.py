# app/services/product_service.py
import logging
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlmodel import Session

from app.core.errors import (
    InvalidFileType,
    InvalidPrice,
    MissingImage,
    NotFound,
    PayloadTooLarge,
    StoreError,
)
from app.core.storage_utils import AssetStore, extension_for
from app.models.asset import OrphanReason
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ImageUpload, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

# --- Price config ---

# products.price is NUMERIC(10, 2)
PRICE_STEP = Decimal("0.01")
PRICE_LIMIT = Decimal("100000000")


def _format_size(num_bytes: int) -> str:
    """5242880 -> "5MB", 1024 -> "1KB", 1500 -> "1500 bytes"."""
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if num_bytes >= factor and num_bytes % factor == 0:
            return f"{num_bytes // factor}{unit}"
    return f"{num_bytes} bytes"


class ProductService:
    """
    Business logic for the food catalog.

    Responsibilities:
      - validation beyond pydantic (price, image type and size)
      - image upload then row write ("upload, then link")
      - bookkeeping of Storage objects no row points at any more

    Upload and row write are two systems with no shared transaction:
    when the row write fails after an upload, the object is left in the
    bucket and its key goes to the orphaned asset ledger.
    """

    def __init__(self, repo: ProductRepository, assets: AssetStore, max_image_bytes: int):
        self.repo = repo
        self.assets = assets
        self.max_image_bytes = max_image_bytes

    # ----- Helpers -----

    @staticmethod
    def parse_price(raw: str) -> Decimal:
        """
        Parse a form price ("12.5", " 3 ") into a 2-decimal Decimal.

        Raises:
            InvalidPrice: not a number, not finite, negative, or too large.
        """
        try:
            value = Decimal(str(raw).strip())
        except InvalidOperation:
            raise InvalidPrice()
        if not value.is_finite() or value < 0 or value >= PRICE_LIMIT:
            raise InvalidPrice()
        # abs() folds "-0" into 0.00
        return abs(value).quantize(PRICE_STEP, rounding=ROUND_HALF_UP)

    def _validate_image(self, image: ImageUpload | None) -> ImageUpload:
        if image is None or not image.data:
            raise MissingImage()

        if not image.content_type or not image.content_type.startswith("image/"):
            raise InvalidFileType()

        if len(image.data) > self.max_image_bytes:
            raise PayloadTooLarge(
                f"File size too large. Maximum {_format_size(self.max_image_bytes)} allowed."
            )

        return image

    def _store_image(self, image: ImageUpload) -> tuple[str, str]:
        """
        Upload under a fresh key and return (key, public_url).

        A key collision is not retried here; AssetKeyCollision goes back
        to the caller.
        """
        key = self.assets.generate_key(extension_for(image.filename, image.content_type))
        self.assets.upload(key, image.data, image.content_type)
        return key, self.assets.public_url(key)

    def _record_orphan(self, session: Session, key: str, reason: OrphanReason) -> None:
        logger.warning("Orphaned asset %s (%s)", key, reason)
        try:
            self.repo.record_orphaned_asset(session, key, reason)
        except StoreError:
            # The warning above is the only trace left for reconciliation.
            logger.error("Could not record orphaned asset %s in the ledger", key)

    # ----- Products -----

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFound("Food item not found")
        return product

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
        image: ImageUpload | None,
    ) -> Product:
        """
        Create a food item with its image.

        Every check runs before the upload, so a rejected request writes
        nothing anywhere.
        """
        image = self._validate_image(image)
        price = self.parse_price(payload.price)

        key, url = self._store_image(image)

        product = Product(
            name=payload.name,
            description=payload.description,
            price=price,
            category=payload.category,
            image_url=url,
        )
        try:
            created = self.repo.create(session, product)
        except StoreError:
            self._record_orphan(session, key, "link_failed")
            raise

        logger.info("Created food item %s with image %s", created.id, key)
        return created

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
        image: ImageUpload | None = None,
    ) -> Product:
        """
        Partial update of a food item, optionally replacing its image.

        - Without an image, image_url is left as it is.
        - With an image, image_url is repointed to the new object and the
          previous object is recorded as orphaned ("replaced").
        """
        product = self.get_product(session, product_id)

        price = self.parse_price(payload.price) if payload.price is not None else None
        if image is not None:
            image = self._validate_image(image)

        new_key = None
        previous_url = product.image_url
        if image is not None:
            new_key, product.image_url = self._store_image(image)

        if payload.name is not None:
            product.name = payload.name

        if payload.description is not None:
            product.description = payload.description

        if price is not None:
            product.price = price

        if payload.category is not None:
            product.category = payload.category

        product.updated_at = datetime.now(timezone.utc)

        try:
            updated = self.repo.update(session, product)
        except StoreError:
            if new_key:
                self._record_orphan(session, new_key, "link_failed")
            raise

        if new_key and previous_url:
            previous_key = self.assets.key_from_public_url(previous_url)
            if previous_key:
                self._record_orphan(session, previous_key, "replaced")

        return updated
