# app/models/asset.py
import uuid
from datetime import datetime, timezone
from typing import Literal

from sqlmodel import SQLModel, Field

OrphanReason = Literal["link_failed", "replaced"]


class OrphanedAsset(SQLModel, table=True):
    """
    Storage object no product row points at any more.

    Reasons:
      - "link_failed": upload succeeded but the product write did not
      - "replaced": a product update repointed image_url to a new object

    Rows are only recorded here; cleanup of the bucket happens elsewhere.
    """

    __tablename__ = "orphaned_assets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    asset_key: str = Field(index=True, description="Object path inside the bucket")
    reason: str = Field(max_length=32)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
