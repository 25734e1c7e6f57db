# app/core/storage_utils.py
import logging
import mimetypes
import uuid

from supabase import Client

from app.core.config import get_settings
from app.core.errors import AssetKeyCollision, AssetStoreError
from app.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)

settings = get_settings()


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"


def extension_for(filename: str | None, content_type: str | None) -> str:
    """
    Pick the extension for a stored image.

    The original filename wins ("cake.PNG" -> "png"); otherwise it is
    guessed from the MIME type, falling back to "bin".
    """
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].strip().lower()
        if ext:
            return ext
    if content_type:
        guessed = mimetypes.guess_extension(content_type)
        if guessed:
            return guessed.lstrip(".")
    return "bin"


def _is_duplicate(exc: Exception) -> bool:
    """True if a Storage error says the object already exists (HTTP 409)."""
    code = getattr(exc, "status", None) or getattr(exc, "code", None)
    details = exc.args[0] if exc.args else None
    if isinstance(details, dict):
        code = code or details.get("statusCode") or details.get("status")
    if str(code) == "409":
        return True
    text = str(exc).lower()
    return "already exists" in text or "duplicate" in text


class AssetStore:
    """
    Gateway to the Supabase Storage bucket holding food images.

    Objects are never overwritten: uploads go out with upsert disabled
    and a clash is reported as AssetKeyCollision.
    """

    def __init__(self, client: Client, bucket: str, folder: str):
        self.client = client
        self.bucket = bucket
        self.folder = folder.strip("/")

    def generate_key(self, ext: str) -> str:
        """Object path like "food-images/<uuid4>.png"."""
        filename = generate_filename(ext)
        if not self.folder:
            return filename
        return f"{self.folder}/{filename}"

    def upload(self, key: str, file_bytes: bytes, content_type: str) -> None:
        """
        Upload raw bytes under `key`.

        Raises:
            AssetKeyCollision: an object already exists at `key`.
            AssetStoreError: any other Storage failure.
        """
        try:
            self.client.storage.from_(self.bucket).upload(
                key,
                file_bytes,
                {"content-type": content_type, "upsert": "false"},
            )
        except Exception as exc:
            if _is_duplicate(exc):
                logger.warning("Storage key collision for %s", key)
                raise AssetKeyCollision() from exc
            logger.exception("Storage upload failed for %s", key)
            raise AssetStoreError() from exc

    def public_url(self, key: str) -> str:
        try:
            return self.client.storage.from_(self.bucket).get_public_url(key)
        except Exception as exc:
            logger.exception("Could not resolve public URL for %s", key)
            raise AssetStoreError() from exc

    def key_from_public_url(self, url: str) -> str | None:
        """
        Given a public URL, extract the object path relative to the bucket.

        Example:
            https://<proj>.supabase.co/storage/v1/object/public/food-images/food-images/x.png
            -> 'food-images/x.png'
        """
        marker = f"/storage/v1/object/public/{self.bucket}/"
        idx = url.find(marker)
        if idx == -1:
            return None
        return url[idx + len(marker) :].split("?", 1)[0]


def get_asset_store() -> AssetStore:
    """FastAPI dependency: the food image bucket on the shared admin client."""
    return AssetStore(
        supabase_admin(),
        bucket=settings.STORAGE_BUCKET,
        folder=settings.STORAGE_FOLDER,
    )
