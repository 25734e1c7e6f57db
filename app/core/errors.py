# app/core/errors.py
"""
Application error taxonomy.

Services and repositories raise these instead of HTTPException so the
same rules hold outside a request. `app.main` renders every one of them
as `{"error": <message>}` with the class's status code.
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong!"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# ----- 4xx -----


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InvalidQuantity(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Quantity must be a positive integer"


class InvalidPrice(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Price must be a non-negative number"


class InvalidFileType(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Only image files are allowed"


class MissingImage(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No image file provided"


class PayloadTooLarge(AppError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = "File size too large."


class AssetKeyCollision(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "File with this name already exists"


# ----- 5xx (external dependencies) -----


class IdentityProviderError(AppError):
    """Auth provider rejected or failed a call; its message is passed on."""


class StoreError(AppError):
    message = "Data store unavailable"


class AssetStoreError(AppError):
    message = "Asset store unavailable"
