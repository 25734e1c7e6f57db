# app/routers/food.py
import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlmodel import Session

from app.core.config import get_settings
from app.core.storage_utils import AssetStore, get_asset_store
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ImageUpload, ProductCreate, ProductRead, ProductUpdate
from app.services.product_service import ProductService

settings = get_settings()

router = APIRouter(prefix="/food", tags=["Food"])

repo = ProductRepository()


def get_product_service(assets: AssetStore = Depends(get_asset_store)) -> ProductService:
    return ProductService(repo, assets, max_image_bytes=settings.MAX_IMAGE_BYTES)


def _read_image(file: UploadFile | None) -> ImageUpload | None:
    """
    Read an uploaded image, at most one byte past the size limit.

    That extra byte is enough for the service to reject oversized files
    without buffering all of them. An empty file field counts as no image.
    """
    if file is None:
        return None
    data = file.file.read(settings.MAX_IMAGE_BYTES + 1)
    if not data and not file.filename:
        return None
    return ImageUpload(filename=file.filename, content_type=file.content_type, data=data)


@router.get("", response_model=list[ProductRead])
def list_food(session: Session = Depends(get_session)):
    """
    List food items, newest first.

    Read-only, so it goes straight to the repository and needs no Storage client.
    """
    return repo.list_newest_first(session)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_food(
    name: str = Form(...),
    price: str = Form(...),
    description: str | None = Form(None),
    category: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a food item with an image (multipart/form-data).

    - `image` is required; only image/* types, max 5MB.
    """
    payload = ProductCreate(
        name=name,
        price=price,
        description=description,
        category=category,
    )
    return service.create_product(session, payload, _read_image(image))


@router.put("/{food_id}", response_model=ProductRead)
def update_food(
    food_id: uuid.UUID,
    name: str | None = Form(None),
    price: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Update a food item (multipart/form-data).

    - All fields optional; only the ones sent are changed.
    - Sending `image` uploads it and repoints image_url.
    """
    payload = ProductUpdate(
        name=name,
        price=price,
        description=description,
        category=category,
    )
    return service.update_product(session, food_id, payload, _read_image(image))
