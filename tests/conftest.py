"""
Shared fixtures.

Environment variables are set before anything from `app` is imported,
because settings are read at import time.
"""
import os

os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["DATABASE_URL"] = "sqlite://"

import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.errors import AssetKeyCollision, AssetStoreError, IdentityProviderError
from app.core.identity_provider import IdentityProvider, get_identity_provider
from app.core.storage_utils import AssetStore, get_asset_store
from app.database import get_session
from app.main import app
from app.models.product import Product

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


class InMemoryAssetStore(AssetStore):
    """Bucket double: keeps objects in a dict, rejects existing keys."""

    def __init__(self):
        super().__init__(client=None, bucket="food-images", folder="food-images")
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False

    def upload(self, key: str, file_bytes: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise AssetStoreError()
        if key in self.objects:
            raise AssetKeyCollision()
        self.objects[key] = (file_bytes, content_type)

    def public_url(self, key: str) -> str:
        return f"https://test-project.supabase.co/storage/v1/object/public/{self.bucket}/{key}"


class FakeIdentityProvider(IdentityProvider):
    """Auth double: records calls, optionally fails with a provider message."""

    def __init__(self):
        super().__init__(client=None)
        self.calls: list[tuple[str, Any]] = []
        self.error: str | None = None

    def _maybe_fail(self):
        if self.error:
            raise IdentityProviderError(self.error)

    def sign_up(self, email, password, metadata=None):
        self.calls.append(("sign_up", {"email": email, "metadata": metadata}))
        self._maybe_fail()
        return {"user": {"id": str(uuid.uuid4()), "email": email, "user_metadata": metadata}, "session": None}

    def sign_in(self, email, password):
        self.calls.append(("sign_in", {"email": email}))
        self._maybe_fail()
        return {"user": {"email": email}, "session": {"access_token": "access", "refresh_token": "refresh"}}

    def get_user(self, access_token):
        self.calls.append(("get_user", access_token))
        self._maybe_fail()
        return {"id": "user-id", "email": "eater@example.com"}

    def sign_out(self, access_token):
        self.calls.append(("sign_out", access_token))
        self._maybe_fail()


def make_token(sub: Any, email: str | None = "eater@example.com", expires_in: int = 3600, secret: str = JWT_SECRET) -> str:
    claims: dict[str, Any] = {
        "sub": str(sub),
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def assets():
    return InMemoryAssetStore()


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def test_client(engine, assets, provider):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_asset_store] = lambda: assets
    app.dependency_overrides[get_identity_provider] = lambda: provider
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(engine):
    def _make(
        name: str = "Margherita",
        price: str = "9.50",
        category: str | None = "pizza",
        created_at: datetime | None = None,
        image_url: str | None = None,
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            category=category,
            image_url=image_url,
        )
        if created_at is not None:
            product.created_at = created_at
            product.updated_at = created_at
        with Session(engine) as s:
            s.add(product)
            s.commit()
            s.refresh(product)
            s.expunge(product)
        return product

    return _make


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def headers(user_id):
    return auth_headers(user_id)


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)
