"""
Food catalog endpoints: listing, multipart create/update, image rules.
"""
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.core.errors import StoreError
from app.models.asset import OrphanedAsset
from app.models.product import Product
from app.routers import food as food_router
from conftest import utc

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PUBLIC_PREFIX = "https://test-project.supabase.co/storage/v1/object/public/food-images/"


def _form(**overrides):
    data = {
        "name": "Pad Thai",
        "description": "Rice noodles, tamarind, peanuts",
        "price": "10.90",
        "category": "noodles",
    }
    data.update(overrides)
    return data


def _image(content=PNG, filename="pad-thai.png", content_type="image/png"):
    return {"image": (filename, content, content_type)}


def _products(engine):
    with Session(engine) as s:
        return s.exec(select(Product)).all()


def _orphans(engine):
    with Session(engine) as s:
        return s.exec(select(OrphanedAsset)).all()


class TestListFood:
    def test_newest_first(self, test_client: TestClient, make_product):
        make_product(name="Old soup", created_at=utc(2024, 1, 1))
        make_product(name="New curry", created_at=utc(2024, 6, 1))
        make_product(name="Mid salad", created_at=utc(2024, 3, 1))

        response = test_client.get("/api/food")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["New curry", "Mid salad", "Old soup"]

    def test_empty(self, test_client: TestClient):
        assert test_client.get("/api/food").json() == []


class TestCreateFood:
    def test_creates_product_linked_to_uploaded_image(self, test_client: TestClient, assets, engine):
        response = test_client.post("/api/food", data=_form(), files=_image())

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Pad Thai"
        assert Decimal(body["price"]) == Decimal("10.90")
        assert body["category"] == "noodles"

        [key] = assets.objects
        assert key.startswith("food-images/")
        assert key.endswith(".png")
        assert assets.objects[key] == (PNG, "image/png")
        assert body["image_url"] == PUBLIC_PREFIX + key
        assert len(_products(engine)) == 1

    def test_missing_image(self, test_client: TestClient, assets, engine):
        response = test_client.post("/api/food", data=_form())

        assert response.status_code == 400
        assert response.json() == {"error": "No image file provided"}
        assert assets.objects == {}
        assert _products(engine) == []

    def test_non_image_rejected_without_writes(self, test_client: TestClient, assets, engine):
        response = test_client.post(
            "/api/food",
            data=_form(),
            files=_image(b"%PDF-1.7", "menu.pdf", "application/pdf"),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Only image files are allowed"}
        assert assets.objects == {}
        assert _products(engine) == []

    def test_six_mib_image_rejected(self, test_client: TestClient, assets, engine):
        big = b"\x00" * (6 * 1024 * 1024)

        response = test_client.post("/api/food", data=_form(), files=_image(big))

        assert response.status_code == 413
        assert response.json() == {"error": "File size too large. Maximum 5MB allowed."}
        assert assets.objects == {}
        assert _products(engine) == []

    @pytest.mark.parametrize("price", ["abc", "-1", "NaN", "Infinity"])
    def test_invalid_price(self, test_client: TestClient, assets, engine, price):
        response = test_client.post("/api/food", data=_form(price=price), files=_image())

        assert response.status_code == 400
        assert response.json() == {"error": "Price must be a non-negative number"}
        assert assets.objects == {}
        assert _products(engine) == []

    def test_free_item_allowed(self, test_client: TestClient):
        response = test_client.post("/api/food", data=_form(price="0"), files=_image())

        assert response.status_code == 201
        assert Decimal(response.json()["price"]) == Decimal("0")

    def test_key_collision_is_not_overwritten(self, test_client: TestClient, assets, engine, monkeypatch):
        assets.objects["food-images/fixed.png"] = (b"original", "image/png")
        monkeypatch.setattr(assets, "generate_key", lambda ext: "food-images/fixed.png")

        response = test_client.post("/api/food", data=_form(), files=_image())

        assert response.status_code == 400
        assert response.json() == {"error": "File with this name already exists"}
        assert assets.objects["food-images/fixed.png"] == (b"original", "image/png")
        assert _products(engine) == []

    def test_storage_outage(self, test_client: TestClient, assets, engine):
        assets.fail_uploads = True

        response = test_client.post("/api/food", data=_form(), files=_image())

        assert response.status_code == 500
        assert response.json() == {"error": "Asset store unavailable"}
        assert _products(engine) == []

    def test_row_failure_after_upload_records_orphan(self, test_client: TestClient, assets, engine, monkeypatch):
        def failing_create(session, product):
            raise StoreError()

        monkeypatch.setattr(food_router.repo, "create", failing_create)

        response = test_client.post("/api/food", data=_form(), files=_image())

        assert response.status_code == 500
        assert response.json() == {"error": "Data store unavailable"}
        [key] = assets.objects
        [orphan] = _orphans(engine)
        assert orphan.asset_key == key
        assert orphan.reason == "link_failed"

    def test_missing_name_is_validation_error(self, test_client: TestClient):
        form = _form()
        del form["name"]

        response = test_client.post("/api/food", data=form, files=_image())

        assert response.status_code == 422
        assert "name" in response.json()["error"]


class TestUpdateFood:
    def test_fields_only_keeps_image(self, test_client: TestClient, assets, make_product):
        original_url = PUBLIC_PREFIX + "food-images/old.png"
        pizza = make_product(image_url=original_url, created_at=utc(2024, 1, 1))

        response = test_client.put(
            f"/api/food/{pizza.id}", data={"price": "11", "name": "Diavola"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Diavola"
        assert Decimal(body["price"]) == Decimal("11")
        assert body["category"] == "pizza"
        assert body["image_url"] == original_url
        assert body["updated_at"] > body["created_at"]
        assert assets.objects == {}

    def test_new_image_repoints_and_records_previous(self, test_client: TestClient, assets, engine, make_product):
        pizza = make_product(image_url=PUBLIC_PREFIX + "food-images/old.png")

        response = test_client.put(
            f"/api/food/{pizza.id}",
            files=_image(filename="new.jpg", content_type="image/jpeg"),
        )

        assert response.status_code == 200
        [key] = assets.objects
        assert key.endswith(".jpg")
        assert response.json()["image_url"] == PUBLIC_PREFIX + key
        [orphan] = _orphans(engine)
        assert orphan.asset_key == "food-images/old.png"
        assert orphan.reason == "replaced"

    def test_non_image_on_update(self, test_client: TestClient, assets, make_product):
        pizza = make_product()

        response = test_client.put(
            f"/api/food/{pizza.id}",
            files=_image(b"hello", "notes.txt", "text/plain"),
        )

        assert response.status_code == 400
        assert assets.objects == {}

    def test_invalid_price_on_update(self, test_client: TestClient, make_product):
        pizza = make_product()

        response = test_client.put(f"/api/food/{pizza.id}", data={"price": "cheap"})

        assert response.status_code == 400

    def test_unknown_food_item(self, test_client: TestClient):
        response = test_client.put(f"/api/food/{uuid.uuid4()}", data={"name": "Ghost"})

        assert response.status_code == 404
        assert response.json() == {"error": "Food item not found"}
