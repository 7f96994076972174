import json
import uuid

import pytest
from fastapi import HTTPException
from sqlmodel import select

from adorchestrator.api import brand_routes
from adorchestrator.models.brand_models import Brand, BrandColor, Product
from adorchestrator.models.usage_models import APIUsage

BRAND_JSON = {
    "name": "Northwind",
    "description": "Outdoor gear",
    "colors": [{"hex_code": "#0A3D62", "name": "Deep Blue", "is_primary": True}],
    "fonts": [{"font_family": "Inter"}],
    "tone": [{"descriptor": "Adventurous"}, {"descriptor": "Warm"}],
}

PDF_FILE = ("guidelines.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture
def extraction(monkeypatch, fake_provider):
    """Skip real PDF parsing and route extraction to a fake model."""
    provider = fake_provider(text=json.dumps(BRAND_JSON))
    monkeypatch.setattr(brand_routes, "extract_text_from_pdf", lambda data: "Northwind brand book")
    monkeypatch.setattr(brand_routes, "select_provider", lambda name="auto": ("fake", provider))
    return provider


def test_create_list_and_get(client) -> None:
    created = client.post("/api/brands", json={"name": " Northwind "})
    assert created.status_code == 201
    assert created.json()["name"] == "Northwind"

    assert [b["name"] for b in client.get("/api/brands").json()] == ["Northwind"]

    brand = client.get(f"/api/brands/{created.json()['id']}").json()
    assert brand["colors"] == []
    assert brand["tone"] == []


def test_create_requires_name(client) -> None:
    response = client.post("/api/brands", json={"description": "nameless"})
    assert response.status_code == 400
    assert response.json() == {"error": "name is required"}


def test_upload_requires_file(client) -> None:
    response = client.post("/api/brands/upload")
    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_upload_rejects_non_pdf(client) -> None:
    response = client.post(
        "/api/brands/upload", files={"file": ("notes.txt", b"hello", "text/plain")}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "File must be a PDF"}


def test_upload_extracts_and_saves_brand(client, session, extraction) -> None:
    response = client.post("/api/brands/upload", files={"file": PDF_FILE})

    body = response.json()
    assert response.status_code == 201
    assert body["name"] == "Northwind"
    assert body["colors"][0]["hex_code"] == "#0A3D62"
    assert body["fonts"][0]["font_family"] == "Inter"
    assert sorted(t["descriptor"] for t in body["tone"]) == ["Adventurous", "Warm"]

    usage = session.exec(select(APIUsage)).one()
    assert usage.api_endpoint == "brand_extraction"
    assert usage.input_tokens == 120
    assert usage.success is True


def test_upload_reports_unreadable_pdf(client) -> None:
    response = client.post("/api/brands/upload", files={"file": PDF_FILE})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to extract text from PDF"}


def test_upload_reports_bad_model_output(client, session, extraction) -> None:
    extraction.text = "Sorry, I cannot help with that."

    response = client.post("/api/brands/upload", files={"file": PDF_FILE})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to extract brand data from PDF content"}
    assert session.exec(select(Brand)).all() == []
    assert session.exec(select(APIUsage)).one().success is False


def test_upload_without_ai_provider(client, monkeypatch) -> None:
    def no_provider(name="auto"):
        raise HTTPException(status_code=503, detail="No AI provider configured.")

    monkeypatch.setattr(brand_routes, "extract_text_from_pdf", lambda data: "text")
    monkeypatch.setattr(brand_routes, "select_provider", no_provider)

    response = client.post("/api/brands/upload", files={"file": PDF_FILE})
    assert response.status_code == 503


def test_delete_removes_children(client, session, extraction) -> None:
    brand_id = client.post("/api/brands/upload", files={"file": PDF_FILE}).json()["id"]
    client.post("/api/products", json={"brand_id": brand_id, "name": "Tent"})

    response = client.delete(f"/api/brands/{brand_id}")

    assert response.json() == {"success": True, "deleted_id": brand_id}
    assert session.exec(select(BrandColor)).all() == []
    assert session.exec(select(Product)).all() == []
    assert client.get(f"/api/brands/{brand_id}").status_code == 404


def test_products_filter_by_brand(client) -> None:
    first = client.post("/api/brands", json={"name": "A"}).json()["id"]
    second = client.post("/api/brands", json={"name": "B"}).json()["id"]
    client.post("/api/products", json={"brand_id": first, "name": "Tent"})
    client.post("/api/products", json={"brand_id": second, "name": "Kayak"})

    products = client.get("/api/products", params={"brand_id": first}).json()
    assert [p["name"] for p in products] == ["Tent"]
    assert len(client.get("/api/products").json()) == 2


def test_product_validation(client) -> None:
    assert client.post("/api/products", json={"name": "Tent"}).status_code == 400
    missing_brand = client.post(
        "/api/products", json={"brand_id": str(uuid.uuid4()), "name": "Tent"}
    )
    assert missing_brand.status_code == 404


def test_patch_replaces_only_given_children(client, extraction) -> None:
    brand_id = client.post("/api/brands/upload", files={"file": PDF_FILE}).json()["id"]

    response = client.patch(
        f"/api/brands/{brand_id}",
        json={
            "description": "Outdoor gear since 1998",
            "colors": [{"hex_code": "#FFFFFF", "name": "Snow"}, {"hex_code": "#000000"}],
            "tone": [],
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["name"] == "Northwind"
    assert body["description"] == "Outdoor gear since 1998"
    assert {c["hex_code"] for c in body["colors"]} == {"#FFFFFF", "#000000"}
    assert [f["font_family"] for f in body["fonts"]] == ["Inter"]
    assert body["tone"] == []


def test_patch_unknown_or_malformed_brand(client) -> None:
    assert client.patch(f"/api/brands/{uuid.uuid4()}", json={"name": "X"}).status_code == 404
    bad = client.patch("/api/brands/not-a-uuid", json={"name": "X"})
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid brand ID format"}


def test_product_get_patch_and_delete(client) -> None:
    brand_id = client.post("/api/brands", json={"name": "A"}).json()["id"]
    product_id = client.post(
        "/api/products", json={"brand_id": brand_id, "name": "Tent", "sku": "T-1"}
    ).json()["id"]

    assert client.get(f"/api/products/{product_id}").json()["sku"] == "T-1"

    patched = client.patch(
        f"/api/products/{product_id}",
        json={"name": "Tent XL", "brand_id": str(uuid.uuid4())},
    ).json()
    assert patched["name"] == "Tent XL"
    assert patched["sku"] == "T-1"
    assert patched["brand_id"] == brand_id

    deleted = client.delete(f"/api/products/{product_id}")
    assert deleted.json() == {"success": True, "deleted_id": product_id}
    missing = client.get(f"/api/products/{product_id}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Product not found"}


def test_product_malformed_id(client) -> None:
    response = client.get("/api/products/123")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid product ID format"}
