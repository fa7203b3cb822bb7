"""Tests for the /products endpoints."""

import json
from pathlib import Path

from sqlalchemy import func, select

from conftest import add_product, add_user, image_bytes, login_as
from models.asset import AssetReference
from models.product import Product


def _variants_payload() -> str:
    return json.dumps([
        {
            "title": "A4",
            "price": 1200,
            "sortOrder": 0,
            "digitalAssetFileName": "poster-a4.pdf",
            "photos": [
                {"id": "tmp-1", "fileName": "front.png", "sortOrder": 0},
                {"id": "tmp-2", "fileName": "back.png", "sortOrder": 1},
            ],
        },
        {
            "title": "A3",
            "price": 1800,
            "sortOrder": 1,
            "active": False,
            "metadata": {"dpi": 300},
            "photos": [{"id": "tmp-3", "fileName": "large.png", "sortOrder": 0}],
        },
    ])


def _create_form(featured: str = "tmp-2") -> dict:
    return {
        "title": "Mountain poster",
        "description": "Printable alpine landscape",
        "type": "DIGITAL_PRINTABLE",
        "tags": json.dumps(["mountain", "nature"]),
        "metadata": json.dumps({"orientation": "portrait"}),
        "featuredImageId": featured,
        "variants": _variants_payload(),
    }


def _create_files() -> list:
    return [
        ("photos", ("front.png", image_bytes("red"), "image/png")),
        ("photos", ("back.png", image_bytes("blue"), "image/png")),
        ("photos", ("large.png", image_bytes("green"), "image/png")),
        ("assets", ("poster-a4.pdf", b"%PDF-1.4 test", "application/pdf")),
    ]


def _stored_files(file_service) -> list:
    return [p for p in Path(file_service.root).rglob("*") if p.is_file()]


# =========================
# LIST
# =========================

def test_public_listing_requires_product_type(client) -> None:
    response = client.get("/products")

    assert response.status_code == 400
    assert response.json()["field"] == "productType"


def test_public_listing_shape(client, db) -> None:
    product = add_product(db, title="Fern", prices=(400, 900), featured_index=1, tags=["green"])
    add_product(db, title="Hidden", active=False)

    response = client.get("/products", params={"productType": "DIGITAL_PRINTABLE"})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["nextCursor"] is None
    item = body["products"][0]
    assert item["id"] == str(product.id)
    assert item["price"] == 900
    assert item["thumbnailUrl"] == "http://cdn/Fern/photo-1.jpg"
    assert set(item) >= {"createdAt", "updatedAt", "tags", "active", "description", "title"}


def test_listing_paginates(client, db) -> None:
    for i in range(3):
        add_product(db, title=f"Poster {i}")

    response = client.get("/products", params={"productType": "DIGITAL_PRINTABLE", "limit": 2})

    body = response.json()
    assert len(body["products"]) == 2
    assert body["nextCursor"] == 2
    assert body["count"] == 3


def test_admin_listing_sees_inactive_products(client, db, settings) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    add_product(db, title="Hidden", active=False)
    login_as(client, settings, "admin@example.com")

    response = client.get("/products")

    assert response.status_code == 200
    assert [p["title"] for p in response.json()["products"]] == ["Hidden"]


def test_admin_filters_are_ignored_for_regular_users(client, db, settings) -> None:
    add_user(db, "jane@example.com")
    add_product(db, title="Hidden", active=False)
    login_as(client, settings, "jane@example.com")

    response = client.get("/products", params={"productType": "DIGITAL_PRINTABLE", "active": "false"})

    assert response.status_code == 200
    assert response.json()["products"] == []


def test_invalid_sort_is_a_client_error(client) -> None:
    response = client.get("/products", params={"productType": "DIGITAL_PRINTABLE", "sortBy": "rating"})

    assert response.status_code == 400


def test_integrity_error_surfaces_as_500(client, db) -> None:
    add_product(db, prices=(100, 200), featured_index=1, variant_active=(True, False))

    response = client.get("/products", params={"productType": "DIGITAL_PRINTABLE"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


# =========================
# SINGLE
# =========================

def test_get_product_public_view(client, db) -> None:
    product = add_product(db, prices=(400,))

    response = client.get(f"/products/{product.id}")

    assert response.status_code == 200
    view = response.json()["product"]
    assert view["id"] == str(product.id)
    assert view["featuredImageId"] == str(product.featured_photo_id)
    assert "active" not in view
    assert "digitalAsset" not in view["variants"][0]
    assert view["variants"][0]["photos"][0]["featured"] is True


def test_get_inactive_product(client, db, settings) -> None:
    product = add_product(db, active=False)
    add_user(db, "admin@example.com", is_admin=True)

    assert client.get(f"/products/{product.id}").status_code == 404

    login_as(client, settings, "admin@example.com")
    response = client.get(f"/products/{product.id}")
    assert response.status_code == 200
    view = response.json()["product"]
    assert view["active"] is False
    assert view["variants"][0]["digitalAsset"]["type"] == "pdf"


def test_get_unknown_product(client) -> None:
    assert client.get("/products/not-a-uuid").status_code == 404


# =========================
# CREATE
# =========================

def test_create_requires_login(client) -> None:
    response = client.post("/products", data=_create_form(), files=_create_files())

    assert response.status_code == 401


def test_create_requires_admin(client, db, settings) -> None:
    add_user(db, "jane@example.com")
    login_as(client, settings, "jane@example.com")

    response = client.post("/products", data=_create_form(), files=_create_files())

    assert response.status_code == 403


def test_deleted_admin_is_anonymous(client, db, settings) -> None:
    add_user(db, "gone@example.com", is_admin=True, is_deleted=True)
    login_as(client, settings, "gone@example.com")

    response = client.post("/products", data=_create_form(), files=_create_files())

    assert response.status_code == 401


def test_create_product(client, db, settings, file_service) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")

    response = client.post("/products", data=_create_form(), files=_create_files())

    assert response.status_code == 201
    product_id = response.json()["productId"]

    view = client.get(f"/products/{product_id}").json()["product"]
    assert view["title"] == "Mountain poster"
    assert view["tags"] == ["mountain", "nature"]
    assert view["thumbnailUrl"].startswith("http://testserver/media/thumbnails/")
    assert [v["title"] for v in view["variants"]] == ["A4", "A3"]
    assert view["variants"][1]["active"] is False
    assert view["variants"][0]["digitalAsset"]["name"] == "poster-a4.pdf"
    assert view["variants"][0]["digitalAsset"]["size"] == len(b"%PDF-1.4 test")

    featured = [p for v in view["variants"] for p in v["photos"] if p["featured"]]
    assert len(featured) == 1
    assert featured[0]["id"] == view["featuredImageId"]
    assert featured[0]["url"] in [p["url"] for p in view["variants"][0]["photos"]]

    # 3 photos + 1 asset + 1 thumbnail
    assert len(_stored_files(file_service)) == 5
    assert db.execute(select(func.count()).select_from(AssetReference)).scalar_one() == 5

    served = client.get(view["thumbnailUrl"].replace("http://testserver", ""))
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/jpeg"


def test_create_rejects_unknown_featured_image(client, db, settings, file_service) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")

    response = client.post("/products", data=_create_form(featured="tmp-9"), files=_create_files())

    assert response.status_code == 400
    assert _stored_files(file_service) == []
    assert db.execute(select(func.count()).select_from(Product)).scalar_one() == 0


def test_create_rejects_featured_photo_on_inactive_variant(client, db, settings, file_service) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")

    # tmp-3 belongs to the inactive A3 variant
    response = client.post("/products", data=_create_form(featured="tmp-3"), files=_create_files())

    assert response.status_code == 400
    assert "active variant" in response.json()["detail"]
    assert _stored_files(file_service) == []
    assert db.execute(select(func.count()).select_from(Product)).scalar_one() == 0


def test_variants_can_share_one_digital_asset(client, db, settings) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")
    form = _create_form(featured="tmp-1")
    form["variants"] = json.dumps([
        {
            "title": "Personal",
            "price": 900,
            "digitalAssetFileName": "pack.zip",
            "photos": [{"id": "tmp-1", "fileName": "front.png", "sortOrder": 0}],
        },
        {
            "title": "Commercial",
            "price": 2900,
            "sortOrder": 1,
            "digitalAssetFileName": "pack.zip",
            "photos": [{"id": "tmp-2", "fileName": "back.png", "sortOrder": 0}],
        },
    ])
    files = [
        ("photos", ("front.png", image_bytes("red"), "image/png")),
        ("photos", ("back.png", image_bytes("blue"), "image/png")),
        ("assets", ("pack.zip", b"0123456789", "application/zip")),
    ]

    response = client.post("/products", data=form, files=files)

    assert response.status_code == 201
    product_id = response.json()["productId"]
    view = client.get(f"/products/{product_id}").json()["product"]
    assert [v["digitalAsset"]["size"] for v in view["variants"]] == [10, 10]


def test_create_rejects_missing_photo_file(client, db, settings, file_service) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")
    files = [f for f in _create_files() if f[1][0] != "large.png"]

    response = client.post("/products", data=_create_form(), files=files)

    assert response.status_code == 400
    assert "large.png" in response.json()["detail"]
    assert _stored_files(file_service) == []


def test_create_rejects_malformed_json(client, db, settings) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")
    form = _create_form()
    form["variants"] = "[{not json"

    response = client.post("/products", data=form, files=_create_files())

    assert response.status_code == 400


def test_create_rejects_invalid_payload(client, db, settings) -> None:
    add_user(db, "admin@example.com", is_admin=True)
    login_as(client, settings, "admin@example.com")
    form = _create_form()
    form["type"] = "BOOK"

    response = client.post("/products", data=form, files=_create_files())

    assert response.status_code == 422
