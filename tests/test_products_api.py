"""
Component tests for the product catalog API.

Storefront reads are public and only see active products; writes need an
admin token. Option definitions are stored in the shape the cart's price
resolver reads back.
"""
from decimal import Decimal

from fastapi.testclient import TestClient

from tests.conftest import PRINT_OPTIONS, add_payload, auth_headers

NEW_PRODUCT = {
    "name": "  Flyers ",
    "description": "A5 flyers",
    "category": "printing",
    "basePrice": "20.00",
    "image": "https://cdn.example.com/flyers.png",
    "options": PRINT_OPTIONS,
}


class TestCreateProduct:

    def test_admin_creates_product_with_options(self, test_client: TestClient, make_user):
        """
        Validates:
        - 201 with camelCase body
        - names are trimmed
        - options round-trip with their prices
        """
        # Arrange
        admin = make_user(role="admin")

        # Act
        response = test_client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(admin))

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Flyers"
        assert data["basePrice"] == "20.00"
        assert data["isActive"] is True
        assert [opt["name"] for opt in data["options"]] == ["Size", "Sides", "Copies"]
        copies = data["options"][2]
        assert copies["type"] == "number"
        assert copies["min"] == 1 and copies["max"] == 500
        assert Decimal(copies["pricePerUnit"]) == Decimal("0.10")

    def test_created_options_drive_cart_pricing(self, test_client: TestClient, make_user):
        admin = make_user(role="admin")
        created = test_client.post(
            "/api/products", json=NEW_PRODUCT, headers=auth_headers(admin)
        ).json()

        payload = {
            "productId": created["id"],
            "productName": created["name"],
            "quantity": 1,
            "options": {"Size": "A3", "Copies": 10},
            "unitPrice": "33.50",
        }
        response = test_client.post("/api/cart", json=payload)

        assert response.status_code == 201
        assert response.json()["subtotal"] == "33.50"

    def test_non_admin_forbidden(self, test_client: TestClient, make_user):
        user = make_user()

        response = test_client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(user))

        assert response.status_code == 403

    def test_guest_unauthorized(self, test_client: TestClient):
        response = test_client.post("/api/products", json=NEW_PRODUCT)

        assert response.status_code == 401

    def test_select_option_without_values_rejected(self, test_client: TestClient, make_user):
        admin = make_user(role="admin")
        body = dict(NEW_PRODUCT, options=[{"name": "Size", "type": "select", "values": []}])

        response = test_client.post("/api/products", json=body, headers=auth_headers(admin))

        assert response.status_code == 422

    def test_duplicate_option_names_rejected(self, test_client: TestClient, make_user):
        admin = make_user(role="admin")
        body = dict(NEW_PRODUCT, options=[PRINT_OPTIONS[0], PRINT_OPTIONS[0]])

        response = test_client.post("/api/products", json=body, headers=auth_headers(admin))

        assert response.status_code == 422

    def test_unknown_fields_rejected(self, test_client: TestClient, make_user):
        admin = make_user(role="admin")
        body = dict(NEW_PRODUCT, stock=10)

        response = test_client.post("/api/products", json=body, headers=auth_headers(admin))

        assert response.status_code == 422


class TestStorefrontReads:

    def test_list_only_active_products(self, test_client: TestClient, make_product):
        make_product(name="Visible")
        make_product(name="Hidden", is_active=False)

        response = test_client.get("/api/products")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Visible"]

    def test_filter_by_category(self, test_client: TestClient, make_product):
        make_product(name="Cards", category="printing")
        make_product(name="Mug", category="merch")

        response = test_client.get("/api/products", params={"category": "merch"})

        assert [p["name"] for p in response.json()] == ["Mug"]

    def test_get_active_product(self, test_client: TestClient, product):
        response = test_client.get(f"/api/products/{product.id}")

        assert response.status_code == 200
        assert response.json()["id"] == str(product.id)

    def test_inactive_product_not_found(self, test_client: TestClient, make_product):
        hidden = make_product(is_active=False)

        response = test_client.get(f"/api/products/{hidden.id}")

        assert response.status_code == 404
        assert response.json()["error"] == "product_not_found"


class TestAdminUpdates:

    def test_patch_updates_only_sent_fields(self, test_client: TestClient, product, make_user):
        admin = make_user(role="admin")

        response = test_client.patch(
            f"/api/products/{product.id}",
            json={"basePrice": "55.00"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["basePrice"] == "55.00"
        assert data["name"] == "Business Cards"

    def test_price_change_does_not_touch_existing_lines(self, test_client: TestClient, product, make_user):
        admin = make_user(role="admin")
        test_client.post("/api/cart", json=add_payload(product, quantity=2))

        test_client.patch(
            f"/api/products/{product.id}",
            json={"basePrice": "55.00", "name": "Premium Cards"},
            headers=auth_headers(admin),
        )

        line = test_client.get("/api/cart").json()["items"][0]
        assert line["productName"] == "Business Cards"
        assert line["unitPrice"] == "50.00"
        assert line["totalPrice"] == "100.00"

    def test_delete_product_keeps_cart_lines(self, test_client: TestClient, product, make_user):
        admin = make_user(role="admin")
        test_client.post("/api/cart", json=add_payload(product))

        response = test_client.delete(f"/api/products/{product.id}", headers=auth_headers(admin))

        assert response.status_code == 204
        assert test_client.get(f"/api/products/{product.id}").status_code == 404
        assert test_client.get("/api/cart").json()["itemCount"] == 1

    def test_update_missing_product(self, test_client: TestClient, product, make_user):
        admin = make_user(role="admin")
        test_client.delete(f"/api/products/{product.id}", headers=auth_headers(admin))

        response = test_client.patch(
            f"/api/products/{product.id}", json={"name": "Gone"}, headers=auth_headers(admin)
        )

        assert response.status_code == 404
