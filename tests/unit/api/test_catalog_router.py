"""Unit tests for the public catalog endpoints."""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlmodel import Session

from src.storefront.entities.service.product import Product
from src.storefront.entities.service.review import ReviewRepository


class TestProductListing:
    def test_active_products_featured_first(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products")

        assert response.status_code == 200
        slugs = [card["product"]["slug"] for card in response.json()]
        assert slugs == ["nike-air-max-90", "adidas-superstar"]

    def test_price_filter(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products", params={"max_price": "100"})

        cards = response.json()
        assert [card["product"]["slug"] for card in cards] == ["adidas-superstar"]
        assert Decimal(str(cards[0]["product"]["price"])) == Decimal("90.50")

    def test_invalid_limit(self, client: TestClient):
        assert client.get("/api/products", params={"limit": 0}).status_code == 422

    def test_search(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products/search", params={"q": "superstar"})

        assert [card["product"]["slug"] for card in response.json()] == ["adidas-superstar"]

    def test_colors(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products/colors")

        colors = {row["color"]: row["product_count"] for row in response.json()}
        assert colors == {"Branco": 1, "Preto": 1}


class TestProductDetail:
    def test_detail_includes_similar(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products/nike-air-max-90")

        assert response.status_code == 200
        body = response.json()
        assert body["product"]["sku"] == "NK-AM90"
        assert [card["product"]["slug"] for card in body["similar"]] == ["adidas-superstar"]
        assert body["reviews"] == []

    def test_inactive_product_is_hidden(self, client: TestClient, catalog: dict[str, Product]):
        assert client.get("/api/products/nike-cortez").status_code == 404

    def test_review_waits_for_approval(
        self, client: TestClient, catalog: dict[str, Product], session: Session
    ):
        response = client.post(
            "/api/products/nike-air-max-90/reviews",
            json={"reviewer_name": "Carlos", "rating": 5, "comment": "Muito confortável"},
        )

        assert response.status_code == 201
        assert response.json()["is_approved"] is False
        assert client.get("/api/products/nike-air-max-90/reviews").json() == []

        ReviewRepository(session).set_approved(response.json()["id"])
        session.commit()

        reviews = client.get("/api/products/nike-air-max-90/reviews").json()
        assert [review["reviewer_name"] for review in reviews] == ["Carlos"]

    def test_reviewer_email_is_not_published(
        self, client: TestClient, catalog: dict[str, Product], session: Session
    ):
        created = client.post(
            "/api/products/nike-air-max-90/reviews",
            json={"reviewer_name": "Carlos", "reviewer_email": "carlos@cliente.com.br", "rating": 4},
        )
        assert "reviewer_email" not in created.json()
        ReviewRepository(session).set_approved(created.json()["id"])
        session.commit()

        listed = client.get("/api/products/nike-air-max-90/reviews").json()
        detail = client.get("/api/products/nike-air-max-90").json()

        for review in listed + detail["reviews"]:
            assert review["reviewer_name"] == "Carlos"
            assert "reviewer_email" not in review
            assert "user_id" not in review
        # still available to moderators
        session.expire_all()
        stored = ReviewRepository(session).list_approved(catalog["air-max"].id)
        assert stored[0].reviewer_email == "carlos@cliente.com.br"

    def test_review_rating_bounds(self, client: TestClient, catalog: dict[str, Product]):
        response = client.post(
            "/api/products/nike-air-max-90/reviews",
            json={"reviewer_name": "Carlos", "rating": 6},
        )

        assert response.status_code == 400


class TestBrandsAndCategories:
    def test_brand_products(self, client: TestClient, catalog: dict[str, Product]):
        response = client.get("/api/products/brand/nike")

        body = response.json()
        assert body["brand"]["name"] == "Nike"
        assert [card["product"]["slug"] for card in body["products"]] == ["nike-air-max-90"]

    def test_unknown_brand_gets_placeholder(self, client: TestClient):
        response = client.get("/api/products/brand/new-balance")

        assert response.status_code == 200
        assert response.json()["brand"]["name"] == "New Balance"
        assert response.json()["products"] == []

    def test_unknown_model(self, client: TestClient):
        assert client.get("/api/products/model/missing").status_code == 404

    def test_brands_and_categories(self, client: TestClient, catalog: dict[str, Product]):
        assert {brand["slug"] for brand in client.get("/api/brands").json()} == {"nike", "adidas"}
        assert [category["slug"] for category in client.get("/api/categories").json()] == ["tenis"]
        assert client.get("/api/categories/tenis/subcategories").json() == []
        assert client.get("/api/categories/missing/subcategories").status_code == 404

    def test_site_content_lists(self, client: TestClient):
        assert client.get("/api/banners").json() == []
        assert client.get("/api/testimonials", params={"featured": True}).json() == []
        assert client.get("/api/models").json() == []
