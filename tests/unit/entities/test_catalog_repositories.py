"""Unit tests for catalog repositories: products, media, reviews and settings."""

from decimal import Decimal

import pytest
from sqlmodel import Session

from src.storefront.entities.service.category import CategoryRepository, Subcategory, SubcategoryRepository
from src.storefront.entities.service.content import SiteSettingRepository
from src.storefront.entities.service.product import (
    Product,
    ProductFilters,
    ProductImage,
    ProductMediaRepository,
    ProductRepository,
    ProductVariant,
    ProductVariantRepository,
)
from src.storefront.entities.service.review import Review, ReviewRepository


@pytest.fixture
def products(session: Session) -> ProductRepository:
    return ProductRepository(session)


def _names(items: list[Product]) -> list[str]:
    return [product.name for product in items]


class TestProductRepository:
    def test_default_listing_hides_inactive(self, products: ProductRepository, catalog):
        assert _names(products.list_filtered()) == ["Nike Air Max 90", "Adidas Superstar"]

    def test_include_inactive(self, products: ProductRepository, catalog):
        listed = products.list_filtered(ProductFilters(include_inactive=True))

        assert "Nike Cortez" in _names(listed)

    def test_filters(self, products: ProductRepository, catalog):
        nike = catalog["air-max"].brand_id

        assert _names(products.list_filtered(ProductFilters(brand_id=nike))) == ["Nike Air Max 90"]
        assert _names(products.list_filtered(ProductFilters(color="Branco"))) == ["Adidas Superstar"]
        assert _names(products.list_filtered(ProductFilters(min_price=Decimal("100")))) == ["Nike Air Max 90"]
        assert _names(products.list_filtered(ProductFilters(max_price=Decimal("100")))) == ["Adidas Superstar"]
        assert _names(products.list_filtered(ProductFilters(is_featured=True))) == ["Nike Air Max 90"]

    def test_search_matches_description(self, products: ProductRepository, catalog):
        assert _names(products.search("amortecimento")) == ["Nike Air Max 90"]
        assert products.search("inexistente") == []

    def test_subcategory_slug_filter(self, products: ProductRepository, session: Session, catalog):
        running = SubcategoryRepository(session).create(
            Subcategory(category_id=catalog["air-max"].category_id, name="Corrida", slug="corrida")
        )
        products.update(catalog["superstar"].model_copy(update={"subcategory_id": running.id}))

        listed = products.list_filtered(ProductFilters(subcategory_slug="corrida"))

        assert _names(listed) == ["Adidas Superstar"]

    def test_get_by_slug_active_only(self, products: ProductRepository, catalog):
        assert products.get_by_slug("nike-cortez") is None
        assert products.get_by_slug("nike-cortez", active_only=False).name == "Nike Cortez"
        assert products.slug_exists("nike-cortez")

    def test_get_many_skips_inactive(self, products: ProductRepository, catalog):
        found = products.get_many([catalog["air-max"].id, catalog["retired"].id, "missing"])

        assert list(found) == [catalog["air-max"].id]

    def test_similar_products(self, products: ProductRepository, catalog):
        similar = products.list_similar(catalog["air-max"])

        assert _names(similar) == ["Adidas Superstar"]
        assert products.list_similar(catalog["retired"]) == []

    def test_colors(self, products: ProductRepository, catalog):
        colors = {entry.color: entry.product_count for entry in products.list_colors()}

        assert colors == {"Branco": 1, "Preto": 1}

    def test_deactivate(self, products: ProductRepository, catalog):
        assert products.deactivate(catalog["superstar"].id)
        assert products.get(catalog["superstar"].id, active_only=True) is None
        assert not products.deactivate("missing")

    def test_stock_summary(self, products: ProductRepository, catalog):
        summary = products.stock_summary(low_stock_threshold=10)

        assert summary == {"total_stock": 15, "average_price": Decimal("105.25"), "low_stock": 1}
        assert products.count() == 2
        assert products.count(active_only=False) == 3


class TestProductMedia:
    def test_primary_image_moves(self, session: Session, catalog):
        media = ProductMediaRepository(session)
        product_id = catalog["air-max"].id
        first = media.add_image(ProductImage(product_id=product_id, url="/uploads/a.png", is_primary=True))
        second = media.add_image(ProductImage(product_id=product_id, url="/uploads/b.png", is_primary=True))

        assert media.primary_image_url(product_id) == "/uploads/b.png"
        assert not media.get_image(first.id).is_primary
        assert media.delete_image(second.id)
        assert media.primary_image_url(product_id) == "/uploads/a.png"

    def test_variants_sorted_by_size(self, session: Session, catalog):
        variants = ProductVariantRepository(session)
        product_id = catalog["air-max"].id
        for size in ("42", "38", "40"):
            variants.create(ProductVariant(product_id=product_id, size=size, stock_quantity=2))
        variants.create(ProductVariant(product_id=product_id, size="44", is_active=False))

        assert [v.size for v in variants.list_for_product(product_id)] == ["38", "40", "42"]


class TestReviews:
    def test_only_approved_reviews_count(self, session: Session, catalog):
        reviews = ReviewRepository(session)
        product_id = catalog["air-max"].id
        reviews.create(Review(product_id=product_id, reviewer_name="Ana", rating=5, is_approved=True))
        reviews.create(Review(product_id=product_id, reviewer_name="Bia", rating=4, is_approved=True))
        reviews.create(Review(product_id=product_id, reviewer_name="Spam", rating=1))

        assert reviews.rating_summary(product_id) == {"average": 4.5, "count": 2}
        assert {review.reviewer_name for review in reviews.list_approved(product_id)} == {"Ana", "Bia"}

    def test_no_reviews(self, session: Session, catalog):
        assert ReviewRepository(session).rating_summary(catalog["superstar"].id) == {"average": 0.0, "count": 0}


class TestSiteSettings:
    def test_typed_values(self, session: Session):
        settings = SiteSettingRepository(session)
        settings.set("free_shipping", True)
        settings.set("banner_count", 3)
        settings.set("social", {"instagram": "@loja"})
        settings.set("slogan", "Vem pra fonte")

        assert settings.get_value("free_shipping") is True
        assert settings.get_value("banner_count") == 3.0
        assert settings.get_value("social") == {"instagram": "@loja"}
        assert settings.get_value("slogan") == "Vem pra fonte"
        assert settings.get_value("missing", "fallback") == "fallback"

    def test_set_overwrites(self, session: Session):
        settings = SiteSettingRepository(session)
        settings.set("slogan", "antigo", description="Texto do topo")
        updated = settings.set("slogan", "novo")

        assert updated.value == "novo"
        assert updated.description == "Texto do topo"
        assert [setting.key for setting in settings.list_all()] == ["slogan"]


class TestCategories:
    def test_get_by_slug(self, session: Session, catalog):
        assert CategoryRepository(session).get_by_slug("tenis").name == "Tênis"
