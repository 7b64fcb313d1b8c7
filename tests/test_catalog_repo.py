"""
Tests for CatalogRepository row mapping
"""
from unittest.mock import Mock

from silkthread.repositories.catalog_repo import CatalogRepository


def test_get_product_maps_columns(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    table.execute.return_value = Mock(
        data=[
            {
                "id": "3f1c",
                "name": "Temple Jhumka",
                "subtitle": "Gold plated",
                "mrp_price": 2400,
                "offer_price": 1999,
                "images": ["https://cdn.example.com/products/jhumka.webp"],
                "category": {"id": "c1", "name": "Earrings", "slug": "earrings"},
                "product_type": None,
                "options": [{"name": "Color", "variants": [{"name": "Ruby", "price": "", "sale_price": ""}]}],
                "status": "active",
                "created_at": "2025-01-01T00:00:00Z",
            }
        ]
    )

    product = CatalogRepository(mock_supabase_client).get_product("3f1c")

    mock_supabase_client.table.assert_called_with("products")
    table.eq.assert_called_with("id", "3f1c")
    assert product.id == "3f1c"
    assert product.title == "Temple Jhumka"
    assert product.price == 2400
    assert product.sale_price == 1999
    assert product.category.name == "Earrings"
    assert product.product_type is None
    assert product.options[0].variants[0].price is None
    assert product.is_active


def test_get_product_not_found(mock_supabase_client):
    assert CatalogRepository(mock_supabase_client).get_product("nope") is None


def test_missing_prices_default():
    product = CatalogRepository.to_product_ref({"id": 42, "name": "Draft", "mrp_price": None, "status": "draft"})
    assert product.id == "42"
    assert product.price == 0
    assert product.sale_price is None
    assert product.images == []
    assert not product.is_active
