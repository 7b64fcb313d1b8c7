"""Pytest configuration and fixtures"""
import os
from unittest.mock import Mock

import pytest

# Set test environment variables before anything reads Settings
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test_anon_key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("CART_STORE_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from silkthread.repositories.cart_store import MemoryCartStore  # noqa: E402
from silkthread.schemas.cart import ProductRef  # noqa: E402
from silkthread.services.cart_service import CartService  # noqa: E402
from silkthread.services.checkout_service import CheckoutService  # noqa: E402

WHATSAPP_NUMBER = "+91 98765 43210"


class FakeCatalog:
    """Stands in for CatalogRepository; products keyed by id."""

    def __init__(self, products: list[dict]):
        self.products = {p["id"]: ProductRef.model_validate(p) for p in products}

    def get_product(self, product_id: str) -> ProductRef | None:
        return self.products.get(product_id)


@pytest.fixture
def ring():
    """Plain product, no options, on sale."""
    return {
        "id": "ring-1",
        "title": "Kundan Ring",
        "price": 1200.0,
        "sale_price": 999.0,
        "images": [
            "https://cdn.example.com/products/ring-1.webp",
            "https://cdn.example.com/products/ring-1-side.webp",
        ],
        "category": {"id": "cat-1", "name": "Rings", "slug": "rings"},
        "product_type": {"id": "type-1", "name": "Kundan", "slug": "kundan"},
    }


@pytest.fixture
def bangle():
    """Product with sized variants and a free color option."""
    return {
        "id": "bangle-7",
        "title": "Silk Thread Bangle",
        "price": 800.0,
        "sale_price": None,
        "images": ["https://cdn.example.com/products/bangle-7.webp"],
        "category": {"name": "Bangles"},
        "options": [
            {
                "name": "Adult Size",
                "variants": [
                    {"name": "2.4", "price": 1000, "sale_price": 850},
                    {"name": "2.6", "price": 1100, "sale_price": ""},
                ],
            },
            {"name": "Kids Size", "variants": [{"name": "1.8", "price": 600}]},
            {"name": "Color", "variants": [{"name": "Red"}, {"name": "Gold"}]},
        ],
    }


@pytest.fixture
def store():
    return MemoryCartStore()


@pytest.fixture
def catalog(ring, bangle):
    retired = {"id": "old-9", "title": "Retired Anklet", "price": 300, "status": "draft"}
    return FakeCatalog([ring, bangle, retired])


@pytest.fixture
def cart_service(store, catalog):
    return CartService(store, catalog)


@pytest.fixture
def client(cart_service):
    from silkthread.main import app
    from silkthread.routers.cart import get_cart_service
    from silkthread.routers.checkout import get_checkout_service

    app.dependency_overrides[get_cart_service] = lambda: cart_service
    app.dependency_overrides[get_checkout_service] = lambda: CheckoutService(
        "Silk Thread Boutique", WHATSAPP_NUMBER
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client with chainable table queries"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.upsert.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.execute.return_value = Mock(data=[])

    client.table.return_value = table_mock
    return client
