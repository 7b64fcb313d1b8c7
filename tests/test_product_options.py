"""
Tests for variant pricing and required options
"""
import pytest

from silkthread.schemas.cart import ProductRef
from silkthread.services.product_options import missing_options, resolve_variant_price


@pytest.fixture
def bangle_ref(bangle):
    return ProductRef.model_validate(bangle)


class TestResolveVariantPrice:

    def test_selected_variant_prices(self, bangle_ref):
        assert resolve_variant_price(bangle_ref, {"Adult Size": "2.4", "Color": "Red"}) == (1000, 850)

    def test_variant_without_sale_price_offers_list_price(self, bangle_ref):
        assert resolve_variant_price(bangle_ref, {"Adult Size": "2.6"}) == (1100, 1100)
        assert resolve_variant_price(bangle_ref, {"Kids Size": "1.8"}) == (600, 600)

    def test_highest_priced_variant_wins(self):
        product = ProductRef.model_validate(
            {
                "id": "set-1",
                "price": 500,
                "options": [
                    {"name": "Size", "variants": [{"name": "L", "price": 900, "sale_price": 700}]},
                    {"name": "Finish", "variants": [{"name": "Antique", "price": 1200, "sale_price": 1000}]},
                ],
            }
        )
        assert resolve_variant_price(product, {"Size": "L", "Finish": "Antique"}) == (1200, 1000)

    def test_unpriced_selection_uses_base_prices(self, bangle_ref, ring):
        assert resolve_variant_price(bangle_ref, {"Color": "Gold"}) == (800, 800)
        ring_ref = ProductRef.model_validate(ring)
        assert resolve_variant_price(ring_ref, {}) == (1200, 999)

    def test_unknown_variant_ignored(self, bangle_ref):
        assert resolve_variant_price(bangle_ref, {"Adult Size": "9.9"}) == (800, 800)


class TestMissingOptions:

    def test_all_selected(self, bangle_ref):
        assert missing_options(bangle_ref, {"Adult Size": "2.4", "Color": "Red"}) == []

    def test_either_size_is_enough(self, bangle_ref):
        assert missing_options(bangle_ref, {"Kids Size": "1.8", "Color": "Red"}) == []

    def test_no_size_selected(self, bangle_ref):
        assert missing_options(bangle_ref, {"Color": "Red"}) == ["Adult Size or Kids Size"]

    def test_regular_option_missing(self, bangle_ref):
        assert missing_options(bangle_ref, {"Adult Size": "2.4"}) == ["Color"]

    def test_single_size_option_is_required(self):
        product = ProductRef.model_validate(
            {"id": "r", "options": [{"name": "Adult Size", "variants": [{"name": "M"}]}]}
        )
        assert missing_options(product, {}) == ["Adult Size"]

    def test_no_options(self, ring):
        assert missing_options(ProductRef.model_validate(ring), {}) == []
