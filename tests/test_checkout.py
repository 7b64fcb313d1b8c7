"""
Tests for WhatsApp checkout
"""
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import HTTPException

from silkthread.schemas.checkout import CustomerInfo
from silkthread.services.cart_engine import CartEngine
from silkthread.services.checkout_service import (
    CheckoutService,
    build_order_message,
    whatsapp_url,
)


@pytest.fixture
def customer():
    return CustomerInfo(
        name="Asha Rao",
        phone="+91 98765 43210",
        email="asha@silkthread.in",
        address="12 MG Road, Bengaluru",
    )


class TestCustomerInfo:

    def test_blank_email_becomes_none(self):
        info = CustomerInfo(name="A", phone="9876543210", email="  ", address="X")
        assert info.email is None

    @pytest.mark.parametrize("phone", ["12345", "call me", ""])
    def test_invalid_phone(self, phone):
        with pytest.raises(ValueError):
            CustomerInfo(name="A", phone=phone, address="X")

    def test_blank_address(self):
        with pytest.raises(ValueError):
            CustomerInfo(name="A", phone="9876543210", address="   ")

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            CustomerInfo(name="A", phone="9876543210", email="not-an-email", address="X")


class TestOrderMessage:

    def test_message_lists_lines_and_total(self, store, ring, bangle, customer):
        engine = CartEngine(store)
        engine.add_to_cart(ring, 2)
        engine.add_to_cart(bangle, 1, {"Adult Size": "2.4", "Color": "Red"}, price_override=850)

        message = build_order_message("Silk Thread Boutique", customer, engine.items, engine.cart_total)

        assert message.startswith("🛒 *New Order from Silk Thread Boutique*")
        assert "Name: Asha Rao" in message
        assert "Email: asha@silkthread.in" in message
        assert "1. *Kundan Ring*" in message
        assert "   Qty: 2" in message
        assert "   Price: ₹1,998" in message
        assert "2. *Silk Thread Bangle*" in message
        assert "   Adult Size: 2.4" in message
        assert "   Color: Red" in message
        assert "📷 Image: https://cdn.example.com/products/bangle-7.webp" in message
        assert "*Total: ₹2,848 + Shipping charges*" in message

    def test_email_line_omitted(self, store, ring):
        engine = CartEngine(store)
        engine.add_to_cart(ring, 1)
        info = CustomerInfo(name="A", phone="9876543210", address="X")
        assert "Email:" not in build_order_message("B", info, engine.items, engine.cart_total)

    def test_whatsapp_url(self):
        url = whatsapp_url("+91 98765-43210", "Hi *there*\nline 2")
        parsed = urlparse(url)
        assert parsed.netloc == "wa.me"
        assert parsed.path == "/919876543210"
        assert parse_qs(parsed.query)["text"] == ["Hi *there*\nline 2"]


class TestCheckoutService:

    def test_checkout_clears_cart(self, store, ring, customer):
        engine = CartEngine(store)
        engine.add_to_cart(ring, 1)

        result = CheckoutService("Silk Thread Boutique", "+91 98765 43210").checkout(engine, customer)

        assert result.total == 999
        assert result.whatsapp_url.startswith("https://wa.me/919876543210?text=")
        assert "Kundan Ring" in result.message
        assert engine.items == ()
        assert store.data["cart"] == "[]"

    def test_empty_cart_rejected(self, store, customer):
        with pytest.raises(HTTPException) as exc:
            CheckoutService("B", "9876543210").checkout(CartEngine(store), customer)
        assert exc.value.status_code == 400

    @pytest.mark.parametrize("number", [None, "", "n/a"])
    def test_missing_number_keeps_cart(self, store, ring, customer, number):
        engine = CartEngine(store)
        engine.add_to_cart(ring, 1)

        with pytest.raises(HTTPException) as exc:
            CheckoutService("B", number).checkout(engine, customer)

        assert exc.value.status_code == 503
        assert engine.cart_count == 1
