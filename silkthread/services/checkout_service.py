# silkthread/services/checkout_service.py
import logging
import re
from urllib.parse import quote

from fastapi import HTTPException, status

from silkthread.core.format import format_currency
from silkthread.schemas.cart import CartLine
from silkthread.schemas.checkout import CheckoutRead, CustomerInfo
from silkthread.services.cart_engine import CartEngine

logger = logging.getLogger(__name__)

RULE = "━━━━━━━━━━━━━━━━"


def build_order_message(
    brand_name: str,
    customer: CustomerInfo,
    lines: list[CartLine] | tuple[CartLine, ...],
    total: float,
) -> str:
    """
    Render the WhatsApp order text sent to the shop.
    """
    out: list[str] = [f"🛒 *New Order from {brand_name}*", ""]

    out += ["👤 *Customer Details:*", RULE]
    out.append(f"Name: {customer.name}")
    out.append(f"Phone: {customer.phone}")
    if customer.email:
        out.append(f"Email: {customer.email}")
    out += [f"Address: {customer.address}", ""]

    out += ["📦 *Order Details:*", RULE, ""]
    for index, line in enumerate(lines, start=1):
        out.append(f"{index}. *{line.title}*")
        for key, value in line.selected_options.items():
            out.append(f"   {key}: {value}")
        out.append(f"   Qty: {line.quantity}")
        out.append(f"   Price: {format_currency(line.price * line.quantity)}")
        if line.image:
            out.append(f"   📷 Image: {line.image}")
        out.append("")

    out.append(RULE)
    out.append(f"*Total: {format_currency(total)} + Shipping charges*")
    out.append("")
    out.append("Please confirm availability and payment details. Thank you!")
    return "\n".join(out)


def whatsapp_url(number: str, message: str) -> str:
    digits = re.sub(r"\D", "", number)
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"


class CheckoutService:
    """
    WhatsApp checkout: the shop confirms orders by chat, so checkout only
    renders the order and empties the cart.
    """

    def __init__(self, brand_name: str, whatsapp_number: str | None):
        self.brand_name = brand_name
        self.whatsapp_number = whatsapp_number

    def checkout(self, engine: CartEngine, customer: CustomerInfo) -> CheckoutRead:
        """
        Raises:
            HTTPException(400): cart is empty.
            HTTPException(503): no WhatsApp number configured.
        """
        if not engine.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        if not self.whatsapp_number or not re.sub(r"\D", "", self.whatsapp_number):
            logger.error("Checkout attempted but STORE_WHATSAPP_NUMBER is not set")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to process order. Please try again later.",
            )

        total = engine.cart_total
        message = build_order_message(self.brand_name, customer, engine.items, total)
        url = whatsapp_url(self.whatsapp_number, message)

        engine.clear_cart()
        logger.info("Checkout for cart %r, total %s", engine.key, total)
        return CheckoutRead(message=message, whatsapp_url=url, total=total)
