# silkthread/routers/checkout.py
from fastapi import APIRouter, Depends

from silkthread.core.auth import get_cart_owner
from silkthread.core.config import get_settings
from silkthread.routers.cart import get_cart_service
from silkthread.schemas.checkout import CheckoutRead, CustomerInfo
from silkthread.services.cart_service import CartService
from silkthread.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def get_checkout_service() -> CheckoutService:
    settings = get_settings()
    return CheckoutService(
        brand_name=settings.STORE_BRAND_NAME,
        whatsapp_number=settings.STORE_WHATSAPP_NUMBER,
    )


@router.post("", response_model=CheckoutRead)
def checkout(
    payload: CustomerInfo,
    owner: str = Depends(get_cart_owner),
    carts: CartService = Depends(get_cart_service),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Place an order over WhatsApp.

    Returns the order message and the wa.me link to open;
    the cart is cleared afterwards.
    """
    with carts.cart_session(owner) as session:
        return service.checkout(session.engine, payload)
