# silkthread/routers/cart.py
from functools import lru_cache

from fastapi import APIRouter, Depends

from silkthread.core.auth import get_cart_owner
from silkthread.core.config import get_settings
from silkthread.core.supabase_client import supabase_public
from silkthread.repositories.cart_store import build_cart_store
from silkthread.repositories.catalog_repo import CatalogRepository
from silkthread.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartSummary,
    DrawerUpdate,
)
from silkthread.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@lru_cache
def get_cart_service() -> CartService:
    """
    One CartService per process; it owns the cached shopper sessions.
    Tests swap it out via app.dependency_overrides.
    """
    settings = get_settings()
    return CartService(
        store=build_cart_store(settings),
        catalog=CatalogRepository(supabase_public()),
        storage_key=settings.CART_STORAGE_KEY,
        max_sessions=settings.CART_SESSION_CACHE_SIZE,
    )


@router.get("", response_model=CartSummary)
def get_my_cart(
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Get the current shopper's cart summary.

    Identity:
      - signed-in customers: Supabase JWT
      - guests: X-Cart-Session header (minted on first request)
    """
    return service.get_cart_summary(owner)


@router.post("/items", response_model=CartSummary)
def add_to_cart(
    payload: CartItemCreate,
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Add a product variant to the cart and open the cart drawer.

    Returns the updated cart summary.
    """
    return service.add_to_cart(owner, payload)


@router.patch("/items/{line_id:path}", response_model=CartSummary)
def update_cart_item(
    line_id: str,
    payload: CartItemUpdate,
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Update quantity of a cart line.

    Line ids embed the selected options as JSON, so they must be
    URL-encoded by the client.
    """
    return service.update_quantity(owner, line_id, payload)


@router.delete("/items/{line_id:path}", response_model=CartSummary)
def remove_cart_item(
    line_id: str,
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Remove a line from the cart. Unknown ids are ignored.
    """
    return service.remove_item(owner, line_id)


@router.delete("", response_model=CartSummary)
def clear_cart(
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    return service.clear_cart(owner)


@router.put("/drawer", response_model=CartSummary)
def set_drawer(
    payload: DrawerUpdate,
    owner: str = Depends(get_cart_owner),
    service: CartService = Depends(get_cart_service),
):
    """
    Open or close the cart drawer (not persisted).
    """
    return service.set_drawer(owner, payload.is_open)
