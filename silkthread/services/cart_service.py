# silkthread/services/cart_service.py
import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import httpx
import pydantic
from fastapi import HTTPException, status
from postgrest.exceptions import APIError

from silkthread.core.errors import ValidationError
from silkthread.repositories.cart_store import CartStore
from silkthread.repositories.catalog_repo import CatalogRepository
from silkthread.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartLineRead,
    CartSummary,
    ProductRef,
)
from silkthread.services.cart_drawer import CartDrawer
from silkthread.services.cart_engine import CartEngine
from silkthread.services.product_options import missing_options, resolve_variant_price

logger = logging.getLogger(__name__)


@dataclass
class CartSession:
    """Cart state kept for one shopper between requests."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    engine: CartEngine | None = None
    drawer: CartDrawer | None = None
    active: int = 0  # requests holding this session; never evicted while > 0


class CartService:
    """
    Business logic for cart operations over HTTP.

    Responsibilities:
      - keep a bounded, least-recently-used cache of shopper sessions
        (engine + drawer), one request at a time per shopper
      - resolve products from the catalog and validate selected options
      - charge the offer price of the selected variant
      - map cart errors to HTTP errors
    """

    def __init__(
        self,
        store: CartStore,
        catalog: CatalogRepository,
        storage_key: str = "cart",
        max_sessions: int = 1024,
    ):
        self.store = store
        self.catalog = catalog
        self.storage_key = storage_key
        self.max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, CartSession] = OrderedDict()
        self._sessions_lock = threading.Lock()

    # ---- internal helpers ----

    def _open(self, session: CartSession, owner: str) -> CartSession:
        session.engine = CartEngine(self.store, f"{self.storage_key}:{owner}")
        session.drawer = CartDrawer(session.engine)
        return session

    def _acquire(self, owner: str, create: bool) -> CartSession | None:
        with self._sessions_lock:
            session = self._sessions.get(owner)
            if session is None:
                if not create:
                    return None
                session = CartSession()
                self._sessions[owner] = session
            self._sessions.move_to_end(owner)
            session.active += 1
            self._evict()
            return session

    def _release(self, session: CartSession) -> None:
        with self._sessions_lock:
            session.active -= 1
            self._evict()

    def _evict(self) -> None:
        # oldest first; sessions in use are skipped
        for owner in list(self._sessions):
            if len(self._sessions) <= self.max_sessions:
                return
            if self._sessions[owner].active == 0:
                del self._sessions[owner]

    def _get_valid_product(self, product_id: str) -> ProductRef:
        try:
            product = self.catalog.get_product(product_id)
        except (APIError, httpx.HTTPError) as e:
            logger.error("Catalog lookup for %s failed: %s", product_id, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Catalog unavailable",
            )
        except pydantic.ValidationError as e:
            logger.error("Catalog returned an invalid product %s: %s", product_id, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Catalog returned an invalid product",
            )
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is inactive",
            )
        return product

    @staticmethod
    def _bad_request(e: ValidationError) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    @staticmethod
    def _summary(session: CartSession) -> CartSummary:
        engine = session.engine
        item_reads = [
            CartLineRead(**line.model_dump(), line_total=line.line_total)
            for line in engine.items
        ]
        return CartSummary(
            items=item_reads,
            cart_count=engine.cart_count,
            cart_total=engine.cart_total,
            is_cart_open=session.drawer.is_open,
            is_persistent=engine.is_persistent,
        )

    # ---- public operations ----

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @contextmanager
    def cart_session(self, owner: str, *, create: bool = True) -> Iterator[CartSession]:
        """
        Hold a shopper's cart for the duration of one request.

        - requests for the same shopper run one at a time
        - a cached engine is refreshed from the store first, so carts
          saved by another worker are not overwritten with stale lines
        - create=False: an unknown shopper gets a throwaway session
          that is not cached (read-only requests)
        """
        session = self._acquire(owner, create)
        if session is None:
            yield self._open(CartSession(), owner)
            return
        try:
            with session.lock:
                if session.engine is None:
                    self._open(session, owner)
                else:
                    session.engine.refresh()
                yield session
        finally:
            self._release(session)

    def get_cart_summary(self, owner: str) -> CartSummary:
        """
        Return full cart summary:
          - list of CartLineRead (with line_total)
          - cart_count / cart_total
          - drawer flag and whether the cart is being saved
        """
        with self.cart_session(owner, create=False) as session:
            return self._summary(session)

    def add_to_cart(self, owner: str, payload: CartItemCreate) -> CartSummary:
        """
        Add a product variant to the shopper's cart.

        Rules:
          - product must exist and be active
          - every required option must be selected
          - the offer price of the selected variant is snapshotted
        """
        product = self._get_valid_product(payload.product_id)

        missing = missing_options(product, payload.options)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Please select: {', '.join(missing)}",
            )

        _, offer_price = resolve_variant_price(product, payload.options)
        with self.cart_session(owner) as session:
            try:
                session.engine.add_to_cart(
                    product,
                    payload.quantity,
                    payload.options,
                    price_override=offer_price,
                )
            except ValidationError as e:
                raise self._bad_request(e)
            return self._summary(session)

    def update_quantity(
        self,
        owner: str,
        line_id: str,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Update the quantity of a cart line.

        quantity < 1 => 400, the line is kept as is.
        """
        with self.cart_session(owner) as session:
            try:
                session.engine.update_quantity(line_id, payload.quantity)
            except ValidationError as e:
                raise self._bad_request(e)
            return self._summary(session)

    def remove_item(self, owner: str, line_id: str) -> CartSummary:
        """
        Remove a line from the cart (if present),
        and return updated summary.
        """
        with self.cart_session(owner) as session:
            session.engine.remove_from_cart(line_id)
            return self._summary(session)

    def clear_cart(self, owner: str) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        with self.cart_session(owner) as session:
            session.engine.clear_cart()
            return self._summary(session)

    def set_drawer(self, owner: str, is_open: bool) -> CartSummary:
        with self.cart_session(owner) as session:
            session.drawer.set_open(is_open)
            return self._summary(session)
