# silkthread/services/cart_drawer.py
from silkthread.services.cart_engine import CartEngine, CartEvent


class CartDrawer:
    """
    Transient "cart drawer open" flag for one session.

    Opens whenever something is added to the cart (merges included).
    Never persisted: a reload starts with the drawer closed.
    """

    def __init__(self, engine: CartEngine | None = None):
        self.is_open = False
        self._unsubscribe = None
        if engine is not None:
            self.attach(engine)

    def attach(self, engine: CartEngine) -> None:
        self.detach()
        self._unsubscribe = engine.subscribe(self._on_cart_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def set_open(self, is_open: bool) -> None:
        self.is_open = is_open

    def _on_cart_event(self, event: CartEvent) -> None:
        if event.kind == "added":
            self.is_open = True
