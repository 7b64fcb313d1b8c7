# silkthread/services/cart_engine.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping

from silkthread.core.errors import CartStoreError
from silkthread.repositories.cart_store import CartStore
from silkthread.schemas.cart import CartLine, ProductRef
from silkthread.services import cart_lines

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "cart"

EventKind = Literal["added", "removed", "updated", "cleared", "loaded"]


@dataclass(frozen=True)
class CartEvent:
    """Emitted after every cart state change."""

    kind: EventKind
    engine: "CartEngine"
    line_id: str | None = None


Listener = Callable[[CartEvent], None]
Operation = Callable[[list[CartLine]], list[CartLine]]


class CartEngine:
    """
    Shopping cart for one shopper session.

    Responsibilities:
      - hold the ordered cart lines (insertion order is display order)
      - apply add / remove / update / clear through cart_lines
      - load once from a CartStore, then write the whole cart back
        after every change
      - notify listeners (e.g. the cart drawer) of changes

    Load gating:
      Until the initial load resolves, changes are applied in memory and
      remembered. When the load finishes the stored lines are taken as the
      base, the remembered changes are replayed on top and the merged cart
      is written once. Nothing is written before that, so an early change
      can never clobber a saved cart with an almost empty one.

      A failed or timed-out read is not an empty cart. The engine stays
      in memory only (is_persistent is False), keeps remembering changes
      and retries the read on the next change; the first successful read
      merges and writes as above.

    Not thread-safe: callers sharing an engine serialize access
    (CartService holds a lock per shopper).

    Usage:
        engine = CartEngine(store)              # loads synchronously
        engine = CartEngine(store, autoload=False)
        await engine.aload(timeout=5)           # load off the event loop
    """

    def __init__(
        self,
        store: CartStore,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        autoload: bool = True,
    ):
        self.store = store
        self.key = key
        self._lines: list[CartLine] = []
        self._loaded = False
        self._loading = False
        self._stale = False
        self._pending: list[Operation] = []
        self._listeners: list[Listener] = []
        self.last_persist_error: Exception | None = None

        if autoload:
            self.load()

    # ----- Read surface -----

    @property
    def items(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def cart_count(self) -> int:
        return cart_lines.cart_count(self._lines)

    @property
    def cart_total(self) -> float:
        return cart_lines.cart_total(self._lines)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_persistent(self) -> bool:
        """False while the last write-back failed (in-memory only)."""
        return self.last_persist_error is None

    def get_line(self, line_id: str) -> CartLine | None:
        for line in self._lines:
            if line.id == line_id:
                return line
        return None

    # ----- Events -----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener. Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: EventKind, line_id: str | None = None) -> None:
        event = CartEvent(kind=kind, engine=self, line_id=line_id)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Cart listener %r failed on %s", listener, kind)

    # ----- Mutations -----

    def add_to_cart(
        self,
        product: ProductRef | Mapping[str, Any],
        quantity: int = 1,
        options: Mapping[str, str] | None = None,
        price_override: float | None = None,
    ) -> CartLine:
        """
        Add units of a product variant; merges into an existing line with
        the same product and options.

        Raises:
            ValidationError: non-positive quantity, missing product id,
                negative price override.
        """
        ref = cart_lines.coerce_product(product)
        new_lines, line_id = cart_lines.add_line(
            self._lines, ref, quantity, options, price_override
        )

        def replay(lines: list[CartLine]) -> list[CartLine]:
            return cart_lines.add_line(lines, ref, quantity, options, price_override)[0]

        self._commit(new_lines, replay)
        self._emit("added", line_id)
        return self.get_line(line_id)  # type: ignore[return-value]

    def remove_from_cart(self, line_id: str) -> None:
        """Remove a line. Unknown ids are ignored."""
        if self.get_line(line_id) is None and self._in_sync:
            return

        def op(lines: list[CartLine]) -> list[CartLine]:
            return cart_lines.remove_line(lines, line_id)

        self._commit(op(self._lines), op)
        self._emit("removed", line_id)

    def update_quantity(self, line_id: str, quantity: int) -> None:
        """
        Set the quantity of a line. Unknown ids are ignored.

        Raises:
            ValidationError: quantity < 1; the line is left unchanged.
        """
        new_lines = cart_lines.set_quantity(self._lines, line_id, quantity)
        if self.get_line(line_id) is None and self._in_sync:
            return

        def op(lines: list[CartLine]) -> list[CartLine]:
            return cart_lines.set_quantity(lines, line_id, quantity)

        self._commit(new_lines, op)
        self._emit("updated", line_id)

    def clear_cart(self) -> None:
        self._commit([], lambda lines: [])
        self._emit("cleared")

    def _commit(self, new_lines: list[CartLine], op: Operation) -> None:
        self._lines = new_lines
        if self._in_sync:
            self._persist()
            return
        self._pending.append(op)
        if self._stale:
            self._read_and_merge()

    # ----- Persistence -----

    @property
    def _in_sync(self) -> bool:
        return self._loaded and not self._stale

    def load(self) -> None:
        """Read the stored cart synchronously and merge pending changes."""
        if self._loaded or self._loading:
            return
        self._read_and_merge()

    async def aload(self, timeout: float | None = None) -> None:
        """
        Read the stored cart in a worker thread.

        Changes made while the read is in flight are merged on completion.
        A timeout is handled like a failed read.
        """
        if self._loaded or self._loading:
            return
        self._loading = True
        try:
            payload = await asyncio.wait_for(
                asyncio.to_thread(self.store.read, self.key),
                timeout=timeout,
            )
        except (CartStoreError, asyncio.TimeoutError) as e:
            self._load_failed(e)
            return
        finally:
            self._loading = False
        self._finish_load(payload)

    def refresh(self) -> None:
        """
        Re-read the stored cart to pick up changes saved by another engine.

        Skipped after a failed write: the in-memory cart is then ahead of
        the store and must not be replaced by it.
        """
        if self._loading:
            return
        if self._in_sync and self.last_persist_error is not None:
            return
        self._read_and_merge()

    def _read_and_merge(self) -> None:
        try:
            payload = self.store.read(self.key)
        except CartStoreError as e:
            self._load_failed(e)
            return
        self._finish_load(payload)

    def _load_failed(self, error: Exception) -> None:
        # The stored cart is unknown, so writing now could overwrite it.
        # Keep changes in memory and pending until a read succeeds.
        if not self._stale:
            logger.warning(
                "Could not load cart %r, keeping changes in memory only: %s",
                self.key,
                error,
            )
        self._stale = True
        self.last_persist_error = error
        if not self._loaded:
            self._loaded = True
            self._emit("loaded")

    def _finish_load(self, payload: str | None) -> None:
        try:
            lines = cart_lines.parse_lines(payload)
        except ValueError as e:
            logger.error("Failed to parse cart %r from storage: %s", self.key, e)
            lines = []

        pending, self._pending = self._pending, []
        for op in pending:
            lines = op(lines)

        self._lines = lines
        self._loaded = True
        self._stale = False
        if pending:
            self._persist()
        elif self.last_persist_error is not None:
            logger.info("Cart %r is persistent again", self.key)
            self.last_persist_error = None
        self._emit("loaded")

    def _persist(self) -> None:
        try:
            self.store.write(self.key, cart_lines.dump_lines(self._lines))
        except CartStoreError as e:
            if self.last_persist_error is None:
                logger.warning(
                    "Cart %r could not be saved, keeping it in memory only: %s",
                    self.key,
                    e,
                )
            self.last_persist_error = e
            return

        if self.last_persist_error is not None:
            logger.info("Cart %r is persistent again", self.key)
        self.last_persist_error = None
