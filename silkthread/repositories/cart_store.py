# silkthread/repositories/cart_store.py
import contextlib
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import Client
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from silkthread.core.config import Settings
from silkthread.core.errors import CartStoreError

logger = logging.getLogger(__name__)


class CartStore:
    """
    Key-value storage for serialized carts.

    - Pure persistence, no cart logic.
    - Values are the full JSON payload of one cart.
    """

    def read(self, key: str) -> str | None:
        """Return the stored payload, or None if the key is absent."""
        raise NotImplementedError

    def write(self, key: str, payload: str) -> None:
        """Replace the stored payload for `key`."""
        raise NotImplementedError


class MemoryCartStore(CartStore):
    """Process-local store. Used in tests and for single-process demos."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, payload: str) -> None:
        self.data[key] = payload


class FileCartStore(CartStore):
    """
    One JSON file per key inside `directory`.

    Writes go to a temp file first and are moved into place, so a crash
    mid-write never leaves a truncated cart behind.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.directory / f"{safe}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CartStoreError(f"Could not read {path}: {e}") from e

    def write(self, key: str, payload: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        except OSError as e:
            raise CartStoreError(f"Could not write {path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise CartStoreError(f"Could not write {path}: {e}") from e
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise


# Network-level and PostgREST errors are worth retrying; anything else is a bug.
TRANSIENT_ERRORS = (httpx.HTTPError, APIError)


class SupabaseCartStore(CartStore):
    """
    Carts stored as rows of a Supabase table.

    Table layout:
        cart_snapshots(key text primary key, payload text, updated_at timestamptz)

    Each request is bounded by the client's postgrest timeout and retried
    with exponential backoff; when retries are exhausted CartStoreError
    is raised so the engine can fall back to in-memory mode.
    """

    def __init__(
        self,
        client: Client,
        table: str = "cart_snapshots",
        retries: int = 3,
        backoff: float = 0.5,
    ):
        self.client = client
        self.table = table
        self.retries = max(1, retries)
        self.backoff = backoff

    def _call(self, action: str, fn: Callable[[], Any]) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, max=self.backoff * 8),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=lambda state: logger.warning(
                "Cart store %s failed (attempt %s/%s): %s",
                action,
                state.attempt_number,
                self.retries,
                state.outcome.exception() if state.outcome else None,
            ),
        )
        try:
            return retrying(fn)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise CartStoreError(f"Cart store {action} failed: {last}") from last

    def read(self, key: str) -> str | None:
        def _read():
            return (
                self.client.table(self.table)
                .select("payload")
                .eq("key", key)
                .limit(1)
                .execute()
            )

        response = self._call("read", _read)
        rows = response.data or []
        if not rows:
            return None
        return rows[0].get("payload")

    def write(self, key: str, payload: str) -> None:
        row = {
            "key": key,
            "payload": payload,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self._call(
            "write",
            lambda: self.client.table(self.table).upsert(row, on_conflict="key").execute(),
        )


def build_cart_store(settings: Settings) -> CartStore:
    """
    Pick the cart store configured by CART_STORE_BACKEND.
    """
    backend = settings.CART_STORE_BACKEND
    if backend == "file":
        return FileCartStore(settings.CART_STORE_DIR)
    if backend == "supabase":
        # Imported lazily: the admin client needs the service role key.
        from silkthread.core.supabase_client import supabase_admin

        return SupabaseCartStore(
            supabase_admin(),
            table=settings.CART_STORE_TABLE,
            retries=settings.CART_STORE_RETRIES,
            backoff=settings.CART_STORE_BACKOFF,
        )
    return MemoryCartStore()
