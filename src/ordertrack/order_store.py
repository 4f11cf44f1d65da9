"""Order storage backends for ordertrack."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from .config import DATA_DIR, ORDERS_FILE
from .errors import InvalidSchemaVersionError
from .models import Order
from .utils import order_sequence

SCHEMA_VERSION = 1


class OrderStore(Protocol):
    """Protocol for order persistence backends.

    The store is the single source of truth for queries, lifecycle
    changes and analytics. Orders handed in or out are copies, so a
    caller never observes or causes mutation behind the store's back.
    Iteration order is most-recent-first: new orders go to the front.
    """

    def get(self, order_id: str) -> Order | None:
        """Return a copy of the order, or None if absent."""
        ...

    def upsert(self, order: Order) -> None:
        """Insert a new order at the front, or replace an existing one in place."""
        ...

    def remove(self, order_id: str) -> bool:
        """Delete an order. Returns False if it was absent."""
        ...

    def list(self) -> list[Order]:
        """Return a snapshot of all orders, most recent first."""
        ...

    def next_sequence(self) -> int:
        """Reserve a sequence number never handed out before by this store."""
        ...

    def lock(self):
        """Context manager serializing read-modify-write sequences.

        Reentrant: store methods called while holding it don't block.
        """
        ...


def _max_sequence(order_ids) -> int:
    return max((order_sequence(oid) or 0 for oid in order_ids), default=0)


class InMemoryOrderStore:
    """Order store held in process memory."""

    def __init__(self, orders: list[Order] | None = None):
        """
        Initialize InMemoryOrderStore.

        Args:
            orders: Initial orders in iteration order (most recent first).
        """
        self._lock = threading.RLock()
        self._orders: dict[str, Order] = {}
        self._order_ids: list[str] = []
        for order in orders or []:
            self._orders[order.order_id] = order.copy()
            self._order_ids.append(order.order_id)
        self._last_sequence = _max_sequence(self._order_ids)

    @contextmanager
    def lock(self) -> Iterator[None]:
        with self._lock:
            yield

    def next_sequence(self) -> int:
        with self._lock:
            self._last_sequence = max(self._last_sequence, _max_sequence(self._order_ids)) + 1
            return self._last_sequence

    def get(self, order_id: str) -> Order | None:
        with self._lock:
            order = self._orders.get(order_id)
            return order.copy() if order is not None else None

    def upsert(self, order: Order) -> None:
        with self._lock:
            if order.order_id not in self._orders:
                self._order_ids.insert(0, order.order_id)
            self._orders[order.order_id] = order.copy()

    def remove(self, order_id: str) -> bool:
        with self._lock:
            if order_id not in self._orders:
                return False
            del self._orders[order_id]
            self._order_ids.remove(order_id)
            return True

    def list(self) -> list[Order]:
        with self._lock:
            return [self._orders[oid].copy() for oid in self._order_ids]

    def __len__(self) -> int:
        with self._lock:
            return len(self._order_ids)


class JsonOrderStore:
    """Order store persisted to a JSON file."""

    def __init__(self, config_dir: Path | None = None):
        """
        Initialize JsonOrderStore.

        Args:
            config_dir: Override data directory (for testing).
        """
        self.config_dir = config_dir or DATA_DIR
        self.config_path = self.config_dir / ORDERS_FILE
        self._thread_lock = threading.RLock()
        self._depth = 0

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Acquire exclusive lock on the orders file for read-modify-write operations."""
        with self._thread_lock:
            if self._depth > 0:
                # flock is per open file, so a nested acquire would deadlock
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._ensure_dir()
            lock_path = self.config_dir / ".orders.lock"
            with open(lock_path, "w") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                self._depth = 1
                try:
                    yield
                finally:
                    self._depth = 0
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def exists(self) -> bool:
        """Check if the orders file exists."""
        return self.config_path.exists()

    def _load_data(self) -> dict[str, Any]:
        """
        Load orders data from disk.

        Raises:
            InvalidSchemaVersionError: If schema version is unsupported.
        """
        if not self.config_path.exists():
            return {"schema_version": SCHEMA_VERSION, "orders": []}

        with open(self.config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        version = data.get("schema_version", 0)
        if version != SCHEMA_VERSION:
            raise InvalidSchemaVersionError(version, SCHEMA_VERSION)
        return data

    def _save_data(self, data: dict[str, Any]) -> None:
        """Save orders data to disk atomically."""
        self._ensure_dir()

        fd, temp_path = tempfile.mkstemp(
            dir=self.config_dir, prefix=".orders_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.config_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def next_sequence(self) -> int:
        with self.lock():
            data = self._load_data()
            orders = data.setdefault("orders", [])
            last = max(
                data.get("last_sequence", 0),
                _max_sequence(o["orderId"] for o in orders),
            )
            data["last_sequence"] = last + 1
            self._save_data(data)
            return last + 1

    def get(self, order_id: str) -> Order | None:
        with self.lock():
            for o in self._load_data().get("orders", []):
                if o["orderId"] == order_id:
                    return Order.from_dict(o)
        return None

    def upsert(self, order: Order) -> None:
        with self.lock():
            data = self._load_data()
            orders = data.setdefault("orders", [])
            for i, o in enumerate(orders):
                if o["orderId"] == order.order_id:
                    orders[i] = order.to_dict()
                    break
            else:
                orders.insert(0, order.to_dict())
            self._save_data(data)

    def remove(self, order_id: str) -> bool:
        with self.lock():
            data = self._load_data()
            orders = data.get("orders", [])
            for i, o in enumerate(orders):
                if o["orderId"] == order_id:
                    orders.pop(i)
                    self._save_data(data)
                    return True
        return False

    def list(self) -> list[Order]:
        with self.lock():
            data = self._load_data()
        return [Order.from_dict(o) for o in data.get("orders", [])]
