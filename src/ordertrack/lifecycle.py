"""Order lifecycle management: create, update, delete and audit notes."""

import logging
from dataclasses import replace

from .analytics import OrderAnalytics, compute_analytics
from .config import EXPORT_LIMIT
from .errors import (
    InvalidOrderError,
    InvoiceStorageError,
    OrderNotFoundError,
)
from .invoices import InvoiceStorage, InvoiceUpload
from .models import (
    InvoiceRef,
    NotificationType,
    Order,
    OrderCreate,
    OrderStatus,
    OrderUpdate,
    _utc_now,
)
from .notifications import NotificationLog
from .order_store import OrderStore
from .query import OrderQuery, QueryResult, run_query
from .utils import format_order_id, is_valid_email

logger = logging.getLogger(__name__)


def status_change_note(old: OrderStatus, new: OrderStatus) -> str:
    return f"Status changed from {old.value} to {new.value}"


def _validate_name(name: str) -> None:
    if not name:
        raise InvalidOrderError("customerName", "is required")


def _validate_amount(amount: float) -> None:
    if not amount > 0:
        raise InvalidOrderError("orderAmount", "must be positive")


def _validate_email(email: str) -> None:
    if not is_valid_email(email):
        raise InvalidOrderError("customerEmail", "must be a valid email address")


def _coerce_status(value: OrderStatus | str | None) -> OrderStatus | None:
    if value is None:
        return None
    try:
        return OrderStatus(value)
    except ValueError:
        choices = ", ".join(s.value for s in OrderStatus)
        raise InvalidOrderError("status", f"must be one of: {choices}")


class OrderManager:
    """Applies order lifecycle changes to a store and emits notifications."""

    def __init__(
        self,
        store: OrderStore,
        notifications: NotificationLog | None = None,
        invoices: InvoiceStorage | None = None,
        strict_invoices: bool = False,
    ):
        """
        Initialize OrderManager.

        Args:
            store: Order persistence backend.
            notifications: Sink for lifecycle events (a fresh log if omitted).
            invoices: Storage for uploaded invoice files; uploads are
                rejected if not configured.
            strict_invoices: If True, an invoice that can't be stored fails
                order creation instead of creating the order without it.
        """
        self.store = store
        self.notifications = notifications if notifications is not None else NotificationLog()
        self.invoices = invoices
        self.strict_invoices = strict_invoices

    # --- Reads ---

    def get(self, order_id: str) -> Order:
        """
        Get an order by ID.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
        """
        order = self.store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(self, query: OrderQuery | None = None) -> QueryResult:
        return run_query(self.store.list(), query or OrderQuery())

    def analytics(self) -> OrderAnalytics:
        return compute_analytics(self.store.list())

    def export_orders(self, filters: OrderQuery | None = None) -> list[Order]:
        """Return every order matching `filters`, newest first, up to the export limit."""
        query = replace(filters) if filters is not None else OrderQuery()
        query.page = 1
        query.limit = EXPORT_LIMIT
        return run_query(self.store.list(), query).orders

    # --- Mutations ---

    def _store_invoice(self, upload: InvoiceUpload) -> InvoiceRef:
        if self.invoices is None:
            raise InvoiceStorageError(upload.filename, "invoice storage is not configured")
        return self.invoices.save(upload)

    def create(self, data: OrderCreate, invoice: InvoiceUpload | None = None) -> Order:
        """
        Create a new pending order.

        Args:
            data: Order fields.
            invoice: Optional uploaded invoice to attach.

        Returns:
            The created Order.

        Raises:
            InvalidOrderError: If a field violates a business rule.
            InvalidInvoiceError: If the invoice is not an acceptable PDF.
            InvoiceStorageError: If the invoice can't be stored and
                strict_invoices is set.
        """
        _validate_name(data.customer_name)
        _validate_amount(data.order_amount)
        if data.customer_email is not None:
            _validate_email(data.customer_email)

        invoice_ref = None
        if invoice is not None:
            if self.invoices is not None:
                self.invoices.validate(invoice)
            try:
                invoice_ref = self._store_invoice(invoice)
            except InvoiceStorageError as e:
                if self.strict_invoices:
                    raise
                logger.warning("Creating order without invoice: %s", e)

        with self.store.lock():
            order = Order.create(
                order_id=format_order_id(self.store.next_sequence()),
                customer_name=data.customer_name,
                order_amount=data.order_amount,
                customer_email=data.customer_email,
                description=data.description,
                payment_method=data.payment_method,
                shipping_address=data.shipping_address,
                invoice=invoice_ref,
            )
            self.store.upsert(order)

        self.notifications.emit(
            NotificationType.ORDER_CREATED,
            "New Order Created",
            f"Order {order.order_id} has been created for {order.customer_name}",
            order.order_id,
        )
        logger.info("Created order %s for %s", order.order_id, order.customer_name)
        return order

    def update(self, order_id: str, changes: OrderUpdate) -> Order:
        """
        Merge supplied fields into an existing order.

        A status change appends an audit note and emits a notification;
        any other change only bumps updated_at.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidOrderError: If a supplied field violates a business rule.
        """
        if changes.customer_name is not None:
            _validate_name(changes.customer_name)
        if changes.order_amount is not None:
            _validate_amount(changes.order_amount)
        if changes.customer_email is not None:
            _validate_email(changes.customer_email)
        fields = changes.changed_fields()
        new_status = _coerce_status(fields.pop("status", None))

        with self.store.lock():
            existing = self.get(order_id)

            updated = replace(existing, **fields, notes=list(existing.notes), updated_at=_utc_now())
            status_changed = new_status is not None and new_status != existing.status
            if status_changed:
                updated.status = new_status
                updated.notes.append(status_change_note(existing.status, new_status))
            self.store.upsert(updated)

        if status_changed:
            self.notifications.emit(
                NotificationType.ORDER_UPDATED,
                "Order Status Updated",
                f"Order {order_id} status changed to {new_status.value}",
                order_id,
            )
            logger.info(
                "Order %s status %s -> %s", order_id, existing.status.value, new_status.value
            )
        else:
            logger.info("Updated order %s", order_id)
        return updated

    def delete(self, order_id: str) -> Order:
        """
        Hard-delete an order. No notification is emitted.

        Returns:
            The removed Order.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
        """
        with self.store.lock():
            order = self.get(order_id)
            self.store.remove(order_id)
        logger.info("Deleted order %s", order_id)
        return order

    def bulk_update(self, order_ids: list[str], changes: OrderUpdate) -> list[Order]:
        """
        Apply the same update to several orders in turn.

        Unknown IDs are skipped. Returns the updated orders in the order
        their IDs were supplied.
        """
        updated: list[Order] = []
        for order_id in order_ids:
            try:
                updated.append(self.update(order_id, changes))
            except OrderNotFoundError:
                logger.debug("Bulk update skipped unknown order %s", order_id)
        return updated

    def add_note(self, order_id: str, text: str) -> Order:
        """
        Append a free-text note to an order's audit trail.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidOrderError: If the note is blank.
        """
        if not text or not text.strip():
            raise InvalidOrderError("note", "must not be empty")

        with self.store.lock():
            order = self.get(order_id)
            order.notes.append(text.strip())
            order.updated_at = _utc_now()
            self.store.upsert(order)
        return order

    def attach_invoice(self, order_id: str, upload: InvoiceUpload) -> Order:
        """
        Store an invoice and point the order at it, replacing any previous one.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidInvoiceError: If the upload is rejected.
            InvoiceStorageError: If the file can't be stored.
        """
        with self.store.lock():
            order = self.get(order_id)
            invoice_ref = self._store_invoice(upload)
            order.invoice_file_url = invoice_ref.url
            order.invoice_file_name = invoice_ref.file_name
            order.updated_at = _utc_now()
            self.store.upsert(order)
        logger.info("Attached invoice %s to order %s", invoice_ref.file_name, order_id)
        return order
