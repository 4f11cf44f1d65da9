"""Tests for OrderManager lifecycle operations."""

import re
import threading

import pytest

from ordertrack.errors import (
    InvalidInvoiceError,
    InvalidOrderError,
    InvoiceStorageError,
    OrderNotFoundError,
)
from ordertrack.invoices import InvoiceStorage, InvoiceUpload
from ordertrack.lifecycle import OrderManager
from ordertrack.models import NotificationType, OrderCreate, OrderStatus, OrderUpdate
from ordertrack.notifications import NotificationLog
from ordertrack.order_store import InMemoryOrderStore
from ordertrack.query import OrderQuery


class TestCreate:
    def test_create_sets_pending_with_seed_note(self, empty_manager):
        order = empty_manager.create(OrderCreate(customer_name="Ada", order_amount=42.5))

        assert order.status == OrderStatus.PENDING
        assert order.notes == ["Order received and awaiting confirmation"]
        assert order.created_at == order.updated_at == order.order_date
        assert empty_manager.store.get(order.order_id) == order

    def test_create_assigns_sequential_ids(self, manager):
        first = manager.create(OrderCreate(customer_name="Ada", order_amount=1.0))
        second = manager.create(OrderCreate(customer_name="Bob", order_amount=2.0))

        assert first.order_id == "ORD-006"
        assert second.order_id == "ORD-007"

    def test_ids_not_reused_after_delete(self, manager):
        created = manager.create(OrderCreate(customer_name="Ada", order_amount=1.0))
        manager.delete(created.order_id)
        again = manager.create(OrderCreate(customer_name="Ada", order_amount=1.0))

        assert again.order_id != created.order_id

    def test_new_order_is_listed_first(self, manager):
        order = manager.create(OrderCreate(customer_name="Ada", order_amount=1.0))

        assert manager.store.list()[0].order_id == order.order_id

    def test_create_emits_notification(self, empty_manager):
        order = empty_manager.create(OrderCreate(customer_name="Ada", order_amount=10.0))

        [notification] = empty_manager.notifications.recent()
        assert notification.type == NotificationType.ORDER_CREATED
        assert notification.order_id == order.order_id
        assert notification.message == f"Order {order.order_id} has been created for Ada"
        assert notification.read is False

    @pytest.mark.parametrize(
        "data",
        [
            OrderCreate(customer_name="", order_amount=10.0),
            OrderCreate(customer_name="Ada", order_amount=0.0),
            OrderCreate(customer_name="Ada", order_amount=-5.0),
            OrderCreate(customer_name="Ada", order_amount=5.0, customer_email="not-an-email"),
        ],
    )
    def test_invalid_create_persists_nothing(self, empty_manager, data):
        with pytest.raises(InvalidOrderError):
            empty_manager.create(data)

        assert empty_manager.store.list() == []
        assert len(empty_manager.notifications) == 0

    def test_create_with_invoice(self, empty_manager, pdf_upload, invoice_storage):
        order = empty_manager.create(OrderCreate(customer_name="Ada", order_amount=10.0), pdf_upload)

        assert order.invoice_file_name == "invoice.pdf"
        assert order.invoice_file_url.startswith("/uploads/invoices/invoice-")
        assert invoice_storage.resolve(order.invoice_file_url).read_bytes() == pdf_upload.content

    def test_non_pdf_invoice_rejected(self, empty_manager):
        upload = InvoiceUpload(filename="notes.txt", content=b"hi", content_type="text/plain")

        with pytest.raises(InvalidInvoiceError):
            empty_manager.create(OrderCreate(customer_name="Ada", order_amount=10.0), upload)
        assert empty_manager.store.list() == []


class TestInvoiceStorageFailure:
    @pytest.fixture
    def broken_storage(self, temp_dir):
        # A regular file where the upload directory should be makes mkdir fail
        blocker = temp_dir / "uploads"
        blocker.write_text("not a directory")
        return InvoiceStorage(blocker)

    def test_best_effort_creates_order_without_invoice(self, broken_storage, pdf_upload):
        manager = OrderManager(InMemoryOrderStore(), invoices=broken_storage)

        order = manager.create(OrderCreate(customer_name="Ada", order_amount=10.0), pdf_upload)

        assert order.invoice_file_url is None
        assert manager.store.get(order.order_id) is not None

    def test_strict_mode_blocks_creation(self, broken_storage, pdf_upload):
        manager = OrderManager(InMemoryOrderStore(), invoices=broken_storage, strict_invoices=True)

        with pytest.raises(InvoiceStorageError):
            manager.create(OrderCreate(customer_name="Ada", order_amount=10.0), pdf_upload)
        assert manager.store.list() == []


class TestUpdate:
    def test_status_change_appends_note_and_notifies(self, manager):
        before = manager.get("ORD-003")
        updated = manager.update("ORD-003", OrderUpdate(status=OrderStatus.PROCESSING))

        assert updated.status == OrderStatus.PROCESSING
        assert len(updated.notes) == len(before.notes) + 1
        assert updated.notes[-1] == "Status changed from pending to processing"
        [notification] = manager.notifications.recent()
        assert notification.type == NotificationType.ORDER_UPDATED
        assert notification.message == "Order ORD-003 status changed to processing"

    def test_same_status_adds_no_note(self, manager):
        before = manager.get("ORD-003")
        updated = manager.update("ORD-003", OrderUpdate(status=OrderStatus.PENDING))

        assert updated.notes == before.notes
        assert len(manager.notifications) == 0

    def test_non_status_update_merges_fields_only(self, manager):
        before = manager.get("ORD-002")
        updated = manager.update(
            "ORD-002", OrderUpdate(shipping_address="1 New Rd", order_amount=650.0)
        )

        assert updated.shipping_address == "1 New Rd"
        assert updated.order_amount == 650.0
        assert updated.customer_name == before.customer_name
        assert updated.customer_email == before.customer_email
        assert updated.status == before.status
        assert updated.notes == before.notes
        assert updated.updated_at > before.updated_at
        assert updated.created_at == before.created_at
        assert len(manager.notifications) == 0

    def test_update_persists(self, manager):
        manager.update("ORD-002", OrderUpdate(status=OrderStatus.COMPLETED))

        assert manager.store.get("ORD-002").status == OrderStatus.COMPLETED

    def test_update_missing_raises_without_side_effects(self, manager):
        snapshot = manager.store.list()

        with pytest.raises(OrderNotFoundError):
            manager.update("ORD-999", OrderUpdate(status=OrderStatus.COMPLETED))

        assert manager.store.list() == snapshot
        assert len(manager.notifications) == 0

    def test_invalid_amount_rejected(self, manager):
        with pytest.raises(InvalidOrderError):
            manager.update("ORD-002", OrderUpdate(order_amount=-1.0))
        assert manager.get("ORD-002").order_amount == 599.50

    def test_sequential_status_changes_build_audit_trail(self, manager):
        manager.update("ORD-003", OrderUpdate(status=OrderStatus.PROCESSING))
        order = manager.update("ORD-003", OrderUpdate(status=OrderStatus.COMPLETED))

        assert order.notes[-2:] == [
            "Status changed from pending to processing",
            "Status changed from processing to completed",
        ]


class TestDelete:
    def test_delete_removes_order_silently(self, manager):
        removed = manager.delete("ORD-004")

        assert removed.order_id == "ORD-004"
        assert manager.store.get("ORD-004") is None
        assert len(manager.store.list()) == 4
        assert len(manager.notifications) == 0

    def test_delete_missing_raises_and_keeps_size(self, manager):
        with pytest.raises(OrderNotFoundError):
            manager.delete("ORD-999")
        assert len(manager.store.list()) == 5


class TestBulkUpdate:
    def test_skips_unknown_and_keeps_supplied_order(self, manager):
        updated = manager.bulk_update(
            ["ORD-005", "ORD-404", "ORD-002"], OrderUpdate(status=OrderStatus.PROCESSING)
        )

        assert [o.order_id for o in updated] == ["ORD-005", "ORD-002"]
        assert manager.get("ORD-005").notes[-1] == "Status changed from cancelled to processing"
        # ORD-002 was already processing
        assert manager.get("ORD-002").notes[-1] == "Items being prepared for shipping"
        assert len(manager.notifications) == 1

    def test_all_unknown_returns_empty(self, manager):
        assert manager.bulk_update(["X", "Y"], OrderUpdate(status=OrderStatus.COMPLETED)) == []


class TestNotesAndInvoices:
    def test_add_note_appends(self, manager):
        before = manager.get("ORD-001")
        order = manager.add_note("ORD-001", "  Customer called about delivery  ")

        assert order.notes == before.notes + ["Customer called about delivery"]
        assert manager.get("ORD-001").notes[-1] == "Customer called about delivery"

    def test_blank_note_rejected(self, manager):
        with pytest.raises(InvalidOrderError):
            manager.add_note("ORD-001", "   ")

    def test_attach_invoice_replaces_reference(self, manager, pdf_upload):
        order = manager.attach_invoice("ORD-002", pdf_upload)

        assert order.invoice_file_name == "invoice.pdf"
        assert order.invoice_file_url != "/uploads/invoices/invoice-002.pdf"
        assert manager.get("ORD-002").invoice_file_url == order.invoice_file_url

    def test_attach_invoice_missing_order(self, manager, pdf_upload):
        with pytest.raises(OrderNotFoundError):
            manager.attach_invoice("ORD-999", pdf_upload)


class TestReads:
    def test_get_missing_raises(self, manager):
        with pytest.raises(OrderNotFoundError):
            manager.get("ORD-999")

    def test_list_orders_uses_store_snapshot(self, manager):
        result = manager.list_orders(OrderQuery(status=OrderStatus.CANCELLED))

        assert [o.order_id for o in result.orders] == ["ORD-005"]
        assert result.total == 1

    def test_export_ignores_pagination(self, manager):
        exported = manager.export_orders(OrderQuery(page=3, limit=1))

        assert len(exported) == 5

    def test_analytics_reflects_updates(self, manager):
        manager.update("ORD-003", OrderUpdate(status=OrderStatus.COMPLETED))

        assert manager.analytics().status_breakdown["completed"] == 3

    def test_default_notification_log(self):
        manager = OrderManager(InMemoryOrderStore())
        assert isinstance(manager.notifications, NotificationLog)


class TestStatusCoercion:
    def test_plain_string_status(self, manager):
        order = manager.update("ORD-003", OrderUpdate(status="completed"))

        assert order.status == OrderStatus.COMPLETED
        assert order.notes[-1] == "Status changed from pending to completed"
        assert manager.notifications.recent()[0].message == "Order ORD-003 status changed to completed"

    def test_unknown_string_status(self, manager):
        with pytest.raises(InvalidOrderError, match="status"):
            manager.update("ORD-003", OrderUpdate(status="shipped"))
        assert manager.get("ORD-003").status == OrderStatus.PENDING


_STATUS_NOTE = re.compile(r"^Status changed from (\w+) to (\w+)$")


class TestConcurrency:
    def test_concurrent_status_flips_keep_notes_chained(self, any_store):
        manager = OrderManager(any_store)
        order = manager.create(OrderCreate(customer_name="Ada", order_amount=10.0))
        targets = [OrderStatus.PROCESSING, OrderStatus.COMPLETED] * 20
        start = threading.Barrier(len(targets))
        errors = []

        def flip(status):
            start.wait()
            try:
                manager.update(order.order_id, OrderUpdate(status=status))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=flip, args=(s,)) for s in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        final = manager.get(order.order_id)
        transitions = [_STATUS_NOTE.match(n).groups() for n in final.notes[1:]]
        previous = OrderStatus.PENDING.value
        for old, new in transitions:
            assert old == previous
            assert new != old
            previous = new
        assert previous == final.status.value

        updated_events = [
            n for n in manager.notifications.recent(limit=100)
            if n.type == NotificationType.ORDER_UPDATED
        ]
        assert len(updated_events) == len(transitions)

    def test_concurrent_delete_waits_for_invoice_attach(self, manager, invoice_storage, pdf_upload):
        save = invoice_storage.save
        deleter = threading.Thread(target=manager.delete, args=("ORD-002",))

        def save_while_deleting(upload):
            deleter.start()
            deleter.join(timeout=0.2)
            # the delete is blocked on the store lock until the attach finishes
            assert deleter.is_alive()
            return save(upload)

        invoice_storage.save = save_while_deleting
        order = manager.attach_invoice("ORD-002", pdf_upload)
        deleter.join()

        assert order.invoice_file_name == "invoice.pdf"
        assert manager.store.get("ORD-002") is None
