"""Pytest fixtures for ordertrack tests."""

import tempfile
from pathlib import Path

import pytest

from ordertrack.invoices import InvoiceStorage, InvoiceUpload
from ordertrack.lifecycle import OrderManager
from ordertrack.models import Order, OrderStatus
from ordertrack.notifications import NotificationLog
from ordertrack.order_store import InMemoryOrderStore, JsonOrderStore
from ordertrack.sample_data import sample_orders

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << >>\n%%EOF\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def orders():
    """The five demo orders, most recent first."""
    return sample_orders()


@pytest.fixture
def store(orders):
    """In-memory store holding the demo orders."""
    return InMemoryOrderStore(orders)


@pytest.fixture(params=["memory", "json"])
def any_store(request, temp_dir):
    """Each store backend, starting empty."""
    if request.param == "memory":
        return InMemoryOrderStore()
    return JsonOrderStore(temp_dir / "data")


@pytest.fixture
def invoice_storage(temp_dir):
    return InvoiceStorage(temp_dir / "uploads")


@pytest.fixture
def manager(store, invoice_storage):
    """OrderManager over the demo store with invoice storage in a temp dir."""
    return OrderManager(store, NotificationLog(), invoices=invoice_storage)


@pytest.fixture
def empty_manager(invoice_storage):
    return OrderManager(InMemoryOrderStore(), NotificationLog(), invoices=invoice_storage)


@pytest.fixture
def pdf_upload():
    return InvoiceUpload(filename="invoice.pdf", content=PDF_BYTES, content_type="application/pdf")


def make_order(
    order_id: str,
    customer_name: str = "Test Customer",
    order_amount: float = 100.0,
    order_date: str = "2024-01-01T00:00:00Z",
    status: OrderStatus = OrderStatus.PENDING,
    customer_email: str | None = None,
) -> Order:
    """Build an order with fixed timestamps for query/analytics tests."""
    return Order(
        order_id=order_id,
        customer_name=customer_name,
        order_amount=order_amount,
        order_date=order_date,
        status=status,
        customer_email=customer_email,
        notes=["Order received and awaiting confirmation"],
        created_at=order_date,
        updated_at=order_date,
    )
