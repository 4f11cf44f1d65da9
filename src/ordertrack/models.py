"""Data models for ordertrack."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid

SEED_NOTE = "Order received and awaiting confirmation"


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new notification ID."""
    return str(uuid.uuid4())


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    # Reserved wire values; status changes are reported as ORDER_UPDATED
    ORDER_COMPLETED = "order_completed"
    ORDER_CANCELLED = "order_cancelled"


@dataclass(frozen=True)
class InvoiceRef:
    """Reference to an invoice file held by external storage."""

    file_name: str  # name as uploaded
    url: str  # e.g. /uploads/invoices/invoice-1705312200000-42.pdf


@dataclass
class Order:
    """A customer order tracked through its status lifecycle."""

    order_id: str
    customer_name: str
    order_amount: float
    order_date: str  # ISO 8601, UTC
    status: OrderStatus = OrderStatus.PENDING
    customer_email: str | None = None
    description: str | None = None
    payment_method: str | None = None
    shipping_address: str | None = None
    invoice_file_url: str | None = None
    invoice_file_name: str | None = None
    notes: list[str] = field(default_factory=list)  # append-only audit trail
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    @property
    def invoice(self) -> InvoiceRef | None:
        if self.invoice_file_url is None:
            return None
        return InvoiceRef(file_name=self.invoice_file_name or "", url=self.invoice_file_url)

    def copy(self) -> "Order":
        """Return a detached copy (the notes list is not shared)."""
        return replace(self, notes=list(self.notes))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "orderId": self.order_id,
            "customerName": self.customer_name,
            "orderAmount": self.order_amount,
            "orderDate": self.order_date,
            "status": self.status.value,
            "notes": list(self.notes),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        optional = {
            "customerEmail": self.customer_email,
            "description": self.description,
            "paymentMethod": self.payment_method,
            "shippingAddress": self.shipping_address,
            "invoiceFileUrl": self.invoice_file_url,
            "invoiceFileName": self.invoice_file_name,
        }
        for key, value in optional.items():
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            order_id=data["orderId"],
            customer_name=data["customerName"],
            order_amount=float(data["orderAmount"]),
            order_date=data["orderDate"],
            status=OrderStatus(data.get("status", OrderStatus.PENDING.value)),
            customer_email=data.get("customerEmail"),
            description=data.get("description"),
            payment_method=data.get("paymentMethod"),
            shipping_address=data.get("shippingAddress"),
            invoice_file_url=data.get("invoiceFileUrl"),
            invoice_file_name=data.get("invoiceFileName"),
            notes=list(data.get("notes", [])),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )

    @classmethod
    def create(
        cls,
        order_id: str,
        customer_name: str,
        order_amount: float,
        customer_email: str | None = None,
        description: str | None = None,
        payment_method: str | None = None,
        shipping_address: str | None = None,
        invoice: InvoiceRef | None = None,
    ) -> "Order":
        """Create a new pending order with the seed note and timestamps."""
        now = _utc_now()
        return cls(
            order_id=order_id,
            customer_name=customer_name,
            order_amount=order_amount,
            order_date=now,
            status=OrderStatus.PENDING,
            customer_email=customer_email,
            description=description,
            payment_method=payment_method,
            shipping_address=shipping_address,
            invoice_file_url=invoice.url if invoice else None,
            invoice_file_name=invoice.file_name if invoice else None,
            notes=[SEED_NOTE],
            created_at=now,
            updated_at=now,
        )


@dataclass
class OrderCreate:
    """Fields supplied when creating an order."""

    customer_name: str
    order_amount: float
    customer_email: str | None = None
    description: str | None = None
    payment_method: str | None = None
    shipping_address: str | None = None


@dataclass
class OrderUpdate:
    """Partial update; None means 'leave unchanged'."""

    customer_name: str | None = None
    customer_email: str | None = None
    order_amount: float | None = None
    description: str | None = None
    status: OrderStatus | None = None
    payment_method: str | None = None
    shipping_address: str | None = None

    def changed_fields(self) -> dict[str, Any]:
        """Return only the fields that were supplied."""
        return {
            name: value
            for name, value in self.__dict__.items()
            if value is not None
        }


@dataclass
class Notification:
    """An order lifecycle event exposed to polling consumers."""

    id: str
    type: NotificationType
    title: str
    message: str
    order_id: str
    timestamp: str = field(default_factory=_utc_now)
    read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "orderId": self.order_id,
            "timestamp": self.timestamp,
            "read": self.read,
        }

    @classmethod
    def create(
        cls,
        type: NotificationType,
        title: str,
        message: str,
        order_id: str,
    ) -> "Notification":
        """Create a new unread notification with generated ID and timestamp."""
        return cls(
            id=_generate_id(),
            type=type,
            title=title,
            message=message,
            order_id=order_id,
            timestamp=_utc_now(),
            read=False,
        )
