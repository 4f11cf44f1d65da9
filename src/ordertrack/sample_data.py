"""Demo orders used to seed an empty store."""

from .models import Order, OrderStatus

_SAMPLE_ORDERS = [
    {
        "orderId": "ORD-001",
        "customerName": "John Smith",
        "customerEmail": "john.smith@email.com",
        "orderAmount": 1299.99,
        "orderDate": "2024-01-15T10:30:00Z",
        "description": "High-performance laptop with extended warranty",
        "status": OrderStatus.COMPLETED.value,
        "invoiceFileUrl": "/uploads/invoices/invoice-001.pdf",
        "invoiceFileName": "invoice-001.pdf",
        "paymentMethod": "Credit Card (**** 4242)",
        "shippingAddress": "123 Main St, Springfield, IL 62701, USA",
        "notes": [
            "Order received and confirmed",
            "Payment processed successfully",
            "Items prepared for shipping",
            "Order shipped via FedEx Express",
            "Delivered successfully",
        ],
        "createdAt": "2024-01-15T10:30:00Z",
        "updatedAt": "2024-01-18T16:45:00Z",
    },
    {
        "orderId": "ORD-002",
        "customerName": "Sarah Johnson",
        "customerEmail": "sarah.j@email.com",
        "orderAmount": 599.50,
        "orderDate": "2024-01-14T14:20:00Z",
        "description": "Professional camera kit",
        "status": OrderStatus.PROCESSING.value,
        "invoiceFileUrl": "/uploads/invoices/invoice-002.pdf",
        "invoiceFileName": "invoice-002.pdf",
        "paymentMethod": "PayPal",
        "shippingAddress": "456 Oak Ave, Boston, MA 02101, USA",
        "notes": [
            "Order received and confirmed",
            "Payment processed successfully",
            "Items being prepared for shipping",
        ],
        "createdAt": "2024-01-14T14:20:00Z",
        "updatedAt": "2024-01-15T09:15:00Z",
    },
    {
        "orderId": "ORD-003",
        "customerName": "Mike Davis",
        "customerEmail": "mike.davis@email.com",
        "orderAmount": 2150.00,
        "orderDate": "2024-01-13T09:15:00Z",
        "description": "Premium gaming setup with accessories",
        "status": OrderStatus.PENDING.value,
        "invoiceFileUrl": "/uploads/invoices/invoice-003.pdf",
        "invoiceFileName": "invoice-003.pdf",
        "paymentMethod": "Bank Transfer",
        "shippingAddress": "789 Pine Rd, Seattle, WA 98101, USA",
        "notes": ["Order received and awaiting payment confirmation"],
        "createdAt": "2024-01-13T09:15:00Z",
        "updatedAt": "2024-01-13T09:15:00Z",
    },
    {
        "orderId": "ORD-004",
        "customerName": "Emily Wilson",
        "customerEmail": "emily.w@email.com",
        "orderAmount": 799.99,
        "orderDate": "2024-01-12T16:45:00Z",
        "description": "Smart home automation bundle",
        "status": OrderStatus.COMPLETED.value,
        "invoiceFileUrl": "/uploads/invoices/invoice-004.pdf",
        "invoiceFileName": "invoice-004.pdf",
        "paymentMethod": "Credit Card (**** 1234)",
        "shippingAddress": "321 Cedar St, Denver, CO 80201, USA",
        "notes": [
            "Order received and confirmed",
            "Payment processed successfully",
            "Items shipped and delivered",
        ],
        "createdAt": "2024-01-12T16:45:00Z",
        "updatedAt": "2024-01-14T10:20:00Z",
    },
    {
        "orderId": "ORD-005",
        "customerName": "David Brown",
        "customerEmail": "david.brown@email.com",
        "orderAmount": 1599.00,
        "orderDate": "2024-01-11T11:30:00Z",
        "description": "Professional audio equipment",
        "status": OrderStatus.CANCELLED.value,
        "invoiceFileUrl": "/uploads/invoices/invoice-005.pdf",
        "invoiceFileName": "invoice-005.pdf",
        "paymentMethod": "Credit Card (**** 5678)",
        "shippingAddress": "654 Birch Ave, Austin, TX 73301, USA",
        "notes": [
            "Order received",
            "Customer requested cancellation",
            "Refund processed",
        ],
        "createdAt": "2024-01-11T11:30:00Z",
        "updatedAt": "2024-01-12T14:15:00Z",
    },
]


def sample_orders() -> list[Order]:
    """Return fresh copies of the demo orders, most recent first."""
    return [Order.from_dict(data) for data in _SAMPLE_ORDERS]


def seed_store(store) -> int:
    """
    Insert the demo orders into an empty store.

    Returns:
        Number of orders inserted (0 if the store already had orders).
    """
    with store.lock():
        if store.list():
            return 0
        # upsert prepends, so insert oldest first to keep newest at the front
        for order in reversed(sample_orders()):
            store.upsert(order)
    return len(_SAMPLE_ORDERS)
