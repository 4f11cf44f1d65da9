"""Custom exceptions for ordertrack."""


class OrdertrackError(Exception):
    """Base exception for all ordertrack errors."""

    pass


class OrderNotFoundError(OrdertrackError):
    """Raised when an order ID doesn't exist in the store."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class NotificationNotFoundError(OrdertrackError):
    """Raised when a notification ID doesn't exist."""

    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification not found: {notification_id}")


class InvalidOrderError(OrdertrackError):
    """Raised when order data violates a business rule."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid order data: {field} {reason}")


class InvalidQueryError(OrdertrackError):
    """Raised when a query parameter is malformed."""

    def __init__(self, param: str, value: object, reason: str | None = None):
        self.param = param
        self.value = value
        msg = f"Invalid query parameter {param}={value!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidInvoiceError(OrdertrackError):
    """Raised when an uploaded invoice is rejected."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid invoice '{filename}': {reason}")


class InvoiceStorageError(OrdertrackError):
    """Raised when an invoice file can't be written or read."""

    def __init__(self, filename: str, detail: str):
        self.filename = filename
        self.detail = detail
        super().__init__(f"Invoice storage failed for '{filename}': {detail}")


class InvalidSchemaVersionError(OrdertrackError):
    """Raised when the order file has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found}. This tool supports version {supported}."
        )
