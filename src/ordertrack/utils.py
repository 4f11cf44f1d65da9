"""Utility functions for ordertrack."""

import re
from datetime import datetime, timezone

from .models import Order

ORDER_ID_PREFIX = "ORD-"

# local@domain.tld with no whitespace
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ORDER_SEQ_RE = re.compile(rf"^{ORDER_ID_PREFIX}(\d+)$")


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO 8601 timestamp into a timezone-aware datetime.

    Accepts a trailing 'Z', full offsets, and plain dates. Naive values
    are interpreted as UTC so that comparisons are between instants.

    Raises:
        ValueError: If the value is not a valid ISO 8601 timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_valid_email(value: str) -> bool:
    """Check that a string looks like an email address."""
    return bool(_EMAIL_RE.match(value))


def order_sequence(order_id: str) -> int | None:
    """Extract the numeric sequence from an 'ORD-<n>' id, or None for other ids."""
    match = _ORDER_SEQ_RE.match(order_id)
    if not match:
        return None
    return int(match.group(1))


def format_order_id(sequence: int) -> str:
    """Format a sequence number as an order id (ORD-001, ORD-042, ORD-1234)."""
    return f"{ORDER_ID_PREFIX}{sequence:03d}"


def format_order(order: Order, verbose: bool = False) -> str:
    """Format an order for display."""
    email_str = f" <{order.customer_email}>" if order.customer_email else ""
    result = (
        f"{order.order_id}  {order.customer_name}{email_str}  "
        f"{order.order_amount:,.2f}  ({order.status.value})"
    )

    if verbose:
        result += f"\n         Ordered: {order.order_date}"
        if order.description:
            result += f"\n         Description: {order.description}"
        if order.payment_method:
            result += f"\n         Payment: {order.payment_method}"
        if order.shipping_address:
            result += f"\n         Ship to: {order.shipping_address}"
        if order.invoice_file_name:
            result += f"\n         Invoice: {order.invoice_file_name}"
        if order.notes:
            result += "\n         Notes:"
            for note in order.notes:
                # Truncate long notes
                display_note = note[:60] + "..." if len(note) > 60 else note
                result += f"\n           - {display_note}"

    return result
