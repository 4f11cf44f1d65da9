"""CSV export of order sets."""

import csv
import io

from .models import Order

CSV_COLUMNS = [
    ("Order ID", "order_id"),
    ("Customer Name", "customer_name"),
    ("Customer Email", "customer_email"),
    ("Order Amount", "order_amount"),
    ("Order Date", "order_date"),
    ("Status", "status"),
    ("Description", "description"),
    ("Payment Method", "payment_method"),
    ("Shipping Address", "shipping_address"),
    ("Invoice", "invoice_file_name"),
    ("Notes", "notes"),
]


def _cell(order: Order, attr: str) -> str:
    value = getattr(order, attr)
    if value is None:
        return ""
    if attr == "status":
        return value.value
    if attr == "notes":
        return "; ".join(value)
    if attr == "order_amount":
        return f"{value:.2f}"
    return str(value)


def orders_to_csv(orders: list[Order]) -> str:
    """Render orders as CSV text with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for order in orders:
        writer.writerow([_cell(order, attr) for _, attr in CSV_COLUMNS])
    return buf.getvalue()
