"""Filtering, sorting and pagination over order snapshots."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from .config import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from .errors import InvalidQueryError
from .models import Order, OrderStatus
from .utils import parse_timestamp


class SortKey(str, Enum):
    ORDER_ID = "orderId"
    CUSTOMER_NAME = "customerName"
    ORDER_AMOUNT = "orderAmount"
    ORDER_DATE = "orderDate"
    STATUS = "status"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# One typed accessor per sort key: strings sort lexically, amounts
# numerically, dates chronologically.
SORT_ACCESSORS: dict[SortKey, Callable[[Order], Any]] = {
    SortKey.ORDER_ID: lambda o: o.order_id,
    SortKey.CUSTOMER_NAME: lambda o: o.customer_name,
    SortKey.ORDER_AMOUNT: lambda o: o.order_amount,
    SortKey.ORDER_DATE: lambda o: parse_timestamp(o.order_date),
    SortKey.STATUS: lambda o: o.status.value,
}


@dataclass
class OrderQuery:
    """Filter, sort and pagination parameters for a single read."""

    page: int = 1
    limit: int = DEFAULT_QUERY_LIMIT
    status: OrderStatus | None = None
    search: str | None = None
    sort_by: SortKey = SortKey.ORDER_DATE
    sort_order: SortOrder = SortOrder.DESC
    date_from: datetime | None = None
    date_to: datetime | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        page: int | str | None = None,
        limit: int | str | None = None,
        status: OrderStatus | str | None = None,
        search: str | None = None,
        sort_by: SortKey | str | None = None,
        sort_order: SortOrder | str | None = None,
        date_from: datetime | str | None = None,
        date_to: datetime | str | None = None,
    ) -> "OrderQuery":
        """
        Build a query from raw (usually string) parameters.

        None means "use the default". Empty strings for status and search
        are treated as absent.

        Raises:
            InvalidQueryError: If any parameter is malformed.
        """
        query = cls()

        if page is not None:
            query.page = _parse_int("page", page)
            if query.page < 1:
                raise InvalidQueryError("page", page, "must be >= 1")

        if limit is not None:
            query.limit = _parse_int("limit", limit)
            if not 0 < query.limit <= MAX_QUERY_LIMIT:
                raise InvalidQueryError(
                    "limit", limit, f"must be between 1 and {MAX_QUERY_LIMIT}"
                )

        if status:
            query.status = _parse_enum("status", status, OrderStatus)
        if search:
            query.search = search
        if sort_by is not None:
            query.sort_by = _parse_enum("sortBy", sort_by, SortKey)
        if sort_order is not None:
            query.sort_order = _parse_enum("sortOrder", sort_order, SortOrder)
        if date_from is not None:
            query.date_from = _parse_date("dateFrom", date_from)
        if date_to is not None:
            query.date_to = _parse_date("dateTo", date_to)

        return query


@dataclass
class QueryResult:
    """One page of matching orders plus the total number of matches."""

    orders: list[Order] = field(default_factory=list)
    total: int = 0  # post-filter, pre-pagination

    def total_pages(self, limit: int) -> int:
        return math.ceil(self.total / limit) if limit > 0 else 0


def _parse_int(name: str, value: int | str) -> int:
    if isinstance(value, bool):
        raise InvalidQueryError(name, value, "expected an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidQueryError(name, value, "expected an integer")


def _parse_enum(name: str, value, enum_cls):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise InvalidQueryError(name, value, f"expected one of: {choices}")


def _parse_date(name: str, value: datetime | str) -> datetime:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        raise InvalidQueryError(name, value, "expected an ISO 8601 timestamp")


def _matches_search(order: Order, needle: str) -> bool:
    if needle in order.order_id.lower():
        return True
    if needle in order.customer_name.lower():
        return True
    return order.customer_email is not None and needle in order.customer_email.lower()


def filter_orders(orders: list[Order], query: OrderQuery) -> list[Order]:
    """Apply status, search and date-range filters, keeping input order."""
    result = list(orders)

    if query.status is not None:
        result = [o for o in result if o.status == query.status]

    if query.search:
        needle = query.search.lower()
        result = [o for o in result if _matches_search(o, needle)]

    if query.date_from is not None:
        date_from = parse_timestamp(query.date_from)
        result = [o for o in result if parse_timestamp(o.order_date) >= date_from]

    if query.date_to is not None:
        date_to = parse_timestamp(query.date_to)
        result = [o for o in result if parse_timestamp(o.order_date) <= date_to]

    return result


def sort_orders(orders: list[Order], sort_by: SortKey, sort_order: SortOrder) -> list[Order]:
    """Stable sort; ties keep their input order in both directions."""
    return sorted(
        orders,
        key=SORT_ACCESSORS[sort_by],
        reverse=sort_order == SortOrder.DESC,
    )


def run_query(orders: list[Order], query: OrderQuery) -> QueryResult:
    """
    Filter, sort and paginate an order snapshot.

    Args:
        orders: Snapshot of the store, most recent first.
        query: Validated query parameters.

    Returns:
        QueryResult with the requested page and the filtered total.
        A query matching nothing yields an empty page and total 0.
    """
    matched = sort_orders(filter_orders(orders, query), query.sort_by, query.sort_order)
    start = query.offset
    return QueryResult(orders=matched[start:start + query.limit], total=len(matched))
