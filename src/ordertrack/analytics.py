"""Aggregate statistics over the full order set."""

from dataclasses import dataclass, field
from datetime import timezone
from typing import Any

from .models import Order, OrderStatus
from .utils import parse_timestamp

TOP_CUSTOMER_LIMIT = 10


@dataclass
class MonthlyRevenue:
    month: str  # YYYY-MM
    revenue: float  # completed orders only
    orders: int  # all statuses

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "revenue": self.revenue, "orders": self.orders}


@dataclass
class CustomerSummary:
    customer_name: str
    total_orders: int  # all statuses
    total_revenue: float  # completed orders only

    def to_dict(self) -> dict[str, Any]:
        return {
            "customerName": self.customer_name,
            "totalOrders": self.total_orders,
            "totalRevenue": self.total_revenue,
        }


@dataclass
class OrderAnalytics:
    """Point-in-time aggregates over every order in the store."""

    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0
    completion_rate: float = 0.0
    status_breakdown: dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in OrderStatus}
    )
    revenue_by_month: list[MonthlyRevenue] = field(default_factory=list)
    top_customers: list[CustomerSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalOrders": self.total_orders,
            "totalRevenue": self.total_revenue,
            "averageOrderValue": self.average_order_value,
            "completionRate": self.completion_rate,
            "statusBreakdown": dict(self.status_breakdown),
            "revenueByMonth": [m.to_dict() for m in self.revenue_by_month],
            "topCustomers": [c.to_dict() for c in self.top_customers],
        }


def _completed_amount(order: Order) -> float:
    return order.order_amount if order.status == OrderStatus.COMPLETED else 0.0


def _month_key(order: Order) -> str:
    return parse_timestamp(order.order_date).astimezone(timezone.utc).strftime("%Y-%m")


def revenue_by_month(orders: list[Order]) -> list[MonthlyRevenue]:
    """Bucket orders by calendar month (UTC), ascending by month."""
    buckets: dict[str, MonthlyRevenue] = {}
    for order in orders:
        key = _month_key(order)
        bucket = buckets.setdefault(key, MonthlyRevenue(month=key, revenue=0.0, orders=0))
        bucket.revenue += _completed_amount(order)
        bucket.orders += 1
    return sorted(buckets.values(), key=lambda m: m.month)


def top_customers(orders: list[Order], limit: int = TOP_CUSTOMER_LIMIT) -> list[CustomerSummary]:
    """
    Rank customers by completed revenue.

    Customers are grouped by name. Equal revenue keeps the order in which
    each customer was first seen.
    """
    customers: dict[str, CustomerSummary] = {}
    for order in orders:
        summary = customers.setdefault(
            order.customer_name,
            CustomerSummary(customer_name=order.customer_name, total_orders=0, total_revenue=0.0),
        )
        summary.total_orders += 1
        summary.total_revenue += _completed_amount(order)
    ranked = sorted(customers.values(), key=lambda c: c.total_revenue, reverse=True)
    return ranked[:limit]


def compute_analytics(orders: list[Order]) -> OrderAnalytics:
    """
    Compute the analytics snapshot.

    Note that average_order_value divides completed revenue by the count
    of *all* orders, not just completed ones.
    """
    total_orders = len(orders)
    completed = [o for o in orders if o.status == OrderStatus.COMPLETED]
    total_revenue = sum((o.order_amount for o in completed), 0.0)

    breakdown = {s.value: 0 for s in OrderStatus}
    for order in orders:
        breakdown[order.status.value] += 1

    return OrderAnalytics(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_order_value=total_revenue / total_orders if total_orders else 0.0,
        completion_rate=len(completed) * 100 / total_orders if total_orders else 0.0,
        status_breakdown=breakdown,
        revenue_by_month=revenue_by_month(orders),
        top_customers=top_customers(orders),
    )
