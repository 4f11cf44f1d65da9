"""Tests for analytics aggregation."""

import pytest

from ordertrack.analytics import compute_analytics, revenue_by_month, top_customers
from ordertrack.models import OrderStatus

from .conftest import make_order


class TestComputeAnalytics:
    def test_demo_data_totals(self, orders):
        analytics = compute_analytics(orders)

        assert analytics.total_orders == 5
        assert analytics.total_revenue == pytest.approx(2099.98)
        assert analytics.average_order_value == pytest.approx(2099.98 / 5)
        assert analytics.completion_rate == pytest.approx(40.0)
        assert analytics.status_breakdown == {
            "pending": 1,
            "processing": 1,
            "completed": 2,
            "cancelled": 1,
        }

    def test_breakdown_sums_to_total(self, orders):
        analytics = compute_analytics(orders)
        assert sum(analytics.status_breakdown.values()) == analytics.total_orders

    def test_empty_store(self):
        analytics = compute_analytics([])

        assert analytics.total_orders == 0
        assert analytics.total_revenue == 0
        assert analytics.average_order_value == 0
        assert analytics.completion_rate == 0
        assert analytics.status_breakdown == {
            "pending": 0,
            "processing": 0,
            "completed": 0,
            "cancelled": 0,
        }
        assert analytics.revenue_by_month == []
        assert analytics.top_customers == []

    def test_only_completed_orders_count_as_revenue(self):
        orders = [
            make_order("ORD-001", order_amount=100.0, status=OrderStatus.COMPLETED),
            make_order("ORD-002", order_amount=900.0, status=OrderStatus.CANCELLED),
            make_order("ORD-003", order_amount=50.0, status=OrderStatus.PENDING),
        ]

        analytics = compute_analytics(orders)

        assert analytics.total_revenue == pytest.approx(100.0)
        # divided by all orders, not only completed ones
        assert analytics.average_order_value == pytest.approx(100.0 / 3)

    def test_all_completed(self):
        orders = [make_order(f"ORD-00{i}", status=OrderStatus.COMPLETED) for i in range(1, 4)]
        assert compute_analytics(orders).completion_rate == pytest.approx(100.0)

    def test_to_dict_uses_camel_case(self, orders):
        data = compute_analytics(orders).to_dict()

        assert set(data) == {
            "totalOrders",
            "totalRevenue",
            "averageOrderValue",
            "completionRate",
            "statusBreakdown",
            "revenueByMonth",
            "topCustomers",
        }
        assert data["topCustomers"][0] == {
            "customerName": "John Smith",
            "totalOrders": 1,
            "totalRevenue": 1299.99,
        }


class TestRevenueByMonth:
    def test_buckets_ascending_by_month(self):
        orders = [
            make_order("ORD-001", order_date="2024-03-02T10:00:00Z", status=OrderStatus.COMPLETED),
            make_order("ORD-002", order_date="2024-01-20T10:00:00Z", status=OrderStatus.COMPLETED),
            make_order("ORD-003", order_date="2024-01-05T10:00:00Z", status=OrderStatus.PENDING),
        ]

        months = revenue_by_month(orders)

        assert [m.month for m in months] == ["2024-01", "2024-03"]
        assert months[0].orders == 2
        assert months[0].revenue == pytest.approx(100.0)
        assert months[1].orders == 1

    def test_month_key_is_utc(self):
        # 2024-01-31 20:00 at -05:00 is already February in UTC
        orders = [make_order("ORD-001", order_date="2024-01-31T20:00:00-05:00")]

        assert [m.month for m in revenue_by_month(orders)] == ["2024-02"]

    def test_demo_data_single_month(self, orders):
        [january] = revenue_by_month(orders)

        assert january.month == "2024-01"
        assert january.orders == 5
        assert january.revenue == pytest.approx(2099.98)


class TestTopCustomers:
    def test_ranked_by_completed_revenue(self, orders):
        ranked = top_customers(orders)

        assert [c.customer_name for c in ranked] == [
            "John Smith",
            "Emily Wilson",
            "Sarah Johnson",
            "Mike Davis",
            "David Brown",
        ]

    def test_groups_by_name(self):
        orders = [
            make_order("ORD-001", customer_name="Ada", order_amount=10.0, status=OrderStatus.COMPLETED),
            make_order("ORD-002", customer_name="Ada", order_amount=5.0, status=OrderStatus.PENDING),
            make_order("ORD-003", customer_name="Bob", order_amount=12.0, status=OrderStatus.COMPLETED),
        ]

        ranked = top_customers(orders)

        assert [(c.customer_name, c.total_orders) for c in ranked] == [("Bob", 1), ("Ada", 2)]
        assert ranked[1].total_revenue == pytest.approx(10.0)

    def test_limited_to_ten(self):
        orders = [
            make_order(f"ORD-{i:03d}", customer_name=f"Customer {i}", status=OrderStatus.COMPLETED)
            for i in range(1, 16)
        ]

        assert len(top_customers(orders)) == 10
