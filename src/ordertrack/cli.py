"""Command-line interface for ordertrack."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .config import MAX_QUERY_LIMIT, Settings
from .errors import OrdertrackError
from .export import orders_to_csv
from .invoices import InvoiceStorage, InvoiceUpload
from .lifecycle import OrderManager
from .models import OrderCreate, OrderStatus, OrderUpdate
from .order_store import JsonOrderStore
from .query import OrderQuery, SortKey, SortOrder
from .sample_data import seed_store
from .utils import format_order

STATUS_CHOICES = [s.value for s in OrderStatus]


def get_manager() -> OrderManager:
    """Get an OrderManager over the JSON store in the configured data directory."""
    settings = Settings.from_env()
    return OrderManager(
        JsonOrderStore(settings.data_dir),
        invoices=InvoiceStorage(settings.upload_dir),
        strict_invoices=settings.strict_invoices,
    )


def _query_from_args(args: argparse.Namespace) -> OrderQuery:
    return OrderQuery.from_params(
        page=getattr(args, "page", None),
        limit=getattr(args, "limit", None),
        status=args.status,
        search=args.search,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
        date_from=args.date_from,
        date_to=args.date_to,
    )


def _update_from_args(args: argparse.Namespace) -> OrderUpdate:
    return OrderUpdate(
        customer_name=args.name,
        customer_email=args.email,
        order_amount=args.amount,
        description=args.desc,
        status=OrderStatus(args.status) if args.status else None,
        payment_method=args.payment,
        shipping_address=args.address,
    )


def cmd_seed(args: argparse.Namespace) -> int:
    """Load the demo orders into an empty store."""
    try:
        manager = get_manager()
        count = seed_store(manager.store)
        if count == 0:
            print("Store already has orders; nothing seeded.")
        else:
            print(f"Seeded {count} sample orders.")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_list(args: argparse.Namespace) -> int:
    """List orders matching the filters."""
    try:
        manager = get_manager()
        query = _query_from_args(args)
        result = manager.list_orders(query)

        if args.json:
            data = {
                "orders": [o.to_dict() for o in result.orders],
                "total": result.total,
                "page": query.page,
                "totalPages": result.total_pages(query.limit),
            }
            print(json.dumps(data, indent=2))
            return 0

        if not result.orders:
            print("No orders found.")
            return 0

        print(
            f"Orders ({result.total} total, page {query.page} of "
            f"{result.total_pages(query.limit)}):"
        )
        print()
        for order in result.orders:
            print(format_order(order, verbose=args.verbose))

        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_show(args: argparse.Namespace) -> int:
    """Show a single order."""
    try:
        manager = get_manager()
        order = manager.get(args.order_id)

        if args.json:
            print(json.dumps(order.to_dict(), indent=2))
        else:
            print(format_order(order, verbose=True))
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_create(args: argparse.Namespace) -> int:
    """Create a new order."""
    try:
        manager = get_manager()

        invoice = None
        if args.invoice:
            invoice_path = Path(args.invoice)
            try:
                content = invoice_path.read_bytes()
            except OSError as e:
                print(f"Error: cannot read invoice {invoice_path}: {e}", file=sys.stderr)
                return 1
            content_type = "application/pdf" if invoice_path.suffix.lower() == ".pdf" else "application/octet-stream"
            invoice = InvoiceUpload(
                filename=invoice_path.name, content=content, content_type=content_type
            )

        order = manager.create(
            OrderCreate(
                customer_name=args.name,
                order_amount=args.amount,
                customer_email=args.email,
                description=args.desc,
                payment_method=args.payment,
                shipping_address=args.address,
            ),
            invoice,
        )

        print(f"Created order: {order.order_id}")
        print(f"  Customer: {order.customer_name}")
        print(f"  Amount: {order.order_amount:,.2f}")
        if order.invoice_file_name:
            print(f"  Invoice: {order.invoice_file_name}")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_update(args: argparse.Namespace) -> int:
    """Update fields or status of an order."""
    try:
        manager = get_manager()
        before = manager.get(args.order_id)
        order = manager.update(args.order_id, _update_from_args(args))

        print(f"Updated order: {order.order_id}")
        if order.status != before.status:
            print(f"  Status: {before.status.value} -> {order.status.value}")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete an order."""
    try:
        manager = get_manager()
        order = manager.delete(args.order_id)
        print(f"Deleted order: {order.order_id}")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_bulk_update(args: argparse.Namespace) -> int:
    """Apply one update to several orders."""
    try:
        manager = get_manager()
        updated = manager.bulk_update(args.order_ids, _update_from_args(args))

        print(f"Updated {len(updated)} of {len(args.order_ids)} orders")
        for order in updated:
            print(f"  {order.order_id} ({order.status.value})")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_note(args: argparse.Namespace) -> int:
    """Append a note to an order."""
    try:
        manager = get_manager()
        order = manager.add_note(args.order_id, args.text)
        print(f"Added note to {order.order_id} ({len(order.notes)} notes)")
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_analytics(args: argparse.Namespace) -> int:
    """Print order analytics."""
    try:
        manager = get_manager()
        analytics = manager.analytics()

        if args.json:
            print(json.dumps(analytics.to_dict(), indent=2))
            return 0

        print(f"Total orders:        {analytics.total_orders}")
        print(f"Total revenue:       {analytics.total_revenue:,.2f}")
        print(f"Average order value: {analytics.average_order_value:,.2f}")
        print(f"Completion rate:     {analytics.completion_rate:.1f}%")
        print()
        print("Status breakdown:")
        for status, count in analytics.status_breakdown.items():
            print(f"  {status:<12} {count}")

        if analytics.revenue_by_month:
            print()
            print("Revenue by month:")
            for month in analytics.revenue_by_month:
                print(f"  {month.month}  {month.revenue:>12,.2f}  ({month.orders} orders)")

        if analytics.top_customers:
            print()
            print("Top customers:")
            for customer in analytics.top_customers:
                print(
                    f"  {customer.customer_name:<24} {customer.total_revenue:>12,.2f}"
                    f"  ({customer.total_orders} orders)"
                )
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Export matching orders as CSV."""
    try:
        manager = get_manager()
        orders = manager.export_orders(_query_from_args(args))
        text = orders_to_csv(orders)

        if args.output:
            Path(args.output).write_text(text, encoding="utf-8")
            print(f"Exported {len(orders)} orders to {args.output}")
        else:
            sys.stdout.write(text)
        return 0

    except OrdertrackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        if args.persist:
            os.environ["ORDERTRACK_STORE"] = "json"
        if args.seed:
            os.environ["ORDERTRACK_SEED_SAMPLE_DATA"] = "1"

        settings = Settings.from_env()
        print("Starting ordertrack API server...")
        print(f"Store: {settings.store_backend}")
        if settings.store_backend == "json":
            print(f"Data directory: {settings.data_dir}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the factory as an import string
        if args.reload:
            uvicorn.run(
                "ordertrack.api:create_app",
                factory=True,
                host=args.host,
                port=args.port,
                reload=True,
            )
        else:
            from .api import create_app

            uvicorn.run(
                create_app(settings=settings),
                host=args.host,
                port=args.port,
                workers=1,  # Single worker: the in-memory store is per process
            )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_query_arguments(parser: argparse.ArgumentParser, paginate: bool = True) -> None:
    if paginate:
        parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
        parser.add_argument(
            "--limit", type=int, default=10,
            help=f"Orders per page, 1-{MAX_QUERY_LIMIT} (default: 10)",
        )
    parser.add_argument("--status", choices=STATUS_CHOICES, help="Filter by status")
    parser.add_argument("--search", "-s", help="Match order ID, customer name or email")
    parser.add_argument(
        "--sort-by", choices=[k.value for k in SortKey], default=SortKey.ORDER_DATE.value,
        help="Sort field (default: orderDate)",
    )
    parser.add_argument(
        "--sort-order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value,
        help="Sort direction (default: desc)",
    )
    parser.add_argument("--from", dest="date_from", help="Earliest order date (ISO 8601)")
    parser.add_argument("--to", dest="date_to", help="Latest order date (ISO 8601)")


def _add_update_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--status", choices=STATUS_CHOICES, help="New status")
    parser.add_argument("--name", help="Customer name")
    parser.add_argument("--email", help="Customer email")
    parser.add_argument("--amount", type=float, help="Order amount")
    parser.add_argument("--desc", "-d", help="Description")
    parser.add_argument("--payment", help="Payment method")
    parser.add_argument("--address", help="Shipping address")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ordertrack",
        description="Track customer orders, their status lifecycle and revenue.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: ORDERTRACK_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # seed
    subparsers.add_parser("seed", help="Load demo orders into an empty store")

    # list
    list_parser = subparsers.add_parser("list", help="List orders")
    _add_query_arguments(list_parser)
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show details including notes"
    )

    # show
    show_parser = subparsers.add_parser("show", help="Show an order")
    show_parser.add_argument("order_id", help="Order ID")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # create
    create_parser_ = subparsers.add_parser("create", help="Create an order")
    create_parser_.add_argument("--name", required=True, help="Customer name")
    create_parser_.add_argument("--amount", type=float, required=True, help="Order amount")
    create_parser_.add_argument("--email", help="Customer email")
    create_parser_.add_argument("--desc", "-d", help="Description")
    create_parser_.add_argument("--payment", help="Payment method")
    create_parser_.add_argument("--address", help="Shipping address")
    create_parser_.add_argument("--invoice", help="Path to an invoice PDF")

    # update
    update_parser = subparsers.add_parser("update", help="Update an order")
    update_parser.add_argument("order_id", help="Order ID")
    _add_update_arguments(update_parser)

    # delete
    delete_parser = subparsers.add_parser("delete", help="Delete an order")
    delete_parser.add_argument("order_id", help="Order ID")

    # bulk-update
    bulk_parser = subparsers.add_parser("bulk-update", help="Update several orders at once")
    bulk_parser.add_argument("order_ids", nargs="+", help="Order IDs")
    _add_update_arguments(bulk_parser)

    # note
    note_parser = subparsers.add_parser("note", help="Append a note to an order")
    note_parser.add_argument("order_id", help="Order ID")
    note_parser.add_argument("text", help="Note text")

    # analytics
    analytics_parser = subparsers.add_parser("analytics", help="Show order analytics")
    analytics_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # export
    export_parser = subparsers.add_parser("export", help="Export orders as CSV")
    _add_query_arguments(export_parser, paginate=False)
    export_parser.add_argument("--output", "-o", help="Write CSV to path (default: stdout)")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    serve_parser.add_argument(
        "--persist", action="store_true",
        help="Use the JSON store in the data directory instead of memory",
    )
    serve_parser.add_argument(
        "--seed", action="store_true", help="Seed demo orders into an empty store"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    level = args.log_level or Settings.from_env().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "seed": cmd_seed,
        "list": cmd_list,
        "show": cmd_show,
        "create": cmd_create,
        "update": cmd_update,
        "delete": cmd_delete,
        "bulk-update": cmd_bulk_update,
        "note": cmd_note,
        "analytics": cmd_analytics,
        "export": cmd_export,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
