"""FastAPI REST API for ordertrack order management."""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .analytics import OrderAnalytics
from .config import MAX_QUERY_LIMIT, Settings
from .errors import (
    InvalidInvoiceError,
    InvalidOrderError,
    InvalidQueryError,
    InvalidSchemaVersionError,
    InvoiceStorageError,
    NotificationNotFoundError,
    OrderNotFoundError,
    OrdertrackError,
)
from .export import orders_to_csv
from .invoices import InvoiceStorage, InvoiceUpload
from .lifecycle import OrderManager
from .models import Notification, Order, OrderCreate, OrderStatus, OrderUpdate, _utc_now
from .notifications import NotificationLog
from .order_store import InMemoryOrderStore, JsonOrderStore
from .query import OrderQuery
from .sample_data import seed_store

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderSchema(CamelModel):
    order_id: str
    customer_name: str
    customer_email: Optional[str] = None
    order_amount: float
    order_date: str
    description: Optional[str] = None
    status: OrderStatus
    invoice_file_url: Optional[str] = None
    invoice_file_name: Optional[str] = None
    payment_method: Optional[str] = None
    shipping_address: Optional[str] = None
    notes: list[str] = []
    created_at: str
    updated_at: str


class OrderUpdateRequest(CamelModel):
    """Request body for updating an order. Omitted fields stay unchanged."""

    customer_name: Optional[str] = Field(None, min_length=1)
    customer_email: Optional[str] = None
    order_amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    status: Optional[OrderStatus] = None
    payment_method: Optional[str] = None
    shipping_address: Optional[str] = None


class BulkUpdateRequest(CamelModel):
    order_ids: list[str] = Field(..., min_length=1, description="IDs of orders to update")
    update_data: OrderUpdateRequest


class NoteRequest(CamelModel):
    note: str = Field(..., min_length=1)


class PaginationSchema(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderResponse(CamelModel):
    success: bool = True
    data: OrderSchema
    message: Optional[str] = None


class OrderListResponse(CamelModel):
    success: bool = True
    data: list[OrderSchema]
    pagination: PaginationSchema


class BulkUpdateResponse(CamelModel):
    success: bool = True
    data: list[OrderSchema]
    message: str


class MonthlyRevenueSchema(CamelModel):
    month: str
    revenue: float
    orders: int


class CustomerSummarySchema(CamelModel):
    customer_name: str
    total_orders: int
    total_revenue: float


class AnalyticsSchema(CamelModel):
    total_orders: int
    total_revenue: float
    average_order_value: float
    completion_rate: float
    status_breakdown: dict[str, int]
    revenue_by_month: list[MonthlyRevenueSchema]
    top_customers: list[CustomerSummarySchema]


class AnalyticsResponse(CamelModel):
    success: bool = True
    data: AnalyticsSchema


class NotificationSchema(CamelModel):
    id: str
    type: str
    title: str
    message: str
    order_id: str
    timestamp: str
    read: bool


class NotificationListResponse(CamelModel):
    success: bool = True
    data: list[NotificationSchema]
    unread_count: int


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_type: str


# --- Helper Functions ---


def order_to_schema(order: Order) -> OrderSchema:
    """Convert dataclass Order to Pydantic schema."""
    return OrderSchema(
        order_id=order.order_id,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        order_amount=order.order_amount,
        order_date=order.order_date,
        description=order.description,
        status=order.status,
        invoice_file_url=order.invoice_file_url,
        invoice_file_name=order.invoice_file_name,
        payment_method=order.payment_method,
        shipping_address=order.shipping_address,
        notes=list(order.notes),
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def analytics_to_schema(analytics: OrderAnalytics) -> AnalyticsSchema:
    return AnalyticsSchema(
        total_orders=analytics.total_orders,
        total_revenue=analytics.total_revenue,
        average_order_value=analytics.average_order_value,
        completion_rate=analytics.completion_rate,
        status_breakdown=dict(analytics.status_breakdown),
        revenue_by_month=[
            MonthlyRevenueSchema(month=m.month, revenue=m.revenue, orders=m.orders)
            for m in analytics.revenue_by_month
        ],
        top_customers=[
            CustomerSummarySchema(
                customer_name=c.customer_name,
                total_orders=c.total_orders,
                total_revenue=c.total_revenue,
            )
            for c in analytics.top_customers
        ],
    )


def notification_to_schema(notification: Notification) -> NotificationSchema:
    return NotificationSchema(
        id=notification.id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        order_id=notification.order_id,
        timestamp=notification.timestamp,
        read=notification.read,
    )


def update_from_request(request: OrderUpdateRequest) -> OrderUpdate:
    return OrderUpdate(
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        order_amount=request.order_amount,
        description=request.description,
        status=request.status,
        payment_method=request.payment_method,
        shipping_address=request.shipping_address,
    )


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    """HTML forms send empty strings for untouched optional fields."""
    if value is None or value.strip() == "":
        return None
    return value


def _read_upload(upload: UploadFile) -> InvoiceUpload:
    return InvoiceUpload(
        filename=upload.filename or "",
        content=upload.file.read(),
        content_type=upload.content_type or "application/octet-stream",
    )


def get_manager(request: Request) -> OrderManager:
    """Get the OrderManager owned by the running application."""
    return request.app.state.manager


def order_query_params(
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description=f"Page size, 1-{MAX_QUERY_LIMIT}"),
    status: Optional[str] = Query(None, description="Exact status filter"),
    search: Optional[str] = Query(None, description="Matches order ID, customer name or email"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
) -> OrderQuery:
    """Build an OrderQuery from query-string parameters (raises InvalidQueryError)."""
    return OrderQuery.from_params(
        page=page,
        limit=limit,
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        date_from=date_from,
        date_to=date_to,
    )


router = APIRouter(prefix="/api")


# --- Endpoints ---


@router.get("/health")
def health_check(request: Request, manager: OrderManager = Depends(get_manager)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": _utc_now(),
        "uptime": time.monotonic() - request.app.state.started_at,
        "order_count": len(manager.store.list()),
    }


@router.get("/orders", response_model=OrderListResponse)
def list_orders(
    query: OrderQuery = Depends(order_query_params),
    manager: OrderManager = Depends(get_manager),
):
    """List orders with filtering, sorting and pagination."""
    result = manager.list_orders(query)
    return OrderListResponse(
        data=[order_to_schema(o) for o in result.orders],
        pagination=PaginationSchema(
            page=query.page,
            limit=query.limit,
            total=result.total,
            total_pages=result.total_pages(query.limit),
        ),
    )


@router.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(
    customer_name: str = Form(..., alias="customerName", min_length=1),
    order_amount: float = Form(..., alias="orderAmount", gt=0),
    customer_email: Optional[str] = Form(None, alias="customerEmail"),
    description: Optional[str] = Form(None),
    payment_method: Optional[str] = Form(None, alias="paymentMethod"),
    shipping_address: Optional[str] = Form(None, alias="shippingAddress"),
    invoice_file: Optional[UploadFile] = File(None, alias="invoiceFile"),
    manager: OrderManager = Depends(get_manager),
):
    """Create an order from form fields, optionally with a PDF invoice."""
    data = OrderCreate(
        customer_name=customer_name,
        order_amount=order_amount,
        customer_email=_blank_to_none(customer_email),
        description=_blank_to_none(description),
        payment_method=_blank_to_none(payment_method),
        shipping_address=_blank_to_none(shipping_address),
    )
    invoice = _read_upload(invoice_file) if invoice_file is not None and invoice_file.filename else None
    order = manager.create(data, invoice)
    return OrderResponse(data=order_to_schema(order), message="Order created successfully")


@router.get("/orders/analytics", response_model=AnalyticsResponse)
def get_analytics(manager: OrderManager = Depends(get_manager)):
    """Aggregate statistics over all orders."""
    return AnalyticsResponse(data=analytics_to_schema(manager.analytics()))


@router.get("/orders/export")
def export_orders(
    query: OrderQuery = Depends(order_query_params),
    manager: OrderManager = Depends(get_manager),
):
    """Download all orders matching the filters as CSV."""
    orders = manager.export_orders(query)
    filename = f"orders-{time.strftime('%Y%m%d')}.csv"
    return Response(
        content=orders_to_csv(orders),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/orders/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_orders(request: BulkUpdateRequest, manager: OrderManager = Depends(get_manager)):
    """Apply one update to several orders; unknown IDs are skipped."""
    updated = manager.bulk_update(request.order_ids, update_from_request(request.update_data))
    return BulkUpdateResponse(
        data=[order_to_schema(o) for o in updated],
        message=f"{len(updated)} orders updated successfully",
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, manager: OrderManager = Depends(get_manager)):
    return OrderResponse(data=order_to_schema(manager.get(order_id)))


@router.put("/orders/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    request: OrderUpdateRequest,
    manager: OrderManager = Depends(get_manager),
):
    order = manager.update(order_id, update_from_request(request))
    return OrderResponse(data=order_to_schema(order), message="Order updated successfully")


@router.delete("/orders/{order_id}", response_model=MessageResponse)
def delete_order(order_id: str, manager: OrderManager = Depends(get_manager)):
    manager.delete(order_id)
    return MessageResponse(message="Order deleted successfully")


@router.post("/orders/{order_id}/notes", response_model=OrderResponse)
def add_order_note(order_id: str, request: NoteRequest, manager: OrderManager = Depends(get_manager)):
    order = manager.add_note(order_id, request.note)
    return OrderResponse(data=order_to_schema(order), message="Note added")


@router.post("/orders/{order_id}/invoice", response_model=OrderResponse)
def attach_invoice(
    order_id: str,
    invoice_file: UploadFile = File(..., alias="invoiceFile"),
    manager: OrderManager = Depends(get_manager),
):
    """Attach or replace the invoice PDF of an existing order."""
    order = manager.attach_invoice(order_id, _read_upload(invoice_file))
    return OrderResponse(data=order_to_schema(order), message="Invoice attached")


@router.get("/orders/{order_id}/download-invoice")
def download_invoice(order_id: str, manager: OrderManager = Depends(get_manager)):
    """Stream the stored invoice PDF for an order."""
    order = manager.get(order_id)
    if not order.invoice_file_url or manager.invoices is None:
        raise HTTPException(status_code=404, detail="Invoice not found")

    try:
        path = manager.invoices.resolve(order.invoice_file_url)
    except InvoiceStorageError:
        raise HTTPException(status_code=404, detail="Invoice file not found on server")

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=order.invoice_file_name or f"invoice-{order_id}.pdf",
    )


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(default=10, ge=1, le=100),
    manager: OrderManager = Depends(get_manager),
):
    """Most recent lifecycle notifications, newest first."""
    notifications = manager.notifications.recent(limit)
    return NotificationListResponse(
        data=[notification_to_schema(n) for n in notifications],
        unread_count=manager.notifications.unread_count(),
    )


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
def mark_notification_read(notification_id: str, manager: OrderManager = Depends(get_manager)):
    manager.notifications.mark_read(notification_id)
    return MessageResponse(message="Notification marked as read")


# --- Global Exception Handlers ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    OrderNotFoundError: 404,
    NotificationNotFoundError: 404,
    InvalidOrderError: 400,
    InvalidQueryError: 400,
    InvalidInvoiceError: 400,
    InvoiceStorageError: 502,
    InvalidSchemaVersionError: 500,
}


async def ordertrack_error_handler(request: Request, exc: OrdertrackError) -> JSONResponse:
    """Map OrdertrackError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": str(exc), "error_type": type(exc).__name__},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request data",
            "error_type": "RequestValidationError",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail), "error_type": "HTTPException"},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "error_type": "InternalError"},
    )


# --- Application Factory ---


def build_manager(settings: Settings) -> OrderManager:
    """Construct the store, notification log and invoice storage from settings."""
    if settings.store_backend == "json":
        store = JsonOrderStore(settings.data_dir)
    else:
        store = InMemoryOrderStore()

    if settings.seed_sample_data:
        seeded = seed_store(store)
        if seeded:
            logger.info("Seeded %d sample orders", seeded)

    return OrderManager(
        store,
        notifications=NotificationLog(),
        invoices=InvoiceStorage(settings.upload_dir),
        strict_invoices=settings.strict_invoices,
    )


def create_app(manager: OrderManager | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        manager: Pre-built OrderManager (tests pass one in).
        settings: Settings used to build a manager when none is given.
    """
    app = FastAPI(
        title="ordertrack API",
        description="REST API for tracking customer orders, their status lifecycle and analytics",
        version=__version__,
    )
    app.state.manager = manager or build_manager(settings or Settings.from_env())
    app.state.started_at = time.monotonic()

    # CORS for the frontend dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:8080",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OrdertrackError, ordertrack_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(router)
    return app
