"""
HTTP API for the repair shop dashboard.

Serves the aggregated dashboard views as JSON:
- GET  /health
- GET  /api/dashboard
- GET  /api/sales/chart?period=daily|weekly|monthly|yearly
- GET  /api/sales/report?sort=datePaid&order=desc&page=1&per_page=10
- GET  /api/customers/{uid}/bookings
- POST /api/bookings/{booking_id}/status
- POST /api/bookings/{booking_id}/services/{index}/status
- POST /api/transactions

Records are fetched from Supabase on every request and aggregated in
memory; nothing is kept between requests.
"""

import time
from typing import Any, Dict, Optional

from aiohttp import web
from aiohttp.web import Request, Response
from pydantic import ValidationError as ModelValidationError

from config import settings
from dashboard.sales import build_report, paginate, sales_chart, sales_totals, sort_reports
from dashboard.status_flow import allowed_transitions, ready_to_complete
from dashboard.summary import build_dashboard_summary, customer_history
from db import SupabaseClient, get_db_client
from models.booking import Booking, BookingStatus
from models.transaction import TransactionCreate
from utils.datetime_utils import Clock
from utils.exceptions import (
    BookingNotFoundError,
    CustomerNotFoundError,
    EmployeeNotFoundError,
    ValidationError,
)
from utils.formatting import format_phone
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__, log_file="server.log")

DB_KEY = web.AppKey("db", SupabaseClient)
CLOCK_KEY = web.AppKey("clock", Clock)
STARTED_AT_KEY = web.AppKey("started_at", float)

MAX_PAGE_SIZE = 100

NOT_FOUND_ERRORS = (BookingNotFoundError, CustomerNotFoundError, EmployeeNotFoundError)


def error_response(status: int, error: str, message: str) -> Response:
    return web.json_response(
        {"status": "error", "error": error, "message": message}, status=status
    )


@web.middleware
async def error_middleware(request: Request, handler):
    """Map domain exceptions to JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except NOT_FOUND_ERRORS as e:
        return error_response(404, "not_found", str(e))
    except ValidationError as e:
        logger.warning(f"Rejected {request.method} {request.path}: {e}")
        return error_response(400, "validation_failed", str(e))
    except Exception as e:
        logger.error(
            f"Unexpected error on {request.method} {request.path}: {e}", exc_info=True
        )
        return error_response(500, "internal_error", "Internal server error")


@web.middleware
async def security_headers_middleware(request: Request, handler):
    """Add security headers to all responses."""
    response = await handler(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Cache-Control"] = "no-store"
    if settings.frontend_origin:
        response.headers["Access-Control-Allow-Origin"] = settings.frontend_origin

    return response


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"Query parameter '{name}' must be an integer") from e


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


async def health_check(request: Request) -> Response:
    """Liveness check."""
    started_at = request.app.get(STARTED_AT_KEY, time.time())
    return web.json_response(
        {
            "status": "ok",
            "service": "repair-shop-dashboard",
            "environment": settings.environment,
            "timestamp": time.time(),
            "uptime_hours": round((time.time() - started_at) / 3600, 2),
        }
    )


async def dashboard_handler(request: Request) -> Response:
    """Admin dashboard summary."""
    db = request.app[DB_KEY]
    now = request.app[CLOCK_KEY].now()

    raw_bookings = await db.fetch_raw_bookings()
    raw_logs = await db.fetch_raw_logs(limit=settings.recent_logs_limit)

    summary = build_dashboard_summary(
        raw_bookings,
        raw_logs,
        now,
        arriving_limit=settings.arriving_today_limit,
        logs_limit=settings.recent_logs_limit,
    )
    return web.json_response(summary)


async def sales_chart_handler(request: Request) -> Response:
    """Sales chart series for the selected period plus the summary cards."""
    db = request.app[DB_KEY]
    now = request.app[CLOCK_KEY].now()

    raw_transactions = await db.fetch_raw_transactions()
    chart = sales_chart(raw_transactions, request.query.get("period"), now)
    chart["totals"] = sales_totals(raw_transactions, now)
    return web.json_response(chart)


async def sales_report_handler(request: Request) -> Response:
    """Sorted, paginated sales report."""
    db = request.app[DB_KEY]
    now = request.app[CLOCK_KEY].now()

    page_number = _int_param(request, "page", 1)
    per_page = _int_param(request, "per_page", settings.default_page_size)
    if not 1 <= per_page <= MAX_PAGE_SIZE:
        raise ValidationError(f"per_page must be between 1 and {MAX_PAGE_SIZE}")

    rows = build_report(await db.fetch_raw_transactions(), now)
    rows = sort_reports(
        rows,
        request.query.get("sort", "datePaid"),
        request.query.get("order", "desc"),
    )
    page = paginate(rows, page_number, per_page)
    return web.json_response(
        {
            "items": [row.to_dict() for row in page.items],
            "page": page.page,
            "per_page": page.per_page,
            "total_items": page.total_items,
            "total_pages": page.total_pages,
        }
    )


async def customer_bookings_handler(request: Request) -> Response:
    """One customer's profile, booking history and lifetime stats."""
    db = request.app[DB_KEY]
    now = request.app[CLOCK_KEY].now()
    uid = request.match_info["uid"]

    customer = await db.get_customer(uid)
    history = customer_history(await db.fetch_raw_bookings(customer_id=uid), now)
    history["customer"] = dict(
        customer.model_dump(mode="json"), phone_display=format_phone(customer.phone)
    )
    return web.json_response(history)


def _status_param(body: Dict[str, Any]) -> BookingStatus:
    raw_status = str(body.get("status") or "").strip().upper()
    if raw_status not in BookingStatus.values():
        raise ValidationError(
            f"status must be one of {', '.join(BookingStatus.values())}"
        )
    return BookingStatus(raw_status)


def _booking_payload(booking: Booking) -> Dict[str, Any]:
    """Booking plus the workflow actions the reservations page offers next."""
    payload = booking.model_dump(mode="json")
    payload["allowed_transitions"] = [s.value for s in allowed_transitions(booking.status)]
    payload["ready_to_complete"] = ready_to_complete(booking)
    return payload


async def booking_status_handler(request: Request) -> Response:
    """Move a reservation to a new status."""
    db = request.app[DB_KEY]
    booking_id = request.match_info["booking_id"]
    body = await _json_body(request)

    booking = await db.update_booking_status(booking_id, _status_param(body))
    return web.json_response(_booking_payload(booking))


async def service_status_handler(request: Request) -> Response:
    """
    Change one service's mechanic status.

    With "complete_if_ready": true the reservation is completed as soon as
    its last open service finishes.
    """
    db = request.app[DB_KEY]
    booking_id = request.match_info["booking_id"]
    try:
        index = int(request.match_info["index"])
    except ValueError as e:
        raise ValidationError("Service index must be an integer") from e
    body = await _json_body(request)

    booking = await db.update_mechanic_status(
        booking_id,
        index,
        _status_param(body),
        complete_if_ready=bool(body.get("complete_if_ready", False)),
    )
    return web.json_response(_booking_payload(booking))


async def create_transaction_handler(request: Request) -> Response:
    """Record a finalized transaction."""
    db = request.app[DB_KEY]
    body = await _json_body(request)

    try:
        transaction_data = TransactionCreate(**body)
    except ModelValidationError as e:
        raise ValidationError(f"Invalid transaction: {e.error_count()} field error(s)") from e

    transaction = await db.create_transaction(transaction_data)
    return web.json_response(transaction.model_dump(mode="json"), status=201)


def create_app(
    db_client: Optional[SupabaseClient] = None, clock: Optional[Clock] = None
) -> web.Application:
    """
    Create aiohttp application with middleware and routes.

    Args:
        db_client: Data-access client (default: shared Supabase client)
        clock: Source of "now" (default: shop-timezone wall clock)
    """
    app = web.Application(middlewares=[security_headers_middleware, error_middleware])
    app[DB_KEY] = db_client or get_db_client()
    app[CLOCK_KEY] = clock or Clock()
    app[STARTED_AT_KEY] = time.time()

    app.router.add_get("/health", health_check)
    app.router.add_get("/api/dashboard", dashboard_handler)
    app.router.add_get("/api/sales/chart", sales_chart_handler)
    app.router.add_get("/api/sales/report", sales_report_handler)
    app.router.add_get("/api/customers/{uid}/bookings", customer_bookings_handler)
    app.router.add_post("/api/bookings/{booking_id}/status", booking_status_handler)
    app.router.add_post(
        "/api/bookings/{booking_id}/services/{index}/status", service_status_handler
    )
    app.router.add_post("/api/transactions", create_transaction_handler)

    return app


if __name__ == "__main__":
    settings.validate_all_required()
    logger.info(f"Starting dashboard API on {settings.host}:{settings.port}")
    web.run_app(create_app(), host=settings.host, port=settings.port)
