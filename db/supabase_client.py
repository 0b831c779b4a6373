"""
Supabase database client for the repair shop dashboard.

Reads return raw records exactly as stored; shaping them into canonical
models is left to the dashboard package, which tolerates the mixed field
names and date formats found in the tables. Writes go through the models
and the reservation status workflow.

Row Level Security (RLS) Notes:
==============================
This client is meant for the admin backend and uses the service_role key,
which bypasses RLS. Customer-facing reads must rely on RLS policies
configured in the Supabase dashboard, e.g.:

-- Customers can only read their own bookings
CREATE POLICY "Customers view own bookings"
ON bookings FOR SELECT
USING (auth.uid()::text = "userId");
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as ModelValidationError
from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from dashboard.normalizer import coerce_optional_datetime, normalize_booking
from dashboard.sales import normalize_transaction
from dashboard.status_flow import (
    mechanic_status_for_assignment,
    ready_to_complete,
    sync_service_statuses,
    validate_mechanic_transition,
    validate_transition,
)
from models.booking import TERMINAL_STATUSES, Booking, BookingStatus, Service
from models.customer import Customer
from models.employee import MECHANIC_ROLES, Employee, EmployeeCreate, EmployeeStatus
from models.log_entry import LogActionType
from models.transaction import Transaction, TransactionCreate, generate_reference_no
from notifications import BookingNotifier
from utils.constants import UNASSIGNED_MECHANIC
from utils.datetime_utils import Clock, to_iso_string
from utils.exceptions import (
    BookingNotFoundError,
    CustomerNotFoundError,
    DatabaseError,
    EmployeeNotFoundError,
    TransactionCreationError,
    ValidationError,
)
from utils.logging_config import setup_logging
from utils.validation import highest_employee_id, next_employee_id, validate_employee_id

logger = setup_logging(
    name=__name__, log_file="database.log"
)

# Snake-case model fields -> camelCase columns used by the web app
EMPLOYEE_COLUMNS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "date_of_birth": "dateOfBirth",
    "working_since": "workingSince",
    "street_address1": "streetAddress1",
    "street_address2": "streetAddress2",
    "zip_code": "zipCode",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def service_record(service: Service) -> Dict[str, Any]:
    """Store representation of a service line."""
    record: Dict[str, Any] = {
        "service": service.service,
        "mechanic": service.mechanic,
        "employeeId": service.employee_id or "",
        "status": service.status.value,
    }
    if service.created is not None:
        record["created"] = to_iso_string(service.created)
    for key in ("price", "quantity", "discount", "total"):
        value = getattr(service, key)
        if value is not None:
            record[key] = value
    return record


def employee_from_record(item: Dict[str, Any]) -> Employee:
    data = {field: item.get(column) for field, column in EMPLOYEE_COLUMNS.items()}
    for field in ("id", "username", "role", "phone", "gender", "barangay", "city",
                  "province", "status", "email", "avatar"):
        data[field] = item.get(field)
    data["created_at"] = coerce_optional_datetime(data["created_at"])
    data["updated_at"] = coerce_optional_datetime(data["updated_at"])
    return Employee(**{key: value for key, value in data.items() if value is not None})


def employee_record(employee: EmployeeCreate) -> Dict[str, Any]:
    data = employee.model_dump(mode="json", exclude_none=True)
    return {EMPLOYEE_COLUMNS.get(field, field): value for field, value in data.items()}


class SupabaseClient:
    """
    Supabase database client wrapper.

    Includes a small in-memory cache for customer and employee lookups,
    which change rarely and are read on every page view.
    """

    def __init__(
        self, clock: Optional[Clock] = None, notifier: Optional[BookingNotifier] = None
    ):
        self.client: SupabaseClientType = create_client(
            settings.supabase_url, settings.supabase_key
        )
        self.clock = clock or Clock()
        self.notifier = notifier or BookingNotifier()

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=settings.cache_ttl_minutes)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if self.clock.now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        self._cache[key] = (value, self.clock.now() + self._cache_ttl)

    def _clear_cache(self, pattern: Optional[str] = None) -> None:
        """Clear cache entries matching pattern, or all if pattern is None."""
        if pattern is None:
            self._cache.clear()
        else:
            for key in [k for k in self._cache if pattern in k]:
                del self._cache[key]

    # ========== Raw Reads (for aggregation) ==========

    async def fetch_raw_bookings(
        self, customer_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch booking records as stored.

        Args:
            customer_id: Only this customer's bookings (matches "userId")
            limit: Maximum number of records (default: MAX_RECORDS_FETCH)
        """
        try:
            query = self.client.table(settings.bookings_table).select("*")
            if customer_id:
                query = query.eq("userId", customer_id)
            limit = limit or settings.max_records_fetch
            response = query.limit(limit).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to fetch bookings: {e}") from e

        records = list(response.data or [])
        if len(records) >= limit:
            logger.warning(
                f"Booking fetch hit the {limit} record limit; history is truncated "
                f"and new/returning client counts may be wrong"
            )
        return records

    async def fetch_raw_transactions(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Fetch transaction records, newest first."""
        try:
            response = (
                self.client.table(settings.transactions_table)
                .select("*")
                .order("createdAt", desc=True)
                .limit(limit or settings.max_records_fetch)
                .execute()
            )
            return list(response.data or [])
        except Exception as e:
            raise DatabaseError(f"Failed to fetch transactions: {e}") from e

    async def fetch_raw_logs(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Fetch the latest LOGIN/LOGOUT activity records."""
        try:
            response = (
                self.client.table(settings.logs_table)
                .select("*")
                .in_("logType", [t.value for t in LogActionType])
                .order("timestamp", desc=True)
                .limit(limit or settings.recent_logs_limit)
                .execute()
            )
            return list(response.data or [])
        except Exception as e:
            raise DatabaseError(f"Failed to fetch activity logs: {e}") from e

    # ========== Booking Operations ==========

    async def get_booking(self, booking_id: str) -> Booking:
        """
        Get a booking by ID, normalized.

        Raises:
            BookingNotFoundError: If no booking has this ID
        """
        try:
            response = (
                self.client.table(settings.bookings_table)
                .select("*")
                .eq("id", booking_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get booking: {e}") from e

        if not response.data:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return normalize_booking(response.data[0], self.clock.now())

    async def _write_booking(self, booking_id: str, update_data: Dict[str, Any]) -> Booking:
        update_data["updatedAt"] = to_iso_string(self.clock.now())
        try:
            response = (
                self.client.table(settings.bookings_table)
                .update(update_data)
                .eq("id", booking_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update booking: {e}") from e

        if not response.data:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return normalize_booking(response.data[0], self.clock.now())

    async def update_booking_status(
        self, booking_id: str, status: BookingStatus
    ) -> Booking:
        """
        Move a booking to a new status and align its service statuses.

        Raises:
            InvalidStatusTransitionError: If the workflow forbids the change
            BookingNotFoundError: If no booking has this ID
        """
        booking = await self.get_booking(booking_id)
        validate_transition(booking.status, status)

        updated = sync_service_statuses(booking.model_copy(update={"status": status}))
        update_data: Dict[str, Any] = {
            "status": status.value,
            "services": [service_record(s) for s in updated.services],
        }
        if status is BookingStatus.COMPLETED:
            update_data["completionDate"] = to_iso_string(self.clock.now())

        logger.info(
            f"Booking {booking_id}: {booking.status.value} -> {status.value}"
        )
        saved = await self._write_booking(booking_id, update_data)

        if booking.status is BookingStatus.PENDING and status is BookingStatus.CONFIRMED:
            await self.notifier.notify_booking_approved(saved)
        return saved

    def _service_at(self, booking: Booking, service_index: int) -> Service:
        if not 0 <= service_index < len(booking.services):
            raise ValidationError(
                f"Booking {booking.id} has no service #{service_index}"
            )
        return booking.services[service_index]

    async def assign_mechanic(
        self,
        booking_id: str,
        service_index: int,
        mechanic_name: str,
        employee_id: Optional[str] = None,
    ) -> Booking:
        """
        Assign a mechanic to one service of a booking.

        Raises:
            ValidationError: If the booking is finished or the index is invalid
        """
        if employee_id is not None and not validate_employee_id(employee_id):
            raise ValidationError(f"Invalid employee id: {employee_id}")
        booking = await self.get_booking(booking_id)
        if booking.status in TERMINAL_STATUSES:
            raise ValidationError(
                f"Cannot assign a mechanic to a {booking.status.value.lower()} reservation"
            )
        service = self._service_at(booking, service_index)

        services = list(booking.services)
        services[service_index] = service.model_copy(
            update={
                "mechanic": mechanic_name,
                "employee_id": employee_id,
                "status": mechanic_status_for_assignment(booking.status),
            }
        )
        return await self._write_booking(
            booking_id, {"services": [service_record(s) for s in services]}
        )

    async def update_mechanic_status(
        self,
        booking_id: str,
        service_index: int,
        status: BookingStatus,
        complete_if_ready: bool = False,
    ) -> Booking:
        """
        Change the status of one service while the booking is being repaired.

        When that finishes the last open service the reservation is ready to
        complete; with complete_if_ready it is moved to COMPLETED as well.

        Raises:
            InvalidStatusTransitionError: If the change is not allowed
        """
        booking = await self.get_booking(booking_id)
        service = self._service_at(booking, service_index)
        validate_mechanic_transition(booking.status, service.status, status)

        services = list(booking.services)
        services[service_index] = service.model_copy(update={"status": status})
        saved = await self._write_booking(
            booking_id, {"services": [service_record(s) for s in services]}
        )

        if ready_to_complete(saved):
            logger.info(f"Booking {booking_id}: all services finished")
            if complete_if_ready:
                return await self.update_booking_status(booking_id, BookingStatus.COMPLETED)
        return saved

    # ========== Transaction Operations ==========

    async def create_transaction(self, transaction_data: TransactionCreate) -> Transaction:
        """
        Record a finalized, priced transaction.

        Raises:
            TransactionCreationError: If the insert fails
        """
        now = self.clock.now()
        services = [
            Service(
                service=line.service,
                mechanic=line.mechanic or UNASSIGNED_MECHANIC,
                employee_id=line.employee_id,
                status=BookingStatus.COMPLETED,
                price=line.price,
                quantity=line.quantity,
                discount=line.discount,
                total=line.total,
            )
            for line in transaction_data.services
        ]
        data: Dict[str, Any] = {
            "referenceNo": generate_reference_no(now),
            "customerName": transaction_data.customer_name,
            "carModel": transaction_data.car_model,
            "paymentMethod": transaction_data.payment_method.value,
            "createdAt": to_iso_string(now),
            "services": [service_record(s) for s in services],
            "subtotal": transaction_data.subtotal,
            "discountAmount": transaction_data.discount_amount,
            "totalPrice": transaction_data.total_price,
        }
        if transaction_data.booking_id:
            data["bookingId"] = transaction_data.booking_id
        if transaction_data.customer_id:
            data["userId"] = transaction_data.customer_id

        try:
            response = self.client.table(settings.transactions_table).insert(data).execute()
        except Exception as e:
            raise TransactionCreationError(f"Failed to create transaction: {e}") from e

        if not response.data:
            raise TransactionCreationError("Failed to create transaction: no data returned")

        transaction = normalize_transaction(response.data[0], now)
        logger.info(
            f"Transaction {transaction.reference_no} recorded: {transaction.total_price:.2f}"
        )
        return transaction

    # ========== Customer Operations ==========

    def _parse_customer(self, item: Dict[str, Any]) -> Customer:
        member_since = coerce_optional_datetime(
            item.get("memberSince") or item.get("createdAt")
        )
        return Customer.from_record(str(item.get("id") or ""), item, member_since)

    async def get_customer(self, uid: str) -> Customer:
        """
        Get a customer account by uid.

        Raises:
            CustomerNotFoundError: If no account has this uid
        """
        cache_key = f"customer:{uid}"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table(settings.accounts_table)
                .select("*")
                .eq("uid", uid)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get customer: {e}") from e

        if not response.data:
            raise CustomerNotFoundError(f"Customer {uid} not found")

        customer = self._parse_customer(response.data[0])
        self._set_cache(cache_key, customer)
        return customer

    async def list_customers(self, limit: int = 100) -> List[Customer]:
        try:
            response = (
                self.client.table(settings.accounts_table)
                .select("*")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list customers: {e}") from e
        return [self._parse_customer(item) for item in response.data or []]

    # ========== Employee Operations ==========

    async def list_employees(self) -> List[Employee]:
        """All employees ordered by id."""
        cached = self._get_from_cache("employees:all")
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table(settings.employees_table)
                .select("*")
                .order("id", desc=False)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list employees: {e}") from e

        employees = []
        for item in response.data or []:
            try:
                employees.append(employee_from_record(item))
            except ModelValidationError as e:
                logger.warning(f"Skipping malformed employee record {item.get('id')}: {e}")
        self._set_cache("employees:all", employees)
        return employees

    async def get_active_employees(self, mechanics_only: bool = False) -> List[Employee]:
        """
        Active or working employees.

        Args:
            mechanics_only: Only those who can be assigned to a service
        """
        return [
            e
            for e in await self.list_employees()
            if e.is_active and (not mechanics_only or e.role in MECHANIC_ROLES)
        ]

    def _check_employee_id(self, employee_id: str) -> None:
        if not validate_employee_id(employee_id):
            raise ValidationError(f"Invalid employee id: {employee_id}")

    async def get_employee(self, employee_id: str) -> Employee:
        """
        Raises:
            EmployeeNotFoundError: If no employee has this id
        """
        self._check_employee_id(employee_id)
        try:
            response = (
                self.client.table(settings.employees_table)
                .select("*")
                .eq("id", employee_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get employee: {e}") from e

        if not response.data:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")
        return employee_from_record(response.data[0])

    async def add_employee(self, employee_data: EmployeeCreate) -> Employee:
        """Insert an employee under the next EMP_### id."""
        try:
            # Ids are text, so EMP_999 sorts after EMP_1000 in the store
            existing = self.client.table(settings.employees_table).select("id").execute()
            latest_id = highest_employee_id(item.get("id") for item in existing.data or [])
            employee_id = next_employee_id(latest_id)

            data = employee_record(employee_data)
            data["id"] = employee_id
            data["createdAt"] = to_iso_string(self.clock.now())

            response = self.client.table(settings.employees_table).insert(data).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to add employee: {e}") from e

        if not response.data:
            raise DatabaseError("Failed to add employee: no data returned")

        self._clear_cache("employees:")
        logger.info(f"Added employee {employee_id}")
        return employee_from_record(response.data[0])

    async def set_employee_status(self, employee_id: str, status: EmployeeStatus) -> Employee:
        self._check_employee_id(employee_id)
        try:
            response = (
                self.client.table(settings.employees_table)
                .update({"status": status.value, "updatedAt": to_iso_string(self.clock.now())})
                .eq("id", employee_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update employee: {e}") from e

        if not response.data:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")
        self._clear_cache("employees:")
        return employee_from_record(response.data[0])

    # ========== Activity Log ==========

    async def add_log_entry(
        self,
        activity: str,
        performed_by: str,
        log_type: LogActionType,
        user_id: Optional[str] = None,
    ) -> bool:
        """
        Append to the activity log.

        A failed write is logged and reported as False; it must never
        block the login or logout that triggered it.
        """
        entry: Dict[str, Any] = {
            "activity": activity,
            "performedBy": performed_by,
            "logType": log_type.value,
            "timestamp": to_iso_string(self.clock.now()),
        }
        if user_id:
            entry["userId"] = user_id

        try:
            self.client.table(settings.logs_table).insert(entry).execute()
        except Exception as e:
            logger.error(f"Error adding log entry: {e}", exc_info=True)
            return False
        return True

    async def log_user_login(
        self, first_name: str, email: str, user_id: Optional[str] = None
    ) -> bool:
        return await self.add_log_entry(
            f"{first_name} logged in successfully", email, LogActionType.LOGIN, user_id
        )

    async def log_user_logout(
        self, first_name: str, email: str, user_id: Optional[str] = None
    ) -> bool:
        return await self.add_log_entry(
            f"{first_name} logged out", email, LogActionType.LOGOUT, user_id
        )


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client
