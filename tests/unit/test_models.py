"""
Unit tests for pydantic models and pricing rules.
"""

import re
from datetime import datetime

import pytest
from pydantic import ValidationError

from models.booking import Booking, Service
from models.customer import Customer, customer_display_id
from models.employee import Employee, EmployeeCreate, EmployeeStatus
from models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionCreate,
    TransactionServiceCreate,
    generate_reference_no,
    line_total,
    parse_discount,
    parse_quantity,
)


class TestPricing:
    """Test quantity, discount and line total rules."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("x3", 3), ("3", 3), (2, 2), (2.9, 2), ("x0", 1), ("", 1), (None, 1), (True, 1),
            ("2.0", 2), ("1.5", 1), ("X4", 4), ("3 pcs", 1), (float("nan"), 1), ("inf", 1),
        ],
    )
    def test_parse_quantity(self, raw, expected):
        assert parse_quantity(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("15%", 15.0), ("15", 15.0), (12.5, 12.5), ("150%", 100.0), (-5, 0.0), ("abc", 0.0), (None, 0.0),
            ("NaN", 0.0), (float("nan"), 0.0), (float("inf"), 0.0), ("", 0.0),
        ],
    )
    def test_parse_discount(self, raw, expected):
        assert parse_discount(raw) == expected

    def test_line_total(self):
        assert line_total(1000, 2, 10) == pytest.approx(1800.0)
        assert line_total(500, 1, 0) == 500

    def test_reference_no(self, now):
        assert re.fullmatch(r"REF20250507[A-Z0-9]{4}", generate_reference_no(now))


class TestTransactionCreate:
    """Test transaction creation model."""

    def test_totals(self):
        transaction = TransactionCreate(
            customer_name="Juan Dela Cruz",
            payment_method="GCASH",
            services=[
                {"service": "Tune Up", "price": 1000, "quantity": 2, "discount": 10},
                {"service": "Wash", "price": 200},
            ],
        )

        assert transaction.payment_method is PaymentMethod.GCASH
        assert transaction.subtotal == pytest.approx(2200.0)
        assert transaction.discount_amount == pytest.approx(200.0)
        assert transaction.total_price == pytest.approx(2000.0)
        assert transaction.services[0].total == pytest.approx(1800.0)

    def test_requires_services(self):
        with pytest.raises(ValidationError):
            TransactionCreate(customer_name="Juan", services=[])

    @pytest.mark.parametrize(
        "line",
        [
            {"service": "x", "price": -1},
            {"service": "x", "price": 10, "quantity": 0},
            {"service": "x", "price": 10, "discount": 120},
        ],
    )
    def test_rejects_invalid_lines(self, line):
        with pytest.raises(ValidationError):
            TransactionServiceCreate(**line)

    def test_transaction_is_frozen(self, now):
        transaction = Transaction(reference_no="REF1", created_at=now)
        with pytest.raises(ValidationError):
            transaction.total_price = 5.0


class TestBooking:
    """Test booking model helpers."""

    def test_display_helpers(self, now):
        booking = Booking(
            first_name="Juan", last_name="", car_brand="Toyota", car_model="Vios",
            reservation_date=now,
        )
        assert booking.customer_name == "Juan"
        assert booking.car == "Toyota Vios"

    def test_service_assignment(self):
        assert not Service(service="Oil").is_assigned
        assert Service(service="Oil", mechanic="Pedro").is_assigned
        assert Service(service="Oil", employee_id="EMP_001").is_assigned


class TestCustomer:
    """Test customer account parsing."""

    def test_nested_address(self):
        customer = Customer.from_record(
            "uid_1",
            {
                "firstName": "Ana",
                "lastName": "Reyes",
                "phoneNumber": "09171840615",
                "index": 3,
                "address": {"street": "1 Rizal St", "city": "Makati", "zipCode": "1200"},
            },
        )
        assert customer.uid == "uid_1"
        assert customer.name == "Ana Reyes"
        assert customer.phone == "09171840615"
        assert customer.display_id == "#C00094"
        assert customer.address.city == "Makati"
        assert customer.address.zip_code == "1200"

    def test_flat_address_and_defaults(self):
        member_since = datetime(2024, 1, 1)
        customer = Customer.from_record("uid_2", {"city": "Pasig"}, member_since)
        assert customer.address.city == "Pasig"
        assert customer.phone == "N/A"
        assert customer.member_since == member_since

    @pytest.mark.parametrize("index,expected", [(0, "#C00091"), (None, "#C00091"), ("x", "#C00091"), (10, "#C00101")])
    def test_display_id(self, index, expected):
        assert customer_display_id(index) == expected


class TestEmployee:
    """Test employee models."""

    @pytest.fixture
    def employee_data(self):
        return {
            "first_name": "Pedro",
            "last_name": "Santos",
            "username": "pedro",
            "role": "Lead Mechanic",
            "phone": "09171840615",
            "date_of_birth": "1990-01-01",
            "gender": "Male",
            "working_since": "2020-01-01",
            "street_address1": "1 Rizal St",
            "barangay": "Poblacion",
            "city": "Makati",
            "province": "Metro Manila",
            "zip_code": "1200",
        }

    def test_create_rejects_bad_email(self, employee_data):
        with pytest.raises(ValidationError):
            EmployeeCreate(**employee_data, email="not-an-email")

    @pytest.mark.parametrize("phone", ["12345", "0917-ABC-0615", ""])
    def test_create_rejects_bad_phone(self, employee_data, phone):
        with pytest.raises(ValidationError, match="phone"):
            EmployeeCreate(**dict(employee_data, phone=phone))

    def test_create_accepts_formatted_phone(self, employee_data):
        employee = EmployeeCreate(**dict(employee_data, phone=" +63 917 184 0615 "))
        assert employee.phone == "+63 917 184 0615"

    def test_stored_employee_requires_emp_id(self, employee_data):
        with pytest.raises(ValidationError, match="employee id"):
            Employee(id="42", **employee_data)

    def test_active_statuses(self, employee_data):
        employee = Employee(id="EMP_001", **employee_data)
        assert employee.full_name == "Pedro Santos"
        assert employee.is_active
        assert employee.model_copy(update={"status": EmployeeStatus.WORKING}).is_active
        assert not employee.model_copy(update={"status": EmployeeStatus.TERMINATED}).is_active
