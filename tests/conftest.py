import asyncio
import os
from datetime import date, timedelta

import pytest

os.environ.setdefault("API_DELAY_MS", "0")
os.environ.setdefault("PBKDF2_ITERATIONS", "1000")

from core.auth import AuthSession  # noqa: E402
from core.models import Booking, Expense  # noqa: E402
from core.seed import demo_bookings, demo_expenses, demo_managers  # noqa: E402
from core.store import EntityStore  # noqa: E402

TODAY = date(2026, 3, 10)


def make_booking(id="1", **overrides) -> Booking:
    data = dict(
        id=id,
        guest_name="John Smith",
        guest_email="john.smith@email.com",
        guest_phone="+1 234-567-8901",
        check_in=TODAY + timedelta(days=3),
        check_out=TODAY + timedelta(days=7),
        guests=2,
        total_price=450.0,
        paid_amount=450.0,
        payment_status="paid",
        payment_method="credit_card",
        status="confirmed",
        property_name="Caiño",
    )
    data.update(overrides)
    return Booking(**data)


def make_expense(id="1", **overrides) -> Expense:
    data = dict(
        id=id,
        date=TODAY,
        category="Cleaning",
        description="Limpieza profunda profesional",
        amount=150.0,
        payment_method="credit_card",
        vendor="Servicios de Limpieza",
        status="paid",
    )
    data.update(overrides)
    return Expense(**data)


def booking_payload(**overrides) -> dict:
    """Dati di un form prenotazione valido (date come stringhe ISO)."""
    data = dict(
        guest_name="Ana López",
        guest_email="ana.lopez@email.com",
        guest_phone="+34 600-000-000",
        check_in="2026-05-01",
        check_out="2026-05-04",
        guests=2,
        total_price=390,
        paid_amount=0,
        payment_status="pending",
        payment_method="bank_transfer",
        status="confirmed",
        property_name="Loureira",
        notes="",
    )
    data.update(overrides)
    return data


def expense_payload(**overrides) -> dict:
    data = dict(
        date="2026-03-01",
        category="Supplies",
        description="Productos de limpieza",
        amount=45,
        payment_method="cash",
        vendor="Proveedor de Suministros",
        status="paid",
    )
    data.update(overrides)
    return data


@pytest.fixture()
def run():
    """Esegue una coroutine dello store (tutte le operazioni sono async)."""
    return asyncio.run


@pytest.fixture()
def bookings():
    return demo_bookings(TODAY)


@pytest.fixture()
def expenses():
    return demo_expenses(TODAY)


@pytest.fixture()
def managers():
    return demo_managers(TODAY)


@pytest.fixture()
def store(bookings, expenses, managers) -> EntityStore:
    return EntityStore(bookings=bookings, expenses=expenses, managers=managers, delay_ms=0)


@pytest.fixture()
def empty_store() -> EntityStore:
    return EntityStore(delay_ms=0)


@pytest.fixture()
def storage() -> dict:
    """Sostituto di st.session_state / localStorage."""
    return {}


@pytest.fixture()
def auth(store, storage) -> AuthSession:
    return AuthSession(store, storage)
