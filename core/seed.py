"""
Dati dimostrativi per lo store, con date relative a oggi
(stessi record del mock della versione web).
"""

from datetime import date, timedelta
from typing import Optional

from core.models import Booking, Expense, Manager
from core.security import hash_password
from core.store import EntityStore


def demo_bookings(today: date):
    d = lambda n: today + timedelta(days=n)
    return [
        Booking("1", "John Smith", "john.smith@email.com", "+1 234-567-8901",
                d(3), d(7), 2, 450, 450, "paid", "credit_card", "confirmed",
                "Caiño", "Early check-in requested", d(-10)),
        Booking("2", "Maria Garcia", "maria.garcia@email.com", "+34 612-345-678",
                d(15), d(22), 4, 980, 0, "pending", "credit_card", "confirmed",
                "Loureira", "", d(-5)),
        Booking("3", "David Johnson", "david.j@email.com", "+44 7700-900123",
                d(-3), d(2), 3, 650, 650, "paid", "bank_transfer", "checked_in",
                "Treixadura", "Vegetarian guests", d(-20)),
        Booking("4", "Sophie Martin", "sophie.martin@email.com", "+33 6-12-34-56-78",
                d(30), d(37), 2, 770, 200, "partial", "credit_card", "confirmed",
                "Caiño", "Anniversary trip", d(-2)),
        Booking("5", "Robert Brown", "robert.brown@email.com", "+1 555-123-4567",
                d(-10), d(-5), 5, 800, 800, "paid", "credit_card", "completed",
                "Loureira", "", d(-30)),
    ]


def demo_expenses(today: date):
    d = lambda n: today + timedelta(days=n)
    return [
        Expense("1", d(-5), "Maintenance", "Reparación de fontanería - fregadero de cocina",
                120, "cash", "Fontanería Local", "paid"),
        Expense("2", d(-3), "Fees", "Comisión de plataforma - Booking.com",
                85, "bank_transfer", "Booking.com", "paid"),
        Expense("3", d(-2), "Cleaning", "Limpieza profunda profesional",
                150, "credit_card", "Servicios de Limpieza", "paid"),
        Expense("4", d(-1), "BedSheets", "Sábanas y toallas nuevas",
                280, "credit_card", "Tienda de Ropa de Hogar", "pending"),
        Expense("5", today, "Supplies", "Productos de limpieza y amenidades",
                45, "bank_transfer", "Proveedor de Suministros", "pending"),
    ]


def demo_managers(today: date):
    return [
        Manager("1", "Manager User", "manager@example.com",
                hash_password("manager123"), "manager", today - timedelta(days=60)),
    ]


def build_demo_store(today: Optional[date] = None, delay_ms: Optional[int] = None) -> EntityStore:
    today = today or date.today()
    return EntityStore(
        bookings=demo_bookings(today),
        expenses=demo_expenses(today),
        managers=demo_managers(today),
        delay_ms=delay_ms,
    )
