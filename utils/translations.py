"""
Etichette in spagnolo per la UI e formattazione di date e importi.
Solo presentazione: nessun calcolo passa da qui.
"""

from datetime import date
from typing import Union

from core.validation import parse_iso_date

BOOKING_STATUS_LABELS = {
    "confirmed": "Confirmada",
    "checked_in": "Registrado",
    "completed": "Completada",
    "cancelled": "Cancelada",
}

PAYMENT_STATUS_LABELS = {
    "paid": "Pagado",
    "partial": "Parcial",
    "pending": "Pendiente",
}

PAYMENT_METHOD_LABELS = {
    "credit_card": "Tarjeta de Crédito",
    "bank_transfer": "Transferencia Bancaria",
    "cash": "Efectivo",
}

EXPENSE_CATEGORY_LABELS = {
    "Cleaning": "Limpieza",
    "Maintenance": "Mantenimiento",
    "Fees": "Comisiones",
    "Supplies": "Suministros",
    "BedSheets": "Ropa de Cama",
    "Others": "Otros",
}

EXPENSE_STATUS_LABELS = {
    "paid": "Pagado",
    "pending": "Pendiente",
}

ROLE_LABELS = {
    "admin": "Administrador",
    "manager": "Gestor",
}

VIEW_LABELS = {
    "dashboard": "Panel de Control",
    "bookings": "Reservas",
    "expenses": "Gastos",
    "reminders": "Recordatorios",
    "users": "Usuarios",
    "change_password": "Cambiar Contraseña",
}

MONTHS_ES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def translate(labels: dict, value: str) -> str:
    """Valore sconosciuto → il valore stesso."""
    return labels.get(value, value)


def format_date(value: Union[date, str]) -> str:
    """'2026-01-18' → 'Ene 18, 2026' (mese abbreviato in spagnolo, iniziale maiuscola)."""
    d = parse_iso_date(value)
    month = MONTHS_ES[d.month - 1][:3].capitalize()
    return f"{month} {d.day:02d}, {d.year}"


def format_currency(amount: float) -> str:
    return f"€{amount:,.2f}"
