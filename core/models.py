"""
Modelli dati: Booking (prenotazione), Expense (spesa), Manager, promemoria
di pagamento e strutture del pannello statistiche.
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import List, Literal, Optional


BookingStatus = Literal["confirmed", "checked_in", "completed", "cancelled"]
PaymentStatus = Literal["paid", "partial", "pending"]
PaymentMethod = Literal["credit_card", "bank_transfer", "cash"]
ExpenseCategory = Literal["Cleaning", "Maintenance", "Fees", "Supplies", "BedSheets", "Others"]
ExpenseStatus = Literal["paid", "pending"]
UserRole = Literal["admin", "manager"]

BOOKING_STATUSES = ("confirmed", "checked_in", "completed", "cancelled")
PAYMENT_STATUSES = ("paid", "partial", "pending")
PAYMENT_METHODS = ("credit_card", "bank_transfer", "cash")
EXPENSE_CATEGORIES = ("Cleaning", "Maintenance", "Fees", "Supplies", "BedSheets", "Others")
EXPENSE_STATUSES = ("paid", "pending")
USER_ROLES = ("admin", "manager")


@dataclass
class Booking:
    """Una prenotazione di una proprietà per un intervallo di date."""
    id: str
    guest_name: str
    guest_email: str
    guest_phone: str
    check_in: date
    check_out: date             # sempre > check_in
    guests: int                 # >= 1
    total_price: float          # >= 0
    paid_amount: float          # >= 0
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    status: BookingStatus
    property_name: str          # "Caiño" | "Loureira" | "Treixadura" | ...
    notes: str = ""
    created_at: Optional[date] = None
    version: int = 1            # incrementato a ogni update

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def amount_due(self) -> float:
        return self.total_price - self.paid_amount


@dataclass
class Expense:
    """Una spesa: pulizie, manutenzione, commissioni, forniture, ecc."""
    id: str
    date: date
    category: ExpenseCategory
    description: str
    amount: float               # sempre > 0
    payment_method: PaymentMethod
    vendor: str
    status: ExpenseStatus
    property_name: Optional[str] = None   # None = spesa comune a tutte le proprietà
    version: int = 1


@dataclass
class Manager:
    """Account di un collaboratore con accesso limitato alle prenotazioni."""
    id: str
    name: str
    email: str
    password_hash: str = field(repr=False)
    role: UserRole = "manager"
    created_at: Optional[date] = None
    version: int = 1

    def public_dict(self) -> dict:
        """Vista senza hash della password (per liste e dettagli)."""
        data = asdict(self)
        data.pop("password_hash")
        return data


@dataclass
class AdminAccount:
    id: str
    email: str
    name: str
    password_hash: str = field(repr=False)
    role: UserRole = "admin"


@dataclass
class SessionUser:
    """Utente autenticato, così come viene salvato lato client."""
    email: str
    name: str
    role: UserRole


@dataclass
class PaymentReminder:
    """Promemoria derivato da una prenotazione non ancora saldata (non persistito)."""
    id: str                     # "reminder-<booking id>"
    booking_id: str
    guest_name: str
    guest_email: str
    check_in: date
    reminder_date: date         # check_in - 5 giorni
    amount_due: float
    total_amount: float
    status: Literal["pending", "completed"] = "pending"
    type: str = "payment_reminder"
    message: str = ""


@dataclass
class StatsFilter:
    """Filtri del pannello: date ISO yyyy-MM-dd, estremi inclusi."""
    property_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class PropertyMetrics:
    property_name: str
    income: float
    expenses: float
    profit: float


@dataclass
class DashboardStats:
    total_revenue: float
    total_expenses: float
    net_income: float
    pending_payments: float
    upcoming_bookings: int
    active_bookings: int
    total_bookings: int
    occupancy_rate: float       # percentuale 0-100
    property_metrics: List[PropertyMetrics] = field(default_factory=list)
