"""
Store in memoria di prenotazioni, spese e manager.

Simula la futura API REST: tutte le operazioni sono async e attendono un
ritardo artificiale (config.API_DELAY_MS). Lo store è un oggetto esplicito,
creato una volta per sessione Streamlit (o per test): nessuno stato globale.

Regole comuni alle tre collezioni:
  - id progressivi per collezione, mai riutilizzati dopo una cancellazione
  - update = merge parziale + rivalidazione del record completo
  - ogni update incrementa `version`; con expected_version diverso → Conflict
  - i metodi restituiscono copie, mai i record interni
"""

import asyncio
import itertools
import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from config import ADMIN_ACCOUNT, API_DELAY_MS
from core.errors import Conflict, IncorrectCurrentPassword, NotFound
from core.models import AdminAccount, Booking, Expense, Manager
from core.security import hash_password, verify_password
from core.validation import (
    BOOKING_FIELDS, EXPENSE_FIELDS,
    validate_booking, validate_expense, validate_manager, validate_new_password,
)

logger = logging.getLogger(__name__)


class _Collection:
    """Record indicizzati per id, con contatore proprio."""

    def __init__(self, label: str, items: Iterable = ()):
        self.label = label
        self.items: Dict[str, object] = {}
        for item in items:
            self.items[item.id] = item
        numeric_ids = [int(i) for i in self.items if str(i).isdigit()]
        self._ids = itertools.count(max(numeric_ids, default=0) + 1)

    def next_id(self) -> str:
        return str(next(self._ids))

    def get(self, entity_id: str):
        try:
            return self.items[str(entity_id)]
        except KeyError:
            raise NotFound(f"{self.label} no encontrado: {entity_id}")

    def check_version(self, current, expected_version: Optional[int]) -> None:
        if expected_version is not None and current.version != expected_version:
            raise Conflict(
                f"{self.label} {current.id}: versión {expected_version} obsoleta "
                f"(actual {current.version})"
            )

    def values(self) -> List:
        return list(self.items.values())


class EntityStore:

    def __init__(
        self,
        bookings: Iterable[Booking] = (),
        expenses: Iterable[Expense] = (),
        managers: Iterable[Manager] = (),
        admin_account: Optional[dict] = None,
        delay_ms: Optional[int] = None,
    ):
        self._bookings = _Collection("Reserva", bookings)
        self._expenses = _Collection("Gasto", expenses)
        self._managers = _Collection("Usuario", managers)

        admin = admin_account or ADMIN_ACCOUNT
        self.admin = AdminAccount(
            id=admin["id"],
            email=admin["email"],
            name=admin["name"],
            password_hash=hash_password(admin["password"]),
        )
        # Promemoria segnati come completati (id "reminder-<booking id>")
        self.completed_reminders: Set[str] = set()
        self.delay_ms = API_DELAY_MS if delay_ms is None else delay_ms

    async def latency(self) -> None:
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000)

    # ── Prenotazioni ────────────────────────────────────────────────────────

    async def list_bookings(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Booking]:
        await self.latency()
        result = self._bookings.values()
        if status:
            result = [b for b in result if b.status == status]
        if payment_status:
            result = [b for b in result if b.payment_status == payment_status]
        if search:
            s = search.lower()
            result = [b for b in result if s in b.guest_name.lower() or s in b.guest_email.lower()]
        return [replace(b) for b in result]

    async def get_booking(self, booking_id: str) -> Booking:
        await self.latency()
        return replace(self._bookings.get(booking_id))

    async def create_booking(self, data: dict) -> Booking:
        await self.latency()
        fields = validate_booking(data)
        booking = Booking(id=self._bookings.next_id(), created_at=date.today(), **fields)
        self._bookings.items[booking.id] = booking
        logger.info("Prenotazione %s creata (%s, %s)", booking.id, booking.property_name, booking.check_in)
        return replace(booking)

    async def update_booking(self, booking_id: str, patch: dict, expected_version: Optional[int] = None) -> Booking:
        await self.latency()
        current = self._bookings.get(booking_id)
        self._bookings.check_version(current, expected_version)
        merged = {k: v for k, v in asdict(current).items() if k in BOOKING_FIELDS}
        merged.update({k: v for k, v in patch.items() if k in BOOKING_FIELDS})
        fields = validate_booking(merged)
        updated = replace(current, version=current.version + 1, **fields)
        self._bookings.items[updated.id] = updated
        logger.info("Prenotazione %s aggiornata (v%d)", updated.id, updated.version)
        return replace(updated)

    async def delete_booking(self, booking_id: str) -> dict:
        await self.latency()
        booking = self._bookings.get(booking_id)
        del self._bookings.items[booking.id]
        logger.info("Prenotazione %s eliminata", booking.id)
        return {"success": True}

    # ── Spese ───────────────────────────────────────────────────────────────

    async def list_expenses(self, category: Optional[str] = None, status: Optional[str] = None) -> List[Expense]:
        await self.latency()
        result = self._expenses.values()
        if category:
            result = [e for e in result if e.category == category]
        if status:
            result = [e for e in result if e.status == status]
        return [replace(e) for e in result]

    async def get_expense(self, expense_id: str) -> Expense:
        await self.latency()
        return replace(self._expenses.get(expense_id))

    async def create_expense(self, data: dict) -> Expense:
        await self.latency()
        fields = validate_expense(data)
        expense = Expense(id=self._expenses.next_id(), **fields)
        self._expenses.items[expense.id] = expense
        logger.info("Spesa %s creata (%s, %.2f)", expense.id, expense.category, expense.amount)
        return replace(expense)

    async def update_expense(self, expense_id: str, patch: dict, expected_version: Optional[int] = None) -> Expense:
        await self.latency()
        current = self._expenses.get(expense_id)
        self._expenses.check_version(current, expected_version)
        merged = {k: v for k, v in asdict(current).items() if k in EXPENSE_FIELDS}
        merged.update({k: v for k, v in patch.items() if k in EXPENSE_FIELDS})
        fields = validate_expense(merged)
        updated = replace(current, version=current.version + 1, **fields)
        self._expenses.items[updated.id] = updated
        logger.info("Spesa %s aggiornata (v%d)", updated.id, updated.version)
        return replace(updated)

    async def delete_expense(self, expense_id: str) -> dict:
        await self.latency()
        expense = self._expenses.get(expense_id)
        del self._expenses.items[expense.id]
        logger.info("Spesa %s eliminata", expense.id)
        return {"success": True}

    # ── Manager ─────────────────────────────────────────────────────────────

    def find_manager_by_email(self, email: str) -> Optional[Manager]:
        key = (email or "").strip().lower()
        for m in self._managers.values():
            if m.email.lower() == key:
                return m
        return None

    def _taken_emails(self, exclude_id: Optional[str] = None) -> List[str]:
        emails = [m.email for m in self._managers.values() if m.id != exclude_id]
        emails.append(self.admin.email)
        return emails

    async def list_managers(self) -> List[Manager]:
        await self.latency()
        return [replace(m) for m in self._managers.values()]

    async def get_manager(self, manager_id: str) -> Manager:
        await self.latency()
        return replace(self._managers.get(manager_id))

    async def create_manager(self, data: dict) -> Manager:
        await self.latency()
        fields = validate_manager(data, self._taken_emails(), require_password=True)
        manager = Manager(
            id=self._managers.next_id(),
            name=fields["name"],
            email=fields["email"],
            password_hash=hash_password(fields["password"]),
            role="manager",
            created_at=date.today(),
        )
        self._managers.items[manager.id] = manager
        logger.info("Manager %s creato (%s)", manager.id, manager.email)
        return replace(manager)

    async def update_manager(self, manager_id: str, patch: dict, expected_version: Optional[int] = None) -> Manager:
        """Aggiorna nome/email; una password non vuota nel patch la sostituisce."""
        await self.latency()
        current = self._managers.get(manager_id)
        self._managers.check_version(current, expected_version)
        merged = {
            "name": patch.get("name", current.name),
            "email": patch.get("email", current.email),
            "password": patch.get("password"),
        }
        fields = validate_manager(merged, self._taken_emails(exclude_id=current.id), require_password=False)
        password_hash = hash_password(fields["password"]) if fields["password"] else current.password_hash
        updated = replace(
            current,
            name=fields["name"],
            email=fields["email"],
            password_hash=password_hash,
            version=current.version + 1,
        )
        self._managers.items[updated.id] = updated
        logger.info("Manager %s aggiornato%s", updated.id, " (nuova password)" if fields["password"] else "")
        return replace(updated)

    async def delete_manager(self, manager_id: str) -> dict:
        await self.latency()
        manager = self._managers.get(manager_id)
        del self._managers.items[manager.id]
        logger.info("Manager %s eliminato", manager.id)
        return {"success": True}

    async def change_manager_password(self, email: str, current_password: str, new_password: str) -> dict:
        await self.latency()
        manager = self.find_manager_by_email(email)
        if manager is None:
            raise NotFound(f"Usuario no encontrado: {email}")
        if not verify_password(current_password, manager.password_hash):
            logger.warning("Cambio password rifiutato per %s: password attuale errata", manager.email)
            raise IncorrectCurrentPassword()
        validate_new_password(current_password, new_password)
        self._managers.items[manager.id] = replace(
            manager, password_hash=hash_password(new_password), version=manager.version + 1,
        )
        logger.info("Password aggiornata per il manager %s", manager.email)
        return {"success": True}

    def set_admin_password(self, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, self.admin.password_hash):
            logger.warning("Cambio password admin rifiutato: password attuale errata")
            raise IncorrectCurrentPassword()
        validate_new_password(current_password, new_password)
        self.admin.password_hash = hash_password(new_password)
        logger.info("Password admin aggiornata")
