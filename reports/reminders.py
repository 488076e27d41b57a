"""
Promemoria di pagamento, derivati dalle prenotazioni (non salvati).

Per ogni prenotazione con pagamento 'pending' o 'partial':
  reminder_date = check_in - 5 giorni
  visibile se |reminder_date - oggi| <= 10 giorni

Lo stato 'completed' vive nello store (store.completed_reminders): dura quanto
lo store stesso e non modifica la prenotazione.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from config import REMINDER_DAYS_BEFORE_CHECKIN, REMINDER_WINDOW_DAYS
from core.errors import NotFound
from core.models import Booking, PaymentReminder
from core.store import EntityStore

logger = logging.getLogger(__name__)

UNPAID_STATUSES = ("pending", "partial")


def reminder_id(booking_id: str) -> str:
    return f"reminder-{booking_id}"


def build_reminder(booking: Booking, completed: bool = False) -> PaymentReminder:
    return PaymentReminder(
        id=reminder_id(booking.id),
        booking_id=booking.id,
        guest_name=booking.guest_name,
        guest_email=booking.guest_email,
        check_in=booking.check_in,
        reminder_date=booking.check_in - timedelta(days=REMINDER_DAYS_BEFORE_CHECKIN),
        amount_due=booking.total_price - booking.paid_amount,
        total_amount=booking.total_price,
        status="completed" if completed else "pending",
        message=(
            f"Recordatorio para cobrar a {booking.guest_name} "
            f"(entrada: {booking.check_in.isoformat()})"
        ),
    )


def is_due(booking: Booking, today: date) -> bool:
    if booking.payment_status not in UNPAID_STATUSES:
        return False
    reminder_date = booking.check_in - timedelta(days=REMINDER_DAYS_BEFORE_CHECKIN)
    return abs((reminder_date - today).days) <= REMINDER_WINDOW_DAYS


class ReminderService:

    def __init__(self, store: EntityStore, today: Optional[date] = None):
        self.store = store
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    async def list_reminders(self) -> List[PaymentReminder]:
        bookings = await self.store.list_bookings()
        today = self.today
        reminders = [
            build_reminder(b, completed=reminder_id(b.id) in self.store.completed_reminders)
            for b in bookings if is_due(b, today)
        ]
        return sorted(reminders, key=lambda r: r.reminder_date)

    async def mark_completed(self, rid: str) -> PaymentReminder:
        """Idempotente: un promemoria già completato resta completato."""
        for reminder in await self.list_reminders():
            if reminder.id == rid:
                if reminder.status != "completed":
                    self.store.completed_reminders.add(rid)
                    logger.info("Promemoria %s completato", rid)
                reminder.status = "completed"
                return reminder
        raise NotFound(f"Recordatorio no encontrado: {rid}")


def split_by_status(reminders: List[PaymentReminder]) -> Tuple[List[PaymentReminder], List[PaymentReminder]]:
    """(in sospeso, completati)"""
    pending = [r for r in reminders if r.status == "pending"]
    completed = [r for r in reminders if r.status == "completed"]
    return pending, completed
