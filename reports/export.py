"""
Esporta prenotazioni, spese e riepilogo statistiche in un file XLSX.

Un foglio per tipo di dato:
  - Reservas → una riga per prenotazione
  - Gastos   → una riga per spesa
  - Resumen  → KPI del pannello + metriche per proprietà (se presenti)
Le date restano date Excel (non testo), gli importi con 2 decimali.
"""

import io
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from core.models import Booking, DashboardStats, Expense

SHEET_BOOKINGS = "Reservas"
SHEET_EXPENSES = "Gastos"
SHEET_SUMMARY = "Resumen"

BOOKING_HEADERS = [
    "ID", "Propiedad", "Huésped", "Email", "Teléfono", "Entrada", "Salida",
    "Noches", "Huéspedes", "Total €", "Pagado €", "Pendiente €",
    "Estado pago", "Método pago", "Estado", "Notas",
]
EXPENSE_HEADERS = [
    "ID", "Fecha", "Categoría", "Descripción", "Proveedor", "Importe €",
    "Método pago", "Estado", "Propiedad",
]

MONEY_FORMAT = "#,##0.00"
DATE_FORMAT = "yyyy-mm-dd"


def _write_header(ws, headers) -> None:
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.freeze_panes = "A2"


def _format_columns(ws, money_cols=(), date_cols=()) -> None:
    """Formati numero/data e larghezza colonne dal contenuto più lungo."""
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            if cell.column in money_cols:
                cell.number_format = MONEY_FORMAT
            elif cell.column in date_cols:
                cell.number_format = DATE_FORMAT
    for idx, column in enumerate(ws.columns, start=1):
        width = max(len(str(c.value)) if c.value is not None else 0 for c in column)
        ws.column_dimensions[get_column_letter(idx)].width = min(max(width + 2, 8), 50)


def _write_bookings(ws, bookings: Iterable[Booking]) -> None:
    _write_header(ws, BOOKING_HEADERS)
    for b in bookings:
        ws.append([
            b.id, b.property_name, b.guest_name, b.guest_email, b.guest_phone,
            b.check_in, b.check_out, b.nights, b.guests,
            round(b.total_price, 2), round(b.paid_amount, 2), round(b.amount_due, 2),
            b.payment_status, b.payment_method, b.status, b.notes or "",
        ])
    _format_columns(ws, money_cols=(10, 11, 12), date_cols=(6, 7))


def _write_expenses(ws, expenses: Iterable[Expense]) -> None:
    _write_header(ws, EXPENSE_HEADERS)
    for e in expenses:
        ws.append([
            e.id, e.date, e.category, e.description, e.vendor, round(e.amount, 2),
            e.payment_method, e.status, e.property_name or "",
        ])
    _format_columns(ws, money_cols=(6,), date_cols=(2,))


def _write_summary(ws, stats: DashboardStats) -> None:
    _write_header(ws, ["Indicador", "Valor"])
    ws.append(["Ingresos totales", round(stats.total_revenue, 2)])
    ws.append(["Gastos totales", round(stats.total_expenses, 2)])
    ws.append(["Ingreso neto", round(stats.net_income, 2)])
    ws.append(["Pagos pendientes", round(stats.pending_payments, 2)])
    ws.append(["Próximas reservas", stats.upcoming_bookings])
    ws.append(["Reservas activas", stats.active_bookings])
    ws.append(["Total reservas", stats.total_bookings])
    ws.append(["Ocupación %", stats.occupancy_rate])

    if stats.property_metrics:
        ws.append([])
        ws.append(["Propiedad", "Ingresos €", "Gastos €", "Beneficio €"])
        for cell in ws[ws.max_row]:
            cell.font = Font(bold=True)
        for m in stats.property_metrics:
            ws.append([m.property_name, round(m.income, 2), round(m.expenses, 2), round(m.profit, 2)])
    _format_columns(ws)


def export_workbook(
    bookings: Iterable[Booking],
    expenses: Iterable[Expense],
    stats: Optional[DashboardStats] = None,
) -> bytes:
    """Restituisce i bytes del file XLSX (per st.download_button)."""
    wb = Workbook()
    ws_b = wb.active
    ws_b.title = SHEET_BOOKINGS
    _write_bookings(ws_b, bookings)
    _write_expenses(wb.create_sheet(SHEET_EXPENSES), expenses)
    if stats is not None:
        _write_summary(wb.create_sheet(SHEET_SUMMARY), stats)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
