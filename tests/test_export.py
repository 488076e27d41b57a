import io
from datetime import datetime

from openpyxl import load_workbook

from conftest import TODAY
from reports.export import BOOKING_HEADERS, EXPENSE_HEADERS, export_workbook
from reports.stats import get_stats


def load(data: bytes):
    return load_workbook(io.BytesIO(data))


def test_bookings_and_expenses_sheets(store, run):
    wb = load(export_workbook(run(store.list_bookings()), run(store.list_expenses())))
    assert wb.sheetnames == ["Reservas", "Gastos"]

    ws = wb["Reservas"]
    assert [c.value for c in ws[1]] == BOOKING_HEADERS
    assert ws.max_row == 6
    assert ws.freeze_panes == "A2"
    first = [c.value for c in ws[2]]
    assert first[0] == "1"
    assert first[1] == "Caiño"
    assert isinstance(first[5], datetime)
    assert first[7] == 4            # notti
    assert first[11] == 0           # già pagata

    ws = wb["Gastos"]
    assert [c.value for c in ws[1]] == EXPENSE_HEADERS
    assert ws.max_row == 6
    assert ws["F2"].number_format == "#,##0.00"


def test_summary_sheet(store, run):
    stats = run(get_stats(store, today=TODAY))
    wb = load(export_workbook([], [], stats))
    assert wb.sheetnames == ["Reservas", "Gastos", "Resumen"]
    assert wb["Reservas"].max_row == 1

    rows = {r[0]: r[1] for r in wb["Resumen"].iter_rows(min_row=2, max_row=9, values_only=True)}
    assert rows["Ingresos totales"] == 2100
    assert rows["Ingreso neto"] == 1745
    assert rows["Total reservas"] == 5

    props = [r[0] for r in wb["Resumen"].iter_rows(min_row=11, values_only=True)]
    assert props == ["Propiedad", "Caiño", "Loureira", "Treixadura"]
