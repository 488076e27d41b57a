from datetime import date

import pytest

from conftest import TODAY, make_booking, make_expense
from core.errors import ValidationError
from core.models import StatsFilter
from core.store import EntityStore
from reports.stats import get_stats, monthly_revenue_pivot, normalize_filters, upcoming_booking_list


def test_unfiltered_totals(store, run):
    stats = run(get_stats(store, today=TODAY))
    assert stats.total_revenue == 2100        # 450 + 0 + 650 + 200 + 800
    assert stats.total_expenses == 355        # solo spese pagate: 120 + 85 + 150
    assert stats.net_income == 1745
    assert stats.pending_payments == 1550     # 980 + (770 - 200)
    assert stats.upcoming_bookings == 3
    assert stats.active_bookings == 1
    assert stats.total_bookings == 5


def test_property_filter(store, run):
    stats = run(get_stats(store, {"property_name": "Caiño"}, today=TODAY))
    assert stats.total_bookings == 2
    assert stats.total_revenue == 650
    assert stats.total_expenses == 355
    by_prop = {m.property_name: m for m in stats.property_metrics}
    assert by_prop["Caiño"].income == 650
    assert by_prop["Loureira"].income == 0


def test_date_filter_applies_to_bookings_and_expenses(store, run):
    f = StatsFilter(start_date="2026-03-01", end_date="2026-03-07")
    stats = run(get_stats(store, f, today=TODAY))
    assert stats.total_bookings == 1          # solo David Johnson (check-in 7 marzo)
    assert stats.total_revenue == 650
    assert stats.total_expenses == 205        # 120 (5 marzo) + 85 (7 marzo)


def test_blank_filters_are_ignored(store, run):
    stats = run(get_stats(store, {"property_name": "", "start_date": "", "end_date": None}, today=TODAY))
    assert stats.total_bookings == 5


@pytest.mark.parametrize("filters", [
    {"start_date": "2026-13-01"},
    {"end_date": "10/03/2026"},
    {"start_date": "2026-03-20", "end_date": "2026-03-01"},
    {"start_date": "2026-3-5"},
    {"property": "Caiño"},
])
def test_invalid_filters(store, run, filters):
    with pytest.raises(ValidationError):
        run(get_stats(store, filters, today=TODAY))


def test_normalize_filters():
    f = normalize_filters({"property_name": " Loureira ", "start_date": date(2026, 1, 1)})
    assert f == StatsFilter(property_name="Loureira", start_date="2026-01-01", end_date=None)


def test_property_metrics_split_shared_expenses(run):
    store = EntityStore(
        bookings=[make_booking("1", property_name="Loureira", paid_amount=300, total_price=300)],
        expenses=[
            make_expense("1", amount=90),
            make_expense("2", amount=40, property_name="Loureira"),
            make_expense("3", amount=500, status="pending", property_name="Caiño"),
        ],
        delay_ms=0,
    )
    stats = run(get_stats(store, today=TODAY))
    by_prop = {m.property_name: m for m in stats.property_metrics}
    assert [m.property_name for m in stats.property_metrics] == ["Caiño", "Loureira", "Treixadura"]
    assert by_prop["Caiño"].expenses == pytest.approx(30)
    assert by_prop["Loureira"].expenses == pytest.approx(70)
    assert by_prop["Loureira"].profit == pytest.approx(230)
    assert by_prop["Treixadura"].profit == pytest.approx(-30)


def test_unknown_property_expenses_count_as_shared(run):
    store = EntityStore(
        expenses=[make_expense("1", amount=90, property_name="Caino")],
        delay_ms=0,
    )
    stats = run(get_stats(store, today=TODAY))
    assert stats.total_expenses == 90
    assert sum(m.expenses for m in stats.property_metrics) == pytest.approx(90)
    assert all(m.expenses == pytest.approx(30) for m in stats.property_metrics)


def test_occupancy_rate(run):
    store = EntityStore(
        bookings=[
            make_booking("1", check_in=date(2026, 1, 1), check_out=date(2026, 1, 5)),
            # esce oltre la finestra: contano solo 8, 9, 10 gennaio
            make_booking("2", check_in=date(2026, 1, 8), check_out=date(2026, 1, 15)),
            make_booking("3", check_in=date(2026, 1, 2), check_out=date(2026, 1, 4), status="cancelled"),
        ],
        delay_ms=0,
    )
    window = {"start_date": "2026-01-01", "end_date": "2026-01-10"}
    assert run(get_stats(store, dict(window, property_name="Caiño"), today=TODAY)).occupancy_rate == 70.0
    # senza filtro proprietà le notti disponibili sono 10 × 3
    assert run(get_stats(store, window, today=TODAY)).occupancy_rate == 23.3


def test_empty_store(empty_store, run):
    stats = run(get_stats(empty_store, today=TODAY))
    assert stats.total_revenue == 0
    assert stats.total_bookings == 0
    assert stats.occupancy_rate == 0.0
    assert all(m.income == 0 and m.expenses == 0 for m in stats.property_metrics)


def test_upcoming_booking_list(store, run):
    upcoming = run(upcoming_booking_list(store, today=TODAY))
    assert [b.id for b in upcoming] == ["1", "2", "4"]
    assert len(run(upcoming_booking_list(store, limit=1, today=TODAY))) == 1


def test_monthly_revenue_pivot(store, run):
    pivot = run(monthly_revenue_pivot(store))
    assert pivot.loc["2026-03", "Treixadura"] == 650
    assert pivot.loc["TOTALE", "TOTALE"] == 2100
    assert run(monthly_revenue_pivot(store, {"property_name": "Nessuna"})).empty
