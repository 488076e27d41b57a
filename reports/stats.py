"""
Statistiche del pannello di controllo.

Legge prenotazioni e spese dallo store, applica i filtri (proprietà, intervallo
di date) e produce:
  - DashboardStats: ricavi, spese, netto, pagamenti in sospeso, occupazione
  - metriche per proprietà (ricavi, spese, utile)
  - pivot ricavi mese × proprietà e lista dei prossimi arrivi

Le date nei DataFrame sono stringhe ISO yyyy-MM-dd: l'ordine lessicografico
coincide con quello cronologico, quindi i filtri sono semplici confronti.
"""

from datetime import date
from typing import Iterable, List, Optional, Union

import pandas as pd

from config import PROPERTIES
from core.errors import ValidationError
from core.models import Booking, DashboardStats, Expense, PropertyMetrics, StatsFilter
from core.store import EntityStore
from core.validation import parse_iso_date

BOOKING_COLUMNS = [
    "id", "property_name", "guest_name", "check_in", "check_out", "status",
    "payment_status", "total_price", "paid_amount",
]
EXPENSE_COLUMNS = ["id", "date", "category", "vendor", "status", "amount", "property_name"]

FilterLike = Union[StatsFilter, dict, None]
FILTER_KEYS = ("property_name", "start_date", "end_date")


def normalize_filters(filters: FilterLike = None) -> StatsFilter:
    """
    Valida i filtri. Stringhe vuote = filtro assente (come arrivano dalla UI).
    Date malformate o intervallo invertito → ValidationError.
    """
    if filters is None:
        return StatsFilter()
    if isinstance(filters, dict):
        unknown = set(filters) - set(FILTER_KEYS)
        if unknown:
            raise ValidationError({k: "Filtro desconocido" for k in sorted(unknown)})
        filters = StatsFilter(**filters)

    property_name = (filters.property_name or "").strip() or None
    start = parse_iso_date(filters.start_date, "start_date") if filters.start_date else None
    end = parse_iso_date(filters.end_date, "end_date") if filters.end_date else None
    if start and end and start > end:
        raise ValidationError({"end_date": "La fecha final debe ser posterior a la inicial"})

    return StatsFilter(
        property_name=property_name,
        start_date=start.isoformat() if start else None,
        end_date=end.isoformat() if end else None,
    )


def bookings_to_frame(bookings: Iterable[Booking]) -> pd.DataFrame:
    rows = [{
        "id": b.id,
        "property_name": b.property_name,
        "guest_name": b.guest_name,
        "check_in": b.check_in.isoformat(),
        "check_out": b.check_out.isoformat(),
        "status": b.status,
        "payment_status": b.payment_status,
        "total_price": b.total_price,
        "paid_amount": b.paid_amount,
    } for b in bookings]
    df = pd.DataFrame(rows, columns=BOOKING_COLUMNS)
    for col in ("total_price", "paid_amount"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(float)
    return df


def expenses_to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    rows = [{
        "id": e.id,
        "date": e.date.isoformat(),
        "category": e.category,
        "vendor": e.vendor,
        "status": e.status,
        "amount": e.amount,
        "property_name": e.property_name,
    } for e in expenses]
    df = pd.DataFrame(rows, columns=EXPENSE_COLUMNS)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0).astype(float)
    return df


def filter_bookings(df: pd.DataFrame, f: StatsFilter) -> pd.DataFrame:
    mask = pd.Series(True, index=df.index)
    if f.start_date:
        mask &= df["check_in"] >= f.start_date
    if f.end_date:
        mask &= df["check_in"] <= f.end_date
    if f.property_name:
        mask &= df["property_name"] == f.property_name
    return df[mask]


def filter_expenses(df: pd.DataFrame, f: StatsFilter) -> pd.DataFrame:
    """Solo per data: le spese non sono legate a una prenotazione."""
    mask = pd.Series(True, index=df.index)
    if f.start_date:
        mask &= df["date"] >= f.start_date
    if f.end_date:
        mask &= df["date"] <= f.end_date
    return df[mask]


def property_metrics(df_b: pd.DataFrame, df_paid_expenses: pd.DataFrame) -> List[PropertyMetrics]:
    """
    Ricavi per proprietà = somma incassato delle sue prenotazioni.
    Spese per proprietà = spese assegnate a quella proprietà + quota
    (divisa in parti uguali) delle spese comuni. Una proprietà non
    configurata conta come spesa comune: la somma per proprietà resta
    uguale al totale.
    """
    income = df_b.groupby("property_name")["paid_amount"].sum().reindex(PROPERTIES, fill_value=0.0)

    known = df_paid_expenses["property_name"].isin(PROPERTIES)
    assigned_by_prop = (
        df_paid_expenses[known].groupby("property_name")["amount"].sum().reindex(PROPERTIES, fill_value=0.0)
    )
    shared = df_paid_expenses[~known]["amount"].sum()
    shared_quota = float(shared) / len(PROPERTIES) if PROPERTIES else 0.0

    metrics = []
    for prop in PROPERTIES:
        inc = float(income[prop])
        exp = float(assigned_by_prop[prop]) + shared_quota
        metrics.append(PropertyMetrics(property_name=prop, income=inc, expenses=exp, profit=inc - exp))
    return metrics


def occupancy_rate(df_b: pd.DataFrame, f: StatsFilter) -> float:
    """
    Notti occupate / notti disponibili, in percentuale (1 decimale).

    Finestra: [start_date, end_date] se presenti, altrimenti dal primo check-in
    all'ultima notte delle prenotazioni filtrate. Notti disponibili = notti
    della finestra × numero di proprietà (1 se si filtra per proprietà).
    Le prenotazioni cancellate non occupano notti.
    """
    active = df_b[df_b["status"] != "cancelled"]
    if active.empty and not (f.start_date and f.end_date):
        return 0.0

    check_in = pd.to_datetime(active["check_in"])
    last_night = pd.to_datetime(active["check_out"]) - pd.Timedelta(days=1)

    start = pd.Timestamp(f.start_date) if f.start_date else check_in.min()
    end = pd.Timestamp(f.end_date) if f.end_date else last_night.max()
    window_nights = (end - start).days + 1
    n_properties = 1 if f.property_name else len(PROPERTIES)
    available = window_nights * n_properties
    if available <= 0:
        return 0.0

    lo = check_in.where(check_in > start, start)
    hi = last_night.where(last_night < end, end)
    booked = int(((hi - lo).dt.days + 1).clip(lower=0).sum())
    return round(booked / available * 100, 1)


async def get_stats(store: EntityStore, filters: FilterLike = None, today: Optional[date] = None) -> DashboardStats:
    f = normalize_filters(filters)
    today = today or date.today()

    df_b = filter_bookings(bookings_to_frame(await store.list_bookings()), f)
    df_e = filter_expenses(expenses_to_frame(await store.list_expenses()), f)
    paid_expenses = df_e[df_e["status"] == "paid"]

    total_revenue = float(df_b["paid_amount"].sum())
    total_expenses = float(paid_expenses["amount"].sum())

    unpaid = df_b[df_b["payment_status"] != "paid"]
    pending_payments = float((unpaid["total_price"] - unpaid["paid_amount"]).sum())

    upcoming = (df_b["check_in"] >= today.isoformat()) & ~df_b["status"].isin(["cancelled", "completed"])

    return DashboardStats(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_income=total_revenue - total_expenses,
        pending_payments=pending_payments,
        upcoming_bookings=int(upcoming.sum()),
        active_bookings=int((df_b["status"] == "checked_in").sum()),
        total_bookings=len(df_b),
        occupancy_rate=occupancy_rate(df_b, f),
        property_metrics=property_metrics(df_b, paid_expenses),
    )


async def upcoming_booking_list(store: EntityStore, limit: int = 5, today: Optional[date] = None) -> List[Booking]:
    """Prossimi arrivi confermati, in ordine di check-in."""
    today = today or date.today()
    confirmed = await store.list_bookings(status="confirmed")
    upcoming = sorted((b for b in confirmed if b.check_in >= today), key=lambda b: b.check_in)
    return upcoming[:limit]


async def monthly_revenue_pivot(store: EntityStore, filters: FilterLike = None) -> pd.DataFrame:
    """Pivot: mese di check-in × proprietà, valori = incassato."""
    f = normalize_filters(filters)
    df_b = filter_bookings(bookings_to_frame(await store.list_bookings()), f)
    if df_b.empty:
        return pd.DataFrame()

    df_b = df_b.assign(anno_mese=df_b["check_in"].str[:7])
    return df_b.pivot_table(
        values="paid_amount",
        index="anno_mese",
        columns="property_name",
        aggfunc="sum",
        fill_value=0,
        margins=True,
        margins_name="TOTALE",
    )
