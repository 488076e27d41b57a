"""
Gestione Affitti - pannello di amministrazione per Caiño, Loureira e Treixadura.
Web app Streamlit: prenotazioni, spese, promemoria di pagamento e utenti,
con accesso per ruolo (admin / manager).
"""

import asyncio
import logging
import os
import sys
from datetime import date, timedelta

import pandas as pd
import streamlit as st

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import LOG_LEVEL, PROPERTIES
from core.auth import AuthSession, LOGIN_VIEW
from core.errors import AppError, ValidationError
from core.models import (
    BOOKING_STATUSES, PAYMENT_STATUSES, PAYMENT_METHODS,
    EXPENSE_CATEGORIES, EXPENSE_STATUSES, StatsFilter,
)
from core.seed import build_demo_store
from reports.export import export_workbook
from reports.reminders import ReminderService, split_by_status
from reports.stats import get_stats, monthly_revenue_pivot, upcoming_booking_list
from utils.translations import (
    BOOKING_STATUS_LABELS, PAYMENT_STATUS_LABELS, PAYMENT_METHOD_LABELS,
    EXPENSE_CATEGORY_LABELS, EXPENSE_STATUS_LABELS, ROLE_LABELS, VIEW_LABELS,
    format_currency, format_date, translate,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Gestión de Alquileres",
    page_icon="🏠",
    layout="wide",
)


def run(coro):
    """Le operazioni dello store sono async: le eseguiamo una alla volta."""
    return asyncio.run(coro)


def show_error(e: AppError) -> None:
    """Errori di validazione campo per campo, gli altri come messaggio unico."""
    if isinstance(e, ValidationError) and e.errors:
        for field_name, msg in e.errors.items():
            st.error(f"**{field_name}**: {msg}")
    else:
        st.error(e.message)


# ── Store (uno per processo, condiviso tra le sessioni) e sessione utente ───
@st.cache_resource
def get_store():
    return build_demo_store()


store = get_store()
auth = AuthSession(store, st.session_state)


# ============================================================
# LOGIN
# ============================================================
def render_login() -> None:
    st.title("🏠 Gestión de Alquileres")
    st.subheader("Iniciar sesión")
    email = st.text_input("Correo electrónico", key="login_email")
    password = st.text_input("Contraseña", type="password", key="login_password")
    if st.button("Entrar", type="primary", key="login_submit"):
        result = run(auth.login(email, password))
        if result.success:
            st.rerun()
        else:
            st.error(result.message)


# ============================================================
# PANEL DE CONTROL
# ============================================================
def render_dashboard() -> None:
    st.header("Panel de Control")
    st.caption("Vista general de tus operaciones de reserva")

    col1, col2, col3 = st.columns(3)
    with col1:
        prop = st.selectbox("Propiedad", ["Todas las Propiedades"] + PROPERTIES)
    with col2:
        start = st.text_input("Fecha Desde (aaaa-mm-dd)", key="dash_start")
    with col3:
        end = st.text_input("Fecha Hasta (aaaa-mm-dd)", key="dash_end")

    filters = StatsFilter(
        property_name=None if prop == "Todas las Propiedades" else prop,
        start_date=start or None,
        end_date=end or None,
    )
    try:
        stats = run(get_stats(store, filters))
        pivot = run(monthly_revenue_pivot(store, filters))
        upcoming = run(upcoming_booking_list(store))
    except ValidationError as e:
        show_error(e)
        return
    except AppError as e:
        logger.exception("Caricamento statistiche fallito")
        st.error(f"No se pudieron cargar las estadísticas: {e.message}")
        return

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Ingresos Totales", format_currency(stats.total_revenue))
    k2.metric("Gastos Totales", format_currency(stats.total_expenses))
    k3.metric("Ingreso Neto", format_currency(stats.net_income))
    k4.metric("Pagos Pendientes", format_currency(stats.pending_payments))
    k5, k6, k7, k8 = st.columns(4)
    k5.metric("Próximas Reservas", stats.upcoming_bookings)
    k6.metric("Reservas Activas", stats.active_bookings)
    k7.metric("Total Reservas", stats.total_bookings)
    k8.metric("Ocupación", f"{stats.occupancy_rate:.1f}%")

    st.divider()
    st.subheader("Resumen por Propiedad")
    metrics_df = pd.DataFrame([{
        "Propiedad": m.property_name,
        "Ingresos €": round(m.income, 2),
        "Gastos €": round(m.expenses, 2),
        "Beneficio €": round(m.profit, 2),
    } for m in stats.property_metrics])
    st.dataframe(metrics_df, use_container_width=True, hide_index=True)

    if not pivot.empty:
        st.subheader("Ingresos por mes y propiedad (€)")
        st.dataframe(pivot.round(2), use_container_width=True)

    st.subheader("Próximas Reservas")
    if upcoming:
        st.dataframe(pd.DataFrame([{
            "Huésped": b.guest_name,
            "Propiedad": b.property_name,
            "Entrada": format_date(b.check_in),
            "Salida": format_date(b.check_out),
            "Pago": translate(PAYMENT_STATUS_LABELS, b.payment_status),
        } for b in upcoming]), use_container_width=True, hide_index=True)
    else:
        st.info("No hay próximas reservas confirmadas.")

    st.divider()
    bookings = run(store.list_bookings())
    expenses = run(store.list_expenses())
    st.download_button(
        "⬇️ Exportar Excel",
        export_workbook(bookings, expenses, stats),
        file_name=f"alquileres_{date.today().isoformat()}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


# ============================================================
# RESERVAS
# ============================================================
def _booking_form(prefix: str, current=None) -> dict:
    """Campi del form prenotazione; `current` precompila in modifica."""
    today = date.today()
    c1, c2 = st.columns(2)
    with c1:
        guest_name = st.text_input("Nombre del huésped", value=current.guest_name if current else "", key=f"{prefix}_name")
        guest_email = st.text_input("Correo electrónico", value=current.guest_email if current else "", key=f"{prefix}_email")
        guest_phone = st.text_input("Teléfono", value=current.guest_phone if current else "", key=f"{prefix}_phone")
        property_name = st.selectbox(
            "Propiedad", PROPERTIES,
            index=PROPERTIES.index(current.property_name) if current and current.property_name in PROPERTIES else 0,
            key=f"{prefix}_prop",
        )
        guests = st.number_input("Huéspedes", min_value=0, value=current.guests if current else 1, key=f"{prefix}_guests")
        notes = st.text_area("Notas", value=current.notes if current else "", key=f"{prefix}_notes")
    with c2:
        check_in = st.date_input("Entrada", value=current.check_in if current else today, key=f"{prefix}_in")
        check_out = st.date_input("Salida", value=current.check_out if current else today + timedelta(days=1), key=f"{prefix}_out")
        total_price = st.number_input("Precio total €", value=float(current.total_price) if current else 0.0, key=f"{prefix}_total")
        paid_amount = st.number_input("Pagado €", value=float(current.paid_amount) if current else 0.0, key=f"{prefix}_paid")
        payment_status = st.selectbox(
            "Estado de pago", PAYMENT_STATUSES,
            index=PAYMENT_STATUSES.index(current.payment_status) if current else 2,
            format_func=lambda x: translate(PAYMENT_STATUS_LABELS, x), key=f"{prefix}_pstatus",
        )
        payment_method = st.selectbox(
            "Método de pago", PAYMENT_METHODS,
            index=PAYMENT_METHODS.index(current.payment_method) if current else 0,
            format_func=lambda x: translate(PAYMENT_METHOD_LABELS, x), key=f"{prefix}_method",
        )
        status = st.selectbox(
            "Estado", BOOKING_STATUSES,
            index=BOOKING_STATUSES.index(current.status) if current else 0,
            format_func=lambda x: translate(BOOKING_STATUS_LABELS, x), key=f"{prefix}_status",
        )
    return {
        "guest_name": guest_name, "guest_email": guest_email, "guest_phone": guest_phone,
        "check_in": check_in, "check_out": check_out, "guests": guests,
        "total_price": total_price, "paid_amount": paid_amount,
        "payment_status": payment_status, "payment_method": payment_method,
        "status": status, "property_name": property_name, "notes": notes,
    }


def render_bookings() -> None:
    st.header("Reservas")

    col1, col2, col3 = st.columns(3)
    with col1:
        sel_status = st.selectbox("Estado", [""] + list(BOOKING_STATUSES),
                                  format_func=lambda x: translate(BOOKING_STATUS_LABELS, x) or "Todos")
    with col2:
        sel_pay = st.selectbox("Pago", [""] + list(PAYMENT_STATUSES),
                               format_func=lambda x: translate(PAYMENT_STATUS_LABELS, x) or "Todos")
    with col3:
        search = st.text_input("Buscar huésped o correo")

    try:
        bookings = run(store.list_bookings(status=sel_status or None, payment_status=sel_pay or None, search=search or None))
    except AppError as e:
        st.error(f"No se pudieron cargar las reservas: {e.message}")
        return

    if bookings:
        st.dataframe(pd.DataFrame([{
            "ID": b.id,
            "Huésped": b.guest_name,
            "Propiedad": b.property_name,
            "Entrada": format_date(b.check_in),
            "Salida": format_date(b.check_out),
            "Huéspedes": b.guests,
            "Total": format_currency(b.total_price),
            "Pagado": format_currency(b.paid_amount),
            "Pago": translate(PAYMENT_STATUS_LABELS, b.payment_status),
            "Estado": translate(BOOKING_STATUS_LABELS, b.status),
        } for b in bookings]), use_container_width=True, hide_index=True)
    else:
        st.info("No se encontraron reservas.")

    with st.expander("➕ Nueva reserva"):
        with st.form("new_booking"):
            data = _booking_form("nb")
            if st.form_submit_button("Crear reserva", type="primary"):
                try:
                    created = run(store.create_booking(data))
                    st.success(f"Reserva {created.id} creada.")
                except AppError as e:
                    show_error(e)

    if not bookings:
        return
    with st.expander("✏️ Editar / eliminar reserva"):
        sel_id = st.selectbox("Reserva", [b.id for b in bookings],
                              format_func=lambda i: next(f"{b.id} - {b.guest_name}" for b in bookings if b.id == i))
        current = next(b for b in bookings if b.id == sel_id)
        with st.form(f"edit_booking_{sel_id}"):
            patch = _booking_form(f"eb{sel_id}", current)
            if st.form_submit_button("Guardar cambios"):
                try:
                    run(store.update_booking(sel_id, patch, expected_version=current.version))
                    st.success("Reserva actualizada.")
                except AppError as e:
                    show_error(e)
        confirm = st.checkbox("Confirmo que quiero eliminar esta reserva", key=f"del_b_{sel_id}")
        if st.button("🗑️ Eliminar reserva", disabled=not confirm):
            try:
                run(store.delete_booking(sel_id))
                st.success("Reserva eliminada.")
                st.rerun()
            except AppError as e:
                show_error(e)


# ============================================================
# GASTOS
# ============================================================
def _expense_form(prefix: str, current=None) -> dict:
    c1, c2 = st.columns(2)
    with c1:
        exp_date = st.date_input("Fecha", value=current.date if current else date.today(), key=f"{prefix}_date")
        category = st.selectbox(
            "Categoría", EXPENSE_CATEGORIES,
            index=EXPENSE_CATEGORIES.index(current.category) if current else 0,
            format_func=lambda x: translate(EXPENSE_CATEGORY_LABELS, x), key=f"{prefix}_cat",
        )
        vendor = st.text_input("Proveedor", value=current.vendor if current else "", key=f"{prefix}_vendor")
        description = st.text_area("Descripción", value=current.description if current else "", key=f"{prefix}_desc")
    with c2:
        amount = st.number_input("Importe €", value=float(current.amount) if current else 0.0, key=f"{prefix}_amount")
        payment_method = st.selectbox(
            "Método de pago", PAYMENT_METHODS,
            index=PAYMENT_METHODS.index(current.payment_method) if current else 0,
            format_func=lambda x: translate(PAYMENT_METHOD_LABELS, x), key=f"{prefix}_method",
        )
        status = st.selectbox(
            "Estado", EXPENSE_STATUSES,
            index=EXPENSE_STATUSES.index(current.status) if current else 0,
            format_func=lambda x: translate(EXPENSE_STATUS_LABELS, x), key=f"{prefix}_status",
        )
        props = ["Todas"] + PROPERTIES
        prop = st.selectbox(
            "Propiedad", props,
            index=props.index(current.property_name) if current and current.property_name in props else 0,
            key=f"{prefix}_prop",
        )
    return {
        "date": exp_date, "category": category, "description": description,
        "amount": amount, "payment_method": payment_method, "vendor": vendor,
        "status": status, "property_name": None if prop == "Todas" else prop,
    }


def render_expenses() -> None:
    st.header("Gastos")

    col1, col2 = st.columns(2)
    with col1:
        sel_cat = st.selectbox("Categoría", [""] + list(EXPENSE_CATEGORIES),
                               format_func=lambda x: translate(EXPENSE_CATEGORY_LABELS, x) or "Todas")
    with col2:
        sel_status = st.selectbox("Estado", [""] + list(EXPENSE_STATUSES),
                                  format_func=lambda x: translate(EXPENSE_STATUS_LABELS, x) or "Todos")

    try:
        expenses = run(store.list_expenses(category=sel_cat or None, status=sel_status or None))
    except AppError as e:
        st.error(f"No se pudieron cargar los gastos: {e.message}")
        return

    if expenses:
        k1, k2 = st.columns(2)
        k1.metric("Total", format_currency(sum(e.amount for e in expenses)))
        k2.metric("Pendiente", format_currency(sum(e.amount for e in expenses if e.status == "pending")))
        st.dataframe(pd.DataFrame([{
            "ID": e.id,
            "Fecha": format_date(e.date),
            "Categoría": translate(EXPENSE_CATEGORY_LABELS, e.category),
            "Descripción": e.description,
            "Proveedor": e.vendor,
            "Importe": format_currency(e.amount),
            "Estado": translate(EXPENSE_STATUS_LABELS, e.status),
            "Propiedad": e.property_name or "Todas",
        } for e in expenses]), use_container_width=True, hide_index=True)
    else:
        st.info("No se encontraron gastos.")

    with st.expander("➕ Nuevo gasto"):
        with st.form("new_expense"):
            data = _expense_form("ne")
            if st.form_submit_button("Crear gasto", type="primary"):
                try:
                    created = run(store.create_expense(data))
                    st.success(f"Gasto {created.id} creado.")
                except AppError as e:
                    show_error(e)

    if not expenses:
        return
    with st.expander("✏️ Editar / eliminar gasto"):
        sel_id = st.selectbox("Gasto", [e.id for e in expenses],
                              format_func=lambda i: next(f"{e.id} - {e.description}" for e in expenses if e.id == i))
        current = next(e for e in expenses if e.id == sel_id)
        with st.form(f"edit_expense_{sel_id}"):
            patch = _expense_form(f"ee{sel_id}", current)
            if st.form_submit_button("Guardar cambios"):
                try:
                    run(store.update_expense(sel_id, patch, expected_version=current.version))
                    st.success("Gasto actualizado.")
                except AppError as e:
                    show_error(e)
        confirm = st.checkbox("Confirmo que quiero eliminar este gasto", key=f"del_e_{sel_id}")
        if st.button("🗑️ Eliminar gasto", disabled=not confirm):
            try:
                run(store.delete_expense(sel_id))
                st.success("Gasto eliminado.")
                st.rerun()
            except AppError as e:
                show_error(e)


# ============================================================
# RECORDATORIOS
# ============================================================
def render_reminders() -> None:
    st.header("Recordatorios de Pago")
    service = ReminderService(store)
    try:
        pending, completed = split_by_status(run(service.list_reminders()))
    except AppError as e:
        st.error(f"No se pudieron cargar los recordatorios: {e.message}")
        return

    st.subheader(f"Pendientes ({len(pending)})")
    if not pending:
        st.info("No hay recordatorios pendientes.")
    for r in pending:
        col1, col2 = st.columns([4, 1])
        with col1:
            st.markdown(
                f"**{r.guest_name}** ({r.guest_email}) · "
                f"Recordatorio: {format_date(r.reminder_date)} · "
                f"Entrada: {format_date(r.check_in)} · "
                f"Pendiente: {format_currency(r.amount_due)} de {format_currency(r.total_amount)}"
            )
        with col2:
            if st.button("✓ Completado", key=f"done_{r.id}"):
                try:
                    run(service.mark_completed(r.id))
                    st.rerun()
                except AppError as e:
                    show_error(e)

    st.subheader(f"Completados ({len(completed)})")
    for r in completed:
        st.markdown(f"~~{r.guest_name}~~ · Entrada: {format_date(r.check_in)} • {format_currency(r.amount_due)}")


# ============================================================
# USUARIOS
# ============================================================
def render_users() -> None:
    st.header("Usuarios")
    try:
        managers = run(store.list_managers())
    except AppError as e:
        st.error(f"No se pudieron cargar los usuarios: {e.message}")
        return

    if managers:
        rows = [m.public_dict() for m in managers]
        st.dataframe(pd.DataFrame([{
            "ID": r["id"],
            "Nombre": r["name"],
            "Correo": r["email"],
            "Rol": translate(ROLE_LABELS, r["role"]),
            "Creado": format_date(r["created_at"]) if r["created_at"] else "-",
        } for r in rows]), use_container_width=True, hide_index=True)
    else:
        st.info("No hay gestores.")

    with st.expander("➕ Nuevo gestor"):
        with st.form("new_manager"):
            name = st.text_input("Nombre", key="nm_name")
            email = st.text_input("Correo electrónico", key="nm_email")
            password = st.text_input("Contraseña", type="password", key="nm_password")
            if st.form_submit_button("Crear gestor", type="primary"):
                try:
                    created = run(store.create_manager({"name": name, "email": email, "password": password}))
                    st.success(f"Gestor {created.email} creado.")
                except AppError as e:
                    show_error(e)

    if not managers:
        return
    with st.expander("✏️ Editar / eliminar gestor"):
        sel_id = st.selectbox("Gestor", [m.id for m in managers],
                              format_func=lambda i: next(f"{m.name} <{m.email}>" for m in managers if m.id == i))
        current = next(m for m in managers if m.id == sel_id)
        with st.form(f"edit_manager_{sel_id}"):
            name = st.text_input("Nombre", value=current.name, key=f"em{sel_id}_name")
            email = st.text_input("Correo electrónico", value=current.email, key=f"em{sel_id}_email")
            password = st.text_input("Nueva contraseña (vacío = sin cambios)", type="password", key=f"em{sel_id}_password")
            if st.form_submit_button("Guardar cambios"):
                try:
                    run(store.update_manager(sel_id, {"name": name, "email": email, "password": password},
                                             expected_version=current.version))
                    st.success("Gestor actualizado.")
                except AppError as e:
                    show_error(e)
        confirm = st.checkbox("Confirmo que quiero eliminar este gestor", key=f"del_m_{sel_id}")
        if st.button("🗑️ Eliminar gestor", disabled=not confirm):
            try:
                run(store.delete_manager(sel_id))
                st.success("Gestor eliminado.")
                st.rerun()
            except AppError as e:
                show_error(e)


# ============================================================
# CAMBIAR CONTRASEÑA
# ============================================================
def render_change_password() -> None:
    st.header("Cambiar Contraseña")
    with st.form("change_password"):
        current = st.text_input("Contraseña actual", type="password")
        new = st.text_input("Nueva contraseña", type="password")
        confirm = st.text_input("Confirmar nueva contraseña", type="password")
        if st.form_submit_button("Cambiar contraseña", type="primary"):
            if new != confirm:
                st.error("**confirm_password**: Las contraseñas no coinciden")
            else:
                try:
                    run(auth.change_password(current, new))
                    st.success("Contraseña actualizada correctamente.")
                except AppError as e:
                    show_error(e)


PAGES = {
    "dashboard": render_dashboard,
    "bookings": render_bookings,
    "expenses": render_expenses,
    "reminders": render_reminders,
    "users": render_users,
    "change_password": render_change_password,
}


# ============================================================
# NAVEGACIÓN
# ============================================================
user = auth.current_session()
if user is None:
    render_login()
else:
    with st.sidebar:
        st.header("🏠 Alquileres")
        st.caption(f"{user.name} · {translate(ROLE_LABELS, user.role)}")
        views = auth.allowed_views()
        default = auth.default_view()
        view = st.radio(
            "Secciones", views,
            index=views.index(default) if default in views else 0,
            format_func=lambda v: translate(VIEW_LABELS, v),
            key="nav_view",
        )
        st.divider()
        if st.button("Cerrar sesión", key="logout"):
            auth.logout()
            st.session_state.pop("nav_view", None)
            st.rerun()

    decision = auth.authorize(view)
    if not decision.allowed:
        view = decision.redirect_to
    if view == LOGIN_VIEW:
        render_login()
    else:
        PAGES[view]()
