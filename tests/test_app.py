import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest


@pytest.fixture(autouse=True)
def fresh_store():
    """Lo store è condiviso nel processo (st.cache_resource): si riparte dai dati demo."""
    st.cache_resource.clear()
    yield
    st.cache_resource.clear()


def open_app() -> AppTest:
    return AppTest.from_file("../app.py", default_timeout=30).run()


def login(at: AppTest, email: str, password: str) -> AppTest:
    at.text_input(key="login_email").input(email)
    at.text_input(key="login_password").input(password)
    return at.button(key="login_submit").click().run()


def test_shows_login_form():
    at = open_app()
    assert not at.exception
    assert at.subheader[0].value == "Iniciar sesión"


def test_wrong_password_shows_error():
    at = open_app()
    login(at, "admin@example.com", "sbagliata")
    assert not at.exception
    assert at.error[0].value == "Correo electrónico o contraseña incorrectos"
    assert "user" not in at.session_state


def test_admin_lands_on_dashboard():
    at = login(open_app(), "admin@example.com", "admin123")
    assert not at.exception
    assert "Panel de Control" in [h.value for h in at.header]


def test_manager_lands_on_bookings():
    at = login(open_app(), "manager@example.com", "manager123")
    assert not at.exception
    headers = [h.value for h in at.header]
    assert "Reservas" in headers
    assert "Panel de Control" not in headers


def test_manager_created_by_admin_can_log_in_from_another_session():
    admin = login(open_app(), "admin@example.com", "admin123")
    admin.radio(key="nav_view").set_value("users").run()
    admin.text_input(key="nm_name").input("Lucía Pérez")
    admin.text_input(key="nm_email").input("lucia@example.com")
    admin.text_input(key="nm_password").input("segreta1")
    next(b for b in admin.button if b.label == "Crear gestor").click().run()
    assert not admin.exception
    assert "Gestor lucia@example.com creado." in [s.value for s in admin.success]

    other = login(open_app(), "lucia@example.com", "segreta1")
    assert not other.exception
    assert "Reservas" in [h.value for h in other.header]
