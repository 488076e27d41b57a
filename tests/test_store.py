from datetime import date

import pytest

from conftest import booking_payload, expense_payload
from core.errors import Conflict, IncorrectCurrentPassword, NotFound, ValidationError
from core.security import verify_password


# ── Prenotazioni ─────────────────────────────────────────────────────────────

def test_list_bookings_filters(store, run):
    assert len(run(store.list_bookings())) == 5
    assert [b.id for b in run(store.list_bookings(status="checked_in"))] == ["3"]
    assert [b.id for b in run(store.list_bookings(payment_status="partial"))] == ["4"]
    assert [b.id for b in run(store.list_bookings(search="GARCIA"))] == ["2"]
    assert [b.id for b in run(store.list_bookings(search="david.j@"))] == ["3"]


def test_create_booking_assigns_next_id(store, run):
    created = run(store.create_booking(booking_payload()))
    assert created.id == "6"
    assert created.version == 1
    assert created.check_in == date(2026, 5, 1)
    assert created.nights == 3
    assert run(store.get_booking("6")).guest_name == "Ana López"


def test_create_booking_checkout_must_follow_checkin(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_booking(booking_payload(check_out="2026-05-01")))
    assert "check_out" in exc.value.errors
    assert len(run(store.list_bookings())) == 5


def test_create_booking_collects_all_errors(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_booking(booking_payload(guest_name="", guest_email="no-email", guests=0)))
    assert set(exc.value.errors) == {"guest_name", "guest_email", "guests"}


def test_update_booking_merges_patch(store, run):
    updated = run(store.update_booking("2", {"paid_amount": 980, "payment_status": "paid"}))
    assert updated.paid_amount == 980
    assert updated.payment_status == "paid"
    assert updated.guest_name == "Maria Garcia"
    assert updated.version == 2


def test_update_booking_rejects_invalid_dates(store, run):
    before = run(store.get_booking("1"))
    with pytest.raises(ValidationError):
        run(store.update_booking("1", {"check_out": before.check_in.isoformat()}))
    assert run(store.get_booking("1")) == before


def test_update_booking_version_conflict(store, run):
    run(store.update_booking("1", {"notes": "primo"}, expected_version=1))
    with pytest.raises(Conflict):
        run(store.update_booking("1", {"notes": "secondo"}, expected_version=1))
    assert run(store.get_booking("1")).notes == "primo"


def test_delete_unknown_booking(store, run):
    with pytest.raises(NotFound):
        run(store.delete_booking("99"))
    assert len(run(store.list_bookings())) == 5


def test_ids_never_reused(store, run):
    first = run(store.create_booking(booking_payload()))
    assert run(store.delete_booking(first.id)) == {"success": True}
    second = run(store.create_booking(booking_payload()))
    assert second.id != first.id
    with pytest.raises(NotFound):
        run(store.get_booking(first.id))


def test_returned_records_are_copies(store, run):
    booking = run(store.get_booking("1"))
    booking.guest_name = "Altro"
    assert run(store.get_booking("1")).guest_name == "John Smith"


# ── Spese ────────────────────────────────────────────────────────────────────

def test_list_expenses_filters(store, run):
    assert [e.id for e in run(store.list_expenses(category="Fees"))] == ["2"]
    assert {e.id for e in run(store.list_expenses(status="pending"))} == {"4", "5"}


def test_create_expense_amount_must_be_positive(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_expense(expense_payload(amount=0)))
    assert exc.value.errors == {"amount": "La cantidad debe ser mayor que 0"}


def test_create_expense_optional_property(store, run):
    shared = run(store.create_expense(expense_payload()))
    assert shared.property_name is None
    assigned = run(store.create_expense(expense_payload(property_name="Caiño")))
    assert assigned.property_name == "Caiño"
    assert assigned.id == "7"


def test_update_and_delete_expense(store, run):
    updated = run(store.update_expense("4", {"status": "paid"}, expected_version=1))
    assert updated.status == "paid"
    assert updated.amount == 280
    run(store.delete_expense("4"))
    with pytest.raises(NotFound):
        run(store.update_expense("4", {"status": "pending"}))


# ── Manager ──────────────────────────────────────────────────────────────────

def test_create_manager_hashes_password(store, run):
    m = run(store.create_manager({"name": "Lucía", "email": "lucia@example.com", "password": "segreta1"}))
    assert m.role == "manager"
    assert m.password_hash != "segreta1"
    assert verify_password("segreta1", m.password_hash)
    assert "password_hash" not in m.public_dict()


def test_create_manager_duplicate_email(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_manager({"name": "Copia", "email": "MANAGER@example.com", "password": "segreta1"}))
    assert "email" in exc.value.errors
    with pytest.raises(ValidationError):
        run(store.create_manager({"name": "Admin 2", "email": "admin@example.com", "password": "segreta1"}))


def test_create_manager_short_password(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_manager({"name": "Lucía", "email": "lucia@example.com", "password": "abc"}))
    assert "password" in exc.value.errors


def test_update_manager_keeps_password_when_blank(store, run):
    before = run(store.get_manager("1"))
    updated = run(store.update_manager("1", {"name": "Gestor Principal", "password": ""}))
    assert updated.name == "Gestor Principal"
    assert updated.email == before.email
    assert updated.password_hash == before.password_hash

    rotated = run(store.update_manager("1", {"password": "nuova123"}))
    assert verify_password("nuova123", rotated.password_hash)


def test_delete_manager(store, run):
    run(store.delete_manager("1"))
    assert run(store.list_managers()) == []
    assert store.find_manager_by_email("manager@example.com") is None


def test_change_manager_password(store, run):
    with pytest.raises(IncorrectCurrentPassword):
        run(store.change_manager_password("manager@example.com", "sbagliata", "nuova123"))
    assert verify_password("manager123", store.find_manager_by_email("manager@example.com").password_hash)

    assert run(store.change_manager_password("manager@example.com", "manager123", "nuova123")) == {"success": True}
    assert verify_password("nuova123", store.find_manager_by_email("manager@example.com").password_hash)


def test_change_password_unknown_manager(store, run):
    with pytest.raises(NotFound):
        run(store.change_manager_password("nessuno@example.com", "x", "nuova123"))


@pytest.mark.parametrize("property_name", ["Caino", "Casa Nueva"])
def test_expense_unknown_property_rejected(store, run, property_name):
    with pytest.raises(ValidationError) as exc:
        run(store.create_expense(expense_payload(property_name=property_name)))
    assert "property_name" in exc.value.errors
    with pytest.raises(ValidationError):
        run(store.update_expense("1", {"property_name": property_name}))
    assert run(store.get_expense("1")).property_name is None


def test_booking_unknown_property_rejected(store, run):
    with pytest.raises(ValidationError) as exc:
        run(store.create_booking(booking_payload(property_name="Caino")))
    assert "property_name" in exc.value.errors


@pytest.mark.parametrize("check_in", ["2026-5-1", "2026-05-01T00:00", " 20260501"])
def test_booking_dates_must_be_iso(store, run, check_in):
    with pytest.raises(ValidationError) as exc:
        run(store.create_booking(booking_payload(check_in=check_in)))
    assert exc.value.errors["check_in"] == "Fecha no válida (formato aaaa-mm-dd)"
