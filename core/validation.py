"""
Validazione dei dati in ingresso (form prenotazione, spesa, manager, password).

Ogni funzione raccoglie TUTTI gli errori e solleva un unico ValidationError
con un messaggio per campo, pronto da mostrare accanto al campo nel form.
Restituisce il dizionario normalizzato (date come `date`, numeri come numeri).
"""

import re
from datetime import date, datetime
from typing import Dict, Iterable, Optional

from config import MIN_PASSWORD_LENGTH, PROPERTIES
from core.errors import ValidationError
from core.models import (
    BOOKING_STATUSES, PAYMENT_STATUSES, PAYMENT_METHODS,
    EXPENSE_CATEGORIES, EXPENSE_STATUSES,
)

ISO_DATE_FORMAT = "%Y-%m-%d"
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

BOOKING_FIELDS = (
    "guest_name", "guest_email", "guest_phone", "check_in", "check_out",
    "guests", "total_price", "paid_amount", "payment_status", "payment_method",
    "status", "property_name", "notes",
)
EXPENSE_FIELDS = (
    "date", "category", "description", "amount", "payment_method",
    "vendor", "status", "property_name",
)


def parse_iso_date(value, field_name: str = "date") -> date:
    """Converte 'yyyy-MM-dd' (o una date) in date. Altrimenti ValidationError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip() if value is not None else ""
    if not ISO_DATE_RE.fullmatch(s):
        raise ValidationError({field_name: "Fecha no válida (formato aaaa-mm-dd)"})
    try:
        return datetime.strptime(s, ISO_DATE_FORMAT).date()
    except ValueError:
        raise ValidationError({field_name: "Fecha no válida (formato aaaa-mm-dd)"})


def _is_blank(value) -> bool:
    return value is None or str(value).strip() == ""


def _date_field(data: dict, key: str, required_msg: str, errors: Dict[str, str]) -> Optional[date]:
    if _is_blank(data.get(key)):
        errors[key] = required_msg
        return None
    try:
        return parse_iso_date(data[key], key)
    except ValidationError as e:
        errors.update(e.errors)
        return None


def _number_field(data: dict, key: str, cast, errors: Dict[str, str]):
    val = data.get(key)
    if _is_blank(val) or isinstance(val, bool):
        errors[key] = "Debe ser un número"
        return None
    try:
        return cast(val)
    except (ValueError, TypeError):
        errors[key] = "Debe ser un número"
        return None


def _choice_field(data: dict, key: str, choices: Iterable[str], errors: Dict[str, str]):
    val = data.get(key)
    if val not in choices:
        errors[key] = f"Valor no válido: {val!r}"
    return val


def validate_booking(data: dict) -> dict:
    """Valida un record prenotazione completo (creazione o merge di un update)."""
    errors: Dict[str, str] = {}

    guest_name = str(data.get("guest_name") or "").strip()
    if not guest_name:
        errors["guest_name"] = "El nombre del huésped es obligatorio"
    guest_email = str(data.get("guest_email") or "").strip()
    if not guest_email:
        errors["guest_email"] = "El correo electrónico es obligatorio"
    elif not EMAIL_RE.match(guest_email):
        errors["guest_email"] = "El formato del correo electrónico no es válido"
    property_name = str(data.get("property_name") or "").strip()
    if not property_name:
        errors["property_name"] = "La propiedad es obligatoria"
    elif property_name not in PROPERTIES:
        errors["property_name"] = f"Propiedad desconocida: {property_name}"

    check_in = _date_field(data, "check_in", "La fecha de entrada es obligatoria", errors)
    check_out = _date_field(data, "check_out", "La fecha de salida es obligatoria", errors)
    if check_in and check_out and check_out <= check_in:
        errors["check_out"] = "La salida debe ser después de la entrada"

    guests = _number_field(data, "guests", int, errors)
    if guests is not None and guests < 1:
        errors["guests"] = "Se requiere al menos 1 huésped"
    total_price = _number_field(data, "total_price", float, errors)
    if total_price is not None and total_price < 0:
        errors["total_price"] = "El precio total debe ser positivo"
    paid_amount = _number_field(data, "paid_amount", float, errors)
    if paid_amount is not None and paid_amount < 0:
        errors["paid_amount"] = "El importe pagado debe ser positivo"

    payment_status = _choice_field(data, "payment_status", PAYMENT_STATUSES, errors)
    payment_method = _choice_field(data, "payment_method", PAYMENT_METHODS, errors)
    status = _choice_field(data, "status", BOOKING_STATUSES, errors)

    if errors:
        raise ValidationError(errors)

    return {
        "guest_name": guest_name,
        "guest_email": guest_email,
        "guest_phone": str(data.get("guest_phone") or "").strip(),
        "check_in": check_in,
        "check_out": check_out,
        "guests": guests,
        "total_price": total_price,
        "paid_amount": paid_amount,
        "payment_status": payment_status,
        "payment_method": payment_method,
        "status": status,
        "property_name": property_name,
        "notes": str(data.get("notes") or ""),
    }


def validate_expense(data: dict) -> dict:
    errors: Dict[str, str] = {}

    expense_date = _date_field(data, "date", "La fecha es obligatoria", errors)
    description = str(data.get("description") or "").strip()
    if not description:
        errors["description"] = "La descripción es obligatoria"
    vendor = str(data.get("vendor") or "").strip()
    if not vendor:
        errors["vendor"] = "El proveedor es obligatorio"
    amount = _number_field(data, "amount", float, errors)
    if amount is not None and amount <= 0:
        errors["amount"] = "La cantidad debe ser mayor que 0"

    category = _choice_field(data, "category", EXPENSE_CATEGORIES, errors)
    payment_method = _choice_field(data, "payment_method", PAYMENT_METHODS, errors)
    status = _choice_field(data, "status", EXPENSE_STATUSES, errors)
    # Vuota = spesa comune, divisa tra tutte le proprietà
    property_name = None if _is_blank(data.get("property_name")) else str(data["property_name"]).strip()
    if property_name is not None and property_name not in PROPERTIES:
        errors["property_name"] = f"Propiedad desconocida: {property_name}"

    if errors:
        raise ValidationError(errors)

    return {
        "date": expense_date,
        "category": category,
        "description": description,
        "amount": amount,
        "payment_method": payment_method,
        "vendor": vendor,
        "status": status,
        "property_name": property_name,
    }


def validate_manager(data: dict, taken_emails: Iterable[str] = (), require_password: bool = True) -> dict:
    """
    Valida nome, email (formato + unicità) e password di un manager.
    Con require_password=False una password vuota significa "non cambiarla".
    """
    errors: Dict[str, str] = {}

    name = str(data.get("name") or "").strip()
    if not name:
        errors["name"] = "El nombre es obligatorio"

    email = str(data.get("email") or "").strip()
    if not email:
        errors["email"] = "El correo electrónico es obligatorio"
    elif not EMAIL_RE.match(email):
        errors["email"] = "El formato del correo electrónico no es válido"
    elif email.lower() in {e.lower() for e in taken_emails}:
        errors["email"] = "Ya existe un usuario con este correo electrónico"

    password = data.get("password") or ""
    if require_password and not password:
        errors["password"] = "La contraseña es obligatoria"
    elif password and len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"

    if errors:
        raise ValidationError(errors)

    return {"name": name, "email": email, "password": password or None}


def validate_new_password(current: str, new: str) -> None:
    errors: Dict[str, str] = {}
    if not current:
        errors["current_password"] = "La contraseña actual es obligatoria"
    if not new:
        errors["new_password"] = "La nueva contraseña es obligatoria"
    elif len(new) < MIN_PASSWORD_LENGTH:
        errors["new_password"] = f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
    elif current and new == current:
        errors["new_password"] = "La nueva contraseña debe ser diferente a la actual"
    if errors:
        raise ValidationError(errors)
