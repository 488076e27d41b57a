"""
Errori applicativi. Ogni tipo ha un `code` stabile, così la UI può decidere
come mostrarlo (messaggio accanto al campo, stato "impossibile caricare", ...).
"""

from typing import Dict, Optional


class AppError(Exception):
    code = "error"
    default_message = "Se produjo un error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    code = "not_found"
    default_message = "Elemento no encontrado"


class ValidationError(AppError):
    """Uno o più campi non validi. `errors` mappa campo → messaggio."""
    code = "validation_error"
    default_message = "Datos no válidos"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None and self.errors:
            message = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(message)


class InvalidCredentials(AppError):
    code = "invalid_credentials"
    default_message = "Correo electrónico o contraseña incorrectos"


class IncorrectCurrentPassword(AppError):
    code = "incorrect_current_password"
    default_message = "La contraseña actual es incorrecta"


class Unauthenticated(AppError):
    code = "unauthenticated"
    default_message = "Debes iniciar sesión"


class Unauthorized(AppError):
    code = "unauthorized"
    default_message = "No tienes permiso para acceder a esta sección"


class Conflict(AppError):
    """Il record è stato modificato da qualcun altro dopo la lettura."""
    code = "conflict"
    default_message = "El registro fue modificado por otro usuario"
