"""
Configurazione centralizzata - modifica qui proprietà, account admin e permessi.
"""

import os

# Livello di log (INFO in produzione, DEBUG per indagini)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Ritardo artificiale delle chiamate allo store (simula la futura API REST)
API_DELAY_MS = int(os.getenv("API_DELAY_MS", "50"))

# Proprietà gestite, nell'ordine in cui compaiono nel pannello
PROPERTIES = ["Caiño", "Loureira", "Treixadura"]

# Unico account amministratore, fuori dalla collezione dei manager.
# La password viene trasformata in hash alla creazione dello store.
ADMIN_ACCOUNT = {
    "id": "admin",
    "email": "admin@example.com",
    "name": "Admin User",
    "password": "admin123",
}

# Chiave con cui la sessione viene salvata lato client
SESSION_KEY = "user"

# Hash password
PBKDF2_ITERATIONS = int(os.getenv("PBKDF2_ITERATIONS", "120000"))
MIN_PASSWORD_LENGTH = 6

# Promemoria pagamento: 5 giorni prima del check-in, visibili per ±10 giorni
REMINDER_DAYS_BEFORE_CHECKIN = 5
REMINDER_WINDOW_DAYS = 10

# Pagine/operazioni → ruoli ammessi. Nomi non presenti = qualsiasi utente autenticato.
ACCESS_RULES = {
    "dashboard":       ("admin",),
    "bookings":        ("admin", "manager"),
    "expenses":        ("admin",),
    "reminders":       ("admin",),
    "users":           ("admin",),
    "change_password": ("admin", "manager"),
}

# Pagina di atterraggio per ruolo (anche destinazione dei redirect)
DEFAULT_VIEW = {
    "admin":   "dashboard",
    "manager": "bookings",
}
