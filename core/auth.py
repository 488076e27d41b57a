"""
Autenticazione e sessione.

Stati: LoggedOut / LoggedIn(user). La sessione vive lato client: in Streamlit
è st.session_state, nei test un semplice dict. L'utente viene salvato come
JSON {email, name, role} sotto config.SESSION_KEY, come faceva il localStorage
della versione web.

I permessi arrivano da un'unica tabella (config.ACCESS_RULES): chi non ha il
ruolo giusto viene rimandato alla pagina di default del proprio ruolo.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import List, MutableMapping, Optional

from config import ACCESS_RULES, DEFAULT_VIEW, SESSION_KEY
from core.errors import InvalidCredentials, Unauthenticated, Unauthorized
from core.models import SessionUser, USER_ROLES
from core.security import verify_password
from core.store import EntityStore

logger = logging.getLogger(__name__)

LOGGED_OUT = "logged_out"
LOGGED_IN = "logged_in"
LOGIN_VIEW = "login"


@dataclass
class LoginResult:
    success: bool
    error: Optional[str] = None     # codice errore (es. "invalid_credentials")
    message: Optional[str] = None   # messaggio da mostrare all'utente


@dataclass
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None


class AuthSession:

    def __init__(self, store: EntityStore, storage: MutableMapping):
        self.store = store
        self.storage = storage
        self._user: Optional[SessionUser] = self._restore()

    def _restore(self) -> Optional[SessionUser]:
        raw = self.storage.get(SESSION_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            user = SessionUser(email=data["email"], name=data["name"], role=data["role"])
        except (TypeError, ValueError, KeyError):
            logger.warning("Sessione salvata non leggibile, la ignoro")
            self.storage.pop(SESSION_KEY, None)
            return None
        if user.role not in USER_ROLES or not self._account_exists(user):
            logger.warning("Sessione di %s non più valida, la chiudo", user.email)
            self.storage.pop(SESSION_KEY, None)
            return None
        return user

    def _account_exists(self, user: SessionUser) -> bool:
        """L'account della sessione esiste ancora, con la stessa email e lo stesso ruolo."""
        if user.role == "admin":
            return user.email.lower() == self.store.admin.email.lower()
        manager = self.store.find_manager_by_email(user.email)
        return manager is not None and manager.role == user.role

    @property
    def state(self) -> str:
        return LOGGED_IN if self._user else LOGGED_OUT

    def current_session(self) -> Optional[SessionUser]:
        return self._user

    async def login(self, email: str, password: str) -> LoginResult:
        await self.store.latency()
        email = (email or "").strip()
        user = None

        admin = self.store.admin
        if email.lower() == admin.email.lower():
            if verify_password(password, admin.password_hash):
                user = SessionUser(email=admin.email, name=admin.name, role="admin")
        else:
            manager = self.store.find_manager_by_email(email)
            if manager and verify_password(password, manager.password_hash):
                user = SessionUser(email=manager.email, name=manager.name, role=manager.role)

        if user is None:
            logger.warning("Login fallito per %s", email or "<vuoto>")
            err = InvalidCredentials()
            return LoginResult(success=False, error=err.code, message=err.message)

        self._user = user
        self.storage[SESSION_KEY] = json.dumps(asdict(user))
        logger.info("Login di %s (%s)", user.email, user.role)
        return LoginResult(success=True)

    def logout(self) -> None:
        if self._user:
            logger.info("Logout di %s", self._user.email)
        self._user = None
        self.storage.pop(SESSION_KEY, None)

    async def change_password(self, current_password: str, new_password: str) -> None:
        """
        Admin: verifica e aggiorna l'hash dell'account admin.
        Manager: delega allo store (stessa verifica, cercato per email).
        """
        if self._user is None:
            raise Unauthenticated()
        if not self._account_exists(self._user):
            self.logout()
            raise Unauthenticated()
        if self._user.role == "admin":
            await self.store.latency()
            self.store.set_admin_password(current_password, new_password)
        else:
            await self.store.change_manager_password(self._user.email, current_password, new_password)

    # ── Permessi ────────────────────────────────────────────────────────────

    def allowed_roles(self, view: str):
        return ACCESS_RULES.get(view, USER_ROLES)

    def can_access(self, view: str) -> bool:
        return self._user is not None and self._user.role in self.allowed_roles(view)

    def default_view(self) -> str:
        if self._user is None:
            return LOGIN_VIEW
        return DEFAULT_VIEW.get(self._user.role, "bookings")

    def authorize(self, view: str) -> AccessDecision:
        if self._user is None:
            return AccessDecision(allowed=False, redirect_to=LOGIN_VIEW)
        if self.can_access(view):
            return AccessDecision(allowed=True)
        logger.info("Accesso a '%s' negato a %s (%s)", view, self._user.email, self._user.role)
        return AccessDecision(allowed=False, redirect_to=self.default_view())

    def require(self, view: str) -> SessionUser:
        """Per le operazioni: solleva invece di reindirizzare."""
        if self._user is None:
            raise Unauthenticated()
        if not self.can_access(view):
            raise Unauthorized()
        return self._user

    def allowed_views(self) -> List[str]:
        return [view for view in ACCESS_RULES if self.can_access(view)]

