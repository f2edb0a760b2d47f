"""Session lifecycle: who is signed in, persisted across restarts.

:class:`SessionStore` is the single authority for the active :class:`Session`.
It persists the credential and the profile through :class:`SessionStorage`,
restores them on start without contacting the server, and gates navigation
between public and protected routes.

Restored credentials are trusted as-is; nothing revalidates them against the
remote store.
"""
import enum
import json
import logging
import pathlib
from typing import Any, Dict, Optional

from PySide6 import QtCore

from .models import Session
from ..status import status
from ..ui.actions import signals

TOKEN_KEY = 'session/token'
USER_DATA_KEY = 'session/userData'


class Route(enum.StrEnum):
    """Navigation targets known to the session gate."""
    Login = '/login'
    Signup = '/signup'
    Dashboard = '/dashboard'
    Analytics = '/analytics'
    Settings = '/settings'


PUBLIC_ROUTES = (Route.Login, Route.Signup)
LANDING_ROUTE = Route.Dashboard
ENTRY_ROUTE = Route.Login


class SessionStorage:
    """Durable key-value storage for the session, backed by an ini-format QSettings file.

    Args:
        path: The ini file. Defaults to ``settings.usersettings_path``.
    """

    def __init__(self, path: Optional[pathlib.Path] = None) -> None:
        if path is None:
            from ..settings import lib
            path = lib.settings.usersettings_path
        self.path = pathlib.Path(path)
        self._settings = QtCore.QSettings(str(self.path), QtCore.QSettings.IniFormat)

    def read_token(self) -> Optional[str]:
        v = self._settings.value(TOKEN_KEY, None)
        if v is None or v == '':
            return None
        return str(v)

    def read_profile(self) -> Dict[str, Any]:
        """Return the persisted profile, or an empty dict if it is absent or corrupt."""
        raw = self._settings.value(USER_DATA_KEY, None)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as ex:
            logging.warning(f'Ignoring corrupt session profile in {self.path}: {ex}')
            return {}
        if not isinstance(data, dict):
            logging.warning(f'Ignoring session profile in {self.path}: expected an object, got {type(data)}')
            return {}
        return data

    def write(self, token: str, profile: Optional[Dict[str, Any]] = None) -> None:
        self._settings.setValue(TOKEN_KEY, token)
        if profile is not None:
            self._settings.setValue(USER_DATA_KEY, json.dumps(profile))
        self._settings.sync()

    def write_profile(self, profile: Dict[str, Any]) -> None:
        self._settings.setValue(USER_DATA_KEY, json.dumps(profile))
        self._settings.sync()

    def clear(self) -> None:
        self._settings.remove(TOKEN_KEY)
        self._settings.remove(USER_DATA_KEY)
        self._settings.sync()


class SessionStore(QtCore.QObject):
    """Owns the active session.

    States are unauthenticated (``session is None``) and authenticated.
    :meth:`restore` and :meth:`login` authenticate; only :meth:`logout` leaves.

    Signals:
        sessionChanged (object): Emitted with the new :class:`Session`, or None after logout.
    """
    sessionChanged = QtCore.Signal(object)

    def __init__(self, storage: Optional[SessionStorage] = None, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.storage = storage or SessionStorage()
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def credential(self) -> Optional[str]:
        return self._session.credential if self._session else None

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id if self._session else None

    def restore(self) -> Optional[Session]:
        """Activate the persisted session, if a credential was stored.

        Never contacts the remote store. A corrupt profile is treated as absent.
        """
        token = self.storage.read_token()
        if not token:
            logging.debug('No persisted session found.')
            return None

        self._session = Session.from_profile(token, self.storage.read_profile())
        logging.debug(f'Restored session for user "{self._session.user_id}".')
        self.sessionChanged.emit(self._session)
        return self._session

    def login(self, credential: str, profile: Optional[Dict[str, Any]] = None) -> Session:
        """Persist and activate a session, then navigate to the landing view.

        Only called after the remote store accepted the user's credentials.

        Raises:
            status.InvalidInputException: If credential is empty.
        """
        if not credential:
            raise status.InvalidInputException('Cannot sign in without a credential.')

        session = Session.from_profile(credential, profile)
        self.storage.write(credential, session.profile())
        self._session = session
        logging.debug(f'Signed in as user "{session.user_id}".')

        self.sessionChanged.emit(session)
        signals.navigationRequested.emit(LANDING_ROUTE.value)
        return session

    def logout(self) -> None:
        """Clear persisted data, deactivate the session and navigate to the entry view.

        Safe to call when already signed out.
        """
        self.storage.clear()
        was_authenticated = self._session is not None
        self._session = None

        if was_authenticated:
            logging.debug('Signed out.')
            self.sessionChanged.emit(None)
        signals.navigationRequested.emit(ENTRY_ROUTE.value)

    def update_profile(self, **fields: Any) -> Optional[Session]:
        """Merge profile fields into the active session and persist them."""
        if not self._session:
            logging.debug('update_profile called without an active session.')
            return None

        self._session = self._session.with_profile(**fields)
        self.storage.write_profile(self._session.profile())
        self.sessionChanged.emit(self._session)
        return self._session

    def guard(self, route: str) -> Route:
        """Return the route the user may actually see when asking for ``route``."""
        route = Route(route)
        if route in PUBLIC_ROUTES:
            return LANDING_ROUTE if self.is_authenticated else route
        return route if self.is_authenticated else ENTRY_ROUTE
