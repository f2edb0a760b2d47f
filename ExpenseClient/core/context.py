"""Application context owning the session and every component keyed by it.

Components never reach for a global session. They receive the context's
:class:`SessionStore` and listen to its ``sessionChanged`` signal, so signing
out empties their caches and signing in triggers their first load.
"""
import logging
from typing import Callable, Optional

import requests

from .auth import AuthManager
from .service import ExpenseService
from .session import SessionStore, SessionStorage, Route
from .sync import ExpenseSyncController
from ..data.data import AnalyticsAggregator
from ..ui.actions import signals


class AppContext:
    """Creates and wires the client components.

    Args:
        storage: Session storage. Defaults to the user settings ini file.
        http: Optional preconfigured :class:`requests.Session` for the remote store.
        confirm_delete: Gate asked before an expense is deleted.
        confirm_account: Gate asked before the account is deleted.
    """

    def __init__(self, storage: Optional[SessionStorage] = None, http: Optional[requests.Session] = None,
                 confirm_delete: Optional[Callable[[int], bool]] = None,
                 confirm_account: Optional[Callable[[str], bool]] = None) -> None:
        self.session = SessionStore(storage)
        self.api = ExpenseService(credential_provider=self._credential, http=http)

        self.auth = AuthManager(self.session, self.api, confirm=confirm_account)
        self.sync = ExpenseSyncController(self.session, self.api, confirm=confirm_delete)
        self.analytics = AnalyticsAggregator(self.session, self.api)

    def _credential(self) -> Optional[str]:
        return self.session.credential

    def start(self) -> Route:
        """Restore the persisted session and navigate to the first view.

        Returns:
            Route: The route navigated to.
        """
        self.session.restore()
        route = self.session.guard(Route.Dashboard)
        logging.debug(f'Starting at {route}')
        signals.navigationRequested.emit(route.value)
        return route

    def teardown(self) -> None:
        """Drop the cached data and close the transport. The persisted session is kept."""
        self.sync.clear()
        self.analytics.clear()
        self.api.close()
