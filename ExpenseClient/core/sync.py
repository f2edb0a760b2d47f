"""Expense list synchronization with the remote store.

The cached list and total are read-only copies of server state. Mutations are
never applied locally: every successful create or delete is followed by a full
:meth:`ExpenseSyncController.load_all`, so the list shown after a mutation's
round trip always matches the store. The cost is one extra request per
mutation, and the old list stays visible while that request runs.

The list and the total come from two independent requests. Each is replaced
only by its own latest successful fetch.
"""
import logging
from typing import Any, Callable, List, Optional

from PySide6 import QtCore

from . import service
from .models import Category, ExpenseRecord, is_amount
from .session import SessionStore
from ..status import status
from ..ui.actions import signals


class ExpenseSyncController(QtCore.QObject):
    """Keeps the expense list and total of the signed-in user in sync with the store.

    Every operation needs a user id from the :class:`SessionStore`. Without one
    the controller makes no remote call and waits for the session to change.

    Args:
        session: The session store providing the user id.
        api: The remote store client.
        confirm: Gate asked before deleting; receives the record id and returns True to proceed.
    """
    expensesChanged = QtCore.Signal(list)  # List[ExpenseRecord]
    totalChanged = QtCore.Signal(float)
    loadingChanged = QtCore.Signal(bool)
    submittingChanged = QtCore.Signal(bool)

    createFinished = QtCore.Signal()
    createFailed = QtCore.Signal(str)
    deleteFinished = QtCore.Signal(int)
    deleteFailed = QtCore.Signal(int, str)

    def __init__(self, session: SessionStore, api: 'service.ExpenseService',
                 confirm: Optional[Callable[[int], bool]] = None,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.api = api
        self.confirm = confirm

        self.expenses: List[ExpenseRecord] = []
        self.total: float = 0.0
        self.loading: bool = False
        self.submitting: bool = False

        self._user_id: Optional[str] = None
        self._connect_signals()

    def _connect_signals(self) -> None:
        self.session.sessionChanged.connect(self.on_session_changed)

    @QtCore.Slot(object)
    def on_session_changed(self, session: Any) -> None:
        """Load for a newly available identity; drop the caches when signed out."""
        user_id = session.user_id if session else None
        if user_id == self._user_id:
            return
        self._user_id = user_id

        self.clear()
        if user_id:
            self.load_all()

    def _set_loading(self, v: bool) -> None:
        self.loading = v
        self.loadingChanged.emit(v)

    def _set_submitting(self, v: bool) -> None:
        self.submitting = v
        self.submittingChanged.emit(v)

    def _is_stale(self, user_id: str) -> bool:
        # The session may change while a request is in flight
        if self.session.user_id != user_id:
            logging.debug(f'Dropping the response for user "{user_id}", the session has changed.')
            return True
        return False

    def clear(self) -> None:
        """Empty the caches."""
        self.expenses = []
        self.total = 0.0
        self.expensesChanged.emit([])
        self.totalChanged.emit(0.0)

    def load_all(self) -> bool:
        """Fetch the expense list and the total.

        Responses arriving after the session changed are dropped.

        Returns:
            bool: True if both fetches succeeded.
        """
        user_id = self.session.user_id
        if not user_id:
            logging.debug('load_all: no user id yet, waiting for a session.')
            return False

        ok = True
        self._set_loading(True)
        try:
            expenses = None
            try:
                expenses = service.start_asynchronous(self.api.fetch_expenses, user_id)
            except status.BaseStatusException as ex:
                logging.debug(f'Keeping {len(self.expenses)} cached expenses: {ex}')
                ok = False

            if self._is_stale(user_id):
                return False
            if expenses is not None:
                self.expenses = list(expenses)
                self.expensesChanged.emit(list(self.expenses))

            try:
                total = service.start_asynchronous(self.api.fetch_total, user_id)
            except status.BaseStatusException as ex:
                logging.debug(f'Keeping cached total: {ex}')
                ok = False
            else:
                if self._is_stale(user_id):
                    return False
                self.total = total
                self.totalChanged.emit(total)
        finally:
            self._set_loading(False)

        return ok

    def create(self, name: str, amount: Any, category: Any) -> bool:
        """Create an expense remotely, then reload the list and total.

        Only the amount is validated here; parsing user input is the caller's job.

        Returns:
            bool: True if the store accepted the expense.
        """
        user_id = self.session.user_id
        if not user_id:
            logging.debug('create: no user id, ignoring.')
            return False
        if self.submitting:
            logging.debug('create: a submission is already in flight, ignoring.')
            return False

        if not is_amount(amount):
            ex = status.InvalidInputException(f'Amount must be a number, got "{amount}".')
            self.createFailed.emit(ex.notice)
            return False

        self._set_submitting(True)
        try:
            service.start_asynchronous(
                self.api.create_expense, user_id, name, amount, Category.parse(category)
            )
        except status.BaseStatusException as ex:
            self.createFailed.emit(ex.notice)
            return False
        finally:
            self._set_submitting(False)

        logging.debug(f'Created expense "{name}" ({amount}).')
        self.load_all()
        self.createFinished.emit()
        signals.notice.emit('Expense added.')
        return True

    def delete(self, record_id: int) -> bool:
        """Delete an expense after confirmation, then reload the list and total.

        Returns:
            bool: True if the store deleted the expense.
        """
        if not self.session.user_id:
            logging.debug('delete: no user id, ignoring.')
            return False
        if not self.confirm:
            logging.warning('delete: no confirmation gate configured, refusing to delete.')
            return False
        if not self.confirm(record_id):
            logging.debug(f'delete: deletion of {record_id} was not confirmed.')
            return False

        try:
            service.start_asynchronous(self.api.delete_expense, record_id)
        except status.BaseStatusException as ex:
            self.deleteFailed.emit(record_id, ex.notice)
            return False

        logging.debug(f'Deleted expense {record_id}.')
        self.load_all()
        self.deleteFinished.emit(record_id)
        signals.notice.emit('Expense deleted.')
        return True
