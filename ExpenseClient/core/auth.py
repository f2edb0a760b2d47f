"""
Account flows against the remote store: sign-in, sign-up, profile update and account deletion.

Every flow validates its input locally first, runs the remote call through
:func:`ExpenseClient.core.service.start_asynchronous`, and on failure leaves the
session untouched. Failures are reported as transient notices by the status
exceptions themselves; the flows only return ``True`` or ``False``.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional

from PySide6 import QtCore

from . import service
from .session import SessionStore, Route
from ..status import status
from ..ui.actions import signals

# Marker credential used when the store's login response carries no token
SESSION_MARKER = 'authenticated'

DEFAULT_MONTHLY_LIMIT = 10000
MAX_MONTHLY_LIMIT = 100_000_000

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MOBILE_RE = re.compile(r'^[0-9]{7,15}$')


def validate_profile(user_name: str, email: str, mobile_number: str, monthly_limit: Any) -> Dict[str, Any]:
    """Validate and normalise profile fields.

    Returns:
        dict: The payload keys used by the remote store.

    Raises:
        status.InvalidInputException: On the first invalid field.
    """
    user_name = (user_name or '').strip()
    if not 3 <= len(user_name) <= 30:
        raise status.InvalidInputException('Username must be 3-30 characters.')

    email = (email or '').strip()
    if len(email) > 255 or not EMAIL_RE.match(email):
        raise status.InvalidInputException('Enter a valid email address.')

    mobile_number = (mobile_number or '').strip()
    if not MOBILE_RE.match(mobile_number):
        raise status.InvalidInputException('Mobile number must be 7-15 digits.')

    if isinstance(monthly_limit, bool) or not isinstance(monthly_limit, int):
        raise status.InvalidInputException('Monthly limit must be a whole number.')
    if not 0 < monthly_limit <= MAX_MONTHLY_LIMIT:
        raise status.InvalidInputException(f'Monthly limit must be between 1 and {MAX_MONTHLY_LIMIT}.')

    return {
        'userName': user_name,
        'email': email,
        'mobileNumber': mobile_number,
        'monthlyLimit': monthly_limit,
    }


def validate_credentials(email: str, password: str) -> None:
    if not email or not password:
        raise status.InvalidInputException('Email and password are required.')


def validate_password(password: str) -> str:
    if not password or not 6 <= len(password) <= 100:
        raise status.InvalidInputException('Password must be 6-100 characters.')
    return password


class AuthManager(QtCore.QObject):
    """Runs account flows and hands successful sign-ins to the :class:`SessionStore`.

    Args:
        session: The session store to activate or clear.
        api: The remote store client.
        confirm: Gate asked before irreversible actions; receives a short description.

    Signals:
        busyChanged (bool): A sign-in or sign-up request started or finished.
    """
    busyChanged = QtCore.Signal(bool)

    def __init__(self, session: SessionStore, api: 'service.ExpenseService',
                 confirm: Optional[Callable[[str], bool]] = None,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.api = api
        self.confirm = confirm
        self.busy: bool = False

    def _set_busy(self, v: bool) -> None:
        self.busy = v
        self.busyChanged.emit(v)

    def sign_in(self, email: str, password: str) -> bool:
        """Authenticate with the remote store and activate the session."""
        email = (email or '').strip()
        try:
            validate_credentials(email, password)
        except status.InvalidInputException:
            return False

        self._set_busy(True)
        try:
            data = service.start_asynchronous(self.api.authenticate, email, password)
        except status.BaseStatusException as ex:
            logging.debug(f'Sign-in failed: {ex}')
            return False
        finally:
            self._set_busy(False)

        credential = data.get('token') or SESSION_MARKER
        self.session.login(credential, {
            'user_id': data.get('id'),
            'username': data.get('userName'),
            'email': data.get('email', email),
        })
        signals.notice.emit('Welcome back!')
        return True

    def sign_up(self, user_name: str, email: str, mobile_number: str, password: str,
                monthly_limit: Any = DEFAULT_MONTHLY_LIMIT) -> bool:
        """Register a new account, then send the user to the sign-in view."""
        try:
            payload = validate_profile(user_name, email, mobile_number, monthly_limit)
            payload['password'] = validate_password(password)
        except status.InvalidInputException:
            return False

        self._set_busy(True)
        try:
            service.start_asynchronous(self.api.register, payload)
        except status.BaseStatusException:
            return False
        finally:
            self._set_busy(False)

        signals.notice.emit('Account created successfully! Please sign in.')
        signals.navigationRequested.emit(Route.Login.value)
        return True

    def update_profile(self, user_name: str, email: str, mobile_number: str, monthly_limit: Any) -> bool:
        """Save profile changes remotely and mirror them into the session."""
        if not self.session.user_id:
            logging.debug('update_profile called without a user id.')
            return False
        try:
            payload = validate_profile(user_name, email, mobile_number, monthly_limit)
        except status.InvalidInputException:
            return False

        try:
            service.start_asynchronous(self.api.update_user, self.session.user_id, payload)
        except status.BaseStatusException:
            return False

        self.session.update_profile(username=payload['userName'], email=payload['email'])
        signals.notice.emit('Profile updated.')
        return True

    def delete_account(self) -> bool:
        """Delete the account after confirmation, then sign out."""
        if not self.session.user_id:
            logging.debug('delete_account called without a user id.')
            return False
        if not self.confirm or not self.confirm('Delete your account? This cannot be undone.'):
            logging.debug('Account deletion was not confirmed.')
            return False

        try:
            service.start_asynchronous(self.api.delete_user, self.session.user_id)
        except status.BaseStatusException:
            return False

        self.session.logout()
        signals.notice.emit('Account deleted.')
        return True

    def sign_out(self) -> None:
        self.session.logout()
