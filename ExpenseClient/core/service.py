"""Remote expense store integration.

:class:`ExpenseService` wraps a :class:`requests.Session` and exposes one blocking
method per remote call. Failures are converted into the status exceptions of
:mod:`ExpenseClient.status.status` right where the call is made.

:func:`start_asynchronous` runs any of those blocking methods on a worker thread
while the calling flow waits in a local Qt event loop, so the UI keeps processing
events until the response arrives.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

import requests
from PySide6 import QtCore

from .models import ExpenseRecord
from ..status import status

DEFAULT_TIMEOUT: float = 30.0

DUPLICATE_RE = re.compile(r'Duplicate entry', re.IGNORECASE)
DUPLICATE_USER_MESSAGE = 'User already exists. Try a different username or email.'
SIGNUP_FAILED_MESSAGE = 'Failed to create account. Please try again.'


def get_timeout() -> float:
    """Return the configured request timeout in seconds."""
    from ..settings import lib
    if not lib.settings:
        return DEFAULT_TIMEOUT
    return float(lib.settings.get_section('api').get('timeout', DEFAULT_TIMEOUT))


class AsyncWorker(QtCore.QThread):
    """
    Worker thread running one blocking function exactly once.

    The outcome is kept on the worker: ``result`` on success, ``error`` on failure.
    No retries are attempted; retrying is always left to the user.
    """

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs

        self.result: Any = None
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            self.result = self.func(*self.args, **self.kwargs)
        except Exception as ex:
            self.error = ex


def start_asynchronous(func: Callable[..., Any], *args: Any, total_timeout: Optional[float] = None,
                       **kwargs: Any) -> Any:
    """
    Run a blocking function on a worker thread and wait for it in a local event loop.

    Args:
        func: The blocking function to run.
        *args, **kwargs: Arguments passed to func.
        total_timeout: Seconds to wait before giving up. Defaults to the configured api timeout
            plus a small grace period.

    Returns:
        The result of the function.

    Raises:
        status.BaseStatusException: Re-raised as-is when the function raised one.
        status.ServiceUnavailableException: If the operation timed out.
        status.UnknownException: For any other error raised by the function.
        RuntimeError: If no Qt application instance exists.
    """
    if not QtCore.QCoreApplication.instance():
        raise RuntimeError('No Qt application instance; cannot run remote calls')

    if total_timeout is None:
        total_timeout = get_timeout() + 5.0

    worker = AsyncWorker(func, *args, **kwargs)
    loop = QtCore.QEventLoop()

    # finished is emitted from the worker thread, so the quit is queued to this thread's loop
    worker.finished.connect(loop.quit)

    timer = QtCore.QTimer()
    timer.setSingleShot(True)
    timer.setInterval(int(total_timeout * 1000))
    timer.timeout.connect(loop.quit)

    worker.start()
    timer.start()
    loop.exec()
    timer.stop()

    if worker.isRunning():
        worker.terminate()
        worker.wait()
        raise status.ServiceUnavailableException('Operation timed out.')
    worker.wait()

    if worker.error is not None:
        err = worker.error
        if isinstance(err, status.BaseStatusException):
            raise err
        raise status.UnknownException(str(err)) from err
    return worker.result


def _server_message(response: requests.Response) -> Optional[str]:
    """Return the ``message`` field of an error response, if there is one."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        v = data.get('message') or data.get('error')
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _signup_error_message(http_status: int, message: Optional[str]) -> str:
    # Unique constraint violations surface as a 500 from the store
    if http_status == 500 and message and DUPLICATE_RE.search(message):
        return DUPLICATE_USER_MESSAGE
    return message or SIGNUP_FAILED_MESSAGE


class ExpenseService:
    """Blocking client for the remote expense store.

    Args:
        credential_provider: Callable returning the current credential, or None when signed out.
            Authenticated calls attach it as a bearer token.
        http: Optional preconfigured :class:`requests.Session`.
    """

    def __init__(self, credential_provider: Optional[Callable[[], Optional[str]]] = None,
                 http: Optional[requests.Session] = None) -> None:
        self.credential_provider = credential_provider
        self.http = http or requests.Session()
        self.http.headers.update({'Accept': 'application/json'})

    def close(self) -> None:
        self.http.close()

    def url(self, endpoint: str, **fields: Any) -> str:
        """Build the absolute url of a configured endpoint."""
        from ..settings import lib
        base_url: str = lib.settings.get_section('api')['base_url']
        path: str = lib.settings.get_section('endpoints')[endpoint]
        return base_url.rstrip('/') + path.format(**fields)

    def _request(self, method: str, endpoint: str, *, auth: bool = True, body: Any = None,
                 error_message: Optional[Callable[[int, Optional[str]], Optional[str]]] = None,
                 rejected_on_client_error: bool = False, **fields: Any) -> Any:
        """Send one request and return the decoded JSON body (None when empty).

        Args:
            error_message: Optional callable mapping (http status, server message) to the
                message shown to the user when the response is an error.
            rejected_on_client_error: Treat every 4xx response as rejected credentials.

        Raises:
            status.SessionRequiredException: If ``auth`` is set but there is no credential.
            status.AuthenticationExceptionException: On HTTP 401/403, or any 4xx when
                ``rejected_on_client_error`` is set.
            status.RequestFailedException: On any other error response or an undecodable body.
            status.ServiceUnavailableException: On connection errors and timeouts.
        """
        url = self.url(endpoint, **fields)
        headers: Dict[str, str] = {}
        if auth:
            credential = self.credential_provider() if self.credential_provider else None
            if not credential:
                raise status.SessionRequiredException
            headers['Authorization'] = f'Bearer {credential}'

        logging.debug(f'{method} {url}')
        try:
            response = self.http.request(method, url, json=body, headers=headers, timeout=get_timeout())
        except requests.Timeout as ex:
            logging.error(f'{method} {url} timed out: {ex}')
            raise status.ServiceUnavailableException from ex
        except requests.RequestException as ex:
            logging.error(f'{method} {url} failed: {ex}')
            raise status.ServiceUnavailableException from ex

        if not response.ok:
            message = _server_message(response)
            logging.debug(f'{method} {url} returned HTTP {response.status_code}: {message}')
            if error_message:
                message = error_message(response.status_code, message)
            if response.status_code in (401, 403) or (rejected_on_client_error and 400 <= response.status_code < 500):
                raise status.AuthenticationExceptionException(message)
            raise status.RequestFailedException(message, http_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as ex:
            raise status.RequestFailedException('The server returned an invalid response.') from ex

    # Account

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """Check the credentials with the remote store and return the user profile.

        Raises:
            status.AuthenticationExceptionException: On any 4xx response.
        """
        data = self._request(
            'POST', 'login', auth=False, body={'email': email, 'password': password},
            rejected_on_client_error=True
        )
        if not isinstance(data, dict):
            raise status.RequestFailedException('The server returned an invalid login response.')
        return data

    def register(self, profile: Dict[str, Any]) -> Any:
        """Create an account. A duplicate username or email is reported in plain words."""
        return self._request('POST', 'signup', auth=False, body=profile, error_message=_signup_error_message)

    def update_user(self, user_id: str, profile: Dict[str, Any]) -> Any:
        return self._request('PUT', 'update_user', body=profile, user_id=user_id)

    def delete_user(self, user_id: str) -> None:
        self._request('DELETE', 'delete_user', user_id=user_id)

    # Expenses

    def fetch_expenses(self, user_id: str) -> List[ExpenseRecord]:
        """Return the user's expenses in server order."""
        data = self._request('GET', 'expenses', user_id=user_id)
        if data is None:
            return []
        if not isinstance(data, list):
            raise status.RequestFailedException('The server returned an invalid expense list.')
        try:
            records = [ExpenseRecord.from_json(item) for item in data]
        except ValueError as ex:
            raise status.RequestFailedException(f'The server returned an invalid expense: {ex}') from ex
        logging.debug(f'Fetched {len(records)} expenses.')
        return records

    def fetch_total(self, user_id: str) -> float:
        """Return the server-computed total of the user's expenses."""
        data = self._request('GET', 'total', user_id=user_id)
        if isinstance(data, dict):
            data = data.get('totalExpenses')
        if data is None:
            return 0.0
        try:
            return float(data)
        except (TypeError, ValueError) as ex:
            raise status.RequestFailedException('The server returned an invalid total.') from ex

    def create_expense(self, user_id: str, name: str, amount: float, category: str) -> Any:
        body = {'expenseName': name, 'expenseAmount': amount, 'category': str(category)}
        return self._request('POST', 'add_expense', body=body, user_id=user_id)

    def delete_expense(self, expense_id: int) -> None:
        self._request('DELETE', 'delete_expense', expense_id=expense_id)

    # Summaries

    def _fetch_mapping(self, endpoint: str, user_id: str) -> Optional[Dict[str, Any]]:
        data = self._request('GET', endpoint, user_id=user_id)
        if data is not None and not isinstance(data, dict):
            raise status.RequestFailedException('The server returned an invalid summary.')
        return data

    def fetch_category_summary(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the category -> amount mapping, or None if the server has none."""
        return self._fetch_mapping('category_summary', user_id)

    def fetch_monthly_report(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the month -> amount mapping, or None if the server has none."""
        return self._fetch_mapping('monthly_report', user_id)
