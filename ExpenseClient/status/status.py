"""Status definitions and exceptions for ExpenseClient.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., RequestFailedException) for error handling in services
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Config status
    ClientConfigNotFound = enum.auto()
    ClientConfigInvalid = enum.auto()

    # Local input
    InvalidInput = enum.auto()

    # Authentication status
    NotAuthenticated = enum.auto()
    SessionRequired = enum.auto()

    # Remote store status
    ServiceUnavailable = enum.auto()
    RequestFailed = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Something went wrong. Please try again.',
    Status.Okay: 'Everything is okay.',

    Status.ClientConfigNotFound: 'Could not find the client config.',
    Status.ClientConfigInvalid: 'The client config seems to be incomplete, or contains invalid values.',

    Status.InvalidInput: 'Please check your input and try again.',

    Status.NotAuthenticated: 'Invalid credentials. Please try again.',
    Status.SessionRequired: 'You need to sign in first.',

    Status.ServiceUnavailable: 'The expense service is unavailable. Please check your connection.',
    Status.RequestFailed: 'The request failed. Please try again.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in ExpenseClient.

    Constructing the exception logs it and posts a transient notice through
    :attr:`ExpenseClient.ui.actions.signals.error`.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.
        notice (str): The message shown to the user.

    Args:
        message (str): Optional message; replaces the generic status message in the notice.
    """
    status = Status.UnknownStatus

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        self.notice = message or self.status_message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)

        from ..ui.actions import signals
        signals.error.emit(self.notice)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class ClientConfigNotFoundException(BaseStatusException):
    """Exception raised when the client configuration file cannot be found."""
    status = Status.ClientConfigNotFound


class ClientConfigInvalidException(BaseStatusException):
    """Exception raised when the client configuration is invalid or malformed."""
    status = Status.ClientConfigInvalid


class InvalidInputException(BaseStatusException):
    """Exception raised when local input is rejected before any network call."""
    status = Status.InvalidInput


class AuthenticationExceptionException(BaseStatusException):
    """Exception raised when the remote store rejects the user's credentials."""
    status = Status.NotAuthenticated


class SessionRequiredException(BaseStatusException):
    """Exception raised when an operation needs an active session but none exists."""
    status = Status.SessionRequired


class ServiceUnavailableException(BaseStatusException):
    """Exception raised when the remote store cannot be reached or times out."""
    status = Status.ServiceUnavailable


class RequestFailedException(BaseStatusException):
    """Exception raised when the remote store answers with an error response.

    Attributes:
        http_status (int): The HTTP status code of the failed response, if any.
    """
    status = Status.RequestFailed

    def __init__(self, message: str = None, http_status: int = None):
        self.http_status = http_status
        super().__init__(message)
