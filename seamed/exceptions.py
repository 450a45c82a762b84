"""Exceptions."""

from typing import Optional


class ConfigurationError(RuntimeError):
    """The service is configured in a way that must not be served."""


class MissingCredential(RuntimeError):
    """No bearer token was presented."""


class InvalidCredential(RuntimeError):
    """A bearer token was presented but could not be verified."""


class ProvisioningError(RuntimeError):
    """The local user record could not be established."""

    def __init__(self, subject_id: str,
                 original_error: Optional[BaseException] = None) -> None:
        self.subject_id = subject_id
        self.original_error = original_error
        super().__init__(f'Could not provision user {subject_id}: '
                         f'{original_error}')


class AuthorizationDenied(RuntimeError):
    """The resource does not exist or is not owned by the caller."""


class ValidationError(ValueError):
    """A request payload field is malformed."""

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"Invalid value for field '{field}'")


class StorageError(RuntimeError):
    """A storage operation failed; the message is safe to show clients."""


class RequestTimeout(RuntimeError):
    """The request ran out of time; its writes were not committed."""
