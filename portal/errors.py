"""
Error taxonomy for the account portal.

Capability clients raise the ``PortalError`` subclasses below. The account
service catches them at each operation boundary and reports exactly one
``ErrorKind`` to the HTTP layer.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = "ValidationError"
    DUPLICATE_ACCOUNT = "DuplicateAccountError"
    INVALID_CREDENTIALS = "InvalidCredentialsError"
    ACCOUNT_STATE = "AccountStateError"
    REGISTRATION_FAILED = "RegistrationFailedError"
    SUBMISSION_FAILED = "SubmissionFailedError"
    LOGOUT_FAILED = "LogoutError"
    INTERNAL = "InternalError"


# Registration failures are reported as 400 to keep the /register contract.
HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DUPLICATE_ACCOUNT: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ACCOUNT_STATE: 401,
    ErrorKind.REGISTRATION_FAILED: 400,
    ErrorKind.SUBMISSION_FAILED: 500,
    ErrorKind.LOGOUT_FAILED: 500,
    ErrorKind.INTERNAL: 500,
}


class PortalError(Exception):
    """Base class for failures raised by portal capability clients."""


class ConfigurationError(PortalError):
    pass


class AccountExistsError(PortalError):
    """The identity provider already has an account for the identifier."""


class AccountNotFoundError(PortalError):
    pass


class InvalidCredentialError(PortalError):
    pass


class AccountStateError(PortalError):
    """An identity exists but its profile record does not."""


class SessionStoreError(PortalError):
    pass
