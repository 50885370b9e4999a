"""
Account lifecycle service: register, login, session check, logout and the
contact form.

Every public operation returns a result object. Capability failures are
caught at the operation boundary, logged, and reported as exactly one
``ErrorKind`` with a client-safe message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from portal.contacts import ContactStore
from portal.diagnostics import ProbeStore
from portal.errors import (
    AccountExistsError,
    AccountNotFoundError,
    AccountStateError,
    ErrorKind,
    InvalidCredentialError,
)
from portal.identity import IdentityProvider, login_identifier
from portal.profiles import ProfileStore
from portal.sessions import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

REGISTER_FIELDS_REQUIRED = "Username and password required"
LOGIN_FIELDS_REQUIRED = "Credentials required"
CONTACT_FIELDS_REQUIRED = "All fields required"
USERNAME_EXISTS = "Username already exists"
REGISTRATION_FAILED = "Registration failed"
INVALID_CREDENTIALS = "Invalid credentials"
SUBMISSION_FAILED = "Message submission failed"
LOGOUT_FAILED = "Logout failed"
PROBE_FAILED = "Firestore connection failed"
UNKNOWN_USERNAME = "Unknown username"


@dataclass
class OperationResult:
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LoginResult(OperationResult):
    token: Optional[str] = None


@dataclass
class WhoAmIResult(OperationResult):
    logged_in: bool = False
    username: Optional[str] = None
    is_admin: bool = False
    # True when the caller's token no longer names a live session.
    session_cleared: bool = False


@dataclass
class ProbeResult(OperationResult):
    document: Optional[dict] = None
    detail: Optional[str] = None


def _filled(*values: Any) -> bool:
    return all(isinstance(value, str) and value for value in values)


class AccountService:
    """Orchestrates the identity provider, profile, contact and session stores."""

    def __init__(
        self,
        identity: IdentityProvider,
        profiles: ProfileStore,
        sessions: SessionStore,
        contacts: ContactStore,
        probes: ProbeStore,
        *,
        identifier_domain: str = "aicloude.com",
        legacy_password_reset_login: bool = False,
    ):
        self.identity = identity
        self.profiles = profiles
        self.sessions = sessions
        self.contacts = contacts
        self.probes = probes
        self.identifier_domain = identifier_domain
        self.legacy_password_reset_login = legacy_password_reset_login

    def _identifier(self, username: str) -> str:
        return login_identifier(username, self.identifier_domain)

    def register(self, username: Any, password: Any) -> OperationResult:
        if not _filled(username, password):
            return OperationResult(ErrorKind.VALIDATION, REGISTER_FIELDS_REQUIRED)

        identifier = self._identifier(username)
        try:
            account_id = self.identity.create_account(identifier, password)
            self._create_profile_or_rollback(account_id, username)
        except AccountExistsError:
            logger.info("Registration rejected: %s already exists", identifier)
            return OperationResult(ErrorKind.DUPLICATE_ACCOUNT, USERNAME_EXISTS)
        except Exception:
            logger.exception("Registration error for %s", identifier)
            return OperationResult(ErrorKind.REGISTRATION_FAILED, REGISTRATION_FAILED)

        logger.info("Registered account %s for %s", account_id, identifier)
        return OperationResult()

    def _create_profile_or_rollback(self, account_id: str, username: str) -> None:
        try:
            self.profiles.create_profile(account_id, username)
        except Exception:
            try:
                self.identity.delete_account(account_id)
            except Exception:
                logger.exception(
                    "Rollback failed; identity account %s is orphaned", account_id
                )
            else:
                logger.warning(
                    "Profile write failed; deleted identity account %s", account_id
                )
            raise

    def _authenticate(self, identifier: str, password: str) -> str:
        if self.legacy_password_reset_login:
            logger.warning(
                "Legacy login mode: resetting the password of %s instead of verifying it",
                identifier,
            )
            account_id = self.identity.get_account_id(identifier)
            self.identity.set_credential(account_id, password)
            return account_id
        return self.identity.verify_credential(identifier, password)

    def login(
        self, username: Any, password: Any, current_token: Optional[str] = None
    ) -> LoginResult:
        if not _filled(username, password):
            return LoginResult(ErrorKind.VALIDATION, LOGIN_FIELDS_REQUIRED)

        identifier = self._identifier(username)
        try:
            account_id = self._authenticate(identifier, password)
            profile = self.profiles.get_profile(account_id)
            if profile is None:
                raise AccountStateError(f"account {account_id} has no profile")
            self.profiles.touch_last_login(account_id)
            if current_token:
                self.sessions.destroy(current_token)
            token = self.sessions.create(
                SessionRecord(account_id=account_id, is_admin=profile.is_admin)
            )
        except (AccountNotFoundError, InvalidCredentialError):
            logger.info("Login rejected for %s", identifier)
            return LoginResult(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)
        except AccountStateError as e:
            logger.error("Login error for %s: %s", identifier, e)
            return LoginResult(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)
        except Exception:
            logger.exception("Login error for %s", identifier)
            return LoginResult(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)

        return LoginResult(token=token)

    def whoami(self, token: Optional[str]) -> WhoAmIResult:
        if not token:
            return WhoAmIResult()

        try:
            record = self.sessions.get(token)
            if record is None:
                return WhoAmIResult(session_cleared=True)
            profile = self.profiles.get_profile(record.account_id)
            if profile is None:
                logger.warning(
                    "Session references missing profile %s; destroying it",
                    record.account_id,
                )
                self.sessions.destroy(token)
                return WhoAmIResult(session_cleared=True)
        except Exception:
            logger.exception("Session check error")
            return WhoAmIResult(ErrorKind.INTERNAL)

        return WhoAmIResult(
            logged_in=True, username=profile.username, is_admin=profile.is_admin
        )

    def logout(self, token: Optional[str]) -> OperationResult:
        if token:
            try:
                self.sessions.destroy(token)
            except Exception:
                logger.exception("Logout error")
                return OperationResult(ErrorKind.LOGOUT_FAILED, LOGOUT_FAILED)
        return OperationResult()

    def submit_contact(self, name: Any, email: Any, message: Any) -> OperationResult:
        if not _filled(name, email, message):
            return OperationResult(ErrorKind.VALIDATION, CONTACT_FIELDS_REQUIRED)

        try:
            self.contacts.add_message(name, email, message)
        except Exception:
            logger.exception("Contact error")
            return OperationResult(ErrorKind.SUBMISSION_FAILED, SUBMISSION_FAILED)
        return OperationResult()

    def probe_document_store(self) -> ProbeResult:
        """
        Write and read back a probe document. Unlike every other operation the
        failure detail is returned to the caller.
        """
        try:
            document = self.probes.write_probe()
        except Exception as e:
            logger.exception("Firestore test failed")
            return ProbeResult(ErrorKind.INTERNAL, PROBE_FAILED, detail=str(e))
        return ProbeResult(document=document)

    def set_admin(self, username: Any, is_admin: bool) -> OperationResult:
        if not _filled(username):
            return OperationResult(ErrorKind.VALIDATION, UNKNOWN_USERNAME)

        identifier = self._identifier(username)
        try:
            account_id = self.identity.get_account_id(identifier)
            if self.profiles.get_profile(account_id) is None:
                return OperationResult(
                    ErrorKind.ACCOUNT_STATE, f"{identifier} has no profile"
                )
            self.profiles.set_admin(account_id, is_admin)
        except AccountNotFoundError:
            return OperationResult(ErrorKind.VALIDATION, UNKNOWN_USERNAME)
        except Exception:
            logger.exception("Admin flag update failed for %s", identifier)
            return OperationResult(ErrorKind.INTERNAL, "Admin flag update failed")

        logger.info("Set isAdmin=%s for %s", is_admin, identifier)
        return OperationResult()
