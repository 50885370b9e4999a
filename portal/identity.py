"""
Identity provider abstraction for Firebase Authentication and an in-memory
test implementation.
"""

from __future__ import annotations

import hashlib
import hmac
import uuid
from dataclasses import dataclass, field
from typing import Dict, Protocol

import requests
from firebase_admin import auth

from portal.errors import (
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialError,
)


SIGN_IN_WITH_PASSWORD_URL = (
    "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
)
# Error codes the Identity Toolkit returns for a wrong identifier/password pair.
REJECTED_SIGN_IN_CODES = (
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "USER_DISABLED",
)


def login_identifier(username: str, domain: str) -> str:
    """Map a username onto the email-style identifier the provider expects."""
    return f"{username}@{domain}"


class IdentityProvider(Protocol):
    """Operations the portal needs from the identity provider."""

    def create_account(self, identifier: str, credential: str) -> str:
        ...

    def get_account_id(self, identifier: str) -> str:
        ...

    def verify_credential(self, identifier: str, credential: str) -> str:
        ...

    def set_credential(self, account_id: str, credential: str) -> None:
        ...

    def delete_account(self, account_id: str) -> None:
        ...


def _digest(credential: str) -> str:
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()


@dataclass
class InMemoryIdentityProvider:
    """Test double for identity provider interactions."""

    # identifier -> (account id, credential digest)
    accounts: Dict[str, tuple[str, str]] = field(default_factory=dict)

    def create_account(self, identifier: str, credential: str) -> str:
        if identifier in self.accounts:
            raise AccountExistsError(identifier)
        account_id = uuid.uuid4().hex
        self.accounts[identifier] = (account_id, _digest(credential))
        return account_id

    def get_account_id(self, identifier: str) -> str:
        try:
            return self.accounts[identifier][0]
        except KeyError:
            raise AccountNotFoundError(identifier) from None

    def verify_credential(self, identifier: str, credential: str) -> str:
        entry = self.accounts.get(identifier)
        if entry is None or not hmac.compare_digest(entry[1], _digest(credential)):
            raise InvalidCredentialError(identifier)
        return entry[0]

    def set_credential(self, account_id: str, credential: str) -> None:
        for identifier, (stored_id, _) in self.accounts.items():
            if stored_id == account_id:
                self.accounts[identifier] = (stored_id, _digest(credential))
                return
        raise AccountNotFoundError(account_id)

    def delete_account(self, account_id: str) -> None:
        for identifier, (stored_id, _) in list(self.accounts.items()):
            if stored_id == account_id:
                del self.accounts[identifier]
                return
        raise AccountNotFoundError(account_id)


class FirebaseIdentityProvider:
    """
    Firebase Authentication backed implementation.

    Account management goes through the Admin SDK. The Admin SDK cannot
    check a password, so verification calls the Identity Toolkit REST API
    with the project's web API key.
    """

    def __init__(self, app, web_api_key: str | None = None, timeout: float = 10):
        self.app = app
        self.web_api_key = web_api_key
        self.timeout = timeout

    def create_account(self, identifier: str, credential: str) -> str:
        try:
            user = auth.create_user(
                email=identifier,
                password=credential,
                email_verified=False,
                app=self.app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise AccountExistsError(identifier) from e
        return user.uid

    def get_account_id(self, identifier: str) -> str:
        try:
            user = auth.get_user_by_email(identifier, app=self.app)
        except auth.UserNotFoundError as e:
            raise AccountNotFoundError(identifier) from e
        return user.uid

    def verify_credential(self, identifier: str, credential: str) -> str:
        if not self.web_api_key:
            raise InvalidCredentialError("no web API key configured")
        response = requests.post(
            SIGN_IN_WITH_PASSWORD_URL,
            params={"key": self.web_api_key},
            json={
                "email": identifier,
                "password": credential,
                "returnSecureToken": False,
            },
            timeout=self.timeout,
        )
        if response.status_code == 400:
            message = response.json().get("error", {}).get("message", "")
            if message.split(" ")[0] in REJECTED_SIGN_IN_CODES:
                raise InvalidCredentialError(message)
        response.raise_for_status()
        return response.json()["localId"]

    def set_credential(self, account_id: str, credential: str) -> None:
        try:
            auth.update_user(account_id, password=credential, app=self.app)
        except auth.UserNotFoundError as e:
            raise AccountNotFoundError(account_id) from e

    def delete_account(self, account_id: str) -> None:
        try:
            auth.delete_user(account_id, app=self.app)
        except auth.UserNotFoundError as e:
            raise AccountNotFoundError(account_id) from e
