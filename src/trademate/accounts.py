"""
trademate.accounts
~~~~~~~~~~~~~~~~~~
Registration, login, the session pointer and plan upgrades.

Passwords are stored as salted one-way hashes produced by
``werkzeug.security``; the session pointer only ever holds the
credential-free ``Account`` projection.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .exceptions import (
    AccountNotFoundError,
    CorruptStoreError,
    DuplicateAccountError,
    InvalidCredentialsError,
    ValidationFailedError,
)
from .models import Account, Plan
from .storage.base import ACCOUNTS, SESSION, RecordStore

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_INVALID_CREDENTIALS = "Invalid email or password."


def _account_from(row: dict, key: str) -> Account:
    try:
        return Account.from_dict(row)
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptStoreError(
            f"Malformed account record in {key!r}", key=key, cause=exc
        ) from exc


class AccountService:
    """Account operations against a ``RecordStore``."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Registration / login
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, name: str = "") -> Account:
        """
        Create a standard-plan account.

        Email matching is exact and case-sensitive. A blank ``name`` defaults
        to the local part of the email. Does not log the new account in.

        Raises:
            ValidationFailedError: Empty email or password.
            DuplicateAccountError: An account with this email already exists.
        """
        if not email or not email.strip():
            raise ValidationFailedError("Email is required.")
        if not password:
            raise ValidationFailedError("Password is required.")

        rows = self.store.read(ACCOUNTS)
        if any(row.get("email") == email for row in rows):
            raise DuplicateAccountError(f"An account for {email} already exists.")

        account = Account(
            id=uuid.uuid4().hex,
            email=email,
            name=name.strip() if name and name.strip() else email.split("@")[0],
            plan=Plan.STANDARD,
        )
        rows.append({**account.to_dict(), "password_hash": generate_password_hash(password)})
        self.store.write(ACCOUNTS, rows)
        logger.info("Registered account %s", account.id)
        return account

    def login(self, email: str, password: str) -> Account:
        """
        Check credentials and make the account the current session.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password (same
                message either way).
        """
        row = next((r for r in self.store.read(ACCOUNTS) if r.get("email") == email), None)
        if row is None or not check_password_hash(row.get("password_hash", ""), password or ""):
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)

        account = _account_from(row, ACCOUNTS)
        self.store.put(SESSION, account.to_dict())
        logger.info("Logged in account %s", account.id)
        return account

    def logout(self) -> None:
        self.store.clear(SESSION)

    def current_account(self) -> Optional[Account]:
        """The account in the session pointer, or ``None`` when logged out."""
        data = self.store.get(SESSION)
        return _account_from(data, SESSION) if data else None

    # ------------------------------------------------------------------
    # Lookup / plan
    # ------------------------------------------------------------------

    def get(self, account_id: str) -> Account:
        for row in self.store.read(ACCOUNTS):
            if row.get("id") == account_id:
                return _account_from(row, ACCOUNTS)
        raise AccountNotFoundError(f"No account with id {account_id!r}.")

    def upgrade_plan(self, account_id: str) -> Account:
        """
        Move an account to the upgraded plan. Idempotent.

        When the account is the current session, the session pointer is
        refreshed so ``current_account()`` reports the new plan.

        Raises:
            AccountNotFoundError: No account has this id.
            CorruptStoreError: The stored account record is malformed.
        """
        rows = self.store.read(ACCOUNTS)
        target = next((r for r in rows if r.get("id") == account_id), None)
        if target is None:
            raise AccountNotFoundError(f"No account with id {account_id!r}.")

        _account_from(target, ACCOUNTS)
        target["plan"] = Plan.UPGRADED.value
        self.store.write(ACCOUNTS, rows)
        account = _account_from(target, ACCOUNTS)

        current = self.current_account()
        if current is not None and current.id == account_id:
            self.store.put(SESSION, account.to_dict())

        logger.info("Account %s upgraded", account_id)
        return account
