"""
Accounts — users, password hashes and the opaque token registry.

One live refresh token per user: login, register and refresh each issue a
new pair and the previous refresh token stops working.
"""

from __future__ import annotations

import hashlib
import hmac
import itertools
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from cartsync._errors import (
    DuplicateAccount,
    ExpiredAccessToken,
    InvalidCredentials,
    InvalidRefreshToken,
)
from cartsync._types import Session, TokenPair, UserProfile

_PBKDF2_ROUNDS = 100_000


def hash_password(password: str, salt: bytes | None = None) -> str:
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _PBKDF2_ROUNDS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt_hex, _, digest_hex = stored.partition("$")
    candidate = hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate.partition("$")[2], digest_hex)


@dataclass(slots=True)
class Account:
    profile: UserProfile
    password_hash: str
    refresh_token: str | None = None
    refresh_expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class _Grant:
    user_id: str
    expires_at: datetime


@dataclass
class Accounts:
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    clock: Callable[[], datetime] = datetime.now
    _by_id: dict[str, Account] = field(default_factory=dict)
    _by_email: dict[str, str] = field(default_factory=dict)
    _access: dict[str, _Grant] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def register(
        self,
        email: str,
        password: str,
        full_name: str,
        phone: str = "",
        address: str = "",
    ) -> Session:
        key = email.strip().lower()
        if key in self._by_email:
            raise DuplicateAccount("An account with this email already exists")

        profile = UserProfile(
            id=f"u{next(self._ids)}",
            email=email.strip(),
            full_name=full_name,
            phone=phone,
            address=address,
        )
        self._by_id[profile.id] = Account(profile, hash_password(password))
        self._by_email[key] = profile.id
        return self._session(self._by_id[profile.id])

    def login(self, email: str, password: str) -> Session:
        user_id = self._by_email.get(email.strip().lower())
        account = self._by_id.get(user_id) if user_id else None
        if account is None or not verify_password(password, account.password_hash):
            raise InvalidCredentials("Invalid email or password")
        return self._session(account)

    def refresh(self, refresh_token: str) -> TokenPair:
        account = self._account_for_refresh(refresh_token)
        if account is None:
            raise InvalidRefreshToken("Invalid refresh token")
        return self._issue(account)

    def logout(self, user_id: str) -> None:
        account = self._by_id[user_id]
        account.refresh_token = None
        account.refresh_expires_at = None
        self._access = {t: g for t, g in self._access.items() if g.user_id != user_id}

    def authenticate(self, access_token: str | None) -> UserProfile:
        """Profile behind a bearer token. Missing, unknown and expired tokens all raise."""
        if not access_token:
            raise ExpiredAccessToken("Missing access token")
        grant = self._access.get(access_token)
        if grant is None or grant.expires_at <= self.clock():
            raise ExpiredAccessToken("Invalid or expired access token")
        return self._by_id[grant.user_id].profile

    def expire_access_tokens(self) -> None:
        """Invalidate every issued access token, refresh tokens stay valid."""
        self._access.clear()

    def _account_for_refresh(self, refresh_token: str) -> Account | None:
        for account in self._by_id.values():
            if account.refresh_token is None or account.refresh_expires_at is None:
                continue
            if hmac.compare_digest(account.refresh_token, refresh_token):
                return account if account.refresh_expires_at > self.clock() else None
        return None

    def _issue(self, account: Account) -> TokenPair:
        now = self.clock()
        access = secrets.token_urlsafe(32)
        refresh = secrets.token_urlsafe(32)
        self._access[access] = _Grant(account.profile.id, now + self.access_ttl)
        account.refresh_token = refresh
        account.refresh_expires_at = now + self.refresh_ttl
        return TokenPair(access, refresh)

    def _session(self, account: Account) -> Session:
        pair = self._issue(account)
        return Session(pair.access_token, pair.refresh_token, account.profile)


__all__ = (
    "hash_password",
    "verify_password",
    "Account",
    "Accounts",
)
