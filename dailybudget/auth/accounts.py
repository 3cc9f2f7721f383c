"""Mini README: User accounts and bearer tokens for the budgeting API.

Structure:
    * UserAccount - registered user with a salted password hash.
    * hash_password / verify_password - PBKDF2-SHA256 helpers.
    * AccountRegistry - signup, login and token verification.

Tokens are JWTs signed with the configured secret. Their ``sub`` claim is
the user id, which the web layer uses as the owner of every ledger record.
When a path is given the registry persists accounts to a JSON document
next to the ledger so restarts keep users able to log in.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from jose import JWTError, jwt

from ..errors import DuplicateUser, InvalidCredentials, InvalidToken
from ..logging_utils import get_logger
from ..utils import read_json_document, write_json_atomic

LOGGER = get_logger(__name__)

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 120_000


def hash_password(password: str, *, salt: Optional[str] = None, iterations: int = HASH_ITERATIONS) -> str:
    """Return ``scheme$iterations$salt$digest`` for ``password``."""

    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a value produced by ``hash_password``."""

    try:
        scheme, iterations, salt, _ = encoded.split("$")
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate, encoded)


@dataclass(frozen=True, slots=True)
class UserAccount:
    """Registered user; ``user_id`` doubles as the ledger owner identity."""

    user_id: str
    username: str
    password_hash: str


class AccountRegistry:
    """Register users, check credentials and issue signed access tokens."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expiry_minutes: int = 60 * 24,
        path: Optional[Path] = None,
    ) -> None:
        if not secret:
            raise ValueError("A token signing secret is required.")
        self._secret = secret
        self._algorithm = algorithm
        self._expiry = timedelta(minutes=expiry_minutes)
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._accounts: Dict[str, UserAccount] = {}
        if self._path:
            for payload in read_json_document(self._path).get("users", []):
                account = UserAccount(
                    user_id=payload["id"],
                    username=payload["username"],
                    password_hash=payload["password"],
                )
                self._accounts[account.username] = account
        LOGGER.debug("Account registry initialised with %s users", len(self._accounts))

    def _persist(self, accounts: Dict[str, UserAccount]) -> None:
        if not self._path:
            return
        write_json_atomic(
            self._path,
            {
                "users": [
                    {"id": account.user_id, "username": account.username, "password": account.password_hash}
                    for account in accounts.values()
                ]
            },
        )

    def signup(self, username: str, password: str) -> UserAccount:
        """Create a new account, rejecting blank input and taken usernames."""

        if not username or not password:
            raise ValueError("Username and password required")
        with self._lock:
            if username in self._accounts:
                raise DuplicateUser(f"User {username} already exists")
            account = UserAccount(
                user_id=str(uuid4()),
                username=username,
                password_hash=hash_password(password),
            )
            accounts = dict(self._accounts)
            accounts[username] = account
            self._persist(accounts)
            self._accounts = accounts
        LOGGER.info("Registered user %s", username)
        return account

    def authenticate(self, username: str, password: str) -> UserAccount:
        """Return the account when the credentials match."""

        account = self._accounts.get(username)
        if account is None or not verify_password(password or "", account.password_hash):
            LOGGER.warning("Rejected login for username %s", username)
            raise InvalidCredentials("Invalid username or password")
        return account

    def issue_token(self, account: UserAccount, *, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": account.user_id,
            "username": account.username,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expiry).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def login(self, username: str, password: str) -> str:
        """Authenticate and return a fresh access token."""

        return self.issue_token(self.authenticate(username, password))

    def verify_token(self, token: str) -> str:
        """Return the owner identity carried by a valid token."""

        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as error:
            raise InvalidToken("Invalid token") from error
        owner = claims.get("sub")
        if not owner:
            raise InvalidToken("Token carries no subject")
        return str(owner)
