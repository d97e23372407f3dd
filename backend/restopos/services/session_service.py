# Overview: Service-layer operations for session; token issue, lookup and revocation behind a store.

"""
Session Token Management Service

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, stored only as hashes, and time-limited.

Storage is a SessionStore picked at app creation from SESSION_STORE:
- "database": SessionToken rows, shared by every worker process (default)
- "memory": a per-process dict, for tests and single-process dev servers

Routes and decorators never talk to a store class directly; they call
create_session / validate_session / revoke_session, which resolve the
store registered on the current app.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_TTL_HOURS, default 24)
- Idle timeout (SESSION_IDLE_HOURS, default 2)
- Revocable on logout
- Deactivated users lose their sessions on next use
"""

import hashlib
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from restopos.time_utils import utcnow


EXTENSION_KEY = "session_store"


@dataclass
class SessionContext:
    """What an authenticated request knows about its caller."""
    user: User
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 of the token, hex encoded.

    Tokens are already high-entropy, so a fast hash is enough here.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionStore:
    """
    Keyed by plaintext token; implementations store only hash_token(token).

    get() returns None for unknown, expired, idle or revoked sessions and
    for users that have been deactivated.
    """

    def __init__(self, ttl: timedelta, idle: timedelta):
        self.ttl = ttl
        self.idle = idle

    def get(self, token: str) -> SessionContext | None:
        raise NotImplementedError

    def set(
        self,
        token: str,
        user: User,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> SessionContext:
        raise NotImplementedError

    def destroy(self, token: str, reason: str = "User logout") -> bool:
        raise NotImplementedError


class DatabaseSessionStore(SessionStore):
    """Sessions as SessionToken rows. Revoked rows are kept for auditing."""

    def _revoke(self, session: SessionToken, reason: str, now: datetime) -> None:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
        db.session.commit()

    def get(self, token: str) -> SessionContext | None:
        now = utcnow()
        session = db.session.query(SessionToken).filter_by(
            token_hash=hash_token(token),
            is_revoked=False,
        ).first()

        if not session:
            return None

        if session.expires_at < now:
            return None

        if now - session.last_used_at > self.idle:
            self._revoke(session, "Idle timeout", now)
            return None

        user = session.user
        if not user or not user.is_active:
            self._revoke(session, "User account deactivated", now)
            return None

        session.last_used_at = now
        db.session.commit()

        return SessionContext(
            user=user,
            created_at=session.created_at,
            last_used_at=session.last_used_at,
            expires_at=session.expires_at,
        )

    def set(self, token, user, *, user_agent=None, ip_address=None):
        now = utcnow()
        session = SessionToken(
            user_id=user.id,
            token_hash=hash_token(token),
            created_at=now,
            last_used_at=now,
            expires_at=now + self.ttl,
            user_agent=user_agent,
            ip_address=ip_address,
            is_revoked=False,
        )
        db.session.add(session)
        db.session.commit()

        return SessionContext(
            user=user,
            created_at=now,
            last_used_at=now,
            expires_at=session.expires_at,
        )

    def destroy(self, token, reason="User logout"):
        session = db.session.query(SessionToken).filter_by(
            token_hash=hash_token(token),
            is_revoked=False,
        ).first()

        if not session:
            return False

        self._revoke(session, reason, utcnow())
        return True


@dataclass
class _MemorySession:
    user_id: int
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime


class InMemorySessionStore(SessionStore):
    """Per-process sessions. Lost on restart and not shared between workers."""

    def __init__(self, ttl: timedelta, idle: timedelta):
        super().__init__(ttl, idle)
        self._sessions: dict[str, _MemorySession] = {}
        self._lock = threading.Lock()

    def get(self, token):
        key = hash_token(token)
        now = utcnow()

        with self._lock:
            record = self._sessions.get(key)
            if record is None:
                return None
            if record.expires_at < now or now - record.last_used_at > self.idle:
                del self._sessions[key]
                return None

        user = db.session.get(User, record.user_id)
        if not user or not user.is_active:
            with self._lock:
                self._sessions.pop(key, None)
            return None

        with self._lock:
            record.last_used_at = now

        return SessionContext(
            user=user,
            created_at=record.created_at,
            last_used_at=record.last_used_at,
            expires_at=record.expires_at,
        )

    def set(self, token, user, *, user_agent=None, ip_address=None):
        now = utcnow()
        record = _MemorySession(
            user_id=user.id,
            created_at=now,
            last_used_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._sessions[hash_token(token)] = record

        return SessionContext(
            user=user,
            created_at=now,
            last_used_at=now,
            expires_at=record.expires_at,
        )

    def destroy(self, token, reason="User logout"):
        with self._lock:
            return self._sessions.pop(hash_token(token), None) is not None


SESSION_STORES = {
    "database": DatabaseSessionStore,
    "memory": InMemorySessionStore,
}


def init_session_store(app) -> SessionStore:
    """Build the configured store and register it on the app."""
    kind = app.config.get("SESSION_STORE", "database")
    try:
        store_cls = SESSION_STORES[kind]
    except KeyError:
        raise RuntimeError(
            f"SESSION_STORE must be one of: {', '.join(SESSION_STORES)} (got {kind!r})"
        ) from None

    store = store_cls(
        ttl=timedelta(hours=app.config.get("SESSION_TTL_HOURS", 24)),
        idle=timedelta(hours=app.config.get("SESSION_IDLE_HOURS", 2)),
    )
    app.extensions[EXTENSION_KEY] = store
    return store


def get_session_store() -> SessionStore:
    return current_app.extensions[EXTENSION_KEY]


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionContext, str]:
    """
    Returns (context, plaintext_token).
    Client receives plaintext_token; the store keeps only its hash.
    """
    token = generate_token()
    context = get_session_store().set(token, user, user_agent=user_agent, ip_address=ip_address)
    return context, token


def validate_session(token: str) -> SessionContext | None:
    """Central validation point. require_auth calls this on every protected request."""
    return get_session_store().get(token)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if a live session was revoked, False if not found."""
    return get_session_store().destroy(token, reason)
