"""
In-memory store of expiring CSRF tokens keyed by session identifier.
"""

import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass

from .exceptions import InvalidToken, SessionTimedOut

logger = logging.getLogger(__name__)

#: Seconds after issuance during which a token is accepted.
DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class TokenRecord:
    """A token issued to one session."""

    session_id: str
    token_value: str
    issued_at: float

    def age(self, now):
        return now - self.issued_at

    def is_expired(self, now, timeout):
        # A token exactly ``timeout`` seconds old is still accepted.
        return self.age(now) > timeout


class TokenStore:
    """Generate, store, validate and expire CSRF tokens.

    One record is kept per session; issuing a token for a session replaces
    whatever was stored for it before. Every operation takes a single lock
    around the whole map, so the store may be shared between request
    threads and a :class:`~flask_expiring_csrf.cleanup.CleanupTask`.

    ::

        store = TokenStore(timeout=30)
        token = store.issue_token("abc")
        store.validate_token("abc", token)

    :param timeout: Expiry threshold in seconds.
    :param single_use: Remove the record after a successful validation.
    :param clock: Callable returning the current time in seconds.
    :param token_bytes: Entropy of generated tokens, in bytes.
    """

    def __init__(
        self,
        timeout=DEFAULT_TIMEOUT,
        single_use=False,
        clock=time.monotonic,
        token_bytes=32,
    ):
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout!r}")
        if token_bytes <= 0:
            raise ValueError(f"token_bytes must be positive, got {token_bytes!r}")

        self.timeout = timeout
        self.single_use = single_use
        self._clock = clock
        self._token_bytes = token_bytes
        self._records = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._records)

    def __contains__(self, session_id):
        with self._lock:
            return session_id in self._records

    def issue_token(self, session_id):
        """Create a token for ``session_id``, superseding any previous one.

        :param session_id: Identifier of the client session.
        :return: The new token value.
        """
        token = secrets.token_urlsafe(self._token_bytes)
        record = TokenRecord(session_id, token, self._clock())
        with self._lock:
            self._records[session_id] = record
        logger.debug("Issued CSRF token for session %s", session_id)
        return token

    def validate_token(self, session_id, supplied_token):
        """Check ``supplied_token`` against the record for ``session_id``.

        An expired record is removed as soon as it is looked up. With
        ``single_use`` enabled a matching record is removed as well.

        :param session_id: Identifier of the client session.
        :param supplied_token: Token sent by the client, may be ``None``.
        :return: The matching :class:`TokenRecord`.
        :raises InvalidToken: No record exists or the value does not match.
        :raises SessionTimedOut: The record is older than the timeout.
        """
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                logger.info("No CSRF token for session %s", session_id)
                raise InvalidToken()

            if record.is_expired(self._clock(), self.timeout):
                del self._records[session_id]
                logger.info("CSRF token for session %s timed out", session_id)
                raise SessionTimedOut()

            if not supplied_token or not hmac.compare_digest(
                record.token_value.encode(), supplied_token.encode()
            ):
                logger.info("CSRF token mismatch for session %s", session_id)
                raise InvalidToken()

            if self.single_use:
                del self._records[session_id]

        return record

    def cleanup_sessions(self):
        """Remove every record older than the timeout.

        :return: Number of records removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                session_id
                for session_id, record in self._records.items()
                if record.is_expired(now, self.timeout)
            ]
            for session_id in expired:
                del self._records[session_id]

        if expired:
            logger.debug("Removed %d expired CSRF token(s)", len(expired))
        return len(expired)

    def get(self, session_id):
        """Return the record for ``session_id`` without checking expiry."""
        with self._lock:
            return self._records.get(session_id)

    def discard(self, session_id):
        """Remove the record for ``session_id``. Return whether one existed."""
        with self._lock:
            return self._records.pop(session_id, None) is not None

    def clear(self):
        with self._lock:
            self._records.clear()
