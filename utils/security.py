"""PIN security helpers.

Hashing/validation for 4-digit staff PINs and the per-staff attempt tracker
that guards PIN verification against brute force.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional

import bcrypt

logger = logging.getLogger(__name__)

SALT_ROUNDS = 12

_PIN_RE = re.compile(r"[0-9]{4}")

WEAK_PINS = frozenset({
    '0000', '1111', '2222', '3333', '4444',
    '5555', '6666', '7777', '8888', '9999',
    '1234', '4321', '0123', '3210',
})


class PinFormatError(ValueError):
    """Raised when a PIN is not exactly 4 digits."""


@dataclass(frozen=True)
class PinValidation:
    is_valid: bool
    error: Optional[str] = None


def _is_pin_format(pin) -> bool:
    return isinstance(pin, str) and bool(_PIN_RE.fullmatch(pin))


def hash_pin(pin: str) -> str:
    """Hash a 4-digit PIN with bcrypt."""
    if not pin or not _is_pin_format(pin):
        raise PinFormatError('PIN must be exactly 4 digits')
    return bcrypt.hashpw(pin.encode('utf-8'), bcrypt.gensalt(rounds=SALT_ROUNDS)).decode('utf-8')


def verify_pin(pin: str, pin_hash: str) -> bool:
    """Check a PIN against its stored hash.

    Fails closed: bad input or a hash that bcrypt cannot read yields False.
    """
    if not pin or not pin_hash:
        return False
    if not _is_pin_format(pin):
        return False
    try:
        return bcrypt.checkpw(pin.encode('utf-8'), pin_hash.encode('utf-8'))
    except (ValueError, TypeError) as e:
        logger.error('PIN verification error: %s', e)
        return False


def validate_pin(pin: str) -> PinValidation:
    """Validate PIN format and reject common weak patterns."""
    if not pin:
        return PinValidation(False, 'PIN is required')
    if not _is_pin_format(pin):
        return PinValidation(False, 'PIN must be exactly 4 digits')
    if pin in WEAK_PINS:
        return PinValidation(False, 'PIN is too weak. Avoid sequential or repeated digits')
    return PinValidation(True)


# ---------------------------------------------------------------------------
# Attempt tracking
# ---------------------------------------------------------------------------

@dataclass
class AttemptRecord:
    count: int
    last_attempt_at: datetime


@dataclass(frozen=True)
class AttemptCheck:
    allowed: bool
    remaining_attempts: int
    locked_until: Optional[datetime] = None


class AttemptStore:
    """Storage for attempt records keyed by identity.

    ``ttl`` is a hint for stores that expire keys on their own (e.g. a
    shared cache); the tracker never relies on it for correctness.
    """

    def get(self, identity: str) -> Optional[AttemptRecord]:
        raise NotImplementedError

    def set(self, identity: str, record: AttemptRecord, ttl: Optional[timedelta] = None) -> None:
        raise NotImplementedError

    def delete(self, identity: str) -> None:
        raise NotImplementedError

    def items(self) -> Iterator[tuple[str, AttemptRecord]]:
        raise NotImplementedError


class InMemoryAttemptStore(AttemptStore):
    """Process-local store. Records vanish on restart."""

    def __init__(self) -> None:
        self._records: dict[str, AttemptRecord] = {}

    def get(self, identity):
        return self._records.get(identity)

    def set(self, identity, record, ttl=None):
        self._records[identity] = record

    def delete(self, identity):
        self._records.pop(identity, None)

    def items(self):
        # Snapshot so callers may delete while iterating.
        return iter(list(self._records.items()))

    def __len__(self) -> int:
        return len(self._records)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PinAttemptTracker:
    """Per-staff PIN attempt limiter.

    Failures within ``attempt_window`` of each other accumulate; reaching
    ``max_attempts`` locks the identity for ``lockout_duration`` after the
    last failure. The tracker never schedules itself: the host calls
    :meth:`sweep` periodically.
    """

    MAX_ATTEMPTS = 5
    LOCKOUT_DURATION = timedelta(minutes=15)
    ATTEMPT_WINDOW = timedelta(minutes=5)

    def __init__(
        self,
        store: Optional[AttemptStore] = None,
        *,
        max_attempts: Optional[int] = None,
        lockout_duration: Optional[timedelta] = None,
        attempt_window: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store if store is not None else InMemoryAttemptStore()
        self.max_attempts = max_attempts or self.MAX_ATTEMPTS
        self.lockout_duration = lockout_duration or self.LOCKOUT_DURATION
        self.attempt_window = attempt_window or self.ATTEMPT_WINDOW
        self._clock = clock
        self._lock = threading.RLock()

    def check_attempts(self, identity: str) -> AttemptCheck:
        """Return whether a verification attempt is currently allowed."""
        if not identity:
            return AttemptCheck(True, self.max_attempts)

        now = self._clock()
        with self._lock:
            record = self.store.get(identity)
            if record is None:
                return AttemptCheck(True, self.max_attempts)

            if record.count >= self.max_attempts:
                lockout_end = record.last_attempt_at + self.lockout_duration
                if now < lockout_end:
                    return AttemptCheck(False, 0, lockout_end)
                # Lockout expired
                self.store.delete(identity)
                return AttemptCheck(True, self.max_attempts)

            if now - record.last_attempt_at > self.attempt_window:
                self.store.delete(identity)
                return AttemptCheck(True, self.max_attempts)

            return AttemptCheck(True, self.max_attempts - record.count)

    def record_failed_attempt(self, identity: str) -> None:
        if not identity:
            return

        now = self._clock()
        with self._lock:
            record = self.store.get(identity)
            if record is None or now - record.last_attempt_at > self.attempt_window:
                record = AttemptRecord(count=1, last_attempt_at=now)
            else:
                record = AttemptRecord(count=record.count + 1, last_attempt_at=now)
            self.store.set(identity, record, ttl=self.lockout_duration)

    def reset_attempts(self, identity: str) -> None:
        with self._lock:
            self.store.delete(identity)

    def sweep(self) -> int:
        """Drop records older than the lockout duration. Returns how many."""
        cutoff = self._clock() - self.lockout_duration
        removed = 0
        with self._lock:
            for identity, record in self.store.items():
                if record.last_attempt_at < cutoff:
                    self.store.delete(identity)
                    removed += 1
        return removed

    cleanup = sweep
