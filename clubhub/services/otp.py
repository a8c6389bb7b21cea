"""OTP ledger: one pending single-use verification code per email, time-boxed.

Codes live in process memory. Every read-modify-delete for an email runs under
that email's own lock, so requests for different emails never wait on each other.
A lock exists only while some request holds or waits on it, and codes nobody
came back for are swept once they expire, so memory tracks live codes only.
For a multi-process deployment replace InMemoryCodeStore with a shared store that
supports TTLs.
"""
import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PendingCode:
    code: str
    expires_at: datetime


class _KeyLock:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class InMemoryCodeStore:
    def __init__(self):
        self._codes: dict[str, PendingCode] = {}
        self._locks: dict[str, _KeyLock] = {}
        # Guards creation and removal of per-key locks only, never a key's critical section
        self._registry = threading.Lock()

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        with self._registry:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]

    def get(self, key: str) -> PendingCode | None:
        return self._codes.get(key)

    def put(self, key: str, record: PendingCode) -> None:
        self._codes[key] = record

    def delete(self, key: str) -> None:
        self._codes.pop(key, None)

    def expired_keys(self, now: datetime) -> list[str]:
        return [key for key, record in list(self._codes.items()) if now > record.expires_at]

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._codes)


def generate_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OtpLedger:
    def __init__(
        self,
        ttl_seconds: int = 300,
        store: InMemoryCodeStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.store = store if store is not None else InMemoryCodeStore()
        self._clock = clock
        self._code_factory = code_factory
        self._next_sweep = clock() + self.ttl

    @staticmethod
    def _key(email: str) -> str:
        return (email or "").strip().lower()

    def issue(self, email: str) -> str:
        """Store a fresh code for email, replacing any code still pending."""
        key = self._key(email)
        code = self._code_factory()
        now = self._clock()
        with self.store.locked(key):
            self.store.put(key, PendingCode(code=code, expires_at=now + self.ttl))
        logger.info("OTP issued for %s (expires in %ss)", key, int(self.ttl.total_seconds()))
        if now >= self._next_sweep:
            self._next_sweep = now + self.ttl
            self.sweep(now)
        return code

    def consume(self, email: str, submitted_code: str) -> bool:
        key = self._key(email)
        with self.store.locked(key):
            record = self.store.get(key)
            if record is None:
                return False
            if self._clock() > record.expires_at:
                self.store.delete(key)
                logger.info("OTP for %s expired", key)
                return False
            if not secrets.compare_digest(record.code, str(submitted_code or "").strip()):
                return False
            self.store.delete(key)
            return True

    def discard(self, email: str) -> None:
        key = self._key(email)
        with self.store.locked(key):
            self.store.delete(key)

    def sweep(self, now: datetime | None = None) -> int:
        """Drop codes past their expiry; returns how many were removed."""
        now = now or self._clock()
        removed = 0
        for key in self.store.expired_keys(now):
            with self.store.locked(key):
                # Re-check under the key's lock; the code may have been re-issued meanwhile
                record = self.store.get(key)
                if record is not None and now > record.expires_at:
                    self.store.delete(key)
                    removed += 1
        if removed:
            logger.info("Swept %d expired OTP codes", removed)
        return removed
