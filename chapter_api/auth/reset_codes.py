"""One-time password-reset codes.

A code is issued per normalized email, lives for a short window, and must
be presented (``verify``) before it can authorize a password change
(``consume_if_verified``). Issuing a new code for the same email replaces
the previous one. Expired records are dropped lazily when they are looked at.
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import Lock
from typing import Callable

from chapter_api.core import config

CODE_MIN = 100000
CODE_MAX = 999999


class VerifyResult(str, Enum):
    VERIFIED = "verified"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    NOT_FOUND = "not_found"


class ConsumeResult(str, Enum):
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"


@dataclass
class ResetCodeRecord:
    code: str
    expires_at: datetime
    verified: bool = False


@dataclass(frozen=True)
class ResetClaim:
    """Outcome of ``consume_if_verified``.

    ``record`` is the exact record that was found verified; pass it back
    to ``discard`` once the password has been changed.
    """
    result: ConsumeResult
    record: ResetCodeRecord | None = None

    @property
    def verified(self) -> bool:
        return self.result is ConsumeResult.VERIFIED


def generate_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResetCodeStore(ABC):
    ttl: timedelta

    @abstractmethod
    def issue(self, email: str) -> ResetCodeRecord:
        ...

    @abstractmethod
    def verify(self, email: str, code: str) -> VerifyResult:
        ...

    @abstractmethod
    def consume_if_verified(self, email: str) -> ResetClaim:
        ...

    @abstractmethod
    def discard(self, email: str, record: ResetCodeRecord | None = None) -> None:
        ...


class InMemoryResetCodeStore(ResetCodeStore):
    """Process-local store; records do not survive a restart."""

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds or config.RESET_CODE_TTL_SECONDS)
        self._clock = clock
        self._code_factory = code_factory
        self._records: dict[str, ResetCodeRecord] = {}
        self._lock = Lock()

    def issue(self, email: str) -> ResetCodeRecord:
        record = ResetCodeRecord(code=self._code_factory(), expires_at=self._clock() + self.ttl)
        with self._lock:
            self._records[email] = record
        return record

    def verify(self, email: str, code: str) -> VerifyResult:
        with self._lock:
            record = self._records.get(email)
            if record is None:
                return VerifyResult.NOT_FOUND

            if self._clock() > record.expires_at:
                del self._records[email]
                return VerifyResult.EXPIRED

            if record.code != code:
                return VerifyResult.MISMATCH

            record.verified = True
            return VerifyResult.VERIFIED

    def consume_if_verified(self, email: str) -> ResetClaim:
        with self._lock:
            record = self._records.get(email)
            if record is None:
                return ResetClaim(ConsumeResult.NOT_VERIFIED)

            if self._clock() > record.expires_at:
                del self._records[email]
                return ResetClaim(ConsumeResult.NOT_VERIFIED)

            if not record.verified:
                return ResetClaim(ConsumeResult.NOT_VERIFIED)

            # Single use: a second claim needs another successful verify.
            record.verified = False
            return ResetClaim(ConsumeResult.VERIFIED, record)

    def discard(self, email: str, record: ResetCodeRecord | None = None) -> None:
        with self._lock:
            current = self._records.get(email)
            if current is None:
                return
            # A code issued after ``record`` stays in place.
            if record is not None and record is not current:
                return
            del self._records[email]

    def get(self, email: str) -> ResetCodeRecord | None:
        with self._lock:
            return self._records.get(email)

    def __len__(self) -> int:
        return len(self._records)
