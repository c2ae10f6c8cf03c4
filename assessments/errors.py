# examhall/assessments/errors.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NOT_ELIGIBLE = "not_eligible"
    NO_ACTIVE_ATTEMPT = "no_active_attempt"
    ALREADY_FINALIZED = "already_finalized"
    INTERNAL = "internal"


@dataclass(frozen=True)
class LifecycleError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Outcome:
    """Either a value or a LifecycleError. Lifecycle operations never raise domain errors."""

    value: Any = None
    error: Optional[LifecycleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value=None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Outcome":
        return cls(error=LifecycleError(kind, message))
