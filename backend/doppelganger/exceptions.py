"""Doppelganger-specific exception types shared across modules."""

from __future__ import annotations

from typing import Sequence


class DoppelgangerError(Exception):
    """Base class for clone and serve failures."""


class ExtractionError(DoppelgangerError):
    """Raised when the target server cannot be reached or initialized."""

    def __init__(self, target: str, reason: str | None = None):
        self.target = target
        self.reason = reason or "connection_failed"
        super().__init__(f"could not clone {target}: {self.reason}")


class SurfaceLoadError(DoppelgangerError):
    """Raised when a persisted description cannot be read or parsed."""


class SurfaceValidationError(SurfaceLoadError):
    """Raised when a persisted description does not match the schema."""

    def __init__(self, violations: Sequence[str]):
        if not violations:
            msg = "SurfaceValidationError requires at least one violation"
            raise ValueError(msg)
        self.violations = list(violations)
        details = "\n".join(f"  - {violation}" for violation in self.violations)
        super().__init__(f"Invalid configuration:\n{details}")


class DecoyServerError(DoppelgangerError):
    """Raised when the decoy server cannot be started."""
