"""
Exception taxonomy for the ticket engine.

ConfigurationError and ValidationError are caller mistakes and are never
retried. AssemblyExhausted and AllocationInfeasible are raised after a
bounded retry loop gave up; they carry the attempt count so the caller can
decide whether to relax constraints. InvariantViolation signals a bug and
must never be caught.
"""

from typing import Optional


class TicketEngineError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(TicketEngineError, ValueError):
    pass


class ValidationError(TicketEngineError, ValueError):
    pass


class AssemblyExhausted(TicketEngineError, RuntimeError):
    def __init__(self, attempts: int, message: Optional[str] = None):
        self.attempts = attempts
        super().__init__(
            message or f"Could not assemble a unique valid ticket after {attempts} attempts"
        )


class AllocationInfeasible(TicketEngineError, RuntimeError):
    def __init__(self, bucket: str, attempts: int):
        self.bucket = bucket
        self.attempts = attempts
        super().__init__(f"[{bucket}] Dealing failed after {attempts} attempts")


class InvariantViolation(TicketEngineError, AssertionError):
    pass
