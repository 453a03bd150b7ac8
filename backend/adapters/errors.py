"""
External service failure taxonomy.

Adapters wrap every vendor exception in one of these classes (with
`raise ... from exc`) so the pipeline can apply its per-stage fallback
without knowing vendor SDK exception types.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for failures of an external service call."""


class TranscriptionError(ServiceError):
    """Speech -> text failed. The turn aborts silently."""


class GenerationError(ServiceError):
    """Reply generation failed. A fixed apology replaces the reply."""


class SynthesisError(ServiceError):
    """Text -> speech failed. The turn completes without audio."""
