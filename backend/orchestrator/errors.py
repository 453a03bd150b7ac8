"""Orchestrator-internal errors (never user-visible)."""

from __future__ import annotations


class StaleResultError(Exception):
    """
    A pipeline result arrived for a generation that is no longer current.

    Raised by the reducer's generation gate and converted into a
    `stale_result_dropped` log decision; it never leaves reduce().
    """

    def __init__(self, *, result_generation: int, current_generation: int) -> None:
        super().__init__(
            f"stale generation {result_generation} (current {current_generation})"
        )
        self.result_generation = result_generation
        self.current_generation = current_generation
