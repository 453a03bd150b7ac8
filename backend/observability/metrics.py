"""
Timing helpers for observability.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit metrics as JSONL events via observability.logger
- Never aggregate: one metric = one log event

Design notes:
- Durations use monotonic time for correctness
- Event timestamps (ts_ms) use wall-clock time for human readability
- `timed()` is the only API, so a timer can never leak
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    generation: int | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Context manager for measuring durations safely.

    Guarantees:
    - Metric is emitted exactly once
    - Exceptions inside the block do NOT suppress timing; the metric
      records `ok: false` and the exception type, then re-raises

    The yielded dict may be filled in by the caller with extra details
    that are only known at the end of the block.

    Usage:
        with timed("transcribe", session_id=sid, generation=gen) as extra:
            text = await transcriber.transcribe(...)
            extra["chars"] = len(text)
    """
    extra: dict[str, Any] = dict(details or {})
    start_ns = time.monotonic_ns()
    ok = True
    try:
        yield extra
    except BaseException as exc:
        ok = False
        extra["exception"] = type(exc).__name__
        raise
    finally:
        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        log_event({
            # Wall-clock timestamp for log correlation / readability
            "ts_ms": int(time.time() * 1000),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": duration_ms,
            "ok": ok,
            "session_id": session_id,
            "generation": generation,
            "details": extra,
        })
