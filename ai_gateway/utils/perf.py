from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from loguru import logger

from ai_gateway.core.settings import settings


def _slow_ms() -> float:
    try:
        return float(getattr(settings, "PERF_LOG_SLOW_MS", 250) or 250)
    except (TypeError, ValueError):
        return 250.0


@contextmanager
def perf_span(op: str, **tags: Any) -> Iterator[dict[str, Any]]:
    """Time a gateway step (model call, normalization) and log it.

    Yields the tag dict so the block can record what it produced, e.g.
    ``span["output_chars"] = len(text)``. Logged at WARNING when slower than
    PERF_LOG_SLOW_MS, at DEBUG otherwise when PERF_LOG_INNER_ALWAYS=true.
    The request id is added by the log patcher.
    """

    span: dict[str, Any] = dict(tags)
    enabled = bool(getattr(settings, "PERF_LOG_ENABLED", True)) and bool(getattr(settings, "PERF_LOG_INNER_ENABLED", True))
    if not enabled:
        yield span
        return

    t0 = time.perf_counter()
    ok = True
    try:
        yield span
    except Exception:
        ok = False
        raise
    finally:
        dt_ms = (time.perf_counter() - t0) * 1000.0
        slow = dt_ms >= _slow_ms()
        if slow or bool(getattr(settings, "PERF_LOG_INNER_ALWAYS", False)):
            logger.log(
                "WARNING" if slow else "DEBUG",
                "PERF {op} {status}: {ms:.1f}ms {tags}",
                op=op,
                status="ok" if ok else "err",
                ms=dt_ms,
                tags={k: v for k, v in span.items() if v is not None},
            )
