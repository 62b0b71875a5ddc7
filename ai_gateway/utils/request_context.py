from __future__ import annotations

from contextvars import ContextVar

# x-request-id of the request being served. Set by RequestContextMiddleware; sync
# endpoints run in the threadpool with a copy of the context, so model-call and
# normalization logs pick it up through the loguru patcher.
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def current_request_id() -> str:
    return request_id_var.get() or "-"
