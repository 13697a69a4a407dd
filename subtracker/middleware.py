import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class QueryCounter:
    """Statements executed on behalf of one request."""

    __slots__ = ("count",)

    def __init__(self) -> None:
        self.count = 0


# Holds the current request's counter.  The engine listener runs inside
# SQLAlchemy's greenlet bridge, where ``ContextVar.set`` would not reach
# the request's context, so it mutates the shared counter in place.
query_counter_var: ContextVar[QueryCounter | None] = ContextVar("query_counter", default=None)


def current_query_count() -> int:
    counter = query_counter_var.get()
    return counter.count if counter is not None else 0


def install_query_counter(engine) -> None:
    """
    Count every statement *engine* sends to the database into the
    current request's ``QueryCounter``.

    Call once per engine: ``database.build_engine`` does it for the
    application engine and ``conftest.py`` for the test engine.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        counter = query_counter_var.get()
        if counter is not None:
            counter.count += 1


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class TimingMiddleware:
    """
    Per-request access log plus ``X-Response-Time-Ms`` and
    ``X-Query-Count`` response headers.

    Written as raw ASGI rather than ``BaseHTTPMiddleware`` so the
    application runs in this task and shares its request-scoped query
    counter.  Non-HTTP scopes pass straight through.
    """

    def __init__(self, app: ASGIApp, logger: logging.Logger | None = None) -> None:
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        token = query_counter_var.set(QueryCounter())
        started = time.perf_counter()
        status_code = 500

        async def send_with_timing(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                headers.append("X-Response-Time-Ms", str(_elapsed_ms(started)))
                headers.append("X-Query-Count", str(current_query_count()))
            await send(message)

        try:
            await self.app(scope, receive, send_with_timing)
        finally:
            self._log_request(scope, status_code, _elapsed_ms(started))
            query_counter_var.reset(token)

    def _log_request(self, scope: Scope, status_code: int, duration_ms: float) -> None:
        client = scope.get("client")
        self.logger.info(
            "HTTP request",
            extra={
                "method": scope["method"],
                "path": scope["path"],
                "status": status_code,
                "duration_ms": duration_ms,
                "query_count": current_query_count(),
                "client_ip": client[0] if client else None,
                "user_agent": Headers(scope=scope).get("user-agent", ""),
            },
        )
