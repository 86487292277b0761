from __future__ import annotations

import json
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

LOGGER_NAME = "ok_target"


class ClientFilter(logging.Filter):
    """Ensure every record has a client attribute for JSON formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "client"):
            record.client = "-"
        return True


class JsonLineFormatter(logging.Formatter):
    """Render a record as one JSON object; the message is escaped like any other value."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "msg": record.getMessage(),
            "client": getattr(record, "client", "-"),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def setup_json_logging(logger_name: str = LOGGER_NAME, level: str = "warning") -> logging.Logger:
    """
    Configure the service logger with JSON line format:

      {"ts":"...","level":"...","msg":"...","client":"..."}

    Idempotent: a second call only adjusts the level.
    """
    logger = logging.getLogger(logger_name)
    numeric = logging.getLevelName(level.upper())
    # uvicorn also accepts "trace", which the logging module has no name for
    logger.setLevel(numeric if isinstance(numeric, int) else logging.DEBUG)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLineFormatter())
    handler.addFilter(ClientFilter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Emit a compact access line per request.

    - Logs: method, path, status, duration_ms, client.
    - Leaves the response untouched (no extra headers).
    """

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.log = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client = request.client.host if request.client else "-"
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = int((time.time() - start) * 1000)
            self.log.exception(
                'unhandled_exception method="%s" path="%s" duration_ms=%d',
                request.method,
                request.url.path,
                duration_ms,
                extra={"client": client},
            )
            raise

        duration_ms = int((time.time() - start) * 1000)
        self.log.info(
            'access method="%s" path="%s" status=%d duration_ms=%d',
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"client": client},
        )
        return response
