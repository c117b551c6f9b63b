# src/aippt/core/logging.py
"""
Process-wide logging for the deck pipeline.

Every record carries the page being worked on (``session_id``, ``page_index``)
and the provider family handling it, taken from ``aippt.core.ctx``. Records
from third-party libraries get the same fields, so a single format string is
safe everywhere.

Env:
- LOG_LEVEL   (default INFO)
- LOG_FORMAT  (overrides DEFAULT_FORMAT)
- LOG_HTTP    set to 1 to keep httpx/httpcore request lines
"""
from __future__ import annotations

import datetime as dt
import logging
import os
import sys
from typing import Tuple

from aippt.core.ctx import get_ctx

CTX_FIELDS: Tuple[str, ...] = ("session_id", "page_index", "provider")

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s [%(page_tag)s %(provider)s] %(name)s: %(message)s"

# Libraries whose INFO output is one line per request or per poll
QUIET_LOGGERS: Tuple[str, ...] = ("httpx", "httpcore", "asyncio", "uvicorn.access", "multipart")

_old_factory = logging.getLogRecordFactory()


def _page_tag(session_id, page_index) -> str:
    if session_id is None:
        return "-"
    return f"{session_id}#{page_index}" if page_index is not None else str(session_id)


def _record_factory(*args, **kwargs):
    rec: logging.LogRecord = _old_factory(*args, **kwargs)
    ctx = get_ctx()
    for f in CTX_FIELDS:
        if not hasattr(rec, f):
            rec.__dict__[f] = ctx.get(f)
    rec.__dict__.setdefault("page_tag", _page_tag(rec.session_id, rec.page_index))
    return rec


logging.setLogRecordFactory(_record_factory)


class _PipelineFormatter(logging.Formatter):
    """UTC ISO timestamps; "-" for context that is not set."""

    def formatTime(self, record: logging.LogRecord, datefmt=None) -> str:
        return dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        for f in CTX_FIELDS:
            if getattr(record, f, None) is None:
                record.__dict__[f] = "-"
        if not hasattr(record, "page_tag"):
            record.__dict__["page_tag"] = "-"
        return super().format(record)


def _configure_root() -> None:
    root = logging.getLogger()
    if not root.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(_PipelineFormatter(os.getenv("LOG_FORMAT", DEFAULT_FORMAT)))
        root.addHandler(h)
    root.setLevel(os.getenv("LOG_LEVEL", "INFO"))

    if os.getenv("LOG_HTTP") != "1":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


_configure_root()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
