# src/aippt/core/ctx.py
from __future__ import annotations
import contextvars
from typing import Optional, Mapping

_session_id = contextvars.ContextVar("session_id", default=None)
_page_index = contextvars.ContextVar("page_index", default=None)
_provider   = contextvars.ContextVar("provider",   default=None)

def set_ctx(*, session_id: Optional[str]=None, page_index: Optional[int]=None,
            provider: Optional[str]=None) -> None:
    if session_id is not None: _session_id.set(session_id)
    if page_index is not None: _page_index.set(page_index)
    if provider is not None:   _provider.set(provider)

def get_ctx() -> Mapping[str, Optional[object]]:
    return {
        "session_id": _session_id.get(),
        "page_index": _page_index.get(),
        "provider":   _provider.get(),
    }
