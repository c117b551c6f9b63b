from __future__ import annotations

import asyncio
from collections import OrderedDict
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

import httpx

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import DownloadError
from aippt.schemas import Artifact

log = get_logger(__name__)

PUBLIC_PREFIX = "/generated"
_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


# ------------------ naming ------------------
def generated_dir() -> Path:
    p = Path(settings.GENERATED_DIR).resolve()
    p.mkdir(parents=True, exist_ok=True)
    return p

def artifact_filename(session_id: str, page_index: int, ext: str) -> str:
    """page_{session}_{index}.{ext}; the page index keeps concurrent pages apart."""
    sid = _UNSAFE.sub("_", str(session_id)) or "session"
    return f"page_{sid}_{int(page_index)}.{ext.lstrip('.')}"

def public_path(name: str) -> str:
    """/generated/<name>, made absolute when PUBLIC_BASE_URL is set."""
    base = (settings.PUBLIC_BASE_URL or "").rstrip("/")
    return f"{base}{PUBLIC_PREFIX}/{name}"


# ------------------ local FS ------------------
def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


async def write_bytes(name: str, data: bytes) -> str:
    """Persist under GENERATED_DIR and return the public /generated/... path."""
    path = generated_dir() / name
    await asyncio.to_thread(_write_atomic, path, data)
    log.info("artifact written %s (%d bytes)", path, len(data))
    return public_path(name)


async def write_text(name: str, text: str) -> str:
    return await write_bytes(name, text.encode("utf-8"))


# ------------------ remote ------------------
async def download_image(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> bytes:
    try:
        async with httpx.AsyncClient(
            transport=transport,
            timeout=settings.DOWNLOAD_TIMEOUT_SEC,
            follow_redirects=True,
        ) as c:
            r = await c.get(url)
            r.raise_for_status()
            return r.content
    except httpx.HTTPError as e:
        raise DownloadError(detail=f"Could not download {url}: {e}", url=url) from e


# ------------------ per-session store ------------------
class SessionArtifacts:
    """
    Explicit store: session id -> {page index -> Artifact}.
    Regenerating a page overwrites its entry; reset() drops the whole session.
    Holds at most `max_sessions`; the least recently written session is evicted first.
    """

    def __init__(self, max_sessions: Optional[int] = None) -> None:
        self.max_sessions = max_sessions if max_sessions is not None else settings.MAX_SESSIONS
        self._sessions: "OrderedDict[str, Dict[int, Artifact]]" = OrderedDict()

    def record(self, session_id: str, page_index: int, artifact: Artifact) -> None:
        self._sessions.setdefault(session_id, {})[page_index] = artifact
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, pages = self._sessions.popitem(last=False)
            log.info("session store full, evicted %s (%d pages)", evicted, len(pages))

    def get(self, session_id: str, page_index: int) -> Optional[Artifact]:
        return self._sessions.get(session_id, {}).get(page_index)

    def list(self, session_id: str) -> Dict[int, Artifact]:
        return dict(sorted(self._sessions.get(session_id, {}).items()))

    def reset(self, session_id: str) -> int:
        return len(self._sessions.pop(session_id, {}))
