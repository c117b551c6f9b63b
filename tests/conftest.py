# tests/conftest.py
import json
import os, sys, pathlib, tempfile
from typing import Callable, List

import httpx
import pytest

# Keep generated artifacts out of the repo during tests
os.environ.setdefault("GENERATED_DIR", tempfile.mkdtemp(prefix="aippt-generated-"))

# Add <repo>/src to sys.path so `import aippt...` works under pytest
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class Recorder:
    """httpx.MockTransport wrapper that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._serve)

    def _serve(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def bodies(self) -> list:
        return [json.loads(r.content) if r.content else None for r in self.requests]

    def urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]


class Sleeps:
    """Async no-op sleep that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds):
        self.calls.append(float(seconds))


@pytest.fixture
def sleeps():
    return Sleeps()


@pytest.fixture
def generated(tmp_path, monkeypatch):
    from aippt.core.config import settings
    monkeypatch.setattr(settings, "GENERATED_DIR", str(tmp_path))
    return tmp_path
