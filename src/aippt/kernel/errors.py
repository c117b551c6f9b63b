from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, Any

EXCERPT_CHARS = 500


def excerpt(text: Any, limit: int = EXCERPT_CHARS) -> str:
    s = text if isinstance(text, str) else repr(text)
    return s[:limit]


@dataclass(eq=False)
class ProblemDetails(Exception):
    type: str = "about:blank"
    title: str = "Operation failed"
    detail: str = ""
    status: int = 400
    code: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type,
            "title": self.title,
            "detail": self.detail,
            "status": self.status,
        }
        if self.code is not None:
            data["code"] = self.code
        if self.meta is not None:
            data["meta"] = self.meta
        return data

    def __str__(self) -> str:
        return f"{self.title} ({self.code or ''}): {self.detail}"


@dataclass(eq=False)
class ConfigurationError(ProblemDetails):
    """Endpoint credentials missing or incomplete. Never retried."""
    title: str = "Model endpoint not configured"
    status: int = 400
    code: Optional[str] = "E_CONFIG"


@dataclass(eq=False)
class ProviderHTTPError(ProblemDetails):
    """Non-2xx (or unreachable) provider response. `provider_status` is 0 for transport errors."""
    title: str = "Provider request failed"
    status: int = 502
    code: Optional[str] = "E_PROVIDER_HTTP"
    provider_status: int = 0
    body: str = ""
    url: str = ""

    def __post_init__(self) -> None:
        if not self.detail:
            self.detail = f"API error ({self.provider_status}): {self.body}\nRequest URL: {self.url}"
        self.meta = {**(self.meta or {}), "provider_status": self.provider_status, "url": self.url}


@dataclass(eq=False)
class ProviderFormatError(ProblemDetails):
    title: str = "Unrecognized provider response"
    status: int = 502
    code: Optional[str] = "E_PROVIDER_FORMAT"
    raw: str = ""

    def __post_init__(self) -> None:
        self.raw = excerpt(self.raw)
        if self.raw:
            self.meta = {**(self.meta or {}), "raw": self.raw}


@dataclass(eq=False)
class ParseError(ProblemDetails):
    title: str = "Could not parse model output"
    status: int = 502
    code: Optional[str] = "E_PARSE"
    text: str = ""

    def __post_init__(self) -> None:
        self.text = excerpt(self.text)
        self.detail = f"{self.detail}\nResponse (first {EXCERPT_CHARS} chars): {self.text}"


@dataclass(eq=False)
class TaskFailedError(ProblemDetails):
    title: str = "Image task failed"
    status: int = 502
    code: Optional[str] = "E_TASK_FAILED"


@dataclass(eq=False)
class TaskTimeoutError(ProblemDetails):
    title: str = "Image task timed out"
    status: int = 504
    code: Optional[str] = "E_TASK_TIMEOUT"


@dataclass(eq=False)
class DownloadError(ProblemDetails):
    title: str = "Image download failed"
    status: int = 502
    code: Optional[str] = "E_DOWNLOAD"
    url: str = ""
