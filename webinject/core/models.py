"""Shared data models for the injection scanner."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import httpx


SEVERITIES = ("critical", "high", "medium", "low", "info")


class ScanState(str, Enum):
    BUILT = "built"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RequestSnapshot:
    """What actually went over the wire for one attempt."""
    method: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    body: str = ""

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> "RequestSnapshot":
        try:
            body = request.content.decode("utf-8", errors="replace")
        except httpx.RequestNotRead:
            body = ""
        return cls(
            method=request.method,
            url=str(request.url),
            headers=tuple(request.headers.items()),
            body=body,
        )


@dataclass(frozen=True)
class Response:
    """Read-only snapshot of a response returned by a dispatcher."""
    status_code: int
    body: str = ""
    headers: Tuple[Tuple[str, str], ...] = ()
    elapsed: float = 0.0
    request: Optional[RequestSnapshot] = None

    @classmethod
    def from_httpx(cls, response: httpx.Response, elapsed: float = 0.0) -> "Response":
        return cls(
            status_code=response.status_code,
            body=response.text or "",
            headers=tuple(response.headers.items()),
            elapsed=elapsed,
            request=RequestSnapshot.from_httpx(response.request),
        )

    def header(self, name: str, default: str = "") -> str:
        name = name.lower()
        for k, v in self.headers:
            if k.lower() == name:
                return v
        return default


@dataclass(frozen=True)
class Finding:
    """A single suspected vulnerability, with its evidence."""
    severity: str          # "critical", "high", "medium", "low", "info"
    message: str
    payload: str
    response: Optional[Response] = None
    point: str = ""        # "query.id", "path.1", "header.X-Api", "body.user.name"

    def __post_init__(self):
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity {self.severity!r}")

    @property
    def request(self) -> Optional[RequestSnapshot]:
        return self.response.request if self.response else None

    @property
    def status_code(self) -> int:
        return self.response.status_code if self.response else 0

    @classmethod
    def high(cls, message: str, response: Response, payload: str) -> "Finding":
        return cls("high", message, payload, response)

    @classmethod
    def medium(cls, message: str, response: Response, payload: str) -> "Finding":
        return cls("medium", message, payload, response)

    @classmethod
    def low(cls, message: str, response: Response, payload: str) -> "Finding":
        return cls("low", message, payload, response)

    def __str__(self):
        where = f" @ {self.point}" if self.point else ""
        return (f"[{self.severity.upper()}] {self.message}{where} "
                f"— payload={self.payload!r} (HTTP {self.status_code})")


@dataclass(frozen=True)
class Attempt:
    """Outcome of one concrete request."""
    point: str
    payload: str
    outcome: str           # "passed", "finding", "inconclusive"
    reason: str = ""
    findings: Tuple[Finding, ...] = ()


@dataclass(frozen=True)
class ScanReport:
    state: ScanState
    findings: Tuple[Finding, ...] = ()
    inconclusive: Tuple[Attempt, ...] = ()
    attempts: int = 0

    @property
    def passed(self) -> bool:
        return not self.findings

    def __str__(self):
        return "\n".join(str(f) for f in self.findings)
