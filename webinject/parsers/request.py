import copy
import json
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, urlsplit

from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


Body = Union[None, str, Dict[str, Any]]
QueryValue = Union[str, BaseGenerator]

_SEGMENT_SAFE = "%:@!$&'()*+,;=~"


@dataclass(frozen=True)
class RequestTemplate:
    """
    Immutable description of an HTTP request.

        endpoint("PUT", "http://localhost:4000/api")
            .routes(["monitor", "relatedmessages"])
            .parameter("id", "1")

    Every builder call returns a new template; injection points derive
    their variants from it the same way.
    """

    method: str = "GET"
    url: str = ""
    segments: Tuple[str, ...] = ()
    query: Tuple[Tuple[str, QueryValue], ...] = ()
    headers: Tuple[Tuple[str, str], ...] = ()
    body: Body = None
    body_type: Optional[str] = None     # "json", "form", "raw"

    # ── builder ─────────────────────────────────────────────────

    def routes(self, segments: List[str]) -> "RequestTemplate":
        return replace(self, segments=self.segments + tuple(segments))

    def parameter(self, name: str, value: QueryValue = "") -> "RequestTemplate":
        query = [(k, v) for k, v in self.query if k != name]
        return replace(self, query=tuple(query) + ((name, value),))

    def header(self, name: str, value: str) -> "RequestTemplate":
        headers = [(k, v) for k, v in self.headers if k.lower() != name.lower()]
        return replace(self, headers=tuple(headers) + ((name, value),))

    def json(self, body: Dict[str, Any]) -> "RequestTemplate":
        return replace(self, body=copy.deepcopy(body), body_type="json")

    def form(self, body: Dict[str, Any]) -> "RequestTemplate":
        return replace(self, body=copy.deepcopy(body), body_type="form")

    def content(self, body: str) -> "RequestTemplate":
        return replace(self, body=body, body_type="raw")

    # ── accessors ───────────────────────────────────────────────

    def get_parameter(self, name: str, default=None):
        for k, v in self.query:
            if k == name:
                return v
        return default

    def get_header(self, name: str, default=None):
        for k, v in self.headers:
            if k.lower() == name.lower():
                return v
        return default

    def full_url(self) -> str:
        if not self.segments:
            return self.url
        path = "/".join(quote(s, safe=_SEGMENT_SAFE) for s in self.segments)
        return f"{self.url.rstrip('/')}/{path}"

    def params(self) -> List[Tuple[str, str]]:
        """Query pairs; generator values must be resolved first."""
        out = []
        for k, v in self.query:
            if isinstance(v, BaseGenerator):
                raise TypeError(f"query parameter {k!r} is unresolved, call resolve() first")
            out.append((k, v))
        return out

    def resolve(self, size: int = DEFAULT_SIZE, seed: Optional[int] = 0) -> "RequestTemplate":
        """Replace generator-valued query parameters with their first value."""
        if not any(isinstance(v, BaseGenerator) for _, v in self.query):
            return self
        query = []
        for k, v in self.query:
            if isinstance(v, BaseGenerator):
                v = next(iter(v.generate(size, seed)), "")
            query.append((k, v))
        return replace(self, query=tuple(query))

    # ── raw request files ───────────────────────────────────────

    @classmethod
    def from_raw(cls, raw: str, protocol: str = "https") -> "RequestTemplate":
        """
        GET /api/users?id=1 HTTP/1.1
        Host: example.com
        Content-Type: xxx

        data=xxx
        """
        raw = raw.replace("\r\n", "\n")
        head, _, body_raw = raw.partition("\n\n")
        if not head.strip():
            raise ValueError("Request is empty.")

        lines = [l for l in head.split("\n") if l.strip()]

        # Request line: METHOD SP PATH [SP HTTP/x.y]
        parts0 = lines[0].split()
        if len(parts0) < 2:
            raise ValueError(f"Invalid request line: {lines[0]!r}")
        method = parts0[0].upper()
        url_parts = urlsplit(parts0[1])

        headers = []
        for line in lines[1:]:
            if ':' in line:
                k, v = line.split(':', 1)
                headers.append((k.strip(), v.strip()))

        host = next((v for k, v in headers if k.lower() == "host"), "")
        if not host:
            host = url_parts.netloc
        if not host:
            raise ValueError("Host not defined in the request.")
        headers = [(k, v) for k, v in headers
                   if k.lower() not in ("host", "content-length")]

        path = url_parts.path
        segments = tuple(path[1:].split("/")) if path.startswith("/") else ()

        tpl = cls(
            method=method,
            url=f"{protocol}://{host}",
            segments=segments,
            query=tuple(parse_qsl(url_parts.query, keep_blank_values=True)),
            headers=tuple(headers),
        )

        ctype = (tpl.get_header("Content-Type") or "").lower()
        body_raw = body_raw.strip()
        if body_raw:
            if "application/json" in ctype:
                try:
                    data = json.loads(body_raw)
                except ValueError:
                    return tpl.content(body_raw)  # keep raw when it is not valid JSON
                return tpl.json(data) if isinstance(data, dict) else tpl.content(body_raw)
            if "application/x-www-form-urlencoded" in ctype:
                return tpl.form(dict(parse_qsl(body_raw, keep_blank_values=True)))
            return tpl.content(body_raw)
        return tpl

    @classmethod
    def load(cls, filename: str, protocol: str = "https") -> "RequestTemplate":
        with open(filename, 'r', encoding='utf-8', errors='ignore') as f:
            return cls.from_raw(f.read(), protocol)

    def __str__(self) -> str:
        return f"{self.method} {self.full_url()}"


def endpoint(method: str, url: str) -> RequestTemplate:
    return RequestTemplate(method=method.upper(), url=url)
