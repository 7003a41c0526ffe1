"""Injection points and the composer that binds payloads to them."""

import copy
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Union

from webinject.core.errors import ScanConfigurationError
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE
from webinject.parsers.request import RequestTemplate


FUZZ = "FUZZ"


def _put(current: Optional[str], payload: str, marker: Optional[str]) -> str:
    if marker and isinstance(current, str):
        return current.replace(marker, payload)
    return payload


@dataclass(frozen=True)
class QueryParameter:
    """Query string value; added when the template does not carry it yet."""
    name: str
    marker: Optional[str] = None

    @property
    def label(self) -> str:
        return f"query.{self.name}"

    def check(self, template: RequestTemplate):
        if not self.name:
            raise ScanConfigurationError("query parameter name must not be empty")

    def substitute(self, template: RequestTemplate, payload: str) -> RequestTemplate:
        current = template.get_parameter(self.name)
        if current is None:
            return template.parameter(self.name, payload)
        query = tuple(
            (k, _put(v, payload, self.marker) if k == self.name else v)
            for k, v in template.query
        )
        return replace(template, query=query)


@dataclass(frozen=True)
class PathSegment:
    """Route segment by position."""
    index: int
    marker: Optional[str] = None

    @property
    def label(self) -> str:
        return f"path.{self.index}"

    def check(self, template: RequestTemplate):
        n = len(template.segments)
        if not -n <= self.index < n:
            raise ScanConfigurationError(
                f"path segment {self.index} out of range for {n} route segment(s)")

    def substitute(self, template: RequestTemplate, payload: str) -> RequestTemplate:
        segments = list(template.segments)
        segments[self.index] = _put(segments[self.index], payload, self.marker)
        return replace(template, segments=tuple(segments))


@dataclass(frozen=True)
class Header:
    name: str
    marker: Optional[str] = None

    @property
    def label(self) -> str:
        return f"header.{self.name}"

    def check(self, template: RequestTemplate):
        if not self.name or self.name.lower() in ("host", "content-length"):
            raise ScanConfigurationError(f"header {self.name!r} cannot be injected")

    def substitute(self, template: RequestTemplate, payload: str) -> RequestTemplate:
        current = template.get_header(self.name)
        return template.header(self.name, _put(current, payload, self.marker))


@dataclass(frozen=True)
class BodyField:
    """
    Field of a dict body, nested fields as a dotted path ("user.name").
    The empty path stands for the whole body of a raw (string) request.
    """
    path: str
    marker: Optional[str] = None

    @property
    def label(self) -> str:
        return f"body.{self.path}" if self.path else "body"

    @property
    def keys(self) -> List[str]:
        return self.path.split(".")

    def check(self, template: RequestTemplate):
        if not self.path:
            if not isinstance(template.body, (str, type(None))):
                raise ScanConfigurationError("the whole-body point needs a raw body")
            return
        if not isinstance(template.body, dict):
            raise ScanConfigurationError(
                f"body field {self.path!r} needs a JSON or form body")
        node = template.body
        for key in self.keys[:-1]:
            node = node.get(key) if isinstance(node, dict) else None
            if not isinstance(node, dict):
                raise ScanConfigurationError(f"body path {self.path!r} does not exist")

    def substitute(self, template: RequestTemplate, payload: str) -> RequestTemplate:
        if not self.path:
            return template.content(_put(template.body, payload, self.marker))
        body = copy.deepcopy(template.body)
        node = body
        *parents, leaf = self.keys
        for key in parents:
            node = node[key]
        current = node.get(leaf)
        if isinstance(current, list):
            # form bodies parsed from raw requests may carry repeated values
            node[leaf] = [_put(x, payload, self.marker) for x in current] or [payload]
        else:
            node[leaf] = _put(current, payload, self.marker)
        return replace(template, body=body)


InjectionPoint = Union[QueryParameter, PathSegment, Header, BodyField]


def parameter(name: str) -> QueryParameter:
    return QueryParameter(name)


def segment(index: int) -> PathSegment:
    return PathSegment(index)


def header(name: str) -> Header:
    return Header(name)


def field(path: str) -> BodyField:
    return BodyField(path)


@dataclass(frozen=True)
class ConcreteRequest:
    point: InjectionPoint
    payload: str
    request: RequestTemplate


def compose(template: RequestTemplate, points: Sequence[InjectionPoint],
            generator: BaseGenerator, size: int = DEFAULT_SIZE,
            seed: Optional[int] = 0) -> Iterator[ConcreteRequest]:
    """
    One concrete request per payload per injection point, payload-major so
    infinite generators still reach every point.
    """
    for payload in generator.generate(size, seed):
        for point in points:
            yield ConcreteRequest(point, payload, point.substitute(template, payload))


# ---------- FUZZ markers ----------

def _walk_body(node, marker, prefix=""):
    for k, v in node.items():
        path = f"{prefix}{k}"
        if isinstance(v, dict):
            yield from _walk_body(v, marker, path + ".")
        elif isinstance(v, list) and any(isinstance(x, str) and marker in x for x in v):
            yield path
        elif isinstance(v, str) and marker in v:
            yield path


def fuzz_points(template: RequestTemplate, marker: str = FUZZ) -> List[InjectionPoint]:
    """Injection points for every position of the template holding `marker`."""
    points: List[InjectionPoint] = []
    for i, s in enumerate(template.segments):
        if marker in s:
            points.append(PathSegment(i, marker))
    for k, v in template.query:
        if isinstance(v, str) and marker in v:
            points.append(QueryParameter(k, marker))
    for k, v in template.headers:
        if marker in v:
            points.append(Header(k, marker))
    if isinstance(template.body, dict):
        points += [BodyField(p, marker) for p in _walk_body(template.body, marker)]
    elif isinstance(template.body, str) and marker in template.body:
        points.append(BodyField("", marker))
    return points
