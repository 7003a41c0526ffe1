import dataclasses

import pytest
from hypothesis import given, strategies as st

from webinject.core.errors import ScanConfigurationError
from webinject.core.injection import (
    BodyField, Header, PathSegment, QueryParameter, compose, field, fuzz_points,
    header, parameter, segment,
)
from webinject.generators.base import Values
from webinject.generators.fuzz import AlphanumSpecial
from webinject.parsers.request import RequestTemplate, endpoint


TEMPLATE = (
    endpoint("POST", "http://localhost:4000/api")
    .routes(["monitor", "relatedmessages"])
    .parameter("id", "1")
    .parameter("direction", "asc")
    .header("X-Api-Key", "k")
    .json({"user": {"name": "admin", "roles": ["a"]}, "note": "hi"})
)

POINTS = [parameter("id"), segment(1), header("X-Api-Key"), field("user.name")]


def _changed(a: RequestTemplate, b: RequestTemplate):
    return [f.name for f in dataclasses.fields(a) if getattr(a, f.name) != getattr(b, f.name)]


@pytest.mark.parametrize("point,expected", [
    (parameter("id"), "query"),
    (segment(1), "segments"),
    (header("X-Api-Key"), "headers"),
    (field("user.name"), "body"),
])
def test_substitution_changes_one_field(point, expected):
    out = point.substitute(TEMPLATE, "<x>")
    assert _changed(TEMPLATE, out) == [expected]


@given(st.text())
def test_substitution_leaves_template_untouched(payload):
    before = dataclasses.replace(TEMPLATE, body={"user": {"name": "admin", "roles": ["a"]}, "note": "hi"})
    for point in POINTS:
        point.substitute(TEMPLATE, payload)
    assert TEMPLATE == before


def test_query_substitution():
    out = parameter("id").substitute(TEMPLATE, "' or 1=1")
    assert out.get_parameter("id") == "' or 1=1"
    assert out.get_parameter("direction") == "asc"


def test_query_parameter_is_added_when_missing():
    tpl = endpoint("GET", "http://x")
    assert parameter("q").substitute(tpl, "v").query == (("q", "v"),)


def test_path_substitution():
    out = segment(-1).substitute(TEMPLATE, "..%2f")
    assert out.segments == ("monitor", "..%2f")


def test_header_substitution_keeps_other_headers():
    tpl = TEMPLATE.header("Accept", "*/*")
    out = header("X-Api-Key").substitute(tpl, "evil")
    assert out.get_header("X-Api-Key") == "evil"
    assert out.get_header("Accept") == "*/*"


def test_nested_body_substitution():
    out = field("user.name").substitute(TEMPLATE, "evil")
    assert out.body["user"] == {"name": "evil", "roles": ["a"]}
    assert TEMPLATE.body["user"]["name"] == "admin"


def test_whole_raw_body_substitution():
    tpl = endpoint("POST", "http://x").content("<a>FUZZ</a>")
    out = BodyField("", "FUZZ").substitute(tpl, "&xxe;")
    assert out.body == "<a>&xxe;</a>"
    assert out.body_type == "raw"


def test_marker_substitution():
    tpl = endpoint("GET", "http://x").parameter("q", "pre-FUZZ-post")
    out = QueryParameter("q", "FUZZ").substitute(tpl, "X")
    assert out.get_parameter("q") == "pre-X-post"


@pytest.mark.parametrize("point", [
    PathSegment(2),
    PathSegment(-3),
    Header("Host"),
    BodyField("user.name.first"),
    BodyField("missing.name"),
    QueryParameter(""),
])
def test_points_that_do_not_fit_template(point):
    with pytest.raises(ScanConfigurationError):
        point.check(TEMPLATE)


def test_body_field_needs_dict_body():
    with pytest.raises(ScanConfigurationError):
        field("a").check(endpoint("GET", "http://x"))


def test_compose_is_cross_product():
    requests = list(compose(TEMPLATE, POINTS, Values(["a", "b", "c"])))
    assert len(requests) == 3 * len(POINTS)
    assert [r.payload for r in requests[:4]] == ["a"] * 4
    assert [r.point for r in requests[:4]] == POINTS
    for r in requests:
        assert len(_changed(TEMPLATE, r.request)) == 1


def test_compose_is_lazy_for_infinite_generators():
    it = compose(TEMPLATE, [parameter("id")], AlphanumSpecial())
    first = [next(it) for _ in range(5)]
    again = compose(TEMPLATE, [parameter("id")], AlphanumSpecial())
    assert [r.payload for r in first] == [next(again).payload for _ in range(5)]


def test_fuzz_points_are_detected():
    raw = """POST /api/FUZZ/items?q=FUZZ&x=1 HTTP/1.1
Host: example.com
X-Trace: FUZZ
Content-Type: application/json

{"user": {"name": "FUZZ"}, "n": 1}"""
    tpl = RequestTemplate.from_raw(raw)
    points = fuzz_points(tpl)
    assert [p.label for p in points] == ["path.1", "query.q", "header.X-Trace", "body.user.name"]
    for p in points:
        p.check(tpl)
    assert points[0].substitute(tpl, "zz").segments == ("api", "zz", "items")
    assert points[2].substitute(tpl, "zz").get_header("X-Trace") == "zz"
    assert points[3].substitute(tpl, "zz").body == {"user": {"name": "zz"}, "n": 1}


def test_no_fuzz_points_without_marker():
    assert fuzz_points(TEMPLATE) == []
