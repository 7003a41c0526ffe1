import pytest

from webinject.checkers.predicates import (
    ALL, FIRST, allow, body_matches, deny, evaluate, leaks_errors, reflected,
)
from webinject.core.errors import ScanConfigurationError, VerificationError
from webinject.core.models import Finding, RequestSnapshot, Response


SNAPSHOT = RequestSnapshot("PUT", "http://localhost/api?id=x")


def response(status=200, body=""):
    return Response(status_code=status, body=body, request=SNAPSHOT)


@pytest.mark.parametrize("status", [400, 404, 204])
def test_allow_list_accepts_listed_status(status):
    assert allow(400, 404, 204)("x", response(status)) is None


def test_allow_list_flags_anything_else():
    resp = response(200)
    finding = allow([400, 404, 204])("' or 1=1", resp)
    assert finding.severity == "medium"
    assert finding.payload == "' or 1=1"
    assert finding.response is resp
    assert finding.request == SNAPSHOT
    assert "deserialization" in finding.message


def test_predicates_do_not_touch_inputs():
    resp = response(500, "boom")
    allow(200)("p", resp)
    reflected()("p", resp)
    assert resp == response(500, "boom")


def test_deny():
    assert deny(500)("x", response(200)) is None
    assert deny(500)("x", response(500)).severity == "medium"


def test_reflected_payload():
    payload = "abc<script>alert(1)</script>"
    assert reflected()(payload, response(body=f"<p>{payload}</p>")).severity == "high"
    assert reflected()(payload, response(body="<p>abc&lt;script&gt;</p>")) is None
    assert reflected()(payload, response(body="nothing here")) is None


def test_body_matches_and_error_leaks():
    finding = leaks_errors()("x", response(500, "Traceback (most recent call last):"))
    assert finding.severity == "low"
    assert body_matches(r"ORA-\d+", "high")("x", response(body="ORA-00933")).severity == "high"
    assert leaks_errors()("x", response(200, "all good")) is None


def test_first_flagging_predicate_wins():
    calls = []

    def spy(payload, resp):
        calls.append(payload)

    findings = evaluate([allow(400), deny(200), spy], "p", response(200), FIRST)
    assert len(findings) == 1
    assert "deserialization" in findings[0].message
    assert calls == []


def test_all_policy_collects_every_finding():
    findings = evaluate([allow(400), deny(200)], "p", response(200), ALL)
    assert len(findings) == 2


def test_no_findings_when_nothing_flags():
    assert evaluate([allow(200), deny(500)], "p", response(200)) == []


def test_crashing_predicate_raises_verification_error():
    def broken(payload, resp):
        raise KeyError("nope")

    with pytest.raises(VerificationError) as e:
        evaluate([broken], "p", response())
    assert isinstance(e.value.cause, KeyError)
    assert "broken" in str(e.value)


def test_finding_severity_is_checked():
    with pytest.raises(ValueError):
        Finding("urgent", "m", "p")


def test_non_finding_result_raises_verification_error():
    with pytest.raises(VerificationError) as e:
        evaluate([lambda p, r: True], "p", response())
    assert isinstance(e.value.cause, TypeError)


def test_body_matches_checks_severity_up_front():
    with pytest.raises(ScanConfigurationError):
        body_matches("x", severity="urgent")
