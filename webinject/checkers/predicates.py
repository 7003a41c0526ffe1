# webinject/checkers/predicates.py
import re
from html import unescape
from typing import Callable, Iterable, List, Optional, Sequence, Union

from webinject.core.errors import ScanConfigurationError, VerificationError
from webinject.core.models import SEVERITIES, Finding, Response


Predicate = Callable[[str, Response], Optional[Finding]]

# Predicate composition policies
FIRST = "first"     # the first predicate that flags wins
ALL = "all"         # every flagging predicate is recorded
POLICIES = (FIRST, ALL)


def _codes(statuses) -> frozenset:
    out = set()
    for s in statuses:
        if isinstance(s, (list, tuple, set, frozenset, range)):
            out.update(int(x) for x in s)
        else:
            out.add(int(s))
    return frozenset(out)


def allow(*statuses: Union[int, Iterable[int]],
          message: str = "Possible deserialization or input handling problem") -> Predicate:
    """
    Allow-list: responses with one of `statuses` are fine, anything else is
    a medium finding carrying the payload.
        allow(400, 404, 204)
    """
    accepted = _codes(statuses)

    def check(payload: str, response: Response) -> Optional[Finding]:
        if response.status_code in accepted:
            return None
        return Finding.medium(message, response, payload)

    check.__name__ = f"allow{tuple(sorted(accepted))}"
    return check


def deny(*statuses: Union[int, Iterable[int]],
         message: str = "Unexpected status for injected input") -> Predicate:
    refused = _codes(statuses)

    def check(payload: str, response: Response) -> Optional[Finding]:
        if response.status_code in refused:
            return Finding.medium(message, response, payload)
        return None

    check.__name__ = f"deny{tuple(sorted(refused))}"
    return check


def _looks_escaped(text: str) -> bool:
    """
    Entities present and nothing dangerous once unescaped: treat the
    reflection as neutralised.
    """
    only_entities = (
        "&lt;" in text or "&gt;" in text or "&quot;" in text or "&#x27;" in text)
    esc = unescape(text)
    return only_entities and ("<" not in esc and ">" not in esc)


def reflected(message: str = "Payload reflected without encoding (possible XSS)") -> Predicate:
    """High finding when the payload comes back verbatim in the body."""

    def check(payload: str, response: Response) -> Optional[Finding]:
        body = response.body
        if not payload or payload not in body:
            return None
        if _looks_escaped(body):
            return None
        return Finding.high(message, response, payload)

    check.__name__ = "reflected"
    return check


def body_matches(patterns: Union[str, Sequence[str]], severity: str = "medium",
                 message: str = "Response body matches an error signature") -> Predicate:
    if severity not in SEVERITIES:
        raise ScanConfigurationError(f"severity must be one of {SEVERITIES}")
    if isinstance(patterns, str):
        patterns = [patterns]
    rxs = [re.compile(p, re.I | re.M) for p in patterns]

    def check(payload: str, response: Response) -> Optional[Finding]:
        for rx in rxs:
            m = rx.search(response.body)
            if m:
                return Finding(severity, f"{message}: {m.group(0)!r}", payload, response)
        return None

    check.__name__ = "body_matches"
    return check


# Real errors only; reflected payload text must not match
ERROR_PATTERNS = [
    # SQL
    r"SQL syntax.*MySQL",
    r"You have an error in your SQL syntax",
    r"PostgreSQL.*ERROR",
    r"Unclosed quotation mark after the character string",
    r"ORA-\d{5}",
    r"SQLite.*error",
    r"PDOException",
    # XPath / XML
    r"XPathException",
    r"Invalid predicate",
    r"xmlXPathEval",
    r"XmlException",
    r"unterminated entity reference",
    # Files
    r"failed to open stream",
    r"open_basedir restriction",
    r"System\.IO\.",
    # Stack traces
    r"Traceback \(most recent call last\)",
    r"at [\w.$]+\([\w]+\.java:\d+\)",
]


def leaks_errors(severity: str = "low") -> Predicate:
    return body_matches(ERROR_PATTERNS, severity, "Error details leaked for injected input")


def evaluate(predicates: Sequence[Predicate], payload: str, response: Response,
             policy: str = FIRST) -> List[Finding]:
    """
    Ordered fold over the predicates.  FIRST stops at the first finding,
    ALL collects them all.  A crashing predicate raises VerificationError.
    """
    findings: List[Finding] = []
    for predicate in predicates:
        try:
            finding = predicate(payload, response)
        except Exception as e:
            raise VerificationError(predicate, e) from e
        if finding is None:
            continue
        if not isinstance(finding, Finding):
            cause = TypeError(f"returned {type(finding).__name__}, expected Finding or None")
            raise VerificationError(predicate, cause)
        findings.append(finding)
        if policy == FIRST:
            break
    return findings
