import argparse
import sys

from webinject.checkers.predicates import ALL, FIRST, allow, leaks_errors, reflected
from webinject.core.dispatcher import HttpDispatcher
from webinject.core.engine import Scan, ScanConfig
from webinject.core.errors import ScanConfigurationError, WebInjectError
from webinject.core.injection import (
    BodyField, Header, PathSegment, QueryParameter, fuzz_points,
)
from webinject.generators.fuzz import (
    AlphanumSpecial, CaseVariation, Dictionary, EncodingVariation, Numbers,
)
from webinject.generators.traversal import DirTraversal, FixedFileTraversal
from webinject.generators.xml import XmlBomb, XmlMalicious
from webinject.generators.xpath import XPathInjection
from webinject.generators.xss import XssInjection
from webinject.parsers.request import RequestTemplate
from webinject.reporters.console import Log


GENERATORS = {
    "alphanum": AlphanumSpecial,
    "numbers": Numbers,
    "passwords": Dictionary,
    "xpath": XPathInjection,
    "xss": XssInjection,
    "traversal": DirTraversal,
    "traversal-file": FixedFileTraversal,
    "xml": XmlMalicious,
    "xml-bomb": XmlBomb,
    "case": CaseVariation,
    "encoding": EncodingVariation,
}
_NEEDS_TEXT = {"case", "encoding"}


def build_generator(name: str, text: str = None):
    cls = GENERATORS[name]
    if name in _NEEDS_TEXT:
        if text is None:
            raise ScanConfigurationError(f"generator {name!r} needs --text")
        return cls(text)
    return cls()


def build_points(args, template):
    points = [QueryParameter(p) for p in args.param]
    points += [Header(h) for h in args.header]
    points += [PathSegment(i) for i in args.segment]
    points += [BodyField(f) for f in args.field]
    return points or fuzz_points(template)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Payload injection scanner")
    p.add_argument("--proxy", help="Proxy (e.g. http://127.0.0.1:8080)")
    p.add_argument("--request", required=True, help="Raw HTTP request file")
    p.add_argument("--request-proto", default="https",
                   choices=["http", "https"])
    p.add_argument("-g", "--generator", default="alphanum", choices=sorted(GENERATORS))
    p.add_argument("--text", help="Input for the case/encoding generators")
    p.add_argument("--param", action="append", default=[], help="Query parameter to inject")
    p.add_argument("--header", action="append", default=[], help="Header to inject")
    p.add_argument("--segment", action="append", default=[], type=int,
                   help="Route segment index to inject")
    p.add_argument("--field", action="append", default=[],
                   help="Body field to inject (dotted path)")
    p.add_argument("--allow", action="append", default=[], type=int,
                   help="Acceptable status code for injected requests")
    p.add_argument("--reflected", action="store_true",
                   help="Flag payloads reflected without encoding")
    p.add_argument("--errors", action="store_true",
                   help="Flag error messages leaked in the response body")
    p.add_argument("--all-findings", action="store_true",
                   help="Record every flagging predicate instead of the first")
    p.add_argument("-w", "--workers", type=int, default=1)
    p.add_argument("--timeout", type=float, default=10.0, help="Per-request deadline (s)")
    p.add_argument("--scan-timeout", type=float, help="Stop issuing requests after (s)")
    p.add_argument("-n", "--max-payloads", type=int, help="Stop after this many requests")
    p.add_argument("--size", type=int, default=30)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    return p.parse_args(argv)


def main(argv=None, transport=None) -> int:
    args = parse_args(argv)
    log = Log(verbose=args.verbose)

    try:
        template = RequestTemplate.load(args.request, args.request_proto)
        scan = Scan.inject(build_generator(args.generator, args.text))
        for point in build_points(args, template):
            scan = scan.into(point)
        if args.allow:
            scan = scan.should(allow(args.allow))
        if args.reflected:
            scan = scan.should(reflected())
        if args.errors:
            scan = scan.should(leaks_errors())
        config = ScanConfig(
            workers=args.workers, request_timeout=args.timeout,
            scan_timeout=args.scan_timeout, max_payloads=args.max_payloads,
            size=args.size, seed=args.seed,
            policy=ALL if args.all_findings else FIRST,
        )
        session = scan.build(template, config, logger=log)
    except (WebInjectError, ValueError, OSError) as e:
        log.fail(f"Configuration error: {e}")
        return 2

    report = session.run(HttpDispatcher(proxy=args.proxy, transport=transport))
    return 1 if report.findings else 0


if __name__ == "__main__":
    sys.exit(main())
