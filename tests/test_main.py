import pytest

from webinject.main import build_generator, main, parse_args


RELATED = """PUT /api/monitor/relatedmessages?id=1&direction=asc HTTP/1.1
Host: lab
Accept: application/json

"""

XSS = """GET /xss?q=FUZZ HTTP/1.1
Host: lab

"""


@pytest.fixture
def request_file(tmp_path):
    def write(raw, name="req.txt"):
        path = tmp_path / name
        path.write_text(raw)
        return str(path)
    return write


def test_findings_exit_with_one(request_file, lab_transport):
    argv = ["--request", request_file(RELATED), "--request-proto", "http",
            "-g", "xpath", "--param", "id", "--allow", "400", "--allow", "204", "-v"]
    assert main(argv, transport=lab_transport) == 1


def test_clean_scan_exits_with_zero(request_file, lab_transport):
    raw = RELATED.replace("/api/", "/safe/api/")
    argv = ["--request", request_file(raw), "--request-proto", "http",
            "-g", "xpath", "--param", "id", "--allow", "400", "--allow", "204"]
    assert main(argv, transport=lab_transport) == 0


def test_marker_points_are_used_by_default(request_file, lab_transport, capsys):
    argv = ["--request", request_file(XSS), "--request-proto", "http",
            "-g", "xss", "--reflected"]
    assert main(argv, transport=lab_transport) == 1
    assert "query.q" in capsys.readouterr().out


@pytest.mark.parametrize("extra", [
    ["-g", "alphanum", "--param", "id", "--allow", "400"],   # infinite, no budget
    ["-g", "case", "--param", "id", "--allow", "400"],       # needs --text
    ["-g", "xpath", "--param", "id"],                        # no predicate
    ["-g", "xpath", "--segment", "9", "--allow", "400"],     # no such segment
    ["-g", "xpath", "--param", "id", "--allow", "400", "-w", "0"],
])
def test_configuration_errors_exit_with_two(request_file, lab_transport, extra):
    argv = ["--request", request_file(RELATED), "--request-proto", "http"] + extra
    assert main(argv, transport=lab_transport) == 2


def test_missing_request_file_exits_with_two(tmp_path, lab_transport):
    argv = ["--request", str(tmp_path / "nope.txt"), "-g", "xpath", "--allow", "400"]
    assert main(argv, transport=lab_transport) == 2


def test_budgeted_infinite_generator_runs(request_file, lab_transport):
    argv = ["--request", request_file(RELATED), "--request-proto", "http",
            "-g", "numbers", "--param", "id", "-n", "5", "--allow", "200"]
    assert main(argv, transport=lab_transport) == 0


def test_generators_with_text():
    assert build_generator("case", "ab").take(4) == ["ab", "Ab", "aB", "AB"]
    args = parse_args(["--request", "r.txt"])
    assert args.generator == "alphanum"
    assert args.workers == 1
