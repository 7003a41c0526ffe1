from colorama import init as colorama_init, Fore, Style
from datetime import datetime
colorama_init(autoreset=True)


class Log:
    def __init__(self, verbose: int = 1):
        self.verbose = verbose
        self.PAY = Fore.MAGENTA

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def info(self, msg: str):
        if self.verbose >= 1:
            print(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            print(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        print(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        print(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            print(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def inconclusive(self, point: str, payload: str, reason: str):
        if self.verbose >= 1:
            print(f"{self._fmt('INCONCLUSIVE', Fore.YELLOW)} {point} = "
                  f"{self.PAY}{payload!r}{Style.RESET_ALL} {Style.DIM}({reason}){Style.RESET_ALL}")

    def finding(self, finding):
        sev_col = {"critical": Fore.RED, "high": Fore.RED, "medium": Fore.YELLOW,
                   "low": Fore.GREEN}.get(finding.severity, Fore.WHITE)
        print(f"{self._fmt(finding.severity.upper(), sev_col)} {finding.message} "
              f"{finding.point} = {Fore.MAGENTA}{finding.payload!r}{Style.RESET_ALL} "
              f"{Style.DIM}(HTTP {finding.status_code}){Style.RESET_ALL}")

    def summary(self, report):
        line = (f"{report.state.value}: {report.attempts} request(s), "
                f"{len(report.findings)} finding(s), "
                f"{len(report.inconclusive)} inconclusive")
        if report.findings:
            self.fail(line)
        else:
            self.ok(line)
