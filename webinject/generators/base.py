"""Abstract base for all payload generators."""

from abc import ABC, abstractmethod
from itertools import islice
from typing import Iterable, Iterator, List, Optional
import random
import string

from webinject.core.errors import GenerationError


DEFAULT_SIZE = 30


class BaseGenerator(ABC):
    """Every generator must implement generate(size, seed).

    Generators are immutable once built: the same instance called with the
    same size/seed always reproduces the same sequence.  Parameter checks
    happen in the constructor and raise GenerationError.
    """

    name: str = "Unnamed Generator"
    finite: bool = True

    # ── public API ──────────────────────────────────────────────

    @abstractmethod
    def generate(self, size: int = DEFAULT_SIZE, seed: Optional[int] = 0) -> Iterator[str]:
        """Return a lazy sequence of payloads."""
        ...

    def take(self, n: int, size: int = DEFAULT_SIZE, seed: Optional[int] = 0) -> List[str]:
        """First *n* payloads of the sequence."""
        return list(islice(self.generate(size, seed), n))

    def __iter__(self):
        return self.generate()

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r}>"

    # ── shared helpers ──────────────────────────────────────────

    @staticmethod
    def rng(seed: Optional[int]) -> random.Random:
        return random.Random(seed)

    @staticmethod
    def rand(rnd: random.Random, n: int = 8) -> str:
        """Random alphanumeric canary string."""
        abc = string.ascii_letters + string.digits
        return "".join(rnd.choice(abc) for _ in range(n))

    @staticmethod
    def check_size(size: int, minimum: int = 1):
        if not isinstance(size, int) or size < minimum:
            raise GenerationError(f"size must be an integer >= {minimum}, got {size!r}")


class Values(BaseGenerator):
    """Fixed, finite list of payloads."""

    def __init__(self, values: Iterable[str], name: str = "Values"):
        self.name = name
        self.values = tuple(values)

    def generate(self, size=DEFAULT_SIZE, seed=0):
        return iter(self.values)
