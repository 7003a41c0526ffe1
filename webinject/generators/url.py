"""Tampered URLs: every query parameter drawn from its own generator."""

from typing import Dict
from urllib.parse import quote

from webinject.core.errors import GenerationError
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


class TamperedUrl(BaseGenerator):

    def __init__(self, base: str, params: Dict[str, BaseGenerator]):
        if not base:
            raise GenerationError("base URL must not be empty")
        if not params:
            raise GenerationError("at least one query parameter is required")
        self.name = "Tampered URL"
        self.base = base.rstrip("?&")
        self.params = dict(params)
        self.finite = all(g.finite for g in self.params.values())

    def _url(self, pairs) -> str:
        qs = "&".join(f"{quote(k, safe='')}={quote(v, safe='')}" for k, v in pairs)
        sep = "&" if "?" in self.base else "?"
        return f"{self.base}{sep}{qs}"

    def _extra(self, rnd, size):
        return []

    def generate(self, size=DEFAULT_SIZE, seed=0):
        rnd = self.rng(seed)
        iters = {k: g.generate(size, seed) for k, g in self.params.items()}
        while True:
            pairs = []
            for k, it in iters.items():
                try:
                    pairs.append((k, next(it)))
                except StopIteration:
                    return
            yield self._url(pairs + self._extra(rnd, size))


class BogusUrl(TamperedUrl):
    """Tampered URL plus one to three made-up query parameters."""

    def __init__(self, base: str, params: Dict[str, BaseGenerator]):
        super().__init__(base, params)
        self.name = "Bogus URL"

    def _extra(self, rnd, size):
        taken = set(self.params)
        extra = []
        count = rnd.randint(1, 3)
        while len(extra) < count:
            name = "x" + self.rand(rnd, rnd.randint(3, 8))
            if name in taken:
                continue
            taken.add(name)
            extra.append((name, self.rand(rnd, rnd.randint(0, max(1, size)))))
        return extra
