"""Mutational generators: case, encoding, charset and dictionary fuzzing."""

import string
from typing import List, Sequence

from webinject.core.errors import GenerationError
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


# Head of John the Ripper's password.lst
JOHN_THE_RIPPER = (
    "123456", "12345", "password", "password1", "123456789", "12345678",
    "1234567890", "abc123", "computer", "tigger", "1234", "qwerty",
    "money", "carmen", "mickey", "secret", "summer", "internet", "a1b2c3",
    "123", "service", "canada", "hello", "ranger", "shadow", "baseball",
    "donald", "harley", "hockey", "letmein", "maggie", "mike", "mustang",
    "snoopy", "buster", "dragon", "jordan", "michael", "michelle",
    "mindy", "patrick", "123abc", "andrew", "bear", "calvin", "changeme",
    "diamond", "fuckme", "fuckyou", "matthew", "miller", "ou812",
    "tiger", "trustno1", "alex", "apple", "avalon", "brandy",
    "chelsea", "coffee", "dave", "falcon", "freedom", "gandalf", "golf",
    "green", "helpme", "linda", "magic", "merlin", "molson", "newyork",
    "soccer", "thomas", "wizard", "Monday", "asdfgh", "bandit", "batman",
    "boris", "butthead", "dorothy", "eeyore", "fishing", "football",
    "george", "happy", "iloveyou", "jennifer", "jonathan", "love",
    "marina", "master", "missy", "monday", "monkey", "natasha", "ncc1701",
    "newpass", "pamela", "pepper", "piglet", "poohbear", "pookie",
    "rabbit", "rachel", "rocket", "rose", "smile", "sparky", "spring",
    "steven", "success", "sunshine", "thx1138", "victoria", "whatever",
    "zapata", "1", "8675309", "Internet", "amanda", "andy", "angel",
    "august", "barney", "biteme", "boomer", "brian", "casey", "coke",
    "cowboy", "delta", "doctor", "fisher", "foobar", "island", "john",
    "joshua", "karen", "marley", "orange", "please", "rascal", "richard",
    "sarah", "scooter", "shalom", "silver", "skippy", "stanley", "taylor",
    "welcome", "zephyr", "111111", "1928", "aaaaaa", "abc", "access",
    "admin", "root", "toor", "guest", "test", "default", "qwertyuiop",
)

DEFAULT_ENCODINGS = ("ascii", "latin-1", "cp1252", "utf-7", "utf-8", "utf-16", "utf-32")

SPECIAL = "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~ \t\r\n\x00"
ALPHANUM_SPECIAL = string.ascii_letters + string.digits + SPECIAL


class Dictionary(BaseGenerator):
    """Weak credentials for dictionary attacks."""

    def __init__(self, words: Sequence[str] = JOHN_THE_RIPPER):
        self.name = "Weak password dictionary"
        seen = set()
        self.words = tuple(w for w in words if not (w in seen or seen.add(w)))

    def generate(self, size=DEFAULT_SIZE, seed=0):
        return iter(self.words)


class CaseVariation(BaseGenerator):
    """
    Upper/lower case permutations of a string (".php" → ".PhP", ".PHP", ...).

    One value per bit mask over the first min(len(text), cap) positions, so
    exactly 2**min(n, cap) values come out and mask 0 is the input itself.
    Positions without case map onto themselves.
    """

    def __init__(self, text: str, cap: int = 10):
        if cap < 0:
            raise GenerationError("cap must be >= 0")
        self.name = "Case variation"
        self.text = text
        self.cap = cap

    def generate(self, size=DEFAULT_SIZE, seed=0):
        n = min(len(self.text), self.cap)
        head, tail = self.text[:n], self.text[n:]
        for mask in range(2 ** n):
            chars = [
                c.swapcase() if mask >> i & 1 else c
                for i, c in enumerate(head)
            ]
            yield "".join(chars) + tail


class EncodingVariation(BaseGenerator):
    """
    Round-trips the input through several encodings.  Characters a target
    cannot represent become "?" instead of failing.
    """

    def __init__(self, text: str, source: str = "utf-8",
                 targets: Sequence[str] = DEFAULT_ENCODINGS):
        if not targets:
            raise GenerationError("at least one target encoding is required")
        for enc in (source, *targets):
            try:
                "".encode(enc)
            except LookupError as e:
                raise GenerationError(f"unknown encoding {enc!r}") from e
        self.name = "Encoding variation"
        self.text = text
        self.source = source
        self.targets = tuple(targets)

    def generate(self, size=DEFAULT_SIZE, seed=0):
        text = self.text.encode(self.source, errors="replace").decode(
            self.source, errors="replace")
        for enc in self.targets:
            yield text.encode(enc, errors="replace").decode(enc, errors="replace")


def case(text: str, cap: int = 10) -> List[str]:
    return list(CaseVariation(text, cap).generate())


def encoding_from(source: str, text: str) -> List[str]:
    return list(EncodingVariation(text, source=source).generate())


def encoding(text: str) -> List[str]:
    return encoding_from("utf-8", text)


class AlphanumSpecial(BaseGenerator):
    """Random strings over letters, digits and special characters."""

    finite = False

    def __init__(self, min_length: int = 1, alphabet: str = ALPHANUM_SPECIAL):
        if min_length < 0:
            raise GenerationError("min_length must be >= 0")
        if not alphabet:
            raise GenerationError("alphabet must not be empty")
        self.name = "Alphanumeric + special characters"
        self.min_length = min_length
        self.alphabet = alphabet

    def generate(self, size=DEFAULT_SIZE, seed=0):
        self.check_size(size)
        rnd = self.rng(seed)
        top = max(size, self.min_length)
        while True:
            n = rnd.randint(self.min_length, top)
            yield "".join(rnd.choice(self.alphabet) for _ in range(n))


class Numbers(BaseGenerator):
    """Random integers rendered as strings."""

    finite = False

    def __init__(self, min_value: int = -(2 ** 31), max_value: int = 2 ** 31 - 1):
        if min_value > max_value:
            raise GenerationError("min_value must be <= max_value")
        self.name = "Numbers"
        self.min_value = min_value
        self.max_value = max_value

    def generate(self, size=DEFAULT_SIZE, seed=0):
        rnd = self.rng(seed)
        while True:
            yield str(rnd.randint(self.min_value, self.max_value))
