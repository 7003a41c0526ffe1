import string

import pytest
from hypothesis import given, strategies as st

from webinject.core.errors import GenerationError
from webinject.generators.base import Values
from webinject.generators.fuzz import (
    AlphanumSpecial, CaseVariation, Dictionary, EncodingVariation, JOHN_THE_RIPPER,
    Numbers, case, encoding, encoding_from,
)


def test_weak_passwords_are_in_dictionary():
    words = set(Dictionary().generate())
    assert {"password", "qwerty"} <= words
    assert {"password", "qwerty"} <= set(JOHN_THE_RIPPER)


def test_dictionary_has_no_duplicates():
    words = list(Dictionary(["a", "b", "a"]).generate())
    assert words == ["a", "b"]


def test_case_of_extension():
    xs = case(".php")
    assert ".php" in xs
    assert len(xs) == 16
    assert {".PHP", ".Php", ".pHp"} <= set(xs)


@given(st.text(alphabet=string.ascii_letters, min_size=0, max_size=8))
def test_case_permutations_of_letters_are_distinct(s):
    xs = case(s)
    assert len(xs) == 2 ** len(s)
    assert len(set(xs)) == 2 ** len(s)
    assert s in xs


@given(st.text(alphabet=string.ascii_letters, min_size=5, max_size=20))
def test_case_respects_cap(s):
    xs = list(CaseVariation(s, cap=4).generate())
    assert len(xs) == 16
    assert all(x[4:] == s[4:] for x in xs)


def test_case_is_restartable():
    gen = CaseVariation("Admin")
    assert list(gen.generate()) == list(gen.generate())


def test_negative_cap_is_rejected():
    with pytest.raises(GenerationError):
        CaseVariation("x", cap=-1)


def test_encoding_of_ascii_input_is_unchanged():
    xs = encoding("some input")
    assert xs
    assert all(x == "some input" for x in xs)


@given(st.text(alphabet=string.ascii_letters + string.digits + " .-_"))
def test_lossless_encoding_keeps_input(s):
    assert all(x == s for x in encoding(s))


def test_lossy_encoding_uses_placeholder():
    xs = encoding_from("utf-16", "👍")
    assert "?" in xs
    assert "👍" in xs   # utf-8/16/32 targets can still hold it


def test_single_byte_target_replaces_glyph():
    xs = list(EncodingVariation("👍", source="utf-16", targets=["ascii"]).generate())
    assert xs == ["?"]


def test_unknown_encoding_is_rejected():
    with pytest.raises(GenerationError):
        EncodingVariation("x", targets=["no-such-codec"])


@given(st.integers(min_value=0, max_value=2 ** 32), st.integers(min_value=1, max_value=50))
def test_alphanum_special_is_deterministic(seed, size):
    gen = AlphanumSpecial()
    first = gen.take(10, size=size, seed=seed)
    assert first == gen.take(10, size=size, seed=seed)
    assert all(1 <= len(x) <= size for x in first)


def test_alphanum_special_is_not_finite():
    assert AlphanumSpecial.finite is False
    assert len(AlphanumSpecial().take(500)) == 500


def test_alphanum_special_rejects_bad_size():
    with pytest.raises(GenerationError):
        AlphanumSpecial().take(1, size=0)


def test_numbers_stay_in_range():
    xs = Numbers(1, 9).take(200, seed=3)
    assert all(1 <= int(x) <= 9 for x in xs)
    with pytest.raises(GenerationError):
        Numbers(5, 1)


def test_values_are_replayed():
    gen = Values(["a", "b", "c"])
    assert list(gen.generate()) == ["a", "b", "c"]
    assert list(gen) == ["a", "b", "c"]
