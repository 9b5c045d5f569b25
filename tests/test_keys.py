"""Unit tests for cache key construction and matching."""

import pytest

from catalog_cache.cache.errors import InvalidKeyError
from catalog_cache.cache.keys import build_cache_key, compile_pattern, validate_key


def test_build_joins_with_colon():
    assert build_cache_key("tmdb", "tv", 603) == "tmdb:tv:603"
    assert build_cache_key("tmdb", "tv", 603, "season", 1) == "tmdb:tv:603:season:1"


def test_build_is_deterministic():
    assert build_cache_key("search", "matrix", 2) == build_cache_key("search", "matrix", 2)


def test_build_escapes_delimiter_inside_parts():
    # ("a:b", "c") and ("a", "b:c") must not collide
    first = build_cache_key("a:b", "c")
    second = build_cache_key("a", "b:c")
    assert first != second
    assert first == "a%3Ab:c"
    assert second == "a:b%3Ac"


def test_build_escapes_percent_so_escapes_cannot_collide():
    assert build_cache_key("a%3Ab") != build_cache_key("a:b")
    assert build_cache_key("100%") == "100%25"


def test_build_renders_bools_and_floats():
    assert build_cache_key("adult", True) == "adult:1"
    assert build_cache_key("adult", False) == "adult:0"
    assert build_cache_key("rating", 7.5) == "rating:7.5"


def test_build_keeps_case():
    assert build_cache_key("search", "Matrix") != build_cache_key("search", "matrix")


def test_build_escapes_edge_whitespace_and_control_characters():
    assert build_cache_key("search", "dune ") == "search:dune%20"
    assert build_cache_key(" dune", 1) == "%20dune:1"
    assert build_cache_key("search", "dune\npart\ttwo") == "search:dune%0Apart%09two"
    assert build_cache_key("search", "  ") == "search:%20%20"
    assert build_cache_key("search", "dune\u00a0") == "search:dune%C2%A0"
    # Inner spaces are left alone
    assert build_cache_key("search", "dune part two") == "search:dune part two"


def test_build_whitespace_variants_do_not_collide():
    keys = {
        build_cache_key("search", "dune"),
        build_cache_key("search", "dune "),
        build_cache_key("search", " dune"),
        build_cache_key("search", "dune%20"),
    }
    assert len(keys) == 4
    for key in keys:
        assert validate_key(key) == key


def test_build_rejects_none_and_empty():
    with pytest.raises(InvalidKeyError):
        build_cache_key("tmdb", None)  # type: ignore[arg-type]
    with pytest.raises(InvalidKeyError):
        build_cache_key()
    with pytest.raises(InvalidKeyError):
        build_cache_key("")


@pytest.mark.parametrize("bad", ["", " tmdb", "tmdb ", "tmdb\n603", 603, None])
def test_validate_key_rejects_malformed(bad):
    with pytest.raises(InvalidKeyError):
        validate_key(bad)


def test_invalid_key_is_a_value_error():
    with pytest.raises(ValueError):
        validate_key("")


def test_glob_pattern_is_anchored_and_case_sensitive():
    matches = compile_pattern("tmdb:*:603")
    assert matches("tmdb:tv:603")
    assert matches("tmdb:movie:603")
    assert not matches("tmdb:tv:6031")
    assert not matches("TMDB:tv:603")
    assert not matches("x:tmdb:tv:603")


def test_pattern_without_wildcards_matches_exactly():
    matches = compile_pattern("tmdb:tv:603")
    assert matches("tmdb:tv:603")
    assert not matches("tmdb:tv:603:season:1")


def test_regex_pattern_uses_fullmatch():
    matches = compile_pattern(r"re:tmdb:(tv|movie):\d+")
    assert matches("tmdb:tv:603")
    assert not matches("tmdb:tv:603:credits")


def test_invalid_regex_raises():
    with pytest.raises(InvalidKeyError):
        compile_pattern("re:tmdb:(")
    with pytest.raises(InvalidKeyError):
        compile_pattern("re:")
    with pytest.raises(InvalidKeyError):
        compile_pattern("")
