"""Tests for unicode-range encoding and parsing."""

import pytest

from fontsift.unicode_range import encode_unicode_range, parse_unicode_range


class TestEncode:
    def test_empty(self):
        assert encode_unicode_range([]) == ""
        assert encode_unicode_range(set()) == ""

    def test_single_codepoint(self):
        assert encode_unicode_range([0x41]) == "U+41"

    def test_runs_and_singles(self):
        assert encode_unicode_range([0x43, 0x41, 0x42, 0x61, 0x2014]) == "U+41-43,U+61,U+2014"

    def test_duplicates_dropped(self):
        assert encode_unicode_range([0x41, 0x41, 0x42, 0x42]) == "U+41-42"

    def test_uppercase_hex_without_padding(self):
        assert encode_unicode_range([0xA, 0xFF, 0x1F600]) == "U+A,U+FF,U+1F600"

    def test_two_element_run_is_a_range(self):
        assert encode_unicode_range([0x30, 0x31]) == "U+30-31"

    @pytest.mark.parametrize(
        "codepoints",
        [
            [0x20, 0x21, 0x22, 0x7E],
            [0x1F600, 0x1F601, 0x41, 0x41],
            list(range(0x400, 0x500)) + [0x20AC],
        ],
    )
    def test_expands_back_to_sorted_unique_set(self, codepoints):
        encoded = encode_unicode_range(codepoints)
        assert sorted(parse_unicode_range(encoded)) == sorted(set(codepoints))


class TestParse:
    def test_skips_garbage(self):
        assert parse_unicode_range("U+41, nonsense, U+ZZ, U+43-41, u+61") == {0x41, 0x61}

    def test_empty(self):
        assert parse_unicode_range("") == set()
