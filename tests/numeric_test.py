from __future__ import annotations

from deelang.numeric import int_from_text, int_to_text


def test_small_values_use_plain_conversion() -> None:
	assert int_to_text(0) == "0"
	assert int_to_text(-42) == "-42"
	assert int_from_text("007") == 7


def test_chunk_boundaries() -> None:
	assert int_to_text(10**1000) == "1" + "0" * 1000
	assert int_to_text(10**2000 + 5) == "1" + "0" * 1999 + "5"
	assert int_to_text(-(10**3000)) == "-1" + "0" * 3000


def test_text_to_int_in_chunks() -> None:
	assert int_from_text("1" + "0" * 4999 + "7") == 10**5000 + 7
	assert int_from_text("0" * 2500 + "12") == 12
