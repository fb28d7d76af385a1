"""
Decimal text for unbounded integers.

CPython 3.11+ refuses `str(int)` and `int(str)` past a few thousand digits.
Dee integers are unbounded, so conversion goes through fixed-size chunks that
stay well under that limit.
"""

from __future__ import annotations

_CHUNK_DIGITS = 1000
_CHUNK_BASE = 10**_CHUNK_DIGITS


def int_to_text(value: int) -> str:
    if value < 0:
        return "-" + int_to_text(-value)
    if value < _CHUNK_BASE:
        return str(value)
    chunks = []
    while value:
        value, low = divmod(value, _CHUNK_BASE)
        chunks.append(low)
    # Most significant chunk unpadded, the rest zero-filled to full width.
    head = str(chunks.pop())
    return head + "".join(str(chunk).zfill(_CHUNK_DIGITS) for chunk in reversed(chunks))


def int_from_text(text: str) -> int:
    if len(text) <= _CHUNK_DIGITS:
        return int(text)
    value = 0
    for start in range(0, len(text), _CHUNK_DIGITS):
        piece = text[start : start + _CHUNK_DIGITS]
        value = value * 10 ** len(piece) + int(piece)
    return value
