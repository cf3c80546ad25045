"""
Conversion between codepoint collections and CSS unicode-range strings.
"""

from typing import Iterable, List, Set


def _format_run(start: int, end: int) -> str:
    if start == end:
        return f"U+{start:X}"
    return f"U+{start:X}-{end:X}"


def encode_unicode_range(codepoints: Iterable[int]) -> str:
    """Collapse codepoints into a comma-separated list of U+XX / U+XX-YY tokens."""
    ordered = sorted(set(codepoints))
    if not ordered:
        return ""

    tokens: List[str] = []
    start = end = ordered[0]
    for cp in ordered[1:]:
        if cp == end + 1:
            end = cp
            continue
        tokens.append(_format_run(start, end))
        start = end = cp
    tokens.append(_format_run(start, end))
    return ",".join(tokens)


def parse_unicode_range(raw: str) -> Set[int]:
    """Expand a unicode-range string back into codepoints, skipping bad tokens."""
    codepoints: Set[int] = set()
    if not raw:
        return codepoints
    for part in raw.split(","):
        part = part.strip().upper()
        if not part.startswith("U+"):
            continue
        hex_part = part[2:]
        try:
            if "-" in hex_part:
                start_hex, end_hex = hex_part.split("-", 1)
                start = int(start_hex, 16)
                end = int(end_hex, 16)
                if start > end:
                    continue
                codepoints.update(range(start, end + 1))
            else:
                codepoints.add(int(hex_part, 16))
        except ValueError:
            continue
    return codepoints
