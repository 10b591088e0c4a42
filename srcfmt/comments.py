from __future__ import annotations

import re
from typing import List


_OPEN_SPACING_RE = re.compile(r"/\* *")
_OPEN_DOUBLE_STAR_RE = re.compile(r"/\*\*")
_CLOSE_SPACING_RE = re.compile(r" *\*/")

QUOTE = '"'


def split_segments(line: str) -> List[str]:
    return line.split(QUOTE)


def _normalize_segment(segment: str) -> str:
    if "//" in segment and "/*" not in segment:
        segment = segment.replace("//", "/*", 1).rstrip(" \t") + " */"
    segment = _OPEN_SPACING_RE.sub("/* ", segment)
    segment = _OPEN_DOUBLE_STAR_RE.sub("/* ", segment)
    return _CLOSE_SPACING_RE.sub(" */", segment)


def normalize(line: str) -> str:
    """Rewrite a trailing ``//`` comment as ``/* ... */`` outside string literals.

    Odd segments (text between a pair of double quotes) are left verbatim.
    Quotes are not escape-aware and never carry over to the next line.
    """
    segments = split_segments(line)
    inside_quote = False
    for index, segment in enumerate(segments):
        if not inside_quote:
            segments[index] = _normalize_segment(segment)
        inside_quote = not inside_quote
    return QUOTE.join(segments)


def normalize_text(text: str) -> str:
    if not text:
        return ""
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return "".join(f"{normalize(line)}\n" for line in lines)
