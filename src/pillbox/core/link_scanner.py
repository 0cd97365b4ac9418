"""Link boundary detection for plain-text segments (core domain).

The URL-start grammar only finds where a link begins and where its host
ends. Everything after that (path, query, parentheses, trailing sentence
punctuation) is decided here one character at a time.
"""

from __future__ import annotations

from functools import lru_cache
import re
from typing import Iterator

from tlds import tld_set

from pillbox.core.models import LinkCandidate

# Characters that open a path, query or fragment after the host.
PATH_OPENERS = frozenset("/?#")

# Characters that can never be part of a bare link.
URL_STOP_CHARS = frozenset('<>"`')

# Closing brackets matched against openers seen inside the link.
BRACKET_PAIRS = {")": "(", "]": "["}

# Sentence punctuation dropped from the end of a link. Closing brackets are
# not listed: they are only handled by depth counting.
TRAILING_PUNCTUATION = frozenset(".,;:!?'")

# Common file extensions that are also TLDs.
_FALSE_POSITIVE_TLDS = frozenset({"java", "md", "mov", "py", "zip"})


def list_of_tlds() -> list[str]:
    """Return known TLDs, longest first so alternation prefers full matches."""

    return sorted(tld_set - _FALSE_POSITIVE_TLDS, key=len, reverse=True)


@lru_cache(None)
def get_link_start_regex() -> re.Pattern[str]:
    """Compile the URL-start grammar once per process."""

    tlds = "|".join(re.escape(tld) for tld in list_of_tlds())
    return re.compile(
        rf"""
        (?<![^\s'"(,:<\[])                 # start of text, whitespace or opening punctuation
        (?:
            (?:https?|ftp)://
            (?:[\w.-]+@)?                   # optional userinfo
            [\w-]+(?:\.[\w-]+)*             # host
          |
            (?:[\w-]+\.)+(?:{tlds})         # bare domain ending in a known TLD
            (?![\w-])
        )
        (?::\d{{1,5}})?                     # optional port
        """,
        re.VERBOSE | re.IGNORECASE,
    )


def _update_depth(depth: int, text: str) -> int:
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
    return depth


def _extend(segment: str, start: int, naive_end: int) -> int:
    """Return the final right boundary for a link whose host ends at ``naive_end``."""

    end = naive_end
    if end < len(segment) and segment[end] in PATH_OPENERS:
        depths = dict.fromkeys(BRACKET_PAIRS.values(), 0)
        while end < len(segment):
            ch = segment[end]
            if ch.isspace() or ch in URL_STOP_CHARS:
                break
            if ch in depths:
                depths[ch] += 1
            elif ch in BRACKET_PAIRS:
                opener = BRACKET_PAIRS[ch]
                if depths[opener] == 0:
                    break
                depths[opener] -= 1
            end += 1

    while end > start and segment[end - 1] in TRAILING_PUNCTUATION:
        end -= 1
    return end


def scan(segment: str) -> Iterator[LinkCandidate]:
    """Yield non-overlapping link candidates in ``segment``, left to right."""

    pattern = get_link_start_regex()
    depth = 0
    depth_position = 0
    position = 0
    while True:
        match = pattern.search(segment, position)
        if match is None:
            return
        start = match.start()
        depth = _update_depth(depth, segment[depth_position:start])
        depth_position = start

        end = _extend(segment, start, match.end())
        if end <= start:
            position = match.end()
            continue
        yield LinkCandidate(
            start=start,
            end=end,
            url_text=segment[start:end],
            enclosed=depth > 0,
        )
        position = end
