"""Emoji-only body classification."""

from __future__ import annotations

from typing import Optional

import regex

# One emoji as a user perceives it, after https://unicode.org/reports/tr51/#EBNF_and_Regex.
# Extended_Pictographic is used instead of Emoji so plain digits, "#" and "*"
# only count as part of a keycap sequence. Pictographs whose default
# presentation is text, such as U+00A9, need U+FE0F or a skin tone modifier.
_EMOJI_ELEMENT = r"""
    (?: \p{Emoji_Presentation} (?: \p{Emoji_Modifier} | \uFE0F )?
      | \p{Extended_Pictographic} (?: \p{Emoji_Modifier} | \uFE0F )
    )
    (?: [\U000E0020-\U000E007E]+ \U000E007F )?
"""

# Inside a zero-width-joiner sequence the selector is often left out.
_JOINED_ELEMENT = r"(?: %(element)s | \p{Extended_Pictographic} )" % {"element": _EMOJI_ELEMENT}

EMOJI_ONLY_RE = regex.compile(
    r"""
    (?:
        \p{RI} \p{RI}                 # flag
      | [0-9\#*] \uFE0F? \u20E3       # keycap
      | %(element)s
        (?: \u200D %(joined)s )*      # zero-width-joiner sequence
    )+
    """
    % {"element": _EMOJI_ELEMENT, "joined": _JOINED_ELEMENT},
    regex.VERBOSE,
)

_WHITESPACE_RE = regex.compile(r"\s+")


def contains_only_emojis(text: str) -> bool:
    """Return True when ``text`` minus whitespace is one or more emoji."""

    compact = _WHITESPACE_RE.sub("", text)
    if not compact:
        return False
    return EMOJI_ONLY_RE.fullmatch(compact) is not None


def is_emoji_only(body: str, formatted_body: Optional[str]) -> bool:
    """Decide whether a body should use the emoji-only display style.

    A formatted representation that differs from the plain body means the
    message carries markup, which always renders in the regular style.
    """

    if formatted_body is not None and formatted_body != body:
        return False
    return contains_only_emojis(body)
