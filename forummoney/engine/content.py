"""
forummoney.engine.content — Reply content normalization
========================================================

Strips ``@mention #ref`` boilerplate before a reply's length is compared
with the minimum-length threshold, so quoting someone does not turn an
empty reply into a paid one.
"""

from __future__ import annotations

import re

# An @-mention followed (greedily, on the same line) by a discussion
# reference (#123) or a post reference (#p123).
_MENTION_REGEX = re.compile(r"@.*(?:#\d+|#p\d+)")
_LINE_BREAKS = re.compile(r"[\r\n]")


def _strip_once(text: str) -> str:
    return _LINE_BREAKS.sub("", _MENTION_REGEX.sub("", text)).strip()


def normalize_content(content: str | None, *, suppress_mentions: bool) -> str:
    """Return *content* with mention/reference spans and line breaks removed.

    When *suppress_mentions* is false the content is returned unchanged.
    Mentions are matched line by line, then line breaks are dropped and the
    result trimmed.  Joining lines can bring a mention and a reference
    together, so the pass repeats until nothing changes; every pass either
    shortens the text or ends the loop.
    """
    if content is None:
        content = ""
    if not suppress_mentions:
        return content

    previous, current = None, _strip_once(content)
    while current != previous:
        previous, current = current, _strip_once(current)
    return current


def content_length(content: str | None, *, suppress_mentions: bool) -> int:
    """Character length of the normalized content."""
    return len(normalize_content(content, suppress_mentions=suppress_mentions))
