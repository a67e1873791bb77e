"""Find links and e-mail addresses in plain text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional

_LOCAL_CHARS = r"\w!#$%&'*+\-/=?^`{|}~"
_LOCAL_ATOM = "[" + _LOCAL_CHARS + "]+"
_LABEL = r"[^\W_](?:[\w-]*[^\W_])?"

EMAIL_PATTERN = re.compile(
    "(?<![" + _LOCAL_CHARS + ".])"
    + "(" + _LOCAL_ATOM + r"(?:\." + _LOCAL_ATOM + "))*"
    + "@"
    + "(" + _LABEL + r"(?:\." + _LABEL + ")+)"
)
"""Pattern matching a bare e-mail address (without a ``mailto:`` prefix)."""

_URL_PATTERN = re.compile(r"(?<![A-Za-z0-9+.\-])[A-Za-z][A-Za-z0-9+.\-]*://[^\s<>\"]+")

_OPENERS = {")": "(", "]": "[", "}": "{"}
_TRAILING = ".,:;?!'`"


@dataclass(frozen=True)
class RawUri:
    """An unparsed link as found in a document.

    ``element`` and ``attribute`` name the HTML element and attribute the
    link came from, if any.
    """

    text: str
    element: Optional[str] = None
    attribute: Optional[str] = None

    def __str__(self) -> str:
        return self.text


def _trim_url(candidate: str) -> str:
    depth = {"(": 0, "[": 0, "{": 0}
    for position, char in enumerate(candidate):
        if char in depth:
            depth[char] += 1
        elif char in _OPENERS:
            opener = _OPENERS[char]
            if depth[opener] == 0:
                candidate = candidate[:position]
                break
            depth[opener] -= 1
    return candidate.rstrip(_TRAILING)


def _url_spans(text: str) -> Iterator[tuple[int, int]]:
    for match in _URL_PATTERN.finditer(text):
        url = _trim_url(match.group())
        scheme_end = url.find("://") + 3
        if len(url) > scheme_end:
            yield match.start(), match.start() + len(url)


def find_links(text: str) -> Iterator[str]:
    """Yield the URLs and e-mail addresses in ``text``, in order of appearance."""
    urls = list(_url_spans(text))
    emails = [
        match.span()
        for match in EMAIL_PATTERN.finditer(text)
        if not any(start < match.end() and match.start() < end for start, end in urls)
    ]
    for start, end in sorted(urls + emails):
        yield text[start:end]


def extract_raw_uri_from_plaintext(text: str) -> list[RawUri]:
    """Extract unparsed links from plain text."""
    return [RawUri(link) for link in find_links(text)]