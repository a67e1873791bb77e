"""Helpers shared by the HTML link extractors."""

from __future__ import annotations

from linkscout.plaintext import EMAIL_PATTERN

_VERBATIM_ELEMENTS = frozenset(
    {
        "code",
        "kbd",
        "listing",
        "noscript",
        "plaintext",
        "pre",
        "samp",
        "script",
        "textarea",
        "var",
        "xmp",
    }
)


def is_email_link(text: str) -> bool:
    """Whether ``text`` is exactly one e-mail address, optionally ``mailto:``-prefixed."""
    match = EMAIL_PATTERN.search(text)
    if match is None:
        return False
    address = text[len("mailto:"):] if text.startswith("mailto:") else text
    return address == match.group()


def is_verbatim_elem(name: str) -> bool:
    """Whether ``name`` is a preformatted element whose content is skipped by default."""
    return name in _VERBATIM_ELEMENTS