"""Extract image URLs from an HTML ``srcset`` attribute.

A ``srcset`` is a comma-separated list of image candidates, each made of a
URL followed by optional whitespace and a condition descriptor. URLs may
contain unencoded commas, so a small state machine is used instead of a
plain split.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

log = logging.getLogger(__name__)


class _State(enum.Enum):
    INSIDE_DESCRIPTOR = enum.auto()
    AFTER_DESCRIPTOR = enum.auto()
    INSIDE_PARENS = enum.auto()


def split_at(text: str, predicate: Callable[[str], bool]) -> tuple[str, str]:
    """Split ``text`` at the first character for which ``predicate`` is false."""
    for position, char in enumerate(text):
        if not predicate(char):
            return text[:position], text[position:]
    return text, ""


def _is_comma_or_space(char: str) -> bool:
    return char == "," or char.isspace()


def _is_not_space(char: str) -> bool:
    return not char.isspace()


def parse(text: str) -> list[str]:
    """Parse a ``srcset`` string into the list of candidate URLs.

    An empty list is returned when the input is malformed.
    """
    candidates: list[str] = []
    index = 0

    while index < len(text):
        start, remaining = split_at(text[index:], _is_comma_or_space)
        if "," in start:
            log.info("srcset parse error")
            return []
        index += len(start)

        if not remaining:
            return candidates

        url, remaining = split_at(remaining, _is_not_space)
        index += len(url)

        stripped = url.rstrip(",")
        comma_count = len(url) - len(stripped)
        candidates.append(stripped)

        if comma_count > 1:
            log.info("srcset parse error (trailing commas)")
            return []

        index += 1

        space, remaining = split_at(remaining, str.isspace)
        index += len(space)

        index = _skip_descriptor(index, remaining)

    return candidates


def _skip_descriptor(index: int, remaining: str) -> int:
    """Return the index just past the descriptor (past its comma, or the end)."""
    state = _State.INSIDE_DESCRIPTOR

    for char in remaining:
        index += 1

        if state is _State.INSIDE_DESCRIPTOR:
            if char == " ":
                state = _State.AFTER_DESCRIPTOR
            elif char == "(":
                state = _State.INSIDE_PARENS
            elif char == ",":
                return index
        elif state is _State.INSIDE_PARENS:
            if char == ")":
                state = _State.INSIDE_DESCRIPTOR
        elif char != " ":
            state = _State.INSIDE_DESCRIPTOR

    return index