"""Extract links and heading fragments from Markdown documents.

Documents are parsed as CommonMark, extended with heading attributes
(``## Title {#custom-id}``) and ``$``/``$$`` math, whose content is never
searched for links.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, Iterator, Optional

from markdown_it import MarkdownIt
from markdown_it.helpers import parseLinkLabel
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.rules_inline.link import link as _link_rule
from markdown_it.token import Token

from linkscout.html import extract_html, extract_html_fragments
from linkscout.plaintext import RawUri, extract_raw_uri_from_plaintext

_HEADING_ATTRIBUTES = re.compile(r"\s*\{([^{}]*)\}\s*$")


def _math(state: StateInline, silent: bool) -> bool:
    """Consume ``$...$`` and ``$$...$$`` spans as opaque math tokens."""
    src = state.src
    pos = state.pos
    if src[pos] != "$":
        return False

    if src.startswith("$$", pos):
        end = src.find("$$", pos + 2, state.posMax)
        if end == -1:
            return False
        content = src[pos + 2 : end]
        after = end + 2
        kind = "math_display"
    else:
        end = src.find("$", pos + 1, state.posMax)
        if end == -1:
            return False
        content = src[pos + 1 : end]
        if not content or content[0].isspace() or content[-1].isspace():
            return False
        after = end + 1
        kind = "math_inline"

    if not silent:
        math_span = state.push(kind, "math", 0)
        math_span.content = content
    state.pos = after
    return True


def _link(state: StateInline, silent: bool) -> bool:
    """Parse a link and mark whether it used the inline ``[text](dest)`` form."""
    start = state.pos
    first_index = len(state.tokens)
    label_end = parseLinkLabel(state, start, True) if state.src[start] == "[" else -1

    if not _link_rule(state, silent):
        return False

    if not silent:
        is_inline = (
            label_end >= 0
            and state.src[label_end + 1 : label_end + 2] == "("
            and state.pos > label_end + 1
        )
        for item in state.tokens[first_index:]:
            if item.type == "link_open":
                item.meta["inline"] = is_inline
                break
    return True


def _heading_attributes(state: StateCore) -> None:
    """Strip a trailing ``{#id .class}`` block from headings, keeping the id."""
    blocks = state.tokens
    for opening, inline in zip(blocks, blocks[1:]):
        if opening.type != "heading_open" or inline.type != "inline":
            continue
        match = _HEADING_ATTRIBUTES.search(inline.content)
        if match is None:
            continue
        inline.content = inline.content[: match.start()].rstrip()
        for attribute in match.group(1).split():
            if attribute.startswith("#") and len(attribute) > 1:
                opening.attrSet("id", attribute[1:])


@functools.lru_cache(maxsize=None)
def _parser() -> MarkdownIt:
    md = MarkdownIt("commonmark")
    # Keep link destinations exactly as written: accept every non-empty
    # destination and skip percent-encoding and punycode normalisation.
    md.validateLink = bool  # type: ignore[method-assign]
    md.normalizeLink = str  # type: ignore[method-assign]
    md.normalizeLinkText = str  # type: ignore[method-assign]
    md.inline.ruler.before("escape", "math", _math)
    md.inline.ruler.at("link", _link)
    md.core.ruler.before("inline", "heading_attributes", _heading_attributes)
    return md


def _merge_text(children: Iterable[Token]) -> Iterator[Token]:
    """Join runs of adjacent text tokens into one."""
    pending: Optional[str] = None
    for child in children:
        if child.type == "text":
            pending = child.content if pending is None else pending + child.content
            continue
        if pending is not None:
            yield Token("text", "", 0, content=pending)
            pending = None
        yield child
    if pending is not None:
        yield Token("text", "", 0, content=pending)


def _flatten(children: Iterable[Token]) -> Iterator[Token]:
    """Yield inline tokens, descending into image alt text."""
    for child in _merge_text(children):
        yield child
        if child.type == "image" and child.children:
            yield from _flatten(child.children)


def _html_chunks(content: str) -> list[str]:
    return content.splitlines(keepends=True)


def _inline_links(children: Iterable[Token], include_verbatim: bool) -> Iterator[RawUri]:
    for child in _flatten(children):
        kind = child.type
        if kind == "link_open":
            href = str(child.attrGet("href") or "")
            if child.meta.get("inline"):
                yield RawUri(href, "a", "href")
            else:
                yield from extract_raw_uri_from_plaintext(href)
        elif kind == "image":
            yield RawUri(str(child.attrGet("src") or ""), "img", "src")
        elif kind == "text":
            yield from extract_raw_uri_from_plaintext(child.content)
        elif kind == "html_inline":
            yield from extract_html(child.content, include_verbatim)
        elif kind == "code_inline" and include_verbatim:
            yield from extract_raw_uri_from_plaintext(child.content)


def extract_markdown(text: str, include_verbatim: bool) -> list[RawUri]:
    """Extract unparsed links from a Markdown string.

    Links inside code blocks and inline code are only returned when
    ``include_verbatim`` is set.
    """
    links: list[RawUri] = []
    for block in _parser().parse(text):
        kind = block.type
        if kind in ("fence", "code_block"):
            if include_verbatim:
                links.extend(extract_raw_uri_from_plaintext(block.content))
        elif kind == "html_block":
            for chunk in _html_chunks(block.content):
                links.extend(extract_html(chunk, include_verbatim))
        elif kind == "inline":
            links.extend(_inline_links(block.children or [], include_verbatim))
    return links


def extract_markdown_fragments(text: str) -> set[str]:
    """Collect the fragments a Markdown document defines.

    Each heading yields a GitHub-style kebab-case id; an explicit
    ``{#id}`` heading attribute is added alongside it. ``id`` attributes
    in embedded HTML are included too.
    """
    generator = HeadingIdGenerator()
    fragments: set[str] = set()
    in_heading = False
    heading_id: Optional[str] = None
    heading_text: list[str] = []

    for block in _parser().parse(text):
        kind = block.type
        if kind == "heading_open":
            explicit = block.attrGet("id")
            heading_id = None if explicit is None else str(explicit)
            in_heading = True
        elif kind == "heading_close":
            if heading_id is not None:
                fragments.add(heading_id)
                heading_id = None
            title = "".join(heading_text)
            if title:
                fragments.add(generator.generate(title))
            heading_text.clear()
            in_heading = False
        elif kind == "html_block":
            for chunk in _html_chunks(block.content):
                fragments |= extract_html_fragments(chunk)
        elif kind == "inline":
            for child in _flatten(block.children or []):
                if child.type in ("text", "code_inline"):
                    if in_heading:
                        heading_text.append(child.content)
                elif child.type == "html_inline":
                    fragments |= extract_html_fragments(child.content)
    return fragments


def into_kebab_case(text: str) -> str:
    """Lower-case ``text``, turn whitespace into dashes and drop punctuation."""
    return "".join(
        "-" if char.isspace() else char
        for char in text.lower()
        if char.isalnum() or char in "_-" or char.isspace()
    )


class HeadingIdGenerator:
    """Generates unique heading ids, numbering repeated headings."""

    def __init__(self) -> None:
        self._counter: dict[str, int] = {}

    def generate(self, heading: str) -> str:
        """Return the id for ``heading``, suffixed with ``-N`` if seen before."""
        base = into_kebab_case(heading)
        count = self._counter.get(base, 0)
        self._counter[base] = count + 1
        return f"{base}-{count}" if count else base