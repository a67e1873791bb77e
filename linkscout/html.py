"""Extract links and fragments from HTML documents.

A small HTML tokenizer feeds start tags, end tags, attributes and text into
a link extractor. Text inside preformatted ("verbatim") elements such as
``<pre>`` or ``<script>`` is skipped unless verbatim content is requested.
"""

from __future__ import annotations

import enum
import re
import string
from dataclasses import dataclass
from html import unescape
from typing import Optional

from linkscout import srcset
from linkscout.htmlutil import is_email_link, is_verbatim_elem
from linkscout.plaintext import RawUri, extract_raw_uri_from_plaintext

_WHITESPACE = "\t\n\f\r "
_TAG_NAME_END = _WHITESPACE + "/>"
_ATTRIBUTE_NAME_END = _WHITESPACE + "/>="
_UNQUOTED_VALUE_END = _WHITESPACE + ">"
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_RAW_END_TAG = re.compile(r"</[A-Za-z]+[\t\n\f\r />]")

_ANY_ELEMENT_ATTRIBUTES = frozenset({"href", "src", "cite", "usemap"})
_ELEMENT_ATTRIBUTES = frozenset(
    {
        ("applet", "codebase"),
        ("body", "background"),
        ("button", "formaction"),
        ("command", "icon"),
        ("form", "action"),
        ("frame", "longdesc"),
        ("head", "profile"),
        ("html", "manifest"),
        ("iframe", "longdesc"),
        ("img", "longdesc"),
        ("input", "formaction"),
        ("object", "classid"),
        ("object", "codebase"),
        ("object", "data"),
        ("video", "poster"),
    }
)
_SKIPPED_REL = frozenset({"nofollow", "preconnect", "dns-prefetch"})


class _Content(enum.Enum):
    """How the text following a start tag is tokenized."""

    RCDATA = enum.auto()
    RAWTEXT = enum.auto()
    PLAINTEXT = enum.auto()


_CONTENT_STATES = {
    "title": _Content.RCDATA,
    "textarea": _Content.RCDATA,
    "style": _Content.RAWTEXT,
    "xmp": _Content.RAWTEXT,
    "iframe": _Content.RAWTEXT,
    "noembed": _Content.RAWTEXT,
    "noframes": _Content.RAWTEXT,
    "script": _Content.RAWTEXT,
    "plaintext": _Content.PLAINTEXT,
}


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


@dataclass
class _Element:
    name: str = ""
    is_closing: bool = False


class _LinkExtractor:
    """Collects links and fragment ids from the tokens of an HTML document."""

    def __init__(self, include_verbatim: bool) -> None:
        self.include_verbatim = include_verbatim
        self.links: list[RawUri] = []
        self.fragments: set[str] = set()
        self._element = _Element()
        self._attributes: dict[str, str] = {}
        self._attribute_name = ""
        self._text: list[str] = []
        self._verbatim_stack: list[str] = []

    # Token events -------------------------------------------------------

    def text(self, chunk: str) -> None:
        self._text.append(chunk)

    def begin_start_tag(self) -> None:
        self.flush_characters()
        self._element = _Element()

    def begin_end_tag(self) -> None:
        self.flush_characters()
        self._element = _Element(is_closing=True)

    def push_tag_name(self, name: str) -> None:
        self._element.name += name

    def set_self_closing(self) -> None:
        self._element.is_closing = True

    def begin_attribute(self, name: str) -> None:
        self._attribute_name = name

    def push_attribute_value(self, value: str) -> None:
        if not value:
            return
        key = self._attribute_name
        self._attributes[key] = self._attributes.get(key, "") + value

    def emit_tag(self) -> Optional[_Content]:
        """Finish the current tag; return the content state that follows it."""
        self._flush_links()
        if self._element.is_closing:
            return None
        return _CONTENT_STATES.get(self._element.name)

    def flush_characters(self) -> None:
        """Extract links from the text collected since the last tag."""
        chunk = "".join(self._text)
        self._text.clear()
        if not self.include_verbatim and (
            is_verbatim_elem(self._element.name) or self._verbatim_stack
        ):
            self._update_verbatim_element()
            return
        self.links.extend(extract_raw_uri_from_plaintext(chunk))

    # Internals ----------------------------------------------------------

    def _update_verbatim_element(self) -> None:
        name = self._element.name
        if self._element.is_closing:
            if self._verbatim_stack and self._verbatim_stack[-1] == name:
                self._verbatim_stack.pop()
        elif not self.include_verbatim and is_verbatim_elem(name):
            self._verbatim_stack.append(name)

    def _urls_from_attributes(self) -> list[RawUri]:
        name = self._element.name
        urls: list[RawUri] = []
        srcset_value = self._attributes.get("srcset")
        if srcset_value is not None:
            urls.extend(
                RawUri(url, name, "srcset") for url in srcset.parse(srcset_value)
            )
        for attribute, value in self._attributes.items():
            if (
                attribute in _ANY_ELEMENT_ATTRIBUTES
                or (name, attribute) in _ELEMENT_ATTRIBUTES
            ):
                urls.append(RawUri(value, name, attribute))
        return urls

    def _is_skipped(self) -> bool:
        rel = self._attributes.get("rel")
        if rel is not None and any(part.strip() in _SKIPPED_REL for part in rel.split(",")):
            return True
        if "prefix" in self._attributes:
            return True
        if rel is not None and "stylesheet" in rel:
            href = self._attributes.get("href")
            if href is not None and href.startswith(("/@", "@")):
                return True
        return False

    def _flush_links(self) -> None:
        self._update_verbatim_element()
        try:
            if not self.include_verbatim and (
                self._verbatim_stack or is_verbatim_elem(self._element.name)
            ):
                return
            if self._is_skipped():
                return
            self.links.extend(
                url for url in self._urls_from_attributes() if _is_accepted(url)
            )
            fragment = self._attributes.get("id")
            if fragment is not None:
                self.fragments.add(fragment)
        finally:
            self._attributes.clear()


def _is_accepted(url: RawUri) -> bool:
    """Accept e-mail addresses and phone numbers only as ``mailto:``/``tel:`` hrefs."""
    if not is_email_link(url.text):
        return True
    is_href = url.attribute == "href"
    return is_href and url.text.startswith(("mailto:", "tel:"))


# Tokenizer --------------------------------------------------------------


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _scan_until(text: str, pos: int, stop: str) -> int:
    while pos < len(text) and text[pos] not in stop:
        pos += 1
    return pos


def _tokenize(text: str, sink: _LinkExtractor) -> None:
    pos = 0
    while pos < len(text):
        lt = text.find("<", pos)
        if lt == -1:
            sink.text(unescape(text[pos:]))
            break
        if lt > pos:
            sink.text(unescape(text[pos:lt]))
        pos = _markup(text, lt, sink)
    sink.flush_characters()


def _markup(text: str, lt: int, sink: _LinkExtractor) -> int:
    following = text[lt + 1 : lt + 2]
    if following.isascii() and following.isalpha():
        return _tag(text, lt + 1, sink, closing=False)
    if following == "/":
        after = text[lt + 2 : lt + 3]
        if after.isascii() and after.isalpha():
            return _tag(text, lt + 2, sink, closing=True)
        if after == ">":
            return lt + 3
        if not after:
            sink.text("</")
            return len(text)
        return _bogus_comment(text, lt + 2, sink)
    if following == "!":
        if text.startswith("--", lt + 2):
            return _comment(text, lt + 4, sink)
        if _ascii_lower(text[lt + 2 : lt + 9]) == "doctype":
            sink.flush_characters()
            end = text.find(">", lt + 9)
            return len(text) if end == -1 else end + 1
        return _bogus_comment(text, lt + 2, sink)
    if following == "?":
        return _bogus_comment(text, lt + 1, sink)
    sink.text("<")
    return lt + 1


def _bogus_comment(text: str, pos: int, sink: _LinkExtractor) -> int:
    sink.flush_characters()
    end = text.find(">", pos)
    return len(text) if end == -1 else end + 1


def _comment(text: str, pos: int, sink: _LinkExtractor) -> int:
    sink.flush_characters()
    if text.startswith(">", pos):
        return pos + 1
    if text.startswith("->", pos):
        return pos + 2
    endings = [
        found + len(marker)
        for marker in ("-->", "--!>")
        if (found := text.find(marker, pos)) != -1
    ]
    return min(endings) if endings else len(text)


def _tag(text: str, pos: int, sink: _LinkExtractor, closing: bool) -> int:
    n = len(text)
    if closing:
        sink.begin_end_tag()
    else:
        sink.begin_start_tag()

    end = _scan_until(text, pos, _TAG_NAME_END)
    sink.push_tag_name(_ascii_lower(text[pos:end]))
    pos = end

    while True:
        pos = _skip_whitespace(text, pos)
        if pos >= n:
            return n
        char = text[pos]
        if char == ">":
            break
        if char == "/":
            if text.startswith(">", pos + 1):
                sink.set_self_closing()
                pos += 1
                break
            pos += 1
            continue

        start = pos
        pos = _scan_until(text, pos + 1, _ATTRIBUTE_NAME_END)
        sink.begin_attribute(_ascii_lower(text[start:pos]))
        pos = _skip_whitespace(text, pos)
        if pos >= n or text[pos] != "=":
            continue

        pos = _skip_whitespace(text, pos + 1)
        if pos >= n:
            return n
        quote = text[pos]
        if quote in "\"'":
            close = text.find(quote, pos + 1)
            if close == -1:
                return n
            value = text[pos + 1 : close]
            pos = close + 1
        elif quote == ">":
            value = ""
        else:
            start = pos
            pos = _scan_until(text, pos, _UNQUOTED_VALUE_END)
            value = text[start:pos]
        sink.push_attribute_value(unescape(value))

    content = sink.emit_tag()
    pos += 1
    if content is not None:
        pos = _raw_content(text, pos, sink, content)
    return pos


def _raw_content(text: str, pos: int, sink: _LinkExtractor, content: _Content) -> int:
    if content is _Content.PLAINTEXT:
        sink.text(text[pos:])
        return len(text)
    match = _RAW_END_TAG.search(text, pos)
    end = match.start() if match else len(text)
    chunk = text[pos:end]
    sink.text(unescape(chunk) if content is _Content.RCDATA else chunk)
    return end


# Public API -------------------------------------------------------------


def extract_html(buf: str, include_verbatim: bool) -> list[RawUri]:
    """Extract unparsed links from an HTML string.

    Links found in plain text are only returned when ``include_verbatim``
    is set; otherwise only links from element attributes are kept.
    """
    extractor = _LinkExtractor(include_verbatim)
    _tokenize(buf, extractor)
    return [
        link
        for link in extractor.links
        if link.attribute is not None or include_verbatim
    ]


def extract_html_fragments(buf: str) -> set[str]:
    """Collect the values of all ``id`` attributes in an HTML string."""
    extractor = _LinkExtractor(True)
    _tokenize(buf, extractor)
    return extractor.fragments