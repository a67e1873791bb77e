"""Dispatch link extraction to the right parser for a document's type."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import PurePath
from typing import Union

from linkscout.html import extract_html
from linkscout.markdown import extract_markdown
from linkscout.plaintext import RawUri, extract_raw_uri_from_plaintext

_MARKDOWN_EXTENSIONS = frozenset(
    {"markdown", "mkdown", "mkdn", "mdwn", "mdown", "mdx", "mkd", "md"}
)
_HTML_EXTENSIONS = frozenset({"htm", "html"})


class FileType(enum.Enum):
    """The kind of document links are extracted from."""

    HTML = "html"
    MARKDOWN = "markdown"
    PLAINTEXT = "plaintext"

    @classmethod
    def from_path(cls, path: Union[str, PurePath]) -> "FileType":
        """Guess the file type from a path's extension; plain text by default."""
        suffix = PurePath(path).suffix.lower().lstrip(".")
        if suffix in _MARKDOWN_EXTENSIONS:
            return cls.MARKDOWN
        if suffix in _HTML_EXTENSIONS:
            return cls.HTML
        return cls.PLAINTEXT


@dataclass(frozen=True)
class Extractor:
    """Extracts unparsed links from Markdown, HTML and plain text.

    With ``include_verbatim`` set, links inside code blocks, ``<pre>``
    and similar preformatted sections are extracted as well.
    """

    include_verbatim: bool = False

    def extract(self, content: str, file_type: FileType) -> list[RawUri]:
        """Return the links found in ``content``, parsed as ``file_type``."""
        if file_type is FileType.MARKDOWN:
            return extract_markdown(content, self.include_verbatim)
        if file_type is FileType.HTML:
            return extract_html(content, self.include_verbatim)
        return extract_raw_uri_from_plaintext(content)