"""Site-specific request rewrites applied before checking a link."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional
from urllib.parse import parse_qsl, urlsplit

from linkscout.chain import Handler, Next

_CRATES_PATTERN = re.compile(r"^(https?://)?(www\.)?crates.io")
_YOUTUBE_PATTERN = re.compile(r"^(https?://)?(www\.)?youtube(-nocookie)?\.com")
_YOUTUBE_SHORT_PATTERN = re.compile(r"^(https?://)?(www\.)?(youtu\.?be)")


@dataclass(frozen=True)
class Request:
    """An outgoing HTTP request: method, URL and headers."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)

    def with_header(self, name: str, value: str) -> "Request":
        """Return a copy with ``name`` set to ``value``, replacing any previous value."""
        headers = {
            key: existing
            for key, existing in self.headers.items()
            if key.lower() != name.lower()
        }
        headers[name] = value
        return replace(self, headers=headers)

    def header(self, name: str) -> Optional[str]:
        """Look up a header, ignoring case."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None


@dataclass(frozen=True)
class Quirk:
    """A URL pattern and the rewrite applied to requests matching it."""

    pattern: re.Pattern
    rewrite: Callable[[Request], Request]


def _thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/0.jpg"


def _rewrite_crates(request: Request) -> Request:
    return request.with_header("Accept", "text/html")


def _rewrite_youtube(request: Request) -> Request:
    parts = urlsplit(request.url)
    path = parts.path
    if path == "/watch":
        video_id = dict(parse_qsl(parts.query, keep_blank_values=True)).get("v")
    elif path.startswith("/embed/"):
        video_id = path[len("/embed/"):]
    else:
        return request
    if video_id is None:
        return request
    return replace(request, url=_thumbnail_url(video_id))


def _rewrite_youtube_short(request: Request) -> Request:
    video_id = urlsplit(request.url).path.lstrip("/")
    if not video_id:
        return request
    return replace(request, url=_thumbnail_url(video_id))


def _default_quirks() -> list[Quirk]:
    return [
        Quirk(_CRATES_PATTERN, _rewrite_crates),
        Quirk(_YOUTUBE_PATTERN, _rewrite_youtube),
        Quirk(_YOUTUBE_SHORT_PATTERN, _rewrite_youtube_short),
    ]


class Quirks(Handler):
    """Applies the first quirk whose pattern matches a request's URL."""

    def __init__(self, quirks: Optional[Iterable[Quirk]] = None) -> None:
        self.quirks = _default_quirks() if quirks is None else list(quirks)

    def __repr__(self) -> str:
        return f"Quirks({self.quirks!r})"

    def apply(self, request: Request) -> Request:
        """Rewrite ``request`` with the first matching quirk, if any."""
        for quirk in self.quirks:
            if quirk.pattern.match(request.url):
                return quirk.rewrite(request)
        return request

    async def handle(self, request: Request) -> Next:
        """Apply quirks and pass the request on to the next handler."""
        return Next(self.apply(request))