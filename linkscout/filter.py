"""Decide which links are checked and which are skipped.

A :class:`Filter` combines user-defined include and exclude patterns with
built-in rules: e-mail addresses, phone numbers, reserved example domains,
unsupported sites, well-known false positives and, optionally, private,
link-local and loopback IP addresses.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union
from urllib.parse import urlsplit, urlunsplit

from linkscout.plaintext import EMAIL_PATTERN

EXAMPLE_DOMAINS = frozenset({"example.com", "example.org", "example.net", "example.edu"})
"""Second-level domains reserved for examples; they should not be dereferenced."""

EXAMPLE_TLDS = frozenset({".test", ".example", ".invalid", ".localhost"})
"""Top-level domains reserved for examples and testing."""

UNSUPPORTED_DOMAINS = frozenset({"twitter.com"})
"""Sites that cannot be checked without an account."""

FALSE_POSITIVE_PATTERNS = (
    r"^https?://schemas.openxmlformats.org",
    r"^https?://schemas.zune.net",
    r"^https?://www.w3.org/1999/xhtml",
    r"^https?://www.w3.org/1999/xlink",
    r"^https?://www.w3.org/2000/svg",
    r"^https?://ogp.me/ns#",
    r"^https?://schemas.microsoft.com",
    r"^https?://(.*)/xmlrpc.php$",
)

_FALSE_POSITIVES = tuple(re.compile(pattern) for pattern in FALSE_POSITIVE_PATTERNS)

_SPECIAL_SCHEMES = {"http": 80, "https": 443, "ftp": 21, "ws": 80, "wss": 443, "file": None}
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")

_PRIVATE_V4 = tuple(
    ipaddress.IPv4Network(net) for net in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)
_LINK_LOCAL_V4 = ipaddress.IPv4Network("169.254.0.0/16")
_LOOPBACK_V4 = ipaddress.IPv4Network("127.0.0.0/8")
_LOOPBACK_V6 = ipaddress.IPv6Address("::1")

_IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Uri:
    """A parsed, normalised URI."""

    url: str
    scheme: str
    host: Optional[str]
    path: str

    @classmethod
    def parse(cls, text: str) -> "Uri":
        """Parse ``text``; a bare e-mail address becomes a ``mailto:`` URI.

        Raises :class:`ValueError` if ``text`` is not a valid URI.
        """
        text = text.strip()
        if EMAIL_PATTERN.fullmatch(text):
            text = f"mailto:{text}"
        colon = text.find(":")
        if colon <= 0 or not _SCHEME.fullmatch(text[:colon]):
            raise ValueError(f"not a valid URI: {text!r}")
        try:
            parts = urlsplit(text)
            port = parts.port
        except ValueError as error:
            raise ValueError(f"not a valid URI: {text!r}") from error

        scheme = parts.scheme.lower()
        host = parts.hostname
        path = parts.path
        netloc = parts.netloc

        if scheme in _SPECIAL_SCHEMES:
            if not host and scheme != "file":
                raise ValueError(f"URI has no host: {text!r}")
            if host:
                if port == _SPECIAL_SCHEMES[scheme]:
                    port = None
                netloc = _build_netloc(parts.username, parts.password, host, port)
            if not path:
                path = "/"

        url = urlunsplit((scheme, netloc, path, parts.query, parts.fragment))
        if scheme == "file" and not netloc:
            url = "file://" + url[len("file:"):] if not url.startswith("file://") else url
        return cls(url=url, scheme=scheme, host=host or None, path=path)

    @classmethod
    def mail(cls, address: str) -> "Uri":
        """Build a ``mailto:`` URI for an e-mail address."""
        return cls.parse(f"mailto:{address}")

    def __str__(self) -> str:
        return self.url

    @property
    def ip(self) -> Optional[_IpAddress]:
        """The host as an IP address, or ``None`` if it is a name or absent."""
        if self.host is None:
            return None
        try:
            return ipaddress.ip_address(self.host)
        except ValueError:
            return None

    @property
    def domain(self) -> Optional[str]:
        """The host name, or ``None`` if the host is an IP address or absent."""
        if self.host is None or self.ip is not None:
            return None
        return self.host

    @property
    def is_mail(self) -> bool:
        return self.scheme == "mailto"

    @property
    def is_tel(self) -> bool:
        return self.scheme == "tel"

    @property
    def is_loopback(self) -> bool:
        address = self.ip
        if isinstance(address, ipaddress.IPv4Address):
            return address in _LOOPBACK_V4
        return address == _LOOPBACK_V6

    @property
    def is_private(self) -> bool:
        address = self.ip
        return isinstance(address, ipaddress.IPv4Address) and any(
            address in network for network in _PRIVATE_V4
        )

    @property
    def is_link_local(self) -> bool:
        address = self.ip
        return isinstance(address, ipaddress.IPv4Address) and address in _LINK_LOCAL_V4


def _build_netloc(
    username: Optional[str], password: Optional[str], host: str, port: Optional[int]
) -> str:
    host_part = f"[{host}]" if ":" in host else host
    if port is not None:
        host_part = f"{host_part}:{port}"
    if username is None and password is None:
        return host_part
    userinfo = username or ""
    if password is not None:
        userinfo = f"{userinfo}:{password}"
    return f"{userinfo}@{host_part}"


class _PatternSet:
    """A compiled collection of regular expressions."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns = tuple(patterns)
        self._compiled = tuple(re.compile(pattern) for pattern in self.patterns)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.patterns)!r})"

    def _search(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self._compiled)


class Excludes(_PatternSet):
    """Regex patterns for links that are not checked."""

    def is_match(self, text: str) -> bool:
        """Whether any exclude pattern matches somewhere in ``text``."""
        return self._search(text)

    def is_empty(self) -> bool:
        """Whether no exclude patterns are defined."""
        return not self._compiled


class Includes(_PatternSet):
    """Regex patterns for links that are always checked."""

    def is_match(self, text: str) -> bool:
        """Whether any include pattern matches somewhere in ``text``."""
        return self._search(text)

    def is_empty(self) -> bool:
        """Whether no include patterns are defined."""
        return not self._compiled


def is_false_positive(text: str) -> bool:
    """Whether ``text`` is a well-known link that is not meant to be fetched."""
    return any(pattern.search(text) for pattern in _FALSE_POSITIVES)


def is_example_domain(uri: Uri) -> bool:
    """Whether the URI's host or mail domain is reserved for examples."""
    domain = uri.domain
    if domain is not None:
        parent = domain.split(".", 1)[1] if "." in domain else None
        return (
            domain in EXAMPLE_DOMAINS
            or parent in EXAMPLE_DOMAINS
            or any(domain.endswith(tld) for tld in EXAMPLE_TLDS)
        )
    if uri.is_mail:
        return any(uri.path.endswith(example) for example in EXAMPLE_DOMAINS)
    return False


def is_unsupported_domain(uri: Uri) -> bool:
    """Whether the URI's host (or a parent of it) cannot be checked."""
    domain = uri.domain
    if domain is None:
        return False
    return any(domain.endswith(unsupported) for unsupported in UNSUPPORTED_DOMAINS)


@dataclass
class Filter:
    """Decides whether a :class:`Uri` is checked or skipped.

    Includes take precedence over excludes. ``schemes``, when not empty,
    lists the only schemes that are checked. With ``check_example_domains``
    set, reserved example domains are checked like any other.
    """

    includes: Optional[Includes] = None
    excludes: Optional[Excludes] = None
    schemes: set[str] = field(default_factory=set)
    exclude_private_ips: bool = False
    exclude_link_local_ips: bool = False
    exclude_loopback_ips: bool = False
    include_mail: bool = False
    check_example_domains: bool = False

    def is_mail_excluded(self, uri: Uri) -> bool:
        """Whether ``uri`` is an e-mail address and mail is not checked."""
        return uri.is_mail and not self.include_mail

    def is_ip_excluded(self, uri: Uri) -> bool:
        """Whether the URI's IP address belongs to an excluded range."""
        return (
            (self.exclude_loopback_ips and uri.is_loopback)
            or (self.exclude_private_ips and uri.is_private)
            or (self.exclude_link_local_ips and uri.is_link_local)
        )

    def is_host_excluded(self, uri: Uri) -> bool:
        """Whether the host is ``localhost`` while loopback addresses are excluded."""
        return self.exclude_loopback_ips and uri.domain == "localhost"

    def is_scheme_excluded(self, uri: Uri) -> bool:
        """Whether the URI's scheme is not among the allowed schemes."""
        if not self.schemes:
            return False
        return uri.scheme not in self.schemes

    def _includes_empty(self) -> bool:
        return self.includes is None or self.includes.is_empty()

    def _excludes_empty(self) -> bool:
        return self.excludes is None or self.excludes.is_empty()

    def _includes_match(self, text: str) -> bool:
        return self.includes is not None and self.includes.is_match(text)

    def _excludes_match(self, text: str) -> bool:
        return self.excludes is not None and self.excludes.is_match(text)

    def is_excluded(self, uri: Uri) -> bool:
        """Whether ``uri`` should be skipped."""
        if (
            self.is_scheme_excluded(uri)
            or self.is_host_excluded(uri)
            or self.is_ip_excluded(uri)
            or self.is_mail_excluded(uri)
            or uri.is_tel
            or (not self.check_example_domains and is_example_domain(uri))
            or is_unsupported_domain(uri)
        ):
            return True

        text = uri.url

        if self._includes_empty():
            if self._excludes_empty():
                return is_false_positive(text)
        elif self._includes_match(text):
            return False

        return (
            is_false_positive(text)
            or self._excludes_empty()
            or self._excludes_match(text)
        )