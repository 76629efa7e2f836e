import re
from typing import Iterable
from urllib.parse import urlsplit

import idna

from linkguard.core.errors import MalformedURL
from linkguard.models.schemas import ParsedURL

# WHATWG forbidden domain code points that urlsplit lets through
FORBIDDEN_HOST_RE = re.compile(r"[\x00-\x20#%/:<>?@\[\\\]^|\x7f]")


def _to_ascii(raw: str, host: str) -> str:
    if host.isascii():
        return host
    try:
        return idna.encode(host, uts46=True).decode("ascii")
    except idna.IDNAError as e:
        raise MalformedURL(raw, f"Invalid URL: bad international host ({e})") from e


def _to_unicode(host: str) -> str:
    if "xn--" not in host:
        return host
    try:
        return idna.decode(host)
    except idna.IDNAError:
        # undecodable punycode still gets flagged on the xn-- prefix alone
        return host


def parse_url(raw: str) -> ParsedURL:
    """
    Syntactic parse only; nothing is resolved. Relative or host-less input,
    forbidden host characters and invalid international names are rejected
    the way a browser URL() would. Non-ASCII hosts are mapped through UTS46
    to their ASCII (punycode) form, so fullwidth ``ｐａｙｐａ1.com`` comes back
    as ``paypa1.com``.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedURL(str(raw), "Invalid URL: empty input")
    try:
        parts = urlsplit(raw.strip())
        hostname = (parts.hostname or "").rstrip(".")  # already lowercased by urllib
        port = parts.port  # raises on junk like host:abc
    except ValueError as e:
        raise MalformedURL(raw, f"Invalid URL: {e}") from e

    if not parts.scheme:
        raise MalformedURL(raw, "Invalid URL: missing scheme")
    if not hostname:
        raise MalformedURL(raw, "Invalid URL: missing host")

    ipv6 = "[" in parts.netloc
    if not ipv6:
        bad = FORBIDDEN_HOST_RE.search(hostname)
        if bad:
            raise MalformedURL(raw, f"Invalid URL: forbidden host character {bad.group()!r}")
        hostname = _to_ascii(raw, hostname).rstrip(".")
        if not hostname:
            raise MalformedURL(raw, "Invalid URL: missing host")

    path_query = parts.path or "/"
    if parts.query:
        path_query += "?" + parts.query

    netloc = f"[{hostname}]" if ipv6 else hostname
    if port is not None:
        netloc += f":{port}"
    userinfo = parts.netloc.rpartition("@")[0]
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    scheme = parts.scheme.lower()
    href = f"{scheme}://{netloc}{path_query}"
    if parts.fragment:
        href += "#" + parts.fragment

    return ParsedURL(
        original=raw,
        scheme=scheme,
        hostname=hostname,
        unicode_hostname=hostname if ipv6 else _to_unicode(hostname),
        path_query=path_query,
        href=href,
    )


def is_known_domain(hostname: str, known_domains: Iterable[str]) -> bool:
    host = hostname.lower()
    for domain in known_domains:
        d = domain.lower()
        if host == d or host.endswith("." + d):
            return True
    return False
