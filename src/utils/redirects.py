"""URL helpers for the OAuth redirect legs.

Everything that ends up in a Location header or a cookie goes through
here first: origins are reduced to scheme://host[:port] and return paths
are restricted to same-site absolute paths.
"""

import re
from urllib.parse import quote, urlsplit, urlunsplit

LOOPBACK_HOSTS = {'localhost', '127.0.0.1'}

_CRLF = re.compile(r'[\r\n]')

# Reserved and already-escaped characters pass through; everything else,
# non-ASCII included, is percent-encoded so the path is header-safe.
_PATH_SAFE = "/?&=%#:@!$'()*+,;~-._"


def safe_origin(value: str | None) -> str | None:
    """Return the origin of an absolute http(s) URL, or None if malformed."""
    if not value or not isinstance(value, str):
        return None
    try:
        parts = urlsplit(value.strip())
        # Accessing .port validates it
        parts.port
    except ValueError:
        return None
    if parts.scheme not in ('http', 'https') or not parts.hostname:
        return None
    if not parts.netloc.isascii():
        return None
    return f"{parts.scheme}://{parts.netloc.rpartition('@')[2].lower()}"


def is_allowed_origin(origin: str | None, allowed) -> bool:
    """``allowed`` of None accepts any well-formed origin."""
    if not origin:
        return False
    return allowed is None or origin in allowed


def web_origin_from_headers(
    referer: str | None, origin: str | None, fallback: str, allowed=None,
) -> str:
    """Origin of the page that started sign-in: Referer, then Origin, then fallback.

    Header origins outside ``allowed`` are skipped.
    """
    for candidate in (safe_origin(referer), safe_origin(origin)):
        if is_allowed_origin(candidate, allowed):
            return candidate
    return safe_origin(fallback) or fallback


def safe_next_path(value) -> str | None:
    """Accept only same-site absolute paths.

    Rejects anything not starting with a single '/', protocol-relative
    '//host' values and values containing CR or LF. Characters outside
    the URL-safe ASCII set are percent-encoded.
    """
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed.startswith('/'):
        return None
    if trimmed.startswith('//') or trimmed.startswith('/\\'):
        return None
    if _CRLF.search(value):
        return None
    return quote(trimmed, safe=_PATH_SAFE)


def is_loopback_hostname(hostname: str | None) -> bool:
    if not hostname:
        return False
    return hostname.strip().lower() in LOOPBACK_HOSTS


def request_origin(headers, scheme: str) -> str | None:
    """Origin the request arrived on, honouring X-Forwarded-Proto/Host."""
    forwarded_proto = (headers.get('x-forwarded-proto') or '').split(',')[0].strip()
    forwarded_host = (headers.get('x-forwarded-host') or '').split(',')[0].strip()
    proto = forwarded_proto or scheme
    host = forwarded_host or headers.get('host') or ''
    if not host:
        return None
    return safe_origin(f"{proto}://{host}")


def resolve_redirect_url(redirect_url: str, origin_of_request: str | None, production: bool) -> str:
    """Pick the OAuth redirect_uri for this attempt.

    In development a redirect URL configured for localhost is rewritten to
    the host the request came in on, so a phone on the LAN can complete
    sign-in against a dev machine. Production always uses the configured URL.
    """
    if production or not origin_of_request:
        return redirect_url

    try:
        configured = urlsplit(redirect_url)
        current = urlsplit(origin_of_request)
    except ValueError:
        return redirect_url

    if is_loopback_hostname(configured.hostname) and not is_loopback_hostname(current.hostname):
        rewritten = urlunsplit((current.scheme, current.netloc, configured.path,
                                configured.query, configured.fragment))
        return rewritten.rstrip('/')

    return redirect_url
