"""URL helper utilities."""

from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


def build_url_preserving_unicode(
    base_url: str,
    params: dict[str, str] | None = None
) -> str:
    """Build URL merging query parameters while preserving Unicode characters.

    Args:
        base_url: Base URL
        params: Query parameters to add/merge (override existing keys)

    Returns:
        Complete URL with parameters
    """
    if not params:
        return base_url

    parsed = urlparse(base_url)

    existing = parse_qsl(parsed.query, keep_blank_values=True)
    merged = [(key, value) for key, value in existing if key not in params]
    merged.extend(params.items())

    query_string = urlencode(merged, safe=":/@!$'()*+,;=")

    return urlunparse((
        parsed.scheme,
        parsed.netloc,
        parsed.path,
        parsed.params,
        query_string,
        parsed.fragment
    ))


def host_matches(url: str, domains: tuple[str, ...] | list[str]) -> bool:
    """Check whether the URL's host is one of the domains or a subdomain of one.

    Args:
        url: URL to inspect
        domains: Registrable domains such as "b-cdn.net"

    Returns:
        True if the host matches
    """
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    for domain in domains:
        domain = domain.lower().lstrip(".")
        if host == domain or host.endswith("." + domain):
            return True
    return False


__all__ = ["build_url_preserving_unicode", "host_matches"]
