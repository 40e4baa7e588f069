"""
Host allow-list helpers deciding on which sites the download UI is offered.
"""

from urllib.parse import urlsplit

DEFAULT_ALLOWED_HOSTS = [
    "x.com",
    "dribbble.com",
    "behance.com",
    "seesaw.website",
    "designspells.com",
]


def normalize_host(value) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value.strip().lower()


def _hostname(text: str) -> str:
    try:
        host = urlsplit(text).hostname or ""
    except ValueError:
        return ""
    if any(ch.isspace() for ch in host):
        return ""
    return host


def extract_host(value) -> str:
    """
    Extracts a hostname from a URL or a bare domain.

    'https://Www.Example.com/path' and 'example.com/path' both work; the bare
    form is retried with an https scheme.
    """
    trimmed = normalize_host(value)
    if not trimmed:
        return ""
    if "://" in trimmed and (host := _hostname(trimmed)):
        return host
    return _hostname(f"https://{trimmed}")


def dedupe_hosts(hosts) -> list[str]:
    """Normalizes hosts and removes empty and duplicate entries, keeping order."""
    if not isinstance(hosts, (list, tuple)):
        return []
    seen = set()
    output = []
    for host in hosts:
        normalized = normalize_host(host)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        output.append(normalized)
    return output


def is_host_allowed(hostname, allowed_hosts) -> bool:
    """True if `hostname` equals an allowed host or is one of its subdomains."""
    host = normalize_host(hostname)
    if not host:
        return False
    allowed = allowed_hosts if isinstance(allowed_hosts, (list, tuple)) else []
    for entry in allowed:
        allowed_host = normalize_host(entry)
        if allowed_host and (host == allowed_host or host.endswith(f".{allowed_host}")):
            return True
    return False
