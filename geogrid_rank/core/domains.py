"""Domain normalisation and matching for ranked results."""

from typing import Optional
from urllib.parse import urlparse

_WWW_PREFIX = "www."


def _strip_www(host: str) -> str:
    return host[len(_WWW_PREFIX):] if host.startswith(_WWW_PREFIX) else host


def normalize_domain(url_or_host: Optional[str]) -> str:
    """Reduce a URL or bare hostname to a lower-case host without `www.`.

    Never raises: input that urlparse rejects falls back to a naive
    lower-case and `www.` strip.
    """
    if not url_or_host:
        return ""
    value = url_or_host.strip()
    if not value.lower().startswith(("http://", "https://")) and "://" not in value:
        value = "http://" + value
    try:
        host = urlparse(value).hostname or ""
    except ValueError:
        return _strip_www(url_or_host.strip().lower())
    return _strip_www(host.lower())


def domains_match(candidate_url: Optional[str], target_domain: Optional[str]) -> bool:
    """True when both hosts are equal or one is a dot-delimited subdomain of the other."""
    candidate = normalize_domain(candidate_url)
    target = normalize_domain(target_domain)
    if not candidate or not target:
        return False
    return candidate == target or candidate.endswith("." + target) or target.endswith("." + candidate)
