"""
Literal query patterns shared by the intent classifier and the adapters
that only handle one kind of input (WHOIS, DNS, IP lookup, DOI lookup).
"""

from __future__ import annotations

import re

IPV4_PATTERN = re.compile(
    r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)
IPV6_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}$")
DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z]{2,})+$"
)
CVE_PATTERN = re.compile(r"CVE-\d{4}-\d+", re.IGNORECASE)
DOI_PATTERN = re.compile(r"(?:doi\.org/)?(10\.\d{4,}/\S+)", re.IGNORECASE)
HANDLE_PATTERN = re.compile(r"^@(\w{2,30})$")


def is_ip_address(text: str) -> bool:
    text = text.strip()
    return bool(IPV4_PATTERN.match(text) or IPV6_PATTERN.match(text))


def is_domain(text: str) -> bool:
    return bool(DOMAIN_PATTERN.match(text.strip()))


def extract_doi(text: str) -> str | None:
    """Return the DOI in ``text`` without trailing punctuation, or None."""
    match = DOI_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).rstrip(".,;")
