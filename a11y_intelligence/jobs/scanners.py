"""
Scanner collaborator interface and audit URL validation.

The browser layer that actually runs axe-core and Pa11y lives outside this
package; the audit processor only talks to a ScannerCollaborator.
"""

import ipaddress
from abc import ABC, abstractmethod
from typing import Any, Dict, List
from urllib.parse import urlparse


class InvalidAuditURL(ValueError):
    """Raised for URLs that must not be audited."""


# Hostnames that always resolve to the local machine or cloud metadata
BLOCKED_HOSTNAMES = frozenset({
    'localhost',
    'localhost.localdomain',
    'metadata.google.internal',
})


def validate_audit_url(url: str) -> str:
    """
    Check that a URL is a public http(s) address.

    Args:
        url: Candidate URL

    Returns:
        The URL, stripped

    Raises:
        InvalidAuditURL: For other schemes, missing hosts, and loopback,
            private, link-local or unspecified addresses
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidAuditURL("URL is empty")

    url = url.strip()
    parsed = urlparse(url)

    if parsed.scheme not in ('http', 'https'):
        raise InvalidAuditURL(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")

    hostname = (parsed.hostname or '').lower()
    if not hostname:
        raise InvalidAuditURL(f"URL has no host: {url}")

    if hostname in BLOCKED_HOSTNAMES or hostname.endswith('.localhost'):
        raise InvalidAuditURL(f"Blocked host: {hostname}")

    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return url

    if (address.is_private or address.is_loopback or address.is_link_local
            or address.is_unspecified or address.is_reserved or address.is_multicast):
        raise InvalidAuditURL(f"Blocked address: {hostname}")

    return url


class ScannerCollaborator(ABC):
    """
    Runs the two accessibility scanners against a page.

    Implementations drive a real browser; tests use in-memory fakes.
    """

    @abstractmethod
    def run_primary(self, url: str) -> Dict[str, Any]:
        """
        Run axe-core.

        Returns:
            axe results dict with violations, passes, incomplete, inapplicable
        """

    @abstractmethod
    def run_secondary(self, url: str) -> List[Dict[str, Any]]:
        """
        Run Pa11y.

        Returns:
            List of Pa11y issues (code, type, message, selector, context)
        """

    def page_title(self, url: str) -> str:
        """Title of the page ("" when unknown)."""
        return ""
