"""URL validation for navigation targets."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass
class UrlValidationResult:
    """Result of URL validation."""

    is_valid: bool
    rejection_reason: str | None = None

    @staticmethod
    def valid() -> UrlValidationResult:
        """Create a valid result."""
        return UrlValidationResult(is_valid=True)

    @staticmethod
    def invalid(reason: str) -> UrlValidationResult:
        """Create an invalid result with reason."""
        return UrlValidationResult(is_valid=False, rejection_reason=reason)


class UrlValidator:
    """
    Validates navigation targets before any fetch is attempted.

    Always checks the scheme and that a host is present. With
    block_private_ips enabled it also rejects:
    - Private/internal IP addresses
    - Localhost and internal domain suffixes

    Example:
        validator = UrlValidator(block_private_ips=True)
        result = validator.validate("https://127.0.0.1/admin")
        if not result.is_valid:
            print(f"Rejected: {result.rejection_reason}")
    """

    DEFAULT_ALLOWED_SCHEMES = frozenset({"http", "https"})
    INTERNAL_SUFFIXES = {".internal", ".local", ".localhost", ".localdomain"}
    LOCALHOST_NAMES = {"localhost", "localhost.localdomain"}

    def __init__(
        self,
        allowed_schemes: set[str] | frozenset[str] | None = None,
        block_private_ips: bool = False,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the URL validator.

        Args:
            allowed_schemes: Set of allowed URL schemes (default: http, https)
            block_private_ips: Whether to block private/internal hosts
            logger: Optional logger for validation messages
        """
        self.allowed_schemes = allowed_schemes or self.DEFAULT_ALLOWED_SCHEMES
        self.block_private_ips = block_private_ips
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, url: str) -> UrlValidationResult:
        """
        Validate a URL.

        Args:
            url: The URL to validate

        Returns:
            UrlValidationResult with is_valid and optional rejection_reason
        """
        result = self._check(url)
        if not result.is_valid:
            self.logger.debug(f"Rejected URL {url!r}: {result.rejection_reason}")
        return result

    def _check(self, url: str) -> UrlValidationResult:
        try:
            parsed = urlparse(url)
            hostname = (parsed.hostname or "").lower()
        except ValueError:
            return UrlValidationResult.invalid("Invalid URL format")

        if parsed.scheme not in self.allowed_schemes:
            return UrlValidationResult.invalid(
                f"Scheme '{parsed.scheme}' not allowed (allowed: {sorted(self.allowed_schemes)})"
            )

        if not hostname:
            return UrlValidationResult.invalid("URL has no domain")

        if self.block_private_ips:
            if hostname in self.LOCALHOST_NAMES:
                return UrlValidationResult.invalid("Localhost URLs not allowed")

            for suffix in self.INTERNAL_SUFFIXES:
                if hostname.endswith(suffix):
                    return UrlValidationResult.invalid(f"Internal domain suffix '{suffix}' not allowed")

            ip_result = self._check_ip_address(hostname)
            if ip_result is not None:
                return ip_result

        return UrlValidationResult.valid()

    def _check_ip_address(self, hostname: str) -> UrlValidationResult | None:
        """
        Check if hostname is a private/internal IP address.

        Returns:
            UrlValidationResult if IP is blocked, None if hostname is not an IP
        """
        try:
            ip = ipaddress.ip_address(hostname)
        except ValueError:
            # Not an IP address
            return None

        if ip.is_loopback:
            return UrlValidationResult.invalid(f"Loopback IP address '{hostname}' not allowed")
        if ip.is_private:
            return UrlValidationResult.invalid(f"Private IP address '{hostname}' not allowed")
        if ip.is_link_local:
            return UrlValidationResult.invalid(f"Link-local IP address '{hostname}' not allowed")
        if ip.is_reserved:
            return UrlValidationResult.invalid(f"Reserved IP address '{hostname}' not allowed")
        return None

    def is_valid(self, url: str) -> bool:
        """Quick check if URL is valid."""
        return self.validate(url).is_valid
