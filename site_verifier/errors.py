from __future__ import annotations


class SiteVerifierError(Exception):
    pass


class ConfigurationError(SiteVerifierError, ValueError):
    """Invalid or incomplete settings; raised before any request is sent."""


class ParseError(SiteVerifierError, ValueError):
    """A response body could not be decoded for the configured filter path."""


class TransportError(SiteVerifierError, RuntimeError):
    """The request never produced an HTTP response (network error, timeout)."""
