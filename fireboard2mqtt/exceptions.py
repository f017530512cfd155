"""Exceptions raised by the bridge."""


class FireboardError(Exception):
    """Base exception for FireBoard cloud API errors."""


class FireboardConnectionError(FireboardError):
    """The API could not be reached or answered with a non-2xx status."""


class FireboardDataError(FireboardError):
    """The API answered with a body that could not be decoded."""


class FireboardAuthenticationError(FireboardError):
    """The account credentials were rejected."""


class SinkError(Exception):
    """The MQTT publish channel failed. Always fatal."""


class ConfigError(Exception):
    """Configuration is missing or invalid."""
