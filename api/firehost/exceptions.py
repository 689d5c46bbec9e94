"""Exceptions raised by firehost."""


class ConfigurationError(ValueError):
    """Raised when an app is not configured well enough to build a client."""
