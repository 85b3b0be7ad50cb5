class HubError(Exception):
    """Base class for errors raised by the hub outside a single launch."""


class ConfigurationError(HubError):
    """Raised for misconfiguration that must stop the run before anything is launched."""
