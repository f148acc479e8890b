"""Domain errors raised by relaydesk services."""


class RelayError(Exception):
    """Base class for relay errors."""


class ProviderError(RelayError):
    """A provider gateway call failed (send, fetch, mark seen...)."""


class ProviderNotReadyError(ProviderError):
    """The provider session is not authenticated yet."""


class MediaError(RelayError):
    """A media payload could not be decoded, transformed or stored."""


class ConfigPersistenceError(RelayError):
    """The bot config could not be written to disk."""
