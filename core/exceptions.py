"""Custom exception hierarchy for the channel relay."""


class ProxyError(Exception):
    """Base exception for all relay errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class ChannelHeaderOverrideInvalid(ConfigurationError):
    """Raised when a channel's header override config has an unsupported shape.

    Attributes:
        code: Stable error code returned to API clients.
    """

    code = "channel:header_override_invalid"


class NoChannelAvailable(ConfigurationError):
    """Raised when no configured channel serves the requested model."""

    code = "model_not_found"


class UpstreamError(ProxyError):
    """Raised when an upstream provider cannot be reached.

    Attributes:
        message: Error message
        status_code: HTTP status code to report to the client
        channel: Channel name the request was routed to (optional)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        channel: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.channel = channel
