"""Channel selection - determines which upstream serves a model."""

from core.config import ChannelSettings
from core.exceptions import NoChannelAvailable


class ChannelRouter:
    """Pick the upstream channel for a requested model."""

    def __init__(self, channels: list[ChannelSettings]):
        self.channels = channels

    def select(self, model: str) -> ChannelSettings:
        """Return the first channel serving ``model``.

        Channels are checked in config order; an empty model list matches any model.
        """
        for channel in self.channels:
            if not channel.models or model in channel.models:
                return channel
        raise NoChannelAvailable(f"No channel available for model '{model}'")
