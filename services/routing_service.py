"""Routing orchestration for relay requests."""

from typing import Any

from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import PreparedRequest, RelayInfo
from core.router import ChannelRouter


class RoutingService:
    """Prepare requests for relaying to the selected channel."""

    def __init__(
        self,
        logger: RequestLogger,
        router: ChannelRouter,
        header_builder: HeaderBuilder,
    ) -> None:
        self._logger = logger
        self._router = router
        self._headers = header_builder

    def prepare(
        self,
        body: dict[str, Any],
        headers: dict[str, Any],
        path: str,
    ) -> PreparedRequest:
        """Prepare a request for its upstream channel.

        Raises:
            NoChannelAvailable: No channel serves the requested model.
            ChannelHeaderOverrideInvalid: The channel's header override is malformed.
        """
        model = str(body.get("model", "unknown"))
        channel = self._router.select(model)
        info = RelayInfo(
            channel_name=channel.name,
            api_key=channel.api_key,
            model=model,
            path=path,
            headers_override=channel.headers_override,
        )
        upstream_headers = self._headers.build_channel_headers(
            headers, info, auth_style=channel.auth_style
        )
        self._logger.log_request(
            channel.name, model, body, upstream_headers, path=path, api_key=info.api_key
        )
        return PreparedRequest(channel.name, channel.base_url, upstream_headers, body)
