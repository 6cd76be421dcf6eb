"""HTTP relaying utilities for upstream requests."""

import json
from typing import Any

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.exceptions import UpstreamError
from core.protocols import RequestLogger


class UpstreamClient:
    """Relay requests to upstream channels with streaming support."""

    def __init__(self, clients: dict[str, httpx.AsyncClient], timeout: float = 300.0) -> None:
        self._clients = clients
        self._timeout = timeout

    async def proxy_request(
        self,
        body: dict[str, Any],
        headers: dict[str, str],
        target_url: str,
        path: str,
        logger: RequestLogger,
        channel_name: str,
    ) -> Response | StreamingResponse:
        """Execute the relayed request (streaming or non-streaming)."""
        is_streaming = body.get("stream", False)
        url = f"{target_url.rstrip('/')}{path}"

        try:
            if is_streaming:
                return await self._streaming_request(body, headers, url, logger, channel_name)
            return await self._non_streaming_request(body, headers, url, logger, channel_name)
        except httpx.TimeoutException:
            return self._error_response(
                UpstreamError("Upstream timeout", status_code=504, channel=channel_name), logger
            )
        except httpx.RequestError as e:
            return self._error_response(
                UpstreamError(f"Upstream connection error: {e}", channel=channel_name), logger
            )
        except UpstreamError as e:
            return self._error_response(e, logger)

    async def _streaming_request(
        self,
        body: dict[str, Any],
        headers: dict[str, str],
        url: str,
        logger: RequestLogger,
        channel_name: str,
    ) -> Response | StreamingResponse:
        """Handle streaming request with proper status code propagation."""
        client = self._client_for(channel_name)

        req = client.build_request(
            "POST",
            url,
            json=body,
            headers=headers,
            timeout=self._timeout,
        )
        response = await client.send(req, stream=True)

        if response.status_code != 200:
            error_body = await response.aread()
            logger.log_error(channel_name, response.status_code, error_body.decode(errors="replace"))
            await response.aclose()
            return Response(
                content=error_body,
                status_code=response.status_code,
                media_type=response.headers.get("content-type", "application/json"),
            )

        return StreamingResponse(
            response.aiter_bytes(),
            status_code=200,
            media_type=response.headers.get("content-type", "text/event-stream"),
            background=BackgroundTask(self._cleanup_streaming, response),
        )

    async def _cleanup_streaming(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()

    async def _non_streaming_request(
        self,
        body: dict[str, Any],
        headers: dict[str, str],
        url: str,
        logger: RequestLogger,
        channel_name: str,
    ) -> Response:
        """Handle non-streaming request."""
        client = self._client_for(channel_name)
        response = await client.post(
            url,
            json=body,
            headers=headers,
            timeout=self._timeout,
        )

        if response.status_code != 200:
            logger.log_error(channel_name, response.status_code, response.text)

        return Response(
            content=response.content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type", "application/json"),
        )

    def _error_response(self, error: UpstreamError, logger: RequestLogger) -> Response:
        logger.log_error(error.channel or "upstream", error.status_code, error.message)
        return Response(
            content=json.dumps({"error": error.message}),
            status_code=error.status_code,
            media_type="application/json",
        )

    def _client_for(self, channel_name: str) -> httpx.AsyncClient:
        """Select the cached client for a channel."""
        client = self._clients.get(channel_name)
        if client is None:
            raise UpstreamError(f"No client for channel '{channel_name}'", channel=channel_name)
        return client
