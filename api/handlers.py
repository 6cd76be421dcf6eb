"""FastAPI route handlers."""

import json
from json import JSONDecodeError
from typing import Any

from fastapi import Request, Response
from fastapi.responses import StreamingResponse

from core.exceptions import ChannelHeaderOverrideInvalid, NoChannelAvailable
from core.protocols import RequestLogger
from ui.log_utils import write_incoming_log

MAX_BODY_SIZE = 50 * 1024 * 1024  # 50MB


async def _parse_json_body(request: Request) -> tuple[dict[str, Any], dict[str, str]] | Response:
    """Parse request body as JSON, return (body, headers) or error Response."""
    raw_body = await request.body()
    if len(raw_body) > MAX_BODY_SIZE:
        return _error_response(413, "Request body too large", "request_too_large")

    text_body = raw_body.decode("utf-8", errors="replace")
    try:
        body = json.loads(text_body)
    except (JSONDecodeError, ValueError) as e:
        write_incoming_log(request.method, request.url.path, dict(request.headers), text_body)
        return _error_response(400, f"Invalid JSON: {e}", "invalid_json")
    if not isinstance(body, dict):
        return _error_response(400, "Request body must be a JSON object", "invalid_json")

    headers = dict(request.headers)
    write_incoming_log(request.method, request.url.path, headers, body)
    return body, headers


def _error_response(status: int, message: str, code: str) -> Response:
    payload = {"error": {"message": message, "type": "relay_error", "code": code}}
    return Response(
        content=json.dumps(payload),
        status_code=status,
        media_type="application/json",
    )


async def handle_relay(
    request: Request,
    logger: RequestLogger,
) -> Response | StreamingResponse:
    """Relay a request to the channel serving its model."""
    result = await _parse_json_body(request)
    if isinstance(result, Response):
        return result
    body, headers = result
    path = request.url.path

    routing_service = request.app.state.routing_service
    try:
        prepared = routing_service.prepare(body, headers, path)
    except NoChannelAvailable as e:
        logger.log_error(path, 503, str(e))
        return _error_response(503, str(e), e.code)
    except ChannelHeaderOverrideInvalid as e:
        logger.log_error(path, 500, f"Invalid header override: {e}")
        return _error_response(500, f"Invalid channel header override: {e}", e.code)

    upstream = request.app.state.upstream_client
    return await upstream.proxy_request(
        prepared.body,
        prepared.headers,
        prepared.target_url,
        path,
        logger,
        prepared.channel_name,
    )
