import pytest

from core.config import ChannelSettings
from core.exceptions import ChannelHeaderOverrideInvalid, NoChannelAvailable
from core.headers import HeaderBuilder
from core.request_types import RelayInfo
from core.router import ChannelRouter
from services.routing_service import RoutingService


class RecordingLogger:
    def __init__(self):
        self.requests = []
        self.errors = []

    def log_request(self, channel, model, body, headers, *, path, api_key=""):
        self.requests.append((channel, model, dict(headers), path))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


def _channel(name, models=None, **kwargs):
    return ChannelSettings(
        name=name,
        base_url=f"https://{name}.example.com",
        api_key=f"sk-{name}",
        models=models or [],
        **kwargs,
    )


def test_router_prefers_listed_channel_in_config_order():
    router = ChannelRouter([_channel("gpt", ["gpt-4o"]), _channel("fallback")])

    assert router.select("gpt-4o").name == "gpt"
    assert router.select("claude-3").name == "fallback"


def test_router_without_match_raises():
    router = ChannelRouter([_channel("gpt", ["gpt-4o"])])

    with pytest.raises(NoChannelAvailable):
        router.select("claude-3")


def test_header_builder_replaces_client_credentials():
    info = RelayInfo(channel_name="gpt", api_key="sk-gpt")
    incoming = {
        "authorization": "Bearer client",
        "x-api-key": "client",
        "accept": "text/event-stream",
        "anthropic-version": "2023-06-01",
        "cookie": "session=1",
    }

    headers = HeaderBuilder().build_channel_headers(incoming, info)

    assert headers == {
        "Content-Type": "application/json",
        "accept": "text/event-stream",
        "anthropic-version": "2023-06-01",
        "Authorization": "Bearer sk-gpt",
    }


def test_header_builder_x_api_key_style():
    info = RelayInfo(channel_name="claude", api_key="sk-claude")

    headers = HeaderBuilder().build_channel_headers({}, info, auth_style="x-api-key")

    assert headers["X-Api-Key"] == "sk-claude"
    assert "Authorization" not in headers


def test_header_builder_applies_override():
    info = RelayInfo(
        channel_name="gpt",
        api_key="sk-gpt",
        headers_override={
            "override": {"authorization": "Token {api_key}"},
            "fill": {"accept": "application/json", "X-Title": "relay"},
            "remove": ["content-type"],
        },
    )

    headers = HeaderBuilder().build_channel_headers({"Accept": "text/event-stream"}, info)

    assert headers == {
        "Accept": "text/event-stream",
        "X-Title": "relay",
        "Authorization": "Token sk-gpt",
    }


def test_header_builder_propagates_invalid_override():
    info = RelayInfo(channel_name="gpt", api_key="sk", headers_override={"X-Foo": 1})

    with pytest.raises(ChannelHeaderOverrideInvalid):
        HeaderBuilder().build_channel_headers({}, info)


def test_routing_service_prepares_request():
    logger = RecordingLogger()
    channel = _channel("gpt", ["gpt-4o"], headers_override='{"X-Channel": "{api_key}"}')
    service = RoutingService(
        logger=logger,
        router=ChannelRouter([channel]),
        header_builder=HeaderBuilder(),
    )

    prepared = service.prepare({"model": "gpt-4o"}, {}, "/v1/chat/completions")

    assert prepared.channel_name == "gpt"
    assert prepared.target_url == "https://gpt.example.com"
    assert prepared.headers["X-Channel"] == "sk-gpt"
    assert logger.requests == [("gpt", "gpt-4o", prepared.headers, "/v1/chat/completions")]


def test_routing_service_does_not_log_invalid_override():
    logger = RecordingLogger()
    channel = _channel("gpt", headers_override={"remove": [1]})
    service = RoutingService(
        logger=logger,
        router=ChannelRouter([channel]),
        header_builder=HeaderBuilder(),
    )

    with pytest.raises(ChannelHeaderOverrideInvalid):
        service.prepare({"model": "gpt-4o"}, {}, "/v1/chat/completions")
    assert logger.requests == []
