import json

import pytest

from core.config import ChannelSettings, Config, load_config
from core.exceptions import ChannelHeaderOverrideInvalid
from core.header_override import build_header_override_spec
from core.request_types import RelayInfo


def test_load_config_creates_default(tmp_path):
    config_file = tmp_path / "relay" / "config.json"

    config = load_config(config_file)

    assert config == Config()
    assert config_file.exists()
    assert json.loads(config_file.read_text())["channels"] == []


def test_load_config_reads_channels(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(
        json.dumps(
            {
                "proxy": {"port": 9000},
                "channels": [
                    {
                        "name": "gpt",
                        "base_url": "https://api.example.com",
                        "api_key": "sk-1",
                        "models": ["gpt-4o"],
                        "headers_override": {"fill": {"X-Title": "relay"}},
                    }
                ],
            }
        )
    )

    config = load_config(config_file)

    assert config.proxy.port == 9000
    assert config.channels[0].headers_override == {"fill": {"X-Title": "relay"}}


def test_load_config_backs_up_corrupt_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")

    config = load_config(config_file)

    assert config == Config()
    assert (tmp_path / "config.json.bak").read_text() == "{not json"


def test_headers_override_json_text_is_decoded():
    channel = ChannelSettings(
        name="gpt",
        base_url="https://api.example.com",
        headers_override='{"override": {"X-Foo": "bar"}}',
    )

    assert channel.headers_override == {"override": {"X-Foo": "bar"}}


@pytest.mark.parametrize("value", ["", "   ", None])
def test_blank_headers_override_is_unset(value):
    channel = ChannelSettings(name="gpt", base_url="https://api.example.com", headers_override=value)

    assert channel.headers_override is None


def test_headers_override_bad_json_text_kept_and_rejected_per_request():
    channel = ChannelSettings(name="gpt", base_url="https://api.example.com", headers_override="{oops")
    info = RelayInfo(channel_name="gpt", api_key="sk-1")

    assert channel.headers_override == "{oops"
    with pytest.raises(ChannelHeaderOverrideInvalid):
        build_header_override_spec(channel.headers_override, info)


def test_load_config_keeps_other_channels_when_override_text_is_bad(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(
        json.dumps(
            {
                "channels": [
                    {"name": "good", "base_url": "https://good.example.com"},
                    {"name": "bad", "base_url": "https://bad.example.com", "headers_override": "{oops"},
                ]
            }
        )
    )

    config = load_config(config_file)

    assert [c.name for c in config.channels] == ["good", "bad"]
    assert not (tmp_path / "config.json.bak").exists()


def test_headers_override_shape_not_validated_at_load():
    # Shape errors surface per request as ChannelHeaderOverrideInvalid
    channel = ChannelSettings(
        name="gpt",
        base_url="https://api.example.com",
        headers_override={"override": {"X-Foo": 1}},
    )

    assert channel.headers_override == {"override": {"X-Foo": 1}}
