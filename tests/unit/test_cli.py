import cli
from core.config import ChannelSettings, Config
from ui import dashboard as dashboard_module
from ui.dashboard import Dashboard


def _config(*overrides):
    return Config(
        channels=[
            ChannelSettings(name=f"ch{i}", base_url="https://upstream.example.com", headers_override=raw)
            for i, raw in enumerate(overrides)
        ]
    )


def test_check_channels_accepts_valid_overrides():
    config = _config(None, {"X-Foo": "bar"}, {"fill": {"X-A": "1"}, "remove": ["X-B"]})

    assert cli.check_channels(config) is True


def test_check_channels_reports_invalid_override(capsys):
    config = _config({"X-Foo": "bar"}, {"remove": [1]})

    assert cli.check_channels(config) is False
    assert "invalid" in capsys.readouterr().out


def test_dashboard_counts_requests_and_errors(monkeypatch):
    written = []
    monkeypatch.setattr(dashboard_module, "write_upstream_log", lambda *a, **kw: written.append(a))
    monkeypatch.setattr(dashboard_module, "write_cli_log", lambda *a, **kw: None)
    dash = Dashboard(_config(None))

    dash.log_request("ch0", "gpt-4o", {"model": "gpt-4o"}, {"X-B": "1", "X-A": "2"}, path="/v1/x")
    dash.log_error("ch0", 500, "boom")

    assert dash._request_count["ch0"] == 1
    assert dash._recent[0].header_names == ["X-A", "X-B"]
    assert dash._errors == ["ch0 500: boom"]
    assert written[0][0] == "ch0"


def test_check_channels_reports_undecodable_override_text(capsys):
    config = _config({"X-Foo": "bar"}, "{oops")

    assert cli.check_channels(config) is False
    assert "ch1" in capsys.readouterr().out
