"""Configuration models and loading."""

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_DIR = Path.home() / ".config" / "channel-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    port: int = 8080
    debug: bool = True


class LimitsSettings(BaseModel):
    timeout: float = 300.0
    keep_alive_timeout: int = 5
    max_connections: int = 100
    max_keepalive_connections: int = 20


class ChannelSettings(BaseModel):
    name: str
    base_url: str
    api_key: str = ""
    # Empty list serves every model
    models: list[str] = Field(default_factory=list)
    auth_style: Literal["bearer", "x-api-key"] = "bearer"
    # Either shape is accepted here; validated per request by core.header_override
    headers_override: Any = None

    @field_validator("headers_override", mode="before")
    @classmethod
    def _decode_json_text(cls, value: Any) -> Any:
        """Channel stores commonly keep the override as JSON text.

        Undecodable text is kept as-is and rejected per request, so one bad
        channel does not invalidate the whole config.
        """
        if not isinstance(value, str):
            return value
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    channels: list[ChannelSettings] = Field(default_factory=list)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
