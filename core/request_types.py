"""Shared request data types."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RelayInfo:
    """Request-scoped context for a single relay call."""

    channel_name: str
    api_key: str
    model: str = ""
    path: str = ""
    headers_override: Any = None


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    channel_name: str
    target_url: str
    headers: dict[str, str]
    body: dict[str, Any]
