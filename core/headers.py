"""Header construction for upstream requests."""

from typing import Any

from core.header_override import apply_header_override, build_header_override_spec
from core.request_types import RelayInfo

PASSTHROUGH_PREFIXES = ("anthropic-", "openai-")
PASSTHROUGH_HEADERS = ("accept",)
# Client credentials are replaced by the channel key
CREDENTIAL_HEADERS = ("authorization", "x-api-key")


class HeaderBuilder:
    """Build upstream headers for a channel."""

    def build_channel_headers(
        self,
        headers: dict[str, Any],
        info: RelayInfo,
        auth_style: str = "bearer",
    ) -> dict[str, str]:
        """Build upstream headers, then apply the channel's header override.

        Raises:
            ChannelHeaderOverrideInvalid: The channel's override config is malformed.
        """
        upstream: dict[str, str] = {"Content-Type": "application/json"}
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in CREDENTIAL_HEADERS:
                continue
            if key_lower in PASSTHROUGH_HEADERS or key_lower.startswith(PASSTHROUGH_PREFIXES):
                upstream[key] = str(value)

        if info.api_key:
            if auth_style == "x-api-key":
                upstream["X-Api-Key"] = info.api_key
            else:
                upstream["Authorization"] = f"Bearer {info.api_key}"

        spec = build_header_override_spec(info.headers_override, info)
        apply_header_override(upstream, spec)
        return upstream
