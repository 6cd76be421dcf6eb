"""Per-channel header override: parse the raw config and apply it to outbound headers.

Two config shapes are accepted:

    legacy:      {"X-Header": "value", ...}
    structured:  {"override": {...}, "fill": {...}, "remove": [...]}

Values may reference ``{api_key}``, which is replaced with the channel key.
"""

import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import ChannelHeaderOverrideInvalid
from core.request_types import RelayInfo

logger = logging.getLogger(__name__)

STRUCTURED_KEYS = ("override", "fill", "remove")
API_KEY_VARIABLE = "{api_key}"

# RFC 7230 token characters besides letters and digits
_TOKEN_SYMBOLS = frozenset("!#$%&'*+-.^_`|~")


@dataclass(frozen=True)
class HeaderOverrideSpec:
    """Canonical header mutation plan for one relay call."""

    override: dict[str, str] = field(default_factory=dict)
    fill: dict[str, str] = field(default_factory=dict)
    remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.override or self.fill or self.remove)


@dataclass(frozen=True)
class LegacyOverride:
    """Flat header-name -> value mapping."""

    headers: Mapping[Any, Any]


@dataclass(frozen=True)
class StructuredOverride:
    """Raw ``override``/``fill``/``remove`` sections, not yet validated."""

    override: Any = None
    fill: Any = None
    remove: Any = None


def detect_override_shape(raw: Mapping[Any, Any]) -> LegacyOverride | StructuredOverride:
    """Classify a raw override mapping as legacy or structured.

    A recognized key only counts when it holds a container (mapping, list) or
    null. A legacy config with a string header named ``override`` stays legacy.
    """
    for key in STRUCTURED_KEYS:
        if key in raw and _is_section_value(raw[key]):
            return StructuredOverride(
                override=raw.get("override"),
                fill=raw.get("fill"),
                remove=raw.get("remove"),
            )
    return LegacyOverride(raw)


def _is_section_value(value: Any) -> bool:
    return value is None or isinstance(value, (Mapping, list, tuple))


def build_header_override_spec(raw: Any, info: RelayInfo) -> HeaderOverrideSpec:
    """Build the header override spec for a relay call.

    Args:
        raw: Channel header override config as loaded from the store.
        info: Request context supplying substitution variables.

    Returns:
        The parsed spec. Empty when no override is configured.

    Raises:
        ChannelHeaderOverrideInvalid: The config does not match either shape.
    """
    if raw is None:
        return HeaderOverrideSpec()
    if not isinstance(raw, Mapping):
        raise ChannelHeaderOverrideInvalid(
            f"header override must be an object, got {type(raw).__name__}"
        )
    if not raw:
        return HeaderOverrideSpec()

    shape = detect_override_shape(raw)
    if isinstance(shape, StructuredOverride):
        return HeaderOverrideSpec(
            override=parse_header_override_map(shape.override, info, section="override"),
            fill=parse_header_override_map(shape.fill, info, section="fill"),
            remove=parse_header_override_remove_list(shape.remove),
        )
    return HeaderOverrideSpec(override=parse_header_override_map(shape.headers, info))


def parse_header_override_map(
    raw: Any,
    info: RelayInfo,
    *,
    section: str = "override",
) -> dict[str, str]:
    """Validate a header map and substitute variables in its values."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ChannelHeaderOverrideInvalid(
            f"'{section}' must be an object, got {type(raw).__name__}"
        )
    result: dict[str, str] = {}
    for name, value in raw.items():
        if not isinstance(name, str):
            raise ChannelHeaderOverrideInvalid(f"'{section}' header name {name!r} is not a string")
        if not isinstance(value, str):
            raise ChannelHeaderOverrideInvalid(
                f"'{section}' value for {name!r} must be a string, got {type(value).__name__}"
            )
        result[name] = replace_header_variables(value, info)
    return result


def parse_header_override_remove_list(raw: Any) -> list[str]:
    """Validate the list of header names to remove."""
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ChannelHeaderOverrideInvalid(f"'remove' must be a list, got {type(raw).__name__}")
    result: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise ChannelHeaderOverrideInvalid(f"'remove' entry {item!r} is not a string")
        result.append(item)
    return result


def replace_header_variables(value: str, info: RelayInfo) -> str:
    """Substitute ``{api_key}``. Other ``{...}`` tokens are left as-is."""
    if API_KEY_VARIABLE in value:
        return value.replace(API_KEY_VARIABLE, info.api_key)
    return value


def canonical_header_key(name: str) -> str:
    """Return the MIME-canonical form of a header name.

    ``content-type`` becomes ``Content-Type``. Names containing characters
    outside the header token set are returned unchanged.
    """
    if not all(_is_token_char(c) for c in name):
        return name
    chars = []
    upper = True
    for c in name:
        if upper and "a" <= c <= "z":
            c = c.upper()
        elif not upper and "A" <= c <= "Z":
            c = c.lower()
        chars.append(c)
        upper = c == "-"
    return "".join(chars)


def _is_token_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c in _TOKEN_SYMBOLS)


def apply_header_override(
    headers: MutableMapping[str, str],
    spec: HeaderOverrideSpec | None,
) -> None:
    """Apply a header override spec to ``headers`` in place.

    Phases run in a fixed order: remove, then fill, then override. Override
    always wins, and fill never replaces a non-empty value.
    """
    if spec is None or spec.is_empty:
        return

    for name in spec.remove:
        canonical = canonical_header_key(name.strip())
        if not canonical:
            continue
        _delete_header(headers, canonical)

    for name, value in spec.fill.items():
        canonical = canonical_header_key(name.strip())
        if not canonical:
            continue
        if _get_header(headers, canonical) == "":
            _set_header(headers, canonical, value)

    for name, value in spec.override.items():
        canonical = canonical_header_key(name.strip())
        if not canonical:
            continue
        _set_header(headers, canonical, value)

    logger.debug(
        "Applied header override: remove=%d fill=%d override=%d",
        len(spec.remove),
        len(spec.fill),
        len(spec.override),
    )


def _matching_keys(headers: MutableMapping[str, str], name: str) -> list[str]:
    lowered = name.lower()
    return [key for key in headers if key.lower() == lowered]


def _get_header(headers: MutableMapping[str, str], name: str) -> str:
    for key in _matching_keys(headers, name):
        return headers[key]
    return ""


def _delete_header(headers: MutableMapping[str, str], name: str) -> None:
    for key in _matching_keys(headers, name):
        del headers[key]


def _set_header(headers: MutableMapping[str, str], name: str, value: str) -> None:
    _delete_header(headers, name)
    headers[name] = value
