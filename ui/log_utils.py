"""Request log files for the relay.

Incoming requests are written to ``logs/incoming``. Requests as sent upstream,
after the channel's header override, are written to ``logs/upstream/<channel>``.
"""

import json
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "relay.log"

SENSITIVE_NAME_MARKERS = ("key", "authorization", "token", "secret", "cookie")
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: Any,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": datetime.now(UTC).isoformat(),
        "method": method,
        "path": path,
        "headers": redact_headers(headers),
        "body": body,
    }
    return _write_json(log_root / "incoming", payload)


def write_upstream_log(
    channel: str,
    model: str,
    body: dict[str, Any],
    headers: dict[str, str],
    *,
    path: str,
    secrets: Iterable[str] = (),
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write the outbound request for a channel.

    ``secrets`` are values (the channel key) that a header override may have
    substituted into headers with harmless names.
    """
    payload = {
        "timestamp": datetime.now(UTC).isoformat(),
        "channel": channel,
        "model": model,
        "path": path,
        "headers": redact_headers(headers, secrets),
        "body": body,
    }
    return _write_json(log_root / "upstream" / channel_folder_name(channel), payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{timestamp}] {level}: {message}"
    if extra:
        line += " " + " ".join(f"{k}={v}" for k, v in extra.items())
    with CLI_LOG_FILE.open("a") as f:
        f.write(line + "\n")


def redact_headers(headers: dict[str, str], secrets: Iterable[str] = ()) -> dict[str, str]:
    """Mask credential headers and any header carrying one of ``secrets``."""
    secrets = [s for s in secrets if s]
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if any(marker in key_lower for marker in SENSITIVE_NAME_MARKERS) or any(
            s in value for s in secrets
        ):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def channel_folder_name(channel: str) -> str:
    """Single path segment for a channel name."""
    name = _UNSAFE_SEGMENT_CHARS.sub("_", channel).strip(".")
    return name or "_"


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]
