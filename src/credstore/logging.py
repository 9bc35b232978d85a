from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeAlias, cast

import structlog

REDACTED = "[REDACTED]"

# Field names of the stored credential formats plus config secrets, lowercased.
_SENSITIVE_KEYS = {
    "password",
    "private_key",
    "privatekey",
    "credential",
    "fernet_key",
}

_SENSITIVE_FRAGMENTS = ("password", "secret", "private", "fernet")

# A JSON member carrying a secret, as it appears in stored entries.
_STORED_SECRET_RE = re.compile(r'("(?:password|privateKey|credential)"\s*:\s*)"(?:[^"\\]|\\.)*"?')

# pydantic echoes the raw input inside its error text.
_INPUT_VALUE_RE = re.compile(r"input_value=(?:'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|\S+)")

ProcessorReturn: TypeAlias = Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]
Processor: TypeAlias = Callable[[Any, str, MutableMapping[str, Any]], ProcessorReturn]


def _is_sensitive_key(key: Any) -> bool:
    key_str = str(key).lower()
    return key_str in _SENSITIVE_KEYS or any(s in key_str for s in _SENSITIVE_FRAGMENTS)


def scrub_text(value: str, *, secrets: list[str] | None = None) -> str:
    """Remove stored credential text and known secrets from a log string."""
    out = _INPUT_VALUE_RE.sub(f"input_value={REDACTED}", value)
    out = _STORED_SECRET_RE.sub(rf'\1"{REDACTED}"', out)
    for secret in secrets or ():
        if secret and secret in out:
            out = out.replace(secret, REDACTED)
    return out


def _redact(obj: Any, *, secrets: list[str]) -> Any:
    if isinstance(obj, str):
        return scrub_text(obj, secrets=secrets)
    if isinstance(obj, (bytes, bytearray)):
        # Raw entries are never written out as-is.
        return f"<{len(obj)} bytes>"
    if isinstance(obj, (list, tuple)):
        return type(obj)(_redact(v, secrets=secrets) for v in obj)
    if isinstance(obj, dict):
        return {
            k: REDACTED if _is_sensitive_key(k) else _redact(v, secrets=secrets)
            for k, v in obj.items()
        }
    return obj


def make_redaction_processor(*, secrets: list[str] | None = None) -> Processor:
    secrets_norm = [s for s in (secrets or []) if isinstance(s, str) and s]

    def _processor(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> ProcessorReturn:
        return cast(dict[str, Any], _redact(dict(event_dict), secrets=secrets_norm))

    return _processor


def configure_logging(level: str = "INFO", fmt: str = "json", *, secrets: list[str] | None = None) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level)

    processors: list[Processor] = [
        cast(Processor, structlog.contextvars.merge_contextvars),
        cast(Processor, structlog.processors.add_log_level),
        cast(Processor, structlog.processors.TimeStamper(fmt="iso")),
        make_redaction_processor(secrets=secrets),
    ]
    if fmt == "json":
        processors.append(cast(Processor, structlog.processors.JSONRenderer()))
    else:
        processors.append(cast(Processor, structlog.dev.ConsoleRenderer()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
