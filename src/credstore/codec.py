from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeAlias, TypeVar, runtime_checkable

import structlog
from pydantic import ValidationError

from .crypto import decrypt_bytes, encrypt_bytes, fernet_from_key_str
from .errors import DecodeError, InvalidArgumentError
from .metrics import decode_failures_total

V = TypeVar("V")
V_co = TypeVar("V_co", covariant=True)
R_contra = TypeVar("R_contra", contravariant=True)


@runtime_checkable
class ByteSource(Protocol):
    """Lazily readable bytes; `read()` may fail with OSError."""

    def read(self) -> bytes:
        ...


RawValue: TypeAlias = bytes | ByteSource


def read_bytes(raw: RawValue) -> bytes:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    return raw.read()


def describe_decode_error(e: Exception) -> str:
    """
    Summary of a decode failure that is safe to log.

    Stored text never appears in it: validation errors are reduced to their
    locations and error types, and unknown ValueErrors to their class name.
    """
    if isinstance(e, ValidationError):
        parts = []
        for err in e.errors(include_url=False, include_context=False, include_input=False):
            loc = ".".join(str(p) for p in err["loc"]) or "<root>"
            parts.append(f"{loc}: {err['type']}")
        return "; ".join(parts) or type(e).__name__
    if isinstance(e, UnicodeDecodeError):
        return f"{e.encoding} {e.reason} at byte {e.start}"
    if isinstance(e, (OSError, DecodeError)):
        return str(e)
    return type(e).__name__


@dataclass(frozen=True)
class DecodeResult(Generic[V]):
    """Outcome of decoding one stored entry."""

    value: V | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unreadable(self) -> bool:
        return self.error is not None


class ByteCodec(Protocol[R_contra, V_co]):
    def encode(self, value: Any) -> bytes:
        ...

    def decode(self, raw: R_contra) -> V_co | None:
        ...

    def decode_result(self, raw: R_contra) -> DecodeResult[Any]:
        ...


class FailSoftCodec(ABC, Generic[V]):
    """
    Encodes values to bytes and decodes them back without ever raising on bad data.

    Encoding is strict: a None value is a programming error and raises
    InvalidArgumentError. Decoding absorbs malformed bytes, shape mismatches and
    I/O failures from a ByteSource; each failure is logged once as a warning and
    reported as an unreadable DecodeResult.
    """

    name = "bytes"

    def __init__(self, *, logger: Any | None = None):
        self._log = logger or structlog.get_logger()

    @abstractmethod
    def _encode(self, value: V) -> bytes:
        ...

    @abstractmethod
    def _decode(self, data: bytes) -> V:
        ...

    def encode(self, value: V) -> bytes:
        if value is None:
            raise InvalidArgumentError(f"{self.name} codec cannot encode None")
        return self._encode(value)

    def decode_result(self, raw: RawValue) -> DecodeResult[V]:
        if raw is None:
            raise InvalidArgumentError(f"{self.name} codec cannot decode None")
        try:
            value = self._decode(read_bytes(raw))
        except (OSError, ValueError, DecodeError) as e:
            decode_failures_total.labels(codec=self.name).inc()
            self._log.warning(
                "credential_decode_failed",
                codec=self.name,
                error_type=type(e).__name__,
                error=describe_decode_error(e),
            )
            return DecodeResult(error=e)
        return DecodeResult(value=value)

    def decode(self, raw: RawValue) -> V | None:
        return self.decode_result(raw).value


class FunctionCodec(FailSoftCodec[V]):
    name = "function"

    def __init__(
        self,
        encoder: Callable[[V], bytes],
        decoder: Callable[[bytes], V],
        *,
        logger: Any | None = None,
    ):
        super().__init__(logger=logger)
        self._encoder = encoder
        self._decoder = decoder

    def _encode(self, value: V) -> bytes:
        return self._encoder(value)

    def _decode(self, data: bytes) -> V:
        return self._decoder(data)


class FernetCodec(FailSoftCodec[V]):
    """Encrypts the output of another codec with Fernet."""

    name = "fernet"

    def __init__(self, inner: FailSoftCodec[V], fernet_key: str, *, logger: Any | None = None):
        super().__init__(logger=logger)
        self.inner = inner
        self._fernet = fernet_from_key_str(fernet_key)

    def _encode(self, value: V) -> bytes:
        return encrypt_bytes(self._fernet, self.inner._encode(value))

    def _decode(self, data: bytes) -> V:
        return self.inner._decode(decrypt_bytes(self._fernet, data))
