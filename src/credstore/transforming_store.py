from __future__ import annotations

from collections.abc import Iterator, KeysView, MutableMapping
from typing import Any, Generic, TypeVar

import structlog

from .codec import ByteCodec, DecodeResult
from .metrics import store_operations_total

K = TypeVar("K")
R = TypeVar("R")
V = TypeVar("V")

log = structlog.get_logger()


class TransformingStore(MutableMapping[K, V], Generic[K, R, V]):
    """
    A mapping of K -> V kept in a backing mapping of K -> R.

    Values are encoded on write and decoded on every read; nothing decoded is
    cached. Presence, size and key iteration come straight from the backing
    mapping, so an entry whose raw value cannot be decoded is still a member of
    the store. Reading such an entry gives None, the same as a missing key;
    use `get_result` to tell the two apart.

    No locking is added here. Each call is as atomic as the single backing
    operation it maps to, and read-modify-write sequences need caller-side
    coordination.
    """

    def __init__(self, backing: MutableMapping[K, R], codec: ByteCodec[R, V]):
        self.backing = backing
        self.codec = codec

    def __getitem__(self, key: K) -> V | None:  # type: ignore[override]
        raw = self.backing[key]
        store_operations_total.labels(operation="get").inc()
        return self.codec.decode(raw)

    def __setitem__(self, key: K, value: V) -> None:
        raw = self.codec.encode(value)
        self.backing[key] = raw  # type: ignore[assignment]
        store_operations_total.labels(operation="put").inc()

    def __delitem__(self, key: K) -> None:
        del self.backing[key]
        store_operations_total.labels(operation="remove").inc()

    def __contains__(self, key: object) -> bool:
        return key in self.backing

    def __iter__(self) -> Iterator[K]:
        return iter(self.backing)

    def __len__(self) -> int:
        return len(self.backing)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backing={type(self.backing).__name__}, size={len(self)})"

    def keys(self) -> KeysView[K]:
        return self.backing.keys()

    def get(self, key: K, default: Any = None) -> V | None:  # type: ignore[override]
        raw = self.backing.get(key)
        store_operations_total.labels(operation="get").inc()
        if raw is None:
            return default
        return self.codec.decode(raw)

    def get_result(self, key: K) -> DecodeResult[V] | None:
        """None when the key is absent; otherwise the decode outcome for its raw value."""
        raw = self.backing.get(key)
        if raw is None:
            return None
        return self.codec.decode_result(raw)

    def put(self, key: K, value: V) -> V | None:
        """Store `value` and return the previous value if there was one and it decoded."""
        raw = self.codec.encode(value)
        # Decode before overwriting: backing values may be lazy views of the slot.
        previous = self._decode_present(key)
        self.backing[key] = raw  # type: ignore[assignment]
        store_operations_total.labels(operation="put").inc()
        return previous

    def remove(self, key: K) -> V | None:
        """Delete `key` and return its previous value if it decoded. Missing keys are ignored."""
        if key not in self.backing:
            return None
        previous = self._decode_present(key)
        try:
            del self.backing[key]
        except KeyError:
            log.debug("credential_store_remove_raced", key=str(key))
            return None
        store_operations_total.labels(operation="remove").inc()
        return previous

    def entries(self) -> Iterator[tuple[K, V | None]]:
        """
        Lazily yield (key, value) for each raw entry.

        Unreadable entries are yielded with a None value so the traversal matches
        `len()` and `keys()`. Keys removed while iterating are skipped.
        """
        for key in self.backing:
            raw = self.backing.get(key)
            if raw is None:
                continue
            yield key, self.codec.decode(raw)

    def _decode_present(self, key: K) -> V | None:
        raw = self.backing.get(key)
        if raw is None:
            return None
        return self.codec.decode(raw)

