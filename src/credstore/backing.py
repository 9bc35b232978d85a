from __future__ import annotations

import os
import stat
import tempfile
import threading
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar
from urllib.parse import quote, unquote

import structlog

from .codec import ByteSource, RawValue

log = structlog.get_logger()

R = TypeVar("R")

BLOB_SUFFIX = ".cred"


class ConcurrentDictStore(MutableMapping[str, R], Generic[R]):
    """In-memory mapping that is safe to share between threads."""

    def __init__(self, initial: dict[str, R] | None = None):
        self._lock = threading.RLock()
        self._data: dict[str, R] = dict(initial or {})

    def __getitem__(self, key: str) -> R:
        with self._lock:
            return self._data[key]

    def __setitem__(self, key: str, value: R) -> None:
        with self._lock:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __iter__(self) -> Iterator[str]:
        # Snapshot, so writers never invalidate a running traversal.
        with self._lock:
            return iter(list(self._data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str, default: R | None = None) -> R | None:  # type: ignore[override]
        with self._lock:
            return self._data.get(key, default)

    def pop(self, key: str, *args: R) -> R:  # type: ignore[override]
        with self._lock:
            return self._data.pop(key, *args)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


@dataclass(frozen=True)
class FileByteSource:
    path: Path

    def read(self) -> bytes:
        return self.path.read_bytes()


class FileBlobStore(MutableMapping[str, RawValue]):
    """
    One file per key under `directory`.

    Keys are percent-encoded into file names. Reads hand out a FileByteSource,
    so the file is only opened when the value is decoded. Writes go through a
    temporary file and an atomic rename, with owner-only permissions.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).expanduser()
        self._lock = threading.RLock()
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            os.chmod(self.directory, stat.S_IRWXU)
            log.info("credential_store_dir_created", directory=str(self.directory))

    def _path_for(self, key: str) -> Path:
        if not isinstance(key, str) or not key:
            raise KeyError(key)
        name = quote(key, safe="")
        if name.startswith("."):
            name = "%2E" + name[1:]
        return self.directory / f"{name}{BLOB_SUFFIX}"

    def __getitem__(self, key: str) -> FileByteSource:
        path = self._path_for(key)
        if not path.is_file():
            raise KeyError(key)
        return FileByteSource(path)

    def __setitem__(self, key: str, value: RawValue) -> None:
        data = value.read() if isinstance(value, ByteSource) else bytes(value)
        path = self._path_for(key)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=BLOB_SUFFIX)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        log.debug("credential_blob_written", key=key, path=str(path))

    def __delitem__(self, key: str) -> None:
        path = self._path_for(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                raise KeyError(key) from None
        log.debug("credential_blob_deleted", key=key, path=str(path))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str) or not key:
            return False
        return self._path_for(key).is_file()

    def __iter__(self) -> Iterator[str]:
        return iter(self._list_keys())

    def __len__(self) -> int:
        return len(self._list_keys())

    def _list_keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        keys = []
        for entry in self.directory.iterdir():
            name = entry.name
            if name.startswith(".tmp-") or not name.endswith(BLOB_SUFFIX) or not entry.is_file():
                continue
            keys.append(unquote(name[: -len(BLOB_SUFFIX)]))
        return sorted(keys)


_shared_backing: ConcurrentDictStore[RawValue] | None = None
_shared_lock = threading.Lock()


def get_shared_backing() -> ConcurrentDictStore[RawValue]:
    """
    Process-wide backing mapping.

    Every store built on it sees the same entries. It is only used by callers
    that ask for it explicitly.
    """
    global _shared_backing
    with _shared_lock:
        if _shared_backing is None:
            _shared_backing = ConcurrentDictStore()
            log.debug("credential_shared_backing_created")
        return _shared_backing


def reset_shared_backing() -> None:
    """Drop the process-wide backing mapping (for tests)."""
    global _shared_backing
    with _shared_lock:
        _shared_backing = None
