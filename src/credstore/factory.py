from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, TypeAlias

import structlog

from .backing import ConcurrentDictStore, FileBlobStore, get_shared_backing
from .codec import FailSoftCodec, FernetCodec, RawValue
from .config import CredentialStoreConfig
from .credential_codec import CredentialCodec
from .domain import Credentials
from .logging import configure_logging
from .metrics import maybe_start_metrics
from .transforming_store import TransformingStore

log = structlog.get_logger()

CredentialStore: TypeAlias = TransformingStore[str, RawValue, Credentials]


def resolve_backing(
    cfg: CredentialStoreConfig,
    *,
    backing: MutableMapping[str, RawValue] | None = None,
    use_shared_default: bool | None = None,
) -> MutableMapping[str, RawValue]:
    if backing is not None:
        return backing
    shared = cfg.share_default_backing if use_shared_default is None else use_shared_default
    if shared:
        return get_shared_backing()
    if cfg.credentials_dir:
        return FileBlobStore(cfg.credentials_dir)
    return ConcurrentDictStore()


def build_codec(cfg: CredentialStoreConfig, *, logger: Any | None = None) -> FailSoftCodec[Credentials]:
    codec: FailSoftCodec[Credentials] = CredentialCodec(wire_format=cfg.wire_format, logger=logger)
    key = cfg.encryption_key()
    if key:
        codec = FernetCodec(codec, key, logger=logger)
    return codec


def create_credential_store(
    cfg: CredentialStoreConfig | None = None,
    *,
    backing: MutableMapping[str, RawValue] | None = None,
    use_shared_default: bool | None = None,
    codec: FailSoftCodec[Credentials] | None = None,
    logger: Any | None = None,
    setup_observability: bool = False,
) -> CredentialStore:
    """
    Build a credential store.

    The backing mapping is, in order: `backing` when given; the process-wide
    shared mapping when `use_shared_default` (or CREDENTIAL_STORE_SHARED) is
    set; a FileBlobStore when a credentials directory is configured; otherwise
    a fresh in-memory mapping owned by the returned store.
    """
    cfg = cfg or CredentialStoreConfig()
    if setup_observability:
        configure_logging(
            level=cfg.log_level,
            fmt=cfg.log_format,
            secrets=[s for s in (cfg.fernet_key,) if s],
        )
        maybe_start_metrics(enable=cfg.enable_metrics, bind=cfg.metrics_bind, port=cfg.metrics_port)

    store_backing = resolve_backing(cfg, backing=backing, use_shared_default=use_shared_default)
    store_codec = codec or build_codec(cfg, logger=logger)
    log.info(
        "credential_store_created",
        backing=type(store_backing).__name__,
        codec=getattr(store_codec, "name", type(store_codec).__name__),
        wire_format=cfg.wire_format.value,
    )
    return TransformingStore(store_backing, store_codec)
