from __future__ import annotations

import os

from pydantic import BaseModel, Field

from .errors import ConfigurationError
from .wire import WireFormat


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class CredentialStoreConfig(BaseModel):
    # Backing storage
    credentials_dir: str | None = Field(default_factory=lambda: os.getenv("CREDENTIAL_STORE_DIR"))
    share_default_backing: bool = Field(default_factory=lambda: _env_bool("CREDENTIAL_STORE_SHARED"))

    # Serialization
    wire_format: WireFormat = Field(
        default_factory=lambda: WireFormat(os.getenv("CREDENTIAL_STORE_FORMAT", WireFormat.LEGACY.value))
    )

    # Encryption
    fernet_key: str | None = Field(default_factory=lambda: os.getenv("CREDENTIAL_STORE_FERNET_KEY"))
    encrypt_at_rest: bool = Field(default_factory=lambda: _env_bool("CREDENTIAL_STORE_ENCRYPT"))

    # Observability
    enable_metrics: bool = Field(default_factory=lambda: _env_bool("ENABLE_METRICS"))
    metrics_bind: str = Field(default_factory=lambda: os.getenv("METRICS_BIND", "127.0.0.1"))
    metrics_port: int = Field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9109")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))

    def require_fernet_key(self) -> str:
        if not self.fernet_key:
            raise ConfigurationError("CREDENTIAL_STORE_FERNET_KEY is required for encrypted credential storage.")
        return self.fernet_key

    def encryption_key(self) -> str | None:
        """Key to encrypt entries with, or None when entries are stored in clear."""
        if self.encrypt_at_rest:
            return self.require_fernet_key()
        return self.fernet_key or None
