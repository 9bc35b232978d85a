from .backing import ConcurrentDictStore, FileBlobStore, FileByteSource, get_shared_backing, reset_shared_backing
from .codec import ByteCodec, ByteSource, DecodeResult, FailSoftCodec, FernetCodec, FunctionCodec
from .config import CredentialStoreConfig
from .credential_codec import CredentialCodec
from .domain import Credentials, LoginCredentials
from .errors import ConfigurationError, CredentialStoreError, DecodeError, InvalidArgumentError
from .factory import CredentialStore, create_credential_store
from .transforming_store import TransformingStore
from .wire import WireFormat

__all__ = [
    "ByteCodec",
    "ByteSource",
    "ConcurrentDictStore",
    "ConfigurationError",
    "CredentialCodec",
    "CredentialStore",
    "CredentialStoreConfig",
    "CredentialStoreError",
    "Credentials",
    "DecodeError",
    "DecodeResult",
    "FailSoftCodec",
    "FernetCodec",
    "FileBlobStore",
    "FileByteSource",
    "FunctionCodec",
    "InvalidArgumentError",
    "LoginCredentials",
    "TransformingStore",
    "WireFormat",
    "create_credential_store",
    "get_shared_backing",
    "reset_shared_backing",
]
