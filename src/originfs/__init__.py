from .client import OriginFSClient
from .config import OriginFSConfig, load_config
from .exceptions import (
    OriginFSException,
    ConfigError,
    NotFoundError,
    InvalidTypeError,
    RemoteError,
    NotFound,
    InvalidType,
)
from .models import Record, FieldIndex, RECORD_WIDTH, FOLDER_TYPE
from .paths import clean_path, record_to_path, format_path, split_name, join_path
from .transport import OriginTransport

__all__ = [
    "OriginFSClient",
    "OriginFSConfig",
    "load_config",
    "OriginFSException",
    "ConfigError",
    "NotFoundError",
    "InvalidTypeError",
    "RemoteError",
    "NotFound",
    "InvalidType",
    "Record",
    "FieldIndex",
    "RECORD_WIDTH",
    "FOLDER_TYPE",
    "clean_path",
    "record_to_path",
    "format_path",
    "split_name",
    "join_path",
    "OriginTransport",
]
