"""Client-side protocol layer for multipart upload transactions."""

from ossmultipart.client import MultipartClient
from ossmultipart.config import ClientConfig, load_config
from ossmultipart.errors import (
    ClientValidationError,
    OSSClientError,
    ProtocolDecodeError,
    ServiceError,
    TransportError,
)
from ossmultipart.keys import KeyEncoding, decode_key, encode_key
from ossmultipart.logging_config import configure_logging
from ossmultipart.models import (
    CopyConditions,
    ListPartsOptions,
    ListTransactionsOptions,
    Part,
    PartsCursor,
    Transaction,
    TransactionsCursor,
)
from ossmultipart.transport import HTTPTransport, Transport, TransportResponse
from ossmultipart.uploader import MultipartUploader, UploadResult

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "ClientValidationError",
    "CopyConditions",
    "HTTPTransport",
    "KeyEncoding",
    "ListPartsOptions",
    "ListTransactionsOptions",
    "MultipartClient",
    "MultipartUploader",
    "OSSClientError",
    "Part",
    "PartsCursor",
    "ProtocolDecodeError",
    "ServiceError",
    "Transaction",
    "TransactionsCursor",
    "Transport",
    "TransportError",
    "TransportResponse",
    "UploadResult",
    "configure_logging",
    "decode_key",
    "encode_key",
    "load_config",
]
