"""
Fetch Request - fluent HTTP request builder
"""

__version__ = "0.1.0"

from .config import AuthConfig, BuilderConfig, ProxyServer, Realm, resolve_config
from .exceptions import (
    FetchRequestError,
    InvalidUriError,
    MissingPathError,
    QueryDecodingError,
    UnsupportedSchemeError,
)
from .multimap import CaseInsensitiveStringsMap, StringsMap
from .uri import Uri, default_request_uri, validate_supported_scheme
from .types import (
    BodyGenerator,
    ByteArrayPart,
    ConnectionPoolKeyStrategy,
    Cookie,
    DefaultConnectionPoolStrategy,
    EntityWriter,
    FilePart,
    SignatureCalculator,
    StringPart,
)
from .core import Request, RequestBuilder, RequestBuilderBase
from .auth import AuthHeaderSignatureCalculator, HmacSignatureCalculator, create_auth_handler
from .client import send, to_httpx_request

__all__ = [
    "AuthConfig", "BuilderConfig", "ProxyServer", "Realm", "resolve_config",
    "FetchRequestError", "InvalidUriError", "MissingPathError", "QueryDecodingError", "UnsupportedSchemeError",
    "CaseInsensitiveStringsMap", "StringsMap",
    "Uri", "default_request_uri", "validate_supported_scheme",
    "BodyGenerator", "ByteArrayPart", "ConnectionPoolKeyStrategy", "Cookie", "DefaultConnectionPoolStrategy",
    "EntityWriter", "FilePart", "SignatureCalculator", "StringPart",
    "Request", "RequestBuilder", "RequestBuilderBase",
    "AuthHeaderSignatureCalculator", "HmacSignatureCalculator", "create_auth_handler",
    "send", "to_httpx_request",
]
