"""
Core type definitions for fetch-request.
"""
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, BinaryIO, Iterable, Optional, Protocol, TypedDict, Union, runtime_checkable

if TYPE_CHECKING:
    from .core.builder import RequestBuilderBase
    from .core.request import Request
    from .uri import Uri


FileLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class Cookie:
    """Request cookie. Identity for add_or_replace_cookie is the name."""
    name: str
    value: str
    raw_value: Optional[str] = None
    domain: Optional[str] = None
    path: Optional[str] = None
    expires: Optional[int] = None
    max_age: int = -1
    secure: bool = False
    http_only: bool = False

    def encoded(self) -> str:
        """name=value as sent in a Cookie header (raw value when known)."""
        return f"{self.name}={self.raw_value if self.raw_value is not None else self.value}"


# Multipart segments

@dataclass
class StringPart:
    name: str
    value: str
    content_type: Optional[str] = None
    charset: Optional[str] = None


@dataclass
class ByteArrayPart:
    name: str
    data: bytes
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    charset: Optional[str] = None


@dataclass
class FilePart:
    name: str
    file: FileLike
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    charset: Optional[str] = None


Part = Union[StringPart, ByteArrayPart, FilePart]


# Capabilities passed through to the execution engine

@runtime_checkable
class EntityWriter(Protocol):
    """Writes a request entity to a binary output stream."""
    def write_entity(self, out: BinaryIO) -> None: ...


@runtime_checkable
class BodyGenerator(Protocol):
    """Produces the request body lazily, chunk by chunk."""
    def create_body(self) -> Iterable[bytes]: ...


@runtime_checkable
class ConnectionPoolKeyStrategy(Protocol):
    """Computes the key a connection pool files a request's connection under."""
    def get_key(self, uri: "Uri") -> str: ...


class DefaultConnectionPoolStrategy:
    """Pools connections by scheme://host:port."""

    def get_key(self, uri: "Uri") -> str:
        return uri.base_url

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DefaultConnectionPoolStrategy)

    def __hash__(self) -> int:
        return hash(DefaultConnectionPoolStrategy)


@runtime_checkable
class SignatureCalculator(Protocol):
    """
    Hook invoked once when a request is built. May add headers or query
    parameters to the builder that reflect a request signature.
    """
    def calculate_and_add_signature(
        self, url: str, request: "Request", builder: "RequestBuilderBase"
    ) -> None: ...


class SigningContext(TypedDict):
    """Context passed to auth handlers while signing."""
    method: str
    url: str
    headers: dict
    body: Any
