"""
URI value type and scheme validation.
"""
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlsplit

from .exceptions import InvalidUriError, UnsupportedSchemeError

# Constants
SUPPORTED_SCHEMES = ("http", "https", "ws", "wss")
DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}
DEFAULT_REQUEST_URL = "http://localhost"


@dataclass(frozen=True)
class Uri:
    """
    Structured URI: scheme, user info, host, port, path and raw query.

    Values are stored exactly as given; nothing is decoded. The fragment of a
    parsed URI is dropped since it is never sent on the wire.
    """
    scheme: str
    host: str
    user_info: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = ""
    query: Optional[str] = None

    @classmethod
    def create(cls, text: str) -> "Uri":
        """Parse an absolute URI string."""
        try:
            parts = urlsplit(text)
            port = parts.port
        except ValueError as e:
            raise InvalidUriError(f"Invalid URI '{text}': {e}") from e

        if not parts.scheme:
            raise UnsupportedSchemeError(None, text)
        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            raise UnsupportedSchemeError(parts.scheme, text)

        user_info, _, host_port = parts.netloc.rpartition("@")
        if host_port.startswith("["):
            host = host_port[: host_port.find("]") + 1]
        else:
            host = host_port.partition(":")[0]
        if not host:
            raise InvalidUriError(f"Invalid URI '{text}': missing host")

        return cls(
            scheme=parts.scheme,
            host=host,
            user_info=user_info or None,
            port=port,
            path=parts.path,
            query=parts.query or None,
        )

    def with_path_and_query(self, path: Optional[str], query: Optional[str]) -> "Uri":
        return replace(self, path=path, query=query)

    @property
    def effective_port(self) -> int:
        """Explicit port, or the scheme's default port."""
        if self.port is not None:
            return self.port
        return DEFAULT_PORTS.get(self.scheme.lower(), 80)

    @property
    def base_url(self) -> str:
        """scheme://host:port with the default port filled in."""
        return f"{self.scheme}://{self.host}:{self.effective_port}"

    def __str__(self) -> str:
        sb = [self.scheme, "://"]
        if self.user_info:
            sb.append(f"{self.user_info}@")
        sb.append(self.host)
        if self.port is not None:
            sb.append(f":{self.port}")
        if self.path:
            sb.append(self.path)
        if self.query is not None:
            sb.append(f"?{self.query}")
        return "".join(sb)


def default_request_uri() -> Uri:
    """Placeholder origin used when no URL was set on a builder."""
    return Uri.create(DEFAULT_REQUEST_URL)


def validate_supported_scheme(uri: Uri) -> None:
    """Raise UnsupportedSchemeError unless the scheme is http, https, ws or wss."""
    scheme = uri.scheme.lower() if uri.scheme else uri.scheme
    if scheme not in SUPPORTED_SCHEMES:
        raise UnsupportedSchemeError(uri.scheme, str(uri))
