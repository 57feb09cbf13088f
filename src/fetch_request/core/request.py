"""
Finalized request value handed to the execution engine.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, List, Optional

from ..config import ProxyServer, Realm
from ..multimap import CaseInsensitiveStringsMap, StringsMap
from ..types import (
    BodyGenerator,
    ConnectionPoolKeyStrategy,
    Cookie,
    DefaultConnectionPoolStrategy,
    EntityWriter,
    FileLike,
    Part,
)
from ..uri import DEFAULT_REQUEST_URL, Uri, default_request_uri, validate_supported_scheme
from ..utils import url_encode

logger = logging.getLogger(__name__)

# Constants
LOG_PREFIX = "[FetchRequest]"


def _remove_trailing_slash(uri: Uri) -> str:
    """Drop one trailing '/' from the part of the URI before the query."""
    base, sep, query = str(uri).partition("?")
    if base.endswith("/"):
        base = base[:-1]
    return base + sep + query


@dataclass(eq=False)
class Request:
    """
    Everything needed to describe one HTTP request.

    Produced by RequestBuilder.build(). Nothing stops callers from mutating it
    afterwards, but the builder and the returned value share containers, so
    treat it as read-only once handed off.
    """
    method: Optional[str] = None
    original_uri: Optional[Uri] = None
    address: Any = None
    local_address: Any = None
    headers: CaseInsensitiveStringsMap = field(default_factory=CaseInsensitiveStringsMap)
    cookies: List[Cookie] = field(default_factory=list)

    # Body forms, at most one populated at a time (file excepted)
    byte_data: Optional[bytes] = None
    string_data: Optional[str] = None
    stream_data: Optional[BinaryIO] = None
    entity_writer: Optional[EntityWriter] = None
    body_generator: Optional[BodyGenerator] = None
    form_params: Optional[StringsMap] = None
    parts: Optional[List[Part]] = None
    file: Optional[FileLike] = None

    virtual_host: Optional[str] = None
    content_length: int = -1
    query_params: Optional[StringsMap] = None
    proxy_server: Optional[ProxyServer] = None
    realm: Optional[Realm] = None
    follow_redirects: Optional[bool] = None
    request_timeout_in_ms: int = 0
    range_offset: int = 0
    charset: Optional[str] = None
    use_raw_url: bool = False
    connection_pool_key_strategy: ConnectionPoolKeyStrategy = field(
        default_factory=DefaultConnectionPoolStrategy
    )

    # Memoized derived URIs, cleared by invalidate_uris()
    _uri: Optional[Uri] = field(default=None, init=False, repr=False)
    _raw_uri: Optional[Uri] = field(default=None, init=False, repr=False)

    @classmethod
    def from_prototype(cls, prototype: "Request") -> "Request":
        """
        Copy a request. Maps and lists are copied; payloads, proxy, realm and
        other references are shared with the prototype.
        """
        return cls(
            method=prototype.method,
            original_uri=prototype.original_uri,
            address=prototype.address,
            local_address=prototype.local_address,
            headers=CaseInsensitiveStringsMap(prototype.headers),
            cookies=list(prototype.cookies),
            byte_data=prototype.byte_data,
            string_data=prototype.string_data,
            stream_data=prototype.stream_data,
            entity_writer=prototype.entity_writer,
            body_generator=prototype.body_generator,
            form_params=None if prototype.form_params is None else StringsMap(prototype.form_params),
            query_params=None if prototype.query_params is None else StringsMap(prototype.query_params),
            parts=None if prototype.parts is None else list(prototype.parts),
            virtual_host=prototype.virtual_host,
            content_length=prototype.content_length,
            proxy_server=prototype.proxy_server,
            realm=prototype.realm,
            file=prototype.file,
            follow_redirects=prototype.follow_redirects if prototype.is_redirect_override_set else None,
            request_timeout_in_ms=prototype.request_timeout_in_ms,
            range_offset=prototype.range_offset,
            charset=prototype.charset,
            use_raw_url=prototype.use_raw_url,
            connection_pool_key_strategy=prototype.connection_pool_key_strategy,
        )

    # Derived URIs

    @property
    def uri(self) -> Uri:
        """URI with default path and a percent-encoded query."""
        if self._uri is None:
            self._uri = self._to_uri(encode=True)
        return self._uri

    @property
    def raw_uri(self) -> Uri:
        """URI with default path and the query passed through unencoded."""
        if self._raw_uri is None:
            self._raw_uri = self._to_uri(encode=False)
        return self._raw_uri

    @property
    def url(self) -> str:
        return _remove_trailing_slash(self.uri)

    @property
    def raw_url(self) -> str:
        return _remove_trailing_slash(self.raw_uri)

    def invalidate_uris(self) -> None:
        self._uri = None
        self._raw_uri = None

    def _to_uri(self, encode: bool) -> Uri:
        if self.original_uri is None:
            logger.debug(f"{LOG_PREFIX} set_url hasn't been invoked. Using {DEFAULT_REQUEST_URL}")
            self.original_uri = default_request_uri()

        validate_supported_scheme(self.original_uri)

        path = self.original_uri.path or "/"
        query = None
        if self.query_params:
            pairs = []
            for name, values in self.query_params.items():
                for value in values:
                    pair = url_encode(name) if encode else name
                    if value is not None:
                        pair += "=" + (url_encode(value) if encode else value)
                    pairs.append(pair)
            query = "&".join(pairs)

        return self.original_uri.with_path_and_query(path, query)

    # Read helpers

    @property
    def body_encoding(self) -> Optional[str]:
        return self.charset

    @property
    def is_redirect_enabled(self) -> bool:
        return bool(self.follow_redirects)

    @property
    def is_redirect_override_set(self) -> bool:
        return self.follow_redirects is not None

    @property
    def connection_pool_key(self) -> str:
        return self.connection_pool_key_strategy.get_key(self.uri)

    def __str__(self) -> str:
        sb = [str(self.uri), "\t", str(self.method), "\theaders:"]
        for name in self.headers:
            sb.append(f"\t{name}:{self.headers.get_joined_value(name, ', ')}")
        if self.form_params:
            sb.append("\tformParams:")
            for name in self.form_params:
                sb.append(f"\t{name}:{self.form_params.get_joined_value(name, ', ')}")
        return "".join(sb)
