"""
Fluent request builder.

Mutators are defined once on RequestBuilderBase and typed to return the
concrete builder class, so chained calls keep the subclass type.
"""
import logging
import os
from typing import Any, BinaryIO, Iterable, Mapping, Optional, TypeVar, Union

from ..config import BuilderConfig, ProxyServer, Realm, resolve_config
from ..exceptions import MissingPathError, QueryDecodingError
from ..multimap import CaseInsensitiveStringsMap, StringsMap
from ..types import (
    BodyGenerator,
    ConnectionPoolKeyStrategy,
    Cookie,
    EntityWriter,
    FileLike,
    Part,
    SignatureCalculator,
)
from ..uri import Uri, default_request_uri, validate_supported_scheme
from ..utils import parse_charset, parse_content_length, url_decode
from .request import Request

logger = logging.getLogger(__name__)

# Constants
LOG_PREFIX = "[FetchRequest]"

B = TypeVar("B", bound="RequestBuilderBase")

HeadersSource = Union[CaseInsensitiveStringsMap, Mapping[str, Iterable[str]]]
ParamsSource = Union[StringsMap, Mapping[str, Any]]


class RequestBuilderBase:
    """
    Accumulates request state and finalizes it with build().

    A builder is owned by a single caller and used once: build() returns the
    builder's own Request without copying it.
    """

    def __init__(
        self,
        method: Optional[str] = None,
        use_raw_url: Optional[bool] = None,
        prototype: Optional[Request] = None,
        config: Optional[BuilderConfig] = None,
    ):
        self._base_url: Optional[str] = None
        self._signature_calculator: Optional[SignatureCalculator] = None

        if prototype is not None:
            self._request = Request.from_prototype(prototype)
            self.use_raw_url = prototype.use_raw_url
            return

        resolved = resolve_config(config)
        self.use_raw_url = resolved.use_raw_url if use_raw_url is None else use_raw_url
        self._request = Request(
            method=method or resolved.method,
            use_raw_url=self.use_raw_url,
            request_timeout_in_ms=resolved.request_timeout_in_ms,
            follow_redirects=resolved.follow_redirects,
        )

    # URI

    def set_url(self: B, url: str) -> B:
        uri = Uri.create(url)
        self._set_uri(uri)
        self._base_url = url
        return self

    def set_uri(self: B, uri: Uri) -> B:
        self._set_uri(uri)
        self._base_url = None
        return self

    def _set_uri(self, uri: Uri) -> None:
        if uri.path is None:
            raise MissingPathError("uri.path")
        validate_supported_scheme(uri)
        self._request.original_uri = uri
        self._add_query_params(uri)
        self._request.invalidate_uris()

    def _add_query_params(self, uri: Uri) -> None:
        if not uri.query:
            return
        segments = uri.query.split("&")
        # a trailing '&' does not produce an empty parameter
        while segments and not segments[-1]:
            segments.pop()

        for segment in segments:
            pos = segment.find("=")
            if pos <= 0:
                self.add_query_param(segment, None)
            elif self.use_raw_url:
                self.add_query_param(segment[:pos], segment[pos + 1:])
            else:
                try:
                    name = url_decode(segment[:pos])
                    value = url_decode(segment[pos + 1:])
                except ValueError as e:
                    raise QueryDecodingError(segment, e) from e
                self.add_query_param(name, value)

    def set_inet_address(self: B, address: Any) -> B:
        self._request.address = address
        return self

    def set_local_inet_address(self: B, address: Any) -> B:
        self._request.local_address = address
        return self

    def set_virtual_host(self: B, virtual_host: Optional[str]) -> B:
        self._request.virtual_host = virtual_host
        return self

    # Headers

    def set_header(self: B, name: str, value: Optional[str]) -> B:
        self._request.headers.replace(name, value)
        return self

    def add_header(self: B, name: str, value: Optional[str]) -> B:
        if value is None:
            logger.warning(f"{LOG_PREFIX} Value for header '{name}' was None, set to \"\"")
            value = ""
        self._request.headers.add(name, value)
        return self

    def set_headers(self: B, headers: Optional[HeadersSource]) -> B:
        self._request.headers = CaseInsensitiveStringsMap(headers)
        return self

    def set_content_length(self: B, length: int) -> B:
        self._request.content_length = length
        return self

    # Cookies

    def set_cookies(self: B, cookies: Iterable[Cookie]) -> B:
        self._request.cookies = list(cookies)
        return self

    def add_cookie(self: B, cookie: Cookie) -> B:
        self._request.cookies.append(cookie)
        return self

    def add_or_replace_cookie(self: B, cookie: Cookie) -> B:
        """Replace the first cookie with the same name, or append."""
        cookies = self._request.cookies
        for index, existing in enumerate(cookies):
            if existing.name == cookie.name:
                cookies[index] = cookie
                break
        else:
            cookies.append(cookie)
        return self

    def reset_cookies(self) -> None:
        self._request.cookies.clear()

    # Query and form parameters

    def add_query_param(self: B, name: str, value: Optional[str]) -> B:
        if self._request.query_params is None:
            self._request.query_params = StringsMap()
        self._request.query_params.add(name, value)
        self._request.invalidate_uris()
        return self

    def set_query_params(self: B, params: Optional[ParamsSource]) -> B:
        self._request.query_params = None if params is None else StringsMap(params)
        self._request.invalidate_uris()
        return self

    def reset_query_params(self) -> None:
        self._request.query_params = None
        self._request.invalidate_uris()

    def add_form_param(self: B, name: str, value: Optional[str]) -> B:
        self.reset_non_multipart_data()
        self.reset_multipart_data()
        if self._request.form_params is None:
            self._request.form_params = StringsMap()
        self._request.form_params.add(name, value)
        return self

    def set_form_params(self: B, params: Optional[ParamsSource]) -> B:
        self.reset_non_multipart_data()
        self.reset_multipart_data()
        self._request.form_params = StringsMap(params)
        return self

    def reset_form_params(self) -> None:
        self._request.form_params = None

    # Body

    def reset_non_multipart_data(self) -> None:
        self._request.byte_data = None
        self._request.string_data = None
        self._request.stream_data = None
        self._request.entity_writer = None
        self._request.content_length = -1

    def reset_multipart_data(self) -> None:
        self._request.parts = None

    def _reset_body(self) -> None:
        self.reset_form_params()
        self.reset_non_multipart_data()
        self.reset_multipart_data()

    def set_body_bytes(self: B, data: bytes) -> B:
        self._reset_body()
        self._request.byte_data = bytes(data)
        return self

    def set_body_string(self: B, data: str) -> B:
        self._reset_body()
        self._request.string_data = data
        return self

    def set_body_stream(self: B, stream: BinaryIO) -> B:
        self._reset_body()
        self._request.stream_data = stream
        return self

    def set_body_entity_writer(self: B, writer: EntityWriter, length: int = -1) -> B:
        """Set an entity writer; length -1 means unknown (chunked)."""
        self._reset_body()
        self._request.entity_writer = writer
        self._request.content_length = length
        return self

    def set_body_file(self: B, file: FileLike) -> B:
        # Leaves any other body form in place.
        self._request.file = file
        return self

    def set_body_generator(self: B, generator: BodyGenerator) -> B:
        # Leaves any other body form in place.
        self._request.body_generator = generator
        return self

    def set_body(self: B, body: Any, length: int = -1) -> B:
        """Set the body, choosing the body form from the value's type."""
        if isinstance(body, (bytes, bytearray, memoryview)):
            return self.set_body_bytes(bytes(body))
        if isinstance(body, str):
            return self.set_body_string(body)
        if isinstance(body, os.PathLike):
            return self.set_body_file(body)
        if isinstance(body, EntityWriter):
            return self.set_body_entity_writer(body, length)
        if isinstance(body, BodyGenerator):
            return self.set_body_generator(body)
        if hasattr(body, "read"):
            return self.set_body_stream(body)
        raise TypeError(f"Unsupported body type: {type(body).__name__}")

    def add_body_part(self: B, part: Part) -> B:
        self.reset_form_params()
        self.reset_non_multipart_data()
        if self._request.parts is None:
            self._request.parts = []
        self._request.parts.append(part)
        return self

    # Pass-through settings

    def set_proxy_server(self: B, proxy_server: Optional[ProxyServer]) -> B:
        self._request.proxy_server = proxy_server
        return self

    def set_realm(self: B, realm: Optional[Realm]) -> B:
        self._request.realm = realm
        return self

    def set_follow_redirects(self: B, follow_redirects: bool) -> B:
        self._request.follow_redirects = follow_redirects
        return self

    def set_request_timeout_in_ms(self: B, request_timeout_in_ms: int) -> B:
        self._request.request_timeout_in_ms = request_timeout_in_ms
        return self

    def set_range_offset(self: B, range_offset: int) -> B:
        self._request.range_offset = range_offset
        return self

    def set_method(self: B, method: str) -> B:
        self._request.method = method
        return self

    def set_body_encoding(self: B, charset: Optional[str]) -> B:
        self._request.charset = charset
        return self

    def set_connection_pool_key_strategy(self: B, strategy: ConnectionPoolKeyStrategy) -> B:
        self._request.connection_pool_key_strategy = strategy
        return self

    def set_signature_calculator(self: B, signature_calculator: Optional[SignatureCalculator]) -> B:
        self._signature_calculator = signature_calculator
        return self

    # Finalize

    def _execute_signature_calculator(self) -> None:
        if self._signature_calculator is None:
            return
        url = self._base_url
        if url is None:
            url = str(self._request.original_uri or default_request_uri())
        # signing URL never carries the query
        url = url.split("?", 1)[0]
        logger.debug(f"{LOG_PREFIX} Calculating signature for {url}")
        self._signature_calculator.calculate_and_add_signature(url, self._request, self)

    def _compute_request_charset(self) -> None:
        if self._request.charset is not None:
            return
        charset = parse_charset(self._request.headers.get_first_value("Content-Type"))
        if charset is not None:
            logger.debug(f"{LOG_PREFIX} Body encoding taken from Content-Type: {charset}")
            self._request.charset = charset

    def _compute_request_length(self) -> None:
        if self._request.content_length >= 0 or self._request.stream_data is not None:
            return
        length = parse_content_length(self._request.headers.get_first_value("Content-Length"))
        if length is not None:
            logger.debug(f"{LOG_PREFIX} Content length taken from Content-Length: {length}")
            self._request.content_length = length

    def build(self) -> Request:
        """Run signature, charset and length inference, then return the Request."""
        self._execute_signature_calculator()
        self._compute_request_charset()
        self._compute_request_length()
        logger.debug(f"{LOG_PREFIX} Built request: {self._request.method} {self._request.original_uri}")
        return self._request


class RequestBuilder(RequestBuilderBase):
    """Builder for Request."""

    @classmethod
    def from_prototype(cls, prototype: Request) -> "RequestBuilder":
        """Start from a copy of an existing request."""
        return cls(prototype=prototype)
