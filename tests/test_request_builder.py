"""
Tests for RequestBuilder.
"""
import io
from pathlib import Path

import pytest

from fetch_request import RequestBuilder
from fetch_request.core.builder import RequestBuilderBase
from fetch_request.exceptions import MissingPathError, QueryDecodingError, UnsupportedSchemeError
from fetch_request.multimap import StringsMap
from fetch_request.types import ByteArrayPart, Cookie, StringPart
from fetch_request.uri import Uri


class ChunkWriter:
    def write_entity(self, out):
        out.write(b"chunk")


class ChunkGenerator:
    def create_body(self):
        return iter([b"a", b"b"])


def test_request_builder():
    request = (
        RequestBuilder("POST")
        .set_url("https://example.com/api")
        .add_header("Authorization", "Bearer token")
        .add_query_param("q", "search")
        .set_body_string('{"foo": "bar"}')
        .set_request_timeout_in_ms(10000)
        .build()
    )

    assert request.url == "https://example.com/api?q=search"
    assert request.method == "POST"
    assert request.headers.get_first_value("authorization") == "Bearer token"
    assert request.query_params["q"] == ["search"]
    assert request.string_data == '{"foo": "bar"}'
    assert request.request_timeout_in_ms == 10000


def test_chained_calls_keep_subclass_type():
    class TracingRequestBuilder(RequestBuilderBase):
        pass

    builder = TracingRequestBuilder().set_url("http://h/").set_header("a", "b")
    assert isinstance(builder, TracingRequestBuilder)


def test_url_strips_trailing_slash_before_query():
    request = RequestBuilder().set_url("http://host/a/b/?x=1&y=2").build()

    assert request.url == "http://host/a/b?x=1&y=2"
    assert request.query_params["x"] == ["1"]
    assert request.query_params["y"] == ["2"]


def test_url_composition_is_stable():
    request = RequestBuilder().set_url("http://host/path/").build()

    assert request.url == "http://host/path"
    assert request.url == request.url
    assert request.uri is request.uri
    assert request.uri.path == "/path/"


def test_empty_path_defaults_to_slash():
    request = RequestBuilder().set_url("http://host").build()
    assert request.uri.path == "/"
    assert request.url == "http://host"


def test_query_round_trip_encoded():
    request = RequestBuilder().set_url("http://host/s?k1=v1&k2=v2").build()
    assert request.url == "http://host/s?k1=v1&k2=v2"


def test_query_decoded_then_reencoded():
    request = RequestBuilder().set_url("http://host/s?name=John+Smith&city=S%C3%A3o%20Paulo").build()

    assert request.query_params["name"] == ["John Smith"]
    assert request.query_params["city"] == ["São Paulo"]
    assert request.url == "http://host/s?name=John%20Smith&city=S%C3%A3o%20Paulo"


def test_segment_without_value_has_none():
    request = RequestBuilder().set_url("http://host/?flag&=odd&k=v&").build()

    assert request.query_params["flag"] == [None]
    assert request.query_params["=odd"] == [None]
    assert request.query_params["k"] == ["v"]
    assert len(request.query_params) == 3
    assert request.url == "http://host?flag&%3Dodd&k=v"
    assert request.raw_url == "http://host?flag&=odd&k=v"


def test_values_of_one_name_are_grouped():
    request = RequestBuilder().set_url("http://host/?a=1&b=2&a=3").build()
    assert request.url == "http://host?a=1&a=3&b=2"


def test_raw_mode_keeps_query_verbatim():
    request = RequestBuilder(use_raw_url=True).set_url("http://host/p?q=a%2Fb&r=x+y").build()

    assert request.use_raw_url is True
    assert request.query_params["q"] == ["a%2Fb"]
    assert request.query_params["r"] == ["x+y"]
    assert request.raw_url == "http://host/p?q=a%2Fb&r=x+y"
    assert request.url == "http://host/p?q=a%252Fb&r=x%2By"


def test_malformed_escape_raises_decoding_error():
    with pytest.raises(QueryDecodingError) as exc:
        RequestBuilder().set_url("http://host/?bad=%zz")
    assert exc.value.segment == "bad=%zz"
    assert isinstance(exc.value, RuntimeError)
    assert isinstance(exc.value.__cause__, ValueError)


def test_invalid_utf8_raises_decoding_error():
    with pytest.raises(QueryDecodingError) as exc:
        RequestBuilder().set_url("http://host/?a=%C3")
    assert exc.value.segment == "a=%C3"
    assert isinstance(exc.value.__cause__, UnicodeDecodeError)


def test_truncated_escape_raises_decoding_error():
    with pytest.raises(QueryDecodingError) as exc:
        RequestBuilder().set_url("http://host/?a=%4")
    assert exc.value.segment == "a=%4"
    assert isinstance(exc.value.__cause__, ValueError)


def test_malformed_escape_allowed_in_raw_mode():
    request = RequestBuilder(use_raw_url=True).set_url("http://host/?bad=%zz").build()
    assert request.query_params["bad"] == ["%zz"]


def test_set_url_merges_query_params():
    request = (
        RequestBuilder()
        .add_query_param("a", "1")
        .set_url("http://host/?b=2")
        .build()
    )
    assert request.url == "http://host?a=1&b=2"


def test_query_param_change_invalidates_cached_url():
    builder = RequestBuilder().set_url("http://host/x")
    request = builder.build()
    assert request.url == "http://host/x"

    builder.add_query_param("page", "2")
    assert request.url == "http://host/x?page=2"

    builder.set_query_params(None)
    assert request.url == "http://host/x"

    builder.set_query_params({"q": ["a", "b"]})
    assert request.url == "http://host/x?q=a&q=b"

    builder.reset_query_params()
    assert request.query_params is None
    assert request.url == "http://host/x"


def test_set_url_invalidates_cached_url():
    builder = RequestBuilder().set_url("http://one/")
    request = builder.build()
    assert request.url == "http://one"

    builder.set_url("http://two/")
    assert request.url == "http://two"


def test_unsupported_scheme_rejected():
    with pytest.raises(UnsupportedSchemeError):
        RequestBuilder().set_url("ftp://host/file")


def test_set_uri_requires_path():
    with pytest.raises(MissingPathError):
        RequestBuilder().set_uri(Uri(scheme="http", host="host", path=None))


def test_unset_url_defaults_to_localhost():
    request = RequestBuilder().build()
    assert request.url == "http://localhost"
    assert str(request.original_uri) == "http://localhost"


def test_method_defaults_to_get():
    assert RequestBuilder().build().method == "GET"
    assert RequestBuilder().set_method("DELETE").build().method == "DELETE"


def test_headers():
    request = (
        RequestBuilder()
        .add_header("Accept", "text/html")
        .add_header("accept", "application/json")
        .add_header("X-Empty", None)
        .set_header("X-Trace", "1")
        .set_header("x-trace", "2")
        .build()
    )

    assert request.headers["ACCEPT"] == ["text/html", "application/json"]
    assert request.headers["x-empty"] == [""]
    assert request.headers["X-Trace"] == ["2"]


def test_set_headers_replaces_everything():
    builder = RequestBuilder().add_header("Old", "1")
    request = builder.set_headers({"New": ["a", "b"]}).build()
    assert "Old" not in request.headers
    assert request.headers["new"] == ["a", "b"]

    builder.set_headers(None)
    assert len(builder.build().headers) == 0


def test_add_or_replace_cookie():
    builder = RequestBuilder()
    builder.add_cookie(Cookie("session", "1")).add_cookie(Cookie("theme", "dark"))

    builder.add_or_replace_cookie(Cookie("session", "2"))
    cookies = builder.build().cookies
    assert [c.value for c in cookies] == ["2", "dark"]

    builder.add_or_replace_cookie(Cookie("lang", "en"))
    assert [c.name for c in builder.build().cookies] == ["session", "theme", "lang"]


def test_add_cookie_allows_duplicate_names():
    builder = RequestBuilder().add_cookie(Cookie("a", "1")).add_cookie(Cookie("a", "2"))
    assert len(builder.build().cookies) == 2

    builder.reset_cookies()
    assert builder.build().cookies == []


def test_set_cookies_copies_the_sequence():
    cookies = [Cookie("a", "1")]
    request = RequestBuilder().set_cookies(cookies).build()
    cookies.append(Cookie("b", "2"))
    assert len(request.cookies) == 1


def test_byte_body_clears_form_params():
    request = (
        RequestBuilder("POST")
        .add_form_param("a", "1")
        .set_body_bytes(b"payload")
        .build()
    )
    assert request.form_params is None
    assert request.byte_data == b"payload"


def test_body_setters_are_exclusive():
    builder = RequestBuilder("POST").set_body_bytes(b"x")
    builder.set_body_string("y")
    request = builder.build()
    assert request.byte_data is None
    assert request.string_data == "y"

    stream = io.BytesIO(b"z")
    builder.set_body_stream(stream)
    assert request.string_data is None
    assert request.stream_data is stream

    writer = ChunkWriter()
    builder.set_body_entity_writer(writer, 5)
    assert request.stream_data is None
    assert request.entity_writer is writer
    assert request.content_length == 5


def test_form_params_clear_body_and_parts():
    builder = RequestBuilder("POST").set_body_string("text").add_body_part(StringPart("p", "v"))
    request = builder.set_form_params({"a": "1"}).build()

    assert request.string_data is None
    assert request.parts is None
    assert request.form_params["a"] == ["1"]


def test_body_part_clears_form_params_and_body():
    request = (
        RequestBuilder("POST")
        .add_form_param("a", "1")
        .set_body_bytes(b"ignored")
        .add_body_part(StringPart("field", "value"))
        .add_body_part(ByteArrayPart("upload", b"\x00\x01", file_name="f.bin"))
        .build()
    )

    assert request.form_params is None
    assert request.byte_data is None
    assert [p.name for p in request.parts] == ["field", "upload"]


def test_reset_non_multipart_data_resets_length():
    builder = RequestBuilder().set_body_entity_writer(ChunkWriter(), 10)
    builder.reset_non_multipart_data()
    request = builder.build()
    assert request.entity_writer is None
    assert request.content_length == -1


def test_file_body_does_not_reset_other_forms(tmp_path):
    path = tmp_path / "body.txt"
    path.write_text("file body")

    request = RequestBuilder("PUT").set_body_string("text").set_body_file(path).build()
    assert request.string_data == "text"
    assert request.file == path


def test_set_body_dispatches_on_type(tmp_path):
    builder = RequestBuilder("POST")
    request = builder.build()

    builder.set_body(b"bytes")
    assert request.byte_data == b"bytes"

    builder.set_body(bytearray(b"array"))
    assert request.byte_data == b"array"

    builder.set_body("text")
    assert request.string_data == "text"
    assert request.byte_data is None

    builder.set_body(Path(tmp_path / "f"))
    assert request.file == Path(tmp_path / "f")

    writer = ChunkWriter()
    builder.set_body(writer, 5)
    assert request.entity_writer is writer
    assert request.content_length == 5

    generator = ChunkGenerator()
    builder.set_body(generator)
    assert request.body_generator is generator

    stream = io.BytesIO(b"s")
    builder.set_body(stream)
    assert request.stream_data is stream

    with pytest.raises(TypeError):
        builder.set_body(42)


def test_pass_through_settings():
    request = (
        RequestBuilder()
        .set_virtual_host("virtual.example.com")
        .set_inet_address("10.0.0.1")
        .set_local_inet_address("10.0.0.2")
        .set_range_offset(100)
        .set_body_encoding("ISO-8859-1")
        .build()
    )
    assert request.virtual_host == "virtual.example.com"
    assert request.address == "10.0.0.1"
    assert request.local_address == "10.0.0.2"
    assert request.range_offset == 100
    assert request.body_encoding == "ISO-8859-1"


def test_follow_redirects_is_tri_state():
    request = RequestBuilder().build()
    assert request.is_redirect_override_set is False
    assert request.is_redirect_enabled is False

    request = RequestBuilder().set_follow_redirects(False).build()
    assert request.is_redirect_override_set is True
    assert request.is_redirect_enabled is False

    request = RequestBuilder().set_follow_redirects(True).build()
    assert request.is_redirect_enabled is True


def test_connection_pool_key():
    class PerHostStrategy:
        def get_key(self, uri):
            return uri.host

    request = RequestBuilder().set_url("https://api.example.com/v1").build()
    assert request.connection_pool_key == "https://api.example.com:443"

    request = (
        RequestBuilder()
        .set_url("https://api.example.com/v1")
        .set_connection_pool_key_strategy(PerHostStrategy())
        .build()
    )
    assert request.connection_pool_key == "api.example.com"


def test_str_lists_headers_and_form_params():
    request = (
        RequestBuilder("POST")
        .set_url("http://host/path")
        .add_header("Accept", "a")
        .add_header("Accept", "b")
        .add_form_param("k", "v")
        .build()
    )
    assert str(request) == "http://host/path\tPOST\theaders:\tAccept:a, b\tformParams:\tk:v"


def test_query_params_helper_map():
    params = StringsMap().add("x", "1")
    request = RequestBuilder().set_url("http://host/").set_query_params(params).build()
    params.add("x", "2")
    assert request.query_params["x"] == ["1"]
