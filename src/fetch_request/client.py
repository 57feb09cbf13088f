"""
Hand-off of a built Request to an httpx client.

Only field mapping lives here: connection handling, redirects, proxies and
response handling stay with httpx.
"""
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .core.request import Request
from .types import ByteArrayPart, FilePart, Part, StringPart

logger = logging.getLogger(__name__)

# Constants
LOG_PREFIX = "[FetchRequest]"
DEFAULT_CHARSET = "utf-8"


def _build_headers(request: Request) -> List[Tuple[str, str]]:
    headers = [
        (name, value)
        for name, values in request.headers.items()
        for value in values
        if value is not None
    ]
    if request.cookies and "Cookie" not in request.headers:
        headers.append(("Cookie", "; ".join(cookie.encoded() for cookie in request.cookies)))
    if request.virtual_host and "Host" not in request.headers:
        headers.append(("Host", request.virtual_host))
    if request.range_offset > 0 and "Range" not in request.headers:
        headers.append(("Range", f"bytes={request.range_offset}-"))
    return headers


def _part_field(part: Part) -> Tuple[str, Tuple[Optional[str], bytes, Optional[str]]]:
    if isinstance(part, StringPart):
        content = part.value.encode(part.charset or DEFAULT_CHARSET)
        return part.name, (None, content, part.content_type)
    if isinstance(part, ByteArrayPart):
        return part.name, (part.file_name, part.data, part.content_type)
    if isinstance(part, FilePart):
        path = Path(part.file)
        return part.name, (part.file_name or path.name, path.read_bytes(), part.content_type)
    raise TypeError(f"Unsupported part type: {type(part).__name__}")


def _build_body(request: Request) -> Dict[str, Any]:
    """
    httpx keyword arguments for the request body.
    Precedence: bytes, string, stream, form params, parts, entity writer,
    file, body generator.
    """
    if request.byte_data is not None:
        return {"content": request.byte_data}
    if request.string_data is not None:
        return {"content": request.string_data.encode(request.charset or DEFAULT_CHARSET)}
    if request.stream_data is not None:
        return {"content": request.stream_data.read()}
    if request.form_params:
        return {"data": {
            name: ["" if v is None else v for v in values]
            for name, values in request.form_params.items()
        }}
    if request.parts:
        return {"files": [_part_field(part) for part in request.parts]}
    if request.entity_writer is not None:
        buffer = io.BytesIO()
        request.entity_writer.write_entity(buffer)
        return {"content": buffer.getvalue()}
    if request.file is not None:
        return {"content": Path(request.file).read_bytes()}
    if request.body_generator is not None:
        return {"content": b"".join(request.body_generator.create_body())}
    return {}


def to_httpx_request(request: Request) -> httpx.Request:
    """
    Map a built Request onto httpx.Request. Bodies are materialized in
    memory so the result works with both httpx.Client and httpx.AsyncClient.
    """
    extensions: Dict[str, Any] = {}
    if request.request_timeout_in_ms > 0:
        seconds = request.request_timeout_in_ms / 1000.0
        extensions["timeout"] = httpx.Timeout(seconds).as_dict()

    return httpx.Request(
        method=request.method or "GET",
        url=request.raw_url if request.use_raw_url else request.url,
        headers=_build_headers(request),
        extensions=extensions,
        **_build_body(request),
    )


async def send(request: Request, client: httpx.AsyncClient) -> httpx.Response:
    """Send a built Request with a caller-owned client."""
    http_request = to_httpx_request(request)
    logger.debug(f"{LOG_PREFIX} Request: {http_request.method} {http_request.url}")

    try:
        if request.is_redirect_override_set:
            return await client.send(http_request, follow_redirects=request.is_redirect_enabled)
        return await client.send(http_request)
    except httpx.RequestError as e:
        logger.error(f"{LOG_PREFIX} Request failed: {e}")
        raise
