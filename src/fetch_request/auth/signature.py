"""
Signature calculators run once by RequestBuilderBase.build().
"""
import base64
import hashlib
import hmac
import logging
from typing import TYPE_CHECKING, Any, Union

from pydantic import SecretStr

from ..config import AuthConfig
from ..types import SigningContext
from ..utils import mask_value, url_encode
from .auth_handler import AuthHandler, create_auth_handler

if TYPE_CHECKING:
    from ..core.builder import RequestBuilderBase
    from ..core.request import Request

logger = logging.getLogger(__name__)
LOG_PREFIX = f"[AUTH:{__name__}]"


def _body_of(request: "Request") -> Any:
    if request.byte_data is not None:
        return request.byte_data
    if request.string_data is not None:
        return request.string_data
    if request.form_params is not None:
        return dict(request.form_params.items())
    return None


def signing_context(url: str, request: "Request") -> SigningContext:
    """Snapshot of the request an auth handler signs."""
    return {
        "method": request.method or "",
        "url": url,
        "headers": {name: request.headers.get_joined_value(name) for name in request.headers},
        "body": _body_of(request),
    }


class AuthHeaderSignatureCalculator:
    """Sets the header(s) an AuthHandler computes for the request."""

    def __init__(self, handler: AuthHandler):
        self._handler = handler

    @classmethod
    def from_config(cls, config: AuthConfig) -> "AuthHeaderSignatureCalculator":
        return cls(create_auth_handler(config))

    def calculate_and_add_signature(
        self, url: str, request: "Request", builder: "RequestBuilderBase"
    ) -> None:
        headers = self._handler.get_header(signing_context(url, request))
        if not headers:
            logger.debug(f"{LOG_PREFIX} No auth header produced for {url}")
            return
        for name, value in headers.items():
            builder.set_header(name, value)


class HmacSignatureCalculator:
    """
    Signs METHOD, the signing URL and the canonical query with an HMAC key.

    The canonical query lists parameters sorted by name (values of one name in
    insertion order), percent-encoded and joined with '&'. The signature is
    written as:

        HMAC keyId="<key_id>",algorithm="hmac-<algorithm>",signature="<base64>"
    """

    def __init__(
        self,
        key_id: str,
        secret: Union[str, bytes, SecretStr],
        header_name: str = "Authorization",
        algorithm: str = "sha256",
    ):
        # shake_* digests have no fixed size and cannot back an HMAC
        if algorithm not in hashlib.algorithms_guaranteed or algorithm.startswith("shake_"):
            raise ValueError(f"Unsupported HMAC algorithm '{algorithm}'")
        if isinstance(secret, SecretStr):
            secret = secret.get_secret_value()
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        self._key_id = key_id
        self._secret = secret
        self._header_name = header_name
        self._algorithm = algorithm

    @staticmethod
    def canonical_query(request: "Request") -> str:
        if not request.query_params:
            return ""
        pairs = []
        for name, values in sorted(request.query_params.items(), key=lambda item: item[0]):
            for value in values:
                pair = url_encode(name)
                if value is not None:
                    pair += "=" + url_encode(value)
                pairs.append(pair)
        return "&".join(pairs)

    def string_to_sign(self, url: str, request: "Request") -> str:
        return "\n".join([(request.method or "").upper(), url, self.canonical_query(request)])

    def calculate_and_add_signature(
        self, url: str, request: "Request", builder: "RequestBuilderBase"
    ) -> None:
        message = self.string_to_sign(url, request).encode("utf-8")
        digest = hmac.new(self._secret, message, self._algorithm).digest()
        signature = base64.b64encode(digest).decode("ascii")
        logger.debug(
            f"{LOG_PREFIX} HmacSignatureCalculator: key_id={self._key_id}, "
            f"signature={mask_value(signature)}"
        )
        builder.set_header(
            self._header_name,
            f'HMAC keyId="{self._key_id}",algorithm="hmac-{self._algorithm}",signature="{signature}"',
        )
