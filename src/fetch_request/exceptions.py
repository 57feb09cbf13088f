from typing import Optional


class FetchRequestError(Exception):
    """Base exception for request construction errors."""
    pass


class InvalidUriError(FetchRequestError, ValueError):
    """Raised when a URI cannot be parsed."""
    pass


class UnsupportedSchemeError(InvalidUriError):
    def __init__(self, scheme: Optional[str], uri: str = ""):
        msg = f"Unsupported scheme '{scheme}' in URI '{uri}'" if scheme else f"Missing scheme in URI '{uri}'"
        super().__init__(msg)
        self.scheme = scheme
        self.uri = uri


class MissingPathError(FetchRequestError, ValueError):
    """Raised when a URI without a path is set on a builder."""
    pass


class QueryDecodingError(FetchRequestError, RuntimeError):
    def __init__(self, segment: str, cause: Exception):
        msg = f"Failed to decode query segment '{segment}': {str(cause)}"
        super().__init__(msg)
        self.segment = segment
        self.cause = cause
