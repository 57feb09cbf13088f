from .builder import RequestBuilder, RequestBuilderBase
from .request import Request

__all__ = ["Request", "RequestBuilder", "RequestBuilderBase"]
