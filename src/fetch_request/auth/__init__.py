"""
Request signing hooks.
"""
from .auth_handler import (
    AuthHandler,
    BearerAuthHandler,
    CustomAuthHandler,
    XApiKeyAuthHandler,
    create_auth_handler,
)
from .signature import AuthHeaderSignatureCalculator, HmacSignatureCalculator

__all__ = [
    "AuthHandler",
    "BearerAuthHandler",
    "CustomAuthHandler",
    "XApiKeyAuthHandler",
    "create_auth_handler",
    "AuthHeaderSignatureCalculator",
    "HmacSignatureCalculator",
]
