"""
API Package

Framework-free HTTP-style boundary over the reconciliation services.
"""

from .auth import Authenticator, StaticAuthenticator, require_identity
from .handlers import FinanceApi, error_response
from .http import ApiRequest, Response

__all__ = [
    "ApiRequest",
    "Authenticator",
    "FinanceApi",
    "Response",
    "StaticAuthenticator",
    "error_response",
    "require_identity",
]
