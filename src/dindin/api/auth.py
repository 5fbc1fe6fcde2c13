#!/usr/bin/env python3
"""Authentication collaborator contract."""

from typing import Protocol

from ..core.errors import AuthError
from ..core.models import OwnerIdentity
from .http import ApiRequest


class Authenticator(Protocol):
    """Resolves the caller of a request, or None when unauthenticated."""

    def authenticate(self, request: ApiRequest) -> OwnerIdentity | None: ...


class StaticAuthenticator:
    """Authenticates every request as one fixed owner (CLI, tests)."""

    def __init__(self, identity: OwnerIdentity | None):
        self.identity = identity

    def authenticate(self, request: ApiRequest) -> OwnerIdentity | None:
        return self.identity


def require_identity(authenticator: Authenticator, request: ApiRequest) -> OwnerIdentity:
    """
    Resolve the caller or reject the request.

    Raises:
        AuthError: No identity, or an identity without an owner id
    """
    identity = authenticator.authenticate(request)
    if identity is None or not identity.owner_id:
        raise AuthError()
    return identity
