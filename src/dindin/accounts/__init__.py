"""Account lifecycle operations."""

from .service import AccountService

__all__ = ["AccountService"]
