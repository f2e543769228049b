"""CRUD singletons."""

from .crud_usage_account import usage_account

__all__ = ["usage_account"]
