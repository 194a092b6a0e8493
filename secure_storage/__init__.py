"""Secure Storage.

Encrypted at-rest storage for the credentials of integration providers.
"""
from .version import __version__
from .vault import (
    SecureStore,
    StoreConfig,
    create_default_store,
    create_password_store,
)
from .tokens import ProviderTokenCache

__all__ = [
    "__version__",
    "SecureStore",
    "StoreConfig",
    "create_default_store",
    "create_password_store",
    "ProviderTokenCache",
]
