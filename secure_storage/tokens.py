"""
Provider token cache — how integration clients keep their credentials.

Each provider (fitness tracker, package carrier, smart-home hub) gets its
own envelope files next to its code::

    .<provider>_tokens.encrypted   OAuth tokens
    .<provider>_config.encrypted   API keys and client settings

A cache that cannot be read is treated as "not yet authenticated": the
error is logged and an empty dict is returned, so the caller restarts its
OAuth flow instead of failing.
"""
import os
import re
import logging
from pathlib import Path
from typing import Any, Optional, Union

from .vault import SecureStore, SecureStorageError, create_default_store

logger = logging.getLogger("secure_storage.tokens")

_PROVIDER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_KINDS = frozenset({"tokens", "config"})


class ProviderTokenCache:
    """Encrypted token and config files for a set of providers."""

    def __init__(
        self,
        directory: Union[str, os.PathLike],
        store: Optional[SecureStore] = None,
    ):
        self.directory = Path(directory)
        self.store = store if store is not None else create_default_store()

    def _validate_provider(self, provider: str) -> None:
        """Validate a provider name.

        Raises:
            ValueError: If the name is empty or not a plain identifier.
        """
        if not provider:
            raise ValueError("Provider name cannot be empty")
        if not _PROVIDER_PATTERN.match(provider):
            raise ValueError(
                f"Provider name {provider!r} may only contain letters, digits, '_' and '-'"
            )

    def token_path(self, provider: str, kind: str = "tokens") -> Path:
        """Path of the envelope file for provider and kind."""
        self._validate_provider(provider)
        if kind not in _KINDS:
            raise ValueError(f"Unknown credential file kind: {kind}")
        return self.directory / f".{provider}_{kind}.encrypted"

    def _load(self, provider: str, kind: str) -> dict[str, Any]:
        path = self.token_path(provider, kind)
        try:
            data = self.store.load_secure(path)
        except SecureStorageError as err:
            logger.warning(
                "Could not load %s for %s: %s", kind, provider, err,
            )
            return {}
        return data or {}

    def load_tokens(self, provider: str) -> dict[str, Any]:
        """Saved tokens for provider, or {} if none or unreadable."""
        return self._load(provider, "tokens")

    def save_tokens(self, provider: str, tokens: dict[str, Any]) -> None:
        self.store.save_secure(self.token_path(provider, "tokens"), tokens)
        logger.info("Saved encrypted tokens for %s", provider)

    def clear_tokens(self, provider: str, secure_delete: bool = True) -> None:
        self.store.delete(self.token_path(provider, "tokens"), secure_delete=secure_delete)
        logger.info("Cleared tokens for %s", provider)

    def load_config(self, provider: str) -> dict[str, Any]:
        """Saved provider config, or {} if none or unreadable."""
        return self._load(provider, "config")

    def save_config(self, provider: str, config: dict[str, Any]) -> None:
        self.store.save_secure(
            self.token_path(provider, "config"), config, backup=True,
        )
        logger.info("Saved encrypted config for %s", provider)
