"""Shared fixtures for the secure storage tests."""
import pytest

from secure_storage.vault import SecureStore, StoreConfig

FIXED_FINGERPRINT = bytes(range(32))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SECURE_STORAGE_* overrides from leaking into tests."""
    for name in (
        "SECURE_STORAGE_SALT",
        "SECURE_STORAGE_SCRYPT_N",
        "SECURE_STORAGE_SCRYPT_R",
        "SECURE_STORAGE_SCRYPT_P",
        "SECURE_STORAGE_FILE_LOCK",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    """Cheap scrypt cost so the suite stays fast."""
    return StoreConfig(scrypt_n=1024)


@pytest.fixture
def locking_config():
    return StoreConfig(scrypt_n=1024, use_file_lock=True)


@pytest.fixture
def fixed_fingerprint():
    return FIXED_FINGERPRINT


@pytest.fixture
def store(config):
    """Host-bound store with an injected fingerprint."""
    return SecureStore(fingerprint=FIXED_FINGERPRINT, config=config)


@pytest.fixture
def secret_path(tmp_path):
    return tmp_path / "secrets" / ".fitbit_tokens.encrypted"
