"""
Tests for the vault crypto core.

Tests cover:
- scrypt key derivation (determinism, domain separation, misuse)
- AES-256-GCM encryption/decryption and tag verification
- JSON value serialization and corruption reporting
"""
import pytest

from secure_storage.vault import crypto
from secure_storage.vault.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CorruptPayloadError,
    SerializationError,
)


@pytest.fixture
def key():
    return crypto.derive_key("correct horse battery", "test-salt", n=1024)


# --- Key derivation ---

class TestDeriveKey:
    """Tests for scrypt key derivation."""

    def test_key_length(self, key):
        """Test derived keys are 32 bytes."""
        assert len(key) == crypto.KEY_LENGTH

    def test_deterministic(self, key):
        """Test same secret and salt always yield the same key."""
        again = crypto.derive_key("correct horse battery", "test-salt", n=1024)
        assert again == key

    def test_str_and_bytes_agree(self, key):
        """Test str inputs are treated as their UTF-8 bytes."""
        assert crypto.derive_key(b"correct horse battery", b"test-salt", n=1024) == key

    def test_different_secret(self, key):
        """Test a different secret yields an unrelated key."""
        assert crypto.derive_key("another passphrase", "test-salt", n=1024) != key

    def test_different_salt(self, key):
        """Test a different salt yields an unrelated key."""
        assert crypto.derive_key("correct horse battery", "other-salt", n=1024) != key

    def test_empty_salt_rejected(self):
        """Test an empty salt is a configuration error."""
        with pytest.raises(ConfigurationError):
            crypto.derive_key("secret", "", n=1024)

    def test_empty_secret_rejected(self):
        """Test an empty secret is a configuration error."""
        with pytest.raises(ConfigurationError):
            crypto.derive_key(b"", "salt", n=1024)

    def test_invalid_cost_rejected(self):
        """Test scrypt refuses a non power-of-two N."""
        with pytest.raises(ConfigurationError):
            crypto.derive_key("secret", "salt", n=1000)


# --- Authenticated encryption ---

class TestCipher:
    """Tests for encrypt/decrypt."""

    def test_roundtrip(self, key):
        """Test decrypt recovers the plaintext."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"access-token")
        assert crypto.decrypt(key, nonce, ciphertext, tag) == b"access-token"

    def test_output_sizes(self, key):
        """Test nonce and tag sizes and that ciphertext excludes the tag."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"12345")
        assert len(nonce) == crypto.NONCE_SIZE == 16
        assert len(tag) == crypto.TAG_SIZE
        assert len(ciphertext) == 5

    def test_fresh_nonce_per_call(self, key):
        """Test two encryptions of the same plaintext differ."""
        first = crypto.encrypt(key, b"same")
        second = crypto.encrypt(key, b"same")
        assert first[0] != second[0]
        assert first[1] != second[1]

    def test_tampered_tag(self, key):
        """Test a modified tag fails verification."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"payload")
        bad_tag = bytes([tag[0] ^ 0x01]) + tag[1:]
        with pytest.raises(AuthenticationError):
            crypto.decrypt(key, nonce, ciphertext, bad_tag)

    def test_tampered_ciphertext(self, key):
        """Test a modified ciphertext fails verification."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"payload")
        bad = bytes([ciphertext[0] ^ 0x80]) + ciphertext[1:]
        with pytest.raises(AuthenticationError):
            crypto.decrypt(key, nonce, bad, tag)

    def test_wrong_key(self, key):
        """Test a different key fails verification."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"payload")
        other = crypto.derive_key("wrong", "test-salt", n=1024)
        with pytest.raises(AuthenticationError):
            crypto.decrypt(other, nonce, ciphertext, tag)

    def test_short_tag(self, key):
        """Test a truncated tag is rejected like any tamper."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"payload")
        with pytest.raises(AuthenticationError):
            crypto.decrypt(key, nonce, ciphertext, tag[:8])

    def test_generic_message(self, key):
        """Test failure message does not reveal the cause."""
        nonce, ciphertext, tag = crypto.encrypt(key, b"payload")
        with pytest.raises(AuthenticationError, match="corrupted or key mismatch"):
            crypto.decrypt(key, nonce, ciphertext, bytes(16))


# --- Serialization ---

class TestSerialization:
    """Tests for JSON value serialization."""

    @pytest.mark.parametrize("value", [
        "plain string",
        42,
        3.5,
        True,
        False,
        None,
        [1, "two", None],
        {"accessToken": "abc", "nested": {"scopes": ["read", "write"]}},
        {"__vault_bytes_b64__": "aGk="},
        {"__vault_bytes_b64__": 5},
        {"__vault_escaped__": "plain"},
        {"__vault_escaped__": {"__vault_escaped__": 1}},
        {"__vault_bytes_b64__": "aGk=", "other": 1},
    ])
    def test_roundtrip(self, value):
        assert crypto.deserialize_value(crypto.serialize_value(value)) == value

    def test_wrapper_shaped_dict_stays_a_dict(self):
        """Test a caller dict with the bytes wrapper key is not decoded."""
        value = {"__vault_bytes_b64__": "aGk="}
        restored = crypto.deserialize_value(crypto.serialize_value(value))
        assert restored == value
        assert not isinstance(restored, bytes)

    @pytest.mark.parametrize("payload", [
        b'{"__vault_bytes_b64__": 5}',
        b'{"__vault_bytes_b64__": "not base64!"}',
        b'{"__vault_bytes_b64__": "aGk"}',
        b'{"__vault_bytes_b64__": null}',
    ])
    def test_invalid_bytes_wrapper_is_corruption(self, payload):
        """Test a bytes wrapper without valid base64 text raises CorruptPayloadError."""
        with pytest.raises(CorruptPayloadError):
            crypto.deserialize_value(payload)

    @pytest.mark.parametrize("value", [2**64, {1: "a"}])
    def test_outside_json_subset_rejected(self, value):
        """Test integers beyond 64 bits and non-string keys are rejected."""
        with pytest.raises(SerializationError):
            crypto.serialize_value(value)

    def test_bytes_roundtrip(self):
        """Test raw bytes survive through the base64 wrapper."""
        raw = b"\x00\xffbinary-secret"
        assert crypto.deserialize_value(crypto.serialize_value(raw)) == raw

    def test_utf8_json(self):
        """Test serialized output is UTF-8 JSON text."""
        assert crypto.serialize_value({"name": "café"}) == '{"name":"café"}'.encode("utf-8")

    def test_cycle_rejected(self):
        """Test a self-referencing value cannot be serialized."""
        value = {}
        value["self"] = value
        with pytest.raises(SerializationError):
            crypto.serialize_value(value)

    def test_unsupported_type_rejected(self):
        """Test arbitrary objects cannot be serialized."""
        with pytest.raises(SerializationError):
            crypto.serialize_value({"callback": object()})

    def test_invalid_json_is_corruption(self):
        """Test non-JSON cleartext raises CorruptPayloadError."""
        with pytest.raises(CorruptPayloadError):
            crypto.deserialize_value(b"{not json")
