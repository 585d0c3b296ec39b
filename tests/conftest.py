"""Shared fixtures for the Secrets KMS test-suite."""
import base64
import secrets

import pytest

from secrets_kms import (
    KeySize,
    ProviderDescriptor,
    SecretsNamespace,
    StorageConfig,
    StorageEngine,
    TrustGate,
)


# --- Test Helpers ---

class SecretConsumer:
    """Allow-listed consumer: post-processes callback results as base64."""

    def handle_secret_entropy(self, result):
        return base64.b64encode(result).decode("ascii")


class RecordingEntropy:
    """Generator returning fixed or random bytes and remembering the output."""

    def __init__(self, size: int = 32, payload: bytes = None):
        self._size = size
        self._payload = payload
        self.generated = []

    def size(self) -> int:
        return self._size

    def generate(self) -> bytes:
        if self._payload is not None:
            value = self._payload
        else:
            value = b"\x01" + secrets.token_bytes(self._size - 2) + b"\x01"
        self.generated.append(value)
        return value


# --- Fixtures ---

@pytest.fixture
def consumer():
    """An instance of the allow-listed consumer class."""
    return SecretConsumer()


@pytest.fixture
def trust_gate():
    """Trust gate allowing SecretConsumer and the default namespace handle."""
    return TrustGate([SecretConsumer], [SecretsNamespace])


@pytest.fixture
def secrets_root(tmp_path):
    root = tmp_path / "secrets"
    root.mkdir(mode=0o700)
    return root


@pytest.fixture
def provider(secrets_root):
    return ProviderDescriptor(id="Temp", path=str(secrets_root), key_size=KeySize.BYTES_32)


@pytest.fixture
def writable_config():
    return StorageConfig(allow_writes=True, allow_deletes=True)


@pytest.fixture
def engine(provider, trust_gate, writable_config):
    """Storage engine with writes and deletes enabled."""
    return StorageEngine(provider, trust_gate, writable_config)


@pytest.fixture
def read_only_engine(provider, trust_gate):
    """Storage engine over the same root with the default (read-only) config."""
    return StorageEngine(provider, trust_gate)


@pytest.fixture
def make_engine(tmp_path, trust_gate):
    """Factory building a writable engine for any key size in its own root."""
    def _make(key_size: int, **config):
        root = tmp_path / f"secrets_{int(key_size)}"
        root.mkdir(mode=0o700, exist_ok=True)
        provider = ProviderDescriptor(
            id=f"size{int(key_size)}", path=str(root), key_size=key_size
        )
        options = {"allow_writes": True, "allow_deletes": True}
        options.update(config)
        return StorageEngine(provider, trust_gate, StorageConfig(**options))
    return _make


@pytest.fixture
def generator():
    """Factory for recording entropy generators."""
    def _make(size: int = 32, payload: bytes = None):
        return RecordingEntropy(size, payload)
    return _make
