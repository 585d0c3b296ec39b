"""Entropy generators consumed by ``StorageEngine.store``."""
import secrets
from typing import Protocol, runtime_checkable

from .config import SECRET_KEY_SIZES
from .buffers import is_null_padded


@runtime_checkable
class SecretGenerator(Protocol):
    """Produces fresh secret entropy of a fixed size."""

    def size(self) -> int:
        ...

    def generate(self) -> bytes:
        ...


class PrngEntropy:
    """OS CSPRNG entropy of a fixed size.

    Draws are repeated while they start or end with a null byte, so output
    always passes the default null-padding policy.
    """

    def __init__(self, size: int):
        if size not in SECRET_KEY_SIZES:
            raise ValueError(f"Unsupported secret key size: {size}")
        self._size = int(size)

    def size(self) -> int:
        return self._size

    def generate(self) -> bytes:
        entropy = secrets.token_bytes(self._size)
        while is_null_padded(entropy):
            entropy = secrets.token_bytes(self._size)
        return entropy


class PrngEntropy32(PrngEntropy):
    def __init__(self):
        super().__init__(32)
