"""
Sensitive Buffers: fixed-length holders for secret key material.

One ``SecretKey`` variant exists per supported length. Instances are created
by the storage engine only, never mutated, and refuse every general-purpose
pathway a byte buffer would normally offer (string conversion, repr, hashing,
comparison, iteration, copying, pickling, jsonpickle). The raw bytes are
reachable only inside a callback passed to ``use_secret_entropy`` or, for
allow-listed consumers, ``request_secret``.

Security Note:
    Accidental exposure must fail loudly. Every refusal raises
    ``SensitiveBufferError``, which is a programming error and is not meant
    to be handled at runtime.
"""
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

import jsonpickle

from .config import SECRET_KEY_SIZES
from .exceptions import (
    InvalidEntropyError,
    SensitiveBufferError,
    UntrustedConsumerError,
)
from .reference import encode_ref
from .trust import qualified_name

T = TypeVar("T")

_NOT_EXPOSABLE = "Sensitive buffer cannot be read or serialized"


@runtime_checkable
class SecretsConsumer(Protocol):
    """A class that post-processes results computed from secret entropy."""

    def handle_secret_entropy(self, result: Any) -> Any:
        ...


def is_null_padded(entropy: bytes) -> bool:
    """True if ``entropy`` starts or ends with a null byte."""
    return entropy[:1] == b"\0" or entropy[-1:] == b"\0"


class SecretKey:
    """Base of the sensitive buffer family; use a sized variant."""

    __slots__ = ("_storage", "_ref", "_version", "_entropy")

    fixed_length: int = 0

    def __init__(self, *args, **kwargs):
        raise SensitiveBufferError(
            "Secret keys can only be created by the storage engine"
        )

    @classmethod
    def _create(
        cls,
        storage: Any,
        ref: str,
        version: int,
        entropy: bytes,
        *,
        allow_null_padding: bool = False,
    ) -> "SecretKey":
        """Build a buffer from entropy read by ``storage``.

        Raises:
            SensitiveBufferError: If called on a class without a supported size.
            InvalidEntropyError: If entropy is empty, of the wrong length, or
                null padded while padding is not permitted.
        """
        if cls.fixed_length not in SECRET_KEY_SIZES:
            raise SensitiveBufferError(
                f"Invalid secret byte length for {cls.__name__}"
            )
        if not entropy:
            raise InvalidEntropyError("Failed to read entropy bytes")
        entropy = bytes(entropy)
        if len(entropy) != cls.fixed_length:
            raise InvalidEntropyError(
                f"Entropy must be {cls.fixed_length} bytes, got {len(entropy)}"
            )
        if not allow_null_padding and is_null_padded(entropy):
            raise InvalidEntropyError("Entropy must not be null padded")

        key = object.__new__(cls)
        object.__setattr__(key, "_storage", storage)
        object.__setattr__(key, "_ref", ref)
        object.__setattr__(key, "_version", version)
        object.__setattr__(key, "_entropy", entropy)
        return key

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def length(self) -> int:
        return self.fixed_length

    def id(self) -> str:
        return self._ref

    def version(self) -> int:
        return self._version

    def ref(self) -> str:
        """Canonical ``id:00005`` reference."""
        return encode_ref(self._ref, self._version)

    # ------------------------------------------------------------------
    # Scoped access
    # ------------------------------------------------------------------

    def use_secret_entropy(self, callback: Callable[[bytes], T]) -> T:
        """Invoke ``callback`` with the raw bytes and return its result."""
        return callback(self._entropy)

    def request_secret(
        self,
        consumer: SecretsConsumer,
        callback: Callable[[bytes], Any],
    ) -> Any:
        """Run ``callback`` on the raw bytes on behalf of a trusted consumer.

        The callback result is passed through
        ``consumer.handle_secret_entropy`` before being returned.

        Raises:
            UntrustedConsumerError: If the consumer's class is not on the
                trust gate's consumer allow-list.
        """
        if not self._storage.trust_gate().can_utilize_secrets(consumer):
            raise UntrustedConsumerError(
                "Cannot utilize secrets from class: "
                f"{qualified_name(type(consumer))}"
            )
        return consumer.handle_secret_entropy(callback(self._entropy))

    # ------------------------------------------------------------------
    # Refused byte-buffer surface
    # ------------------------------------------------------------------

    @classmethod
    def decode(cls, *args, **kwargs):
        raise SensitiveBufferError("Static constructor not available for secret key")

    def bytes(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def hex(self, *args, **kwargs):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def encode(self, *args, **kwargs):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def equals(self, other: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def copy(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __str__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __repr__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __format__(self, format_spec: str):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __bytes__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __buffer__(self, flags: int):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __iter__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __getitem__(self, index: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __eq__(self, other: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __ne__(self, other: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __hash__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __copy__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __deepcopy__(self, memo: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __reduce__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __reduce_ex__(self, protocol: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __getstate__(self):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __setstate__(self, state: Any):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def __setattr__(self, key: str, value: Any):
        raise SensitiveBufferError("Sensitive buffer is immutable")

    def __delattr__(self, key: str):
        raise SensitiveBufferError("Sensitive buffer is immutable")


class SecretKey16(SecretKey):
    __slots__ = ()
    fixed_length = 16


class SecretKey20(SecretKey):
    __slots__ = ()
    fixed_length = 20


class SecretKey24(SecretKey):
    __slots__ = ()
    fixed_length = 24


class SecretKey32(SecretKey):
    __slots__ = ()
    fixed_length = 32


class SecretKey40(SecretKey):
    __slots__ = ()
    fixed_length = 40


class SecretKey64(SecretKey):
    __slots__ = ()
    fixed_length = 64


SECRET_KEY_TYPES: dict[int, type[SecretKey]] = {
    cls.fixed_length: cls
    for cls in (
        SecretKey16, SecretKey20, SecretKey24,
        SecretKey32, SecretKey40, SecretKey64,
    )
}


class SensitiveBufferHandler(jsonpickle.handlers.BaseHandler):
    """SensitiveBufferHandler.
    Makes jsonpickle fail loudly instead of walking the buffer slots.
    """
    def flatten(self, obj, data):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

    def restore(self, obj):
        raise SensitiveBufferError(_NOT_EXPOSABLE)

jsonpickle.handlers.registry.register(SecretKey, SensitiveBufferHandler, base=True)
