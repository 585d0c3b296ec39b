"""Secrets KMS: versioned secret key material on the local filesystem.

Security Note (Threat Model):
    Secret bytes are held in process memory inside ``SecretKey`` buffers for
    as long as the buffer lives. The buffers refuse conversion, comparison,
    copying and serialization, but they cannot defend against a memory dump
    of the process or code that deliberately retains the bytes passed to a
    ``use_secret_entropy`` callback.
"""

from .version import __version__
from .config import StorageConfig
from .exceptions import (
    SecretsKmsError,
    StorageRootError,
    TrustGateConfigError,
    ProviderConfigError,
    InvalidReferenceError,
    InvalidEntropyError,
    OverwriteProhibitedError,
    AuthorizationError,
    UntrustedConsumerError,
    UntrustedNamespaceError,
    NamespaceNotRegisteredError,
    SecretStorageError,
    SecretNotFoundError,
    NamespaceResolutionError,
    SecretWriteError,
    SecretDeleteError,
    FeatureDisabledError,
    SensitiveBufferError,
)
from .reference import SecretReference, Remix
from .trust import TrustGate
from .buffers import (
    SecretsConsumer,
    SecretKey,
    SecretKey16,
    SecretKey20,
    SecretKey24,
    SecretKey32,
    SecretKey40,
    SecretKey64,
)
from .providers import KeySize, SecretsProvider, ProviderDescriptor, load_providers
from .entropy import SecretGenerator, PrngEntropy, PrngEntropy32
from .storage import StorageEngine, SecretsNamespace, PathBinding, NamespaceCache

__all__ = [
    "__version__",
    "StorageConfig",
    "SecretsKmsError",
    "StorageRootError",
    "TrustGateConfigError",
    "ProviderConfigError",
    "InvalidReferenceError",
    "InvalidEntropyError",
    "OverwriteProhibitedError",
    "AuthorizationError",
    "UntrustedConsumerError",
    "UntrustedNamespaceError",
    "NamespaceNotRegisteredError",
    "SecretStorageError",
    "SecretNotFoundError",
    "NamespaceResolutionError",
    "SecretWriteError",
    "SecretDeleteError",
    "FeatureDisabledError",
    "SensitiveBufferError",
    "SecretReference",
    "Remix",
    "TrustGate",
    "SecretsConsumer",
    "SecretKey",
    "SecretKey16",
    "SecretKey20",
    "SecretKey24",
    "SecretKey32",
    "SecretKey40",
    "SecretKey64",
    "KeySize",
    "SecretsProvider",
    "ProviderDescriptor",
    "load_providers",
    "SecretGenerator",
    "PrngEntropy",
    "PrngEntropy32",
    "StorageEngine",
    "SecretsNamespace",
    "PathBinding",
    "NamespaceCache",
]
