"""Secrets KMS exception hierarchy.

Every failure raised by the package derives from ``SecretsKmsError`` and from
the closest builtin exception, so callers can catch either.
"""
from typing import Optional


class SecretsKmsError(Exception):
    """Base exception for all Secrets KMS failures."""


# ---------------------------------------------------------------------------
# Construction errors
# ---------------------------------------------------------------------------

class StorageRootError(SecretsKmsError, RuntimeError):
    """Raised when a provider root directory cannot be used."""


class TrustGateConfigError(SecretsKmsError, ValueError):
    """Raised for invalid trusted-class lists."""


class ProviderConfigError(SecretsKmsError, ValueError):
    """Raised for invalid provider descriptors or manifests."""


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

class InvalidReferenceError(SecretsKmsError, ValueError):
    """Raised for malformed secret ids, versions, namespaces or remixes."""


class InvalidEntropyError(SecretsKmsError, ValueError):
    """Raised when entropy has the wrong size or is null padded."""


class OverwriteProhibitedError(SecretsKmsError, RuntimeError):
    """Raised when a secret file already exists at the target path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Overwrites prohibited; Secret file already exists: {path}"
        )


# ---------------------------------------------------------------------------
# Authorization errors
# ---------------------------------------------------------------------------

class AuthorizationError(SecretsKmsError, PermissionError):
    """Base class for trust gate denials."""


class UntrustedConsumerError(AuthorizationError):
    """Raised when a class not allow-listed requests secret entropy."""


class UntrustedNamespaceError(AuthorizationError):
    """Raised when a namespace object is of a class not allow-listed."""


class NamespaceNotRegisteredError(AuthorizationError):
    """Raised when a namespace was never registered with the engine."""


# ---------------------------------------------------------------------------
# Filesystem errors
# ---------------------------------------------------------------------------

class SecretStorageError(SecretsKmsError, RuntimeError):
    """Filesystem failure while handling a secret.

    The underlying ``OSError`` (if any) is chained as ``__cause__`` and
    exposed as ``os_error``.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        path: Optional[str] = None,
        os_error: Optional[OSError] = None
    ):
        self.operation = operation
        self.path = path
        self.os_error = os_error
        detail = message
        if path:
            detail = f"{detail}: {path}"
        if os_error is not None:
            detail = f"{detail} ({os_error.strerror or os_error})"
        super().__init__(detail)


class SecretNotFoundError(SecretStorageError, LookupError):
    """Raised when a secret file does not exist or is not readable."""


class NamespaceResolutionError(SecretStorageError):
    """Raised when a namespace directory cannot be resolved."""


class SecretWriteError(SecretStorageError):
    """Raised when writing, locking or creating directories fails."""


class SecretDeleteError(SecretStorageError):
    """Raised when removing a secret file fails."""


# ---------------------------------------------------------------------------
# Feature toggles
# ---------------------------------------------------------------------------

class FeatureDisabledError(SecretsKmsError, RuntimeError):
    """Raised when writes or deletes are attempted while disabled."""


# ---------------------------------------------------------------------------
# Sensitive buffers
# ---------------------------------------------------------------------------

class SensitiveBufferError(SecretsKmsError):
    """Programming error: a sensitive buffer was read, copied or serialized."""
