"""Local filesystem storage for secret key material."""

from .bindings import PathBinding, NamespaceCache
from .namespace import SecretsNamespace
from .engine import StorageEngine

__all__ = [
    "PathBinding",
    "NamespaceCache",
    "SecretsNamespace",
    "StorageEngine",
]
