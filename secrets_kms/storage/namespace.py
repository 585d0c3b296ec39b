"""Namespace handle: a stateless facade bound to (engine, namespace path)."""
from typing import TYPE_CHECKING

from ..buffers import SecretKey
from ..entropy import SecretGenerator
from ..reference import validate_namespace

if TYPE_CHECKING:
    from .engine import StorageEngine


class SecretsNamespace:
    """Forwards secret operations to the engine for one namespace.

    Handles carry no state of their own; the engine's namespace cache holds
    the resolved directory, so any two handles for the same path are
    interchangeable.

    Raises:
        InvalidReferenceError: If ``ref_id`` violates the namespace grammar.
    """

    __slots__ = ("_storage", "_ref_id")

    def __init__(self, storage: "StorageEngine", ref_id: str):
        self._storage = storage
        self._ref_id = validate_namespace(ref_id)

    def load(self, secret_id: str, version: int) -> SecretKey:
        return self._storage.load(secret_id, version, self)

    def store(self, secret_id: str, version: int, generator: SecretGenerator) -> None:
        self._storage.store(self, secret_id, version, generator)

    def delete(self, secret_id: str, version: int) -> None:
        self._storage.delete(secret_id, version, self)

    def has(self, secret_id: str, version: int) -> bool:
        return self._storage.has(secret_id, version, self)

    def ref_id(self) -> str:
        return self._ref_id

    def __repr__(self) -> str:
        return f"<SecretsNamespace {self._ref_id!r}>"
