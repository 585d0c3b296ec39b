"""Namespace path bindings and the per-engine namespace cache."""
from typing import Optional
from collections.abc import Iterator, Mapping

from pydantic import BaseModel


class PathBinding(BaseModel):
    """Resolved namespace directory.

    ``directory_path`` is set only where the OS path differs from the
    ``/``-joined namespace name.
    """

    namespace: str
    directory_path: Optional[str] = None
    writable: bool = False

    model_config = {"frozen": True}

    @property
    def relative_path(self) -> str:
        return self.directory_path or self.namespace


class NamespaceCache(Mapping[str, PathBinding]):
    """Case-insensitive, append-only mapping of namespace name to binding.

    Reads are safe from several threads; first-time registration of a given
    namespace is not locked and must be serialized by the caller.
    """

    def __init__(self) -> None:
        self._paths: dict[str, PathBinding] = {}

    def register(self, binding: PathBinding) -> PathBinding:
        """Store ``binding`` unless its namespace is already cached.

        Returns:
            The binding now cached for the namespace.
        """
        return self._paths.setdefault(binding.namespace.lower(), binding)

    def get(self, namespace: str, default: Optional[PathBinding] = None) -> Optional[PathBinding]:  # type: ignore[override]
        if not namespace or not isinstance(namespace, str):
            return default
        return self._paths.get(namespace.lower(), default)

    def __getitem__(self, namespace: str) -> PathBinding:
        binding = self.get(namespace)
        if binding is None:
            raise KeyError(namespace)
        return binding

    def __contains__(self, namespace: object) -> bool:
        return isinstance(namespace, str) and self.get(namespace) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"<NamespaceCache namespaces={sorted(self._paths)!r}>"
