"""
Trust Gate: class allow-lists for secret consumers and namespace classes.

Membership is exact class identity. Subclasses of a trusted class are not
trusted, and a class trusted as a consumer is not a valid namespace (or the
other way round) unless it appears in both lists.

Dotted names are resolved once, at construction. Names passed to a lookup
are compared against the qualified names of trusted classes and are never
imported.
"""
import logging
from typing import Any, Iterable, Union

from jsonpickle.unpickler import loadclass

from .exceptions import TrustGateConfigError

logger = logging.getLogger("secrets_kms.trust")

ClassIdentity = Union[type, str]


def qualified_name(cls: type) -> str:
    """Return ``module.QualName`` for a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _resolve_class(identity: Any) -> type:
    """Resolve a trusted identity (class or dotted name) to a class.

    Raises:
        TrustGateConfigError: If the identity is empty, not a string or class,
            or does not name a loadable class.
    """
    if isinstance(identity, type):
        return identity
    if not isinstance(identity, str) or not identity:
        raise TrustGateConfigError(f"Invalid trusted class: {identity!r}")
    cls = loadclass(identity)
    if not isinstance(cls, type):
        raise TrustGateConfigError(f"Invalid trusted class: {identity!r}")
    return cls


class TrustGate:
    """Two disjoint allow-lists built once at construction.

    Args:
        secret_consumers: Classes (or dotted class names) allowed to receive
            raw secret entropy through ``SecretKey.request_secret``.
        namespace_classes: Classes (or dotted class names) accepted as
            namespace handles by the storage engine.
    """

    __slots__ = (
        "_consumers", "_namespaces", "_consumer_names", "_namespace_names"
    )

    def __init__(
        self,
        secret_consumers: Iterable[ClassIdentity] = (),
        namespace_classes: Iterable[ClassIdentity] = (),
    ):
        consumers = [_resolve_class(c) for c in secret_consumers]
        namespaces = [_resolve_class(c) for c in namespace_classes]
        object.__setattr__(self, "_consumers", dict.fromkeys(consumers, True))
        object.__setattr__(self, "_namespaces", dict.fromkeys(namespaces, True))
        object.__setattr__(
            self, "_consumer_names",
            {qualified_name(c): True for c in consumers},
        )
        object.__setattr__(
            self, "_namespace_names",
            {qualified_name(c): True for c in namespaces},
        )
        logger.debug(
            "Trust gate built: %d consumer(s), %d namespace class(es)",
            len(self._consumers), len(self._namespaces),
        )

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("TrustGate is immutable")

    @staticmethod
    def _lookup(subject: Any, classes: dict, names: dict) -> bool:
        # names are matched as keys only; lookups never import anything
        if isinstance(subject, str):
            return names.get(subject, False)
        cls = subject if isinstance(subject, type) else type(subject)
        return classes.get(cls, False)

    def can_utilize_secrets(self, subject: Any) -> bool:
        """Check whether a class, instance or dotted name may use secrets."""
        return self._lookup(subject, self._consumers, self._consumer_names)

    def is_valid_namespace(self, subject: Any) -> bool:
        """Check whether a class, instance or dotted name is a namespace class."""
        return self._lookup(subject, self._namespaces, self._namespace_names)

    def inspect(self) -> dict[str, str]:
        """Describe trusted classes. Diagnostic only."""
        return {
            "secret_consumers": ", ".join(
                qualified_name(c) for c in self._consumers
            ),
            "namespace_classes": ", ".join(
                qualified_name(c) for c in self._namespaces
            ),
        }

    def __repr__(self) -> str:
        return (
            f"<TrustGate consumers={len(self._consumers)} "
            f"namespaces={len(self._namespaces)}>"
        )
