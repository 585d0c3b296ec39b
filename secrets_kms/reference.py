"""
Secret References: grammars and the ``ref:version`` codec.

Canonical form::

    [namespace@]ref:00012[[*]:message:iterations]

The version is zero-padded to five digits. The namespace prefix and the
remix suffix are optional; a remix is a derivation hint carried along with
the reference and is never interpreted by the storage engine.
"""
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import VERSION_LIMIT, DEFAULT_VERSION_PADDING
from .exceptions import InvalidReferenceError

REF_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_\-]{1,39}")
NAMESPACE_PATTERN = re.compile(
    r"[A-Za-z0-9][A-Za-z0-9_\-]{1,39}(?:/[A-Za-z0-9][A-Za-z0-9_\-]{1,39}){0,3}"
)
NAMESPACE_MAX_LENGTH = 163
REMIX_MARKER = "[*]"
DIGITS_PATTERN = re.compile(r"[0-9]+")


def is_valid_ref(value: Any) -> bool:
    return isinstance(value, str) and REF_PATTERN.fullmatch(value) is not None


def is_valid_version(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < VERSION_LIMIT
    )


def is_valid_namespace(value: Any) -> bool:
    return (
        isinstance(value, str)
        and 0 < len(value) <= NAMESPACE_MAX_LENGTH
        and NAMESPACE_PATTERN.fullmatch(value) is not None
    )


def validate_ref(value: Any) -> str:
    if not is_valid_ref(value):
        raise InvalidReferenceError("Invalid secret reference format")
    return value


def validate_version(value: Any) -> int:
    if not is_valid_version(value):
        raise InvalidReferenceError(
            f"Invalid secret version (expected 0 <= version < {VERSION_LIMIT})"
        )
    return value


def validate_namespace(value: Any) -> str:
    if not is_valid_namespace(value):
        raise InvalidReferenceError("Invalid namespace path")
    return value


def encode_ref(ref: str, version: int, padding: int = DEFAULT_VERSION_PADDING) -> str:
    """Render ``ref:version`` with the version zero-padded."""
    return f"{ref}:{version:0{padding}d}"


class Remix(BaseModel):
    """Secondary derivation hint: a message and an iteration count."""

    message: str
    iterations: int = Field(strict=True, ge=1)

    model_config = {"frozen": True}

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        return validate_ref(v)


class SecretReference(BaseModel):
    """Immutable (ref, version[, namespace][, remix]) value object.

    ``SecretReference.create()`` enforces every grammar. Derived copies
    (``with_namespace``, ``with_remix``) only validate the part that changed
    and skip re-validation of the rest through ``model_construct``.
    """

    ref: str
    version: int = Field(strict=True)
    namespace: Optional[str] = None
    remix: Optional[Remix] = None

    model_config = {"frozen": True}

    @field_validator("ref")
    @classmethod
    def check_ref(cls, v: str) -> str:
        return validate_ref(v)

    @field_validator("version")
    @classmethod
    def check_version(cls, v: int) -> int:
        return validate_version(v)

    @field_validator("namespace")
    @classmethod
    def check_namespace(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return validate_namespace(v)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        ref: str,
        version: int,
        namespace: Optional[str] = None,
        remix_message: Optional[str] = None,
        remix_iterations: Optional[int] = None,
    ) -> "SecretReference":
        """Build a fully validated reference.

        Args:
            ref: Secret id.
            version: Secret version, ``0 <= version < 65535``.
            namespace: Optional namespace path (up to four segments).
            remix_message: Remix message; requires ``remix_iterations``.
            remix_iterations: Remix iteration count; requires ``remix_message``.

        Raises:
            InvalidReferenceError: If any part violates its grammar.
        """
        if (remix_message is None) != (remix_iterations is None):
            raise InvalidReferenceError(
                "Remix message and iterations must be given together"
            )
        try:
            remix = None
            if remix_message is not None:
                remix = Remix(message=remix_message, iterations=remix_iterations)
            return cls(ref=ref, version=version, namespace=namespace, remix=remix)
        except ValidationError as err:
            raise InvalidReferenceError(
                f"Invalid secret reference: {err.errors()[0]['msg']}"
            ) from err

    @staticmethod
    def encode(ref: str, version: int) -> str:
        """Encode ``ref`` and ``version`` as ``ref:00005``."""
        return encode_ref(ref, version)

    @classmethod
    def decode(cls, value: str) -> "SecretReference":
        """Decode a ``ref:version`` string.

        Raises:
            InvalidReferenceError: If the separator is missing or either
                part is malformed.
        """
        if not isinstance(value, str) or ":" not in value:
            raise InvalidReferenceError("Invalid secret key reference")
        ref, _, version = value.partition(":")
        if not DIGITS_PATTERN.fullmatch(version):
            raise InvalidReferenceError(f"Invalid secret version: {version!r}")
        return cls.create(ref, int(version))

    @classmethod
    def parse(cls, value: str) -> "SecretReference":
        """Decode the full canonical form, namespace and remix included."""
        if not isinstance(value, str):
            raise InvalidReferenceError("Invalid secret key reference")
        namespace = None
        body = value
        if "@" in body:
            namespace, _, body = body.partition("@")
        remix_message = remix_iterations = None
        if REMIX_MARKER in body:
            body, _, tail = body.partition(REMIX_MARKER)
            message, sep, iterations = tail.removeprefix(":").rpartition(":")
            if (
                not tail.startswith(":") or not sep
                or not DIGITS_PATTERN.fullmatch(iterations)
            ):
                raise InvalidReferenceError(f"Invalid remix suffix: {tail!r}")
            remix_message, remix_iterations = message, int(iterations)
        base = cls.decode(body)
        return cls.create(
            base.ref, base.version, namespace, remix_message, remix_iterations
        )

    # ------------------------------------------------------------------
    # Derived copies
    # ------------------------------------------------------------------

    def with_namespace(self, namespace: str) -> "SecretReference":
        validate_namespace(namespace)
        return type(self).model_construct(
            ref=self.ref,
            version=self.version,
            namespace=namespace,
            remix=self.remix,
        )

    def with_remix(self, message: str, iterations: int) -> "SecretReference":
        try:
            remix = Remix(message=message, iterations=iterations)
        except ValidationError as err:
            raise InvalidReferenceError(
                f"Invalid remix: {err.errors()[0]['msg']}"
            ) from err
        return type(self).model_construct(
            ref=self.ref,
            version=self.version,
            namespace=self.namespace,
            remix=remix,
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def key_ref(self) -> str:
        """The bare ``ref:00005`` form."""
        return encode_ref(self.ref, self.version)

    def __str__(self) -> str:
        canonical = self.key_ref
        if self.namespace:
            canonical = f"{self.namespace}@{canonical}"
        if self.remix is not None:
            canonical = (
                f"{canonical}{REMIX_MARKER}:"
                f"{self.remix.message}:{self.remix.iterations}"
            )
        return canonical
