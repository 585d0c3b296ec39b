"""
Secrets Providers: key sizes and provider descriptors.

A provider names one root directory and one fixed key size. Any object
implementing ``SecretsProvider`` (an ``enum.Enum``, a model instance) can back
a StorageEngine; ``ProviderDescriptor`` is the validated default.

Providers can be declared in a JSON manifest::

    {"providers": [{"id": "app", "path": "secrets/app", "key_size": 32}]}
"""
import logging
from enum import IntEnum
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

import orjson
from pydantic import BaseModel, ValidationError, field_validator

from .buffers import SECRET_KEY_TYPES, SecretKey
from .exceptions import ProviderConfigError
from .reference import validate_ref

logger = logging.getLogger("secrets_kms.providers")


class KeySize(IntEnum):
    """Supported secret key lengths, each bound to one buffer variant."""

    BYTES_16 = 16
    BYTES_20 = 20
    BYTES_24 = 24
    BYTES_32 = 32
    BYTES_40 = 40
    BYTES_64 = 64

    def buffer_type(self) -> type[SecretKey]:
        return SECRET_KEY_TYPES[self.value]


@runtime_checkable
class SecretsProvider(Protocol):
    """Contract of a provider descriptor."""

    def get_id(self) -> str:
        ...

    def resolve_path(self) -> str:
        ...

    def get_key_size(self) -> KeySize:
        ...


class ProviderDescriptor(BaseModel):
    """Validated provider: identity, root directory and key size."""

    id: str
    path: str
    key_size: KeySize

    model_config = {"frozen": True}

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        return validate_ref(v)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v or "\0" in v:
            raise ValueError("Provider path cannot be empty")
        return v

    def get_id(self) -> str:
        return self.id

    def resolve_path(self) -> str:
        return str(Path(self.path).expanduser())

    def get_key_size(self) -> KeySize:
        return self.key_size


def load_providers(manifest: Union[str, Path]) -> dict[str, ProviderDescriptor]:
    """Load provider descriptors from a JSON manifest.

    Relative provider paths are resolved against the manifest directory.

    Args:
        manifest: Path to the JSON manifest file.

    Returns:
        Mapping of provider id to ProviderDescriptor.

    Raises:
        ProviderConfigError: If the manifest cannot be read or parsed, an
            entry is invalid, or a provider id is declared twice.
    """
    manifest = Path(manifest)
    try:
        document = orjson.loads(manifest.read_bytes())
    except OSError as err:
        raise ProviderConfigError(
            f"Cannot read providers manifest {manifest}: {err}"
        ) from err
    except orjson.JSONDecodeError as err:
        raise ProviderConfigError(
            f"Malformed providers manifest {manifest}: {err}"
        ) from err

    entries = document.get("providers") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise ProviderConfigError(
            f"Providers manifest {manifest} must contain a 'providers' list"
        )

    providers: dict[str, ProviderDescriptor] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ProviderConfigError(f"Provider entry #{index} must be an object")
        path = entry.get("path")
        if isinstance(path, str) and path and not Path(path).expanduser().is_absolute():
            entry = {**entry, "path": str(manifest.parent / path)}
        try:
            descriptor = ProviderDescriptor(**entry)
        except ValidationError as err:
            raise ProviderConfigError(
                f"Invalid provider entry #{index}: {err.errors()[0]['msg']}"
            ) from err
        if descriptor.id in providers:
            raise ProviderConfigError(f"Duplicate provider id: {descriptor.id}")
        providers[descriptor.id] = descriptor

    logger.debug(
        "Loaded %d provider(s) from %s: %s",
        len(providers), manifest, sorted(providers),
    )
    return providers
