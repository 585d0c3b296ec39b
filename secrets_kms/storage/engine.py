"""
Storage Engine: versioned secret files under one provider root directory.

Disk layout::

    <root>[/<namespace>]/<lowercase id>_v<zero-padded version>[<extension>]

Each file holds exactly the provider's key size in raw bytes, with no header.
Existence is file presence; there is no index.

Concurrency Note:
    Writes hold an exclusive lock on the new file and are created with
    ``O_EXCL``. Reads and existence checks are unlocked and best-effort. The
    namespace cache is not locked; register namespaces once at startup when
    several threads share an engine.

Security Note:
    Never log key material. Only log ids, versions, namespaces and paths.
"""
import os
import stat
import logging
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import IO, Iterator, Optional

from ..buffers import SecretKey, is_null_padded
from ..config import StorageConfig
from ..entropy import SecretGenerator
from ..exceptions import (
    FeatureDisabledError,
    InvalidEntropyError,
    NamespaceNotRegisteredError,
    NamespaceResolutionError,
    OverwriteProhibitedError,
    ProviderConfigError,
    SecretDeleteError,
    SecretNotFoundError,
    SecretWriteError,
    StorageRootError,
    UntrustedNamespaceError,
)
from ..providers import KeySize, SecretsProvider
from ..reference import encode_ref, validate_ref, validate_version
from ..trust import TrustGate, qualified_name
from .bindings import NamespaceCache, PathBinding
from .namespace import SecretsNamespace

try:
    import fcntl
except ImportError:  # pragma: no cover - unavailable on Windows.
    fcntl = None

logger = logging.getLogger("secrets_kms.storage")

_POSIX = os.name == "posix"


def _is_accessible(path: Path, directory: bool) -> bool:
    """Readable, and on POSIX traversable when ``directory`` is set."""
    mode = os.R_OK
    if directory and _POSIX:
        mode |= os.X_OK
    return os.access(path, mode)


@contextmanager
def _exclusive_lock(handle: IO[bytes]) -> Iterator[None]:
    if fcntl is not None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
    try:
        yield
    finally:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextmanager
def _scoped_umask(mask: int) -> Iterator[None]:
    previous = os.umask(mask)
    try:
        yield
    finally:
        os.umask(previous)


class StorageEngine:
    """Secret storage rooted at one provider directory.

    Args:
        provider: Descriptor giving the provider id, root path and key size.
        trust_gate: Allow-lists for secret consumers and namespace classes.
        config: Behaviour toggles; defaults to a read-only configuration.

    Raises:
        StorageRootError: If the root is not an absolute, existing, readable
            (and on POSIX traversable) directory.
        ProviderConfigError: If the provider key size is not supported.
    """

    def __init__(
        self,
        provider: SecretsProvider,
        trust_gate: TrustGate,
        config: Optional[StorageConfig] = None,
    ):
        self._provider = provider
        self._trust_gate = trust_gate
        self._config = config or StorageConfig()
        try:
            key_size = KeySize(provider.get_key_size())
        except ValueError as err:
            raise ProviderConfigError(
                f"No secret buffer available for key size: {provider.get_key_size()!r}"
            ) from err
        self._key_size = int(key_size)
        self._buffer_type = key_size.buffer_type()
        self._root = self._resolve_root(provider.resolve_path())
        self._namespaces = NamespaceCache()
        logger.debug(
            "Secrets storage %s ready at %s (key size %d)",
            self.meta_id(), self._root, self._key_size,
        )

    @staticmethod
    def _resolve_root(raw_path: str) -> Path:
        root = Path(raw_path)
        if not root.is_absolute():
            raise StorageRootError(
                f"Secrets root directory must be an absolute path: {raw_path}"
            )
        try:
            mode = root.stat().st_mode
        except OSError as err:
            raise StorageRootError(
                f"Failed to load secrets root directory: {root} ({err.strerror})"
            ) from err
        if not stat.S_ISDIR(mode):
            raise StorageRootError(f"Secrets root is not a directory: {root}")
        if not _is_accessible(root, directory=True):
            raise StorageRootError(f"Secrets root directory is not readable: {root}")
        return root

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def meta_id(self) -> str:
        return self._provider.get_id()

    def trust_gate(self) -> TrustGate:
        """Trust gate used to validate namespace and consumer classes."""
        return self._trust_gate

    @property
    def root(self) -> Path:
        return self._root

    @property
    def key_size(self) -> int:
        return self._key_size

    @property
    def config(self) -> StorageConfig:
        return self._config

    def registered_namespaces(self) -> list[str]:
        return [binding.namespace for binding in self._namespaces.values()]

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def namespace(self, path: str) -> SecretsNamespace:
        """Return a handle for the namespace directory ``path``.

        The first call for a path checks the directory on disk and caches
        the result; later calls for the same path (case-insensitive) are
        served from the cache without touching the filesystem.

        Raises:
            InvalidReferenceError: If ``path`` violates the namespace grammar.
            NamespaceResolutionError: If the directory does not exist, is not
                a directory, is not readable/traversable, or resolves outside
                the provider root.
        """
        handle = SecretsNamespace(self, path)
        if path in self._namespaces:
            return handle

        dir_path = path.replace("/", os.sep) if os.sep != "/" else None
        child = self._root.joinpath(*path.split("/"))
        try:
            mode = child.stat().st_mode
        except OSError as err:
            raise NamespaceResolutionError(
                "Secrets namespace directory resolution failed",
                operation="namespace",
                path=str(child),
                os_error=err,
            ) from err
        if not stat.S_ISDIR(mode) or not _is_accessible(child, directory=True):
            raise NamespaceResolutionError(
                "Secrets namespace is not a readable directory",
                operation="namespace",
                path=str(child),
            )
        if not child.resolve().is_relative_to(self._root.resolve()):
            raise NamespaceResolutionError(
                "Secrets namespace resolves outside the provider root",
                operation="namespace",
                path=str(child),
            )

        self._namespaces.register(PathBinding(
            namespace=path,
            directory_path=dir_path,
            writable=os.access(child, os.W_OK),
        ))
        logger.info("Secrets store[%s]: registered namespace %s", self.meta_id(), path)
        return handle

    def _binding_for(self, namespace: Optional[SecretsNamespace]) -> Optional[PathBinding]:
        if namespace is None:
            return None
        if not self._trust_gate.is_valid_namespace(namespace):
            raise UntrustedNamespaceError(
                f"Unregistered namespace class: {qualified_name(type(namespace))}"
            )
        binding = self._namespaces.get(namespace.ref_id())
        if binding is None:
            raise NamespaceNotRegisteredError(
                f"Secrets store[{self.meta_id()}]: Namespace not registered "
                f"or orphaned: {namespace.ref_id()}"
            )
        return binding

    def _directory_for(self, binding: Optional[PathBinding]) -> Path:
        if binding is None:
            return self._root
        return self._root / binding.relative_path

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def filename(self, secret_id: str, version: int) -> str:
        """Physical filename for ``secret_id`` at ``version``."""
        padding = self._config.version_padding
        return f"{secret_id}_v{version:0{padding}d}".lower() + self._config.extension

    def _resolve_filepath(
        self,
        secret_id: str,
        version: int,
        namespace: Optional[SecretsNamespace],
        operation: str,
    ) -> Path:
        validate_ref(secret_id)
        validate_version(version)
        directory = self._directory_for(self._binding_for(namespace))
        filepath = directory / self.filename(secret_id, version)
        try:
            mode = filepath.stat().st_mode
        except OSError as err:
            raise SecretNotFoundError(
                "Secret file not found or not readable",
                operation=operation,
                path=str(filepath),
                os_error=err,
            ) from err
        if not stat.S_ISREG(mode) or not _is_accessible(filepath, directory=False):
            raise SecretNotFoundError(
                "Secret file not found or not readable",
                operation=operation,
                path=str(filepath),
            )
        return filepath

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def has(
        self,
        secret_id: str,
        version: int,
        namespace: Optional[SecretsNamespace] = None,
    ) -> bool:
        """Check whether a readable secret file exists.

        Never raises: invalid input, unknown namespaces and filesystem errors
        all report ``False``.
        """
        try:
            self._resolve_filepath(secret_id, version, namespace, "has")
        except Exception as err:
            logger.debug("Secret lookup negative for %r v%r: %s", secret_id, version, err)
            return False
        return True

    def load(
        self,
        secret_id: str,
        version: int,
        namespace: Optional[SecretsNamespace] = None,
    ) -> SecretKey:
        """Read a secret into the buffer variant matching the key size.

        Raises:
            InvalidReferenceError: If the id or version is malformed.
            AuthorizationError: If the namespace is untrusted or unregistered.
            SecretNotFoundError: If the file is missing or unreadable.
            InvalidEntropyError: If the content is short or null padded.
        """
        filepath = self._resolve_filepath(secret_id, version, namespace, "load")
        try:
            with open(filepath, "rb") as fp:
                entropy = fp.read(self._key_size)
        except OSError as err:
            raise SecretNotFoundError(
                "Failed to read secret file",
                operation="load",
                path=str(filepath),
                os_error=err,
            ) from err
        return self._buffer_type._create(
            self,
            secret_id,
            version,
            entropy,
            allow_null_padding=self._config.allow_null_padding,
        )

    def store(
        self,
        namespace: Optional[SecretsNamespace],
        secret_id: str,
        version: int,
        generator: SecretGenerator,
    ) -> None:
        """Write fresh entropy from ``generator`` as a new secret file.

        Raises:
            FeatureDisabledError: If writes are disabled.
            InvalidReferenceError: If the id or version is malformed.
            InvalidEntropyError: If generator size or output is invalid.
            AuthorizationError: If the namespace is untrusted or unregistered.
            OverwriteProhibitedError: If the secret file already exists.
            SecretWriteError: If creating, locking or writing fails.
        """
        if not self._config.allow_writes:
            raise FeatureDisabledError(
                f"Secrets writes are disabled for provider {self.meta_id()}"
            )
        validate_ref(secret_id)
        validate_version(version)
        if generator.size() != self._key_size:
            raise InvalidEntropyError(
                f"Generator size does not match key size: expected "
                f"{self._key_size}, got {generator.size()}"
            )

        binding = self._binding_for(namespace)
        filepath = self._directory_for(binding) / self.filename(secret_id, version)
        if os.path.lexists(filepath):
            raise OverwriteProhibitedError(str(filepath))
        if binding is not None and not binding.writable:
            logger.warning(
                "Secrets namespace %s was not writable when registered", binding.namespace
            )

        entropy = self._validate_entropy(generator.generate())
        with _scoped_umask(self._config.umask):
            self._ensure_directory(filepath.parent)
            self._write_entropy(filepath, entropy)

        logger.debug(
            "Secrets store[%s]: stored %s in %s",
            self.meta_id(), encode_ref(secret_id, version),
            binding.namespace if binding else "<root>",
        )

    def delete(
        self,
        secret_id: str,
        version: int,
        namespace: Optional[SecretsNamespace] = None,
    ) -> None:
        """Remove a secret file.

        Raises:
            FeatureDisabledError: If deletes are disabled.
            SecretNotFoundError: If the file is missing or unreadable.
            SecretDeleteError: If the file cannot be removed.
        """
        if not self._config.allow_deletes:
            raise FeatureDisabledError(
                f"Secrets deletes are disabled for provider {self.meta_id()}"
            )
        filepath = self._resolve_filepath(secret_id, version, namespace, "delete")
        try:
            filepath.unlink()
        except OSError as err:
            raise SecretDeleteError(
                "Failed to delete secret file",
                operation="delete",
                path=str(filepath),
                os_error=err,
            ) from err
        logger.debug(
            "Secrets store[%s]: deleted %s",
            self.meta_id(), encode_ref(secret_id, version),
        )

    # ------------------------------------------------------------------
    # Write helpers
    # ------------------------------------------------------------------

    def _validate_entropy(self, entropy: bytes) -> bytes:
        if not isinstance(entropy, (bytes, bytearray)):
            raise InvalidEntropyError("Generator must return bytes")
        if len(entropy) != self._key_size:
            raise InvalidEntropyError(
                f"Generator entropy size mismatch: expected {self._key_size}, "
                f"got {len(entropy)}"
            )
        if not self._config.allow_null_padding and is_null_padded(entropy):
            raise InvalidEntropyError("Entropy must not be null padded")
        return bytes(entropy)

    def _ensure_directory(self, directory: Path) -> None:
        if directory.is_dir():
            return
        try:
            directory.mkdir(
                mode=self._config.dir_permission, parents=True, exist_ok=True
            )
        except OSError as err:
            raise SecretWriteError(
                "Failed to create secrets directory",
                operation="store",
                path=str(directory),
                os_error=err,
            ) from err

    def _write_entropy(self, filepath: Path, entropy: bytes) -> None:
        flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
        try:
            fd = os.open(filepath, flags, self._config.file_permission)
        except FileExistsError as err:
            raise OverwriteProhibitedError(str(filepath)) from err
        except OSError as err:
            raise SecretWriteError(
                "Failed to write secret to file",
                operation="store",
                path=str(filepath),
                os_error=err,
            ) from err

        written = False
        try:
            with os.fdopen(fd, "wb") as fp:
                with _exclusive_lock(fp):
                    fp.write(entropy)
                    fp.flush()
                    os.fsync(fp.fileno())
            os.chmod(filepath, self._config.file_permission)
            written = True
        except OSError as err:
            raise SecretWriteError(
                "Failed to write secret to file",
                operation="store",
                path=str(filepath),
                os_error=err,
            ) from err
        finally:
            if not written:
                # never leave a partial secret file behind
                with suppress(OSError):
                    filepath.unlink()
