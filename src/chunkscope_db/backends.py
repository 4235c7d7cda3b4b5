"""
Storage backend selection.

``snapshot`` opens a snapshot directory; any other value is treated as a
``package.module:factory`` path whose callable receives the storage path and
returns a Storage.
"""

import importlib
from pathlib import Path
from typing import Union

import structlog

from chunkscope_core.exceptions import InvalidArgumentError
from chunkscope_db.interfaces import Storage
from chunkscope_db.snapshot import open_snapshot

logger = structlog.get_logger(__name__)


def load_factory(spec: str):
    """Resolve a ``package.module:factory`` string to a callable."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise InvalidArgumentError(
            f"Invalid backend '{spec}'. Use 'snapshot' or 'package.module:factory'",
            error_code="ARG_004",
            details={"backend": spec},
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InvalidArgumentError(
            f"Cannot import backend module '{module_name}': {e}",
            error_code="ARG_004",
            details={"backend": spec},
            original_exception=e,
        ) from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise InvalidArgumentError(
            f"Backend factory '{attr}' not found in module '{module_name}'",
            error_code="ARG_004",
            details={"backend": spec},
        )
    return factory


def open_storage(path: Union[str, Path], backend: str = "snapshot") -> Storage:
    """
    Open storage at ``path`` with the configured backend, read-only.

    Raises:
        InvalidArgumentError: If the backend cannot be resolved or returns
            something other than a Storage.
        StorageIOError: If the storage cannot be opened.
    """
    if backend == "snapshot":
        storage = open_snapshot(path)
    else:
        storage = load_factory(backend)(Path(path))
        if not isinstance(storage, Storage):
            raise InvalidArgumentError(
                f"Backend '{backend}' returned {type(storage).__name__}, expected Storage",
                error_code="ARG_004",
                details={"backend": backend},
            )

    logger.info("storage_opened", path=str(path), backend=backend)
    return storage
