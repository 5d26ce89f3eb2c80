"""Lazily read text content of files referenced by the configuration."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from .errors import ConfigArgumentError, ConfigFileError

LOGGER = logging.getLogger(__name__)

_UNSET = object()


def read_text_file(path: Path) -> str:
    """Read the whole file, keeping line endings and surrounding whitespace untouched.

    Files are decoded as UTF-8 regardless of the platform locale. A leading
    byte-order mark is not stripped and stays part of the returned text.
    """
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


class DeferredFileText:
    """Compute-once accessor for the text of a configured file path.

    The file is read on the first call to :meth:`resolve` and the content is
    cached for the lifetime of the instance. Concurrent first calls are
    serialized so the file is read exactly once.
    """

    def __init__(
        self,
        path: str | None,
        *,
        field_name: str,
        base_directory: Path | None = None,
        reader: Callable[[Path], str] = read_text_file,
    ) -> None:
        self._path = path
        self._field_name = field_name
        self._base_directory = base_directory
        self._reader = reader
        self._lock = threading.Lock()
        self._value: object = _UNSET

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def field_name(self) -> str:
        return self._field_name

    @property
    def is_resolved(self) -> bool:
        return self._value is not _UNSET

    def resolve(self) -> str:
        """Return the file content, reading it on first use.

        Raises:
          ConfigArgumentError: If no path is configured for the field.
          ConfigFileError: If the file cannot be opened or read.
        """
        value = self._value
        if value is not _UNSET:
            return value  # type: ignore[return-value]
        with self._lock:
            if self._value is _UNSET:
                self._value = self._read()
            return self._value  # type: ignore[return-value]

    def _read(self) -> str:
        if not self._path or not self._path.strip():
            raise ConfigArgumentError(
                f"{self._field_name} must point to a file, but no path is set."
            )
        resolved_path = self._resolve_path()
        try:
            text = self._reader(resolved_path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigFileError(
                f"Failed to read {self._field_name} from {resolved_path}: {exc}"
            ) from exc
        LOGGER.debug(
            "Loaded %s from %s (%d characters)", self._field_name, resolved_path, len(text)
        )
        return text

    def _resolve_path(self) -> Path:
        candidate = Path(self._path or "")
        if candidate.is_absolute() or self._base_directory is None:
            return candidate
        return self._base_directory / candidate

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "pending"
        return f"DeferredFileText(field_name={self._field_name!r}, path={self._path!r}, {state})"
