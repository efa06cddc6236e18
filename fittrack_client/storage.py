"""Key-value storage backends for client state that must survive restarts.

Values are plain strings, mirroring browser local storage; callers encode
structured values as JSON themselves.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol


class KeyValueStorage(Protocol):
    """Minimal string key-value store used by the token store and settings."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """Storage persisted as a single JSON object on disk.

    Reads are served from an in-memory copy that is reloaded when the file's
    mtime/size change. Writes replace the file atomically (temp file + rename)
    with owner-only permissions since the file holds an access token.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = Path(os.path.expanduser(str(path)))
        self._cached: dict[str, str] | None = None
        self._file_mtime: float | None = None
        self._file_size: int | None = None

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._load())
        if data.get(key) == value:
            return
        data[key] = value
        self._atomic_write(data)

    def remove(self, key: str) -> None:
        data = dict(self._load())
        if key not in data:
            return
        del data[key]
        self._atomic_write(data)

    def keys(self) -> list[str]:
        return list(self._load())

    def _load(self) -> dict[str, str]:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            self._cached, self._file_mtime, self._file_size = {}, None, None
            return self._cached
        if (
            self._cached is not None
            and self._file_mtime == st.st_mtime
            and self._file_size == st.st_size
        ):
            return self._cached
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"💥 Storage load error path={self.path}: {e}")
            raw = {}
        if not isinstance(raw, dict):
            logging.warning(f"⚠️ Ignoring non-object storage file path={self.path}")
            raw = {}
        self._cached = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        self._file_mtime = st.st_mtime
        self._file_size = st.st_size
        return self._cached

    def _atomic_write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                json.dump(data, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
                temp_path = tmp.name
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except (OSError, ValueError) as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            logging.error(f"💥 Atomic storage save failed: {type(e).__name__}")
            raise
        st = os.stat(self.path)
        self._cached = data
        self._file_mtime = st.st_mtime
        self._file_size = st.st_size
        logging.debug(f"💾 Storage saved keys={len(data)}")


__all__ = ["KeyValueStorage", "MemoryStorage", "JsonFileStorage"]
