"""Durable client storage for the session token and cached user.

Two entries only: ``sessionToken`` (opaque string) and ``user`` (JSON text).
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

SESSION_TOKEN_KEY = "sessionToken"  # noqa: S105
USER_KEY = "user"


class SessionStorage(ABC):
    """Key-value store read and written by the SessionManager only."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set_many(self, values: dict[str, str | None]) -> None:
        """Write all entries at once. None removes the entry."""

    def clear(self) -> None:
        self.set_many({SESSION_TOKEN_KEY: None, USER_KEY: None})


class MemorySessionStorage(SessionStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set_many(self, values: dict[str, str | None]) -> None:
        updated = dict(self._values)
        for key, value in values.items():
            if value is None:
                updated.pop(key, None)
            else:
                updated[key] = value
        self._values = updated


class FileSessionStorage(SessionStorage):
    """JSON file storage. Writes go to a temp file and are moved into place."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_many(self, values: dict[str, str | None]) -> None:
        data = self._read()
        for key, value in values.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        self._write(data)

    def _read(self) -> dict[str, object]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            # A corrupt file holds no usable session
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def open_session_storage(path: str | Path | None) -> SessionStorage:
    """File storage when a path is configured, memory otherwise."""
    return FileSessionStorage(path) if path else MemorySessionStorage()
