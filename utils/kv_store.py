"""
Persistent Key-Value Store

Durable key -> string / key -> string-list storage used by the chain store.
The file-backed store keeps every key in one JSON document and replaces that
document atomically on each write, so a crash mid-write leaves the previous
version intact.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Base class for string / string-list stores."""

    def get(self, key: str) -> Any:
        """Return the raw stored value, or None if the key is absent."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def get_string(self, key: str) -> Optional[str]:
        """
        Return the string stored under key.

        Raises:
            TypeError: If the stored value is not a string
        """
        value = self.get(key)
        if value is not None and not isinstance(value, str):
            raise TypeError(f"Value for key '{key}' is {type(value).__name__}, expected str")
        return value

    def set_string(self, key: str, value: str) -> None:
        self.set(key, value)

    def get_string_list(self, key: str) -> Optional[List[str]]:
        """
        Return the string list stored under key.

        Raises:
            TypeError: If the stored value is not a list of strings
        """
        value = self.get(key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise TypeError(f"Value for key '{key}' is not a list of strings")
        return list(value)

    def set_string_list(self, key: str, values: List[str]) -> None:
        self.set(key, list(values))


class MemoryStore(KeyValueStore):
    """In-process store. Survives nothing; used by tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            value = self._data.get(key)
            return list(value) if isinstance(value, list) else value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = list(value) if isinstance(value, list) else value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    File-backed store holding all keys in a single JSON object.

    Each call re-reads the file; nothing is cached between calls.
    """

    def __init__(self, path: str):
        """
        Initialize file store.

        Args:
            path: Location of the JSON document. Parent directories are created on first write.
        """
        self.path = os.path.abspath(path)
        self._lock = threading.Lock()
        logger.debug(f"JsonFileStore initialized at {self.path}")

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Store file {self.path} is not valid JSON ({e}); treating as empty")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} does not hold a JSON object; treating as empty")
            return {}
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".kv_", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Any:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key not in data:
                return
            del data[key]
            self._write_all(data)
