"""Durable key-value file.

A JSON object on disk holding one value per key, the server-side counterpart
of the browser's local storage. Writes go through a temporary file and an
atomic rename.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from evalecole.core.exceptions import StoreError

logger = logging.getLogger(__name__)


class KeyValueFile:
    """Thread-safe JSON key-value file."""

    def __init__(self, path: Path):
        """Initialize KeyValueFile.

        Args:
            path: Location of the JSON file. It is created on first write.
        """
        self.path = Path(path)
        self.lock = threading.RLock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to read %s: %s", self.path, exc)
            raise StoreError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            raise StoreError(f"Cannot write {self.path}: {exc}") from exc

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self.lock:
            return self._read().get(key, default)

    def contains(self, key: str) -> bool:
        with self.lock:
            return key in self._read()

    def set(self, key: str, value: Any) -> None:
        with self.lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self.lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)
