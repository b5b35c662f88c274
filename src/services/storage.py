"""
src/services/storage.py — string key/value stores for session and audit data.

FileStorage keeps every key in one JSON object on disk, the way the browser
keeps localStorage. MemoryStorage is the same contract without a file.
"""


import json
from pathlib import Path
from typing import Dict, Optional

from loguru import logger


class MemoryStorage:

    def __init__(self, initial: Optional[Dict[str, str]] = None):

        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:

        return self._data.get(key)

    def set(self, key: str, value: str) -> None:

        self._data[key] = value

    def remove(self, key: str) -> None:

        self._data.pop(key, None)


class FileStorage(MemoryStorage):

    def __init__(self, path: Path):

        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> Dict[str, str]:

        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} must hold a JSON object")

        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        logger.debug("Storage flushed to {}", self.path)

    def set(self, key: str, value: str) -> None:

        super().set(key, value)
        self._flush()

    def remove(self, key: str) -> None:

        super().remove(key)
        self._flush()
