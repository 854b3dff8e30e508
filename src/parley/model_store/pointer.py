"""Persisted reference to the active model file."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

ACTIVE_MODEL_KEY = "translation_model_path"


class ActiveModelPointer:
    """JSON-file record of the active model path. Last writer wins."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Path | None:
        with self._lock:
            value = self._read_all().get(ACTIVE_MODEL_KEY)
        if not value:
            return None
        return Path(str(value))

    def set(self, model_path: Path) -> None:
        with self._lock:
            data = self._read_all()
            data[ACTIVE_MODEL_KEY] = str(model_path)
            self._write_all(data)

    def clear(self) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(ACTIVE_MODEL_KEY, None) is not None:
                self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
