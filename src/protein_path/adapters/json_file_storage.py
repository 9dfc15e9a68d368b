"""JSON file key-value storage for local client state."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from protein_path.services.goals import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class JsonFileStorage(KeyValueStorage):
    """Stores string values in a single JSON object on disk."""

    path: Path

    def get_item(self, key: str) -> str | None:
        """Return the stored value for a key."""
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing the file atomically.

        An unreadable file is replaced by one holding only the new entry.
        """
        try:
            entries = self._read()
        except (OSError, ValueError) as exc:
            logger.warning(
                "Overwriting unreadable storage file: %s",
                exc,
                extra={"path": str(self.path)},
            )
            entries = {}
        entries[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data
