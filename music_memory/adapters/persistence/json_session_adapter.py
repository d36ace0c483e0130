"""JSON file-based sort session persistence adapter."""

import json
import logging
from pathlib import Path

from music_memory.config import SESSIONS_FILE, SESSIONS_STORE_KEY
from music_memory.domain.ports import SessionRepositoryPort

logger = logging.getLogger("music_memory.persistence")


class JsonSessionAdapter(SessionRepositoryPort):
    """Keeps the whole session list under one key of a single JSON file."""

    def __init__(self, path: str = SESSIONS_FILE, key: str = SESSIONS_STORE_KEY):
        self.path = Path(path)
        self.key = key

    def read_all(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read sort sessions from %s", self.path)
            self._quarantine()
            return []

        records = payload.get(self.key, []) if isinstance(payload, dict) else []
        if not isinstance(records, list):
            logger.warning("Ignoring malformed %r entry in %s", self.key, self.path)
            return []
        return [r for r in records if isinstance(r, dict)]

    def write_all(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = {self.key: records}
        temp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        temp_path.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def exists(self) -> bool:
        return self.path.exists()

    def _quarantine(self) -> None:
        # Keep the unreadable file around instead of overwriting it on the next save.
        backup = self.path.with_suffix(self.path.suffix + ".corrupt")
        try:
            self.path.replace(backup)
            logger.warning("Moved unreadable session file to %s", backup)
        except OSError:
            logger.exception("Could not move unreadable session file %s aside", self.path)
