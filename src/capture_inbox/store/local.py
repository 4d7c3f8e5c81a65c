"""Local JSON cache of the capture collection.

Reads and writes are synchronous and short. A cache that cannot be decoded
is moved aside to ``<name>.corrupt`` and the collection starts empty.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from capture_inbox.errors import PersistenceCorrupt
from capture_inbox.models.capture import Capture

logger = logging.getLogger(__name__)


class LocalCache:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> list[Capture]:
        """Read the cache file strictly.

        Returns an empty list when the file does not exist. Individual rows
        that fail validation are skipped.

        Raises:
            PersistenceCorrupt: The file is unreadable or not a JSON list.
        """
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PersistenceCorrupt(f"Cannot decode capture cache {self.path}") from exc
        if not isinstance(payload, list):
            raise PersistenceCorrupt(f"Capture cache {self.path} is not a JSON list")

        captures = []
        for row in payload:
            try:
                captures.append(Capture.model_validate(row))
            except ValidationError:
                logger.warning("Skipping undecodable cached capture in %s", self.path)
        return captures

    def load(self) -> list[Capture]:
        """Read the cache, recovering from corruption with an empty collection."""
        try:
            return self.read()
        except PersistenceCorrupt:
            quarantine = self.path.with_name(self.path.name + ".corrupt")
            logger.error(
                "Capture cache is corrupt, starting empty (moved to %s)", quarantine, exc_info=True
            )
            try:
                os.replace(self.path, quarantine)
            except OSError:
                logger.error("Could not move corrupt cache %s aside", self.path, exc_info=True)
            return []

    def save(self, captures: list[Capture]) -> None:
        """Write the whole collection, replacing the file atomically.

        Write failures are logged; the in-memory collection stays authoritative.
        """
        rows = [c.model_dump(mode="json") for c in captures]
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError:
            logger.error("Failed to write capture cache %s", self.path, exc_info=True)
