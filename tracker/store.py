"""Local persistence slot for the application list."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from .models import Application

logger = logging.getLogger(__name__)

STORAGE_KEY = "jobs.applications.v1"


class LocalStorage:
    """Key-value slots backed by one JSON file per key."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read storage slot {path}: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        """Overwrite a slot; readers see either the old or the new content."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class ApplicationStore:
    """Mirrors the whole application list into a single storage slot."""

    def __init__(self, storage: LocalStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> list[Application]:
        """Read the persisted list; anything unreadable yields an empty list."""
        raw = self.storage.get_item(self.key)
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Storage slot {self.key} is corrupted, starting empty: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Storage slot {self.key} does not hold a list, starting empty")
            return []

        applications = []
        for index, item in enumerate(data):
            try:
                applications.append(Application.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored application #{index}: {e.error_count()} errors")

        logger.debug(f"Loaded {len(applications)} applications from {self.key}")
        return applications

    def save(self, applications: Iterable[Application]) -> None:
        """Serialize and overwrite the slot. Last write wins."""
        payload = [app.to_storage() for app in applications]
        self.storage.set_item(self.key, json.dumps(payload, ensure_ascii=False, indent=2))
        logger.debug(f"Saved {len(payload)} applications to {self.key}")

    def clear(self) -> None:
        self.storage.remove_item(self.key)
        logger.info(f"Cleared storage slot {self.key}")
