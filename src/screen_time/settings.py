"""JSON-file persistence for the break threshold."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import DEFAULT_THRESHOLD_MINUTES
from .errors import PersistenceFailure

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    def load_threshold_minutes(self) -> int:
        ...

    def save_threshold_minutes(self, minutes: int) -> None:
        ...


class PersistedSettings(BaseModel):
    break_threshold_minutes: int = Field(
        default=DEFAULT_THRESHOLD_MINUTES, alias="breakThresholdMinutes"
    )
    auto_start: bool = Field(default=True, alias="autoStart")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JsonSettingsStore:
    """Reads and writes ``settings.json`` in the application data directory."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> PersistedSettings:
        if not self.path.exists():
            return PersistedSettings()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailure(f"Cannot read {self.path}: {exc}") from exc
        try:
            return PersistedSettings.model_validate_json(raw)
        except ValidationError as exc:
            raise PersistenceFailure(f"Invalid settings in {self.path}: {exc}") from exc

    def write(self, settings: PersistedSettings) -> None:
        payload = settings.model_dump_json(by_alias=True, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".settings-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write {self.path}: {exc}") from exc
        logger.debug("Saved settings to %s", self.path)

    def load_threshold_minutes(self) -> int:
        return self.read().break_threshold_minutes

    def save_threshold_minutes(self, minutes: int) -> None:
        try:
            current = self.read()
        except PersistenceFailure:
            logger.warning("Overwriting unreadable settings file %s", self.path)
            current = PersistedSettings()
        self.write(current.model_copy(update={"break_threshold_minutes": minutes}))
