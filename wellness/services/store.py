"""
Durable storage for the single patient document.

Each write first copies the current document to a backup file, then replaces
the primary atomically. Only one backup generation is kept. Reads fall back
to the backup, then to an empty default document, so a corrupt file never
breaks loading.

There is no locking: the store assumes a single writer and the last write wins.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import structlog

from wellness.config import StoreConfig
from wellness.domain.models import default_document, is_patient_document
from wellness.services.result import Result

logger = structlog.get_logger(__name__)


class CorruptDocumentError(ValueError):
    """A stored file exists but does not hold a patient document."""


class PatientStore:
    """JSON file store with backup-before-overwrite semantics."""

    def __init__(self, config: StoreConfig | None = None) -> None:
        self.config = config or StoreConfig()
        self.logger = logger.bind(component="patient_store", data_file=str(self.data_file))

    @property
    def data_file(self) -> Path:
        return self.config.data_file

    @property
    def backup_file(self) -> Path:
        return self.config.backup_file

    def exists(self) -> bool:
        return self.data_file.exists()

    def _ensure_data_dir(self) -> None:
        self.config.data_dir.mkdir(parents=True, exist_ok=True)

    def _load(self, path: Path) -> Result[dict[str, Any], Exception]:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
            if not is_patient_document(document):
                raise CorruptDocumentError(f"{path} does not contain a patient document")
            return Result.ok(document)
        except (OSError, ValueError) as e:
            return Result.err(e)

    def read(self) -> dict[str, Any]:
        """Return the stored document, the backup if the primary is unusable, or the default."""
        if not self.exists():
            return default_document()

        primary = self._load(self.data_file)
        if primary.is_ok():
            return primary.unwrap()
        self.logger.error("patient_document_unreadable", error=str(primary.unwrap_err()))

        if self.backup_file.exists():
            backup = self._load(self.backup_file)
            if backup.is_ok():
                self.logger.warning("patient_document_restored_from_backup")
                return backup.unwrap()
            self.logger.error("patient_backup_unreadable", error=str(backup.unwrap_err()))

        return default_document()

    def read_backup(self) -> dict[str, Any] | None:
        """The previous document version, if a readable backup exists."""
        if not self.backup_file.exists():
            return None
        backup = self._load(self.backup_file)
        return backup.unwrap() if backup.is_ok() else None

    def write(self, document: dict[str, Any]) -> None:
        """Back up the current document, then atomically replace it with ``document``."""
        self._ensure_data_dir()

        if self.exists():
            try:
                shutil.copyfile(self.data_file, self.backup_file)
            except OSError as e:
                self.logger.warning("patient_backup_failed", error=str(e))

        payload = json.dumps(document, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.config.data_dir, prefix=f".{self.data_file.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self.data_file)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self.logger.info("patient_document_written", bytes=len(payload))
