"""Export and import of the whole patient document as a JSON file."""

import json
from datetime import date
from typing import Any

from wellness.domain.models import PatientState, is_patient_document


class InvalidImportError(ValueError):
    """The imported file is not a patient document."""


def export_filename(on: date | None = None) -> str:
    return f"wellness-data-{(on or date.today()).isoformat()}.json"


def export_document(state: PatientState) -> str:
    """Pretty-printed JSON, the same shape the server stores."""
    return json.dumps(state.to_document(), indent=2, ensure_ascii=False)


def parse_import(text: str) -> dict[str, Any]:
    """Validate an exported file and return its document."""
    try:
        document = json.loads(text)
    except ValueError as e:
        raise InvalidImportError(f"Import file is not valid JSON: {e}") from e
    if not is_patient_document(document):
        raise InvalidImportError("Invalid file format.")
    return document
