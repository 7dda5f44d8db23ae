"""
Domain models for the patient document.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; the JSON form uses camelCase keys so that
documents written by earlier browser clients load unchanged.
"""

from datetime import date
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wellness.domain.lookup import describe, title_case

logger = structlog.get_logger(__name__)

NO_DATA_NAME = "No data found"
METRIC_KEYS = ("general", "energy", "concentration", "sleep")

# Placeholder names that older clients wrote for broken records
_UNUSABLE_NAMES = frozenset({"", "undefined", "null", "none"})


class Theme(str, Enum):
    """Display theme preference stored with the document."""

    LIGHT = "light"
    DARK = "dark"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SideEffectRecord(_CamelModel):
    """A single side effect as stored on a medication."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


def normalize_side_effect(item: Any) -> SideEffectRecord | None:
    """
    Convert any stored side-effect representation into a record.

    Older documents stored bare strings ("headache"); newer ones store
    ``{"name", "description"}`` mappings. Legacy strings are title-cased and
    described so they merge with structured records of the same effect.
    Returns None for records without a usable name.
    """
    if isinstance(item, SideEffectRecord):
        name, description = item.name, item.description
    elif isinstance(item, str):
        name, description = title_case(item.strip()), describe(item.strip())
    elif isinstance(item, dict):
        raw_name = item.get("name")
        name = raw_name.strip() if isinstance(raw_name, str) else ""
        description = item.get("description") or ""
        if not isinstance(description, str):
            description = str(description)
    else:
        name, description = "", ""

    if name.lower() in _UNUSABLE_NAMES:
        return None
    return SideEffectRecord(name=name, description=description)


def normalize_side_effects(items: Any) -> list[SideEffectRecord]:
    """Normalize a stored side-effect list, dropping unusable entries."""
    if not isinstance(items, list | tuple):
        return []
    records = []
    for item in items:
        record = normalize_side_effect(item)
        if record is None:
            logger.debug("side_effect_record_skipped", record=repr(item))
            continue
        records.append(record)
    return records


def normalize_term(term: str) -> SideEffectRecord:
    """Display record for a raw MedDRA term: title-cased name plus known description."""
    return SideEffectRecord(name=title_case(term), description=describe(term))


def no_data_record(medication: str) -> SideEffectRecord:
    """Sentinel record for a medication no source knows about."""
    return SideEffectRecord(
        name=NO_DATA_NAME,
        description=f'Could not find side effects for "{medication}". Try the generic drug name.',
    )


class DailyAssessment(_CamelModel):
    """Self-reported wellness scores for one day."""

    general: int = Field(default=5, ge=1, le=10)
    energy: int = Field(default=5, ge=1, le=10)
    concentration: int = Field(default=5, ge=1, le=10)
    sleep: int = Field(default=5, ge=1, le=10)

    @property
    def overall(self) -> float:
        return round(sum(getattr(self, key) for key in METRIC_KEYS) / len(METRIC_KEYS), 1)


class Medication(_CamelModel):
    """A medication the patient takes or has taken."""

    id: str
    name: str
    dosage: str = ""
    start_date: str
    end_date: str | None = None
    side_effects: list[SideEffectRecord] = Field(default_factory=list)

    @field_validator("side_effects", mode="before")
    @classmethod
    def _normalize_side_effects(cls, v: Any) -> list[SideEffectRecord]:
        return normalize_side_effects(v)

    @field_validator("end_date", mode="before")
    @classmethod
    def _blank_end_date_is_active(cls, v: Any) -> Any:
        return v or None

    @field_validator("dosage", mode="before")
    @classmethod
    def _missing_dosage_is_blank(cls, v: Any) -> Any:
        return v or ""

    def is_active_on(self, on_date: str | date) -> bool:
        """True if the medication has no end date or ends on/after ``on_date``."""
        if self.end_date is None:
            return True
        return self.end_date >= _iso(on_date)


class PatientState(_CamelModel):
    """The single root document shared by the client and the server store."""

    daily_assessments: dict[str, DailyAssessment] = Field(default_factory=dict)
    medications: list[Medication] = Field(default_factory=list)
    side_effect_severities: dict[str, dict[str, int]] = Field(default_factory=dict)
    journal: dict[str, str] = Field(default_factory=dict)
    notes: str = ""
    theme: Theme = Theme.LIGHT

    @field_validator("side_effect_severities", mode="before")
    @classmethod
    def _drop_unusable_severities(cls, v: Any) -> Any:
        """Ratings outside 0-5 are dropped one by one; the rest of the document loads."""
        if not isinstance(v, dict):
            return v
        kept: dict[Any, Any] = {}
        for day, effects in v.items():
            if not isinstance(effects, dict):
                logger.warning("severity_day_dropped", day=day, value=repr(effects))
                continue
            kept[day] = {}
            for effect, severity in effects.items():
                if _is_severity(severity):
                    kept[day][effect] = severity
                else:
                    logger.warning(
                        "severity_dropped", day=day, effect=effect, severity=repr(severity)
                    )
        return kept

    @field_validator("theme", mode="before")
    @classmethod
    def _unknown_theme_is_light(cls, v: Any) -> Any:
        if isinstance(v, Theme) or v in [theme.value for theme in Theme]:
            return v
        logger.warning("theme_reset", theme=repr(v))
        return Theme.LIGHT

    def to_document(self) -> dict[str, Any]:
        """JSON-ready document in the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "PatientState":
        return cls.model_validate(document)


class AggregatedSideEffect(BaseModel):
    """One side effect combined across all medications active on a date."""

    medications: list[str] = Field(default_factory=list)
    count: int = 0
    description: str = ""


def default_document() -> dict[str, Any]:
    """A fresh, empty patient document."""
    return PatientState().to_document()


def is_patient_document(value: Any) -> bool:
    """Minimal shape check applied to documents read from disk or the network."""
    return isinstance(value, dict) and "dailyAssessments" in value


def _is_severity(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 5


def _iso(value: str | date) -> str:
    return value.isoformat() if isinstance(value, date) else value
