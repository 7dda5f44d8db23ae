"""
Side-effect aggregation across the medications active on a date.

The view is rebuilt from scratch on every call. With tens of medications and
about a dozen effects each this is cheap, and a full rebuild can never show a
removed or ended medication's contribution.
"""

from collections.abc import Iterable
from datetime import date

from wellness.domain.models import AggregatedSideEffect, Medication, PatientState

AggregatedView = list[tuple[str, AggregatedSideEffect]]


def active_medications(medications: Iterable[Medication], on_date: str | date) -> list[Medication]:
    """Medications with no end date, or ending on or after ``on_date``."""
    return [med for med in medications if med.is_active_on(on_date)]


def current_medications(medications: Iterable[Medication]) -> list[Medication]:
    return [med for med in medications if med.end_date is None]


def past_medications(medications: Iterable[Medication]) -> list[Medication]:
    return [med for med in medications if med.end_date is not None]


def _sort_key(item: tuple[str, AggregatedSideEffect]) -> tuple[int, str, str]:
    name, aggregated = item
    return (-aggregated.count, name.casefold(), name)


def aggregate_side_effects(medications: Iterable[Medication], on_date: str | date) -> AggregatedView:
    """
    Combine the side effects of every medication active on ``on_date``.

    Returns ``(effect_name, AggregatedSideEffect)`` pairs, most widely shared
    effect first; equal counts are ordered by name. Records are already
    normalized by the model, so legacy string entries and structured entries
    for the same effect land on the same key.
    """
    combined: dict[str, AggregatedSideEffect] = {}

    for med in active_medications(medications, on_date):
        for record in med.side_effects:
            if not record.name:
                continue
            entry = combined.setdefault(record.name, AggregatedSideEffect())
            entry.medications.append(med.name)
            entry.count += 1
            if len(record.description) > len(entry.description):
                entry.description = record.description

    return sorted(combined.items(), key=_sort_key)


def severities_for(state: PatientState, on_date: str | date) -> dict[str, int]:
    """Severity annotations recorded for a date, keyed by effect name."""
    key = on_date.isoformat() if isinstance(on_date, date) else on_date
    return dict(state.side_effect_severities.get(key, {}))


def annotated_side_effects(
    state: PatientState, on_date: str | date
) -> list[tuple[str, AggregatedSideEffect, int]]:
    """Aggregated view for a date with each effect's recorded severity (0 when unset)."""
    severities = severities_for(state, on_date)
    return [
        (name, aggregated, severities.get(name, 0))
        for name, aggregated in aggregate_side_effects(state.medications, on_date)
    ]
