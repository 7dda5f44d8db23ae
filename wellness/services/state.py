"""
Pure update functions over the patient document, and the container holding it.

Every update takes a ``PatientState`` and returns a new one; nothing is
mutated in place. ``StateContainer`` owns the current document for a session
and notifies subscribers (the sync client) after each change.
"""

import uuid
from collections.abc import Callable
from datetime import date
from typing import Any, Concatenate, ParamSpec

import structlog

from wellness.domain.models import (
    METRIC_KEYS,
    DailyAssessment,
    Medication,
    PatientState,
    SideEffectRecord,
    Theme,
)

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
Listener = Callable[[PatientState], None]


def today() -> str:
    return date.today().isoformat()


def set_assessment(state: PatientState, on_date: str, metric: str, value: int) -> PatientState:
    """Set one wellness metric for a date, starting from the neutral assessment if none exists."""
    if metric not in METRIC_KEYS:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {', '.join(METRIC_KEYS)}")
    current = state.daily_assessments.get(on_date, DailyAssessment())
    updated = DailyAssessment.model_validate({**current.model_dump(), metric: value})
    return state.model_copy(
        update={"daily_assessments": {**state.daily_assessments, on_date: updated}}
    )


def set_severity(state: PatientState, on_date: str, effect: str, severity: int) -> PatientState:
    """Record how strongly an effect was felt on a date (0 clears it)."""
    if not 0 <= severity <= 5:
        raise ValueError(f"Severity must be between 0 and 5, got {severity}")
    day = {**state.side_effect_severities.get(on_date, {}), effect: severity}
    return state.model_copy(
        update={"side_effect_severities": {**state.side_effect_severities, on_date: day}}
    )


def set_journal(state: PatientState, on_date: str, text: str) -> PatientState:
    return state.model_copy(update={"journal": {**state.journal, on_date: text}})


def set_notes(state: PatientState, text: str) -> PatientState:
    return state.model_copy(update={"notes": text})


def toggle_theme(state: PatientState) -> PatientState:
    theme = Theme.LIGHT if state.theme is Theme.DARK else Theme.DARK
    return state.model_copy(update={"theme": theme})


def new_medication(
    name: str,
    side_effects: list[SideEffectRecord],
    *,
    dosage: str = "",
    start_date: str | None = None,
    end_date: str | None = None,
) -> Medication:
    """Build a medication record with a fresh id."""
    if not name.strip():
        raise ValueError("Medication name is required")
    return Medication(
        id=uuid.uuid4().hex,
        name=name.strip(),
        dosage=dosage.strip(),
        start_date=start_date or today(),
        end_date=end_date or None,
        side_effects=side_effects,
    )


def add_medication(state: PatientState, medication: Medication) -> PatientState:
    return state.model_copy(update={"medications": [*state.medications, medication]})


def _find(state: PatientState, medication_id: str) -> Medication:
    for med in state.medications:
        if med.id == medication_id:
            return med
    raise ValueError(f"No medication with id {medication_id!r}")


def update_medication(state: PatientState, medication_id: str, **changes: Any) -> PatientState:
    """Replace fields of one medication, keeping its position and id."""
    if "id" in changes:
        raise ValueError("Medication id cannot be changed")
    target = _find(state, medication_id)
    updated = Medication.model_validate({**target.model_dump(), **changes})
    medications = [updated if med.id == medication_id else med for med in state.medications]
    return state.model_copy(update={"medications": medications})


def end_medication(
    state: PatientState, medication_id: str, end_date: str | None = None
) -> PatientState:
    """Mark a medication as stopped. An existing end date is kept."""
    target = _find(state, medication_id)
    if target.end_date is not None:
        logger.info("medication_already_ended", medication_id=medication_id, end_date=target.end_date)
        return state
    return update_medication(state, medication_id, end_date=end_date or today())


def remove_medication(state: PatientState, medication_id: str) -> PatientState:
    _find(state, medication_id)
    medications = [med for med in state.medications if med.id != medication_id]
    return state.model_copy(update={"medications": medications})


class StateContainer:
    """Holds the session's working copy of the document."""

    def __init__(self, state: PatientState | None = None) -> None:
        self._state = state or PatientState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> PatientState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def replace(self, state: PatientState) -> None:
        """Swap in a document without notifying subscribers (initial load)."""
        self._state = state

    def apply(
        self,
        update: Callable[Concatenate[PatientState, P], PatientState],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> PatientState:
        """
        Run a pure update against the current document and notify subscribers.

        Updates that return the document unchanged (the same object) notify nobody.
        """
        updated = update(self._state, *args, **kwargs)
        if updated is self._state:
            return updated
        self._state = updated
        for listener in self._listeners:
            listener(self._state)
        return self._state
