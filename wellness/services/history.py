"""Trend series derived from the patient document for the history view."""

from datetime import date, timedelta

from pydantic import BaseModel

from wellness.domain.models import METRIC_KEYS, PatientState

HISTORY_RANGES = (7, 14, 30, 90)


class HistoryRow(BaseModel):
    """One assessed day: the four metrics, their mean and the mean recorded severity."""

    date: str
    general: int
    energy: int
    concentration: int
    sleep: int
    overall: float
    avg_severity: float


class TimelineEntry(BaseModel):
    label: str
    start: str
    end: str
    active: bool


def _today(today: date | None) -> date:
    return today or date.today()


def history_rows(state: PatientState, days: int = 30, today: date | None = None) -> list[HistoryRow]:
    """Assessed days within the last ``days`` days, oldest first."""
    if days not in HISTORY_RANGES:
        raise ValueError(f"History range must be one of {HISTORY_RANGES}, got {days}")
    cutoff = (_today(today) - timedelta(days=days)).isoformat()

    rows = []
    for day in sorted(state.daily_assessments):
        if day < cutoff:
            continue
        assessment = state.daily_assessments[day]
        severities = list(state.side_effect_severities.get(day, {}).values())
        avg_severity = round(sum(severities) / len(severities), 1) if severities else 0.0
        rows.append(
            HistoryRow(
                date=day,
                general=assessment.general,
                energy=assessment.energy,
                concentration=assessment.concentration,
                sleep=assessment.sleep,
                overall=assessment.overall,
                avg_severity=avg_severity,
            )
        )
    return rows


def weekly_profile(rows: list[HistoryRow]) -> dict[str, float]:
    """Per-metric average over the last seven rows; empty when there is no history."""
    last_week = rows[-7:]
    if not last_week:
        return {}
    return {
        key: round(sum(getattr(row, key) for row in last_week) / len(last_week), 1)
        for key in METRIC_KEYS
    }


def medication_timeline(state: PatientState, today: date | None = None) -> list[TimelineEntry]:
    """Start/end span per medication; current ones run until today."""
    end_of_today = _today(today).isoformat()
    return [
        TimelineEntry(
            label=f"{med.name} ({med.dosage})" if med.dosage else med.name,
            start=med.start_date,
            end=med.end_date or end_of_today,
            active=med.end_date is None,
        )
        for med in state.medications
    ]
