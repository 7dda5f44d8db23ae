"""Tests for the history series and for export/import of the document."""

import json
from datetime import date

import pytest

from wellness.domain.models import DailyAssessment, Medication, PatientState, default_document
from wellness.services.history import history_rows, medication_timeline, weekly_profile
from wellness.services.portability import (
    InvalidImportError,
    export_document,
    export_filename,
    parse_import,
)

TODAY = date(2026, 3, 20)


def _state() -> PatientState:
    return PatientState(
        daily_assessments={
            "2026-03-12": DailyAssessment(general=2),
            "2026-03-13": DailyAssessment(general=7, energy=4, concentration=6, sleep=8),
            "2026-03-19": DailyAssessment(),
        },
        side_effect_severities={"2026-03-13": {"Nausea": 3, "Headache": 0, "Rash": 2}},
        medications=[
            Medication(id="1", name="Sertraline", dosage="50 mg", start_date="2026-01-01"),
            Medication(id="2", name="Ibuprofen", start_date="2026-02-01", end_date="2026-02-10"),
        ],
    )


class TestHistory:
    def test_rows_within_range_oldest_first(self) -> None:
        rows = history_rows(_state(), days=7, today=TODAY)

        assert [row.date for row in rows] == ["2026-03-13", "2026-03-19"]

    def test_row_carries_overall_and_mean_severity(self) -> None:
        row = history_rows(_state(), days=7, today=TODAY)[0]

        assert row.overall == 6.2
        # zero severities count toward the mean
        assert row.avg_severity == round(5 / 3, 1)

    def test_day_without_severities_has_zero_mean(self) -> None:
        row = history_rows(_state(), days=7, today=TODAY)[1]

        assert row.avg_severity == 0.0

    def test_longer_range_includes_older_days(self) -> None:
        assert len(history_rows(_state(), days=14, today=TODAY)) == 3

    def test_unsupported_range(self) -> None:
        with pytest.raises(ValueError, match="History range"):
            history_rows(_state(), days=10, today=TODAY)

    def test_weekly_profile(self) -> None:
        rows = history_rows(_state(), days=7, today=TODAY)

        assert weekly_profile(rows) == {
            "general": 6.0,
            "energy": 4.5,
            "concentration": 5.5,
            "sleep": 6.5,
        }
        assert weekly_profile([]) == {}

    def test_medication_timeline(self) -> None:
        timeline = medication_timeline(_state(), today=TODAY)

        assert [(e.label, e.start, e.end, e.active) for e in timeline] == [
            ("Sertraline (50 mg)", "2026-01-01", "2026-03-20", True),
            ("Ibuprofen", "2026-02-01", "2026-02-10", False),
        ]


class TestPortability:
    def test_export_filename(self) -> None:
        assert export_filename(TODAY) == "wellness-data-2026-03-20.json"

    def test_export_then_import_gives_same_document(self) -> None:
        state = _state()

        text = export_document(state)

        assert text.startswith("{\n  ")
        assert parse_import(text) == state.to_document()
        assert PatientState.from_document(parse_import(text)) == state

    def test_import_rejects_non_json(self) -> None:
        with pytest.raises(InvalidImportError, match="not valid JSON"):
            parse_import("{ nope")

    @pytest.mark.parametrize("payload", [[], {"medications": []}, "text", 42])
    def test_import_rejects_wrong_shape(self, payload: object) -> None:
        with pytest.raises(InvalidImportError, match="Invalid file format"):
            parse_import(json.dumps(payload))

    def test_import_accepts_minimal_document(self) -> None:
        assert parse_import(json.dumps(default_document())) == default_document()
