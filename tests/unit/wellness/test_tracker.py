"""Tests for the tracker facade: edits, medication lifecycle and import/export."""

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from wellness.domain.models import NO_DATA_NAME, SideEffectRecord, default_document
from wellness.services.portability import InvalidImportError
from wellness.services.result import Result
from wellness.services.side_effects import SideEffectResolver
from wellness.services.sync import SyncClient, SyncStatus
from wellness.services.tracker import WellnessTracker

DAY = "2026-03-15"


class MemoryGateway:
    def __init__(self, *, push_ok: bool = True) -> None:
        self.document: dict[str, Any] = default_document()
        self.push_ok = push_ok
        self.pushed: list[dict[str, Any]] = []

    async def fetch(self) -> Result[dict[str, Any], Exception]:
        return Result.ok(self.document)

    async def push(self, document: dict[str, Any]) -> Result[str, Exception]:
        self.pushed.append(document)
        if not self.push_ok:
            return Result.err(httpx.ConnectError("offline"))
        self.document = document
        return Result.ok("2026-03-15T10:00:00+00:00")


class TableSource:
    source_name = "table"

    TABLE = {
        "Sertraline": [SideEffectRecord(name="Headache"), SideEffectRecord(name="Nausea")],
        "Lisinopril": [SideEffectRecord(name="Headache"), SideEffectRecord(name="Cough")],
    }

    async def lookup(self, medication: str) -> Result[list[SideEffectRecord], Exception]:
        if medication in self.TABLE:
            return Result.ok(self.TABLE[medication])
        return Result.err(LookupError(medication))


@pytest.fixture
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture
async def tracker(gateway: MemoryGateway) -> AsyncIterator[WellnessTracker]:
    sync = SyncClient(gateway, debounce_seconds=0.01, saving_linger_seconds=0)  # type: ignore[arg-type]
    tracker = WellnessTracker(sync, SideEffectResolver([TableSource()]), selected_date=DAY)
    async with sync.session():
        yield tracker


async def test_headache_shared_by_two_medications(tracker: WellnessTracker) -> None:
    await tracker.add_medication("Sertraline", start_date="2026-01-01")
    await tracker.add_medication("Lisinopril", start_date="2026-01-01")

    name, headache = tracker.side_effects()[0]

    assert name == "Headache"
    assert headache.count == 2
    assert headache.medications == ["Sertraline", "Lisinopril"]


async def test_unknown_medication_gets_sentinel(tracker: WellnessTracker) -> None:
    medication = await tracker.add_medication("Xyzzyplex")

    assert [r.name for r in medication.side_effects] == [NO_DATA_NAME]
    assert "Xyzzyplex" in medication.side_effects[0].description


async def test_blank_name_rejected_before_lookup(tracker: WellnessTracker) -> None:
    with pytest.raises(ValueError, match="name is required"):
        await tracker.add_medication("   ")

    assert tracker.state.medications == []


async def test_edits_are_pushed(tracker: WellnessTracker, gateway: MemoryGateway) -> None:
    tracker.set_assessment("sleep", 3)
    tracker.set_severity("Nausea", 2)
    tracker.set_journal("Rough night")
    tracker.set_notes("Ask about timing")
    tracker.toggle_theme()
    await tracker.sync.flush()

    pushed = gateway.pushed[-1]
    assert pushed["dailyAssessments"][DAY]["sleep"] == 3
    assert pushed["sideEffectSeverities"] == {DAY: {"Nausea": 2}}
    assert pushed["journal"] == {DAY: "Rough night"}
    assert pushed["notes"] == "Ask about timing"
    assert pushed["theme"] == "dark"
    assert tracker.sync.status is SyncStatus.READY


async def test_daily_view_follows_selected_date(tracker: WellnessTracker) -> None:
    tracker.set_assessment("energy", 9)
    tracker.select_date("2026-03-16")

    assert tracker.assessment().energy == 5
    assert tracker.severities() == {}


async def test_ended_medication_moves_to_past(tracker: WellnessTracker) -> None:
    medication = await tracker.add_medication("Sertraline", start_date="2026-01-01")

    tracker.end_medication(medication.id, "2026-03-01")

    assert tracker.current_medications() == []
    assert [m.name for m in tracker.past_medications()] == ["Sertraline"]
    assert tracker.side_effects() == []


async def test_remove_medication(tracker: WellnessTracker) -> None:
    medication = await tracker.add_medication("Sertraline")

    tracker.remove_medication(medication.id)

    assert tracker.state.medications == []


async def test_export(tracker: WellnessTracker) -> None:
    tracker.set_notes("exported")

    filename, text = tracker.export()

    assert filename.startswith("wellness-data-")
    assert filename.endswith(".json")
    assert json.loads(text)["notes"] == "exported"


async def test_import_replaces_document_after_push(
    tracker: WellnessTracker, gateway: MemoryGateway
) -> None:
    imported = {**default_document(), "notes": "imported"}

    assert await tracker.import_document(json.dumps(imported))

    assert tracker.state.notes == "imported"
    assert gateway.document["notes"] == "imported"
    await asyncio.sleep(0.05)
    assert len(gateway.pushed) == 1


async def test_failed_import_push_keeps_working_copy(
    tracker: WellnessTracker, gateway: MemoryGateway
) -> None:
    tracker.set_notes("current")
    await tracker.sync.flush()
    gateway.push_ok = False

    assert not await tracker.import_document(json.dumps({**default_document(), "notes": "new"}))

    assert tracker.state.notes == "current"


async def test_import_rejects_other_files(tracker: WellnessTracker) -> None:
    with pytest.raises(InvalidImportError):
        await tracker.import_document(json.dumps({"foo": 1}))


async def test_import_with_invalid_values_is_an_import_error(
    tracker: WellnessTracker, gateway: MemoryGateway
) -> None:
    bad = {**default_document(), "dailyAssessments": {DAY: {"general": 42}}}

    with pytest.raises(InvalidImportError, match="invalid values"):
        await tracker.import_document(json.dumps(bad))

    assert gateway.pushed == []


async def test_ending_an_ended_medication_schedules_no_push(
    tracker: WellnessTracker, gateway: MemoryGateway
) -> None:
    medication = await tracker.add_medication("Sertraline", start_date="2026-01-01")
    tracker.end_medication(medication.id, "2026-03-01")
    await tracker.sync.flush()
    pushes = len(gateway.pushed)

    tracker.end_medication(medication.id, "2026-03-10")
    await asyncio.sleep(0.05)

    assert len(gateway.pushed) == pushes
    assert tracker.sync.status is SyncStatus.READY
    assert tracker.past_medications()[0].end_date == "2026-03-01"
