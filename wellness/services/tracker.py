"""
Tracker service tying the sync client, the side-effect resolver and the
aggregation view together.

This is the surface a UI talks to: every edit is a pure update applied to the
shared state container (which schedules a debounced push), adding a medication
resolves its side effects first, and the side-effect view for the selected
date is recomputed on demand.
"""

from datetime import date

import httpx
import structlog
from pydantic import ValidationError

from wellness.config import AppConfig, get_config
from wellness.domain.models import DailyAssessment, Medication, PatientState
from wellness.services import state as updates
from wellness.services.aggregation import (
    AggregatedView,
    aggregate_side_effects,
    current_medications,
    past_medications,
    severities_for,
)
from wellness.services.portability import (
    InvalidImportError,
    export_document,
    export_filename,
    parse_import,
)
from wellness.services.side_effects import SideEffectResolver, build_client_resolver
from wellness.services.sync import SyncClient

logger = structlog.get_logger(__name__)


class WellnessTracker:
    """Session-level facade over the patient document."""

    def __init__(
        self,
        sync: SyncClient,
        resolver: SideEffectResolver,
        selected_date: str | None = None,
    ) -> None:
        self.sync = sync
        self.resolver = resolver
        self.selected_date = selected_date or updates.today()
        self.logger = logger.bind(component="wellness_tracker")

    @classmethod
    def from_config(
        cls, http_client: httpx.AsyncClient, config: AppConfig | None = None
    ) -> "WellnessTracker":
        config = config or get_config()
        return cls(
            SyncClient.from_config(http_client, config.sync),
            build_client_resolver(http_client, config.sync, config.resolver),
        )

    @property
    def state(self) -> PatientState:
        return self.sync.state

    def select_date(self, on_date: str | date) -> None:
        self.selected_date = on_date.isoformat() if isinstance(on_date, date) else on_date

    # Daily view

    def assessment(self) -> DailyAssessment:
        return self.state.daily_assessments.get(self.selected_date, DailyAssessment())

    def side_effects(self) -> AggregatedView:
        return aggregate_side_effects(self.state.medications, self.selected_date)

    def severities(self) -> dict[str, int]:
        return severities_for(self.state, self.selected_date)

    def set_assessment(self, metric: str, value: int) -> None:
        self.sync.container.apply(updates.set_assessment, self.selected_date, metric, value)

    def set_severity(self, effect: str, severity: int) -> None:
        self.sync.container.apply(updates.set_severity, self.selected_date, effect, severity)

    def set_journal(self, text: str) -> None:
        self.sync.container.apply(updates.set_journal, self.selected_date, text)

    def set_notes(self, text: str) -> None:
        self.sync.container.apply(updates.set_notes, text)

    def toggle_theme(self) -> None:
        self.sync.container.apply(updates.toggle_theme)

    # Medications

    def current_medications(self) -> list[Medication]:
        return current_medications(self.state.medications)

    def past_medications(self) -> list[Medication]:
        return past_medications(self.state.medications)

    async def add_medication(
        self,
        name: str,
        *,
        dosage: str = "",
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Medication:
        """Resolve side effects for ``name`` and append the new medication."""
        if not name.strip():
            raise ValueError("Medication name is required")
        side_effects = await self.resolver.resolve(name)
        medication = updates.new_medication(
            name, side_effects, dosage=dosage, start_date=start_date, end_date=end_date
        )
        self.sync.container.apply(updates.add_medication, medication)
        self.logger.info(
            "medication_added", medication=medication.name, side_effects=len(side_effects)
        )
        return medication

    def end_medication(self, medication_id: str, end_date: str | None = None) -> None:
        self.sync.container.apply(updates.end_medication, medication_id, end_date)

    def remove_medication(self, medication_id: str) -> None:
        self.sync.container.apply(updates.remove_medication, medication_id)

    # Data portability

    def export(self) -> tuple[str, str]:
        """File name and JSON text for downloading the whole document."""
        return export_filename(), export_document(self.state)

    async def import_document(self, text: str) -> bool:
        """
        Replace the server document with an exported file.

        Raises InvalidImportError for files that are not patient documents.
        The working copy is only replaced once the server accepted the import.
        """
        try:
            imported = PatientState.from_document(parse_import(text))
        except ValidationError as e:
            raise InvalidImportError(f"Import file holds invalid values: {e}") from e
        if not await self.sync.push(imported):
            return False
        self.sync.container.replace(imported)
        self.logger.info("document_imported", medications=len(imported.medications))
        return True
