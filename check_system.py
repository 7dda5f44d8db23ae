"""
End-to-end system check for the wellness tracker.

This script exercises:
1. Configuration loading and validation
2. Persistent store round trip and backup fallback
3. Side-effect resolution through the API host
4. Client sync (load, debounced push) and the aggregated side-effect view

The API runs in-process on a temporary data directory; openFDA is queried for
real when the network is available and the built-in table is used otherwise.

Run with: python check_system.py
"""

import asyncio
import os
import tempfile
from pathlib import Path

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.http.app import create_app
from wellness.config import (
    APIConfig,
    AppConfig,
    LoggingConfig,
    ResolverConfig,
    StoreConfig,
    SyncConfig,
    get_config,
    print_config_summary,
)
from wellness.services.side_effects import build_server_resolver
from wellness.services.store import PatientStore
from wellness.services.tracker import WellnessTracker

console = Console()

SERVER_URL = "http://wellness.local"
API_KEY = "system-check-key"


def build_config(data_dir: Path) -> AppConfig:
    return AppConfig(
        store=StoreConfig(data_dir=data_dir),
        api=APIConfig(api_key=API_KEY, allowed_origin="http://localhost:5173"),
        resolver=ResolverConfig(timeout_seconds=5.0),
        sync=SyncConfig(
            server_url=SERVER_URL,
            api_key=API_KEY,
            debounce_seconds=0.2,
            saving_linger_seconds=0.0,
            legacy_cache_path=data_dir / "local-storage.json",
        ),
        logging=LoggingConfig(format="console"),
    )


async def check_configuration() -> bool:
    """Check that configuration loads from the environment."""

    console.print(Panel("Checking Configuration", style="blue"))

    if not os.getenv("API_KEY"):
        console.print("API_KEY is not set; skipping environment config check", style="yellow")
        return True

    try:
        get_config()
        print_config_summary()
        console.print("Configuration loaded successfully", style="green")
        return True
    except Exception as e:
        console.print(f"Configuration check failed: {e}", style="red")
        return False


async def check_store(data_dir: Path) -> bool:
    """Two writes, corrupt primary, expect the first document back."""

    console.print(Panel("Checking Persistent Store", style="blue"))

    store = PatientStore(StoreConfig(data_dir=data_dir / "store-check"))
    first = {"dailyAssessments": {}, "medications": [], "notes": "first"}
    second = {"dailyAssessments": {}, "medications": [], "notes": "second"}

    store.write(first)
    store.write(second)
    if store.read() != second:
        console.print("Round trip returned a different document", style="red")
        return False

    store.data_file.write_text("{ not json", encoding="utf-8")
    if store.read() != first:
        console.print("Backup fallback did not return the first document", style="red")
        return False

    console.print("Round trip and backup fallback behave as expected", style="green")
    return True


async def check_tracker(config: AppConfig) -> bool:
    """Add medications through the API host and show the aggregated view."""

    console.print(Panel("Checking Sync and Side-Effect Aggregation", style="blue"))

    async with httpx.AsyncClient(timeout=config.resolver.timeout_seconds) as fda_client:
        app = create_app(config, resolver=build_server_resolver(fda_client, config.resolver))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport, base_url=SERVER_URL, timeout=config.sync.timeout_seconds
        ) as client:
            tracker = WellnessTracker.from_config(client, config)

            async with tracker.sync.session():
                for name in ("Sertraline", "Lisinopril", "Xyzzyplex"):
                    medication = await tracker.add_medication(name, dosage="10 mg")
                    console.print(f"Added {medication.name}: {len(medication.side_effects)} effects")
                tracker.set_assessment("energy", 7)
                tracker.set_severity("Headache", 2)

            table = Table(title=f"Side effects on {tracker.selected_date}")
            table.add_column("Effect", style="cyan")
            table.add_column("Count", style="magenta")
            table.add_column("Medications", style="green")
            table.add_column("Severity", style="yellow")

            severities = tracker.severities()
            for name, aggregated in tracker.side_effects()[:15]:
                table.add_row(
                    name,
                    str(aggregated.count),
                    ", ".join(aggregated.medications),
                    str(severities.get(name, 0)),
                )
            console.print(table)

    stored = PatientStore(config.store).read()
    if len(stored["medications"]) != 3:
        console.print("Server document does not hold the added medications", style="red")
        return False

    console.print("Debounced push reached the server store", style="green")
    return True


async def run_all_checks() -> None:
    """Run all system checks."""

    console.print(Panel("Wellness Tracker - System Check", style="bold blue"))

    with tempfile.TemporaryDirectory() as tmp:
        data_dir = Path(tmp)
        config = build_config(data_dir)

        checks = [
            ("Configuration", check_configuration()),
            ("Persistent Store", check_store(data_dir)),
            ("Sync and Aggregation", check_tracker(config)),
        ]

        results = []
        for check_name, check in checks:
            console.print(f"\n{'=' * 60}")
            try:
                results.append((check_name, await check))
            except Exception as e:
                console.print(f"{check_name} failed with exception: {e}", style="red")
                results.append((check_name, False))

    console.print(f"\n{'=' * 60}")
    summary_table = Table(title="Check Results")
    summary_table.add_column("Check", style="cyan")
    summary_table.add_column("Result", style="white")

    passed = 0
    for check_name, result in results:
        summary_table.add_row(check_name, "PASSED" if result else "FAILED")
        passed += int(result)

    console.print(summary_table)
    console.print(f"\nResults: {passed}/{len(results)} checks passed")


if __name__ == "__main__":
    try:
        asyncio.run(run_all_checks())
    except KeyboardInterrupt:
        console.print("\nChecks stopped by user", style="yellow")
