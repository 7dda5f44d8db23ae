"""
Client-side synchronization of the patient document with the API host.

State machine::

    LOADING --load()--> READY --mutation--> SAVING --push done + linger--> READY

The initial load never triggers a push. Every later mutation reschedules a
single debounced push, so a burst of edits (dragging a slider) becomes one
network write carrying the latest document. Status stays SAVING while a
push is pending or in flight. Push failures are logged and dropped; the next
mutation's push is the retry.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from wellness.config import SyncConfig
from wellness.domain.models import PatientState, is_patient_document
from wellness.services.result import Result
from wellness.services.state import StateContainer

logger = structlog.get_logger(__name__)


class SyncStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"


class InvalidServerDocumentError(ValueError):
    """The server answered with something that is not a patient document."""


class Debouncer:
    """
    Runs an async action once a quiet period has passed since the last ``schedule()``.

    Scheduling while a timer is pending cancels and restarts it. An action that
    has already started is never cancelled; it runs to completion while the
    next timer counts down. At most one timer is pending at any time.
    """

    def __init__(self, delay_seconds: float, action: Callable[[], Awaitable[None]]) -> None:
        self.delay_seconds = delay_seconds
        self._action = action
        self._pending: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def busy(self) -> bool:
        """True while a timer is pending or an action is still running."""
        return self._pending is not None or any(not task.done() for task in self._running)

    def schedule(self) -> None:
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._wait_then_fire())
        self._pending = task
        self._running.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "debounced_action_failed",
                error=str(error),
                exc_info=(type(error), error, error.__traceback__),
            )

    def cancel(self) -> None:
        """Drop the pending timer, if any. Running actions are left alone."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def flush(self) -> None:
        """Fire a pending action now and wait for every started action to finish."""
        if self._pending is not None:
            self.cancel()
            await self._action()
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        # From here on the action belongs to no timer and cannot be cancelled by schedule()
        self._pending = None
        await self._action()


class DocumentGateway:
    """HTTP access to ``/api/data`` on the API host."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        server_url: str,
        api_key: str,
        api_key_header: str = "x-api-key",
    ) -> None:
        self._client = http_client
        self._url = f"{server_url.rstrip('/')}/api/data"
        self._headers = {api_key_header: api_key}
        self.logger = logger.bind(component="document_gateway")

    async def fetch(self) -> Result[dict[str, Any], Exception]:
        try:
            response = await self._client.get(self._url, headers=self._headers)
            response.raise_for_status()
            document = response.json()
            if not is_patient_document(document):
                raise InvalidServerDocumentError("server returned a malformed patient document")
            return Result.ok(document)
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("document_fetch_failed", error=str(e))
            return Result.err(e)

    async def push(self, document: dict[str, Any]) -> Result[str, Exception]:
        """PUT the full document; the ok value is the server's ``savedAt`` timestamp."""
        try:
            response = await self._client.put(self._url, json=document, headers=self._headers)
            response.raise_for_status()
            body = response.json()
            return Result.ok(str(body.get("savedAt", "")) if isinstance(body, dict) else "")
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("document_push_failed", error=str(e))
            return Result.err(e)


class LegacyCache:
    """
    Key/value JSON file standing in for the browser local storage of old clients.

    Old clients kept the whole document as a JSON string under one key.
    """

    def __init__(self, path: Path, key: str = "wellness-tracker-data") -> None:
        self.path = Path(path)
        self.key = key
        self.logger = logger.bind(component="legacy_cache", path=str(self.path))

    def _entries(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.warning("legacy_cache_unreadable", error=str(e))
            return {}
        return entries if isinstance(entries, dict) else {}

    def read(self) -> dict[str, Any] | None:
        raw = self._entries().get(self.key)
        if raw is None:
            return None
        try:
            document = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError as e:
            self.logger.warning("legacy_document_unparseable", error=str(e))
            return None
        return document if isinstance(document, dict) else None

    def remove(self) -> None:
        entries = self._entries()
        if self.key not in entries:
            return
        del entries[self.key]
        if entries:
            self.path.write_text(json.dumps(entries), encoding="utf-8")
        else:
            self.path.unlink(missing_ok=True)


class SyncClient:
    """
    Keeps the session's working copy and the server document consistent.

    The working copy lives in a ``StateContainer``; the client subscribes to it
    and schedules a debounced push after every change once loading is done.
    """

    def __init__(
        self,
        gateway: DocumentGateway,
        legacy_cache: LegacyCache | None = None,
        container: StateContainer | None = None,
        *,
        debounce_seconds: float = 0.6,
        saving_linger_seconds: float = 0.3,
    ) -> None:
        self.gateway = gateway
        self.legacy_cache = legacy_cache
        self.container = container or StateContainer()
        self.saving_linger_seconds = saving_linger_seconds
        self.logger = logger.bind(component="sync_client")

        self._status = SyncStatus.LOADING
        self._status_listeners: list[Callable[[SyncStatus], None]] = []
        self._pushes_in_flight = 0
        self._read_only = False
        self._debouncer = Debouncer(debounce_seconds, self._push_latest)
        self.container.subscribe(self._on_change)

    @classmethod
    def from_config(cls, http_client: httpx.AsyncClient, config: SyncConfig) -> "SyncClient":
        return cls(
            DocumentGateway(http_client, config.server_url, config.api_key),
            LegacyCache(config.legacy_cache_path, config.legacy_cache_key),
            debounce_seconds=config.debounce_seconds,
            saving_linger_seconds=config.saving_linger_seconds,
        )

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def read_only(self) -> bool:
        """True when the server holds a document this client could not read; nothing is pushed."""
        return self._read_only

    @property
    def state(self) -> PatientState:
        return self.container.state

    def on_status_change(self, listener: Callable[[SyncStatus], None]) -> None:
        self._status_listeners.append(listener)

    def _set_status(self, status: SyncStatus) -> None:
        if status is self._status:
            return
        self._status = status
        for listener in self._status_listeners:
            listener(status)

    def _parse(self, document: dict[str, Any], origin: str) -> PatientState | None:
        try:
            return PatientState.from_document(document)
        except ValidationError as e:
            self.logger.warning("document_rejected", origin=origin, error=str(e))
            return None

    async def _migrate_legacy(self) -> PatientState | None:
        if self.legacy_cache is None:
            return None
        document = self.legacy_cache.read()
        if document is None:
            return None
        state = self._parse(document, origin="legacy_cache")
        if state is None:
            return None

        if await self.push(state):
            self.legacy_cache.remove()
            self.logger.info("legacy_document_migrated")
        else:
            self.logger.warning("legacy_document_kept", reason="push failed")
        return state

    async def load(self) -> PatientState:
        """Adopt the server document, else a migrated legacy document, else the default.

        The legacy cache and the default document are only used when the server
        returned no patient document at all. A server document that fails
        validation puts the client in read-only mode instead.
        """
        if self._status is not SyncStatus.LOADING:
            raise RuntimeError("SyncClient.load() may only run once")

        state: PatientState | None = None
        fetched = await self.gateway.fetch()
        if fetched.is_ok():
            state = self._parse(fetched.unwrap(), origin="server")
            if state is None:
                # Server data this client cannot read is never overwritten
                self._read_only = True
                self.logger.error("server_document_unreadable", pushes="blocked")
        else:
            state = await self._migrate_legacy()
        if state is None:
            self.logger.info("default_document_adopted")
            state = PatientState()

        self.container.replace(state)
        self._set_status(SyncStatus.READY)
        self.logger.info("sync_ready", medications=len(state.medications))
        return state

    def _on_change(self, state: PatientState) -> None:
        if self._status is SyncStatus.LOADING:
            self.logger.warning("mutation_before_load_ignored")
            return
        if self._read_only:
            self.logger.warning("mutation_not_synced", reason="read_only")
            return
        self._set_status(SyncStatus.SAVING)
        self._debouncer.schedule()

    async def push(self, state: PatientState | None = None) -> bool:
        """Send a document to the server. Failures are logged and reported as False."""
        if self._read_only:
            self.logger.warning("push_blocked", reason="read_only")
            return False
        document = (state or self.container.state).to_document()
        result = await self.gateway.push(document)
        if result.is_ok():
            self.logger.info("document_pushed", saved_at=result.unwrap())
            return True
        return False

    async def _push_latest(self) -> None:
        self._pushes_in_flight += 1
        try:
            await self.push()
        finally:
            self._pushes_in_flight -= 1
        if self.saving_linger_seconds:
            await asyncio.sleep(self.saving_linger_seconds)
        if not self._debouncer.pending and not self._pushes_in_flight:
            self._set_status(SyncStatus.READY)

    async def flush(self) -> None:
        """Push any pending change immediately and wait for in-flight pushes."""
        await self._debouncer.flush()
        self._set_status(SyncStatus.READY)

    @asynccontextmanager
    async def session(self) -> AsyncIterator["SyncClient"]:
        """
        Load on entry, flush pending changes on exit.

        Ensures a debounced push is not lost when the session ends inside the
        quiet period.
        """
        await self.load()
        try:
            yield self
        finally:
            await self.flush()
