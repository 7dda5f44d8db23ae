"""
Side-effect resolution across an ordered chain of lookup sources.

Sources are tried strictly in order and the first one that produces data
wins:

1. the wellness API proxy (client side only)
2. openFDA adverse event counts for the exact medication name
3. openFDA again with salt/release-form tokens stripped from the name
4. the built-in table of common medications
5. an explicit "No data found" record

Every failure inside a source is reported as ``Result.err`` and simply moves
the chain on; nothing here raises to the caller.
"""

import json
from typing import Protocol

import httpx
import structlog

from wellness.config import ResolverConfig, SyncConfig
from wellness.domain.lookup import EXCLUDED_TERMS, fallback_terms, simplify_medication_name
from wellness.domain.models import (
    SideEffectRecord,
    no_data_record,
    normalize_side_effects,
    normalize_term,
)
from wellness.services.result import Result

logger = structlog.get_logger(__name__)

LookupResult = Result[list[SideEffectRecord], Exception]


class SideEffectLookupError(RuntimeError):
    """Base error for a source that could not produce side effects."""


class NoSideEffectDataError(SideEffectLookupError):
    """The source answered but had nothing usable for this medication."""


# Failures that mean "try the next source"
_TRANSIENT_ERRORS = (httpx.HTTPError, json.JSONDecodeError, SideEffectLookupError)


class SideEffectSource(Protocol):
    """
    One tier of the lookup chain.

    Single async method returning a Result so a failing tier never raises.
    """

    source_name: str

    async def lookup(self, medication: str) -> LookupResult:
        """
        Look up side effects for a medication name.

        Returns:
            Result containing a non-empty list of records, or the error that
            made this source give up.
        """
        ...


class ProxySideEffectSource:
    """Asks the wellness API host, which runs its own openFDA/fallback chain."""

    source_name = "proxy"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        server_url: str,
        api_key: str,
        api_key_header: str = "x-api-key",
    ) -> None:
        self._client = http_client
        self._url = f"{server_url.rstrip('/')}/api/side-effects"
        self._headers = {api_key_header: api_key}
        self.logger = logger.bind(source=self.source_name)

    async def lookup(self, medication: str) -> LookupResult:
        try:
            response = await self._client.post(
                self._url, json={"medication": medication}, headers=self._headers
            )
            response.raise_for_status()
            payload = response.json()
            raw = payload.get("sideEffects") if isinstance(payload, dict) else None
            records = normalize_side_effects(raw)
            if not records:
                raise NoSideEffectDataError(f"proxy returned no side effects for {medication!r}")
            return Result.ok(records)
        except _TRANSIENT_ERRORS as e:
            self.logger.warning("side_effect_lookup_failed", medication=medication, error=str(e))
            return Result.err(e)


class OpenFDASideEffectSource:
    """
    Most frequently reported reactions for a product in the openFDA event API.

    Regulatory terms such as "drug ineffective" or "death" are not symptoms
    the patient can rate, so they are dropped before the result is capped.
    """

    source_name = "openfda"

    def __init__(self, http_client: httpx.AsyncClient, config: ResolverConfig | None = None) -> None:
        self._client = http_client
        self.config = config or ResolverConfig()
        self.logger = logger.bind(source=self.source_name)

    async def fetch(self, medication: str) -> list[SideEffectRecord]:
        """Query openFDA; raises on transport, HTTP, parse or empty-result failures."""
        response = await self._client.get(
            self.config.openfda_url,
            params={
                "search": f'patient.drug.medicinalproduct:"{medication.upper()}"',
                "count": "patient.reaction.reactionmeddrapt.exact",
                "limit": str(self.config.query_limit),
            },
        )
        response.raise_for_status()
        data = response.json()

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or not results:
            raise NoSideEffectDataError(f"openFDA has no reports for {medication!r}")

        terms = [
            entry["term"].lower()
            for entry in results
            if isinstance(entry, dict) and isinstance(entry.get("term"), str)
        ]
        reportable = [term for term in terms if term not in EXCLUDED_TERMS]
        if not reportable:
            raise NoSideEffectDataError(f"openFDA reports for {medication!r} list no symptoms")

        return [normalize_term(term) for term in reportable[: self.config.max_side_effects]]

    async def lookup(self, medication: str) -> LookupResult:
        try:
            records = await self.fetch(medication)
            self.logger.info("openfda_lookup_succeeded", medication=medication, count=len(records))
            return Result.ok(records)
        except _TRANSIENT_ERRORS as e:
            self.logger.warning("side_effect_lookup_failed", medication=medication, error=str(e))
            return Result.err(e)


class SimplifiedNameSource:
    """Retries openFDA with form tokens removed ("Bupropion HCl XR" -> "Bupropion")."""

    source_name = "openfda_simplified"

    def __init__(self, openfda: OpenFDASideEffectSource) -> None:
        self._openfda = openfda

    async def lookup(self, medication: str) -> LookupResult:
        simplified = simplify_medication_name(medication)
        if not simplified or simplified == medication:
            return Result.err(NoSideEffectDataError(f"nothing to simplify in {medication!r}"))
        return await self._openfda.lookup(simplified)


class FallbackTableSource:
    """Offline knowledge for common medications, by name then simplified name."""

    source_name = "fallback_table"

    async def lookup(self, medication: str) -> LookupResult:
        terms = fallback_terms(medication) or fallback_terms(simplify_medication_name(medication))
        if not terms:
            return Result.err(NoSideEffectDataError(f"{medication!r} is not in the fallback table"))
        return Result.ok([normalize_term(term) for term in terms])


class SideEffectResolver:
    """
    Runs the lookup chain for a medication name.

    Tiers run one after another; there is no parallelism and no retry within a
    tier. The result is never empty: when every source fails the sentinel
    "No data found" record is returned instead.
    """

    def __init__(self, sources: list[SideEffectSource]) -> None:
        self.sources = sources
        self.logger = logger.bind(component="side_effect_resolver")

    async def resolve(self, medication: str) -> list[SideEffectRecord]:
        name = medication.strip()

        for source in self.sources:
            result = await source.lookup(name)
            if result.is_ok():
                records = result.unwrap()
                self.logger.info(
                    "side_effects_resolved",
                    medication=name,
                    source=source.source_name,
                    count=len(records),
                )
                return records
            self.logger.debug(
                "side_effect_tier_skipped",
                medication=name,
                source=source.source_name,
                error=str(result.unwrap_err()),
            )

        self.logger.warning("side_effects_not_found", medication=name)
        return [no_data_record(name)]


def build_server_resolver(
    http_client: httpx.AsyncClient, config: ResolverConfig | None = None
) -> SideEffectResolver:
    """Chain used by the API host: openFDA, simplified openFDA, fallback table."""
    openfda = OpenFDASideEffectSource(http_client, config)
    return SideEffectResolver([openfda, SimplifiedNameSource(openfda), FallbackTableSource()])


def build_client_resolver(
    http_client: httpx.AsyncClient,
    sync_config: SyncConfig,
    resolver_config: ResolverConfig | None = None,
) -> SideEffectResolver:
    """Chain used by the client: the API proxy first, then the server chain locally."""
    proxy = ProxySideEffectSource(http_client, sync_config.server_url, sync_config.api_key)
    server_chain = build_server_resolver(http_client, resolver_config)
    return SideEffectResolver([proxy, *server_chain.sources])
