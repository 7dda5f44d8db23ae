"""
Tests for the side-effect resolver chain.

Outbound HTTP is served by ``httpx.MockTransport`` handlers so each tier's
success and failure paths can be driven precisely.
"""

from collections.abc import Callable

import httpx
import pytest

from wellness.config import ResolverConfig, SyncConfig
from wellness.domain.lookup import DESCRIPTIONS, FALLBACK_SIDE_EFFECTS
from wellness.domain.models import NO_DATA_NAME, SideEffectRecord, normalize_term
from wellness.services.result import Result
from wellness.services.side_effects import (
    FallbackTableSource,
    NoSideEffectDataError,
    OpenFDASideEffectSource,
    ProxySideEffectSource,
    SideEffectResolver,
    SimplifiedNameSource,
    build_client_resolver,
    build_server_resolver,
)

Handler = Callable[[httpx.Request], httpx.Response]
SERVER_URL = "http://wellness.test"


def _client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _offline(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network unreachable", request=request)


def _fda_results(*terms: str) -> dict[str, object]:
    return {"results": [{"term": term.upper(), "count": 100 - i} for i, term in enumerate(terms)]}


def _searched_product(request: httpx.Request) -> str:
    return request.url.params["search"].split(":", 1)[1].strip('"')


class TestOpenFDASource:
    async def test_terms_are_filtered_capped_and_normalized(self) -> None:
        terms = ["nausea", "drug ineffective", "headache", "death", "off label use"] + [
            f"symptom {i}" for i in range(20)
        ]
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_fda_results(*terms))

        async with _client(handler) as client:
            result = await OpenFDASideEffectSource(client).lookup("Sertraline")

        records = result.unwrap()
        assert len(records) == 12
        assert records[0] == SideEffectRecord(name="Nausea", description=DESCRIPTIONS["nausea"])
        assert records[1].name == "Headache"
        assert records[2] == SideEffectRecord(name="Symptom 0", description="")
        assert all(r.name.lower() not in {"drug ineffective", "death", "off label use"} for r in records)

        params = requests[0].url.params
        assert params["search"] == 'patient.drug.medicinalproduct:"SERTRALINE"'
        assert params["count"] == "patient.reaction.reactionmeddrapt.exact"
        assert params["limit"] == "30"

    async def test_cap_follows_config(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_fda_results("nausea", "headache", "rash"))

        async with _client(handler) as client:
            source = OpenFDASideEffectSource(client, ResolverConfig(max_side_effects=2))
            result = await source.lookup("Sertraline")

        assert [r.name for r in result.unwrap()] == ["Nausea", "Headache"]

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"error": {"code": "NOT_FOUND"}}),
            httpx.Response(200, json={"results": []}),
            httpx.Response(200, json={"meta": {}}),
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json=_fda_results("death", "medication error")),
        ],
    )
    async def test_unusable_responses_are_errors(self, response: httpx.Response) -> None:
        async with _client(lambda request: response) as client:
            result = await OpenFDASideEffectSource(client).lookup("Sertraline")

        assert result.is_err()

    async def test_network_failure_is_an_error_result(self) -> None:
        async with _client(_offline) as client:
            result = await OpenFDASideEffectSource(client).lookup("Sertraline")

        assert isinstance(result.unwrap_err(), httpx.ConnectError)


class TestSimplifiedNameSource:
    async def test_retries_with_simplified_name(self) -> None:
        searched: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            searched.append(_searched_product(request))
            return httpx.Response(200, json=_fda_results("nausea"))

        async with _client(handler) as client:
            source = SimplifiedNameSource(OpenFDASideEffectSource(client))
            result = await source.lookup("Metformin ER")

        assert result.is_ok()
        assert searched == ["METFORMIN"]

    async def test_skips_when_name_has_nothing_to_strip(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("openFDA must not be queried")

        async with _client(handler) as client:
            source = SimplifiedNameSource(OpenFDASideEffectSource(client))
            result = await source.lookup("Sertraline")

        assert isinstance(result.unwrap_err(), NoSideEffectDataError)


class TestProxySource:
    async def test_posts_medication_with_api_key(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json={"sideEffects": ["headache", {"name": "Rash", "description": "Red"}]}
            )

        async with _client(handler) as client:
            source = ProxySideEffectSource(client, SERVER_URL, "secret")
            result = await source.lookup("Sertraline")

        assert [r.name for r in result.unwrap()] == ["Headache", "Rash"]
        assert str(requests[0].url) == f"{SERVER_URL}/api/side-effects"
        assert requests[0].headers["x-api-key"] == "secret"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"sideEffects": []}),
            httpx.Response(403, json={"error": "Forbidden"}),
            httpx.Response(200, json=["headache"]),
        ],
    )
    async def test_empty_or_failed_proxy_is_an_error(self, response: httpx.Response) -> None:
        async with _client(lambda request: response) as client:
            result = await ProxySideEffectSource(client, SERVER_URL, "secret").lookup("Sertraline")

        assert result.is_err()


class TestFallbackTableSource:
    async def test_known_medication(self) -> None:
        result = await FallbackTableSource().lookup("Sertraline")

        expected = [normalize_term(term) for term in FALLBACK_SIDE_EFFECTS["sertraline"]]
        assert result.unwrap() == expected

    async def test_simplified_name_is_tried_second(self) -> None:
        result = await FallbackTableSource().lookup("Sertraline HCl")

        assert result.is_ok()

    async def test_unknown_medication(self) -> None:
        result = await FallbackTableSource().lookup("Xyzzyplex")

        assert result.is_err()


class _RecordingSource:
    def __init__(self, name: str, result: Result[list[SideEffectRecord], Exception]) -> None:
        self.source_name = name
        self.result = result
        self.calls: list[str] = []

    async def lookup(self, medication: str) -> Result[list[SideEffectRecord], Exception]:
        self.calls.append(medication)
        return self.result


class TestSideEffectResolver:
    async def test_first_successful_tier_wins_and_later_tiers_are_not_called(self) -> None:
        failing = _RecordingSource("a", Result.err(NoSideEffectDataError("none")))
        winning = _RecordingSource("b", Result.ok([SideEffectRecord(name="Rash")]))
        never = _RecordingSource("c", Result.ok([SideEffectRecord(name="Nausea")]))

        records = await SideEffectResolver([failing, winning, never]).resolve("  Sertraline ")

        assert records == [SideEffectRecord(name="Rash")]
        assert failing.calls == ["Sertraline"]
        assert winning.calls == ["Sertraline"]
        assert never.calls == []

    async def test_exhausted_chain_returns_sentinel(self) -> None:
        records = await SideEffectResolver([]).resolve("Xyzzyplex")

        assert len(records) == 1
        assert records[0].name == NO_DATA_NAME
        assert "Xyzzyplex" in records[0].description

    async def test_offline_sertraline_uses_fallback_table(self) -> None:
        async with _client(_offline) as client:
            resolver = build_client_resolver(client, SyncConfig(server_url=SERVER_URL))
            records = await resolver.resolve("Sertraline")

        assert 0 < len(records) <= 12
        nausea = next(r for r in records if r.name == "Nausea")
        assert nausea.description
        assert records == [normalize_term(term) for term in FALLBACK_SIDE_EFFECTS["sertraline"]]

    async def test_offline_unknown_medication_returns_sentinel(self) -> None:
        async with _client(_offline) as client:
            resolver = build_client_resolver(client, SyncConfig(server_url=SERVER_URL))
            records = await resolver.resolve("Xyzzyplex")

        assert [r.name for r in records] == [NO_DATA_NAME]
        assert "Xyzzyplex" in records[0].description

    async def test_live_data_is_preferred_over_fallback_table(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_fda_results("tinnitus"))

        async with _client(handler) as client:
            records = await build_server_resolver(client).resolve("Sertraline")

        assert [r.name for r in records] == ["Tinnitus"]

    async def test_simplified_query_runs_after_exact_query_fails(self) -> None:
        searched: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            product = _searched_product(request)
            searched.append(product)
            if product == "ZOLPIDEM":
                return httpx.Response(200, json=_fda_results("somnolence"))
            return httpx.Response(404, json={"error": {"code": "NOT_FOUND"}})

        async with _client(handler) as client:
            records = await build_server_resolver(client).resolve("Zolpidem ER")

        assert searched == ["ZOLPIDEM ER", "ZOLPIDEM"]
        assert [r.name for r in records] == ["Somnolence"]

    async def test_client_chain_asks_proxy_first(self) -> None:
        hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(200, json={"sideEffects": [{"name": "Rash", "description": ""}]})

        async with _client(handler) as client:
            resolver = build_client_resolver(client, SyncConfig(server_url=SERVER_URL))
            records = await resolver.resolve("Sertraline")

        assert hosts == ["wellness.test"]
        assert [r.name for r in records] == ["Rash"]
