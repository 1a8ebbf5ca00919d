"""Tests for the set reconciliation pipeline."""

import asyncio
import logging

import pytest

from setkeeper.models.card import CardRecord
from setkeeper.models.set_definition import SETS, PlaceholderDescriptor, SetDefinition
from setkeeper.reconcile.reconciler import SetReconciler, finalize_cards
from setkeeper.services.scryfall_client import SearchPage, SetMetadata, TransportError

SCENARIO_SET = SetDefinition(
    code="tla",
    name="Avatar: The Last Airbender",
    expected_total=394,
    missing_numbers=(363, 393, 394),
    placeholders=(
        PlaceholderDescriptor(393, "Unreleased 393"),
        PlaceholderDescriptor(394, "Unreleased 394"),
    ),
    search_aliases=("Avatar The Last Airbender",),
    name_keyword="Avatar",
)


def _card(identity: str, number: int) -> CardRecord:
    return CardRecord(
        identity=identity,
        collector_number=number,
        collector_number_raw=str(number),
        name=identity,
        set_code="tla",
    )


class TestFinalizeCards:
    def test_first_occurrence_wins(self) -> None:
        first = _card("a", 1)
        later = CardRecord(
            identity="a",
            collector_number=9,
            collector_number_raw="9",
            name="later",
            set_code="tla",
        )

        assert finalize_cards([first, _card("b", 2), later]) == [first, _card("b", 2)]

    def test_stable_sort_on_ties(self) -> None:
        """Cards sharing a number keep their accumulation order."""
        cards = [_card("x", 5), _card("a", 2), _card("y", 5), _card("b", 1), _card("z", 5)]

        result = finalize_cards(cards)

        assert [card.identity for card in result] == ["b", "a", "x", "y", "z"]


class TestReconcileScenario:
    @pytest.fixture
    def scryfall(self, fake_scryfall, make_card):
        """
        380 primary cards over two pages, 8 variants, #363 recoverable by
        number search, #393 and #394 nowhere to be found.
        """
        primary = [make_card(f"p{n}", n) for n in range(1, 382) if n != 363]
        assert len(primary) == 380
        fake_scryfall.add_search("set:tla", SearchPage(primary[:175], next_page="page-2"))
        fake_scryfall.pages["page-2"] = SearchPage(primary[175:], total_cards=380)

        variants = [make_card(f"v{n}", n) for n in range(382, 390)]
        # The set listing endpoint is unavailable, so the prints search runs
        fake_scryfall.add_search(
            "set:tla", SearchPage(primary[:10] + variants), unique="prints"
        )
        fake_scryfall.add_search(
            "set:tla frame:showcase",
            SearchPage([variants[0], make_card("contaminant", 390, set_code="tle")]),
            unique="prints",
        )
        fake_scryfall.add_search(
            "set:tla number:363",
            SearchPage([make_card("c363", 363)]),
        )
        fake_scryfall.metadata["tla"] = SetMetadata(
            code="tla", name="Avatar: The Last Airbender", card_count=392
        )
        return fake_scryfall

    async def test_final_count(self, scryfall) -> None:
        """380 + 8 + 1 recovered + 2 placeholders = 391, denominator stays 394."""
        reconciler = SetReconciler(scryfall, definitions={"tla": SCENARIO_SET})

        result = await reconciler.reconcile("tla")

        assert not result.exhausted
        assert result.loaded_count == 391
        assert result.discovered_count == 389
        assert result.placeholder_count == 2
        assert result.expected_total == 394
        assert result.api_card_count == 392
        assert result.unresolved_numbers == [393, 394]

    async def test_invariants(self, scryfall) -> None:
        reconciler = SetReconciler(scryfall, definitions={"tla": SCENARIO_SET})

        result = await reconciler.reconcile("tla")
        identities = [card.identity for card in result.cards]
        numbers = [card.collector_number for card in result.cards]

        assert len(identities) == len(set(identities))
        assert numbers == sorted(numbers)
        assert "contaminant" not in identities
        assert "c363" in identities
        assert {card.identity for card in result.cards if card.is_placeholder} == {
            "placeholder:tla:393",
            "placeholder:tla:394",
        }

    async def test_result_is_cached(self, scryfall) -> None:
        """The second call is served from the cache without querying."""
        reconciler = SetReconciler(scryfall, definitions={"tla": SCENARIO_SET})

        first = await reconciler.reconcile("tla")
        calls = len(scryfall.calls)
        second = await reconciler.reconcile("TLA")

        assert second is first
        assert len(scryfall.calls) == calls
        assert reconciler.get_cached_set("tla") is first

    async def test_concurrent_calls_share_one_run(self, scryfall) -> None:
        reconciler = SetReconciler(scryfall, definitions={"tla": SCENARIO_SET})

        first, second = await asyncio.gather(
            reconciler.reconcile("tla"), reconciler.reconcile("tla")
        )

        assert first is second
        assert scryfall.calls.count("set:tla") == 1


class TestPlaceholderOrdering:
    async def test_found_number_gets_no_placeholder(self, fake_scryfall, make_card) -> None:
        """A number found by any discovery phase is never replaced by a placeholder."""
        fake_scryfall.add_search("set:tla", SearchPage([make_card("a", 1)]))
        fake_scryfall.add_search(
            "set:tla (is:showcase or is:extendedart or is:borderless or is:promo)",
            SearchPage([make_card("real-393", 393)]),
            unique="prints",
        )
        reconciler = SetReconciler(fake_scryfall, definitions={"tla": SCENARIO_SET})

        result = await reconciler.reconcile("tla")
        by_number = {card.collector_number: card for card in result.cards}

        assert by_number[393].identity == "real-393"
        assert by_number[394].is_placeholder


class TestFailureHandling:
    async def test_fallback_after_primary_failure(self, fake_scryfall, make_card) -> None:
        """Primary failure triggers the fallback cascade and the pipeline continues."""
        fake_scryfall.add_search("set:tla", TransportError("offline"))
        fake_scryfall.add_search("s:tla", TransportError("offline"))
        fake_scryfall.add_search(
            'set:"Avatar: The Last Airbender"', SearchPage([make_card("a", 1)])
        )
        reconciler = SetReconciler(fake_scryfall)

        result = await reconciler.reconcile("tla")

        assert not result.exhausted
        assert [phase.phase for phase in result.phases][:3] == ["primary", "fallback", "variant"]
        assert result.discovered_count == 1
        # tla placeholders (basic lands 287-296) still fill in
        assert result.placeholder_count == 10

    async def test_exhausted_fallbacks(self, fake_scryfall) -> None:
        """When nothing loads, the result is flagged and not cached."""
        reconciler = SetReconciler(fake_scryfall)

        result = await reconciler.reconcile("tle")

        assert result.exhausted
        assert result.cards == []
        assert result.failed_queries > 0
        assert reconciler.get_cached_set("tle") is None

    async def test_exhausted_when_every_query_errors(self, fake_scryfall, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="setkeeper.reconcile.reconciler"):
            result = await SetReconciler(fake_scryfall).reconcile("tle")

        assert result.exhausted
        assert all(phase.all_failed for phase in result.phases)
        assert "all 6 queries failed" in caplog.text

    async def test_exhausted_when_only_other_sets_match(
        self, fake_scryfall, make_card, caplog
    ) -> None:
        """Queries that answer with cards of another set still leave the set unloaded."""
        fake_scryfall.add_search("set:tle", SearchPage([make_card("a", 1, set_code="tla")]))

        with caplog.at_level(logging.ERROR, logger="setkeeper.reconcile.reconciler"):
            result = await SetReconciler(fake_scryfall).reconcile("tle")

        assert result.exhausted
        assert not result.phases[0].all_failed
        assert "no query returned a card of this set" in caplog.text

    async def test_exhausted_set_can_be_retried(self, fake_scryfall, make_card) -> None:
        reconciler = SetReconciler(fake_scryfall)
        await reconciler.reconcile("tle")

        fake_scryfall.add_search("set:tle", SearchPage([make_card("e1", 1, set_code="tle")]))
        result = await reconciler.reconcile("tle")

        assert not result.exhausted
        assert [card.identity for card in result.cards] == ["e1"]

    async def test_metadata_failure_is_not_fatal(self, fake_scryfall, make_card) -> None:
        fake_scryfall.metadata["tle"] = TransportError("offline")
        fake_scryfall.add_search("set:tle", SearchPage([make_card("e1", 1, set_code="tle")]))
        reconciler = SetReconciler(fake_scryfall)

        result = await reconciler.reconcile("tle")

        assert result.api_card_count is None
        assert result.loaded_count == 1

    async def test_variant_failures_do_not_abort(self, fake_scryfall, make_card) -> None:
        fake_scryfall.add_search("set:tle", SearchPage([make_card("e1", 1, set_code="tle")]))
        fake_scryfall.listings["tle"] = TransportError("offline")
        fake_scryfall.add_search("set:tle", TransportError("offline"), unique="prints")
        reconciler = SetReconciler(fake_scryfall)

        result = await reconciler.reconcile("tle")

        variant = next(phase for phase in result.phases if phase.phase == "variant")
        assert variant.all_failed
        assert result.loaded_count == 1

    async def test_unknown_set(self, fake_scryfall) -> None:
        from setkeeper.models.set_definition import UnknownSetError

        with pytest.raises(UnknownSetError):
            await SetReconciler(fake_scryfall).reconcile("zzz")

    async def test_unknown_set_lists_configured_codes(self, fake_scryfall) -> None:
        from setkeeper.models.set_definition import UnknownSetError

        reconciler = SetReconciler(fake_scryfall, definitions={"tla": SCENARIO_SET})

        with pytest.raises(UnknownSetError) as exc_info:
            reconciler.definition("tle")

        assert exc_info.value.suggestion == "Use one of: tla."


def test_default_definitions() -> None:
    assert SetReconciler(client=None).definitions is SETS  # type: ignore[arg-type]
