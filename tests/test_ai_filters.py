"""
Tests for the natural-language filter translator.
"""
import asyncio
import json

import pytest

from catalog.ai_filters import (
    Whitelist,
    ai_filters_to_criteria,
    build_messages,
    canonical_cpus,
    reconcile,
    repair_range,
    translate,
)
from catalog.errors import ModelInvocationError, RequestValidationFailed
from catalog.schema import AIParsedFilters, NumericRange, RangeSpec
from catalog.stats import compute_stats
from fakes import FakeLLM, MemoryProductStore


def run_translate(reply=None, text="16 gb laptop", error=None, store=None):
    llm = FakeLLM([reply] if reply is not None else [], error=error)
    store = store or MemoryProductStore()
    return asyncio.run(translate(text, store, llm)), llm


class TestTranslate:

    def test_blank_text_rejected(self):
        llm = FakeLLM()
        with pytest.raises(RequestValidationFailed):
            asyncio.run(translate("   ", MemoryProductStore(), llm))
        assert llm.calls == []

    def test_missing_text_rejected(self):
        with pytest.raises(RequestValidationFailed):
            asyncio.run(translate(None, MemoryProductStore(), FakeLLM()))

    def test_reply_reconciled_against_catalog(self):
        reply = """```json
        {"categories": ["laptop", "tablet"], "brands": ["Lenovo", "Dell"],
         "price": {"max": 30000}, "ram_gb": {"min": 16},
         "cpus": ["intel I7", "Intel i7", "Ryzen 9"], "sort": "price_asc"}
        ```"""
        filters, _ = run_translate(reply)
        assert filters.categories == ["laptop"]
        assert filters.brands == ["Lenovo"]
        assert filters.cpus == ["Intel i7"]
        assert filters.price.max == 30000 and filters.price.min is None
        assert filters.ram_gb.min == 16
        assert filters.sort == "price_asc"

    def test_prompt_carries_normalized_text_and_whitelist(self):
        _, llm = run_translate('{"sort": "alphabetical"}', text="30 bin altı 15,6\" laptop")
        [call] = llm.calls
        system, user = call["messages"]
        assert system["role"] == "system"
        assert "JSON" in system["content"]
        assert 'Text: """30000 altı 15.6 inç laptop"""' in user["content"]
        assert "Available brands: Acer, Apple, HP, Lenovo, LG" in user["content"]
        assert "Available CPUs: A16, Intel i5, Intel i7" in user["content"]
        assert call["temperature"] == 0.1
        assert call["max_tokens"] is None

    def test_inverted_and_negative_ranges_repaired(self):
        reply = json.dumps({"price": {"min": 5000, "max": 1000}, "weight_kg": {"exact": -3}})
        filters, _ = run_translate(reply)
        assert (filters.price.min, filters.price.max) == (1000, 5000)
        assert (filters.weight_kg.min, filters.weight_kg.max, filters.weight_kg.exact) == (0, 0, 0)

    def test_null_fields_tolerated(self):
        filters, _ = run_translate('{"categories": null, "price": null, "sort": "rating_desc"}')
        assert filters.categories == []
        assert filters.price == RangeSpec()
        assert filters.sort == "rating_desc"

    @pytest.mark.parametrize("reply", [
        "Sorry, I can't do that.",
        '{"sort": "cheapest"}',
        '{"price": {"max": "a lot"}}',
        "[1, 2, 3]",
        "",
    ])
    def test_bad_replies_degrade_to_defaults(self, reply):
        filters, _ = run_translate(reply)
        assert filters == AIParsedFilters()

    def test_model_failure_degrades(self):
        filters, _ = run_translate(error=ModelInvocationError("AI service unavailable"))
        assert filters == AIParsedFilters()

    def test_store_failure_degrades(self):
        store = MemoryProductStore(error=RuntimeError("DB down"))
        filters, llm = run_translate('{"brands": ["Acer"]}', store=store)
        assert filters == AIParsedFilters()
        assert llm.calls == []

    @pytest.mark.parametrize("reply", [
        '{"categories": ["LAPTOP", "phone"], "brands": ["acer", "Apple"]}',
        '{"cpus": ["a16", "M3 Max", "intel i5"]}',
        '{"brands": ["HP", "HP", "Huawei"], "categories": ["tv"]}',
    ])
    def test_outputs_stay_within_whitelist(self, reply):
        store = MemoryProductStore()
        stats = compute_stats(store.products)
        filters, _ = run_translate(reply, store=store)
        assert set(filters.categories) <= set(stats.categories)
        assert set(filters.brands) <= set(stats.brands)
        assert set(filters.cpus) <= set(stats.cpu_values)


class TestRepairRange:

    @pytest.mark.parametrize("spec", [
        RangeSpec(),
        RangeSpec(min=10, max=5),
        RangeSpec(min=-4, max=-1),
        RangeSpec(min=-2, max=8),
        RangeSpec(exact=15.6),
        RangeSpec(min=1, max=2, exact=-1),
    ])
    def test_idempotent(self, spec):
        once = repair_range(spec)
        assert repair_range(once) == once

    def test_exact_forces_bounds(self):
        assert repair_range(RangeSpec(min=1, max=99, exact=16)) == RangeSpec(min=16, max=16, exact=16)

    def test_negative_max_swaps_after_clamp(self):
        assert repair_range(RangeSpec(min=5, max=-1)) == RangeSpec(min=0, max=5)


class TestReconcile:

    def test_cpus_canonical_and_deduplicated(self):
        assert canonical_cpus(["intel i7", " INTEL I7 ", "", 5, "x"], ["Intel i7"]) == ["Intel i7"]

    def test_categories_are_case_sensitive(self):
        parsed = AIParsedFilters(categories=["Laptop", "laptop"])
        result = reconcile(parsed, Whitelist(categories=["laptop"]))
        assert result.categories == ["laptop"]

    def test_few_shots_render_in_prompt(self):
        messages = build_messages("text", Whitelist())
        assert "EXAMPLES:" in messages[1]["content"]
        assert '"sort": "rating_desc"' in messages[1]["content"]


class TestAiFiltersToCriteria:

    @pytest.fixture
    def stats(self, products):
        return compute_stats(products)

    def test_discrete_selection(self, stats):
        parsed = AIParsedFilters(
            ram_gb=RangeSpec(min=8),
            storage_gb=RangeSpec(max=256),
        )
        criteria = ai_filters_to_criteria(parsed, stats)
        assert criteria.ram == [8, 16]
        assert criteria.storage == [128, 256]

    def test_exact_discrete_value(self, stats):
        criteria = ai_filters_to_criteria(AIParsedFilters(ram_gb=RangeSpec(min=16, max=16, exact=16)), stats)
        assert criteria.ram == [16]

    def test_ranges_clamped_to_catalog(self, stats):
        parsed = AIParsedFilters(price=RangeSpec(min=1000, max=100000), screen_inch=RangeSpec(exact=15.6))
        criteria = ai_filters_to_criteria(parsed, stats)
        assert criteria.price == NumericRange(min=18500, max=48000)
        assert criteria.screen == NumericRange(min=15.6, max=15.6)
        assert criteria.battery == NumericRange()

    def test_sort_and_cpu_mapping(self, stats):
        parsed = AIParsedFilters(cpus=["intel i5"], sort="price_desc", brands=["Acer", "Acer"])
        criteria = ai_filters_to_criteria(parsed, stats)
        assert criteria.cpus == ["Intel i5"]
        assert criteria.sort == "price-desc"
        assert criteria.brands == ["Acer"]
        assert criteria.page == 1

    def test_no_clamp_without_catalog_values(self):
        criteria = ai_filters_to_criteria(
            AIParsedFilters(battery_wh=RangeSpec(min=60)), compute_stats([])
        )
        assert criteria.battery == NumericRange(min=60)
