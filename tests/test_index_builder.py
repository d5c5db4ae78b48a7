from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

import pytest

from artindex.errors import EmptyPayload, SourceUnavailable
from artindex.filtering.path_filter import PathFilter
from artindex.indexing.categorize import TermClassifier, categorize
from artindex.indexing.index_builder import INDEX_CACHE_KEY, INDEX_VERSION, IndexBuilder
from artindex.models.domain import ALL_BUCKET, CacheEnvelope, CatalogRegistry, ImageRecord
from artindex.sources.normalize import normalize_records
from artindex.storage.cache_store import CacheStore

from .conftest import FakeTermSource


def _builder(store: CacheStore, small_terms: Dict[str, Tuple[str, ...]], **kwargs) -> IndexBuilder:
    kwargs.setdefault("use_worker", False)
    kwargs.setdefault("term_batch_pause", 0.0)
    kwargs.setdefault("direct_batch_pause", 0.0)
    return IndexBuilder(store, PathFilter(), term_table=small_terms, **kwargs)


def _records() -> List[ImageRecord]:
    return normalize_records([{"path": "tokens/goblin_warrior.webp"}, {"path": "props/barrel_wooden.webp"}])


@pytest.mark.parametrize("use_worker", [False, True])
def test_build_from_records_skips_excluded_paths(store: CacheStore, small_terms, use_worker: bool) -> None:
    builder = _builder(store, small_terms, use_worker=use_worker)
    try:
        assert builder.build(records=_records())
    finally:
        builder.close()

    assert list(builder.registry.all_paths) == ["tokens/goblin_warrior.webp"]
    record = builder.registry.all_paths["tokens/goblin_warrior.webp"]
    assert record.category == "humanoid"
    assert record.subcategories == ("goblin",)
    assert builder.registry.categories["humanoid"]["goblin"][0]["path"] == "tokens/goblin_warrior.webp"
    assert len(builder.registry.categories["humanoid"][ALL_BUCKET]) == 1
    assert builder.is_built


def test_outdated_envelope_triggers_full_rebuild(store: CacheStore, small_terms) -> None:
    stale = CatalogRegistry()
    stale.insert(ImageRecord(path="tokens/old_orc.png", name="old orc", category="humanoid", subcategories=("orc",)))
    store.save(INDEX_CACHE_KEY, CacheEnvelope(version=6, payload=stale.to_payload()).to_dict())

    builder = _builder(store, small_terms)
    assert builder.build(records=_records())

    assert "tokens/old_orc.png" not in builder.registry
    assert "tokens/goblin_warrior.webp" in builder.registry
    assert store.load(INDEX_CACHE_KEY, version=INDEX_VERSION) is not None


def test_fresh_cache_is_reused_without_sources(store: CacheStore, small_terms) -> None:
    _builder(store, small_terms).build(records=_records())

    restored = _builder(store, small_terms)
    assert restored.build()
    assert restored.is_built
    assert "tokens/goblin_warrior.webp" in restored.registry
    assert restored.search("goblin")[0].path == "tokens/goblin_warrior.webp"


def test_stale_cache_rebuilds_from_source(store: CacheStore, small_terms) -> None:
    _builder(store, small_terms).build(records=_records())

    rebuilt = _builder(store, small_terms, freshness_window=-1)
    assert rebuilt.build(records=[ImageRecord(path="tokens/wolf_alpha.png", name="wolf alpha")])
    assert "tokens/wolf_alpha.png" in rebuilt.registry
    assert "tokens/goblin_warrior.webp" not in rebuilt.registry


def test_failed_rebuild_keeps_stale_cache(store: CacheStore, small_terms) -> None:
    _builder(store, small_terms).build(records=_records())

    rebuilt = _builder(store, small_terms, freshness_window=-1)
    with pytest.raises(EmptyPayload):
        rebuilt.build(records=[ImageRecord(path="props/crate.png", name="crate")])

    assert rebuilt.is_built
    assert rebuilt.needs_update()
    assert "tokens/goblin_warrior.webp" in rebuilt.registry


def test_build_without_any_source_fails(store: CacheStore, small_terms) -> None:
    with pytest.raises(SourceUnavailable):
        _builder(store, small_terms).build()


def test_build_with_only_excluded_records_is_empty(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)

    with pytest.raises(EmptyPayload) as info:
        builder.build(records=[ImageRecord(path="props/crate.png", name="crate")])
    assert not builder.is_built
    assert info.value.to_dict()["kind"] == "empty_payload"


def test_per_term_build_retries_without_portrait_and_absorbs_failures(store: CacheStore, small_terms) -> None:
    source = FakeTermSource(
        {"goblin": ["tokens/goblin_boss.png"], "wolf": ["tokens/dire_wolf.png", "props/barrel.png"]},
        portrait_terms=("goblin",),
        failing=("orc",),
    )
    builder = _builder(store, small_terms, term_batch_size=2)

    assert builder.build(term_source=source)

    assert set(builder.registry.all_paths) == {"tokens/goblin_boss.png", "tokens/dire_wolf.png"}
    assert ("wolf", "Portrait") in source.calls and ("wolf", None) in source.calls
    assert ("goblin", None) not in source.calls


def test_bulk_records_take_precedence_over_term_source(store: CacheStore, small_terms) -> None:
    source = FakeTermSource({"goblin": ["tokens/goblin_boss.png"]})
    builder = _builder(store, small_terms)

    builder.build(term_source=source, records=_records())

    assert source.calls == []


def test_progress_reports_final_count(store: CacheStore, small_terms) -> None:
    seen: List[Tuple[int, int, int]] = []
    builder = _builder(store, small_terms, direct_batch_size=1)

    builder.build(records=_records(), on_progress=lambda *args: seen.append(args))

    assert seen[-1] == (2, 2, 1)


def test_add_image_is_idempotent(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)

    assert builder.add_image("tokens/orc_brute.png")
    assert not builder.add_image("tokens/orc_brute.png", "Orc Brute Again")
    assert builder.registry.all_paths["tokens/orc_brute.png"].name == "orc brute"
    assert len(builder.registry.categories["humanoid"][ALL_BUCKET]) == 1


def test_category_ties_resolve_to_smallest_name(small_terms) -> None:
    classification = categorize("tokens/goblin_riding_wolf.png", "goblin riding wolf", small_terms)

    assert classification.category == "beast"
    assert classification.subcategories == ("wolf",)


def test_uncategorized_records_stay_in_flat_registry(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)
    builder.build(records=[ImageRecord(path="tokens/mystery.png", name="mystery"), *_records()])

    stats = builder.get_stats()
    assert stats["total_images"] == 2
    assert stats["uncategorized_images"] == 1
    assert stats["categories"] == {"humanoid": 1}
    assert builder.search("mystery")[0].path == "tokens/mystery.png"


def test_category_search_is_union_of_term_searches(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)
    builder.build(
        records=[
            ImageRecord(path="tokens/goblin_archer.png", name="goblin archer"),
            ImageRecord(path="tokens/goblin_riding_wolf.png", name="goblin riding wolf"),
            ImageRecord(path="tokens/orc_chief.png", name="orc chief"),
            ImageRecord(path="tokens/wolf.png", name="wolf"),
        ]
    )
    assert builder.registry.all_paths["tokens/goblin_riding_wolf.png"].category == "beast"

    by_category = [result.path for result in builder.search_by_category("Humanoid")]
    union = {result.path for term in small_terms["humanoid"] for result in builder.search(term)}

    assert len(by_category) == len(set(by_category))
    assert set(by_category) == union
    assert union == {"tokens/goblin_archer.png", "tokens/goblin_riding_wolf.png", "tokens/orc_chief.png"}
    assert by_category[-1] == "tokens/goblin_riding_wolf.png"


def test_queries_are_empty_until_built(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)
    builder.add_image("tokens/orc_brute.png")

    assert builder.search("orc") == []
    assert builder.search_by_category("humanoid") == []


def test_clear_drops_persisted_envelope(store: CacheStore, small_terms) -> None:
    builder = _builder(store, small_terms)
    builder.build(records=_records())

    builder.clear()

    assert not builder.is_built
    assert len(builder.registry) == 0
    assert store.load(INDEX_CACHE_KEY) is None


def test_classifier_counts_distinct_term_hits(small_terms) -> None:
    classifier = TermClassifier(small_terms)

    assert classifier.classify("undead/skeleton_zombie_wolf.png", "").category == "undead"
    assert classifier.classify("art/unknown.png", "unknown").category is None


def test_concurrent_builds_join_the_one_in_flight(store: CacheStore, small_terms) -> None:
    source = FakeTermSource({"goblin": ["tokens/goblin_boss.png"], "wolf": ["tokens/dire_wolf.png"]})
    search = source.search

    def slow_search(term: str, result_type: Optional[str] = None) -> List[ImageRecord]:
        time.sleep(0.02)
        return search(term, result_type)

    source.search = slow_search
    builder = _builder(store, small_terms, term_batch_size=2)

    with ThreadPoolExecutor(max_workers=4) as pool:
        outcomes = list(pool.map(lambda _: builder.build(term_source=source), range(4)))

    assert outcomes == [True, True, True, True]
    assert len(source.calls) == len(set(source.calls))
    assert set(builder.registry.all_paths) == {"tokens/goblin_boss.png", "tokens/dire_wolf.png"}
