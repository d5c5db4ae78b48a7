from __future__ import annotations

from typing import List, Optional

import pytest

from artindex.errors import OperationCancelled
from artindex.filtering.path_filter import PathFilter
from artindex.indexing.index_builder import IndexBuilder
from artindex.models.domain import EntityDescriptor, ImageRecord
from artindex.search.orchestrator import SearchOrchestrator
from artindex.storage.cache_store import CacheStore

from .conftest import SMALL_TERMS, FakeTermSource

GRAK = EntityDescriptor(name="Grak", type="humanoid", subtype="orc, goblin")
GRAK_PLAIN = EntityDescriptor(name="Grak", type="humanoid")

LOCAL = [
    ImageRecord(path="art/humanoid/grak.png", name="grak", category="humanoid", source="local"),
    ImageRecord(path="art/beasts/dire_wolf.png", name="dire wolf", category="beasts", source="local"),
]


def _index(store: CacheStore) -> IndexBuilder:
    builder = IndexBuilder(store, PathFilter(), term_table=SMALL_TERMS, use_worker=False, direct_batch_pause=0.0)
    builder.build(
        records=[
            ImageRecord(path="tokens/grak_the_bold.png", name="grak the bold"),
            ImageRecord(path="tokens/orc_brute.png", name="orc brute"),
            ImageRecord(path="tokens/goblin_archer.png", name="goblin archer"),
            ImageRecord(path="tokens/bandit.png", name="bandit human"),
        ]
    )
    return builder


def _orchestrator(
    index: Optional[IndexBuilder] = None, remote: Optional[FakeTermSource] = None, **kwargs
) -> SearchOrchestrator:
    kwargs.setdefault("batch_pause", 0.0)
    return SearchOrchestrator(PathFilter(), index=index, remote=remote, term_table=SMALL_TERMS, **kwargs)


def test_name_matches_rank_before_subtype_matches(store: CacheStore) -> None:
    results = _orchestrator(_index(store)).search_entity(GRAK, LOCAL)

    groups = [result.flags.group() for result in results]
    assert groups == sorted(groups)
    assert results[0].path == "tokens/grak_the_bold.png"
    assert results[0].flags.from_name
    assert {result.path for result in results if result.flags.from_subtype} == {
        "tokens/orc_brute.png",
        "tokens/goblin_archer.png",
    }
    assert "art/humanoid/grak.png" in [result.path for result in results if result.flags.from_name]


def test_local_priority_ranks_local_art_first_within_a_group(store: CacheStore) -> None:
    results = _orchestrator(_index(store), priority="local").search_entity(GRAK, LOCAL)

    assert results[0].path == "art/humanoid/grak.png"
    assert results[0].source == "local"


def test_remote_priority_skips_local_art_in_standard_search(store: CacheStore) -> None:
    results = _orchestrator(_index(store), priority="remote").search_entity(GRAK_PLAIN, LOCAL)

    assert [result.path for result in results] == ["tokens/grak_the_bold.png"]


def test_local_priority_without_external_cache_searches_only_local_in_standard_search(store: CacheStore) -> None:
    orchestrator = _orchestrator(_index(store), priority="local", use_external_cache=False)

    results = orchestrator.search_entity(GRAK_PLAIN, LOCAL)

    assert [result.path for result in results] == ["art/humanoid/grak.png"]


@pytest.mark.parametrize(
    "priority, use_external_cache", [("remote", True), ("local", False), ("both", True)]
)
def test_subtype_search_consults_catalog_and_local_art_for_every_priority(
    store: CacheStore, priority: str, use_external_cache: bool
) -> None:
    orchestrator = _orchestrator(_index(store), priority=priority, use_external_cache=use_external_cache)

    results = orchestrator.search_entity(GRAK, LOCAL)

    assert {result.source for result in results} == {"index", "local"}
    name_hits = [result.path for result in results if result.flags.from_name]
    if priority == "remote":
        assert name_hits == ["tokens/grak_the_bold.png", "art/humanoid/grak.png"]
    elif priority == "local":
        assert name_hits == ["art/humanoid/grak.png", "tokens/grak_the_bold.png"]


def test_remote_tier_used_when_no_registry_is_ready() -> None:
    remote = FakeTermSource(
        {
            "grak": ["remote/grak.png", "justaname"],
            "orc": ["remote/orc_chief.png", "props/barrel.png"],
            "goblin": ["remote/goblin.png"],
        }
    )
    orchestrator = _orchestrator(remote=remote)

    results = orchestrator.search_entity(GRAK)

    assert [result.path for result in results] == ["remote/grak.png", "remote/goblin.png", "remote/orc_chief.png"]
    assert results[0].source == "remote"
    assert results[0].score == 0.0
    assert orchestrator.ready_tier() == "remote"


def test_results_are_cached_per_operation() -> None:
    remote = FakeTermSource({"grak": ["remote/grak.png"]})
    orchestrator = _orchestrator(remote=remote)

    first = orchestrator.search_entity(GRAK)
    calls = len(remote.calls)
    second = orchestrator.search_entity(GRAK)

    assert [result.path for result in first] == [result.path for result in second]
    assert len(remote.calls) == calls

    orchestrator.begin_operation()
    orchestrator.search_entity(GRAK)
    assert len(remote.calls) == 2 * calls


def test_failing_terms_count_as_no_results() -> None:
    remote = FakeTermSource({"goblin": ["remote/goblin.png"]}, failing=("grak", "orc"))

    results = _orchestrator(remote=remote).search_entity(GRAK)

    assert [result.path for result in results] == ["remote/goblin.png"]


def test_standard_search_stops_after_a_rich_first_term() -> None:
    remote = FakeTermSource({"wolf": [f"remote/wolf_{index}.png" for index in range(5)]}, portrait_terms=("wolf",))
    orchestrator = _orchestrator(remote=remote)

    results = orchestrator.search_entity(EntityDescriptor(name="Wolf", type="beast"), LOCAL)

    assert ("beast", "Portrait") not in remote.calls
    assert results[0].path == "art/beasts/dire_wolf.png"
    assert all(result.flags.group() == 3 for result in results)
    assert len(results) == 6


def test_generic_subtype_adds_category_results(store: CacheStore) -> None:
    entity = EntityDescriptor(name="Marauder", type="humanoid", subtype="any race")

    results = _orchestrator(_index(store)).search_entity(entity)

    assert results
    assert all(result.flags.from_category for result in results)
    assert {result.path for result in results} == {
        "tokens/orc_brute.png",
        "tokens/goblin_archer.png",
        "tokens/bandit.png",
    }


def test_category_search_without_registry_batches_terms() -> None:
    remote = FakeTermSource({"wolf": ["remote/wolf.png"], "bear": ["remote/bear.png"]})
    progress: List[tuple] = []
    orchestrator = _orchestrator(remote=remote, slow_batch_size=1)

    results = orchestrator.search_by_category("beast", LOCAL, on_progress=lambda *args: progress.append(args))

    assert [result.path for result in results] == ["remote/wolf.png", "remote/bear.png", "art/beasts/dire_wolf.png"]
    assert results[-1].score == 0.6
    assert [entry[:2] for entry in progress] == [(1, 2), (2, 2)]


def test_direct_term_category_search(store: CacheStore) -> None:
    results = _orchestrator(_index(store)).search_by_category("humanoid", LOCAL, direct_term="grak")

    assert {result.path for result in results} == {"tokens/grak_the_bold.png", "art/humanoid/grak.png"}


def test_cancelled_operation_raises_until_reset() -> None:
    orchestrator = _orchestrator(remote=FakeTermSource({}))
    orchestrator.cancel()

    with pytest.raises(OperationCancelled):
        orchestrator.search_entity(GRAK)

    orchestrator.begin_operation()
    assert orchestrator.search_entity(GRAK) == []


def test_parallel_search_returns_results_per_group(store: CacheStore) -> None:
    orchestrator = _orchestrator(_index(store), parallel_batch_size=2)
    progress: List[tuple] = []

    results = orchestrator.parallel_search(
        {"boss": GRAK, "minion": EntityDescriptor(name="Goblin Archer", type="humanoid")},
        on_progress=lambda processed, total: progress.append((processed, total)),
    )

    assert set(results) == {"boss", "minion"}
    assert results["minion"][0].path == "tokens/goblin_archer.png"
    assert progress == [(2, 2)]


def test_entities_without_terms_return_nothing() -> None:
    assert _orchestrator(remote=FakeTermSource({})).search_entity(EntityDescriptor(name=" ")) == []
