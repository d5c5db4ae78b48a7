from __future__ import annotations

from artindex.models.domain import CatalogRegistry, ImageRecord
from artindex.search.engine import SCORE_EXACT, SCORE_PREFIX, SCORE_SUBSTRING, SearchEngine, score_match


def _registry() -> CatalogRegistry:
    registry = CatalogRegistry()
    for path, name, category, subcategories in [
        ("tokens/goblin.png", "goblin", "humanoid", ("goblin",)),
        ("tokens/goblin_boss.png", "goblin boss", "humanoid", ("goblin",)),
        ("tokens/hobgoblin.png", "hobgoblin", "humanoid", ("goblin", "hobgoblin")),
        ("goblins/captain.png", "captain", "humanoid", ("goblin",)),
        ("tokens/wolf.png", "wolf", "beast", ("wolf",)),
    ]:
        registry.insert(ImageRecord(path=path, name=name, category=category, subcategories=subcategories))
    return registry


def test_score_match_orders_exact_prefix_substring() -> None:
    assert score_match("goblin", "goblin") == SCORE_EXACT
    assert score_match("goblin boss", "goblin") == SCORE_PREFIX
    assert score_match("hobgoblin", "goblin") == SCORE_SUBSTRING


def test_exact_search_scores_names_then_paths() -> None:
    results = SearchEngine(_registry()).search_exact("Goblin")

    assert [(result.path, result.score) for result in results] == [
        ("tokens/goblin.png", SCORE_EXACT),
        ("tokens/goblin_boss.png", SCORE_PREFIX),
        ("tokens/hobgoblin.png", SCORE_SUBSTRING),
        ("goblins/captain.png", SCORE_SUBSTRING),
    ]
    assert all(result.source == "index" for result in results)


def test_blank_terms_return_nothing() -> None:
    assert SearchEngine(_registry()).search_exact("  ") == []


def test_multiple_terms_keep_best_score_per_path() -> None:
    results = SearchEngine(_registry()).search_multiple(["hobgoblin", "goblin", "wolf"])
    scores = {result.path: result.score for result in results}

    assert scores["tokens/hobgoblin.png"] == SCORE_EXACT
    assert scores["tokens/wolf.png"] == SCORE_EXACT
    assert len(results) == 5


def test_subcategory_falls_back_to_related_buckets() -> None:
    engine = SearchEngine(_registry())

    exact = {result.path for result in engine.search_by_subcategory("humanoid", "hobgoblin")}
    related = {result.path for result in engine.search_by_subcategory("humanoid", "goblins")}

    assert exact == {"tokens/hobgoblin.png"}
    assert related == {"tokens/goblin.png", "tokens/goblin_boss.png", "tokens/hobgoblin.png", "goblins/captain.png"}
    assert engine.search_by_subcategory("dragon", "red") == []


def test_category_lookup_uses_terms_when_registry_has_no_categories() -> None:
    registry = CatalogRegistry()
    registry.insert(ImageRecord(path="packs/goblins/tokens/raider.png", name="raider"))
    registry.insert(ImageRecord(path="goblins/x/y/z/raider.png", name="raider two"))
    engine = SearchEngine(registry, {"humanoid": ("goblin",)}, source="external", category_path_depth=4)

    paths = [result.path for result in engine.search_by_category("humanoid")]

    assert paths == ["packs/goblins/tokens/raider.png"]
    assert engine.search_by_category("ogre") == []
