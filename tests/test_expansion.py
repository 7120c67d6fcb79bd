"""Tests for recursive dependency selection and its cache."""

import threading

import pytest

from depselect.expansion import CacheKey, ExpansionCache, recursive_includes
from depselect.formula import (
    Dependency,
    Formula,
    FormulaRegistry,
    FormulaUnavailableError,
    Requirement,
    Tap,
)
from depselect.models import Category, RuleSet

DEFAULT_INCLUDES = (Category.REQUIRED, Category.RECOMMENDED)
INCLUDES_WITH_BUILD = DEFAULT_INCLUDES + (Category.BUILD,)


# ── Helpers ───────────────────────────────────────────────────

def _dep(name, *tags):
    return Dependency(name, tags)


def _build_registry(formulae, taps=()):
    registry = FormulaRegistry()
    for tap in taps:
        registry.add_tap(tap)
    for f in formulae:
        registry.add_formula(f)
    return registry


@pytest.fixture
def test_formula():
    """root -> d1(build), d2(recommended+test), d3, f7; with leaf formulae f0..f7."""
    formulae = [Formula(f"f{i}", installed=(i == 6)) for i in range(8)]
    formulae += [
        Formula("d1", deps=[_dep("f0", "build"), _dep("f1", "test"), _dep("f2")]),
        Formula("d2", deps=[_dep("f3", "build"), _dep("f4")]),
        Formula(
            "d3",
            deps=[_dep("f5", "test"), _dep("f6")],
            requirements=[Requirement("java"), Requirement("autoconf", ["build"])],
        ),
    ]
    root = Formula(
        "test_formula",
        deps=[_dep("d1", "build"), _dep("d2", "recommended", "test"), _dep("d3"), _dep("f7")],
        requirements=[Requirement("xcode", ["build"], satisfied=True)],
    )
    _build_registry(formulae + [root])
    return root


def _sorted_names(nodes):
    return sorted(n.name for n in nodes)


# ── Fixture graph scenarios ───────────────────────────────────

class TestRecursiveIncludes:
    def test_empty_includes(self, test_formula):
        assert recursive_includes(Dependency, test_formula, RuleSet(includes=())) == []

    def test_default_includes(self, test_formula):
        deps = recursive_includes(Dependency, test_formula, RuleSet(DEFAULT_INCLUDES))
        assert _sorted_names(deps) == ["d2", "d3", "f4", "f6", "f7"]

    def test_first_visit_order(self, test_formula):
        deps = recursive_includes(Dependency, test_formula, RuleSet(DEFAULT_INCLUDES))
        assert [d.name for d in deps] == ["d2", "f4", "d3", "f6", "f7"]

    def test_includes_with_build(self, test_formula):
        deps = recursive_includes(Dependency, test_formula, RuleSet(INCLUDES_WITH_BUILD))
        assert _sorted_names(deps) == ["d1", "d2", "d3", "f0", "f2", "f3", "f4", "f6", "f7"]

    def test_recommended_in_includes_and_ignores(self, test_formula):
        rules = RuleSet(DEFAULT_INCLUDES, ignores=(Category.RECOMMENDED,))
        deps = recursive_includes(Dependency, test_formula, rules)
        assert _sorted_names(deps) == ["d3", "f6", "f7"]

    def test_skip(self, test_formula):
        deps = recursive_includes(Dependency, test_formula, RuleSet(DEFAULT_INCLUDES), skip=["d2", "f6"])
        assert _sorted_names(deps) == ["d3", "f7"]

    def test_skip_hides_descendants(self, test_formula):
        deps = recursive_includes(Dependency, test_formula, RuleSet(INCLUDES_WITH_BUILD), skip={"d2"})
        names = {d.name for d in deps}
        assert not names & {"d2", "f3", "f4"}

    def test_recursive_ignores_build(self, test_formula):
        rules = RuleSet(INCLUDES_WITH_BUILD, recursive_ignores=(Category.BUILD,))
        deps = recursive_includes(Dependency, test_formula, rules)
        assert _sorted_names(deps) == ["d1", "d2", "d3", "f2", "f4", "f6", "f7"]

    def test_indirect_test_dependencies_always_ignored(self, test_formula):
        rules = RuleSet(INCLUDES_WITH_BUILD + (Category.TEST,))
        names = {d.name for d in recursive_includes(Dependency, test_formula, rules)}
        assert "f1" not in names
        assert "f5" not in names

    def test_direct_test_dependency_included(self):
        root = Formula("root", deps=[_dep("t", "test"), _dep("a")])
        _build_registry([root, Formula("t"), Formula("a", deps=[_dep("t2", "test")]), Formula("t2")])
        rules = RuleSet(DEFAULT_INCLUDES + (Category.TEST,))
        assert [d.name for d in recursive_includes(Dependency, root, rules)] == ["t", "a"]

    def test_only_missing(self, test_formula):
        rules = RuleSet(DEFAULT_INCLUDES, ignores=(Category.SATISFIED,))
        deps = recursive_includes(Dependency, test_formula, rules)
        assert _sorted_names(deps) == ["d2", "d3", "f4", "f7"]

    def test_invalid_kind(self, test_formula):
        with pytest.raises(ValueError, match="Invalid class argument"):
            recursive_includes(Formula, test_formula, RuleSet())


class TestGraphShapes:
    def test_shared_dependency_listed_once(self):
        root = Formula("root", deps=[_dep("a"), _dep("b")])
        _build_registry([root, Formula("a", deps=[_dep("x")]), Formula("b", deps=[_dep("x")]), Formula("x")])
        deps = recursive_includes(Dependency, root, RuleSet())
        assert [d.name for d in deps] == ["a", "x", "b"]

    def test_shared_dependency_included_through_qualifying_parent(self):
        # x is build-only under a but required under b
        root = Formula("root", deps=[_dep("a"), _dep("b")])
        _build_registry([
            root,
            Formula("a", deps=[_dep("x", "build")]),
            Formula("b", deps=[_dep("x")]),
            Formula("x"),
        ])
        deps = recursive_includes(Dependency, root, RuleSet())
        assert [d.name for d in deps] == ["a", "b", "x"]

    def test_cycle_back_to_root(self):
        root = Formula("root", deps=[_dep("a")])
        _build_registry([root, Formula("a", deps=[_dep("root")])])
        assert [d.name for d in recursive_includes(Dependency, root, RuleSet())] == ["a"]

    def test_untapped_dependency_is_a_leaf(self):
        root = Formula("root", deps=[_dep("acme/tools/widget")])
        _build_registry([root], taps=[Tap("acme/tools", installed=False)])
        deps = recursive_includes(Dependency, root, RuleSet())
        assert [d.name for d in deps] == ["acme/tools/widget"]

    def test_untapped_dependency_still_filtered(self):
        root = Formula("root", deps=[_dep("acme/tools/widget", "build")])
        _build_registry([root])
        assert recursive_includes(Dependency, root, RuleSet()) == []

    def test_tapped_dependency_is_expanded(self):
        plugin = Formula("plugin", tap=Tap("acme/extras"), deps=[_dep("zlib")])
        root = Formula("root", deps=[_dep("acme/extras/plugin")])
        _build_registry([root, plugin, Formula("zlib")], taps=[Tap("acme/extras")])
        deps = recursive_includes(Dependency, root, RuleSet())
        assert [d.name for d in deps] == ["acme/extras/plugin", "zlib"]

    def test_untapped_dependency_with_only_missing(self):
        root = Formula("root", deps=[_dep("acme/tools/widget")])
        _build_registry([root], taps=[Tap("acme/tools", installed=False)])
        rules = RuleSet(DEFAULT_INCLUDES, ignores=(Category.SATISFIED,))
        deps = recursive_includes(Dependency, root, rules)
        assert [d.name for d in deps] == ["acme/tools/widget"]

    def test_qualified_and_short_name_listed_once(self):
        plugin = Formula("plugin", tap=Tap("acme/extras"))
        root = Formula("root", deps=[_dep("acme/extras/plugin"), _dep("a")])
        _build_registry([root, plugin, Formula("a", deps=[_dep("plugin")])], taps=[Tap("acme/extras")])
        deps = recursive_includes(Dependency, root, RuleSet())
        assert [d.name for d in deps] == ["acme/extras/plugin", "a"]

    def test_unavailable_formula_propagates(self):
        root = Formula("root", deps=[_dep("ghost")])
        _build_registry([root])
        with pytest.raises(FormulaUnavailableError):
            recursive_includes(Dependency, root, RuleSet())


class TestRequirements:
    def test_default_includes(self, test_formula):
        reqs = recursive_includes(Requirement, test_formula, RuleSet(DEFAULT_INCLUDES))
        assert [r.name for r in reqs] == ["java"]

    def test_with_build(self, test_formula):
        reqs = recursive_includes(Requirement, test_formula, RuleSet(INCLUDES_WITH_BUILD))
        assert [r.name for r in reqs] == ["xcode", "java", "autoconf"]

    def test_recursive_ignores_build(self, test_formula):
        rules = RuleSet(INCLUDES_WITH_BUILD, recursive_ignores=(Category.BUILD,))
        reqs = recursive_includes(Requirement, test_formula, rules)
        assert [r.name for r in reqs] == ["xcode", "java"]

    def test_only_missing(self, test_formula):
        rules = RuleSet(INCLUDES_WITH_BUILD, ignores=(Category.SATISFIED,))
        reqs = recursive_includes(Requirement, test_formula, rules)
        assert [r.name for r in reqs] == ["java", "autoconf"]

    def test_skip(self, test_formula):
        reqs = recursive_includes(Requirement, test_formula, RuleSet(INCLUDES_WITH_BUILD), skip=["java"])
        assert [r.name for r in reqs] == ["xcode", "autoconf"]


# ── Cache ─────────────────────────────────────────────────────

class TestExpansionCache:
    def test_second_call_does_not_traverse(self, test_formula):
        cache = ExpansionCache()
        first = recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        second = recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        assert first == second
        assert cache.traversals == 1
        assert cache.hits == 1

    def test_cached_result_is_a_copy(self, test_formula):
        cache = ExpansionCache()
        first = recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        first.clear()
        assert recursive_includes(Dependency, test_formula, RuleSet(), cache=cache) != []

    def test_roots_do_not_share_entries(self, test_formula):
        cache = ExpansionCache()
        recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        d1 = test_formula.deps[0].to_formula()
        deps = recursive_includes(Dependency, d1, RuleSet(), cache=cache)
        assert [d.name for d in deps] == ["f2"]
        assert cache.traversals == 2
        assert len(cache) == 2

    def test_rules_and_skip_change_the_key(self, test_formula):
        cache = ExpansionCache()
        recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        recursive_includes(Dependency, test_formula, RuleSet(INCLUDES_WITH_BUILD), cache=cache)
        recursive_includes(Dependency, test_formula, RuleSet(), skip=["d2"], cache=cache)
        recursive_includes(Requirement, test_formula, RuleSet(), cache=cache)
        assert cache.traversals == 4

    def test_test_recursive_ignore_is_implicit(self, test_formula):
        cache = ExpansionCache()
        recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        recursive_includes(Dependency, test_formula, RuleSet(recursive_ignores=(Category.TEST,)), cache=cache)
        assert cache.traversals == 1

    def test_clear(self, test_formula):
        cache = ExpansionCache()
        recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        cache.clear()
        assert len(cache) == 0
        recursive_includes(Dependency, test_formula, RuleSet(), cache=cache)
        assert cache.traversals == 2

    def test_concurrent_callers_share_one_traversal(self, test_formula):
        cache = ExpansionCache()
        results = []

        def run():
            results.append(recursive_includes(Dependency, test_formula, RuleSet(), cache=cache))

        threads = [threading.Thread(target=run) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.traversals == 1
        assert all(r == results[0] for r in results)


class TestCacheKey:
    def test_order_insensitive(self):
        a = RuleSet(INCLUDES_WITH_BUILD, recursive_ignores=(Category.BUILD, Category.TEST))
        b = RuleSet(tuple(reversed(INCLUDES_WITH_BUILD)), recursive_ignores=(Category.TEST, Category.BUILD))
        assert CacheKey.build(Dependency, a, frozenset()) == CacheKey.build(Dependency, b, frozenset())

    def test_normalization(self):
        a = CacheKey.build(Dependency, RuleSet().normalized(), frozenset())
        b = CacheKey.build(Dependency, RuleSet(recursive_ignores=(Category.TEST,)).normalized(), frozenset())
        assert a == b
        assert hash(a) == hash(b)

    def test_kind_distinguishes(self):
        rules = RuleSet().normalized()
        assert CacheKey.build(Dependency, rules, frozenset()) != CacheKey.build(Requirement, rules, frozenset())
