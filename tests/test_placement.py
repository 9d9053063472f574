import logging
import random
from collections import Counter

import pytest

from reel_tuning.analysis import find_violations
from reel_tuning.constraints import PlacementState
from reel_tuning.errors import ConfigurationError
from reel_tuning.fallbacks import (
    DropAndReplaceFallback,
    FindBestFallback,
    PlacementFallback,
    RetryQueueFallback,
    fallback_for,
    find_best,
)
from reel_tuning.placement import ConstraintPlacer, StripGenerator
from reel_tuning.pool import density_adjusted_weights
from reel_tuning.symbols import SymbolConfig, SymbolToken
from reel_tuning.topology import ClusterForbiddenRule, GoldTopologyConfig, ReelRole, ReelTopology, ReelWeightsSet

SCENARIO_WEIGHTS = {
    "fa": 1,
    "zhong": 1,
    "bai": 1,
    "bawan": 1,
    "wusuo": 5,
    "wutong": 5,
    "liangsuo": 5,
    "liangtong": 5,
    "bonus": 2,
}

MIXED_WEIGHTS = {
    "fa": 4,
    "zhong": 5,
    "bai": 7,
    "bawan": 9,
    "wusuo": 12,
    "wutong": 12,
    "liangsuo": 23,
    "liangtong": 23,
    "bonus": 3,
}


class GiveUpFallback(PlacementFallback):
    name = "give_up"

    def resolve(self, ctx):
        ctx.remaining.pop(0)
        return False


def _tokens(*names):
    return [SymbolToken(name) for name in names]


@pytest.mark.parametrize("seed", range(25))
def test_scatter_spacing_scenario(make_topologies, symbols, seed):
    topologies = make_topologies({0: {"min_spacing": {"bonus": 10}}})
    generator = StripGenerator(topologies, symbols)
    pool_length = sum(SCENARIO_WEIGHTS.values())

    strip = generator.generate(0, SCENARIO_WEIGHTS, random.Random(seed))

    assert pool_length - 1 <= len(strip) <= pool_length
    bonus_positions = [idx for idx, token in enumerate(strip) if token.base == "bonus"]
    assert len(bonus_positions) <= 2
    for first, second in zip(bonus_positions, bonus_positions[1:]):
        assert second - first >= 10


@pytest.mark.parametrize("fallback", [DropAndReplaceFallback(), FindBestFallback(), RetryQueueFallback()])
def test_unconstrained_topology_is_a_permutation(make_topologies, symbols, fallback):
    topologies = make_topologies({2: {"symbol_density": {"fa": 1.5, "liangtong": 0.5}}})
    generator = StripGenerator(topologies, symbols, fallback)

    strip, stats = generator.generate_with_stats(2, MIXED_WEIGHTS, random.Random(11))

    expected = density_adjusted_weights(MIXED_WEIGHTS, topologies[2])
    assert Counter(token.base for token in strip) == Counter(expected)
    assert stats.placed_normally == len(strip)
    assert not stats.degraded


@pytest.mark.parametrize("seed", range(10))
def test_drop_and_replace_never_breaks_a_constraint(make_topologies, symbols, seed):
    topology_kwargs = {
        "min_spacing": {"fa": 4, "zhong": 4, "bai": 4, "bonus": 10},
        "max_cluster_size": {"fa": 1, "zhong": 1, "bai": 1, "bawan": 1, "liangtong": 2, "liangsuo": 2},
        "forbidden_pairs": {frozenset({"fa", "zhong"})},
    }
    topologies = make_topologies({1: topology_kwargs})
    generator = StripGenerator(topologies, symbols, DropAndReplaceFallback())

    strip, stats = generator.generate_with_stats(1, MIXED_WEIGHTS, random.Random(seed))

    assert find_violations(strip, topologies[1]) == []
    assert len(strip) <= stats.target_length


def test_find_best_forces_the_stuck_symbol(symbols):
    topology = ReelTopology(role=ReelRole.CORE, min_spacing={"fa": 5})
    placer = ConstraintPlacer(symbols, FindBestFallback())

    strip, stats = placer.place(_tokens("fa", "fa", "fa"), topology, random.Random(0))

    assert [token.base for token in strip] == ["fa", "fa", "fa"]
    assert stats.placed_normally == 1
    assert stats.placed_forcefully == 2
    assert stats.degraded


def test_retry_queue_drains_deferred_symbols(symbols):
    topology = ReelTopology(role=ReelRole.CORE, min_spacing={"fa": 5})
    placer = ConstraintPlacer(symbols, RetryQueueFallback())

    strip, stats = placer.place(_tokens("fa", "fa", "fa"), topology, random.Random(0))

    assert len(strip) == 3
    assert stats.placed_forcefully == 2


def test_first_fit_skips_ahead_to_a_placeable_symbol(symbols):
    topology = ReelTopology(role=ReelRole.CORE, min_spacing={"fa": 2})
    placer = ConstraintPlacer(symbols, RetryQueueFallback())

    strip, stats = placer.place(_tokens("fa", "fa", "bai"), topology, random.Random(0))

    assert [token.base for token in strip] == ["fa", "bai", "fa"]
    assert stats.placed_forcefully == 0


def test_drop_and_replace_substitutes_same_tier(symbols):
    topology = ReelTopology(role=ReelRole.CORE, min_spacing={"fa": 5})
    placer = ConstraintPlacer(symbols, DropAndReplaceFallback())

    strip, stats = placer.place(_tokens("fa", "fa", "fa"), topology, random.Random(0))

    assert [token.base for token in strip] == ["fa", "zhong", "zhong"]
    assert stats.dropped == {"fa": 2}
    assert stats.replaced == {"zhong": 2}
    assert stats.placed_with_replacement == 2


def test_drop_and_replace_leaves_short_strip_when_nothing_fits():
    single = SymbolConfig(low=("a",), mid=(), high=(), paytable={"a": {3: 1.0}})
    topology = ReelTopology(role=ReelRole.CORE, max_cluster_size={"a": 1})
    placer = ConstraintPlacer(single, DropAndReplaceFallback())

    strip, stats = placer.place(_tokens("a", "a", "a"), topology, random.Random(0))

    assert len(strip) == 1
    assert stats.final_length == 1
    assert stats.dropped == {"a": 2}


def test_failed_policy_falls_back_to_unconstrained_shuffle(make_topologies, symbols, caplog):
    topologies = make_topologies({0: {"min_spacing": {"fa": 50}}})
    generator = StripGenerator(topologies, symbols, GiveUpFallback())
    weights = {"fa": 3, "bai": 2}

    with caplog.at_level(logging.WARNING, logger="reel_tuning.placement"):
        strip, stats = generator.generate_with_stats(0, weights, random.Random(5))

    assert stats.unconstrained_fallback
    assert Counter(token.base for token in strip) == Counter(weights)
    assert "unconstrained shuffle" in caplog.text


def test_find_best_prefers_first_on_ties():
    state = PlacementState(ReelTopology(role=ReelRole.CORE))
    assert find_best(state, _tokens("zhong", "fa", "bai")) == 0


def test_find_best_penalizes_spacing_gap():
    state = PlacementState(ReelTopology(role=ReelRole.CORE, min_spacing={"fa": 4}))
    state.place(SymbolToken("fa"))
    state.place(SymbolToken("bai"))
    assert find_best(state, _tokens("fa", "zhong")) == 1


def test_find_best_rewards_breaking_a_cluster():
    rule = ClusterForbiddenRule(
        cluster_symbols=frozenset({"liangtong", "liangsuo"}),
        group_size=2,
        allowed_symbols=frozenset({"fa"}),
    )
    state = PlacementState(ReelTopology(role=ReelRole.CORE, cluster_forbidden=[rule]))
    state.place(SymbolToken("liangtong"))
    state.place(SymbolToken("liangsuo"))
    assert not state.can_place("bai")
    assert state.can_place("fa")
    assert find_best(state, _tokens("bai", "liangtong", "fa")) == 2


def test_generator_rejects_bad_input(make_topologies, symbols):
    generator = StripGenerator(make_topologies(), symbols)
    rng = random.Random(0)
    with pytest.raises(ConfigurationError):
        generator.generate(5, MIXED_WEIGHTS, rng)
    with pytest.raises(ConfigurationError):
        generator.generate(-1, MIXED_WEIGHTS, rng)
    with pytest.raises(ConfigurationError):
        generator.generate(0, {}, rng)
    with pytest.raises(ConfigurationError):
        generator.generate(0, {"fa": -1, "bai": 3}, rng)
    with pytest.raises(ConfigurationError):
        generator.generate(0, {"fa": 0, "bai": 0}, rng)


def test_density_scaling_keeps_rare_symbols(make_topologies):
    topology = make_topologies({0: {"symbol_density": {"fa": 0.3, "bai": 2.0}}})[0]
    adjusted = density_adjusted_weights({"fa": 1, "bai": 5, "zhong": 0, "wusuo": 7}, topology)
    assert adjusted == {"fa": 1, "bai": 10, "zhong": 0, "wusuo": 7}


def test_generate_all_applies_gold_only_where_enabled(make_topologies, symbols):
    gold = GoldTopologyConfig(enabled=True, gold_ratio=0.2)
    topologies = make_topologies({2: {"gold_config": gold}})
    generator = StripGenerator(topologies, symbols)
    weights = ReelWeightsSet([MIXED_WEIGHTS] * 5)

    strips = generator.generate_all(weights, random.Random(3))

    assert len(strips) == 5
    for reel_index, strip in enumerate(strips):
        has_gold = any(token.is_gold for token in strip)
        assert has_gold == (reel_index == 2)


def test_fallback_lookup():
    assert isinstance(fallback_for("find_best"), FindBestFallback)
    assert isinstance(fallback_for("retry_queue"), RetryQueueFallback)
    assert isinstance(fallback_for("drop_and_replace"), DropAndReplaceFallback)
    with pytest.raises(ConfigurationError):
        fallback_for("coin_flip")
