import random

import pytest

from reel_tuning.analysis import analyze_gold
from reel_tuning.gold import GoldOverlay, circular_distance, gold_target
from reel_tuning.symbols import SymbolToken, strip_from_strings
from reel_tuning.topology import GoldTopologyConfig

MIXED = strip_from_strings(
    ["fa", "wild", "bonus", "liangtong", "bai", "bonus", "wild", "zhong", "wusuo", "bawan", "liangsuo", "wutong"] * 5
)


def _overlay(make_topologies, symbols, gold_config, strip, seed=0):
    topologies = make_topologies({0: {"gold_config": gold_config}})
    return GoldOverlay(topologies, symbols).overlay(strip, 0, random.Random(seed))


@pytest.mark.parametrize("seed", range(5))
def test_wild_and_scatter_never_turn_gold(make_topologies, symbols, seed):
    config = GoldTopologyConfig(enabled=True, gold_ratio=1.0)
    result = _overlay(make_topologies, symbols, config, MIXED, seed)

    for token in result:
        if token.base in (symbols.wild, symbols.scatter):
            assert not token.is_gold
        else:
            assert token.is_gold


def test_overlay_returns_a_new_strip(make_topologies, symbols):
    before = list(MIXED)
    result = _overlay(make_topologies, symbols, GoldTopologyConfig(enabled=True, gold_ratio=0.5), MIXED)

    assert MIXED == before
    assert result is not MIXED
    assert [token.base for token in result] == [token.base for token in MIXED]


@pytest.mark.parametrize(
    "gold_config",
    [
        None,
        GoldTopologyConfig(enabled=False, gold_ratio=0.5),
        GoldTopologyConfig(enabled=True, gold_ratio=0.0),
    ],
)
def test_inactive_gold_leaves_strip_unchanged(make_topologies, symbols, gold_config):
    assert _overlay(make_topologies, symbols, gold_config, MIXED) == MIXED


@pytest.mark.parametrize("seed", range(5))
def test_gold_spacing_is_circular(make_topologies, symbols, seed):
    strip = [SymbolToken("fa")] * 40
    config = GoldTopologyConfig(enabled=True, gold_ratio=0.5, min_gold_spacing=3)
    result = _overlay(make_topologies, symbols, config, strip, seed)

    positions = [idx for idx, token in enumerate(result) if token.is_gold]
    assert 0 < len(positions) <= 20
    for idx, first in enumerate(positions):
        for second in positions[idx + 1:]:
            assert circular_distance(first, second, len(result)) >= 3


@pytest.mark.parametrize("seed", range(5))
def test_gold_cluster_limit(make_topologies, symbols, seed):
    strip = [SymbolToken("liangtong")] * 30
    config = GoldTopologyConfig(enabled=True, gold_ratio=1.0, max_gold_cluster=2)
    topologies = make_topologies({0: {"gold_config": config}})
    result = GoldOverlay(topologies, symbols).overlay(strip, 0, random.Random(seed))

    report = analyze_gold(result, 0, topologies[0], symbols)
    assert report.gold_symbols > 0
    assert report.max_gold_cluster <= 2
    assert report.target_ratio == 1.0


def test_per_symbol_ratio_overrides_shared_ratio(make_topologies, symbols):
    config = GoldTopologyConfig(enabled=True, gold_ratio=1.0, per_symbol_gold_ratio={"fa": 0.0})
    result = _overlay(make_topologies, symbols, config, MIXED)

    assert not any(token.is_gold for token in result if token.base == "fa")
    assert all(token.is_gold for token in result if token.base == "liangtong")


def test_existing_gold_is_kept_and_spaced_against(make_topologies, symbols):
    strip = [SymbolToken("fa", True)] + [SymbolToken("bai")] * 9
    config = GoldTopologyConfig(enabled=True, gold_ratio=1.0, min_gold_spacing=4)
    result = _overlay(make_topologies, symbols, config, strip)

    assert result[0].is_gold
    for pos in (1, 2, 3, 7, 8, 9):
        assert not result[pos].is_gold


@pytest.mark.parametrize(
    "ratio, eligible, expected",
    [(0.04, 10, 1), (0.05, 50, 3), (0.1, 100, 10), (0.0, 100, 0), (0.5, 0, 0)],
)
def test_gold_target_rounding(ratio, eligible, expected):
    assert gold_target(ratio, eligible) == expected
