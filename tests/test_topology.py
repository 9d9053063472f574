import pytest

from reel_tuning.analysis import Violation, analyze_strip, find_violations
from reel_tuning.errors import ConfigurationError, TopologyError
from reel_tuning.symbols import SymbolToken, strip_from_strings
from reel_tuning.topology import (
    ClusterForbiddenRule,
    GoldTopologyConfig,
    ReelRole,
    ReelTopology,
    ReelWeightsSet,
    TopologySet,
)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"symbol_density": {"fa": 2.5}},
        {"symbol_density": {"fa": 0.1}},
        {"min_spacing": {"bonus": -1}},
        {"max_cluster_size": {"fa": 0}},
        {"cluster_forbidden": [ClusterForbiddenRule(frozenset({"fa"}), 0, frozenset())]},
        {"gold_config": GoldTopologyConfig(enabled=True, gold_ratio=1.5)},
        {"gold_config": GoldTopologyConfig(enabled=True, gold_ratio=0.1, min_gold_spacing=-2)},
    ],
)
def test_malformed_topology_is_rejected(kwargs):
    with pytest.raises(TopologyError):
        ReelTopology(role=ReelRole.CORE, **kwargs).validate()


def test_topology_set_needs_five_reels():
    with pytest.raises(TopologyError):
        TopologySet([ReelTopology(role=ReelRole.CORE)] * 4)


def test_topology_set_index_and_clone(make_topologies):
    topologies = make_topologies({0: {"symbol_density": {"fa": 1.4}}})
    with pytest.raises(ConfigurationError):
        topologies[5]

    clone = topologies.clone()
    clone[0].symbol_density["fa"] = 0.5
    assert topologies[0].density_for("fa") == 1.4
    assert len(clone) == 5


def test_topology_round_trip():
    topology = ReelTopology(
        role=ReelRole.RARE_SPIKE,
        symbol_density={"fa": 1.2, "bonus": 0.8},
        min_spacing={"bonus": 10},
        max_cluster_size={"liangtong": 2},
        forbidden_pairs={frozenset({"fa", "zhong"})},
        cluster_forbidden=[ClusterForbiddenRule(frozenset({"wusuo", "wutong"}), 2, frozenset({"fa"}))],
        gold_config=GoldTopologyConfig(enabled=True, gold_ratio=0.05, min_gold_spacing=2, max_gold_cluster=2),
    )
    restored = ReelTopology.from_dict(topology.to_dict())
    assert restored == topology


def test_roles_are_ordered_with_multipliers():
    assert [role.display_name for role in ReelRole] == ["Activator", "Connector", "Core", "Amplifier", "RareSpike"]
    assert ReelRole.from_name("RareSpike") is ReelRole.RARE_SPIKE
    assert ReelRole.ACTIVATOR.multipliers.low == 1.3
    assert ReelRole.AMPLIFIER.multipliers.for_category("mid") == 1.3
    with pytest.raises(TopologyError):
        ReelRole.from_name("Scatterer")


def test_weights_set_validates_on_read():
    weights = ReelWeightsSet([{"fa": 1}, {"fa": 1}, {}, {"fa": -2}, {"fa": 1}])
    assert weights.reel(0) == {"fa": 1}
    with pytest.raises(ConfigurationError):
        weights.reel(2)
    with pytest.raises(ConfigurationError):
        weights.reel(3)
    with pytest.raises(ConfigurationError):
        weights.reel(7)
    with pytest.raises(ConfigurationError):
        ReelWeightsSet([{"fa": 1}] * 3)


def test_weights_set_copies_input():
    source = [{"fa": 1}] * 5
    weights = ReelWeightsSet(source)
    weights.reel(0)["fa"] = 9
    source[1]["fa"] = 7
    assert weights.reel(0) == {"fa": 1}
    assert weights.reel(1) == {"fa": 1}


def test_token_text_round_trip():
    assert str(SymbolToken("fa", True)) == "fa_gold"
    assert SymbolToken.parse(" bai_gold ") == SymbolToken("bai", True)
    assert SymbolToken.parse("_gold") == SymbolToken("_gold", False)


def test_find_violations_names_each_rule():
    rule = ClusterForbiddenRule(frozenset({"liangtong", "liangsuo"}), 2, frozenset({"fa"}))
    topology = ReelTopology(
        role=ReelRole.CORE,
        min_spacing={"bonus": 3},
        max_cluster_size={"wusuo": 1},
        forbidden_pairs={frozenset({"fa", "zhong"})},
        cluster_forbidden=[rule],
    )
    strip = strip_from_strings(["bonus", "bonus", "fa", "zhong", "wusuo", "wusuo", "liangtong", "liangsuo", "bai"])

    assert find_violations(strip, topology) == [
        Violation(1, "bonus", "spacing"),
        Violation(3, "zhong", "forbidden_pair"),
        Violation(5, "wusuo", "cluster"),
        Violation(8, "bai", "cluster_rule"),
    ]


def test_analyze_strip_counts_runs_and_spacing():
    analysis = analyze_strip(strip_from_strings(["fa", "fa", "bai", "fa", "fa_gold"]))

    assert analysis.length == 5
    assert analysis.symbol_counts == {"fa": 3, "bai": 1, "fa_gold": 1}
    assert analysis.max_cluster_size["fa"] == 2
    assert analysis.avg_spacing["fa"] == pytest.approx(1.5)
