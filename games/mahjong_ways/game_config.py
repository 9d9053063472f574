import os
from pathlib import Path

from reel_tuning.config import TuningConfig, base_game_config, free_spins_config
from reel_tuning.symbols import default_symbol_config
from reel_tuning.topology import (
    ClusterForbiddenRule,
    GoldTopologyConfig,
    ReelRole,
    ReelTopology,
    ReelWeightsSet,
    TopologySet,
    clamp_density,
)

BASE_GAME = "base_game"
FREE_SPINS = "free_spins"

# Share of the strip, in percent. The scatter share is taken first and the
# remaining symbols split what is left.
BASE_WEIGHT_RATES = {
    "fa": 4,
    "zhong": 5,
    "bai": 7,
    "bawan": 9,
    "wusuo": 12,
    "wutong": 12,
    "liangsuo": 23,
    "liangtong": 23,
}
FREE_SPIN_WEIGHT_RATES = {
    "fa": 8,
    "zhong": 9,
    "bai": 11,
    "bawan": 12,
    "wusuo": 13,
    "wutong": 14,
    "liangsuo": 16,
    "liangtong": 17,
}
SCATTER_RATE = 2

HIGH_SPACED = ("fa", "zhong", "bai")
SCATTER_SPACING = 10
HIGH_SPACING = 4


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def weights_from_rates(rates, scatter_rate, strip_length, scatter="bonus"):
    """Turn percentage rates into integer weights for one reel of ``strip_length``."""
    scatter_count = _round_half_up(scatter_rate * strip_length / 100)
    normal = strip_length - scatter_count
    weights = {sym: _round_half_up(rate * normal / 100) for sym, rate in rates.items()}
    weights[scatter] = scatter_count
    return weights


def _densities(values):
    return {sym: clamp_density(value) for sym, value in values.items()}


def _cluster_limits():
    limits = {sym: 1 for sym in ("fa", "zhong", "bai", "bawan", "bonus")}
    limits.update({sym: 2 for sym in ("wusuo", "wutong", "liangsuo", "liangtong")})
    return limits


def _cluster_rules():
    return [
        ClusterForbiddenRule(
            cluster_symbols=frozenset({"liangtong", "liangsuo", "wutong", "wusuo"}),
            group_size=2,
            allowed_symbols=frozenset({"fa", "zhong", "bai", "bawan"}),
        ),
        ClusterForbiddenRule(
            cluster_symbols=frozenset({"fa", "zhong", "bai"}),
            group_size=2,
            allowed_symbols=frozenset({"liangtong", "liangsuo", "wutong", "wusuo", "bawan"}),
        ),
    ]


def _spacing(high_spaced):
    spacing = {"bonus": SCATTER_SPACING}
    if high_spaced:
        spacing.update({sym: HIGH_SPACING for sym in HIGH_SPACED})
    return spacing


def _gold(ratio):
    return GoldTopologyConfig(enabled=True, gold_ratio=ratio, min_gold_spacing=2, max_gold_cluster=2)


def _topologies(densities, gold_ratios):
    """Five-reel layout shared by both modes; only densities and gold ratios differ."""
    roles = [ReelRole.ACTIVATOR, ReelRole.CONNECTOR, ReelRole.CORE, ReelRole.AMPLIFIER, ReelRole.RARE_SPIKE]
    reels = []
    for reel_index, role in enumerate(roles):
        gold_ratio = gold_ratios.get(reel_index)
        reels.append(
            ReelTopology(
                role=role,
                symbol_density=_densities(densities[reel_index]),
                min_spacing=_spacing(high_spaced=reel_index in (0, 2, 4)),
                max_cluster_size=_cluster_limits(),
                cluster_forbidden=_cluster_rules() if reel_index < 3 else [],
                gold_config=_gold(gold_ratio) if gold_ratio else None,
            )
        )
    return TopologySet(reels)


_FLAT = {sym: 1.0 for sym in BASE_WEIGHT_RATES}
# High and mid symbols pushed to the density ceiling on the outer-middle reels.
_WIDE_HIGH = {
    "fa": 2.0,
    "zhong": 2.0,
    "bai": 2.0,
    "bawan": 2.0,
    "wusuo": 1.55,
    "wutong": 1.35,
    "liangsuo": 1.2,
    "liangtong": 1.0,
}
_CORE = {
    "fa": 1.0,
    "zhong": 1.17,
    "bai": 1.46,
    "bawan": 1.61,
    "wusuo": 2.0,
    "wutong": 2.0,
    "liangsuo": 2.0,
    "liangtong": 2.0,
}


class GameConfig:
    """Load all game specific parameters and elements"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        self.game_id = "mahjong_ways"
        self.game_name = "mahjong_ways"
        self.working_name = "Mahjong ways (5 reels, 4 rows, cascading)"
        self.wincap = 25000.0
        self.win_type = "ways"
        self.num_reels = 5
        self.num_rows = 4
        self.reel_strip_length = int(os.getenv("MAHJONG_STRIP_LENGTH", "500"))
        self.symbols = default_symbol_config()
        self.construct_paths()

        self.weight_rates = {
            BASE_GAME: BASE_WEIGHT_RATES,
            FREE_SPINS: FREE_SPIN_WEIGHT_RATES,
        }
        self.densities = {
            BASE_GAME: [
                dict(_FLAT, bonus=3.12),
                dict(_WIDE_HIGH, bonus=3.24),
                dict(_CORE, bonus=3.14),
                dict(_WIDE_HIGH, bonus=2.22),
                dict(_CORE, bonus=2.56),
            ],
            FREE_SPINS: [
                dict(_FLAT, bonus=2.64),
                dict(_WIDE_HIGH, wusuo=1.0, wutong=1.0, liangsuo=1.38, liangtong=1.36, bonus=2.58),
                dict(_CORE, zhong=1.18, bawan=1.64, bonus=2.6),
                dict(_WIDE_HIGH, wusuo=1.0, wutong=1.0, liangsuo=1.38, liangtong=1.37, bonus=2.24),
                dict(_CORE, zhong=1.18, bawan=1.64, bonus=2.0),
            ],
        }
        # Gold is confined to the middle reels.
        self.gold_ratios = {
            BASE_GAME: {1: 0.04, 2: 0.05, 3: 0.06},
            FREE_SPINS: {1: 0.05, 2: 0.06, 3: 0.07},
        }
        self.tuning_presets = {
            BASE_GAME: base_game_config(),
            FREE_SPINS: free_spins_config(),
        }

    def construct_paths(self):
        game_dir = Path(__file__).resolve().parent
        self.reels_path = game_dir / "reels"
        self.output_path = game_dir / "library"

    def check_mode(self, mode: str) -> str:
        if mode not in (BASE_GAME, FREE_SPINS):
            raise ValueError(f"Unknown game mode '{mode}', expected '{BASE_GAME}' or '{FREE_SPINS}'")
        return mode

    def reel_weights(self, mode: str = BASE_GAME) -> ReelWeightsSet:
        """Same base weights on all five reels; the topology makes them differ."""
        rates = self.weight_rates[self.check_mode(mode)]
        weights = weights_from_rates(rates, SCATTER_RATE, self.reel_strip_length, scatter=self.symbols.scatter)
        return ReelWeightsSet([dict(weights) for _ in range(self.num_reels)])

    def topologies(self, mode: str = BASE_GAME) -> TopologySet:
        self.check_mode(mode)
        return _topologies(self.densities[mode], self.gold_ratios[mode])

    def tuning_config(self, mode: str = BASE_GAME) -> TuningConfig:
        return self.tuning_presets[self.check_mode(mode)].with_env_overrides()
