"""Per-reel layout rules: role, densities, spacing, clustering and gold settings."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from reel_tuning.errors import ConfigurationError, TopologyError

NUM_REELS = 5
MIN_DENSITY = 0.3
MAX_DENSITY = 2.0


def clamp_density(value: float) -> float:
    return max(MIN_DENSITY, min(MAX_DENSITY, value))


@dataclass(frozen=True)
class RoleMultipliers:
    low: float
    mid: float
    high: float

    def for_category(self, category: str) -> float:
        return getattr(self, category)


class ReelRole(Enum):
    """Behavioural role of a reel, ordered left to right."""

    ACTIVATOR = 0
    CONNECTOR = 1
    CORE = 2
    AMPLIFIER = 3
    RARE_SPIKE = 4

    @property
    def display_name(self) -> str:
        return _ROLE_NAMES[self]

    @property
    def multipliers(self) -> RoleMultipliers:
        return _ROLE_MULTIPLIERS[self]

    @classmethod
    def from_name(cls, name: str) -> "ReelRole":
        for role, display in _ROLE_NAMES.items():
            if name in (display, role.name):
                return role
        raise TopologyError(f"Unknown reel role '{name}'")


_ROLE_NAMES = {
    ReelRole.ACTIVATOR: "Activator",
    ReelRole.CONNECTOR: "Connector",
    ReelRole.CORE: "Core",
    ReelRole.AMPLIFIER: "Amplifier",
    ReelRole.RARE_SPIKE: "RareSpike",
}

# Sensitivity of each role to low / mid / high density steps.
_ROLE_MULTIPLIERS = {
    ReelRole.ACTIVATOR: RoleMultipliers(low=1.3, mid=0.7, high=0.4),
    ReelRole.CONNECTOR: RoleMultipliers(low=1.1, mid=1.0, high=0.7),
    ReelRole.CORE: RoleMultipliers(low=1.0, mid=1.0, high=1.0),
    ReelRole.AMPLIFIER: RoleMultipliers(low=0.7, mid=1.3, high=1.0),
    ReelRole.RARE_SPIKE: RoleMultipliers(low=0.5, mid=0.7, high=1.5),
}


@dataclass
class GoldTopologyConfig:
    enabled: bool = False
    gold_ratio: float = 0.0
    min_gold_spacing: int = 0
    max_gold_cluster: int = 0
    per_symbol_gold_ratio: Dict[str, float] = field(default_factory=dict)

    def validate(self) -> None:
        if not 0.0 <= self.gold_ratio <= 1.0:
            raise TopologyError(f"gold_ratio must be within [0, 1], got {self.gold_ratio}")
        if self.min_gold_spacing < 0 or self.max_gold_cluster < 0:
            raise TopologyError("gold spacing and cluster limits must be non-negative")
        for sym, ratio in self.per_symbol_gold_ratio.items():
            if not 0.0 <= ratio <= 1.0:
                raise TopologyError(f"gold ratio for '{sym}' must be within [0, 1], got {ratio}")

    def ratio_for(self, base: str) -> float:
        return self.per_symbol_gold_ratio.get(base, self.gold_ratio)


@dataclass
class ClusterForbiddenRule:
    """After ``group_size`` consecutive ``cluster_symbols`` only ``allowed_symbols`` may follow."""

    cluster_symbols: FrozenSet[str]
    group_size: int
    allowed_symbols: FrozenSet[str]

    def __post_init__(self):
        self.cluster_symbols = frozenset(self.cluster_symbols)
        self.allowed_symbols = frozenset(self.allowed_symbols)


@dataclass
class ReelTopology:
    role: ReelRole
    symbol_density: Dict[str, float] = field(default_factory=dict)
    min_spacing: Dict[str, int] = field(default_factory=dict)
    max_cluster_size: Dict[str, int] = field(default_factory=dict)
    forbidden_pairs: Set[FrozenSet[str]] = field(default_factory=set)
    cluster_forbidden: List[ClusterForbiddenRule] = field(default_factory=list)
    gold_config: Optional[GoldTopologyConfig] = None

    def __post_init__(self):
        self.forbidden_pairs = {frozenset(pair) for pair in self.forbidden_pairs}

    def density_for(self, symbol: str) -> float:
        return self.symbol_density.get(symbol, 1.0)

    def is_forbidden_pair(self, first: str, second: str) -> bool:
        return frozenset((first, second)) in self.forbidden_pairs

    def validate(self) -> None:
        for sym, density in self.symbol_density.items():
            if not MIN_DENSITY <= density <= MAX_DENSITY:
                raise TopologyError(
                    f"density for '{sym}' must be within [{MIN_DENSITY}, {MAX_DENSITY}], got {density}"
                )
        for sym, spacing in self.min_spacing.items():
            if spacing < 0:
                raise TopologyError(f"min spacing for '{sym}' must be non-negative")
        for sym, size in self.max_cluster_size.items():
            if size < 1:
                raise TopologyError(f"max cluster size for '{sym}' must be at least 1")
        for pair in self.forbidden_pairs:
            if not 1 <= len(pair) <= 2:
                raise TopologyError(f"forbidden pair must name one or two symbols: {sorted(pair)}")
        for rule in self.cluster_forbidden:
            if rule.group_size < 1:
                raise TopologyError("cluster rule group size must be positive")
            if not rule.cluster_symbols:
                raise TopologyError("cluster rule needs at least one cluster symbol")
        if self.gold_config is not None:
            self.gold_config.validate()

    def to_dict(self) -> dict:
        gold = None
        if self.gold_config is not None:
            gold = {
                "enabled": self.gold_config.enabled,
                "gold_ratio": self.gold_config.gold_ratio,
                "min_gold_spacing": self.gold_config.min_gold_spacing,
                "max_gold_cluster": self.gold_config.max_gold_cluster,
                "per_symbol_gold_ratio": dict(self.gold_config.per_symbol_gold_ratio),
            }
        return {
            "role": self.role.display_name,
            "symbol_density": dict(self.symbol_density),
            "min_spacing": dict(self.min_spacing),
            "max_cluster_size": dict(self.max_cluster_size),
            "forbidden_pairs": sorted(sorted(pair) for pair in self.forbidden_pairs),
            "cluster_forbidden": [
                {
                    "cluster_symbols": sorted(rule.cluster_symbols),
                    "group_size": rule.group_size,
                    "allowed_symbols": sorted(rule.allowed_symbols),
                }
                for rule in self.cluster_forbidden
            ],
            "gold_config": gold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReelTopology":
        gold = data.get("gold_config")
        return cls(
            role=ReelRole.from_name(data["role"]),
            symbol_density=dict(data.get("symbol_density", {})),
            min_spacing=dict(data.get("min_spacing", {})),
            max_cluster_size=dict(data.get("max_cluster_size", {})),
            forbidden_pairs={frozenset(pair) for pair in data.get("forbidden_pairs", [])},
            cluster_forbidden=[
                ClusterForbiddenRule(
                    cluster_symbols=frozenset(rule["cluster_symbols"]),
                    group_size=rule["group_size"],
                    allowed_symbols=frozenset(rule["allowed_symbols"]),
                )
                for rule in data.get("cluster_forbidden", [])
            ],
            gold_config=GoldTopologyConfig(**gold) if gold else None,
        )


class TopologySet:
    """The five reel topologies of one game mode."""

    def __init__(self, topologies: Sequence[ReelTopology]):
        topologies = list(topologies)
        if len(topologies) != NUM_REELS:
            raise TopologyError(f"expected {NUM_REELS} reel topologies, got {len(topologies)}")
        for topology in topologies:
            topology.validate()
        self._topologies = topologies

    def __getitem__(self, reel_index: int) -> ReelTopology:
        check_reel_index(reel_index)
        return self._topologies[reel_index]

    def __iter__(self):
        return iter(self._topologies)

    def __len__(self) -> int:
        return len(self._topologies)

    def clone(self) -> "TopologySet":
        return TopologySet(copy.deepcopy(self._topologies))

    def to_dict(self) -> List[dict]:
        return [topology.to_dict() for topology in self._topologies]

    @classmethod
    def from_dict(cls, data: Iterable[dict]) -> "TopologySet":
        return cls([ReelTopology.from_dict(item) for item in data])


def check_reel_index(reel_index: int) -> None:
    if not isinstance(reel_index, int) or not 0 <= reel_index < NUM_REELS:
        raise ConfigurationError(f"invalid reel index: {reel_index}")


SymbolWeights = Dict[str, int]


class ReelWeightsSet:
    """Base symbol weights for each of the five reels. Never mutated by the generator."""

    def __init__(self, reels: Sequence[SymbolWeights]):
        reels = [dict(weights) for weights in reels]
        if len(reels) != NUM_REELS:
            raise ConfigurationError(f"expected {NUM_REELS} reel weight maps, got {len(reels)}")
        self._reels = reels

    def reel(self, reel_index: int) -> SymbolWeights:
        check_reel_index(reel_index)
        weights = self._reels[reel_index]
        validate_weights(weights, reel_index)
        return dict(weights)

    def clone(self) -> "ReelWeightsSet":
        return ReelWeightsSet(self._reels)

    def to_dict(self) -> Dict[str, SymbolWeights]:
        return {f"reel{idx + 1}": dict(weights) for idx, weights in enumerate(self._reels)}


def validate_weights(weights: SymbolWeights, reel_index: int) -> None:
    if not weights:
        raise ConfigurationError(f"no weights for reel {reel_index}")
    for sym, weight in weights.items():
        if not isinstance(weight, int) or weight < 0:
            raise ConfigurationError(f"reel {reel_index}: weight for '{sym}' must be a non-negative integer")
    if sum(weights.values()) == 0:
        raise ConfigurationError(f"reel {reel_index}: all weights are zero")
