"""Incremental constraint state for a strip under construction.

The placement loop asks ``can_place`` for every candidate at every position,
so the state keeps the last position of each symbol family and the length of
the trailing same-family run instead of rescanning the strip. Gold variants
share their base symbol's family.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from reel_tuning.symbols import Strip, SymbolConfig, SymbolToken
from reel_tuning.topology import ClusterForbiddenRule, ReelTopology


@dataclass
class GenerationStats:
    target_length: int = 0
    placed_normally: int = 0
    placed_with_replacement: int = 0
    placed_forcefully: int = 0
    dropped: Dict[str, int] = field(default_factory=dict)
    replaced: Dict[str, int] = field(default_factory=dict)
    final_length: int = 0
    unconstrained_fallback: bool = False

    @property
    def total_placed(self) -> int:
        return self.placed_normally + self.placed_with_replacement + self.placed_forcefully

    @property
    def constraint_success(self) -> float:
        """Share of placed symbols that satisfied every constraint, in percent."""
        if self.total_placed == 0:
            return 0.0
        return (self.placed_normally + self.placed_with_replacement) / self.total_placed * 100.0

    @property
    def degraded(self) -> bool:
        return bool(self.dropped) or self.placed_forcefully > 0 or self.unconstrained_fallback


class PlacementState:
    def __init__(self, topology: ReelTopology):
        self.topology = topology
        self.strip: Strip = []
        self._last_pos: Dict[str, int] = {}
        self._run_base: Optional[str] = None
        self._run_length = 0
        self._triggered_at = -1
        self._triggered: List[ClusterForbiddenRule] = []

    def __len__(self) -> int:
        return len(self.strip)

    @property
    def position(self) -> int:
        return len(self.strip)

    def last_position(self, base: str) -> Optional[int]:
        return self._last_pos.get(base)

    def previous_base(self) -> Optional[str]:
        return self.strip[-1].base if self.strip else None

    def triggered_rules(self) -> List[ClusterForbiddenRule]:
        """Cluster rules whose trailing window is made only of cluster symbols."""
        pos = self.position
        if self._triggered_at != pos:
            self._triggered = [
                rule
                for rule in self.topology.cluster_forbidden
                if pos >= rule.group_size
                and all(token.base in rule.cluster_symbols for token in self.strip[pos - rule.group_size:])
            ]
            self._triggered_at = pos
        return self._triggered

    def spacing_gap(self, base: str) -> Optional[int]:
        last = self._last_pos.get(base)
        if last is None:
            return None
        return self.position - last

    def can_place(self, base: str) -> bool:
        topology = self.topology
        spacing = topology.min_spacing.get(base)
        if spacing is not None:
            gap = self.spacing_gap(base)
            if gap is not None and gap < spacing:
                return False

        max_run = topology.max_cluster_size.get(base)
        if max_run is not None and self._run_base == base and self._run_length >= max_run:
            return False

        for rule in self.triggered_rules():
            if base not in rule.allowed_symbols:
                return False

        previous = self.previous_base()
        if previous is not None and topology.forbidden_pairs and topology.is_forbidden_pair(previous, base):
            return False
        return True

    def violations(self, base: str) -> List[str]:
        """Names of every constraint ``base`` would break at the current position."""
        found = []
        topology = self.topology
        spacing = topology.min_spacing.get(base)
        gap = self.spacing_gap(base)
        if spacing is not None and gap is not None and gap < spacing:
            found.append("spacing")
        max_run = topology.max_cluster_size.get(base)
        if max_run is not None and self._run_base == base and self._run_length >= max_run:
            found.append("cluster")
        previous = self.previous_base()
        if previous is not None and topology.is_forbidden_pair(previous, base):
            found.append("forbidden_pair")
        if any(base not in rule.allowed_symbols for rule in self.triggered_rules()):
            found.append("cluster_rule")
        return found

    def place(self, token: SymbolToken) -> None:
        if token.base == self._run_base:
            self._run_length += 1
        else:
            self._run_base = token.base
            self._run_length = 1
        self._last_pos[token.base] = self.position
        self.strip.append(token)


@dataclass
class PlacementContext:
    """Everything a fallback policy may read or change while a strip is built."""

    state: PlacementState
    remaining: List[SymbolToken]
    symbols: SymbolConfig
    rng: random.Random
    stats: GenerationStats
    retry_queue: List[SymbolToken] = field(default_factory=list)
    retry_rounds: int = 0

    @property
    def pending(self) -> bool:
        return bool(self.remaining) or bool(self.retry_queue)
