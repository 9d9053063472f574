"""Role-sensitive density feedback controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from reel_tuning.symbols import CATEGORIES, HIGH, LOW, MID, SymbolConfig
from reel_tuning.topology import NUM_REELS, ReelRole, TopologySet, check_reel_index, clamp_density

LOGGER = logging.getLogger("reel_tuning.density")

# Every category error within this many percentage points counts as converged.
CONVERGENCE_TOLERANCE = 3.0
# Percentage points -> density units.
SCALE_FACTOR = 0.01
BONUS_DENSITY_STEP = 0.05


@dataclass(frozen=True)
class CategoryTargets:
    """Target share of RTP per symbol tier, in percent."""

    low: float = 65.0
    mid: float = 28.0
    high: float = 7.0

    def for_category(self, category: str) -> float:
        return getattr(self, category)


@dataclass
class ReelDensitySummary:
    reel_number: int
    role: ReelRole
    low_avg: float
    mid_avg: float
    high_avg: float


class DensityController:
    """Owns and mutates ``symbol_density`` on every reel between simulation batches."""

    def __init__(self, topologies: TopologySet, symbols: SymbolConfig, tolerance: float = CONVERGENCE_TOLERANCE):
        self.topologies = topologies
        self.symbols = symbols
        self.tolerance = tolerance

    def adjust(
        self,
        current_low: float,
        current_mid: float,
        current_high: float,
        targets: CategoryTargets,
        learning_rate: float,
    ) -> bool:
        """Nudge densities toward the category targets.

        Returns False, leaving every density untouched, when all three
        category errors are already inside the tolerance.
        """
        errors = {
            LOW: current_low - targets.low,
            MID: current_mid - targets.mid,
            HIGH: current_high - targets.high,
        }
        if all(abs(err) < self.tolerance for err in errors.values()):
            return False

        deltas = {category: -err * learning_rate * SCALE_FACTOR for category, err in errors.items()}
        for reel_index in range(NUM_REELS):
            self._apply(reel_index, deltas)
        LOGGER.debug(
            "density deltas low=%+.4f mid=%+.4f high=%+.4f", deltas[LOW], deltas[MID], deltas[HIGH]
        )
        return True

    def _apply(self, reel_index: int, deltas: Dict[str, float]) -> None:
        topology = self.topologies[reel_index]
        multipliers = topology.role.multipliers
        for category in CATEGORIES:
            step = deltas[category] * multipliers.for_category(category)
            for sym in self.symbols.symbols_in(category):
                topology.symbol_density[sym] = clamp_density(topology.density_for(sym) + step)

    def adjust_bonus_density(
        self, reel_index: int, current_rate: float, target_rate: float, step: float = BONUS_DENSITY_STEP
    ) -> float:
        """Move one reel's scatter density toward the bonus trigger target and return it."""
        check_reel_index(reel_index)
        topology = self.topologies[reel_index]
        scatter = self.symbols.scatter
        current = topology.density_for(scatter)
        if current_rate < target_rate:
            updated = clamp_density(current + step)
        else:
            updated = clamp_density(current - step)
        topology.symbol_density[scatter] = updated
        LOGGER.info(
            "reel %d %s density %.3f -> %.3f (trigger rate %.3f%%, target %.3f%%)",
            reel_index + 1,
            scatter,
            current,
            updated,
            current_rate,
            target_rate,
        )
        return updated

    def reset_to_neutral(self) -> None:
        for topology in self.topologies:
            for sym in self.symbols.paying_symbols():
                topology.symbol_density[sym] = 1.0

    def summaries(self) -> List[ReelDensitySummary]:
        result = []
        for reel_index, topology in enumerate(self.topologies):
            averages = {}
            for category in CATEGORIES:
                members = self.symbols.symbols_in(category)
                averages[category] = (
                    sum(topology.density_for(sym) for sym in members) / len(members) if members else 1.0
                )
            result.append(
                ReelDensitySummary(
                    reel_number=reel_index + 1,
                    role=topology.role,
                    low_avg=averages[LOW],
                    mid_avg=averages[MID],
                    high_avg=averages[HIGH],
                )
            )
        return result
