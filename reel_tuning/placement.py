"""Constraint-satisfying strip generation."""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Tuple

from reel_tuning.constraints import GenerationStats, PlacementContext, PlacementState
from reel_tuning.errors import PlacementError
from reel_tuning.fallbacks import DropAndReplaceFallback, PlacementFallback
from reel_tuning.gold import GoldOverlay
from reel_tuning.pool import density_adjusted_weights, shuffled_pool
from reel_tuning.symbols import Strip, SymbolConfig, SymbolToken
from reel_tuning.topology import (
    NUM_REELS,
    ReelTopology,
    ReelWeightsSet,
    SymbolWeights,
    TopologySet,
    check_reel_index,
    validate_weights,
)

LOGGER = logging.getLogger("reel_tuning.placement")

ATTEMPTS_PER_POSITION = 10


class ConstraintPlacer:
    """Walks the strip left to right, placing the first pool symbol that fits.

    When nothing in the pool fits, the configured fallback decides what
    happens at that position.
    """

    def __init__(self, symbols: SymbolConfig, fallback: Optional[PlacementFallback] = None):
        self.symbols = symbols
        self.fallback = fallback or DropAndReplaceFallback()

    def place(
        self, pool: List[SymbolToken], topology: ReelTopology, rng: random.Random
    ) -> Tuple[Strip, GenerationStats]:
        target = len(pool)
        stats = GenerationStats(target_length=target)
        ctx = PlacementContext(
            state=PlacementState(topology),
            remaining=list(pool),
            symbols=self.symbols,
            rng=rng,
            stats=stats,
        )

        attempts = target * ATTEMPTS_PER_POSITION
        while len(ctx.state) < target and attempts > 0:
            placed = self._place_first_fit(ctx)
            if not placed and ctx.remaining:
                placed = self.fallback.resolve(ctx)
            if not placed and not ctx.remaining:
                self.fallback.on_pool_exhausted(ctx)
            attempts -= 1
            if not ctx.pending:
                break

        strip = ctx.state.strip
        stats.final_length = len(strip)
        if len(strip) < target and not self.fallback.allows_short_strip:
            raise PlacementError(
                f"could not generate strip of length {target} with {self.fallback.name}, only got {len(strip)}"
            )
        return strip, stats

    @staticmethod
    def _place_first_fit(ctx: PlacementContext) -> bool:
        checked: Dict[str, bool] = {}
        for idx, token in enumerate(ctx.remaining):
            ok = checked.get(token.base)
            if ok is None:
                ok = checked[token.base] = ctx.state.can_place(token.base)
            if ok:
                ctx.state.place(ctx.remaining.pop(idx))
                ctx.stats.placed_normally += 1
                return True
        return False


class StripGenerator:
    """Builds reel strips from base weights and the current reel topologies.

    The generator holds no random state of its own: every call receives the
    random source it should draw from.
    """

    def __init__(
        self,
        topologies: TopologySet,
        symbols: SymbolConfig,
        fallback: Optional[PlacementFallback] = None,
    ):
        self.topologies = topologies
        self.symbols = symbols
        self.placer = ConstraintPlacer(symbols, fallback)
        self.gold = GoldOverlay(topologies, symbols)

    def generate(self, reel_index: int, weights: SymbolWeights, rng: random.Random) -> Strip:
        strip, _ = self.generate_with_stats(reel_index, weights, rng)
        return strip

    def generate_with_stats(
        self, reel_index: int, weights: SymbolWeights, rng: random.Random
    ) -> Tuple[Strip, GenerationStats]:
        check_reel_index(reel_index)
        validate_weights(weights, reel_index)
        topology = self.topologies[reel_index]

        pool = shuffled_pool(density_adjusted_weights(weights, topology), rng)
        try:
            strip, stats = self.placer.place(pool, topology, rng)
        except PlacementError as exc:
            LOGGER.warning("reel %d: constraint generation failed, using unconstrained shuffle: %s", reel_index + 1, exc)
            strip = list(pool)
            rng.shuffle(strip)
            stats = GenerationStats(target_length=len(pool), final_length=len(strip), unconstrained_fallback=True)

        if stats.degraded:
            LOGGER.warning(
                "reel %d: %d placed (%.1f%% clean), %d forced, dropped: %s",
                reel_index + 1,
                stats.total_placed,
                stats.constraint_success,
                stats.placed_forcefully,
                stats.dropped,
            )
        if stats.final_length < stats.target_length:
            LOGGER.warning(
                "reel %d: strip length %d (expected %d)", reel_index + 1, stats.final_length, stats.target_length
            )
        return strip, stats

    def generate_all(self, weights_set: ReelWeightsSet, rng: random.Random) -> List[Strip]:
        """Generate all five strips, each followed by its gold overlay pass."""
        strips: List[Strip] = []
        for reel_index in range(NUM_REELS):
            strip = self.generate(reel_index, weights_set.reel(reel_index), rng)
            strips.append(self.gold.overlay(strip, reel_index, rng))
        return strips

    def adjusted_weights(self, weights_set: ReelWeightsSet) -> ReelWeightsSet:
        return ReelWeightsSet(
            [
                density_adjusted_weights(weights_set.reel(reel_index), self.topologies[reel_index])
                for reel_index in range(NUM_REELS)
            ]
        )
