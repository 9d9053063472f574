"""Closed-loop tuner: generate strips, simulate, measure, adjust densities."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional

from reel_tuning.config import TuningConfig
from reel_tuning.density import DensityController
from reel_tuning.evaluator import WaysEvaluator
from reel_tuning.fallbacks import PlacementFallback
from reel_tuning.harness import SimulationHarness, SpinEvaluator
from reel_tuning.placement import StripGenerator
from reel_tuning.stats import SimulationStats
from reel_tuning.symbols import Strip, SymbolConfig
from reel_tuning.topology import NUM_REELS, ReelWeightsSet, TopologySet

LOGGER = logging.getLogger("reel_tuning.tuning")


@dataclass
class IterationMetrics:
    iteration: int
    rtp: float
    hit_rate: float
    bonus_trigger_rate: float
    low_pct: float
    mid_pct: float
    high_pct: float
    rtp_ok: bool
    hit_rate_ok: bool
    bonus_ok: bool
    category_ok: bool
    error: float

    @property
    def converged(self) -> bool:
        return self.rtp_ok and self.hit_rate_ok and self.bonus_ok and self.category_ok

    @classmethod
    def measure(cls, iteration: int, stats: SimulationStats, config: TuningConfig) -> "IterationMetrics":
        targets = config.category_targets
        rtp_err = abs(stats.rtp - config.target_rtp)
        hit_err = abs(stats.hit_rate - config.target_hit_rate)
        bonus_err = abs(stats.bonus_trigger_rate - config.target_bonus_trigger_rate)
        category_errs = [
            abs(stats.low_rtp_pct - targets.low),
            abs(stats.mid_rtp_pct - targets.mid),
            abs(stats.high_rtp_pct - targets.high),
        ]
        error = (
            _scaled(rtp_err, config.rtp_tolerance)
            + _scaled(hit_err, config.hit_rate_tolerance)
            + _scaled(bonus_err, config.bonus_trigger_tolerance)
            + sum(_scaled(err, config.category_tolerance) for err in category_errs)
        )
        return cls(
            iteration=iteration,
            rtp=stats.rtp,
            hit_rate=stats.hit_rate,
            bonus_trigger_rate=stats.bonus_trigger_rate,
            low_pct=stats.low_rtp_pct,
            mid_pct=stats.mid_rtp_pct,
            high_pct=stats.high_rtp_pct,
            rtp_ok=rtp_err <= config.rtp_tolerance,
            hit_rate_ok=hit_err <= config.hit_rate_tolerance,
            bonus_ok=bonus_err <= config.bonus_trigger_tolerance,
            category_ok=all(err < config.category_tolerance for err in category_errs),
            error=error,
        )


def _scaled(err: float, tolerance: float) -> float:
    return err / tolerance if tolerance > 0 else err


@dataclass
class TuningResult:
    topologies: TopologySet
    stats: SimulationStats
    strips: List[Strip]
    converged: bool
    iterations: int
    best_iteration: int
    metrics: IterationMetrics


IterationCallback = Callable[[IterationMetrics, SimulationStats, "TuningLoop"], None]


class TuningLoop:
    """Repeats generate -> simulate -> adjust until every metric is in tolerance.

    The loop works on its own copy of the topologies. Running out of
    iterations is not an error: the result carries ``converged=False`` and the
    strip set with the lowest aggregate error seen.
    """

    def __init__(
        self,
        topologies: TopologySet,
        weights: ReelWeightsSet,
        symbols: SymbolConfig,
        spin_evaluator: Optional[SpinEvaluator] = None,
        fallback: Optional[PlacementFallback] = None,
        harness: Optional[SimulationHarness] = None,
        on_iteration: Optional[IterationCallback] = None,
    ):
        self.topologies = topologies.clone()
        self.weights = weights.clone()
        self.symbols = symbols
        self.spin_evaluator = spin_evaluator
        self.generator = StripGenerator(self.topologies, symbols, fallback)
        self.harness = harness
        self.on_iteration = on_iteration

    def tune(self, config: TuningConfig) -> TuningResult:
        config.validate()
        controller = DensityController(self.topologies, self.symbols, tolerance=config.category_tolerance)
        if config.reset_densities:
            controller.reset_to_neutral()

        evaluator = self.spin_evaluator or WaysEvaluator(self.symbols, bet_amount=config.bet_amount)
        harness = self.harness or SimulationHarness(self.symbols, use_processes=config.use_processes)
        gen_rng = random.Random(config.seed)

        best: Optional[TuningResult] = None
        for iteration in range(1, config.max_iter + 1):
            snapshot = self.topologies.clone()
            strips = self.generator.generate_all(self.weights, gen_rng)
            sim_seed = None if config.seed is None else f"{config.seed}:{iteration}"
            stats = harness.run(
                strips,
                config.total_spins,
                config.num_workers,
                evaluator,
                bet_amount=config.bet_amount,
                seed=sim_seed,
            )
            metrics = IterationMetrics.measure(iteration, stats, config)
            LOGGER.info(
                "iter %d: RTP %.3f%% hit %.2f%% bonus %.3f%% low/mid/high %.2f/%.2f/%.2f%%",
                iteration,
                metrics.rtp,
                metrics.hit_rate,
                metrics.bonus_trigger_rate,
                metrics.low_pct,
                metrics.mid_pct,
                metrics.high_pct,
            )
            if self.on_iteration is not None:
                self.on_iteration(metrics, stats, self)

            if best is None or metrics.error < best.metrics.error:
                best = TuningResult(
                    topologies=snapshot,
                    stats=stats,
                    strips=strips,
                    converged=False,
                    iterations=iteration,
                    best_iteration=iteration,
                    metrics=metrics,
                )

            if metrics.converged:
                LOGGER.info("converged after %d iterations", iteration)
                return TuningResult(
                    topologies=snapshot,
                    stats=stats,
                    strips=strips,
                    converged=True,
                    iterations=iteration,
                    best_iteration=iteration,
                    metrics=metrics,
                )

            if not metrics.bonus_ok:
                controller.adjust_bonus_density(
                    iteration % NUM_REELS,
                    metrics.bonus_trigger_rate,
                    config.target_bonus_trigger_rate,
                    step=config.learning_rate,
                )
            changed = controller.adjust(
                metrics.low_pct, metrics.mid_pct, metrics.high_pct, config.category_targets, config.learning_rate
            )
            if not changed and metrics.bonus_ok:
                # Nothing was adjusted; the next iteration only re-rolls the strips.
                LOGGER.warning(
                    "iter %d: category densities converged but RTP/hit-rate targets still missed", iteration
                )

        LOGGER.warning(
            "no convergence within %d iterations, best error %.3f at iteration %d",
            config.max_iter,
            best.metrics.error,
            best.best_iteration,
        )
        best.iterations = config.max_iter
        return best
