"""Data-parallel Monte Carlo harness over a fixed strip set."""

from __future__ import annotations

import copy
import logging
import multiprocessing as mp
import random
import time
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Optional, Sequence, Union

from reel_tuning.errors import ConfigurationError
from reel_tuning.stats import SimulationStats, SpinOutcome, WorkerResult, merge_stats
from reel_tuning.symbols import Strip, SymbolConfig, default_symbol_config

LOGGER = logging.getLogger("reel_tuning.harness")

SpinEvaluator = Callable[[Sequence[Strip], random.Random], Union[SpinOutcome, float]]


def _split_work(total: int, parts: int) -> List[int]:
    """Divide work into roughly equal integer chunks."""
    base = total // parts
    remainder = total % parts
    sizes: List[int] = []
    for i in range(parts):
        chunk = base + (1 if i < remainder else 0)
        if chunk > 0:
            sizes.append(chunk)
    return sizes


def worker_rng(seed: object, worker_id: int) -> random.Random:
    return random.Random(f"{seed}:{worker_id}")


def _run_worker(
    worker_id: int,
    spins: int,
    strips: Sequence[Strip],
    spin_evaluator: SpinEvaluator,
    bet_amount: float,
    seed: object,
    symbols: SymbolConfig,
) -> WorkerResult:
    # Each worker gets its own evaluator copy and its own random source.
    evaluator = copy.deepcopy(spin_evaluator)
    rng = worker_rng(seed, worker_id)
    stats = SimulationStats()
    for _ in range(spins):
        outcome = SpinOutcome.coerce(evaluator(strips, rng))
        stats.record(outcome, bet_amount, symbols)
    return WorkerResult(worker_id=worker_id, spins_processed=spins, stats=stats)


class SimulationHarness:
    """Splits a spin count across workers and merges their statistics.

    Workers run in a process pool by default; ``use_processes=False`` swaps in
    a thread pool, which lets callers pass evaluators that cannot be pickled.
    A single worker runs inline.
    """

    def __init__(self, symbols: Optional[SymbolConfig] = None, use_processes: bool = True):
        self.symbols = symbols or default_symbol_config()
        self.use_processes = use_processes

    def run(
        self,
        strips: Sequence[Strip],
        total_spins: int,
        num_workers: int,
        spin_evaluator: SpinEvaluator,
        bet_amount: float = 1.0,
        seed: Optional[object] = None,
    ) -> SimulationStats:
        if total_spins < 0:
            raise ConfigurationError(f"total_spins must be non-negative, got {total_spins}")
        if num_workers < 1:
            raise ConfigurationError(f"num_workers must be at least 1, got {num_workers}")
        if bet_amount <= 0:
            raise ConfigurationError(f"bet_amount must be positive, got {bet_amount}")
        if total_spins == 0:
            return SimulationStats()
        if seed is None:
            seed = random.SystemRandom().getrandbits(64)

        strips = [list(strip) for strip in strips]
        chunk_sizes = _split_work(total_spins, num_workers)
        jobs = [
            (worker_id, chunk, strips, spin_evaluator, bet_amount, seed, self.symbols)
            for worker_id, chunk in enumerate(chunk_sizes)
        ]

        start = time.perf_counter()
        if len(jobs) == 1:
            results = [_run_worker(*jobs[0])]
        else:
            pool_cls = mp.Pool if self.use_processes else ThreadPool
            with pool_cls(len(jobs)) as pool:
                results = pool.starmap(_run_worker, jobs)
        merged = merge_stats(results)
        LOGGER.info(
            "simulated %d spins on %d workers in %.2fs (RTP %.3f%%)",
            merged.total_spins,
            len(jobs),
            time.perf_counter() - start,
            merged.rtp,
        )
        return merged
