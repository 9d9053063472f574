"""Policies for a position where nothing left in the pool can be placed legally."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from reel_tuning.constraints import PlacementContext, PlacementState
from reel_tuning.errors import ConfigurationError
from reel_tuning.symbols import SymbolToken

LOGGER = logging.getLogger("reel_tuning.fallbacks")

# find_best scoring weights
SPACING_OK_BONUS = 10
SPACING_GAP_PENALTY = 2
SAME_FAMILY_PENALTY = 5
FORBIDDEN_PAIR_PENALTY = 20
CLUSTER_RULE_PENALTY = 30
CLUSTER_BREAK_BONUS = 15

MAX_RETRY_ROUNDS = 3


def score_candidate(state: PlacementState, base: str) -> int:
    """Soft-constraint score of placing ``base`` at the current position."""
    topology = state.topology
    score = 0

    spacing = topology.min_spacing.get(base)
    if spacing is not None:
        gap = state.spacing_gap(base)
        if gap is not None:
            if gap >= spacing:
                score += SPACING_OK_BONUS
            else:
                score -= (spacing - gap) * SPACING_GAP_PENALTY

    previous = state.previous_base()
    if previous is not None:
        if previous == base:
            score -= SAME_FAMILY_PENALTY
        if topology.is_forbidden_pair(previous, base):
            score -= FORBIDDEN_PAIR_PENALTY

    for rule in state.triggered_rules():
        if base in rule.allowed_symbols:
            score += CLUSTER_BREAK_BONUS
        else:
            score -= CLUSTER_RULE_PENALTY
    return score


def find_best(state: PlacementState, candidates: Sequence[SymbolToken]) -> int:
    """Index of the highest scoring candidate; the first one wins ties."""
    best_idx = 0
    best_score: Optional[int] = None
    for idx, token in enumerate(candidates):
        score = score_candidate(state, token.base)
        if best_score is None or score > best_score:
            best_score = score
            best_idx = idx
    return best_idx


class PlacementFallback(ABC):
    name: str = "base"
    # Whether a strip shorter than the pool is an acceptable result.
    allows_short_strip: bool = False

    @abstractmethod
    def resolve(self, ctx: PlacementContext) -> bool:
        """Handle a stuck position. Returns True when a symbol was placed."""

    def on_pool_exhausted(self, ctx: PlacementContext) -> bool:
        return False


class FindBestFallback(PlacementFallback):
    """Place the least-bad remaining symbol, accepting a soft violation."""

    name = "find_best"

    def resolve(self, ctx: PlacementContext) -> bool:
        idx = find_best(ctx.state, ctx.remaining)
        token = ctx.remaining.pop(idx)
        ctx.state.place(token)
        ctx.stats.placed_forcefully += 1
        return True


class RetryQueueFallback(PlacementFallback):
    """Defer stuck symbols and retry them, reshuffled, once the pool runs dry.

    After ``max_rounds`` reshuffles the queue is drained with ``find_best``.
    """

    name = "retry_queue"

    def __init__(self, max_rounds: int = MAX_RETRY_ROUNDS):
        self.max_rounds = max_rounds

    def resolve(self, ctx: PlacementContext) -> bool:
        ctx.retry_queue.append(ctx.remaining.pop(0))
        return False

    def on_pool_exhausted(self, ctx: PlacementContext) -> bool:
        if not ctx.retry_queue:
            return False
        if ctx.retry_rounds < self.max_rounds:
            ctx.remaining = ctx.retry_queue
            ctx.retry_queue = []
            ctx.retry_rounds += 1
            ctx.rng.shuffle(ctx.remaining)
            LOGGER.debug("retry round %d with %d deferred symbols", ctx.retry_rounds, len(ctx.remaining))
            return False
        idx = find_best(ctx.state, ctx.retry_queue)
        token = ctx.retry_queue.pop(idx)
        ctx.state.place(token)
        ctx.stats.placed_forcefully += 1
        return True


class DropAndReplaceFallback(PlacementFallback):
    """Drop the stuck symbol and substitute one that fits, preferring its own tier.

    When no paying symbol fits the position is left empty and the strip ends
    up shorter than the pool.
    """

    name = "drop_and_replace"
    allows_short_strip = True

    def resolve(self, ctx: PlacementContext) -> bool:
        dropped = ctx.remaining.pop(0)
        ctx.stats.dropped[dropped.base] = ctx.stats.dropped.get(dropped.base, 0) + 1

        replacement = self._find_replacement(ctx, dropped.base)
        if replacement is None:
            return False
        ctx.state.place(SymbolToken(replacement))
        ctx.stats.placed_with_replacement += 1
        ctx.stats.replaced[replacement] = ctx.stats.replaced.get(replacement, 0) + 1
        return True

    def _find_replacement(self, ctx: PlacementContext, dropped_base: str) -> Optional[str]:
        symbols = ctx.symbols
        category = symbols.category_of(dropped_base)
        if category is not None:
            found = self._first_placeable(ctx, symbols.symbols_in(category))
            if found is not None:
                return found
        return self._first_placeable(ctx, symbols.paying_symbols())

    @staticmethod
    def _first_placeable(ctx: PlacementContext, candidates: Sequence[str]) -> Optional[str]:
        shuffled: List[str] = list(candidates)
        ctx.rng.shuffle(shuffled)
        for base in shuffled:
            if ctx.state.can_place(base):
                return base
        return None


FALLBACKS = {
    FindBestFallback.name: FindBestFallback,
    RetryQueueFallback.name: RetryQueueFallback,
    DropAndReplaceFallback.name: DropAndReplaceFallback,
}


def fallback_for(name: str) -> PlacementFallback:
    try:
        return FALLBACKS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown placement fallback '{name}', expected one of {sorted(FALLBACKS)}"
        ) from None
