"""Reference single-spin evaluator: left-to-right ways pays on a 5 x rows window.

Cascade refills are not modelled; a winning spin counts as one cascade step.
Any callable with the same ``(strips, rng)`` signature can be handed to the
harness instead.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from reel_tuning.errors import ConfigurationError
from reel_tuning.stats import SpinOutcome
from reel_tuning.symbols import Strip, SymbolConfig, SymbolToken, default_symbol_config

Grid = List[List[SymbolToken]]

DEFAULT_ROWS = 4
PAY_DIVISOR = 20.0
MAX_WIN_MULTIPLIER = 25000.0
SCATTER_TRIGGER_COUNT = 3
BASE_FREE_SPINS = 12
EXTRA_FREE_SPINS_PER_SCATTER = 2


class WaysEvaluator:
    def __init__(
        self,
        symbols: Optional[SymbolConfig] = None,
        bet_amount: float = 1.0,
        rows: int = DEFAULT_ROWS,
        max_win_multiplier: float = MAX_WIN_MULTIPLIER,
    ):
        if rows < 1:
            raise ConfigurationError(f"rows must be positive, got {rows}")
        self.symbols = symbols or default_symbol_config()
        self.bet_amount = bet_amount
        self.rows = rows
        self.max_win_multiplier = max_win_multiplier

    def __call__(self, strips: Sequence[Strip], rng: random.Random) -> SpinOutcome:
        return self.evaluate_grid(self.window(strips, rng))

    def window(self, strips: Sequence[Strip], rng: random.Random) -> Grid:
        grid: Grid = []
        for reel_index, strip in enumerate(strips):
            if not strip:
                raise ConfigurationError(f"reel {reel_index} strip is empty")
            stop = rng.randrange(len(strip))
            grid.append([strip[(stop + row) % len(strip)] for row in range(self.rows)])
        return grid

    def evaluate_grid(self, grid: Grid) -> SpinOutcome:
        outcome = SpinOutcome()
        min_count = self.symbols.min_payout_count()

        seen = []
        for token in grid[0]:
            if token.base not in seen and self.symbols.is_paying(token.base):
                seen.append(token.base)

        for base in seen:
            count, ways = self._ways_for(grid, base)
            if count < min_count:
                continue
            payout = self.symbols.payout(base, count)
            if payout <= 0:
                continue
            amount = payout * ways * self.bet_amount / PAY_DIVISOR
            outcome.symbol_wins.append((base, count, amount))

        total = sum(amount for _, _, amount in outcome.symbol_wins)
        cap = self.max_win_multiplier * self.bet_amount
        if total > cap:
            scale = cap / total
            outcome.symbol_wins = [(sym, count, amount * scale) for sym, count, amount in outcome.symbol_wins]
            total = cap
        outcome.win = total
        outcome.cascades = 1 if total > 0 else 0

        scatters = sum(1 for column in grid for token in column if token.base == self.symbols.scatter)
        if scatters >= SCATTER_TRIGGER_COUNT:
            outcome.bonus_triggered = True
            outcome.free_spins_awarded = BASE_FREE_SPINS + EXTRA_FREE_SPINS_PER_SCATTER * (
                scatters - SCATTER_TRIGGER_COUNT
            )
        outcome.near_hit = self.is_near_hit(grid)
        return outcome

    def _ways_for(self, grid: Grid, base: str):
        ways = 1
        count = 0
        for column in grid:
            matches = sum(1 for token in column if token.base == base or token.base == self.symbols.wild)
            if matches == 0:
                break
            ways *= matches
            count += 1
        return count, ways

    def is_near_hit(self, grid: Grid) -> bool:
        """A paying symbol shows on reels 1 and 2 but not on reel 3."""
        if len(grid) < 3:
            return False
        present: List[Dict[str, bool]] = [{token.base: True for token in column} for column in grid[:3]]
        for base in self.symbols.paying_symbols():
            if base in present[0] and base in present[1] and base not in present[2]:
                return True
        return False
