"""Spin outcome records and mergeable simulation statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple, Union

from reel_tuning.symbols import CATEGORIES, HIGH, LOW, MID, SymbolConfig

MAX_CASCADE_BUCKET = 5

# Win size buckets in multiples of the bet.
SMALL_WIN_LIMIT = 5.0
MEDIUM_WIN_LIMIT = 20.0
BIG_WIN_LIMIT = 100.0

# Money is accumulated in integer millionths so totals do not depend on the
# order spins were added in.
AMOUNT_SCALE = 1_000_000


def to_units(amount: float) -> int:
    return int(round(amount * AMOUNT_SCALE))


def from_units(units: int) -> float:
    return units / AMOUNT_SCALE


@dataclass
class SpinOutcome:
    """What one simulated spin produced.

    ``symbol_wins`` holds one ``(symbol, of_a_kind, amount)`` entry per paid
    ways line.
    """

    win: float = 0.0
    cascades: int = 0
    symbol_wins: List[Tuple[str, int, float]] = field(default_factory=list)
    bonus_triggered: bool = False
    free_spins_awarded: int = 0
    near_hit: bool = False

    @classmethod
    def coerce(cls, value: Union["SpinOutcome", float, int]) -> "SpinOutcome":
        if isinstance(value, SpinOutcome):
            return value
        win = float(value)
        return cls(win=win, cascades=1 if win > 0 else 0)


@dataclass
class SimulationStats:
    total_spins: int = 0
    total_win_spins: int = 0
    wagered_units: int = 0
    won_units: int = 0
    max_win: float = 0.0

    no_win_spins: int = 0
    small_wins: int = 0
    medium_wins: int = 0
    big_wins: int = 0
    mega_wins: int = 0
    low_symbol_wins: int = 0
    high_symbol_wins: int = 0

    total_cascades: int = 0
    max_cascades: int = 0
    cascade_depth: Dict[int, int] = field(default_factory=dict)

    win_count_by_kind: Dict[int, int] = field(default_factory=dict)
    win_units_by_kind: Dict[int, int] = field(default_factory=dict)
    near_hit_count: int = 0

    free_spins_triggered: int = 0
    free_spins_awarded: int = 0

    symbol_win_units: Dict[str, int] = field(default_factory=dict)
    symbol_win_count: Dict[str, int] = field(default_factory=dict)
    category_win_units: Dict[str, int] = field(default_factory=dict)

    def record(self, outcome: SpinOutcome, bet_amount: float, symbols: SymbolConfig) -> None:
        """Fold one spin into the accumulator."""
        self.total_spins += 1
        self.wagered_units += to_units(bet_amount)
        self.won_units += to_units(outcome.win)
        if outcome.win > self.max_win:
            self.max_win = outcome.win

        if outcome.win > 0:
            self.total_win_spins += 1
            multiple = outcome.win / bet_amount if bet_amount > 0 else 0.0
            if multiple < SMALL_WIN_LIMIT:
                self.small_wins += 1
            elif multiple < MEDIUM_WIN_LIMIT:
                self.medium_wins += 1
            elif multiple < BIG_WIN_LIMIT:
                self.big_wins += 1
            else:
                self.mega_wins += 1
        else:
            self.no_win_spins += 1

        self.total_cascades += outcome.cascades
        if outcome.cascades > self.max_cascades:
            self.max_cascades = outcome.cascades
        bucket = min(outcome.cascades, MAX_CASCADE_BUCKET)
        self.cascade_depth[bucket] = self.cascade_depth.get(bucket, 0) + 1

        for sym, count, amount in outcome.symbol_wins:
            units = to_units(amount)
            self.win_count_by_kind[count] = self.win_count_by_kind.get(count, 0) + 1
            self.win_units_by_kind[count] = self.win_units_by_kind.get(count, 0) + units
            self.symbol_win_units[sym] = self.symbol_win_units.get(sym, 0) + units
            self.symbol_win_count[sym] = self.symbol_win_count.get(sym, 0) + 1
            category = symbols.category_of(sym)
            if category is not None:
                self.category_win_units[category] = self.category_win_units.get(category, 0) + units
            if category == LOW:
                self.low_symbol_wins += 1
            elif category is not None:
                self.high_symbol_wins += 1

        if outcome.near_hit:
            self.near_hit_count += 1
        if outcome.bonus_triggered:
            self.free_spins_triggered += 1
            self.free_spins_awarded += outcome.free_spins_awarded

    def merge(self, other: "SimulationStats") -> "SimulationStats":
        """Combine two accumulators into a new one; neither input is modified."""
        return SimulationStats(
            total_spins=self.total_spins + other.total_spins,
            total_win_spins=self.total_win_spins + other.total_win_spins,
            wagered_units=self.wagered_units + other.wagered_units,
            won_units=self.won_units + other.won_units,
            max_win=max(self.max_win, other.max_win),
            no_win_spins=self.no_win_spins + other.no_win_spins,
            small_wins=self.small_wins + other.small_wins,
            medium_wins=self.medium_wins + other.medium_wins,
            big_wins=self.big_wins + other.big_wins,
            mega_wins=self.mega_wins + other.mega_wins,
            low_symbol_wins=self.low_symbol_wins + other.low_symbol_wins,
            high_symbol_wins=self.high_symbol_wins + other.high_symbol_wins,
            total_cascades=self.total_cascades + other.total_cascades,
            max_cascades=max(self.max_cascades, other.max_cascades),
            cascade_depth=_sum_maps(self.cascade_depth, other.cascade_depth),
            win_count_by_kind=_sum_maps(self.win_count_by_kind, other.win_count_by_kind),
            win_units_by_kind=_sum_maps(self.win_units_by_kind, other.win_units_by_kind),
            near_hit_count=self.near_hit_count + other.near_hit_count,
            free_spins_triggered=self.free_spins_triggered + other.free_spins_triggered,
            free_spins_awarded=self.free_spins_awarded + other.free_spins_awarded,
            symbol_win_units=_sum_maps(self.symbol_win_units, other.symbol_win_units),
            symbol_win_count=_sum_maps(self.symbol_win_count, other.symbol_win_count),
            category_win_units=_sum_maps(self.category_win_units, other.category_win_units),
        )

    @property
    def total_wagered(self) -> float:
        return from_units(self.wagered_units)

    @property
    def total_won(self) -> float:
        return from_units(self.won_units)

    @property
    def symbol_win_amount(self) -> Dict[str, float]:
        return {sym: from_units(units) for sym, units in self.symbol_win_units.items()}

    @property
    def category_win_amount(self) -> Dict[str, float]:
        return {category: from_units(units) for category, units in self.category_win_units.items()}

    @property
    def win_amount_by_kind(self) -> Dict[int, float]:
        return {kind: from_units(units) for kind, units in self.win_units_by_kind.items()}

    @property
    def rtp(self) -> float:
        return _pct(self.won_units, self.wagered_units)

    @property
    def hit_rate(self) -> float:
        return _pct(self.total_win_spins, self.total_spins)

    @property
    def bonus_trigger_rate(self) -> float:
        return _pct(self.free_spins_triggered, self.total_spins)

    @property
    def near_hit_rate(self) -> float:
        return _pct(self.near_hit_count, self.total_spins)

    @property
    def avg_cascades_per_spin(self) -> float:
        return self.total_cascades / self.total_spins if self.total_spins else 0.0

    @property
    def avg_free_spins_awarded(self) -> float:
        return self.free_spins_awarded / self.free_spins_triggered if self.free_spins_triggered else 0.0

    def category_rtp_pct(self, category: str) -> float:
        """Share of the total amount won that came from ``category`` symbols."""
        return _pct(self.category_win_units.get(category, 0), self.won_units)

    @property
    def low_rtp_pct(self) -> float:
        return self.category_rtp_pct(LOW)

    @property
    def mid_rtp_pct(self) -> float:
        return self.category_rtp_pct(MID)

    @property
    def high_rtp_pct(self) -> float:
        return self.category_rtp_pct(HIGH)

    @property
    def high_symbol_win_rate(self) -> float:
        return _pct(self.high_symbol_wins, self.high_symbol_wins + self.low_symbol_wins)

    def kind_distribution(self) -> Dict[int, float]:
        total = sum(self.win_count_by_kind.values())
        return {kind: _pct(count, total) for kind, count in sorted(self.win_count_by_kind.items())}

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_spins": self.total_spins,
            "total_win_spins": self.total_win_spins,
            "total_wagered": round(self.total_wagered, 4),
            "total_won": round(self.total_won, 4),
            "max_win": round(self.max_win, 4),
            "rtp": round(self.rtp, 4),
            "hit_rate": round(self.hit_rate, 4),
            "bonus_trigger_rate": round(self.bonus_trigger_rate, 4),
            "avg_free_spins_awarded": round(self.avg_free_spins_awarded, 4),
            "avg_cascades_per_spin": round(self.avg_cascades_per_spin, 4),
            "max_cascades": self.max_cascades,
            "win_buckets": {
                "no_win": self.no_win_spins,
                "small": self.small_wins,
                "medium": self.medium_wins,
                "big": self.big_wins,
                "mega": self.mega_wins,
            },
            "cascade_depth": {str(k): v for k, v in sorted(self.cascade_depth.items())},
            "win_count_by_kind": {str(k): v for k, v in sorted(self.win_count_by_kind.items())},
            "near_hit_rate": round(self.near_hit_rate, 4),
            "category_rtp_pct": {category: round(self.category_rtp_pct(category), 4) for category in CATEGORIES},
            "high_symbol_win_rate": round(self.high_symbol_win_rate, 4),
            "symbol_win_amount": {sym: round(v, 4) for sym, v in sorted(self.symbol_win_amount.items())},
        }


@dataclass
class WorkerResult:
    worker_id: int
    spins_processed: int
    stats: SimulationStats


def merge_stats(results: Iterable[Union[WorkerResult, SimulationStats]]) -> SimulationStats:
    """Reduce per-worker results into one aggregate.

    Counts and amounts are summed, extremes use max, and every rate is
    derived afterwards from the merged counts.
    """
    merged = SimulationStats()
    for result in results:
        stats = result.stats if isinstance(result, WorkerResult) else result
        merged = merged.merge(stats)
    return merged


def _sum_maps(first: Dict, second: Dict) -> Dict:
    result = dict(first)
    for key, value in second.items():
        result[key] = result.get(key, 0) + value
    return result


def _pct(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * 100.0
