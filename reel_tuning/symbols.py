"""Symbol alphabet, tiers and paytable shared by the generator and the evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

GOLD_SUFFIX = "_gold"

LOW = "low"
MID = "mid"
HIGH = "high"
CATEGORIES: Tuple[str, ...] = (LOW, MID, HIGH)


@dataclass(frozen=True)
class SymbolToken:
    """One strip position: a base symbol plus its gold flag."""

    base: str
    is_gold: bool = False

    def __str__(self) -> str:
        return self.base + GOLD_SUFFIX if self.is_gold else self.base

    def to_gold(self) -> "SymbolToken":
        return SymbolToken(self.base, True)

    @classmethod
    def parse(cls, text: str) -> "SymbolToken":
        text = text.strip()
        if text.endswith(GOLD_SUFFIX) and len(text) > len(GOLD_SUFFIX):
            return cls(text[: -len(GOLD_SUFFIX)], True)
        return cls(text, False)


Strip = List[SymbolToken]


def strip_to_strings(strip: Strip) -> List[str]:
    return [str(token) for token in strip]


def strip_from_strings(values: List[str]) -> Strip:
    return [SymbolToken.parse(value) for value in values]


@dataclass
class SymbolConfig:
    """Closed alphabet for one game.

    Paying symbols are split into low / mid / high tiers; the tier drives both
    density tuning and the category RTP contribution report. Wild and scatter
    symbols never pay ways wins and never become gold.
    """

    low: Tuple[str, ...]
    mid: Tuple[str, ...]
    high: Tuple[str, ...]
    wild: str = "wild"
    scatter: str = "bonus"
    paytable: Dict[str, Dict[int, float]] = field(default_factory=dict)

    def __post_init__(self):
        self._category = {}
        for category, members in zip(CATEGORIES, (self.low, self.mid, self.high)):
            for sym in members:
                if sym in self._category:
                    raise ValueError(f"symbol '{sym}' listed in two tiers")
                self._category[sym] = category

    def category_of(self, base: str) -> Optional[str]:
        return self._category.get(base)

    def is_paying(self, base: str) -> bool:
        return base in self._category

    def symbols_in(self, category: str) -> Tuple[str, ...]:
        if category == LOW:
            return self.low
        if category == MID:
            return self.mid
        if category == HIGH:
            return self.high
        raise ValueError(f"Unknown symbol category '{category}'")

    def paying_symbols(self) -> Tuple[str, ...]:
        return self.low + self.mid + self.high

    def all_symbols(self) -> Tuple[str, ...]:
        return self.paying_symbols() + (self.wild, self.scatter)

    def payout(self, base: str, count: int) -> float:
        return self.paytable.get(base, {}).get(count, 0.0)

    def min_payout_count(self) -> int:
        counts = [count for pays in self.paytable.values() for count in pays]
        return min(counts) if counts else 3


# Ordered by 3-of-a-kind payout inside each tier.
DEFAULT_PAYTABLE: Dict[str, Dict[int, float]] = {
    "fa": {3: 10.0, 4: 25.0, 5: 50.0},
    "zhong": {3: 8.0, 4: 20.0, 5: 40.0},
    "bai": {3: 6.0, 4: 15.0, 5: 30.0},
    "bawan": {3: 5.0, 4: 10.0, 5: 15.0},
    "wusuo": {3: 3.0, 4: 5.0, 5: 12.0},
    "wutong": {3: 3.0, 4: 5.0, 5: 12.0},
    "liangsuo": {3: 2.0, 4: 4.0, 5: 10.0},
    "liangtong": {3: 1.0, 4: 3.0, 5: 6.0},
}


def default_symbol_config() -> SymbolConfig:
    return SymbolConfig(
        low=("liangtong", "liangsuo", "wusuo", "wutong"),
        mid=("bawan", "bai"),
        high=("zhong", "fa"),
        wild="wild",
        scatter="bonus",
        paytable={sym: dict(pays) for sym, pays in DEFAULT_PAYTABLE.items()},
    )
