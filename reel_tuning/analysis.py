"""Read-only inspection of generated strips."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from reel_tuning.constraints import PlacementState
from reel_tuning.symbols import Strip, SymbolConfig
from reel_tuning.topology import ReelTopology


@dataclass
class StripAnalysis:
    length: int
    symbol_counts: Dict[str, int] = field(default_factory=dict)
    avg_spacing: Dict[str, float] = field(default_factory=dict)
    max_cluster_size: Dict[str, int] = field(default_factory=dict)


@dataclass
class GoldAnalysis:
    reel_index: int
    total_symbols: int = 0
    paying_symbols: int = 0
    gold_symbols: int = 0
    gold_ratio: float = 0.0
    target_ratio: float = 0.0
    avg_gold_spacing: float = 0.0
    max_gold_cluster: int = 0


@dataclass(frozen=True)
class Violation:
    position: int
    symbol: str
    kind: str


def analyze_strip(strip: Strip) -> StripAnalysis:
    """Counts, average gap and longest run per token (gold and base counted apart)."""
    analysis = StripAnalysis(length=len(strip))
    positions: Dict[str, List[int]] = {}
    for idx, token in enumerate(strip):
        positions.setdefault(str(token), []).append(idx)
    for sym, found in positions.items():
        analysis.symbol_counts[sym] = len(found)
        if len(found) > 1:
            analysis.avg_spacing[sym] = (found[-1] - found[0]) / (len(found) - 1)

    current = None
    run = 0
    for token in strip:
        sym = str(token)
        run = run + 1 if sym == current else 1
        current = sym
        if run > analysis.max_cluster_size.get(sym, 0):
            analysis.max_cluster_size[sym] = run
    return analysis


def analyze_gold(strip: Strip, reel_index: int, topology: ReelTopology, symbols: SymbolConfig) -> GoldAnalysis:
    stats = GoldAnalysis(reel_index=reel_index, total_symbols=len(strip))
    if topology.gold_config is not None:
        stats.target_ratio = topology.gold_config.gold_ratio

    gold_positions = []
    run = 0
    for idx, token in enumerate(strip):
        if symbols.is_paying(token.base):
            stats.paying_symbols += 1
        if token.is_gold:
            stats.gold_symbols += 1
            gold_positions.append(idx)
            run += 1
            stats.max_gold_cluster = max(stats.max_gold_cluster, run)
        else:
            run = 0

    if stats.paying_symbols:
        stats.gold_ratio = stats.gold_symbols / stats.paying_symbols
    if len(gold_positions) > 1:
        stats.avg_gold_spacing = (gold_positions[-1] - gold_positions[0]) / (len(gold_positions) - 1)
    return stats


def find_violations(strip: Strip, topology: ReelTopology) -> List[Violation]:
    """Replay ``strip`` against ``topology`` and list every broken placement rule."""
    state = PlacementState(topology)
    found: List[Violation] = []
    for token in strip:
        for kind in state.violations(token.base):
            found.append(Violation(position=state.position, symbol=token.base, kind=kind))
        state.place(token)
    return found
