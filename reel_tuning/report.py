"""Operator-facing console tables."""

from __future__ import annotations

from typing import Optional, Sequence

from reel_tuning.analysis import Violation
from reel_tuning.config import TuningConfig
from reel_tuning.density import ReelDensitySummary
from reel_tuning.stats import SimulationStats
from reel_tuning.symbols import SymbolConfig
from reel_tuning.topology import NUM_REELS, ReelWeightsSet, TopologySet

REEL_HEADER = "               Reel1   Reel2   Reel3   Reel4   Reel5"


def print_config(config: TuningConfig) -> None:
    print("=== Reel Tuning Configuration ===")
    print(f"  Game mode:            {config.game_mode}")
    print(f"  Spins per iteration:  {config.total_spins}")
    print(f"  Max iterations:       {config.max_iter}")
    print(f"  Bet amount:           {config.bet_amount:.2f}")
    print(f"  Target RTP:           {config.target_rtp:.2f}% (+/- {config.rtp_tolerance:.2f})")
    print(f"  Target hit rate:      {config.target_hit_rate:.2f}% (+/- {config.hit_rate_tolerance:.2f})")
    print(
        f"  Target bonus rate:    {config.target_bonus_trigger_rate:.3f}% (+/- {config.bonus_trigger_tolerance:.3f})"
    )
    targets = config.category_targets
    print(f"  Category targets:     low {targets.low:.0f}% / mid {targets.mid:.0f}% / high {targets.high:.0f}%")
    print(f"  Learning rate:        {config.learning_rate:.3f}")
    print(f"  Workers:              {config.num_workers} ({'processes' if config.use_processes else 'threads'})")
    print(f"  Reset densities:      {config.reset_densities}")
    print("")


def print_topology(topologies: TopologySet, symbols: SymbolConfig) -> None:
    print("=== Reel roles ===")
    print("               " + " ".join(f"{t.role.display_name:<11}" for t in topologies))
    print("=== Symbol density ===")
    print(REEL_HEADER)
    for sym in symbols.paying_symbols() + (symbols.scatter,):
        print(f"{sym:<14} " + "   ".join(f"{t.density_for(sym):5.2f}" for t in topologies))
    print("=== Min spacing ===")
    print(REEL_HEADER)
    spaced = sorted({sym for t in topologies for sym in t.min_spacing})
    for sym in spaced:
        cells = [str(t.min_spacing[sym]) if sym in t.min_spacing else "-" for t in topologies]
        print(f"{sym:<14} " + "   ".join(f"{cell:>5}" for cell in cells))
    for reel_number, topology in enumerate(topologies, start=1):
        if topology.forbidden_pairs:
            pairs = ", ".join("[" + "-".join(sorted(pair)) + "]" for pair in topology.forbidden_pairs)
            print(f"  Reel{reel_number} forbidden: {pairs}")
    print("")


def print_adjusted_weights(adjusted: ReelWeightsSet, symbols: SymbolConfig) -> None:
    print("=== Adjusted weights (after density) ===")
    print(REEL_HEADER)
    reels = [adjusted.reel(idx) for idx in range(NUM_REELS)]
    for sym in symbols.all_symbols():
        print(f"{sym:<14} " + "   ".join(f"{weights.get(sym, 0):5d}" for weights in reels))
    print(f"{'TOTAL':<14} " + "   ".join(f"{sum(weights.values()):5d}" for weights in reels))
    print("")


def print_gold_config(topologies: TopologySet) -> None:
    print("=== Gold overlay ===")
    print(REEL_HEADER)
    rows = [
        ("Enabled", lambda g: "yes" if g and g.enabled else "no"),
        ("Ratio %", lambda g: f"{g.gold_ratio * 100:.2f}" if g and g.enabled else "-"),
        ("MinSpacing", lambda g: str(g.min_gold_spacing) if g and g.enabled else "-"),
        ("MaxCluster", lambda g: str(g.max_gold_cluster) if g and g.enabled else "-"),
    ]
    for label, render in rows:
        print(f"{label:<14} " + "   ".join(f"{render(t.gold_config):>5}" for t in topologies))
    print("")


def print_density_summaries(summaries: Sequence[ReelDensitySummary]) -> None:
    for summary in summaries:
        print(
            f"  R{summary.reel_number} {summary.role.display_name:<9}: "
            f"Low={summary.low_avg:.2f} Mid={summary.mid_avg:.2f} High={summary.high_avg:.2f}"
        )


def _share(count: int, total: int) -> str:
    return f"{count / total:.2%}" if total else "n/a"


def print_results(stats: SimulationStats, bet_amount: float, target_rtp: Optional[float] = None) -> None:
    spins = stats.total_spins
    print("=== Simulation Results ===")
    print(f"Total spins:     {spins}")
    print(f"Total wagered:   {stats.total_wagered:.2f}")
    print(f"Total won:       {stats.total_won:.2f}")
    line = f"RTP:             {stats.rtp:.4f}%"
    if target_rtp is not None:
        line += f" (target {target_rtp:.2f}%, diff {stats.rtp - target_rtp:+.2f})"
    print(line)
    print("")
    print(f"Hit rate:        {stats.hit_rate:.2f}%")
    print(f"  No win:        {stats.no_win_spins} ({_share(stats.no_win_spins, spins)})")
    print(f"  Small <5x:     {stats.small_wins} ({_share(stats.small_wins, spins)})")
    print(f"  Medium <20x:   {stats.medium_wins} ({_share(stats.medium_wins, spins)})")
    print(f"  Big <100x:     {stats.big_wins} ({_share(stats.big_wins, spins)})")
    print(f"  Mega >=100x:   {stats.mega_wins} ({_share(stats.mega_wins, spins)})")
    print(f"Avg cascades:    {stats.avg_cascades_per_spin:.2f}  (max {stats.max_cascades})")
    if stats.free_spins_triggered:
        print(
            f"Bonus trigger:   {stats.free_spins_triggered} ({stats.bonus_trigger_rate:.4f}%), "
            f"1 in {spins / stats.free_spins_triggered:.0f}, avg award {stats.avg_free_spins_awarded:.2f}"
        )
    else:
        print(f"Bonus trigger:   >{spins} spins (no triggers)")
    print(f"Near hit:        {stats.near_hit_rate:.2f}%")
    print(f"Max win:         {stats.max_win:.2f} ({stats.max_win / bet_amount:.1f}x bet)")
    print("")
    kinds = stats.kind_distribution()
    if kinds:
        print("Win by kind:     " + " ".join(f"{kind}-kind={pct:.2f}%" for kind, pct in kinds.items()))
    print(
        f"Symbol RTP share: low {stats.low_rtp_pct:.2f}% | mid {stats.mid_rtp_pct:.2f}% | high {stats.high_rtp_pct:.2f}%"
    )
    print(f"High symbol win rate: {stats.high_symbol_win_rate:.2f}%")
    print("")


def format_violations(violations: Sequence[Violation]) -> str:
    return ", ".join(f"{v.kind}@{v.position}({v.symbol})" for v in violations)
