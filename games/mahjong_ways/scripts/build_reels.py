#!/usr/bin/env python3
"""
Deterministically rebuild the mahjong ways reel strips without a tuning pass.

Constraints enforced here:
* Every strip is generated through the constraint placer with the mode's topology.
* Strips are replayed against their topology afterwards; any remaining violation is reported.
* Gold variants only land on reels whose topology enables them.
"""

from __future__ import annotations

import argparse
import random
import sys
from collections import Counter
from pathlib import Path
from typing import List

GAME_DIR = Path(__file__).resolve().parents[1]
if str(GAME_DIR) not in sys.path:
    sys.path.insert(0, str(GAME_DIR))

from game_config import BASE_GAME, FREE_SPINS, GameConfig
from reel_tuning.analysis import analyze_gold, find_violations
from reel_tuning.export import write_reels_csv
from reel_tuning.fallbacks import FALLBACKS, fallback_for
from reel_tuning.log import configure_logging
from reel_tuning.placement import StripGenerator
from reel_tuning.report import format_violations
from reel_tuning.symbols import Strip

MODE_SEEDS = {
    BASE_GAME: 20240301,
    FREE_SPINS: 20240302,
}


def summarize(strips: List[Strip]) -> str:
    counts = Counter()
    for strip in strips:
        counts.update(str(token) for token in strip)
    return ", ".join(f"{symbol}:{counts[symbol]}" for symbol in sorted(counts))


def build_mode(config: GameConfig, mode: str, fallback_name: str) -> Path:
    rng = random.Random(MODE_SEEDS[mode])
    topologies = config.topologies(mode)
    generator = StripGenerator(topologies, config.symbols, fallback_for(fallback_name))
    strips = generator.generate_all(config.reel_weights(mode), rng)

    for reel_index, strip in enumerate(strips):
        topology = topologies[reel_index]
        violations = find_violations(strip, topology)
        gold = analyze_gold(strip, reel_index, topology, config.symbols)
        line = f"{mode}: reel {reel_index + 1} length {len(strip)}, gold {gold.gold_symbols} ({gold.gold_ratio:.2%})"
        if violations:
            line += f", {len(violations)} violations: {format_violations(violations[:5])}"
        print(line)

    output_path = write_reels_csv(config.reels_path / f"{mode}.csv", strips)
    print(f"{mode}: {summarize(strips)}")
    print(f"Wrote {output_path}")
    return output_path


def main():
    parser = argparse.ArgumentParser(description="Rebuild mahjong ways reel strips from the default topologies.")
    parser.add_argument("--mode", choices=sorted(MODE_SEEDS), action="append", help="Mode(s) to build; default all.")
    parser.add_argument("--fallback", choices=sorted(FALLBACKS), default="drop_and_replace")
    args = parser.parse_args()

    configure_logging("WARNING")
    config = GameConfig()
    for mode in args.mode or list(MODE_SEEDS):
        build_mode(config, mode, args.fallback)


if __name__ == "__main__":
    main()
