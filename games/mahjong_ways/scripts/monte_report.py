import json
import os
import sys
from pathlib import Path

GAME_DIR = Path(__file__).resolve().parents[1]
if str(GAME_DIR) not in sys.path:
    sys.path.insert(0, str(GAME_DIR))

from game_config import BASE_GAME, FREE_SPINS, GameConfig
from reel_tuning.evaluator import WaysEvaluator
from reel_tuning.export import read_reels_csv
from reel_tuning.harness import SimulationHarness
from reel_tuning.log import configure_logging


def summarize_mode(config: GameConfig, mode: str, spins: int = 200_000):
    strips = read_reels_csv(config.reels_path / f"{mode}.csv")
    preset = config.tuning_config(mode)
    evaluator = WaysEvaluator(config.symbols, bet_amount=preset.bet_amount, rows=config.num_rows)
    harness = SimulationHarness(config.symbols, use_processes=preset.use_processes)
    stats = harness.run(strips, spins, preset.num_workers, evaluator, bet_amount=preset.bet_amount, seed=preset.seed)
    return {
        "mode": mode,
        "spins": stats.total_spins,
        "bet_per_spin": preset.bet_amount,
        "target_rtp": preset.target_rtp,
        "strip_lengths": [len(strip) for strip in strips],
        **stats.to_dict(),
    }


def main():
    configure_logging()
    spins = int(os.getenv("MONTE_SPINS", "200000"))
    config = GameConfig()
    summaries = [
        summarize_mode(config, BASE_GAME, spins),
        summarize_mode(config, FREE_SPINS, spins),
    ]
    for summary in summaries:
        print(f"=== {summary['mode']} ===")
        print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
