"""Main file for tuning the mahjong ways reel strips."""

import os
from datetime import datetime

from game_config import BASE_GAME, GameConfig
from reel_tuning import report
from reel_tuning.export import build_document, write_document, write_reels_csv
from reel_tuning.fallbacks import fallback_for
from reel_tuning.log import configure_logging
from reel_tuning.placement import StripGenerator
from reel_tuning.tuning import TuningLoop

if __name__ == "__main__":

    configure_logging()
    mode = os.getenv("MAHJONG_MODE", BASE_GAME)
    fallback_name = os.getenv("REEL_TUNING_FALLBACK", "drop_and_replace")

    run_conditions = {
        "print_setup": True,
        "run_tuning": True,
        "write_csv": True,
        "write_json": True,
    }

    config = GameConfig()
    tuning_config = config.tuning_config(mode)
    topologies = config.topologies(mode)
    weights = config.reel_weights(mode)

    loop = TuningLoop(
        topologies,
        weights,
        config.symbols,
        fallback=fallback_for(fallback_name),
    )

    if run_conditions["print_setup"]:
        report.print_config(tuning_config)
        report.print_topology(topologies, config.symbols)
        report.print_gold_config(topologies)

    if run_conditions["run_tuning"]:
        result = loop.tune(tuning_config)

        print(f"Converged: {result.converged} after {result.iterations} iterations (best {result.best_iteration})")
        adjusted = StripGenerator(result.topologies, config.symbols).adjusted_weights(weights)
        report.print_adjusted_weights(adjusted, config.symbols)
        report.print_results(result.stats, tuning_config.bet_amount, tuning_config.target_rtp)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        if run_conditions["write_csv"]:
            csv_path = write_reels_csv(config.reels_path / f"{mode}.csv", result.strips)
            print(f"Reels written to {csv_path}")
        if run_conditions["write_json"]:
            document = build_document(
                result.topologies, weights, result.strips, result.stats, game_mode=tuning_config.game_mode
            )
            json_path = write_document(config.output_path / f"{mode}_{stamp}.json", document)
            print(f"Strip document written to {json_path}")
