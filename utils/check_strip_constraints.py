import argparse
import sys
from pathlib import Path

from reel_tuning.analysis import find_violations
from reel_tuning.export import read_reels_csv
from reel_tuning.report import format_violations
from reel_tuning.topology import NUM_REELS

GAMES_DIR = Path(__file__).resolve().parents[1] / "games"


def assert_constrained(reels_path: Path, topologies) -> None:
    """Ensure every strip in a reel CSV satisfies its reel topology."""
    reels_path = reels_path.expanduser().resolve()
    if not reels_path.exists():
        raise FileNotFoundError(f"Reel file not found: {reels_path}")

    strips = read_reels_csv(reels_path)
    if len(strips) != NUM_REELS:
        raise AssertionError(f"{reels_path} has {len(strips)} reels, expected {NUM_REELS}")

    bad_reels = []
    total_positions = 0
    for reel_index, strip in enumerate(strips):
        total_positions += len(strip)
        violations = find_violations(strip, topologies[reel_index])
        if violations:
            bad_reels.append((reel_index + 1, violations))

    if bad_reels:
        sample = "; ".join(f"reel {reel}: {format_violations(found[:5])}" for reel, found in bad_reels)
        raise AssertionError(
            f"{reels_path} breaks its topology on {len(bad_reels)} reels. First offenders: {sample}"
        )
    print(f"{reels_path} OK - {total_positions} positions over {len(strips)} reels satisfy the topology.")


def main():
    parser = argparse.ArgumentParser(description="Verify reel strips satisfy the game's reel topology.")
    parser.add_argument("reels_path", help="Path to reels/<mode>.csv")
    parser.add_argument("--game", default="mahjong_ways", help="Game folder under games/")
    parser.add_argument("--mode", default="base_game", help="Game mode whose topology applies")
    args = parser.parse_args()

    game_dir = GAMES_DIR / args.game
    if str(game_dir) not in sys.path:
        sys.path.insert(0, str(game_dir))
    from game_config import GameConfig

    assert_constrained(Path(args.reels_path), GameConfig().topologies(args.mode))


if __name__ == "__main__":
    main()
