"""Hand-off formats for finished strip sets: checksum, JSON document, CSV reels."""

from __future__ import annotations

import csv
import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from reel_tuning.stats import SimulationStats
from reel_tuning.symbols import Strip, strip_from_strings, strip_to_strings
from reel_tuning.topology import ReelWeightsSet, TopologySet

PathLike = Union[str, Path]


def strip_checksum(strip: Strip) -> str:
    """SHA-256 over the compact JSON list of the strip's tokens."""
    payload = json.dumps(strip_to_strings(strip), separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def build_document(
    topologies: TopologySet,
    weights_set: ReelWeightsSet,
    strips: Sequence[Strip],
    stats: Optional[SimulationStats] = None,
    game_mode: str = "base_game",
) -> Dict[str, object]:
    reels = [
        {
            "reel_number": reel_number,
            "strip": strip_to_strings(strip),
            "checksum": strip_checksum(strip),
            "length": len(strip),
        }
        for reel_number, strip in enumerate(strips, start=1)
    ]
    rtp = stats.rtp if stats is not None else None
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return {
        "name": f"{game_mode}-{rtp:.2f}-{timestamp}" if rtp is not None else f"{game_mode}-{timestamp}",
        "game_mode": game_mode,
        "reels": reels,
        "topologies": topologies.to_dict(),
        "base_weights": weights_set.to_dict(),
        "stats": stats.to_dict() if stats is not None else None,
    }


def write_document(path: PathLike, document: Dict[str, object]) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(document, indent=2))
    return output_path


def write_reels_csv(path: PathLike, strips: Sequence[Strip]) -> Path:
    """One column per reel; shorter strips are padded with empty cells."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    columns = [strip_to_strings(strip) for strip in strips]
    rows = max((len(column) for column in columns), default=0)
    with output_path.open("w", newline="") as handle:
        writer = csv.writer(handle)
        for row_idx in range(rows):
            writer.writerow([column[row_idx] if row_idx < len(column) else "" for column in columns])
    return output_path


def read_reels_csv(path: PathLike) -> List[Strip]:
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Missing reel file: {input_path}")
    columns: List[List[str]] = []
    with input_path.open(newline="") as handle:
        for row in csv.reader(handle):
            while len(columns) < len(row):
                columns.append([])
            for reel_idx, cell in enumerate(row):
                if cell:
                    columns[reel_idx].append(cell)
    return [strip_from_strings(column) for column in columns]
