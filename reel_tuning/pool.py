"""Weight map -> concrete multiset of symbol occurrences."""

from __future__ import annotations

import random
from typing import Dict, List

from reel_tuning.symbols import Strip, SymbolToken
from reel_tuning.topology import ReelTopology, SymbolWeights


def density_adjusted_weights(weights: SymbolWeights, topology: ReelTopology) -> Dict[str, int]:
    """Scale each weight by the reel's density for that symbol.

    A positive weight never rounds down to zero; symbols without a density
    entry keep their weight unchanged.
    """
    adjusted: Dict[str, int] = {}
    for sym, weight in weights.items():
        scaled = int(weight * topology.density_for(sym))
        if weight > 0 and scaled < 1:
            scaled = 1
        adjusted[sym] = scaled
    return adjusted


def build_pool(weights: Dict[str, int]) -> List[SymbolToken]:
    pool: List[SymbolToken] = []
    for sym, weight in weights.items():
        pool.extend(SymbolToken(sym) for _ in range(weight))
    return pool


def shuffled_pool(weights: Dict[str, int], rng: random.Random) -> Strip:
    pool = build_pool(weights)
    rng.shuffle(pool)
    return pool
