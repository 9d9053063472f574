"""Gold overlay: turns a bounded share of paying positions into gold variants."""

from __future__ import annotations

import logging
import math
import random
from typing import Dict, List

from reel_tuning.symbols import Strip, SymbolConfig
from reel_tuning.topology import GoldTopologyConfig, TopologySet

LOGGER = logging.getLogger("reel_tuning.gold")

_SHARED_QUOTA = "*"


def gold_target(ratio: float, eligible: int) -> int:
    """Round-half-up share of ``eligible``, at least one whenever ratio is positive."""
    if ratio <= 0 or eligible <= 0:
        return 0
    return max(1, int(math.floor(ratio * eligible + 0.5)))


def circular_distance(a: int, b: int, length: int) -> int:
    direct = abs(a - b)
    return min(direct, length - direct)


def spacing_ok(pos: int, gold_positions: List[int], min_spacing: int, length: int) -> bool:
    if min_spacing <= 0:
        return True
    return all(circular_distance(pos, other, length) >= min_spacing for other in gold_positions)


def cluster_ok(pos: int, strip: Strip, max_cluster: int) -> bool:
    """Gold run through ``pos`` (not wrapping) stays within ``max_cluster``."""
    if max_cluster <= 0:
        return True
    before = 0
    idx = pos - 1
    while idx >= 0 and strip[idx].is_gold:
        before += 1
        idx -= 1
    after = 0
    idx = pos + 1
    while idx < len(strip) and strip[idx].is_gold:
        after += 1
        idx += 1
    return before + 1 + after <= max_cluster


class GoldOverlay:
    def __init__(self, topologies: TopologySet, symbols: SymbolConfig):
        self.topologies = topologies
        self.symbols = symbols

    def overlay(self, strip: Strip, reel_index: int, rng: random.Random) -> Strip:
        """Return a copy of ``strip`` with gold variants applied.

        The input strip is left untouched. Only non-gold paying symbols are
        candidates; wild and scatter positions never change. Candidates that
        break the spacing or cluster limits are skipped, not retried.
        """
        config = self.topologies[reel_index].gold_config
        result = list(strip)
        if not _active(config):
            return result

        eligible = [
            pos for pos, token in enumerate(result) if not token.is_gold and self.symbols.is_paying(token.base)
        ]
        if not eligible:
            return result

        groups: Dict[str, List[int]] = {}
        for pos in eligible:
            groups.setdefault(self._quota_key(config, result[pos].base), []).append(pos)
        quotas = {
            key: gold_target(self._quota_ratio(config, key), len(positions)) for key, positions in groups.items()
        }
        target = sum(quotas.values())
        if target == 0:
            return result

        gold_positions = [pos for pos, token in enumerate(result) if token.is_gold]
        placed: Dict[str, int] = {key: 0 for key in quotas}
        candidates = list(eligible)
        rng.shuffle(candidates)
        applied = 0
        for pos in candidates:
            if applied >= target:
                break
            key = self._quota_key(config, result[pos].base)
            if placed[key] >= quotas[key]:
                continue
            if not spacing_ok(pos, gold_positions, config.min_gold_spacing, len(result)):
                continue
            if not cluster_ok(pos, result, config.max_gold_cluster):
                continue
            result[pos] = result[pos].to_gold()
            gold_positions.append(pos)
            placed[key] += 1
            applied += 1

        LOGGER.info(
            "reel %d: applied %d/%d gold symbols over %d paying positions",
            reel_index + 1,
            applied,
            target,
            len(eligible),
        )
        return result

    @staticmethod
    def _quota_key(config: GoldTopologyConfig, base: str) -> str:
        return base if base in config.per_symbol_gold_ratio else _SHARED_QUOTA

    @staticmethod
    def _quota_ratio(config: GoldTopologyConfig, key: str) -> float:
        if key == _SHARED_QUOTA:
            return config.gold_ratio
        return config.per_symbol_gold_ratio[key]


def _active(config) -> bool:
    return config is not None and config.enabled and config.gold_ratio > 0
