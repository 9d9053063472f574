"""Run parameters for one tuning invocation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from reel_tuning.density import CategoryTargets
from reel_tuning.errors import ConfigurationError

FAST_SPINS = 20_000
FAST_MAX_ITER = 20
_TRUTHY = {"1", "true", "yes"}


def default_num_workers() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class TuningConfig:
    total_spins: int = 1_000_000
    max_iter: int = 1_000
    bet_amount: float = 10.0
    target_rtp: float = 63.5
    rtp_tolerance: float = 0.5
    target_hit_rate: float = 35.0
    hit_rate_tolerance: float = 0.5
    target_bonus_trigger_rate: float = 1.5
    bonus_trigger_tolerance: float = 0.05
    category_targets: CategoryTargets = CategoryTargets()
    category_tolerance: float = 3.0
    learning_rate: float = 0.02
    num_workers: int = field(default_factory=default_num_workers)
    use_processes: bool = True
    reset_densities: bool = True
    seed: Optional[int] = None
    game_mode: str = "base_game"

    def validate(self) -> "TuningConfig":
        if self.total_spins <= 0:
            raise ConfigurationError(f"total_spins must be positive, got {self.total_spins}")
        if self.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {self.max_iter}")
        if self.bet_amount <= 0:
            raise ConfigurationError(f"bet_amount must be positive, got {self.bet_amount}")
        if self.num_workers <= 0:
            raise ConfigurationError(f"num_workers must be positive, got {self.num_workers}")
        if not 0 < self.learning_rate <= 1:
            raise ConfigurationError(f"learning_rate must be within (0, 1], got {self.learning_rate}")
        for name in ("rtp_tolerance", "hit_rate_tolerance", "bonus_trigger_tolerance", "category_tolerance"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative")
        return self

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "TuningConfig":
        """Apply ``REEL_TUNING_*`` environment overrides and return a new config."""
        env = os.environ if environ is None else environ
        changes = {}
        if env.get("REEL_TUNING_FAST", "").lower() in _TRUTHY:
            changes["total_spins"] = min(self.total_spins, FAST_SPINS)
            changes["max_iter"] = min(self.max_iter, FAST_MAX_ITER)
        for key, attr in (
            ("REEL_TUNING_SPINS", "total_spins"),
            ("REEL_TUNING_MAX_ITER", "max_iter"),
            ("REEL_TUNING_WORKERS", "num_workers"),
            ("REEL_TUNING_SEED", "seed"),
        ):
            raw = env.get(key)
            if raw:
                try:
                    changes[attr] = int(raw)
                except ValueError:
                    raise ConfigurationError(f"{key} must be an integer, got '{raw}'") from None
        return replace(self, **changes)


def base_game_config() -> TuningConfig:
    return TuningConfig()


def free_spins_config() -> TuningConfig:
    """Bonus-buy tuning: fewer spins per round, higher RTP target."""
    return TuningConfig(
        total_spins=10_000,
        max_iter=5_000,
        bet_amount=20.0,
        target_rtp=96.5,
        rtp_tolerance=0.5,
        target_bonus_trigger_rate=1.0,
        bonus_trigger_tolerance=0.05,
        game_mode="bonus_spin_trigger",
    )
