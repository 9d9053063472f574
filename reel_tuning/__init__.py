"""Constraint-based reel strip generation and closed-loop RTP tuning."""

from reel_tuning.config import TuningConfig, base_game_config, free_spins_config
from reel_tuning.density import CategoryTargets, DensityController
from reel_tuning.errors import ConfigurationError, PlacementError, TopologyError
from reel_tuning.evaluator import WaysEvaluator
from reel_tuning.fallbacks import (
    DropAndReplaceFallback,
    FindBestFallback,
    PlacementFallback,
    RetryQueueFallback,
    fallback_for,
)
from reel_tuning.gold import GoldOverlay
from reel_tuning.harness import SimulationHarness
from reel_tuning.placement import ConstraintPlacer, StripGenerator
from reel_tuning.stats import SimulationStats, SpinOutcome, WorkerResult, merge_stats
from reel_tuning.symbols import SymbolConfig, SymbolToken, default_symbol_config
from reel_tuning.topology import (
    ClusterForbiddenRule,
    GoldTopologyConfig,
    ReelRole,
    ReelTopology,
    ReelWeightsSet,
    TopologySet,
)
from reel_tuning.tuning import TuningLoop, TuningResult

__version__ = "0.1.0"
