class ConfigurationError(ValueError):
    """Invalid reel index, weight map or tuning configuration."""


class TopologyError(ValueError):
    """A reel topology breaks one of its structural invariants."""


class PlacementError(RuntimeError):
    """The constrained placement could not fill the strip under its fallback policy."""
