import pytest

from reel_tuning.symbols import default_symbol_config
from reel_tuning.topology import ReelRole, ReelTopology, TopologySet


@pytest.fixture(scope="module")
def symbols():
    return default_symbol_config()


@pytest.fixture
def make_topologies():
    """Five unconstrained reels; ``overrides`` maps reel index -> ReelTopology kwargs."""

    def factory(overrides=None):
        overrides = overrides or {}
        return TopologySet(
            [ReelTopology(role=role, **overrides.get(reel_index, {})) for reel_index, role in enumerate(ReelRole)]
        )

    return factory
