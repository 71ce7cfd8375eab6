from unitbasket.feeds.fallback import FallbackFeed, LiveFeed, make_feed
from unitbasket.feeds.simulated import SimulatedFeed

__all__ = ["FallbackFeed", "LiveFeed", "SimulatedFeed", "make_feed"]
