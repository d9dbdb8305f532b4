"""Route subpackage: private route planning and batch execution."""
from .execute import RouteExecutor
from .plan import RoutePlanner, privacy_score
from .schemas import PrivacyProfile, RoutingBatch, RoutingSegment

__all__ = [
    "RoutePlanner",
    "RouteExecutor",
    "PrivacyProfile",
    "RoutingBatch",
    "RoutingSegment",
    "privacy_score",
]
