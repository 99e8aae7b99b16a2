"""
Domain exceptions raised at the caller boundary.

Core geometry never raises for degenerate input; these are reserved for
requests the planner refuses (oversized zones, rejected placements,
invalid lifecycle transitions).
"""


class PlannerError(Exception):
    """Base class for planner errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ZoneValidationError(PlannerError, ValueError):
    """A drawn zone was rejected before a Zone was constructed."""
    pass


class PlacementRejectedError(PlannerError, ValueError):
    """A manual sprinkler position falls inside an avoidance region."""
    pass


class ProjectStateError(PlannerError, ValueError):
    """The requested operation conflicts with the current project state."""
    pass


class NotFoundError(PlannerError, LookupError):
    """A referenced zone, sprinkler or pipe does not exist."""
    pass
