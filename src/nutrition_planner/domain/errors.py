"""Domain error types raised by the planner services."""


class PlannerError(Exception):
    """Base class for planner failures surfaced to callers."""


class NotFoundError(PlannerError):
    """Raised when a plan, day entry, meal slot or list row is missing."""


class ValidationError(PlannerError):
    """Raised when a request is malformed before any state is touched."""


class GenerationError(PlannerError):
    """Raised when the meal generation collaborator fails."""
