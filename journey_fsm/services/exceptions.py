"""
Service Layer Exceptions

Custom exceptions for the JourneyService and the controllers calling it.
"""


class TransitionNotAllowed(Exception):
    """
    Raised when a transition is not defined for the current state.

    Nothing has been persisted when this is raised. Controllers catch it and
    show the origin state again instead of reporting an error.
    """

    def __init__(self, origin, breadcrumbs, transition):
        self.origin = origin
        self.breadcrumbs = breadcrumbs
        self.transition = transition
        super().__init__(
            f"{transition!r} is not allowed from {type(origin).__name__}"
        )


class JourneyIdMissing(Exception):
    """Raised when a journey scoped per browser session is accessed without an id."""
    pass
