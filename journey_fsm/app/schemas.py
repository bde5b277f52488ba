"""
App Layer - Controller Types

Value types and callable signatures shared by the controller, the actions
DSL and the journey id add-on.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from fastapi import Request
from fastapi.responses import Response

from ..model.breadcrumbs import StateAndBreadcrumbs

User = TypeVar("User")


@dataclass(frozen=True)
class Endpoint:
    """Where a state is shown: HTTP method and path."""
    method: str
    path: str

    @property
    def url(self) -> str:
        return self.path


@dataclass
class FailedForm:
    """
    A submitted form that did not bind.
    Handed to render_state so the raw fields can be shown again.
    """
    data: Dict[str, str]
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def error_for(self, name: str) -> Optional[str]:
        """First error message reported for the field `name`, if any."""
        for error in self.errors:
            if tuple(error.get("loc", ()))[:1] == (name,):
                return error.get("msg")
        return None


@dataclass
class JourneyContext:
    """
    Default request context: the journey id (if any) and the headers to
    propagate to upstream services called from transitions.
    """
    journey_id: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


# A Route turns the request into the final response
Route = Callable[[Request], Response]

# A RouteFactory decides how a state is answered: displayed or redirected to
RouteFactory = Callable[[StateAndBreadcrumbs], Route]

# What FastAPI calls: `router.add_api_route(path, action, methods=[...])`
Action = Callable[[Request], Awaitable[Response]]

# Authorization resolver: either calls the continuation with the resolved user,
# or answers the request itself (redirect to sign-in, 403, ...)
WithAuthorised = Callable[[Request, Callable[[User], Awaitable[Response]]], Awaitable[Response]]
