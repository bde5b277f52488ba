"""
Journey Id Support.

Scopes journeys to a browser session. The journey id lives in the Starlette
session (SessionMiddleware must be installed) under the configured journey
key. Requests arriving without an id are redirected to themselves with a
fresh id, so no state is ever rendered for an anonymous journey.
"""

import logging
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse, Response

from ..config import settings
from ..model.breadcrumbs import StateAndBreadcrumbs
from ..services.exceptions import JourneyIdMissing
from .schemas import Route, RouteFactory

if TYPE_CHECKING:
    from .controller import JourneyController

logger = logging.getLogger(__name__)


class JourneyIdSupport:
    def __init__(
        self,
        journey_key: str = settings.JOURNEY_KEY,
        redirect_status_code: int = settings.REDIRECT_STATUS_CODE,
    ):
        self.journey_key = journey_key
        self.redirect_status_code = redirect_status_code

    def journey_id(self, request: Request) -> Optional[str]:
        return request.session.get(self.journey_key)

    def journey_id_headers(self, headers: Dict[str, str], request: Request) -> Dict[str, str]:
        """Headers for upstream calls, extended with the journey id when known."""
        journey_id = self.journey_id(request)
        if journey_id is None:
            return dict(headers)
        return {**headers, self.journey_key: journey_id}

    def append_journey_id(self, response: Response, request: Request) -> Response:
        """
        Makes sure the session carries a journey id.
        The session cookie is written when `response` is sent.
        """
        if self.journey_id(request) is None:
            journey_id = str(uuid.uuid4())
            logger.info(f"Starting journey {journey_id}")
            request.session[self.journey_key] = journey_id
        return response

    async def with_journey_id(
        self,
        request: Request,
        body: Callable[[], Awaitable[Response]],
    ) -> Response:
        """Runs `body` if the journey id is established, otherwise redirects to self to establish it."""
        if self.journey_id(request) is None:
            target = request.url.path
            if request.url.query:
                target = f"{target}?{request.url.query}"
            return self.append_journey_id(
                RedirectResponse(target, status_code=self.redirect_status_code), request
            )
        return await body()

    def display_or_redirect_with_journey_id(self, controller: "JourneyController") -> RouteFactory:
        """Route factory rendering the state, or redirecting to it to establish a journey id first."""

        def factory(state_and_breadcrumbs: StateAndBreadcrumbs) -> Route:
            def route(request: Request) -> Response:
                if self.journey_id(request) is None:
                    return self.append_journey_id(
                        controller.redirect(state_and_breadcrumbs)(request), request
                    )
                return controller.display(state_and_breadcrumbs)(request)

            return route

        return factory


def journey_key_resolver(journey_key: str = settings.JOURNEY_KEY) -> Callable[[Any], str]:
    """
    Key resolver for a JourneyService scoping persistence by journey id.
    The request context must expose a `journey_id` attribute (see JourneyContext).
    """

    def resolve(context: Any) -> str:
        journey_id = getattr(context, "journey_id", None)
        if not journey_id:
            raise JourneyIdMissing(f"No journey id in {type(context).__name__}")
        return f"{journey_key}:{journey_id}"

    return resolve
