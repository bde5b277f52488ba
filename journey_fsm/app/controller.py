"""
Journey Controller - Request Handling Layer

The JourneyController binds HTTP requests to a JourneyService. A concrete
controller tells it three things:
1. endpoint_for: which endpoint shows a given state (redirects, back links)
2. render_state: how a state is rendered, possibly with a failed form
3. context: the request context carried to the service layer

Everything else is generic. Illegal transitions and unbound forms never
surface as errors: the user is shown the state the journey is actually in.
Actions are built with the DSL exposed as `controller.actions`.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from fastapi import Request, status
from fastapi.responses import RedirectResponse, Response

from ..config import settings
from ..model.breadcrumbs import Breadcrumbs, StateAndBreadcrumbs
from ..model.journey import StatePattern, Transition, matches
from ..services.exceptions import TransitionNotAllowed
from ..services.journey import JourneyService
from .actions import JourneyActions
from .forms import FormBinding
from .journey_id import JourneyIdSupport
from .schemas import Action, Endpoint, FailedForm, Route, RouteFactory, WithAuthorised

logger = logging.getLogger(__name__)

RequestContext = TypeVar("RequestContext")


class JourneyController(ABC, Generic[RequestContext]):
    def __init__(
        self,
        journey_service: JourneyService[RequestContext],
        journey_id_support: Optional[JourneyIdSupport] = None,
        redirect_status_code: int = settings.REDIRECT_STATUS_CODE,
    ):
        self.journey_service = journey_service
        self.journey_id_support = journey_id_support
        self.redirect_status_code = redirect_status_code
        self.actions = JourneyActions(self)

    # ==========================================================================
    # Extension Points
    # ==========================================================================

    @abstractmethod
    def endpoint_for(self, state: Any, request: Request) -> Endpoint:
        """Maps a state to the endpoint showing it."""
        pass

    @abstractmethod
    def render_state(
        self,
        state: Any,
        breadcrumbs: Breadcrumbs,
        failed_form: Optional[FailedForm],
        request: Request,
    ) -> Response:
        """Renders a state, after a transition or when a form did not bind."""
        pass

    @abstractmethod
    def context(self, request: Request) -> RequestContext:
        """Builds the request context passed down to the service layer."""
        pass

    async def with_valid_request(
        self,
        body: Callable[[], Awaitable[Response]],
        context: RequestContext,
        request: Request,
    ) -> Response:
        """Interceptor run around every action; override to reject bad requests early."""
        return await body()

    # ==========================================================================
    # Route Factories
    # ==========================================================================

    def display(self, state_and_breadcrumbs: StateAndBreadcrumbs) -> Route:
        """Renders the state in place."""
        return lambda request: self.render_state(
            state_and_breadcrumbs.state, state_and_breadcrumbs.breadcrumbs, None, request
        )

    def redirect(self, state_and_breadcrumbs: StateAndBreadcrumbs) -> Route:
        """
        Redirects to the endpoint of the state. GET endpoints get the
        configured status; any other method gets 307 so the browser keeps it.
        """

        def route(request: Request) -> Response:
            endpoint = self.endpoint_for(state_and_breadcrumbs.state, request)
            if endpoint.method.upper() == "GET":
                status_code = self.redirect_status_code
            else:
                status_code = status.HTTP_307_TEMPORARY_REDIRECT
            return RedirectResponse(endpoint.url, status_code=status_code)

        return route

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def action(self, body: Callable[[Request, RequestContext], Awaitable[Response]]) -> Action:
        """
        Wraps a request handler into an endpoint: builds the context, runs the
        interceptor and, when journeys are scoped per session, makes sure a
        journey id is established first.
        """

        async def handle(request: Request) -> Response:
            context = self.context(request)

            async def run() -> Response:
                return await self.with_valid_request(lambda: body(request, context), context, request)

            if self.journey_id_support is not None:
                return await self.journey_id_support.with_journey_id(request, run)
            return await run()

        return handle

    async def apply_transition(
        self,
        transition: Transition,
        route_factory: RouteFactory,
        context: RequestContext,
        request: Request,
    ) -> Response:
        """
        Applies the transition and answers with the new state.
        When the transition is not allowed the unchanged state is answered
        with the same route factory.
        """
        try:
            state_and_breadcrumbs = await self.journey_service.apply(transition, context)
        except TransitionNotAllowed as e:
            state_and_breadcrumbs = StateAndBreadcrumbs(state=e.origin, breadcrumbs=e.breadcrumbs)
        return route_factory(state_and_breadcrumbs)(request)

    async def apply_start(self, context: RequestContext, request: Request) -> Response:
        return await self.apply_transition(
            self.journey_service.model.start, self.redirect, context, request
        )

    def back_link_for(self, breadcrumbs: Breadcrumbs, request: Request) -> Endpoint:
        """Endpoint of the previous state, or of the root state without history."""
        if breadcrumbs:
            return self.endpoint_for(breadcrumbs[0], request)
        return self.endpoint_for(self.journey_service.model.root, request)

    def has_state(self, expected: StatePattern, state_and_breadcrumbs: StateAndBreadcrumbs) -> bool:
        """Whether the current state or any breadcrumb matches `expected`."""
        candidates = (state_and_breadcrumbs.state, *state_and_breadcrumbs.breadcrumbs)
        return any(matches(expected, state) for state in candidates)

    # ==========================================================================
    # Request Handling Recipes
    # ==========================================================================

    async def show_state(self, expected: StatePattern, context: RequestContext, request: Request) -> Response:
        """
        Renders the current state if it matches `expected`, otherwise rewinds
        history to the nearest matching state, falling back to root.
        """
        return await self.rewind_to(expected, context, request)

    async def rewind_to(self, expected: StatePattern, context: RequestContext, request: Request) -> Response:
        """
        Steps back through the breadcrumbs until a state matches `expected`.

        Every step back is persisted. Breadcrumbs shrink on each step, so the
        loop runs at most len(breadcrumbs) + 1 times; when history runs out
        the root transition is applied and the user redirected.
        """
        state_and_breadcrumbs = await self.journey_service.current_state(context)

        while state_and_breadcrumbs is not None:
            if matches(expected, state_and_breadcrumbs.state):
                return self.display(state_and_breadcrumbs)(request)
            state_and_breadcrumbs = await self.journey_service.step_back(context)

        logger.debug("No state to rewind to, applying the root transition")
        return await self.apply_start(context, request)

    async def show_state_or_apply(
        self,
        expected: StatePattern,
        transition: Transition,
        context: RequestContext,
        request: Request,
    ) -> Response:
        """Renders the current state if it matches `expected`, otherwise applies the transition."""
        state_and_breadcrumbs = await self.journey_service.current_state(context)

        if state_and_breadcrumbs is None:
            return await self.apply_start(context, request)

        if matches(expected, state_and_breadcrumbs.state):
            return self.display(state_and_breadcrumbs)(request)

        return await self.apply_transition(transition, self.redirect, context, request)

    async def bind_form(
        self,
        form: FormBinding,
        transition: Callable[[Any], Transition],
        context: RequestContext,
        request: Request,
    ) -> Response:
        """
        Binds the form and applies the transition built from the payload.
        If the form does not bind, renders the current state with the failed form.
        """
        bound = await form.bind(request)

        if isinstance(bound, FailedForm):
            state_and_breadcrumbs = await self.journey_service.current_state(context)
            if state_and_breadcrumbs is None:
                return await self.apply_start(context, request)
            return self.render_state(
                state_and_breadcrumbs.state, state_and_breadcrumbs.breadcrumbs, bound, request
            )

        return await self.apply_transition(transition(bound), self.redirect, context, request)

    async def when_authorised(
        self,
        with_authorised: WithAuthorised,
        transition: Callable[[Any], Transition],
        route_factory: RouteFactory,
        context: RequestContext,
        request: Request,
    ) -> Response:
        """Applies a transition parametrized by the authorised user."""

        async def body(user: Any) -> Response:
            return await self.apply_transition(transition(user), route_factory, context, request)

        return await with_authorised(request, body)

    async def when_authorised_with_form(
        self,
        with_authorised: WithAuthorised,
        form: FormBinding,
        transition: Callable[[Any, Any], Transition],
        context: RequestContext,
        request: Request,
    ) -> Response:
        """Applies a transition parametrized by the authorised user and the form payload."""

        async def body(user: Any) -> Response:
            return await self.bind_form(
                form, lambda payload: transition(user, payload), context, request
            )

        return await with_authorised(request, body)

    async def when_authorised_with_bootstrap_and_form(
        self,
        bootstrap: Transition,
        with_authorised: WithAuthorised,
        form: FormBinding,
        transition: Callable[[Any, Any], Transition],
        context: RequestContext,
        request: Request,
    ) -> Response:
        """
        Applies the bootstrap transition first, then the transition
        parametrized by the authorised user and the form payload.
        A bootstrap that is not allowed does not stop the second step.
        """

        async def body(user: Any) -> Response:
            try:
                await self.journey_service.apply(bootstrap, context)
            except TransitionNotAllowed:
                logger.debug(f"Bootstrap {bootstrap!r} skipped")
            return await self.bind_form(
                form, lambda payload: transition(user, payload), context, request
            )

        return await with_authorised(request, body)

    async def show_state_when_authorised(
        self,
        with_authorised: WithAuthorised,
        expected: StatePattern,
        context: RequestContext,
        request: Request,
    ) -> Response:
        """Shows or rewinds to the expected state once the user is authorised."""

        async def body(_user: Any) -> Response:
            return await self.show_state(expected, context, request)

        return await with_authorised(request, body)
