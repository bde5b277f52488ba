"""
A three-state journey used across the tests:

    Start --continue(arg)--> Continue(arg) --continue(arg)--> Continue("a,b")
      |                          |
      +------stop-----> Stop <---+

Stop is final: neither continue nor stop is defined there.
"""

from typing import Annotated, Dict, Literal, Optional, Tuple, Union

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field
from starlette.middleware.sessions import SessionMiddleware

from journey_fsm.app.controller import JourneyController
from journey_fsm.app.forms import FormBinding
from journey_fsm.app.schemas import Endpoint, FailedForm, JourneyContext
from journey_fsm.model.breadcrumbs import StateAndBreadcrumbs
from journey_fsm.model.journey import JourneyModel, JourneyState, Transition, goto
from journey_fsm.repositories.journey import InMemoryJourneyRepository


class Start(JourneyState):
    kind: Literal["start"] = "start"


class Continue(JourneyState):
    kind: Literal["continue"] = "continue"
    arg: str


class Stop(JourneyState):
    kind: Literal["stop"] = "stop"
    result: str


DummyState = Annotated[Union[Start, Continue, Stop], Field(discriminator="kind")]


class DummyJourneyModel(JourneyModel):
    state_type = DummyState

    @property
    def root(self) -> Start:
        return Start()


class ArgForm(BaseModel):
    arg: str


def continue_(user: int, form: ArgForm) -> Transition:
    return Transition("continue", {
        Start: lambda _: Continue(arg=form.arg),
        Continue: lambda state: Continue(arg=f"{state.arg},{form.arg}"),
    })


def stop(user: int) -> Transition:
    return Transition("stop", {
        Start: goto(Stop(result="")),
        Continue: lambda state: Stop(result=state.arg),
    })


async def as_user(request: Request, body):
    return await body(5)


async def deny(request: Request, body):
    return PlainTextResponse("Forbidden", status_code=403)


class DummyJourneyRepository(InMemoryJourneyRepository):
    """In-memory store with synchronous accessors for test setup and assertions."""

    def set(self, journey_key: str, state, breadcrumbs=()):
        self._store[journey_key] = StateAndBreadcrumbs(state=state, breadcrumbs=tuple(breadcrumbs))

    def get(self, journey_key: str) -> Optional[Tuple]:
        state_and_breadcrumbs = self._store.get(journey_key)
        if state_and_breadcrumbs is None:
            return None
        return state_and_breadcrumbs.state, list(state_and_breadcrumbs.breadcrumbs)

    def keys(self):
        return list(self._store)

    def clear(self):
        self._store.clear()


class DummyJourneyController(JourneyController[JourneyContext]):

    def endpoint_for(self, state, request: Request) -> Endpoint:
        if isinstance(state, Start):
            return Endpoint("GET", "/start")
        if isinstance(state, Continue):
            return Endpoint("GET", "/continue")
        return Endpoint("GET", "/stop")

    def render_state(self, state, breadcrumbs, failed_form: Optional[FailedForm], request: Request) -> Response:
        if isinstance(state, Start):
            back = self.back_link_for(breadcrumbs, request).url
            return HTMLResponse(f'Start | <a href="{back}">back</a>')
        if isinstance(state, Continue):
            data: Dict[str, str] = failed_form.data if failed_form else {}
            return PlainTextResponse(f"Continue with {state.arg} and form {data}")
        return PlainTextResponse(f"Result is {state.result}")

    def context(self, request: Request) -> JourneyContext:
        if self.journey_id_support is None:
            return JourneyContext()
        return JourneyContext(
            journey_id=self.journey_id_support.journey_id(request),
            headers=self.journey_id_support.journey_id_headers({}, request),
        )


def create_app(controller: DummyJourneyController) -> FastAPI:
    app = FastAPI(title="Dummy Journey")
    actions = controller.actions
    arg_form = FormBinding(ArgForm)

    async def start(request: Request, context: JourneyContext) -> Response:
        await controller.journey_service.clean_breadcrumbs(context)
        return await controller.apply_transition(
            controller.journey_service.model.start, controller.display, context, request
        )

    async def restart(request: Request, context: JourneyContext) -> Response:
        await controller.journey_service.clear(context)
        return await controller.apply_start(context, request)

    async def bootstrap_and_continue(request: Request, context: JourneyContext) -> Response:
        return await controller.when_authorised_with_bootstrap_and_form(
            controller.journey_service.model.start, as_user, arg_form, continue_, context, request
        )

    app.add_api_route("/start", controller.action(start), methods=["POST"])
    app.add_api_route("/start", actions.show(Start), methods=["GET"])
    app.add_api_route("/restart", controller.action(restart), methods=["POST"])
    app.add_api_route(
        "/continue",
        actions.when_authorised(as_user).bind_form(arg_form).apply(continue_),
        methods=["POST"],
    )
    app.add_api_route("/continue", actions.when_authorised(as_user).show(Continue), methods=["GET"])
    app.add_api_route("/continue-from-start", controller.action(bootstrap_and_continue), methods=["POST"])
    app.add_api_route(
        "/continue-anonymously",
        actions.bind_form(arg_form).apply(lambda form: continue_(0, form)),
        methods=["POST"],
    )
    app.add_api_route("/stop", actions.when_authorised(as_user).apply(stop), methods=["POST"])
    app.add_api_route("/stop", actions.when_authorised(as_user).show(Stop), methods=["GET"])
    app.add_api_route("/stop-now", actions.apply(stop(0)), methods=["POST"])
    app.add_api_route("/result", actions.show_or_apply(Stop, stop(0)), methods=["GET"])
    app.add_api_route("/result-as-user", actions.when_authorised(as_user).show_or_apply(Stop, stop), methods=["GET"])
    app.add_api_route("/forbidden-stop", actions.when_authorised(deny).apply(stop), methods=["POST"])

    if controller.journey_id_support is not None:
        app.add_middleware(SessionMiddleware, secret_key="dummy-journey-secret")

    return app

