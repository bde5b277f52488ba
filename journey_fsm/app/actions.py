"""
Actions DSL.

Builds FastAPI endpoints out of the controller's request handling recipes:

    actions = controller.actions
    router.add_api_route("/continue", actions.show(Continue), methods=["GET"])
    router.add_api_route("/stop", actions.when_authorised(as_user).apply(stop), methods=["POST"])
    router.add_api_route(
        "/continue",
        actions.when_authorised(as_user).bind_form(ArgForm).apply(continue_),
        methods=["POST"],
    )
"""

from typing import TYPE_CHECKING, Any, Callable

from ..model.journey import StatePattern, Transition
from .forms import FormBinding
from .schemas import Action, WithAuthorised

if TYPE_CHECKING:
    from .controller import JourneyController


class JourneyActions:
    def __init__(self, controller: "JourneyController"):
        self.controller = controller

    def show(self, expected: StatePattern) -> Action:
        """
        Displays the current state if it matches `expected`, otherwise rewinds
        history to the nearest matching state, or to the root state.
        """
        controller = self.controller
        return controller.action(
            lambda request, context: controller.show_state(expected, context, request)
        )

    def apply(self, transition: Transition) -> Action:
        """Applies the transition and redirects to the endpoint of the new state."""
        controller = self.controller
        return controller.action(
            lambda request, context: controller.apply_transition(
                transition, controller.redirect, context, request
            )
        )

    def show_or_apply(self, expected: StatePattern, transition: Transition) -> Action:
        """
        Displays the current state if it matches `expected`, otherwise applies
        the transition and redirects to the new state. If the transition is not
        allowed, redirects back to the current state.
        """
        controller = self.controller
        return controller.action(
            lambda request, context: controller.show_state_or_apply(
                expected, transition, context, request
            )
        )

    def bind_form(self, form: FormBinding) -> "BindForm":
        """
        Binds the submitted form. If valid, applies the following transition,
        if not, shows the current state again with the failed form.
        """
        return BindForm(self.controller, form)

    def when_authorised(self, with_authorised: WithAuthorised) -> "WhenAuthorised":
        """Progresses only if authorization succeeds, passing the user on."""
        return WhenAuthorised(self.controller, with_authorised)


class BindForm:
    def __init__(self, controller: "JourneyController", form: FormBinding):
        self.controller = controller
        self.form = form

    def apply(self, transition: Callable[[Any], Transition]) -> Action:
        """Applies the transition parametrized by the form payload and redirects."""
        controller = self.controller
        return controller.action(
            lambda request, context: controller.bind_form(self.form, transition, context, request)
        )


class WhenAuthorised:
    def __init__(self, controller: "JourneyController", with_authorised: WithAuthorised):
        self.controller = controller
        self.with_authorised = with_authorised

    def show(self, expected: StatePattern) -> Action:
        """Shows or rewinds to `expected` once the user is authorised."""
        controller = self.controller
        return controller.action(
            lambda request, context: controller.show_state_when_authorised(
                self.with_authorised, expected, context, request
            )
        )

    def apply(self, transition: Callable[[Any], Transition]) -> Action:
        """Applies the transition parametrized by the user and redirects."""
        controller = self.controller
        return controller.action(
            lambda request, context: controller.when_authorised(
                self.with_authorised, transition, controller.redirect, context, request
            )
        )

    def show_or_apply(self, expected: StatePattern, transition: Callable[[Any], Transition]) -> Action:
        """
        Displays the current state if it matches `expected`, otherwise applies
        the transition parametrized by the authorised user and redirects.
        """
        controller = self.controller

        async def body(request, context):
            async def authorised(user):
                return await controller.show_state_or_apply(
                    expected, transition(user), context, request
                )

            return await self.with_authorised(request, authorised)

        return controller.action(body)

    def bind_form(self, form: FormBinding) -> "AuthorisedBindForm":
        """Binds the submitted form; the transition then receives the user and the payload."""
        return AuthorisedBindForm(self.controller, self.with_authorised, form)


class AuthorisedBindForm:
    def __init__(self, controller: "JourneyController", with_authorised: WithAuthorised, form: FormBinding):
        self.controller = controller
        self.with_authorised = with_authorised
        self.form = form

    def apply(self, transition: Callable[[Any, Any], Transition]) -> Action:
        """Applies the transition parametrized by the user and the form payload."""
        controller = self.controller
        return controller.action(
            lambda request, context: controller.when_authorised_with_form(
                self.with_authorised, self.form, transition, context, request
            )
        )
