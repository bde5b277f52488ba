"""
Journey FSM

Drives multi-step, form-based web journeys as explicit finite state machines:
states and partial transitions, a service owning the current state and its
breadcrumbs, and a FastAPI controller layer mapping requests to transitions.
"""

from journey_fsm.model import (
    JourneyCodec,
    JourneyModel,
    JourneyState,
    StateAndBreadcrumbs,
    Transition,
    goto,
)
from journey_fsm.services.journey import JourneyService
from journey_fsm.services.exceptions import JourneyIdMissing, TransitionNotAllowed
from journey_fsm.app.controller import JourneyController
from journey_fsm.app.forms import FormBinding
from journey_fsm.app.journey_id import JourneyIdSupport, journey_key_resolver
from journey_fsm.app.schemas import Endpoint, FailedForm, JourneyContext

__all__ = [
    # Model Layer
    "JourneyCodec",
    "JourneyModel",
    "JourneyState",
    "StateAndBreadcrumbs",
    "Transition",
    "goto",
    # Service Layer
    "JourneyService",
    "JourneyIdMissing",
    "TransitionNotAllowed",
    # App Layer
    "JourneyController",
    "FormBinding",
    "JourneyIdSupport",
    "journey_key_resolver",
    "Endpoint",
    "FailedForm",
    "JourneyContext",
]
