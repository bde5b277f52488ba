"""
Model Layer - Persistence Codec

Turns a StateAndBreadcrumbs pair into a JSON-compatible document and back,
using a pydantic TypeAdapter over the journey's state union.
"""

from typing import Any, Dict, List

from pydantic import TypeAdapter

from .breadcrumbs import StateAndBreadcrumbs
from .journey import JourneyModel, JourneyState


class JourneyCodec:
    def __init__(self, model: JourneyModel):
        if model.state_type is None or model.state_type is JourneyState:
            raise ValueError(
                f"{type(model).__name__} must declare state_type, the union of its states, to be persisted."
            )
        self.model = model
        self._states = TypeAdapter(List[model.state_type])

    def encode(self, state_and_breadcrumbs: StateAndBreadcrumbs) -> Dict[str, Any]:
        states = [state_and_breadcrumbs.state, *state_and_breadcrumbs.breadcrumbs]
        return {"states": self._states.dump_python(states, mode="json")}

    def decode(self, document: Dict[str, Any]) -> StateAndBreadcrumbs:
        # Raises pydantic.ValidationError when the document no longer fits the model
        states = self._states.validate_python(document["states"])
        if not states:
            raise ValueError("Persisted journey holds no state.")
        return StateAndBreadcrumbs(state=states[0], breadcrumbs=tuple(states[1:]))
