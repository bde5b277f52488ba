"""
Form binding.

Binds the fields of a submitted form to a pydantic model, the payload handed
to form-driven transitions. Validation failures are not errors here: they
come back as a FailedForm for the current state to be shown again.
"""

import logging
from typing import Generic, Type, TypeVar, Union

from fastapi import Request
from pydantic import BaseModel, ValidationError

from .schemas import FailedForm

logger = logging.getLogger(__name__)

Payload = TypeVar("Payload", bound=BaseModel)


class FormBinding(Generic[Payload]):
    def __init__(self, schema: Type[Payload]):
        self.schema = schema

    async def bind(self, request: Request) -> Union[Payload, FailedForm]:
        form = await request.form()

        # Uploaded files are not part of the journey payload
        data = {key: value for key, value in form.items() if isinstance(value, str)}

        try:
            return self.schema.model_validate(data)
        except ValidationError as e:
            logger.warning(f"{self.schema.__name__} did not bind: {e.error_count()} error(s)")
            return FailedForm(data=data, errors=e.errors(include_url=False, include_context=False))
