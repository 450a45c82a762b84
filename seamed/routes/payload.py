"""Request bodies that are only read once the caller is authenticated.

FastAPI decodes and validates declared body parameters before it solves any
dependency, so a bad body would be reported ahead of a missing credential.
Routes instead depend on :func:`json_body`, which itself depends on the
authenticated context.
"""

from typing import Any, Callable, Dict, Iterable, Type, TypeVar

import pydantic
from fastapi import Request

from ..auth import CurrentContext
from ..exceptions import ValidationError

M = TypeVar('M', bound=pydantic.BaseModel)

_LOCATIONS = ('body', 'query', 'path', 'header')


def first_invalid_field(errors: Iterable[Dict[str, Any]]) -> ValidationError:
    """Reduce pydantic validation errors to their first offending field.

    A body that is not JSON at all is reported against ``body``.
    """
    for error in errors:
        if error.get('type') == 'json_invalid':
            return ValidationError('body')
        loc = [str(part) for part in error.get('loc', ())
               if part not in _LOCATIONS]
        if loc:
            return ValidationError('.'.join(loc))
    return ValidationError('body')


def json_body(model: Type[M]) -> Callable:
    """Dependency parsing the JSON request body as ``model``."""

    async def parse(request: Request, ctx: CurrentContext) -> M:
        try:
            data = await request.json()
        except ValueError as e:
            raise ValidationError('body') from e
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise first_invalid_field(e.errors()) from e

    return parse
