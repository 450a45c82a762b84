"""Storage-facing operations used by the routes."""

from contextlib import contextmanager
from logging import getLogger
from typing import Generator

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import StorageError

log = getLogger(__name__)


@contextmanager
def storage_failure(message: str) -> Generator[None, None, None]:
    """Report database errors in the block as :class:`.StorageError`.

    ``message`` is what the client sees; the underlying error is only logged.
    """
    try:
        yield
    except SQLAlchemyError as e:
        log.error('%s: %s', message, e, exc_info=True)
        raise StorageError(message) from e
