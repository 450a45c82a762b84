from logging import getLogger
from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .tables import Base

log = getLogger(__name__)


def make_engine(database_url: str, echo: bool = False) -> Engine:
    if 'sqlite' in database_url:
        args = {"check_same_thread": False}
    else:
        args = {}
    return create_engine(database_url, echo=echo, connect_args=args,
                         pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine,
                        expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency for fastapi routes.

    Handlers commit their own work; anything left uncommitted when the
    request fails is rolled back. Once the request has timed out, commits
    on the session are refused.
    """
    db = request.app.state.session_factory()
    deadline = getattr(request.state, 'deadline', None)
    if deadline is not None:
        event.listen(db, 'before_commit', deadline.before_commit)
    try:
        yield db
    except Exception:
        log.debug('Request failed, rolling back')
        db.rollback()
        raise
    finally:
        db.close()


Database = Annotated[Session, Depends(get_db)]
