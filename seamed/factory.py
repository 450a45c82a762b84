"""Application factory for the SeaMed inventory API."""

from logging import getLogger
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import sessionmaker

from . import routes
from .app_logging import setup_logger
from .auth import AuthGateway, DevBypass, ProvisioningCache, TokenVerifier, \
    UserProvisioner
from .config import Settings, get_settings
from .db import create_tables, make_engine, make_session_factory
from .exceptions import AuthorizationDenied, InvalidCredential, \
    MissingCredential, ProvisioningError, RequestTimeout, StorageError, \
    ValidationError
from .middleware import RequestTimeoutMiddleware, SecurityHeadersMiddleware
from .routes.payload import first_invalid_field

log = getLogger(__name__)

BEARER_CHALLENGE = {'WWW-Authenticate': 'Bearer'}


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    headers = extra.pop('headers', None)
    return JSONResponse({'error': message, **extra}, status_code=status_code,
                        headers=headers)


async def missing_credential(request: Request, exc: MissingCredential):
    return _error(401, 'No token provided', headers=BEARER_CHALLENGE)


async def invalid_credential(request: Request, exc: InvalidCredential):
    return _error(401, 'Invalid token', headers=BEARER_CHALLENGE)


async def provisioning_failed(request: Request, exc: ProvisioningError):
    log.error('Rejecting request for %s: %s', exc.subject_id,
              exc.original_error)
    return _error(500, 'Failed to provision user')


async def authorization_denied(request: Request, exc: AuthorizationDenied):
    return _error(403, 'Not authorized')


async def invalid_payload(request: Request, exc: ValidationError):
    return _error(422, str(exc), field=exc.field)


async def invalid_request(request: Request, exc: RequestValidationError):
    return await invalid_payload(request, first_invalid_field(exc.errors()))


async def storage_failed(request: Request, exc: StorageError):
    return _error(500, str(exc))


async def request_timed_out(request: Request, exc: RequestTimeout):
    return _error(504, 'Request timed out')


def create_app(settings: Optional[Settings] = None, *,
               verifier: Optional[TokenVerifier] = None,
               session_factory: Optional[sessionmaker] = None,
               cache: Optional[ProvisioningCache] = None) -> FastAPI:
    """Initialize an instance of the inventory API.

    Collaborators may be passed in (tests do); otherwise they are built from
    ``settings``, which default to the process environment.

    Raises
    ------
    :class:`.ConfigurationError`
        If the settings must not be served, e.g. ``MOCK_AUTH`` outside
        development, or no issuer is configured for token verification.

    """
    settings = settings or get_settings()
    settings.check()
    setup_logger(settings.log_level)
    log.info('APP_ENV: %s', settings.app_env.value)

    if session_factory is None:
        engine = make_engine(settings.database_url, echo=settings.db_echo)
        if settings.auto_create_tables:
            create_tables(engine)
        session_factory = make_session_factory(engine)

    if verifier is None:
        verifier = TokenVerifier.from_settings(settings)
        log.info('OKTA_ISSUER: %s', settings.okta_issuer)

    bypass = None
    if settings.dev_bypass_allowed:
        bypass = DevBypass(settings)

    cache = cache if cache is not None else ProvisioningCache()
    gateway = AuthGateway(verifier, UserProvisioner(session_factory, cache),
                          bypass=bypass)

    servers = [{'url': settings.api_base_url}] if settings.api_base_url \
        else None
    app = FastAPI(title='SeaMed Tracker API', version='0.1.0',
                  servers=servers)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.provisioning_cache = cache
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTimeoutMiddleware,
                       timeout=settings.request_timeout)

    app.add_exception_handler(MissingCredential, missing_credential)
    app.add_exception_handler(InvalidCredential, invalid_credential)
    app.add_exception_handler(ProvisioningError, provisioning_failed)
    app.add_exception_handler(AuthorizationDenied, authorization_denied)
    app.add_exception_handler(ValidationError, invalid_payload)
    app.add_exception_handler(RequestValidationError, invalid_request)
    app.add_exception_handler(StorageError, storage_failed)
    app.add_exception_handler(RequestTimeout, request_timed_out)

    for router in routes.ROUTERS:
        app.include_router(router)

    @app.get('/health', response_class=PlainTextResponse)
    def health() -> str:
        return 'Server is running'

    return app
