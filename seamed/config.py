"""Configuration for the SeaMed inventory API.

Values are read from the environment. :func:`get_settings` loads them once
per process; tests and embedding code build :class:`Settings` directly.
"""

import os
from enum import Enum
from functools import lru_cache
from typing import List, Mapping, Optional

from pydantic import BaseModel, field_validator

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = 'sqlite:///./seamed.db'
DEFAULT_AUDIENCE = 'api://default'

TRUE_VALUES = ('1', 'true', 'yes', 'on')


class Environment(str, Enum):
    """Deployment target. Only ``DEVELOPMENT`` may carry the auth bypass."""

    PRODUCTION = 'production'
    STAGING = 'staging'
    DEVELOPMENT = 'development'
    TEST = 'test'


class Settings(BaseModel):
    """Application settings."""

    app_env: Environment = Environment.PRODUCTION
    """Deployment target, from ``APP_ENV``. Defaults to production."""

    mock_auth: bool = False
    """Request the development bypass, from ``MOCK_AUTH``."""

    okta_issuer: str = ''
    """Issuer URL of the identity provider authorization server."""

    okta_client_id: str = ''
    """When set, access tokens must carry a matching ``cid`` claim."""

    okta_audience: str = DEFAULT_AUDIENCE

    okta_jwks_uri: str = ''
    """Signing key set location. Derived from the issuer when empty."""

    api_base_url: str = ''

    database_url: str = DEFAULT_DATABASE_URL
    db_echo: bool = False
    auto_create_tables: bool = True

    cors_origins: List[str] = ['*']
    request_timeout: float = 30.0
    log_level: str = 'INFO'

    @field_validator('app_env', mode='before')
    @classmethod
    def parse_env(cls, value):
        if isinstance(value, str):
            try:
                return Environment(value.strip().lower())
            except ValueError as e:
                raise ConfigurationError(f'Unknown APP_ENV: {value!r}') from e
        return value

    @field_validator('cors_origins', mode='before')
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(',')
                    if origin.strip()]
        return value

    @property
    def jwks_uri(self) -> str:
        """Location of the issuer's signing keys."""
        if self.okta_jwks_uri:
            return self.okta_jwks_uri
        return f"{self.okta_issuer.rstrip('/')}/v1/keys"

    @property
    def dev_bypass_allowed(self) -> bool:
        """True only for an explicitly flagged development deployment."""
        return self.mock_auth and self.app_env is Environment.DEVELOPMENT

    def check(self) -> None:
        """Fail startup on configurations that must never be served.

        Raises
        ------
        :class:`.ConfigurationError`
            If the development bypass is requested outside development, or
            the request timeout is not positive.

        """
        if self.mock_auth and self.app_env is not Environment.DEVELOPMENT:
            raise ConfigurationError(
                'MOCK_AUTH may only be enabled when APP_ENV=development '
                f'(APP_ENV={self.app_env.value})'
            )
        if self.request_timeout <= 0:
            raise ConfigurationError('REQUEST_TIMEOUT must be positive')

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None
                     ) -> 'Settings':
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        return cls(
            app_env=env.get('APP_ENV', Environment.PRODUCTION.value),
            mock_auth=_flag(env.get('MOCK_AUTH')),
            okta_issuer=env.get('OKTA_ISSUER', ''),
            okta_client_id=env.get('OKTA_CLIENT_ID', ''),
            okta_audience=env.get('OKTA_AUDIENCE', DEFAULT_AUDIENCE),
            okta_jwks_uri=env.get('OKTA_JWKS_URI', ''),
            api_base_url=env.get('API_BASE_URL', ''),
            database_url=env.get('DATABASE_URL', DEFAULT_DATABASE_URL),
            db_echo=_flag(env.get('DB_ECHO')),
            auto_create_tables=_flag(env.get('AUTO_CREATE_TABLES', 'true')),
            cors_origins=env.get('CORS_ORIGINS', '*'),
            request_timeout=float(env.get('REQUEST_TIMEOUT', '30')),
            log_level=env.get('LOG_LEVEL', 'INFO').upper(),
        )


def _flag(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in TRUE_VALUES


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, loaded from the environment once."""
    return Settings.from_environ()
