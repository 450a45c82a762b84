"""Extraction and verification of bearer tokens.

Access tokens are JWTs issued by the identity provider and signed with one of
the keys it publishes at its JWKS endpoint. :class:`TokenVerifier` checks the
signature, issuer, audience, expiry and (optionally) client id, and reduces
every failure to :class:`.InvalidCredential` so that callers cannot tell why a
token was refused.
"""

from logging import getLogger
from typing import Optional, Protocol, Sequence

import jwt
from jwt import PyJWKClient

from ..config import Settings
from ..domain import Identity
from ..exceptions import ConfigurationError, InvalidCredential, \
    MissingCredential

log = getLogger(__name__)

DEFAULT_ALGORITHMS = ('RS256',)
REQUIRED_CLAIMS = ['exp', 'iss', 'sub']


def extract_bearer(authorization: Optional[str]) -> str:
    """Get the token from an ``Authorization: Bearer <token>`` header value.

    Raises
    ------
    :class:`.MissingCredential`
        If the header is absent or is not a two-part bearer credential.

    """
    if not authorization:
        log.debug('No Authorization header')
        raise MissingCredential('No token provided')

    parts = authorization.split()
    if not parts or parts[0].lower() != 'bearer':
        log.debug('Authorization header lacked bearer')
        raise MissingCredential('No token provided')
    if len(parts) != 2:
        log.debug('Authorization header was not 2 parts')
        raise MissingCredential('No token provided')
    return parts[1]


class SigningKeySource(Protocol):
    """What the verifier needs from a JWKS client."""

    def get_signing_key_from_jwt(self, token: str): ...


class TokenVerifier:
    """Verifies identity provider access tokens."""

    def __init__(self, issuer: str, audience: str,
                 jwks_client: SigningKeySource,
                 client_id: Optional[str] = None,
                 algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
                 leeway: int = 0) -> None:
        self.issuer = issuer
        self.audience = audience
        self.jwks_client = jwks_client
        self.client_id = client_id or None
        self.algorithms = list(algorithms)
        self.leeway = leeway

    @classmethod
    def from_settings(cls, settings: Settings) -> 'TokenVerifier':
        if not settings.okta_issuer:
            raise ConfigurationError('OKTA_ISSUER must be set')
        return cls(
            issuer=settings.okta_issuer,
            audience=settings.okta_audience,
            jwks_client=PyJWKClient(settings.jwks_uri, cache_keys=True),
            client_id=settings.okta_client_id,
        )

    def verify(self, token: str) -> Identity:
        """Verify ``token`` and return the identity it asserts.

        Fetching the signing keys may block on the network; the key set is
        cached by the JWKS client.
        """
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                leeway=self.leeway,
                options={'require': REQUIRED_CLAIMS},
            )
        except (jwt.PyJWTError, ValueError) as ex:
            log.debug('Token verification failed: %s', ex)
            raise InvalidCredential('Invalid token') from ex

        if self.client_id and claims.get('cid') != self.client_id:
            log.debug('Token verification failed: cid does not match')
            raise InvalidCredential('Invalid token')

        subject_id = claims.get('sub')
        if not isinstance(subject_id, str) or not subject_id.strip():
            log.debug('Token verification failed: empty subject')
            raise InvalidCredential('Invalid token')

        email = claims.get('email')
        return Identity(subject_id=subject_id,
                        email=email if isinstance(email, str) else None,
                        via='token')
