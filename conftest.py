"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.

Tokens are signed with a throwaway RSA key and verified against a stub key
source, so no identity provider is contacted. Each test gets its own SQLite
database file.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

from seamed.auth import ProvisioningCache, TokenVerifier, UserProvisioner
from seamed.config import Settings
from seamed.db import create_tables, make_engine, make_session_factory
from seamed.factory import create_app

ISSUER = "https://seamed.okta.example/oauth2/default"
AUDIENCE = "api://default"
CLIENT_ID = "0oaseamedclient"


class StubKeySource:
    """Hands out the same public key for every token, like a one-key JWKS."""

    def __init__(self, public_key):
        self.public_key = public_key
        self.calls = 0

    def get_signing_key_from_jwt(self, token):
        self.calls += 1
        return SimpleNamespace(key=self.public_key)


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_token(signing_key):
    """Returns a function that signs an access token for ``sub``."""

    def _make_token(sub="00u-alice", key=None, expires_in=300, **claims):
        now = datetime.now(timezone.utc)
        payload = {
            "iss": ISSUER,
            "aud": AUDIENCE,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in),
            "cid": CLIENT_ID,
        }
        if sub is not None:
            payload["sub"] = sub
        payload.update(claims)
        return jwt.encode(payload, key or signing_key, algorithm="RS256")

    return _make_token


@pytest.fixture
def key_source(signing_key):
    return StubKeySource(signing_key.public_key())


@pytest.fixture
def verifier(key_source):
    return TokenVerifier(ISSUER, AUDIENCE, key_source, client_id=CLIENT_ID)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'pytest.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def cache():
    return ProvisioningCache()


@pytest.fixture
def provisioner(session_factory, cache):
    return UserProvisioner(session_factory, cache)


@pytest.fixture
def settings():
    return Settings(app_env="test", okta_issuer=ISSUER,
                    okta_client_id=CLIENT_ID)


@pytest.fixture
def app(settings, verifier, session_factory, cache):
    return create_app(settings, verifier=verifier,
                      session_factory=session_factory, cache=cache)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(make_token):
    """Returns a function giving request headers authenticated as ``sub``."""

    def _auth_headers(sub="00u-alice", **claims):
        return {"Authorization": "Bearer " + make_token(sub, **claims)}

    return _auth_headers
