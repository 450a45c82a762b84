"""Request-level authentication for the inventory API.

Every protected route depends on :func:`require_context`, which runs the
application's :class:`AuthGateway`:

1. extract the bearer credential (:class:`.MissingCredential` if absent);
2. accept it through the development bypass, when one is installed, or
   verify it with the :class:`.TokenVerifier` (:class:`.InvalidCredential`);
3. provision the subject's user row on first sight
   (:class:`.ProvisioningError` if it cannot be established);
4. return the :class:`.RequestContext` that handlers receive.

The exceptions are turned into responses by the handlers installed in
:mod:`seamed.factory`, so a route body never runs without a resolved subject.
"""

from logging import getLogger
from typing import Annotated, Mapping, Optional

from fastapi import Depends, Request

from ..domain import Identity, RequestContext
from .bypass import DevBypass
from .provisioning import UserProvisioner
from .tokens import TokenVerifier, extract_bearer

log = getLogger(__name__)


class AuthGateway:
    """Authenticates a request and provisions its subject."""

    def __init__(self, verifier: TokenVerifier, provisioner: UserProvisioner,
                 bypass: Optional[DevBypass] = None) -> None:
        self.verifier = verifier
        self.provisioner = provisioner
        self.bypass = bypass

    def authenticate(self, headers: Mapping[str, str]) -> RequestContext:
        token = extract_bearer(headers.get('authorization'))
        identity = self._identify(token, headers)
        self.provisioner.ensure_provisioned(identity.subject_id, identity.email)
        return RequestContext(**identity.model_dump())

    def _identify(self, token: str, headers: Mapping[str, str]) -> Identity:
        if self.bypass is not None:
            asserted = self.bypass.assert_identity(token, headers)
            if asserted is not None:
                return asserted
        return self.verifier.verify(token)

    def __call__(self, request: Request) -> RequestContext:
        return self.authenticate(request.headers)


def require_context(request: Request) -> RequestContext:
    """Dependency: the authenticated caller of this request.

    Declared synchronous so that key fetches and provisioning writes run in
    the worker thread pool rather than on the event loop.
    """
    gateway: AuthGateway = request.app.state.gateway
    ctx = gateway(request)
    log.debug('Authenticated %s via %s', ctx.subject_id, ctx.via)
    return ctx


CurrentContext = Annotated[RequestContext, Depends(require_context)]
