"""Self-asserted identities for local development.

With the bypass active, a request carrying ``Authorization: Bearer dev-token``
together with ``x-dev-user-id: <subject>`` is accepted as ``<subject>``
without any cryptographic check. That is a full account takeover anywhere but
on a developer's machine, so a :class:`DevBypass` can only be built for a
development deployment with ``MOCK_AUTH`` set, and the application factory only
hands one to the gateway in that case. Everywhere else the sentinel token is
just another token that fails verification.
"""

from logging import getLogger
from typing import Mapping, Optional

from ..config import Settings
from ..domain import Identity
from ..exceptions import ConfigurationError

log = getLogger(__name__)

DEV_TOKEN = 'dev-token'
DEV_USER_HEADER = 'x-dev-user-id'


class DevBypass:
    """Accepts the development sentinel token and a subject header."""

    def __init__(self, settings: Settings) -> None:
        if not settings.dev_bypass_allowed:
            raise ConfigurationError(
                'The development auth bypass requires APP_ENV=development '
                'and MOCK_AUTH=true'
            )
        log.warning('Enabling development auth bypass in %s', __name__)

    def assert_identity(self, token: str, headers: Mapping[str, str]
                        ) -> Optional[Identity]:
        """The asserted identity, or None to fall through to verification.

        Both the sentinel token and a non-empty subject header must be present.
        """
        if token != DEV_TOKEN:
            return None
        subject_id = (headers.get(DEV_USER_HEADER) or '').strip()
        if not subject_id:
            log.debug('Dev token without %s header', DEV_USER_HEADER)
            return None
        log.debug('Dev bypass asserted subject %s', subject_id)
        return Identity(subject_id=subject_id, via='dev-bypass')
