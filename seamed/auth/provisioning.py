"""Just-in-time provisioning of local user records.

The first time a verified subject is seen, a :class:`.tables.User` row and its
default :class:`.tables.UserSettings` row are written in one transaction. The
write is an insert-if-absent, so an existing user is never modified, and two
requests racing to provision the same subject both succeed with a single row.

SQLite and PostgreSQL provide ``INSERT ... ON CONFLICT DO NOTHING``. For other
engines the provisioner inserts and, if that fails (typically a duplicate key
from a concurrent request), looks the user up again before giving up.
"""

from logging import getLogger
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..domain import DEFAULT_EXPIRATION_WARNING_DAYS, \
    DEFAULT_LOW_STOCK_THRESHOLD, DEFAULT_SUBSCRIPTION_TIER, DEFAULT_THEME, \
    DEFAULT_USER_ROLE, PLACEHOLDER_FIRST_NAME, PLACEHOLDER_LAST_NAME, \
    placeholder_email
from ..exceptions import ProvisioningError
from ..tables import User, UserSettings
from .cache import ProvisioningCache

log = getLogger(__name__)

_UPSERT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': postgresql_insert,
}


def default_settings(subject_id: str) -> UserSettings:
    return UserSettings(
        user_id=subject_id,
        low_stock_threshold=DEFAULT_LOW_STOCK_THRESHOLD,
        expiration_warning_days=list(DEFAULT_EXPIRATION_WARNING_DAYS),
        theme=DEFAULT_THEME.value,
        user_role=DEFAULT_USER_ROLE.value,
        subscription_tier=DEFAULT_SUBSCRIPTION_TIER.value,
    )


class UserProvisioner:
    """Ensures a user row exists for each authenticated subject.

    Parameters
    ----------
    session_factory : :class:`sessionmaker`
        Source of database sessions; one is opened per write.
    cache : :class:`.ProvisioningCache`
        Subjects already confirmed to exist. Checked first, filled on success.
    native_upsert : bool
        Use the insert-if-absent statement when the database dialect has one.
        When False, always insert and recheck on failure.

    """

    def __init__(self, session_factory: sessionmaker,
                 cache: ProvisioningCache,
                 native_upsert: bool = True) -> None:
        self.session_factory = session_factory
        self.cache = cache
        self.native_upsert = native_upsert

    def ensure_provisioned(self, subject_id: str,
                           email: Optional[str] = None) -> bool:
        """Make sure ``subject_id`` has a user row.

        Returns True if this call created the user.

        Raises
        ------
        :class:`.ProvisioningError`
            If the user could not be written and is still absent (or could
            not be looked up) afterwards.

        """
        if subject_id in self.cache:
            return False

        try:
            created = self._insert_if_absent(subject_id, email)
        except SQLAlchemyError as exc:
            log.warning('Provisioning %s failed, checking whether it exists. '
                        'Error: %s', subject_id, exc)
            self._recheck(subject_id, exc)
            created = False

        self.cache.add(subject_id)
        return created

    def exists(self, subject_id: str) -> bool:
        with self.session_factory() as db:
            return db.scalar(select(User.id).where(User.id == subject_id)) \
                is not None

    def _recheck(self, subject_id: str, original: SQLAlchemyError) -> None:
        try:
            found = self.exists(subject_id)
        except SQLAlchemyError as exc:
            log.error('Provisioning %s failed and the existence check failed '
                      'too. Error: %s; recheck error: %s',
                      subject_id, original, exc)
            raise ProvisioningError(subject_id, original) from exc

        if not found:
            log.error('Provisioning %s failed and no user exists. Error: %s',
                      subject_id, original)
            raise ProvisioningError(subject_id, original) from original

        log.info('User %s found on recheck after failed provisioning',
                 subject_id)

    def _uses_upsert(self, db: Session) -> bool:
        return self.native_upsert and \
            db.get_bind().dialect.name in _UPSERT_INSERTS

    def _insert_if_absent(self, subject_id: str, email: Optional[str]) -> bool:
        values = {
            'id': subject_id,
            'email': email or placeholder_email(subject_id),
            'first_name': PLACEHOLDER_FIRST_NAME,
            'last_name': PLACEHOLDER_LAST_NAME,
        }
        with self.session_factory() as db, db.begin():
            if self._uses_upsert(db):
                insert = _UPSERT_INSERTS[db.get_bind().dialect.name]
                result = db.execute(
                    insert(User).values(**values)
                    .on_conflict_do_nothing(index_elements=['id'])
                )
                if result.rowcount == 0:
                    return False
                db.add(default_settings(subject_id))
            else:
                if db.get(User, subject_id) is not None:
                    return False
                user = User(**values)
                user.settings = default_settings(subject_id)
                db.add(user)

        log.info('Provisioned new user %s', subject_id)
        return True
