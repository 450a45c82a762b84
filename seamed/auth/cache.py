"""Process-wide record of subjects already known to have a user row."""

from threading import RLock
from typing import Set


class ProvisioningCache:
    """Thread-safe set of provisioned subject identifiers.

    Not a source of truth: a miss only means the provisioner has to go to the
    database, and an entry is never evicted except by :meth:`discard` or
    :meth:`clear`. Lives as long as the application that owns it.
    """

    def __init__(self) -> None:
        self._subjects: Set[str] = set()
        self._lock = RLock()

    def __contains__(self, subject_id: object) -> bool:
        with self._lock:
            return subject_id in self._subjects

    def __len__(self) -> int:
        with self._lock:
            return len(self._subjects)

    def add(self, subject_id: str) -> None:
        with self._lock:
            self._subjects.add(subject_id)

    def discard(self, subject_id: str) -> bool:
        """Forget ``subject_id``. Returns True if it was cached."""
        with self._lock:
            if subject_id in self._subjects:
                self._subjects.remove(subject_id)
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._subjects.clear()
