"""
Per-service write serialization.

Every read-sum-write sequence against a service's capacity runs while holding
that service's lock, so two writers for the same service never interleave
their capacity check and insert inside one process. The capacity row is also
locked with SELECT ... FOR UPDATE by the caller, which extends the guarantee
across processes on databases that support row locks.

Locks are kept in a weak map: an entry lives only while some caller holds or
waits on it, so the registry does not grow with the number of service IDs seen.
"""

import logging
import threading
import weakref
from contextlib import contextmanager

from availability_service.exceptions import ConflictError

logger = logging.getLogger(__name__)


class ServiceLock:
    """Reentrant lock for one service; weakly referenceable"""

    def __init__(self, service_id: str):
        self.service_id = service_id
        self._lock = threading.RLock()

    def acquire(self, timeout: float = -1) -> bool:
        return self._lock.acquire(timeout=timeout)

    def release(self):
        self._lock.release()


class ServiceLockRegistry:
    """Lazily created lock per service ID"""

    def __init__(self, timeout: float = None):
        self._locks = weakref.WeakValueDictionary()
        self._guard = threading.Lock()
        self.timeout = timeout

    def __len__(self):
        return len(self._locks)

    def lock_for(self, service_id: str) -> ServiceLock:
        with self._guard:
            lock = self._locks.get(service_id)
            if lock is None:
                lock = ServiceLock(service_id)
                self._locks[service_id] = lock
            return lock

    @contextmanager
    def hold(self, service_id: str):
        lock = self.lock_for(service_id)
        acquired = lock.acquire(timeout=self.timeout if self.timeout is not None else -1)
        if not acquired:
            logger.warning(f"Timed out waiting for write lock on service {service_id}")
            raise ConflictError(f"Service {service_id} is busy, retry the request")
        try:
            yield
        finally:
            lock.release()


# Process-wide registry shared by all request handlers and the sweeper
service_locks = ServiceLockRegistry()
