"""
Lock-protected work queue shared by the publisher and every worker thread.
"""

import logging
import threading
from typing import Iterable, List

from .exceptions import EmptyBatchError, LockFailureError
from .models import KafkaPublishMessage

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH = 10


class WorkQueue:
    """
    FIFO list of pending messages guarded by a single lock.

    The lock is only held while appending or draining in memory, never while
    publishing or sleeping.
    """

    def __init__(self, lock_timeout: float = 10.0):
        """
        Initialize an empty work queue.

        Args:
            lock_timeout: Seconds to wait for the lock before giving up
        """
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._msgs: List[KafkaPublishMessage] = []

    def _acquire(self) -> bool:
        return self._lock.acquire(timeout=self.lock_timeout)

    def enqueue(self, msgs: Iterable[KafkaPublishMessage]) -> int:
        """
        Append messages to the back of the queue, preserving their order.

        Args:
            msgs: Messages to add

        Returns:
            Number of messages in the queue after adding

        Raises:
            EmptyBatchError: If there is nothing to add
            LockFailureError: If the lock could not be acquired in time
        """
        new_msgs = list(msgs)
        if not new_msgs:
            err = EmptyBatchError()
            logger.error(str(err))
            raise err

        if not self._acquire():
            err_msg = f"failed to get lock on work queue within {self.lock_timeout}s"
            logger.error(err_msg)
            raise LockFailureError(err_msg)
        try:
            self._msgs.extend(new_msgs)
            return len(self._msgs)
        finally:
            self._lock.release()

    def drain(self, max_batch: int = DEFAULT_MAX_BATCH) -> List[KafkaPublishMessage]:
        """
        Remove up to ``max_batch`` messages from the front of the queue.

        An empty list means there is nothing to do, including when the lock
        could not be acquired.
        """
        if not self._acquire():
            logger.error(f"failed to get lock on work queue within {self.lock_timeout}s")
            return []
        try:
            batch = self._msgs[:max_batch]
            del self._msgs[:max_batch]
            return batch
        finally:
            self._lock.release()

    def drain_all(self) -> List[KafkaPublishMessage]:
        """Remove every pending message."""
        if not self._acquire():
            logger.error(f"failed to get lock on work queue within {self.lock_timeout}s")
            return []
        try:
            batch = self._msgs
            self._msgs = []
            return batch
        finally:
            self._lock.release()

    def __len__(self) -> int:
        if not self._acquire():
            err_msg = f"failed to get lock on work queue within {self.lock_timeout}s"
            logger.error(err_msg)
            raise LockFailureError(err_msg)
        try:
            return len(self._msgs)
        finally:
            self._lock.release()
