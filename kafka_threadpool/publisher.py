"""
Publisher facade returned to callers by ``start_threadpool``.
"""

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional

from .config import KafkaClientConfig
from .metadata import get_kafka_metadata
from .models import (
    ClusterDetails,
    KafkaPublishMessage,
    KafkaPublishMessageType,
    Payload,
    build_kafka_publish_message,
)
from .producer import get_kafka_consumer
from .work_queue import WorkQueue
from .worker import KafkaPublishWorker

logger = logging.getLogger(__name__)


class KafkaPublisher:
    """
    Caller-facing handle for the publish threadpool.

    Wraps the shared work queue so callers can add messages, drain them for
    inspection, and shut the pool down without touching any locks.
    """

    def __init__(
        self,
        config: KafkaClientConfig,
        work_queue: Optional[WorkQueue] = None,
        workers: Optional[List[KafkaPublishWorker]] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the publisher.

        Args:
            config: Threadpool configuration
            work_queue: Queue shared with the workers
            workers: Workers draining the queue
            stop_event: Event the workers set once shutdown is observed
        """
        self.config = config
        # an empty WorkQueue is falsy
        if work_queue is None:
            work_queue = WorkQueue(lock_timeout=config.lock_timeout_sec)
        self.publish_msgs = work_queue
        self.workers: List[KafkaPublishWorker] = workers if workers is not None else []
        self.stop_event = stop_event if stop_event is not None else threading.Event()

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def add_data_msg(
        self,
        topic: str,
        key: str,
        headers: Optional[Dict[str, str]],
        payload: Payload,
    ) -> int:
        """
        Build a ``Data`` message and add it to the work queue.

        Args:
            topic: Kafka topic to publish into
            key: Kafka partition key
            headers: Optional message headers
            payload: Message body

        Returns:
            Number of messages in the queue after adding, 0 if disabled
        """
        if not self.is_enabled:
            return 0
        msg = build_kafka_publish_message(KafkaPublishMessageType.DATA, topic, key, headers, payload)
        return self.publish_msgs.enqueue([msg])

    def add_msg(self, msg: KafkaPublishMessage) -> int:
        """Add a single message, returns the queue length (0 if disabled)."""
        if not self.is_enabled:
            return 0
        return self.publish_msgs.enqueue([msg])

    def add_msgs(self, msgs: Iterable[KafkaPublishMessage]) -> int:
        """Add many messages in order, returns the queue length (0 if disabled)."""
        if not self.is_enabled:
            return 0
        return self.publish_msgs.enqueue(msgs)

    def drain_msgs(self) -> List[KafkaPublishMessage]:
        """Drain every pending message, bypassing the workers. Meant for tests."""
        if not self.is_enabled:
            return []
        return self.publish_msgs.drain_all()

    def shutdown(self) -> str:
        """
        Ask every worker to stop by queueing one ``Shutdown`` message.

        Returns as soon as the message is queued; use ``wait_for_shutdown``
        to block until the workers exit.
        """
        if not self.is_enabled:
            return "kafka not enabled"
        logger.info("sending shutdown msg")
        self.publish_msgs.enqueue([build_kafka_publish_message(KafkaPublishMessageType.SHUTDOWN)])
        return "shutdown started"

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every worker thread to exit.

        Returns:
            True if all workers terminated within ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for worker in self.workers:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
            worker.join(remaining)
        return all(not worker.is_alive() for worker in self.workers)

    def get_metadata(
        self,
        fetch_offsets: Optional[bool] = None,
        topic: Optional[str] = None,
    ) -> Optional[ClusterDetails]:
        """
        Get cluster details for one topic or all topics.

        Args:
            fetch_offsets: Count messages per topic from watermarks, defaults to
                ``KAFKA_METADATA_COUNT_MSG_OFFSETS``
            topic: Only describe this topic when set

        Returns:
            Cluster details, or None if the pool is disabled
        """
        if not self.is_enabled:
            logger.info(f"kafka not enabled KAFKA_ENABLED={self.config.is_enabled}")
            return None
        if fetch_offsets is None:
            fetch_offsets = self.config.metadata_count_msg_offsets

        logger.info("creating consumer")
        consumer = get_kafka_consumer(self.config)
        try:
            return get_kafka_metadata(self.config, consumer, fetch_offsets, topic)
        finally:
            consumer.close()

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get publisher metrics.

        Returns:
            Dictionary with queue depth and per-worker counters
        """
        workers = {worker.log_label: worker.metrics.to_dict() for worker in self.workers}
        return {
            "queued": len(self.publish_msgs),
            "workers_alive": sum(1 for worker in self.workers if worker.is_alive()),
            "messages_sent": sum(worker.metrics.published for worker in self.workers),
            "messages_failed": sum(worker.metrics.publish_failures for worker in self.workers),
            "messages_dropped": sum(worker.metrics.total_dropped for worker in self.workers),
            "workers": workers,
        }
