"""
Worker thread that drains the shared work queue and publishes to Kafka.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from confluent_kafka import KafkaException, Producer

from .config import KafkaClientConfig
from .exceptions import ConnectionUnavailableError, KafkaThreadpoolError
from .models import KafkaPublishMessage, KafkaPublishMessageType
from .producer import convert_headers, get_kafka_producer, publish_message
from .retry import RetryPolicy
from .work_queue import WorkQueue

logger = logging.getLogger(__name__)

ProducerFactory = Callable[[KafkaClientConfig], Producer]


class WorkerState(str, Enum):
    """Processing states of a worker thread."""

    IDLE = "idle"
    DRAINING = "draining"
    PUBLISHING = "publishing"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class DropReason(str, Enum):
    """Why a worker discarded messages without publishing them."""

    SHUTDOWN_REMAINDER = "shutdown_remainder"
    NOT_IMPLEMENTED = "not_implemented"
    UNSUPPORTED_KIND = "unsupported_kind"
    RETRIES_EXHAUSTED = "retries_exhausted"


@dataclass(slots=True)
class WorkerMetrics:
    """Counters for a single worker."""

    published: int = 0
    publish_failures: int = 0
    dropped: Dict[DropReason, int] = field(default_factory=dict)

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped.copy().values())

    def record_drop(self, reason: DropReason, count: int = 1) -> None:
        if count > 0:
            self.dropped[reason] = self.dropped.get(reason, 0) + count

    def to_dict(self) -> Dict[str, Any]:
        # read from other threads while the worker adds reasons
        dropped = self.dropped.copy()
        return {
            "published": self.published,
            "publish_failures": self.publish_failures,
            "dropped": {reason.value: count for reason, count in dropped.items()},
        }


class KafkaPublishWorker:
    """
    One thread of the publish pool.

    Each worker owns its producer. It repeatedly drains a batch from the
    shared queue and publishes the batch front-to-back, waiting for each
    message's delivery before moving on. A ``Shutdown`` message is put back
    on the queue and the pool's stop event is set so every other worker
    terminates too.
    """

    def __init__(
        self,
        thread_num: int,
        config: KafkaClientConfig,
        work_queue: WorkQueue,
        stop_event: threading.Event,
        producer_factory: Optional[ProducerFactory] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize a worker.

        Args:
            thread_num: Zero-based worker index
            config: Threadpool configuration
            work_queue: Queue shared by the whole pool
            stop_event: Set once any worker observes a Shutdown message
            producer_factory: Builds this worker's producer, defaults to ``get_kafka_producer``
            retry_policy: Publish retry policy, defaults to the config's
        """
        self.thread_num = thread_num
        self.config = config
        self.log_label = f"{config.label}-tid-{thread_num + 1}"
        self.state = WorkerState.IDLE
        self.metrics = WorkerMetrics()

        self._work_queue = work_queue
        self._stop_event = stop_event
        self._producer_factory = producer_factory or get_kafka_producer
        self._retry_policy = retry_policy or RetryPolicy.from_config(config)
        self._publish_timeout = config.message_timeout_ms / 1000 + 1
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, daemon=True, name=self.log_label)
        self._thread.start()
        logger.debug(f"Started worker thread: {self._thread.name} (ID: {self._thread.ident})")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_terminated(self) -> bool:
        return self.state == WorkerState.TERMINATED

    def run(self) -> None:
        """Thread body: connect, then process messages until shutdown."""
        producer = self._connect()
        if producer is None:
            self.state = WorkerState.TERMINATED
            return

        logger.debug(f"{self.log_label} - start")
        try:
            self._process_messages(producer)
        finally:
            remaining = producer.flush(timeout=self._publish_timeout)
            if remaining:
                logger.warning(f"{self.log_label} - exiting with {remaining} messages still in producer queue")
            self.state = WorkerState.TERMINATED
            logger.info(f"{self.log_label} - done exiting thread")

    def _connect(self) -> Optional[Producer]:
        if not self.config.has_brokers():
            logger.error(
                f"{self.log_label} - no brokers to connect to "
                f"KAFKA_BROKERS={self.config.broker_list} - stopping thread"
            )
            return None

        if self.thread_num == 0:
            logger.info(
                f"threadpool connecting to brokers={self.config.broker_list} "
                f"topics={sorted(self.config.publish_topics)} "
                f"tls ca={self.config.tls_client_ca} key={self.config.tls_client_key} "
                f"cert={self.config.tls_client_cert}"
            )
        try:
            return self._producer_factory(self.config)
        except (ConnectionUnavailableError, KafkaException) as e:
            logger.error(f"{self.log_label} - failed to create producer: {e} - stopping thread")
            return None

    def _process_messages(self, producer: Producer) -> None:
        while True:
            self.state = WorkerState.DRAINING
            work: List[KafkaPublishMessage] = self._work_queue.drain(self.config.max_batch_size)

            if not work:
                self.state = WorkerState.IDLE
                if self._stop_event.is_set():
                    logger.debug(f"{self.log_label} - shutdown observed while idle")
                    return
                # wakes early when another worker sees a Shutdown message
                self._stop_event.wait(self.config.idle_sleep)
                continue

            logger.debug(f"{self.log_label} - processing {len(work)} msgs")
            if self._process_batch(producer, work):
                return

    def _process_batch(self, producer: Producer, work: List[KafkaPublishMessage]) -> bool:
        """
        Process a drained batch in order.

        Returns:
            True if the worker should terminate
        """
        should_shutdown = False
        while work:
            msg = work.pop(0)

            if msg.msg_type == KafkaPublishMessageType.SHUTDOWN:
                should_shutdown = True
                self.state = WorkerState.SHUTTING_DOWN
                self._stop_event.set()
                self._requeue_shutdown(msg)
                break
            elif msg.msg_type in (KafkaPublishMessageType.DATA, KafkaPublishMessageType.SENSITIVE):
                self._publish_with_retry(producer, msg)
            elif msg.msg_type in (
                KafkaPublishMessageType.LOG_BROKER_DETAILS,
                KafkaPublishMessageType.LOG_BROKER_TOPIC_DETAILS,
            ):
                logger.info(
                    f"{self.log_label} not supported yet - get broker details "
                    f"type={msg.msg_type.value} - coming soon"
                )
                self._drop(DropReason.NOT_IMPLEMENTED, 1 + len(work))
                break
            else:
                logger.error(f"{self.log_label} - unsupported KafkaPublishMessageType={msg.msg_type}")
                self._drop(DropReason.UNSUPPORTED_KIND, 1 + len(work))
                break

        if should_shutdown:
            num_left = len(work)
            if num_left == 0:
                logger.debug(f"{self.log_label} - work batch empty={num_left}")
            else:
                logger.error(f"{self.log_label} - work batch NOT empty={num_left}")
                self._drop(DropReason.SHUTDOWN_REMAINDER, num_left)
            return True

        work.clear()
        return False

    def _requeue_shutdown(self, msg: KafkaPublishMessage) -> None:
        # other workers still racing on the queue must see it too
        try:
            num_msgs = self._work_queue.enqueue([msg.clone()])
            logger.debug(f"{self.log_label} - requeue shutdown message success with total in queue={num_msgs}")
        except KafkaThreadpoolError as e:
            logger.error(f"{self.log_label} - failed to requeue shutdown message into queue with err={e}")

    def _publish_with_retry(self, producer: Producer, msg: KafkaPublishMessage) -> bool:
        self.state = WorkerState.PUBLISHING
        if msg.is_sensitive:
            logger.debug(f"{self.log_label} pub topic={msg.topic} data=<sensitive>")
        else:
            logger.debug(f"{self.log_label} pub topic={msg.topic} data={str(msg.payload)[:10]!r}")

        headers = convert_headers(msg.headers)
        attempt = 0
        while True:
            delivery_status = publish_message(producer, msg, headers, timeout=self._publish_timeout)
            attempt += 1
            if delivery_status == 0:
                self.metrics.published += 1
                logger.debug(f"{self.log_label} - published message topic={msg.topic}")
                return True

            self.metrics.publish_failures += 1
            logger.error(
                f"{self.log_label} - failed to publish delivery status={delivery_status} "
                f"attempt={attempt} msg={msg}"
            )
            if not self._retry_policy.should_retry(attempt):
                logger.error(f"{self.log_label} - giving up after {attempt} attempts msg={msg}")
                self._drop(DropReason.RETRIES_EXHAUSTED, 1)
                return False
            time.sleep(self._retry_policy.delay(attempt))

    def _drop(self, reason: DropReason, count: int) -> None:
        self.metrics.record_drop(reason, count)
        logger.warning(f"{self.log_label} - dropped {count} msgs reason={reason.value}")
