"""
Start the configured number of publish worker threads.
"""

import logging
import threading
from typing import Optional

from .config import KafkaClientConfig
from .publisher import KafkaPublisher
from .retry import RetryPolicy
from .work_queue import WorkQueue
from .worker import KafkaPublishWorker, ProducerFactory

logger = logging.getLogger(__name__)


def start_threads_from_config(
    config: KafkaClientConfig,
    producer_factory: Optional[ProducerFactory] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> KafkaPublisher:
    """
    Start ``config.num_threads`` workers sharing one work queue.

    Returns immediately without waiting for the workers to connect.

    Args:
        config: Threadpool configuration
        producer_factory: Builds each worker's producer
        retry_policy: Publish retry policy shared by every worker

    Returns:
        KafkaPublisher wrapping the shared queue
    """
    work_queue = WorkQueue(lock_timeout=config.lock_timeout_sec)
    stop_event = threading.Event()
    publisher = KafkaPublisher(config, work_queue=work_queue, stop_event=stop_event)

    if not config.is_enabled:
        logger.info(f"{config.label} - kafka not enabled, not starting threads")
        return publisher

    logger.info(f"{config.label} - starting threads={config.num_threads}")
    for thread_num in range(config.num_threads):
        logger.info(f"{config.label} - creating thread={thread_num}")
        worker = KafkaPublishWorker(
            thread_num,
            config,
            work_queue,
            stop_event,
            producer_factory=producer_factory,
            retry_policy=retry_policy,
        )
        publisher.workers.append(worker)
        worker.start()

    return publisher
