"""
Start the threadpool from the environment and return a ``KafkaPublisher``.
"""

import logging
from typing import Optional

from .config import build_kafka_client_config
from .publisher import KafkaPublisher
from .pool import start_threads_from_config

logger = logging.getLogger(__name__)


def start_threadpool(label: Optional[str] = None) -> KafkaPublisher:
    """
    Build the configuration from ``KAFKA_*`` environment variables and start
    the worker threads.

    Args:
        label: Log label, ``KAFKA_LOG_LABEL`` takes precedence

    Returns:
        KafkaPublisher for adding messages and shutting the pool down

    Example:
        publisher = start_threadpool("ktp")
        publisher.add_data_msg("testing", "key", None, "hello")
        publisher.shutdown()
    """
    logger.debug("start_threadpool - building config")
    config = build_kafka_client_config(label)
    logger.debug("start_threadpool - starting threads")
    publisher = start_threads_from_config(config)
    logger.info(f"{config.label} - started {len(publisher.workers)} kafka publish threads")
    return publisher
