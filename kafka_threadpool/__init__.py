"""
Threadpool for publishing messages to Kafka over PLAINTEXT or mutual TLS.
"""

from .config import KafkaClientConfig, build_kafka_client_config
from .exceptions import (
    ConnectionUnavailableError,
    EmptyBatchError,
    KafkaThreadpoolError,
    LockFailureError,
)
from .log import LogLevel, set_log_level
from .models import (
    ClusterDetails,
    KafkaPublishMessage,
    KafkaPublishMessageType,
    build_kafka_publish_message,
)
from .pool import start_threads_from_config
from .publisher import KafkaPublisher
from .retry import RetryPolicy
from .threadpool import start_threadpool
from .work_queue import WorkQueue
from .worker import DropReason, KafkaPublishWorker, WorkerMetrics, WorkerState

__all__ = [
    "KafkaClientConfig",
    "build_kafka_client_config",
    "KafkaThreadpoolError",
    "EmptyBatchError",
    "LockFailureError",
    "ConnectionUnavailableError",
    "LogLevel",
    "set_log_level",
    "ClusterDetails",
    "KafkaPublishMessage",
    "KafkaPublishMessageType",
    "build_kafka_publish_message",
    "start_threads_from_config",
    "KafkaPublisher",
    "RetryPolicy",
    "start_threadpool",
    "WorkQueue",
    "DropReason",
    "KafkaPublishWorker",
    "WorkerMetrics",
    "WorkerState",
]
