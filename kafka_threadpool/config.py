"""
Kafka threadpool configuration settings.

Every value is read from a ``KAFKA_`` prefixed environment variable (or a
``.env`` file) when the config is built:

| Environment Variable Name         | Purpose / Value                                         |
| --------------------------------- | ------------------------------------------------------- |
| KAFKA_ENABLED                     | ``true`` or ``1`` enables the pool, anything else disables it |
| KAFKA_LOG_LABEL                   | tracking label that shows up in all threadpool logs     |
| KAFKA_BROKERS                     | comma-delimited list of brokers (``host1:port,host2:port``) |
| KAFKA_TOPICS                      | comma-delimited list of supported topics                |
| KAFKA_PUBLISH_RETRY_INTERVAL_SEC  | seconds to sleep before each publish retry              |
| KAFKA_PUBLISH_IDLE_INTERVAL_SEC   | seconds to sleep when there are no messages to process  |
| KAFKA_NUM_THREADS                 | number of worker threads                                |
| KAFKA_TLS_CLIENT_KEY              | optional - path to the mTLS key                         |
| KAFKA_TLS_CLIENT_CERT             | optional - path to the mTLS certificate                 |
| KAFKA_TLS_CLIENT_CA               | optional - path to the mTLS certificate authority       |
| KAFKA_METADATA_COUNT_MSG_OFFSETS  | optional - anything but ``true`` skips offset counting  |
"""

import logging
from typing import Annotated, Any, List, Optional, Set

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

logger = logging.getLogger(__name__)

DEFAULT_LOG_LABEL = "ktp"


def _parse_enabled_flag(value: Any) -> Any:
    """Only ``true`` and ``1`` (any case) turn a flag on."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return value


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",")]
    return value


class KafkaClientConfig(BaseSettings):
    """Static configuration shared read-only by every worker thread."""

    # Pool settings
    enabled: bool = Field(
        default=True,
        description="Toggle the threadpool on or off"
    )
    log_label: str = Field(
        default=DEFAULT_LOG_LABEL,
        description="Tracking label used in all threadpool logs"
    )
    num_threads: int = Field(
        default=5,
        ge=1,
        le=255,
        description="Number of worker threads"
    )

    # Connection settings
    brokers: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Ordered list of host:port broker addresses"
    )
    topics: Annotated[Set[str], NoDecode] = Field(
        default_factory=set,
        description="Topics this pool publishes to"
    )
    tls_client_key: str = Field(default="", description="Path to the mTLS client key")
    tls_client_cert: str = Field(default="", description="Path to the mTLS client certificate")
    tls_client_ca: str = Field(default="", description="Path to the mTLS certificate authority")
    message_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="Producer delivery timeout for a single message"
    )

    # Worker loop timing
    publish_retry_interval_sec: float = Field(
        default=1.0,
        gt=0.001,
        description="Seconds to sleep before retrying a failed publish"
    )
    publish_idle_interval_sec: float = Field(
        default=0.5,
        gt=0.001,
        description="Seconds to sleep when the work queue is empty"
    )
    max_batch_size: int = Field(
        default=10,
        ge=1,
        description="Maximum messages a worker drains from the queue at once"
    )
    lock_timeout_sec: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the work queue lock before failing"
    )

    # Retry policy
    retry_max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Publish attempts before a message is dropped (unset retries forever)"
    )
    retry_backoff_multiplier: float = Field(
        default=1.0,
        ge=1.0,
        description="Growth factor applied to the retry interval after each failure"
    )
    retry_max_interval_sec: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for the retry interval"
    )

    # Metadata
    metadata_count_msg_offsets: bool = Field(
        default=True,
        description="Count messages per topic from partition watermarks"
    )
    metadata_timeout_sec: float = Field(default=30.0, gt=0)
    watermark_timeout_sec: float = Field(default=1.0, gt=0)

    model_config = {
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "KAFKA_",
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("enabled", "metadata_count_msg_offsets", mode="before")
    @classmethod
    def _validate_flag(cls, value: Any) -> Any:
        return _parse_enabled_flag(value)

    @field_validator("brokers", mode="before")
    @classmethod
    def _validate_brokers(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("topics", mode="before")
    @classmethod
    def _validate_topics(cls, value: Any) -> Any:
        value = _split_csv(value)
        if isinstance(value, list):
            return {topic for topic in value if topic}
        return value

    @field_validator("retry_max_attempts", mode="before")
    @classmethod
    def _validate_max_attempts(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def label(self) -> str:
        return self.log_label

    @property
    def is_enabled(self) -> bool:
        return self.enabled

    @property
    def broker_list(self) -> List[str]:
        return list(self.brokers)

    @property
    def publish_topics(self) -> Set[str]:
        return set(self.topics)

    @property
    def retry_sleep(self) -> float:
        return self.publish_retry_interval_sec

    @property
    def idle_sleep(self) -> float:
        return self.publish_idle_interval_sec

    @property
    def tls_enabled(self) -> bool:
        """PLAINTEXT is used only when no TLS asset is configured."""
        return bool(self.tls_client_key or self.tls_client_cert or self.tls_client_ca)

    def has_brokers(self) -> bool:
        return bool(self.brokers) and bool(self.brokers[0])

    def __str__(self) -> str:
        return (
            f"KafkaClientConfig label={self.log_label} "
            f"enabled={self.enabled} "
            f"tls key={self.tls_client_key} cert={self.tls_client_cert} ca={self.tls_client_ca} "
            f"retry_sleep={self.publish_retry_interval_sec} "
            f"idle_sleep={self.publish_idle_interval_sec} "
            f"threads={self.num_threads} "
            f"broker_list={self.brokers} "
            f"topics={sorted(self.topics)}"
        )


def build_kafka_client_config(label: Optional[str] = None) -> KafkaClientConfig:
    """
    Build the threadpool configuration from the environment.

    Args:
        label: Log label to use when ``KAFKA_LOG_LABEL`` is not set

    Returns:
        Validated, immutable configuration
    """
    config = KafkaClientConfig()
    # KAFKA_LOG_LABEL wins over the caller's label
    if label and "log_label" not in config.model_fields_set:
        config = config.model_copy(update={"log_label": label})

    if not config.enabled:
        logger.info(f"kafka disabled KAFKA_ENABLED={config.enabled}")
    else:
        logger.info(f"build_kafka_client_config - {config}")
    return config
