"""
Data models for Kafka publishing and cluster metadata.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class KafkaPublishMessageType(str, Enum):
    """Supported message types for the threadpool."""

    DATA = "Data"
    SENSITIVE = "Sensitive"
    SHUTDOWN = "Shutdown"
    LOG_BROKER_DETAILS = "LogBrokerDetails"
    LOG_BROKER_TOPIC_DETAILS = "LogBrokerTopicDetails"


Payload = Union[str, bytes, Dict[str, Any], List[Any]]


class KafkaPublishMessage(BaseModel):
    """A unit of work waiting in the shared work queue."""

    msg_type: KafkaPublishMessageType = Field(
        default=KafkaPublishMessageType.DATA,
        description="How a worker should handle the message"
    )
    topic: str = Field(
        default="",
        description="Kafka topic name (ignored for Shutdown)"
    )
    key: str = Field(
        default="",
        description="Kafka partition key"
    )
    headers: Optional[Dict[str, str]] = Field(
        None,
        description="Kafka message headers"
    )
    payload: Payload = Field(
        default="",
        description="Message body, never logged for Sensitive messages"
    )

    @property
    def is_sensitive(self) -> bool:
        return self.msg_type == KafkaPublishMessageType.SENSITIVE

    def clone(self) -> "KafkaPublishMessage":
        return self.model_copy(deep=True)

    def __str__(self) -> str:
        if self.is_sensitive:
            return (
                f"SENSITIVE KafkaPublishMessage type={self.msg_type.value} "
                f"topic={self.topic} key={self.key} headers={self.headers}"
            )
        return (
            f"KafkaPublishMessage type={self.msg_type.value} "
            f"topic={self.topic} key={self.key} headers={self.headers} "
            f"payload={self.payload!r}"
        )

    def __repr__(self) -> str:
        return f"<{self}>"


def build_kafka_publish_message(
    msg_type: KafkaPublishMessageType,
    topic: str = "",
    key: str = "",
    headers: Optional[Dict[str, str]] = None,
    payload: Payload = "",
) -> KafkaPublishMessage:
    """
    Build a supported message for the work queue.

    Args:
        msg_type: Message type
        topic: Kafka topic to publish into
        key: Kafka partition key
        headers: Optional message headers
        payload: Message body

    Returns:
        New KafkaPublishMessage
    """
    return KafkaPublishMessage(
        msg_type=msg_type,
        topic=topic,
        key=key,
        headers=headers,
        payload=payload,
    )


class BrokerDetails(BaseModel):
    """A broker as reported by cluster metadata."""

    id: int
    host: str
    port: int


class PartitionDetails(BaseModel):
    """A topic partition as reported by cluster metadata."""

    id: int
    leader: int
    replicas: List[int] = Field(default_factory=list)
    isr: List[int] = Field(default_factory=list)
    error: Optional[str] = None
    low_watermark: Optional[int] = None
    high_watermark: Optional[int] = None


class TopicDetails(BaseModel):
    """A topic with its partitions and optional message count."""

    name: str
    error: Optional[str] = None
    partitions: List[PartitionDetails] = Field(default_factory=list)
    message_count: Optional[int] = Field(
        None,
        description="Sum of high - low watermarks, set only when offsets were fetched"
    )


class ClusterDetails(BaseModel):
    """Result of a metadata query."""

    brokers: List[BrokerDetails] = Field(default_factory=list)
    topics: List[TopicDetails] = Field(default_factory=list)

    def get_topic(self, name: str) -> Optional[TopicDetails]:
        for topic in self.topics:
            if topic.name == name:
                return topic
        return None
