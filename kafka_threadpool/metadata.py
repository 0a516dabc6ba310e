"""
Get metadata from Kafka for a single topic or all topics.
"""

import logging
from typing import Optional, Tuple

from confluent_kafka import Consumer, KafkaException, TopicPartition

from .config import KafkaClientConfig
from .models import BrokerDetails, ClusterDetails, PartitionDetails, TopicDetails

logger = logging.getLogger(__name__)

UNKNOWN_WATERMARKS = (-1, -1)


def _error_str(err) -> Optional[str]:
    return str(err) if err is not None else None


def fetch_watermarks(consumer: Consumer, topic: str, partition: int, timeout: float) -> Tuple[int, int]:
    """Low and high watermark offsets, ``(-1, -1)`` if they could not be fetched."""
    try:
        watermarks = consumer.get_watermark_offsets(
            TopicPartition(topic, partition), timeout=timeout, cached=False
        )
    except KafkaException as e:
        logger.warning(f"topic={topic} - partition={partition} failed to fetch watermarks: {e}")
        return UNKNOWN_WATERMARKS
    if watermarks is None:
        return UNKNOWN_WATERMARKS
    return watermarks


def get_kafka_metadata(
    config: KafkaClientConfig,
    consumer: Consumer,
    fetch_offsets: bool,
    topic: Optional[str] = None,
) -> ClusterDetails:
    """
    Fetch cluster metadata and log it.

    Args:
        config: Threadpool configuration
        consumer: Consumer used to fetch metadata and watermarks
        fetch_offsets: When True, count the messages in each topic from the
            partition watermarks
        topic: Only describe this topic when set, otherwise every topic

    Returns:
        Brokers and per-topic partition details
    """
    logger.info(f"getting metadata config={config}")
    metadata = consumer.list_topics(topic, timeout=config.metadata_timeout_sec)

    brokers = [
        BrokerDetails(id=broker.id, host=broker.host, port=broker.port)
        for broker in metadata.brokers.values()
    ]
    broker_listing = " ".join(f"broker.id={b.id} address={b.host}:{b.port}" for b in brokers)
    logger.info(
        f"cluster info brokers={len(brokers)} num_topics={len(metadata.topics)} {broker_listing}"
    )

    details = ClusterDetails(brokers=brokers)
    for name, found_topic in metadata.topics.items():
        topic_details = TopicDetails(name=name, error=_error_str(found_topic.error))
        logger.info(f"topic={name} err={topic_details.error}")

        message_count = 0
        for partition in found_topic.partitions.values():
            partition_details = PartitionDetails(
                id=partition.id,
                leader=partition.leader,
                replicas=list(partition.replicas),
                isr=list(partition.isrs),
                error=_error_str(partition.error),
            )
            logger.info(
                f"topic={name} - partition={partition_details.id} "
                f"leader={partition_details.leader} replicas={partition_details.replicas} "
                f"ISR={partition_details.isr} err={partition_details.error}"
            )

            if fetch_offsets:
                low, high = fetch_watermarks(consumer, name, partition.id, config.watermark_timeout_sec)
                partition_details.low_watermark = low
                partition_details.high_watermark = high
                logger.info(f"topic={name} - watermark low={low} high={high} (difference={high - low})")
                message_count += high - low

            topic_details.partitions.append(partition_details)

        if fetch_offsets:
            topic_details.message_count = message_count
            logger.info(f"topic={name} - message offset={message_count}")
        details.topics.append(topic_details)

    return details
