"""
Kafka client builders and single-message publishing.

If the TLS CA, key and cert are not set the clients connect with
``PLAINTEXT`` (no encryption in transit), otherwise with mutual TLS and
certificate verification enabled.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from confluent_kafka import Consumer, KafkaException, Producer
import orjson

from .config import KafkaClientConfig
from .exceptions import ConnectionUnavailableError
from .models import KafkaPublishMessage, Payload

logger = logging.getLogger(__name__)

# Returned when the delivery report never arrived or produce() itself failed
DELIVERY_FAILED = -1

KafkaHeaders = List[Tuple[str, bytes]]


def now_ms() -> int:
    return int(time.time() * 1000)


def build_client_config(config: KafkaClientConfig, **overrides: Any) -> Dict[str, Any]:
    """
    Build the confluent_kafka client configuration.

    Args:
        config: Threadpool configuration
        overrides: Extra librdkafka settings

    Returns:
        Client configuration dict

    Raises:
        ConnectionUnavailableError: If the broker list is empty or blank
    """
    if not config.has_brokers():
        raise ConnectionUnavailableError(
            f"no brokers to connect to KAFKA_BROKERS={config.broker_list}"
        )

    client_config: Dict[str, Any] = {
        "bootstrap.servers": ",".join(config.broker_list),
    }
    if config.tls_enabled:
        client_config.update({
            "security.protocol": "SSL",
            "ssl.ca.location": config.tls_client_ca,
            "ssl.key.location": config.tls_client_key,
            "ssl.certificate.location": config.tls_client_cert,
            "enable.ssl.certificate.verification": True,
        })
    else:
        client_config["security.protocol"] = "PLAINTEXT"
    client_config.update(overrides)
    return client_config


def get_kafka_producer(config: KafkaClientConfig) -> Producer:
    """Create a producer for one worker thread."""
    producer_config = build_client_config(
        config,
        **{"message.timeout.ms": config.message_timeout_ms},
    )
    logger.info(f"{config.label} - creating producer with {producer_config['security.protocol']}")
    return Producer(producer_config)


def get_kafka_consumer(config: KafkaClientConfig) -> Consumer:
    """Create a consumer used only for metadata queries."""
    consumer_config = build_client_config(
        config,
        **{
            "group.id": f"{config.label}-metadata",
            "enable.auto.commit": False,
        },
    )
    logger.info(f"{config.label} - creating consumer with {consumer_config['security.protocol']}")
    return Consumer(consumer_config)


def convert_headers(headers: Optional[Dict[str, str]]) -> KafkaHeaders:
    """Convert a header mapping into the (key, bytes) pairs Kafka expects."""
    kafka_headers: KafkaHeaders = []
    if headers:
        for k, v in headers.items():
            kafka_headers.append((k, v.encode("utf-8") if isinstance(v, str) else v))
    return kafka_headers


def serialize_payload(payload: Payload) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (dict, list)):
        # Decimal and friends go out as floats
        def default(obj):
            if hasattr(obj, "__float__"):
                return float(obj)
            raise TypeError

        return orjson.dumps(payload, default=default)
    return str(payload).encode("utf-8")


def publish_message(
    producer: Producer,
    msg: KafkaPublishMessage,
    headers: KafkaHeaders,
    timeout: float = 10.0,
) -> int:
    """
    Publish one message and wait for its delivery report.

    Args:
        producer: Connected producer
        msg: Message to publish
        headers: Headers already converted with ``convert_headers``
        timeout: Seconds to wait for the delivery report

    Returns:
        0 if the message was delivered, otherwise a non-zero delivery status
    """
    delivery_report: Dict[str, Any] = {"status": None}

    def delivery_callback(err, kafka_msg):
        """Callback for delivery reports."""
        if err is not None:
            delivery_report["status"] = err.code() or DELIVERY_FAILED
            logger.debug(f"Message delivery failed: {err}")
        else:
            delivery_report["status"] = 0
            logger.debug(
                f"Message delivered to {kafka_msg.topic()} [{kafka_msg.partition()}] @ {kafka_msg.offset()}"
            )

    try:
        producer.produce(
            topic=msg.topic,
            value=serialize_payload(msg.payload),
            key=msg.key.encode("utf-8") if msg.key else None,
            headers=headers if headers else None,
            timestamp=now_ms(),
            callback=delivery_callback,
        )
        remaining = producer.flush(timeout=timeout)
    except (KafkaException, BufferError, TypeError, ValueError) as e:
        logger.error(f"Failed to produce message to topic={msg.topic}: {e}")
        return DELIVERY_FAILED

    if remaining > 0:
        logger.error(f"Failed to deliver {remaining} messages within {timeout}s")
        # Drop the still-queued copy before the caller retries; a copy already
        # in flight can still reach the broker, so delivery is at-least-once
        try:
            producer.purge(in_queue=True, in_flight=False)
        except KafkaException as e:
            logger.error(f"Failed to purge undelivered messages: {e}")

    status = delivery_report["status"]
    if status is None:
        return DELIVERY_FAILED
    return status
