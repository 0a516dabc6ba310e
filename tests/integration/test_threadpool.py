"""
Integration tests for publishing through a real Kafka broker.

These tests require a running broker listed in KAFKA_BROKERS.
"""

import logging
import os
import time
import uuid

import pytest

from kafka_threadpool.config import KafkaClientConfig
from kafka_threadpool.pool import start_threads_from_config

# Read before the autouse fixture strips KAFKA_* from the environment
BROKERS = os.environ.get("KAFKA_BROKERS", "")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not BROKERS, reason="KAFKA_BROKERS not set"),
]

logger = logging.getLogger(__name__)


@pytest.fixture
def broker_config():
    """Real broker configuration with short timeouts."""
    return KafkaClientConfig(
        log_label="integration",
        brokers=BROKERS,
        topics="testing",
        num_threads=2,
        publish_retry_interval_sec=0.5,
        publish_idle_interval_sec=0.05,
        retry_max_attempts=5,
    )


def test_publish_and_count(broker_config):
    """Test publishing a batch and counting it back from the watermarks."""
    topic = f"ktp-integration-{uuid.uuid4().hex[:8]}"
    publisher = start_threads_from_config(broker_config)

    try:
        for i in range(20):
            publisher.add_data_msg(topic, f"key-{i}", {"test": "integration"}, f"integration message {i}")

        deadline = time.monotonic() + 30
        while publisher.get_metrics()["messages_sent"] < 20 and time.monotonic() < deadline:
            time.sleep(0.1)

        metrics = publisher.get_metrics()
        logger.info(f"integration metrics={metrics}")
        assert metrics["messages_sent"] == 20

        details = publisher.get_metadata(fetch_offsets=True, topic=topic)
        assert details.get_topic(topic).message_count == 20
    finally:
        publisher.shutdown()
        assert publisher.wait_for_shutdown(timeout=30)
