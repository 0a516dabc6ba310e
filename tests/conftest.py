"""
Shared pytest fixtures and configuration for all tests.
"""

import os
import threading

import pytest

from kafka_threadpool.config import KafkaClientConfig
from kafka_threadpool.models import KafkaPublishMessageType, build_kafka_publish_message
from kafka_threadpool.work_queue import WorkQueue
from tests.utils.mocks import MockProducerFactory


# ============= Environment Fixtures =============


@pytest.fixture(autouse=True)
def clean_kafka_env(monkeypatch):
    """Keep KAFKA_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("KAFKA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    test_env = {
        "KAFKA_ENABLED": "1",
        "KAFKA_LOG_LABEL": "env-label",
        "KAFKA_BROKERS": "host1:9092,host2:9092,host3:9092",
        "KAFKA_TOPICS": "testing,other",
        "KAFKA_PUBLISH_RETRY_INTERVAL_SEC": "2.5",
        "KAFKA_PUBLISH_IDLE_INTERVAL_SEC": "0.25",
        "KAFKA_NUM_THREADS": "3",
        "KAFKA_TLS_CLIENT_KEY": "/certs/client.key",
        "KAFKA_TLS_CLIENT_CERT": "/certs/client.crt",
        "KAFKA_TLS_CLIENT_CA": "/certs/ca.crt",
    }

    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    return test_env


# ============= Threadpool Fixtures =============


@pytest.fixture
def kafka_config():
    """Fast-cycling config pointing at a local broker."""
    return KafkaClientConfig(
        enabled=True,
        log_label="test",
        brokers=["localhost:9092"],
        topics={"testing"},
        num_threads=2,
        publish_retry_interval_sec=0.01,
        publish_idle_interval_sec=0.01,
        lock_timeout_sec=1.0,
    )


@pytest.fixture
def disabled_config():
    return KafkaClientConfig(enabled=False, brokers=["localhost:9092"])


@pytest.fixture
def work_queue():
    return WorkQueue(lock_timeout=0.1)


@pytest.fixture
def stop_event():
    return threading.Event()


@pytest.fixture
def producer_factory():
    """Factory handing out always-succeeding mock producers."""
    return MockProducerFactory()


@pytest.fixture
def data_msgs():
    """Generate numbered Data messages for the testing topic."""

    def generate(count: int, start: int = 0):
        return [
            build_kafka_publish_message(
                KafkaPublishMessageType.DATA,
                "testing",
                "testing",
                {f"header {i}": f"value {i}"},
                f"test message {i}",
            )
            for i in range(start, start + count)
        ]

    return generate


@pytest.fixture
def shutdown_msg():
    return build_kafka_publish_message(KafkaPublishMessageType.SHUTDOWN)


# ============= Pytest Configuration =============


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test (no external dependencies)")
    config.addinivalue_line("markers", "integration: mark test as integration test (requires a Kafka broker)")
    config.addinivalue_line("markers", "slow: mark test as slow running")
