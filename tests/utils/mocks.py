"""
Mock implementations for the Kafka clients used by the threadpool.
"""

import threading
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple


class MockKafkaError:
    """Stand-in for confluent_kafka.KafkaError passed to delivery callbacks."""

    def __init__(self, code: int = -192, reason: str = "Local: Message timed out"):
        self._code = code
        self._reason = reason

    def code(self) -> int:
        return self._code

    def __str__(self) -> str:
        return self._reason


class MockKafkaMessage:
    """Delivered message handed to a successful delivery callback."""

    def __init__(self, topic: str, partition: int = 0, offset: int = 0):
        self._topic = topic
        self._partition = partition
        self._offset = offset

    def topic(self) -> str:
        return self._topic

    def partition(self) -> int:
        return self._partition

    def offset(self) -> int:
        return self._offset


class MockKafkaProducer:
    """
    Mock producer that reports delivery on flush().

    Args:
        fail_times: Number of initial produce calls reported as failed
        always_fail: Report every delivery as failed
        error_code: Code of the reported delivery error
        raise_on_produce: Exception raised from produce()
        skip_callbacks: Never invoke delivery callbacks
    """

    def __init__(
        self,
        fail_times: int = 0,
        always_fail: bool = False,
        error_code: int = -192,
        raise_on_produce: Optional[Exception] = None,
        skip_callbacks: bool = False,
    ):
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.error_code = error_code
        self.raise_on_produce = raise_on_produce
        self.skip_callbacks = skip_callbacks

        self.produced: List[Dict] = []
        self.delivered: List[Dict] = []
        self.attempts = 0
        self.flush_calls = 0
        self.purge_calls: List[Dict] = []
        self._pending: List[Tuple[Dict, object]] = []
        self._lock = threading.Lock()

    def produce(self, topic, value=None, key=None, headers=None, timestamp=None, callback=None, **kwargs):
        """Mock produce method."""
        if self.raise_on_produce is not None:
            raise self.raise_on_produce

        record = {
            "topic": topic,
            "value": value,
            "key": key,
            "headers": headers,
            "timestamp": timestamp,
        }
        with self._lock:
            self.produced.append(record)
            self._pending.append((record, callback))

    def flush(self, timeout=None) -> int:
        """Mock flush method, returns the number of undelivered messages."""
        with self._lock:
            self.flush_calls += 1
            if self.skip_callbacks:
                return len(self._pending)
            pending = self._pending
            self._pending = []

        for record, callback in pending:
            with self._lock:
                self.attempts += 1
                failed = self.always_fail or self.attempts <= self.fail_times
                if not failed:
                    self.delivered.append(record)
            if callback is None:
                continue
            if failed:
                callback(MockKafkaError(self.error_code), None)
            else:
                callback(None, MockKafkaMessage(record["topic"]))
        return 0

    def purge(self, in_queue=True, in_flight=True, blocking=True):
        """Mock purge method, drops undelivered messages without callbacks."""
        with self._lock:
            self.purge_calls.append({"in_queue": in_queue, "in_flight": in_flight})
            if in_queue:
                self._pending = []


class MockProducerFactory:
    """Hands every worker its own MockKafkaProducer and remembers them."""

    def __init__(self, **producer_kwargs):
        self.producer_kwargs = producer_kwargs
        self.producers: List[MockKafkaProducer] = []
        self._lock = threading.Lock()

    def __call__(self, config) -> MockKafkaProducer:
        producer = MockKafkaProducer(**self.producer_kwargs)
        with self._lock:
            self.producers.append(producer)
        return producer

    @property
    def delivered(self) -> List[Dict]:
        with self._lock:
            return [record for producer in self.producers for record in producer.delivered]


def make_partition(pid: int, leader: int = 1, replicas=(1,), isrs=(1,), error=None):
    """Build an object shaped like confluent_kafka PartitionMetadata."""
    return SimpleNamespace(id=pid, leader=leader, replicas=list(replicas), isrs=list(isrs), error=error)


def make_cluster_metadata(topics: Dict[str, list], brokers=((1, "localhost", 9092),), topic_errors=None):
    """
    Build an object shaped like confluent_kafka ClusterMetadata.

    Args:
        topics: Topic name -> list of partition objects from ``make_partition``
        brokers: (id, host, port) tuples
        topic_errors: Topic name -> error
    """
    topic_errors = topic_errors or {}
    return SimpleNamespace(
        brokers={
            broker_id: SimpleNamespace(id=broker_id, host=host, port=port)
            for broker_id, host, port in brokers
        },
        topics={
            name: SimpleNamespace(
                topic=name,
                partitions={partition.id: partition for partition in partitions},
                error=topic_errors.get(name),
            )
            for name, partitions in topics.items()
        },
    )
