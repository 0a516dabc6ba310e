"""Custom exceptions for the kafka_threadpool package."""


class KafkaThreadpoolError(Exception):
    """Base class for errors raised by the threadpool."""

    pass


class EmptyBatchError(KafkaThreadpoolError):
    """Raised when an enqueue is attempted with no messages."""

    def __init__(self, message: str = "no msgs to add"):
        super().__init__(message)


class LockFailureError(KafkaThreadpoolError):
    """Raised when the work queue lock cannot be acquired."""

    pass


class ConnectionUnavailableError(KafkaThreadpoolError):
    """Raised when there are no brokers to connect to."""

    pass
