"""Exceptions raised by the client."""


class MQClientError(Exception):
    """Base class of every error raised by the client."""

    default_message = "client error"

    def __init__(self, message=None):
        super().__init__(message if message is not None else self.default_message)


class RequestTimeoutError(MQClientError):
    default_message = "request timeout"


class EmptyMessageQueueError(MQClientError):
    default_message = "MessageQueue is nil"


class NegativeOffsetError(MQClientError):
    default_message = "offset < 0"


class NegativeNumbersError(MQClientError):
    default_message = "numbers < 0"


class EmptyTopicError(MQClientError):
    default_message = "empty topic"


class EmptyNameServerError(MQClientError):
    default_message = "empty namesrv"


class EmptyGroupIDError(MQClientError):
    default_message = "empty group id"


class EmptyExpressionError(MQClientError):
    default_message = "empty expression"


class BrokerNotFoundError(MQClientError):
    default_message = "broker can not found"


class ResponseError(MQClientError):
    default_message = "response error"


class ServiceStateError(MQClientError):
    default_message = "service close is not running, please check"


class TopicNotExistError(MQClientError):
    default_message = "topic not exist"


class NoNameServerError(MQClientError):
    default_message = "nameServerAddrs can't be empty."


class MultipleIPError(MQClientError):
    default_message = "multiple IP addr does not support"


class IllegalIPError(MQClientError):
    default_message = "IP addr error"


class ProducerNotRunningError(MQClientError):
    default_message = "producer not started"


class GroupExistsError(MQClientError):
    default_message = "consumer group has been created"


class MultipleTopicsError(MQClientError):
    default_message = "the topic of the messages in one batch should be the same"