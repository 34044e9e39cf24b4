"""Response handling and client options for broker and name server traffic."""

import enum
import os
import socket
import time
from dataclasses import dataclass, field

from rmqadmin.errors import ResponseError
from rmqadmin.model import MessageQueue
from rmqadmin.perm import queue_is_readable

DEFAULT_TRACE_REGION_ID = "DefaultRegion"
TRACE_OFF = "false"

PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX = "UNIQ_KEY"
PROPERTY_MSG_REGION = "MSG_REGION"
PROPERTY_TRACE_SWITCH = "TRACE_ON"

VIP_CHANNEL_ENV = "com.rocketmq.sendMessageWithVIPChannel"

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}


class ResponseCode(enum.IntEnum):
    SUCCESS = 0
    ERROR = 1
    FLUSH_DISK_TIMEOUT = 10
    SLAVE_NOT_AVAILABLE = 11
    FLUSH_SLAVE_TIMEOUT = 12
    PULL_NOT_FOUND = 19
    PULL_RETRY_IMMEDIATELY = 20
    PULL_OFFSET_MOVED = 21


class SendStatus(enum.IntEnum):
    OK = 0
    FLUSH_DISK_TIMEOUT = 1
    FLUSH_SLAVE_TIMEOUT = 2
    SLAVE_NOT_AVAILABLE = 3
    UNKNOWN_ERROR = 4


class PullStatus(enum.IntEnum):
    FOUND = 0
    NO_NEW_MSG = 1
    NO_MSG_MATCHED = 2
    OFFSET_ILLEGAL = 3
    BROKER_TIMEOUT = 4


_SEND_STATUS = {
    ResponseCode.FLUSH_DISK_TIMEOUT: SendStatus.FLUSH_DISK_TIMEOUT,
    ResponseCode.FLUSH_SLAVE_TIMEOUT: SendStatus.FLUSH_SLAVE_TIMEOUT,
    ResponseCode.SLAVE_NOT_AVAILABLE: SendStatus.SLAVE_NOT_AVAILABLE,
    ResponseCode.SUCCESS: SendStatus.OK,
}

_PULL_STATUS = {
    ResponseCode.SUCCESS: PullStatus.FOUND,
    ResponseCode.PULL_NOT_FOUND: PullStatus.NO_NEW_MSG,
    ResponseCode.PULL_RETRY_IMMEDIATELY: PullStatus.NO_MSG_MATCHED,
    ResponseCode.PULL_OFFSET_MOVED: PullStatus.OFFSET_ILLEGAL,
}


@dataclass
class RemotingCommand:
    """A request or response exchanged with a broker."""

    code: int = ResponseCode.SUCCESS
    remark: str = ""
    ext_fields: dict = field(default_factory=dict)
    body: bytes = b""
    version: int = 0


@dataclass
class SendResult:
    status: SendStatus = SendStatus.OK
    msg_id: str = ""
    offset_msg_id: str = ""
    message_queue: MessageQueue = None
    queue_offset: int = 0
    transaction_id: str = ""
    region_id: str = ""
    trace_on: bool = False


@dataclass
class PullResult:
    status: PullStatus = PullStatus.FOUND
    next_begin_offset: int = 0
    min_offset: int = 0
    max_offset: int = 0
    suggest_which_broker_id: int = 0
    body: bytes = b""


@dataclass
class QueueData:
    """Queue layout of a topic on one broker, as reported by the name server."""

    broker_name: str = ""
    read_queue_nums: int = 0
    write_queue_nums: int = 0
    perm: int = 0
    topic_syn_flag: int = 0


def _local_ip():
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"


def _go_bool(value):
    return "true" if value else "false"


@dataclass
class ClientOptions:
    group_name: str = ""
    name_server_addrs: list = field(default_factory=list)
    namesrv: object = None
    client_ip: str = field(default_factory=_local_ip)
    instance_name: str = "DEFAULT"
    unit_mode: bool = False
    unit_name: str = ""
    vip_channel_enabled: bool = False
    retry_times: int = 3
    interceptors: list = field(default_factory=list)
    credentials: object = None
    namespace: str = ""
    resolver: object = None

    def change_instance_name_to_pid(self):
        """Give a default-named instance a name unique to this process."""
        if self.instance_name == "DEFAULT":
            self.instance_name = f"{os.getpid()}#{time.time_ns()}"

    def __str__(self):
        return (
            f"ClientOption [ClientIP={self.client_ip}, "
            f"InstanceName={self.instance_name}, "
            f"UnitMode={_go_bool(self.unit_mode)}, UnitName={self.unit_name}, "
            f"VIPChannelEnabled={_go_bool(self.vip_channel_enabled)}]"
        )


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _message_property(msg, key):
    return (getattr(msg, "properties", None) or {}).get(key, "")


def process_send_response(broker_name, cmd, *args):
    """Build a SendResult from a send response for the given messages.

    Each message needs a ``topic`` and a ``properties`` mapping.
    """
    try:
        status = _SEND_STATUS[cmd.code]
    except (KeyError, ValueError):
        raise ResponseError(f"CODE: {int(cmd.code)}, DESC: {cmd.remark}") from None
    if not args:
        raise ValueError("at least one message is required")

    fields = cmd.ext_fields
    region_id = fields.get(PROPERTY_MSG_REGION, "") or DEFAULT_TRACE_REGION_ID
    trace = fields.get(PROPERTY_TRACE_SWITCH, "")
    return SendResult(
        status=status,
        msg_id=",".join(
            _message_property(msg, PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX)
            for msg in args
        ),
        offset_msg_id=fields.get("msgId", ""),
        message_queue=MessageQueue(
            topic=args[0].topic,
            broker_name=broker_name,
            queue_id=_to_int(fields.get("queueId")),
        ),
        queue_offset=_to_int(fields.get("queueOffset")),
        transaction_id=fields.get("transactionId", ""),
        region_id=region_id,
        trace_on=trace not in ("", TRACE_OFF),
    )


def process_pull_response(response):
    """Build a PullResult from a pull response."""
    try:
        status = _PULL_STATUS[response.code]
    except (KeyError, ValueError):
        raise ResponseError(
            f"unknown Response Code: {int(response.code)}, remark: {response.remark}"
        ) from None
    result = PullResult(status=status, body=response.body)
    fields = response.ext_fields
    if "maxOffset" in fields:
        result.max_offset = _to_int(fields["maxOffset"])
    if "minOffset" in fields:
        result.min_offset = _to_int(fields["minOffset"])
    if "nextBeginOffset" in fields:
        result.next_begin_offset = _to_int(fields["nextBeginOffset"])
    if "suggestWhichBrokerId" in fields:
        result.suggest_which_broker_id = _to_int(fields["suggestWhichBrokerId"])
    return result


def route_data_to_subscribe_info(topic, queue_datas):
    """List the readable queues of a topic."""
    return [
        MessageQueue(topic=topic, broker_name=qd.broker_name, queue_id=queue_id)
        for qd in queue_datas
        if queue_is_readable(qd.perm)
        for queue_id in range(qd.read_queue_nums)
    ]


def _vip_channel_from_env():
    value = os.environ.get(VIP_CHANNEL_ENV, "")
    if value == "":
        return True
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    return False


def broker_vip_channel(broker_addr, enabled=None):
    """Return the VIP channel address of a broker (port minus two).

    ``enabled`` defaults to the setting read from the environment. An
    address whose port is not a number yields an empty string.
    """
    if enabled is None:
        enabled = _vip_channel_from_env()
    if not enabled:
        return broker_addr
    parts = broker_addr.split(":")
    if len(parts) < 2:
        raise ValueError(f"broker address has no port: {broker_addr!r}")
    try:
        port = int(parts[1])
    except ValueError:
        return ""
    return f"{parts[0]}:{port - 2}"