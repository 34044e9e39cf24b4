"""Data exchanged with brokers: heartbeats, subscriptions and consumer reports."""

import copy
import enum
import functools
import json
import re
from dataclasses import dataclass, field

PROP_NAMESERVER_ADDR = "PROP_NAMESERVER_ADDR"
PROP_THREADPOOL_CORE_SIZE = "PROP_THREADPOOL_CORE_SIZE"
PROP_CONSUME_ORDERLY = "PROP_CONSUMEORDERLY"
PROP_CONSUME_TYPE = "PROP_CONSUME_TYPE"
PROP_CLIENT_VERSION = "PROP_CLIENT_VERSION"
PROP_CONSUMER_START_TIMESTAMP = "PROP_CONSUMER_START_TIMESTAMP"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_HTML_RE = re.compile("[<>&\u2028\u2029]")


def _dumps(value):
    """Compact JSON as the broker expects it, with HTML-sensitive characters escaped."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return _HTML_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], text)


def _number(value):
    """Render integral floats without a fractional part."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


class ServiceState(enum.IntEnum):
    CREATE_JUST = 0
    START_FAILED = 1
    RUNNING = 2
    SHUTDOWN = 3


class ConsumeResult(enum.IntEnum):
    CONSUME_SUCCESS = 0
    CONSUME_RETRY_LATER = 1
    ROLLBACK = 2
    COMMIT = 3
    THROW_EXCEPTION = 4
    RETURN_NULL = 5


@dataclass(frozen=True, order=True)
class MessageQueue:
    """A queue of a topic on one broker; ordered by topic, broker and id."""

    topic: str = ""
    broker_name: str = ""
    queue_id: int = 0

    def to_json(self):
        return {
            "topic": self.topic,
            "brokerName": self.broker_name,
            "queueId": self.queue_id,
        }

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise ValueError(f"message queue must be an object, got {data!r}")
        queue_id = data.get("queueId", 0)
        if isinstance(queue_id, bool) or not isinstance(queue_id, int):
            raise ValueError(f"invalid queueId: {queue_id!r}")
        return cls(
            topic=str(data.get("topic", "")),
            broker_name=str(data.get("brokerName", "")),
            queue_id=queue_id,
        )


@dataclass
class FindBrokerResult:
    broker_addr: str = ""
    slave: bool = False
    broker_version: int = 0


class UniqueSet:
    """Insertion-ordered set keyed by each item's unique id.

    Strings are their own id; other items provide ``unique_id()``.
    """

    def __init__(self, items=()):
        self._items = {}
        for item in items:
            self.add(item)

    @staticmethod
    def _key(item):
        return item if isinstance(item, str) else item.unique_id()

    def add(self, item):
        """Add an item; an item whose id is already present is ignored."""
        self._items.setdefault(self._key(item), item)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items.values()))

    def __contains__(self, item):
        return self._key(item) in self._items

    def __eq__(self, other):
        if not isinstance(other, UniqueSet):
            return NotImplemented
        return list(self._items) == list(other._items)

    def __repr__(self):
        return f"UniqueSet({list(self._items.values())!r})"

    def to_json(self):
        return [
            item if isinstance(item, str) else item.to_json()
            for item in self._items.values()
        ]


@dataclass(eq=False)
class SubscriptionData:
    """A consumer's subscription to one topic; compared by identity."""

    class_filter_mode: bool = False
    topic: str = ""
    sub_string: str = ""
    tags: UniqueSet = field(default_factory=UniqueSet)
    codes: UniqueSet = field(default_factory=UniqueSet)
    sub_version: int = 0
    expression_type: str = ""

    def clone(self):
        """Return an independent copy, tag and code sets included."""
        return SubscriptionData(
            class_filter_mode=self.class_filter_mode,
            topic=self.topic,
            sub_string=self.sub_string,
            tags=UniqueSet(self.tags),
            codes=UniqueSet(self.codes),
            sub_version=self.sub_version,
            expression_type=self.expression_type,
        )

    def to_json(self):
        return {
            "classFilterMode": self.class_filter_mode,
            "topic": self.topic,
            "subString": self.sub_string,
            "tagsSet": self.tags.to_json(),
            "codeSet": self.codes.to_json(),
            "subVersion": self.sub_version,
            "expressionType": self.expression_type,
        }


@dataclass(frozen=True)
class ProducerData:
    group_name: str = ""

    def unique_id(self):
        return self.group_name

    def to_json(self):
        return {"groupName": self.group_name}


@dataclass
class ConsumerData:
    group_name: str = ""
    consume_type: str = ""
    message_model: str = ""
    consume_from_where: str = ""
    subscription_datas: list = field(default_factory=list)
    unit_mode: bool = False

    def unique_id(self):
        return self.group_name

    def to_json(self):
        return {
            "groupName": self.group_name,
            "consumeType": self.consume_type,
            "messageModel": self.message_model,
            "consumeFromWhere": self.consume_from_where,
            "subscriptionDataSet": [s.to_json() for s in self.subscription_datas],
            "unitMode": self.unit_mode,
        }


class HeartbeatData:
    """Heartbeat sent to brokers: the client's producer and consumer groups."""

    def __init__(self, client_id):
        self.client_id = client_id
        self.producer_datas = UniqueSet()
        self.consumer_datas = UniqueSet()

    def to_json(self):
        return {
            "clientID": self.client_id,
            "producerDataSet": self.producer_datas.to_json(),
            "consumerDataSet": self.consumer_datas.to_json(),
        }

    def encode(self):
        return _dumps(self.to_json()).encode("utf-8")


@dataclass
class ProcessQueueInfo:
    commit_offset: int = 0
    cached_msg_min_offset: int = 0
    cached_msg_max_offset: int = 0
    cached_msg_count: int = 0
    cached_msg_size_in_mib: int = 0
    transaction_msg_min_offset: int = 0
    transaction_msg_max_offset: int = 0
    transaction_msg_count: int = 0
    locked: bool = False
    try_unlock_times: int = 0
    last_lock_timestamp: int = 0
    dropped: bool = False
    last_pull_timestamp: int = 0
    last_consume_timestamp: int = 0

    def to_json(self):
        return {
            "commitOffset": self.commit_offset,
            "cachedMsgMinOffset": self.cached_msg_min_offset,
            "cachedMsgMaxOffset": self.cached_msg_max_offset,
            "cachedMsgCount": self.cached_msg_count,
            "cachedMsgSizeInMiB": self.cached_msg_size_in_mib,
            "transactionMsgMinOffset": self.transaction_msg_min_offset,
            "transactionMsgMaxOffset": self.transaction_msg_max_offset,
            "transactionMsgCount": self.transaction_msg_count,
            "locked": self.locked,
            "tryUnlockTimes": self.try_unlock_times,
            "lastLockTimestamp": self.last_lock_timestamp,
            "dropped": self.dropped,
            "lastPullTimestamp": self.last_pull_timestamp,
            "lastConsumeTimestamp": self.last_consume_timestamp,
        }


@dataclass
class ConsumeStatus:
    pull_rt: float = 0.0
    pull_tps: float = 0.0
    consume_rt: float = 0.0
    consume_ok_tps: float = 0.0
    consume_failed_tps: float = 0.0
    consume_failed_msgs: int = 0

    def to_json(self):
        return {
            "pullRT": _number(self.pull_rt),
            "pullTPS": _number(self.pull_tps),
            "consumeRT": _number(self.consume_rt),
            "consumeOKTPS": _number(self.consume_ok_tps),
            "consumeFailedTPS": _number(self.consume_failed_tps),
            "consumeFailedMsgs": self.consume_failed_msgs,
        }


def _subscription_order(a, b):
    if a.class_filter_mode != b.class_filter_mode:
        return 1 if a.class_filter_mode else -1
    if a.sub_version != b.sub_version:
        return -1 if a.sub_version > b.sub_version else 1
    for left, right in ((a.tags, b.tags), (a.codes, b.codes)):
        va = _dumps(left.to_json()).encode("utf-8")
        vb = _dumps(right.to_json()).encode("utf-8")
        if va != vb:
            return -1 if va > vb else 1
    return 0


def _queue_table(table, encode_value):
    """Render a queue-keyed map with object keys, sorted by queue."""
    return "{%s}" % ",".join(
        f"{_dumps(mq.to_json())}:{encode_value(table[mq])}" for mq in sorted(table)
    )


@dataclass
class ConsumerRunningInfo:
    """Running report of a consumer, as requested by a broker."""

    properties: dict = field(default_factory=dict)
    subscription_data: list = field(default_factory=list)
    mq_table: dict = field(default_factory=dict)
    status_table: dict = field(default_factory=dict)
    jstack: str = ""

    def encode(self):
        """Encode the report; the queue table uses queue objects as keys."""
        properties = {k: self.properties[k] for k in sorted(self.properties)}
        status = {k: self.status_table[k].to_json() for k in sorted(self.status_table)}
        subs = sorted(
            self.subscription_data, key=functools.cmp_to_key(_subscription_order)
        )
        table = _queue_table(self.mq_table, lambda v: _dumps(v.to_json()))
        text = (
            f'{{"properties":{_dumps(properties)}'
            f',"statusTable":{_dumps(status)}'
            f',"subscriptionSet":{_dumps([s.to_json() for s in subs])}'
            f',"mqTable":{table}, "jstack":{_dumps(self.jstack)} }}'
        )
        return text.encode("utf-8")


@dataclass
class ConsumerStatus:
    mq_offset_map: dict = field(default_factory=dict)

    def encode(self):
        table = _queue_table(self.mq_offset_map, _dumps)
        return f'{{"messageQueueTable":{table}}}'.encode("utf-8")


@dataclass
class ConsumeMessageDirectlyResult:
    order: bool = False
    auto_commit: bool = False
    consume_result: ConsumeResult = ConsumeResult.CONSUME_SUCCESS
    remark: str = ""
    spent_time_mills: int = 0

    def encode(self):
        return _dumps(
            {
                "order": self.order,
                "autoCommit": self.auto_commit,
                "consumeResult": int(self.consume_result),
                "remark": self.remark,
                "spentTimeMills": self.spent_time_mills,
            }
        ).encode("utf-8")


_OFFSET_TABLE_RE = re.compile(r'"offsetTable"\s*:\s*')
_CLOSERS = {"{": "}", "[": "]"}


def _raw_offset_table(text):
    """Return the raw text of the offsetTable value, or '' if absent."""
    match = _OFFSET_TABLE_RE.search(text)
    if match is None:
        return ""
    rest = text[match.end():]
    if not rest or rest[0] not in _CLOSERS:
        return ""
    stack = []
    in_string = escaped = False
    for pos, ch in enumerate(rest):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return rest[: pos + 1]
    return ""


def _parse_pair_list(table):
    if not table:
        return {}
    if not isinstance(table, list):
        raise ValueError("offsetTable must be a list of [queue, offset] pairs")
    result = {}
    for pair in table:
        if not isinstance(pair, list) or len(pair) != 2:
            raise ValueError(f"invalid offset table entry: {pair!r}")
        queue, offset = pair
        if isinstance(offset, bool) or not isinstance(offset, int):
            raise ValueError(f"invalid offset: {offset!r}")
        result[MessageQueue.from_json(queue)] = offset
    return result


def _parse_object_keyed(text):
    raw = _raw_offset_table(text)
    if len(raw) <= 2:
        return {}
    result = {}
    for chunk in raw[2:-1].split(",{"):
        queue_text, sep, offset_text = chunk.partition("}:")
        if not sep:
            raise ValueError(f"invalid offset table entry: {chunk!r}")
        queue = MessageQueue.from_json(json.loads("{" + queue_text + "}"))
        result[queue] = int(offset_text)
    return result


@dataclass
class ResetOffsetBody:
    offset_table: dict = field(default_factory=dict)

    @classmethod
    def decode(cls, body):
        """Decode a reset request body.

        Accepts both the list-of-pairs layout and the layout that uses queue
        objects as keys (not valid JSON).
        """
        text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
        try:
            data = json.loads(text)
        except ValueError:
            return cls(_parse_object_keyed(text))
        table = data.get("offsetTable") if isinstance(data, dict) else None
        return cls(_parse_pair_list(table))


def _copy(value):
    return copy.deepcopy(value)