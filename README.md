# rmqadmin

Building blocks for an administrative RocketMQ client written in plain
Python. The package has no third-party dependencies.

## Modules

- `rmqadmin.errors`: an exception hierarchy rooted at `MQClientError`, for
  example `EmptyTopicError`, `NoNameServerError`, `MultipleIPError`,
  `IllegalIPError`, `ResponseError` and `GroupExistsError`. Each carries a
  default message that can be overridden.
- `rmqadmin.constants`: well-known names such as `RETRY_GROUP_TOPIC_PREFIX`
  and `DEFAULT_CONSUMER_GROUP`, plus `get_reply_topic(cluster_name)` and
  `get_retry_topic(group)`.
- `rmqadmin.perm`: queue permission bits (`PERM_READ`, `PERM_WRITE`,
  `PERM_INHERIT`, `PERM_PRIORITY`) with `queue_is_readable`,
  `queue_is_writeable`, `queue_is_inherited` and `perm_to_string`, which
  renders three characters such as `"RW-"`.
- `rmqadmin.namesrv`: `check_addresses`, which validates a list of
  `ip:port` entries and raises `NoNameServerError`, `MultipleIPError` or
  `IllegalIPError`; and `NameServers`, which takes a resolver (a callable
  returning a list of addresses) and hands the addresses out round-robin
  through `next_address()`, stripping any `http://` or `https://` prefix.
  `update_addresses()` reloads the list from the resolver when it returns a
  non-empty, different list.
- `rmqadmin.model`: the data exchanged with brokers: `MessageQueue`,
  `UniqueSet`, `SubscriptionData`, `ProducerData`, `ConsumerData`,
  `HeartbeatData`, `ProcessQueueInfo`, `ConsumeStatus`,
  `ConsumerRunningInfo`, `ConsumerStatus`, `ConsumeMessageDirectlyResult`
  and `ResetOffsetBody`, along with the `ServiceState` and `ConsumeResult`
  enums. `ConsumerRunningInfo.encode()` and `ConsumerStatus.encode()` write
  their queue tables with queue objects as keys, sorted by topic, broker
  and queue id, as brokers expect. `ResetOffsetBody.decode()` reads both
  the list-of-pairs layout and the object-keyed layout of the offset table
  and raises `ValueError` on malformed entries.
- `rmqadmin.protocol`: `RemotingCommand`, `SendResult`, `PullResult`,
  `QueueData`, `ClientOptions` and the `ResponseCode`, `SendStatus` and
  `PullStatus` enums, with the functions that turn broker replies into
  results: `process_send_response` and `process_pull_response` (both raise
  `ResponseError` for codes they do not know), `route_data_to_subscribe_info`,
  which lists the readable queues of a topic, and `broker_vip_channel`,
  which returns a broker's VIP address (port minus two). When `enabled` is
  not given, `broker_vip_channel` reads the
  `com.rocketmq.sendMessageWithVIPChannel` environment variable, defaulting
  to enabled.
- `rmqadmin.client`: `MQClient`, a registry of producer and consumer groups.
  It builds `HeartbeatData` for the registered groups, hands route data to
  producers and readable queues to consumers, and passes rebalance, offset
  reset, status, running-info and direct-consume requests to the right
  consumer. `start()` runs background threads that refresh the name server
  list, persist consumer offsets and rebalance; `shutdown()` stops them once
  the last user has released the client.

## Example

```python
from rmqadmin.constants import get_retry_topic
from rmqadmin.namesrv import NameServers
from rmqadmin.perm import perm_to_string

servers = NameServers(lambda: ["127.0.0.1:9876", "127.0.0.1:9877"], "static list")
print(servers.next_address())   # 127.0.0.1:9876
print(servers.next_address())   # 127.0.0.1:9877

print(get_retry_topic("orders"))  # %RETRY%orders
print(perm_to_string(6))          # RW-
```

## What it does not do

The package has no network transport. It does not open connections to
brokers or name servers, send heartbeats, fetch topic routes or pull
messages; `MQClient.heartbeat_data()` builds the heartbeat but leaves
sending it to the caller, and `process_send_response` and
`process_pull_response` work on `RemotingCommand` objects the caller has
received. Producers and consumers are not included either: `MQClient`
works with any objects that provide the methods listed in its docstring.
There is no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```