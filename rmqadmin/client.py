"""Client instance shared by the producers and consumers of one process."""

import logging
import os
import threading

from rmqadmin.errors import GroupExistsError
from rmqadmin.model import PROP_CLIENT_VERSION, ConsumerData, HeartbeatData, ProducerData
from rmqadmin.protocol import route_data_to_subscribe_info

CLIENT_VERSION = "v2.1.1"

# Background schedule, in seconds: (first run delay, interval).
_NAME_SERVER_UPDATE = (10.0, 120.0)
_PERSIST_OFFSET = (10.0, 5.0)
_REBALANCE = (20.0, 20.0)

_log = logging.getLogger(__name__)


class MQClient:
    """Registry of producer and consumer groups plus their periodic upkeep.

    Producers are expected to provide ``publish_topic_list()``,
    ``is_publish_topic_need_update(topic)`` and
    ``update_topic_publish_info(topic, queue_datas)``.

    Consumers are expected to provide ``consume_type()``, ``model()``,
    ``where()``, ``is_unit_mode()``, ``subscription_data_list()``,
    ``rebalance()``, ``rebalance_if_not_paused()``,
    ``is_subscribe_topic_need_update(topic)``,
    ``update_topic_subscribe_info(topic, queues)``,
    ``reset_offset(topic, table)``, ``get_consumer_status(topic)``,
    ``get_consumer_running_info(stack)``,
    ``consume_message_directly(msg, broker_name)`` and
    ``persist_consumer_offset()``.
    """

    def __init__(self, options):
        self.options = options
        self._producers = {}
        self._consumers = {}
        self._lock = threading.Lock()
        self._rebalance_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._done = threading.Event()
        self._threads = []
        self._started = False
        self._instance_count = 0
        self.closed = False

    def client_id(self):
        """Return ``ip@instance[@unit]``; the default instance uses the process id."""
        if self.options.instance_name == "DEFAULT":
            instance = str(os.getpid())
        else:
            instance = self.options.instance_name
        client_id = f"{self.options.client_ip}@{instance}"
        if self.options.unit_name:
            client_id += "@" + self.options.unit_name
        return client_id

    def register_producer(self, group, producer):
        with self._lock:
            if group in self._producers:
                _log.warning("the producer group exist already: %s", group)
                raise GroupExistsError("the producer group exist already")
            self._producers[group] = producer

    def unregister_producer(self, group):
        with self._lock:
            self._producers.pop(group, None)

    def register_consumer(self, group, consumer):
        with self._lock:
            if group in self._consumers:
                _log.warning("the consumer group exist already: %s", group)
                raise GroupExistsError("the consumer group exist already")
            self._consumers[group] = consumer

    def unregister_consumer(self, group):
        with self._lock:
            self._consumers.pop(group, None)

    def _producer_items(self):
        with self._lock:
            return list(self._producers.items())

    def _consumer_items(self):
        with self._lock:
            return list(self._consumers.items())

    def _consumer(self, group):
        with self._lock:
            return self._consumers.get(group)

    def heartbeat_data(self):
        """Build the heartbeat describing every registered group."""
        data = HeartbeatData(self.client_id())
        for group, _ in self._producer_items():
            data.producer_datas.add(ProducerData(group_name=group))
        for group, consumer in self._consumer_items():
            data.consumer_datas.add(
                ConsumerData(
                    group_name=group,
                    consume_type=consumer.consume_type(),
                    message_model=consumer.model().upper(),
                    consume_from_where=consumer.where(),
                    subscription_datas=list(consumer.subscription_data_list()),
                    unit_mode=consumer.is_unit_mode(),
                )
            )
        return data

    def rebalance_immediately(self):
        with self._rebalance_lock:
            for _, consumer in self._consumer_items():
                consumer.rebalance()

    def rebalance_if_not_paused(self):
        with self._rebalance_lock:
            for _, consumer in self._consumer_items():
                consumer.rebalance_if_not_paused()

    def update_publish_info(self, topic, queue_datas, changed):
        """Hand new route data to every producer that needs it."""
        if queue_datas is None:
            return
        for _, producer in self._producer_items():
            if changed or producer.is_publish_topic_need_update(topic):
                producer.update_topic_publish_info(topic, queue_datas)

    def update_subscribe_info(self, topic, queue_datas, changed):
        """Hand the readable queues of a topic to every consumer that needs them."""
        if queue_datas is None:
            return
        for _, consumer in self._consumer_items():
            if changed or consumer.is_subscribe_topic_need_update(topic):
                consumer.update_topic_subscribe_info(
                    topic, route_data_to_subscribe_info(topic, queue_datas)
                )

    def reset_offset(self, topic, group, offset_table):
        consumer = self._consumer(group)
        if consumer is None:
            _log.warning("group %s do not exists", group)
            return
        consumer.reset_offset(topic, offset_table)

    def consumer_status(self, topic, group):
        """Return the consumer's status for a topic, or None for an unknown group."""
        consumer = self._consumer(group)
        if consumer is None:
            _log.warning("group %s do not exists", group)
            return None
        return consumer.get_consumer_status(topic)

    def consumer_running_info(self, group, stack):
        """Return the group's running report tagged with the client version."""
        consumer = self._consumer(group)
        if consumer is None:
            return None
        info = consumer.get_consumer_running_info(stack)
        if info is not None:
            info.properties[PROP_CLIENT_VERSION] = CLIENT_VERSION
        return info

    def consume_message_directly(self, msg, group, broker_name):
        consumer = self._consumer(group)
        if consumer is None:
            return None
        return consumer.consume_message_directly(msg, broker_name)

    def _update_name_server(self):
        namesrv = self.options.namesrv
        if namesrv is not None:
            namesrv.update_addresses()

    def _persist_offsets(self):
        for group, consumer in self._consumer_items():
            try:
                consumer.persist_consumer_offset()
            except Exception:
                _log.exception("persist offset failed for group %s", group)

    def _schedule(self, name, timing, op):
        delay, interval = timing

        def run():
            if self._done.wait(delay):
                return
            while True:
                try:
                    op()
                except Exception:
                    _log.exception("%s failed", name)
                if self._done.wait(interval):
                    _log.info("client %s stopping %s", self.client_id(), name)
                    return

        thread = threading.Thread(target=run, name=name, daemon=True)
        thread.start()
        self._threads.append(thread)

    def start(self):
        """Start the periodic tasks; later calls only count another user."""
        with self._state_lock:
            self._instance_count += 1
            if self._started:
                return
            self._started = True
        self._schedule("name server update", _NAME_SERVER_UPDATE, self._update_name_server)
        self._schedule("offset persist", _PERSIST_OFFSET, self._persist_offsets)
        self._schedule("rebalance", _REBALANCE, self.rebalance_if_not_paused)

    def shutdown(self):
        """Release one user; the last one stops the periodic tasks."""
        with self._state_lock:
            self._instance_count -= 1
            if self._instance_count > 0 or self.closed:
                return
            self.closed = True
        self._done.set()
        for thread in self._threads:
            thread.join(timeout=5)