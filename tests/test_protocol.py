from types import SimpleNamespace

import pytest

from rmqadmin.errors import ResponseError
from rmqadmin.model import MessageQueue
from rmqadmin.perm import PERM_READ, PERM_WRITE
from rmqadmin.protocol import (
    DEFAULT_TRACE_REGION_ID,
    VIP_CHANNEL_ENV,
    ClientOptions,
    PullStatus,
    QueueData,
    RemotingCommand,
    ResponseCode,
    SendStatus,
    broker_vip_channel,
    process_pull_response,
    process_send_response,
    route_data_to_subscribe_info,
)


def _msg(topic, uniq):
    return SimpleNamespace(topic=topic, properties={"UNIQ_KEY": uniq})


def test_send_response_success_fields():
    cmd = RemotingCommand(
        code=ResponseCode.SUCCESS,
        ext_fields={
            "queueId": "3",
            "queueOffset": "77",
            "msgId": "offset-id",
            "transactionId": "tx",
        },
    )
    result = process_send_response("broker-a", cmd, _msg("t", "a"), _msg("t", "b"))
    assert result.status is SendStatus.OK
    assert result.msg_id == "a,b"
    assert result.offset_msg_id == "offset-id"
    assert result.message_queue == MessageQueue("t", "broker-a", 3)
    assert result.queue_offset == 77
    assert result.transaction_id == "tx"
    assert result.region_id == DEFAULT_TRACE_REGION_ID
    assert result.trace_on is False


def test_send_response_region_and_trace():
    cmd = RemotingCommand(
        code=ResponseCode.SUCCESS,
        ext_fields={"MSG_REGION": "east", "TRACE_ON": "true"},
    )
    result = process_send_response("b", cmd, _msg("t", "x"))
    assert result.region_id == "east"
    assert result.trace_on is True


def test_send_response_trace_off():
    cmd = RemotingCommand(code=ResponseCode.SUCCESS, ext_fields={"TRACE_ON": "false"})
    assert process_send_response("b", cmd, _msg("t", "x")).trace_on is False


@pytest.mark.parametrize(
    "code,status",
    [
        (ResponseCode.FLUSH_DISK_TIMEOUT, SendStatus.FLUSH_DISK_TIMEOUT),
        (ResponseCode.FLUSH_SLAVE_TIMEOUT, SendStatus.FLUSH_SLAVE_TIMEOUT),
        (ResponseCode.SLAVE_NOT_AVAILABLE, SendStatus.SLAVE_NOT_AVAILABLE),
    ],
)
def test_send_response_status_mapping(code, status):
    cmd = RemotingCommand(code=code)
    assert process_send_response("b", cmd, _msg("t", "x")).status is status


def test_send_response_bad_numbers_default_to_zero():
    cmd = RemotingCommand(ext_fields={"queueId": "abc", "queueOffset": ""})
    result = process_send_response("b", cmd, _msg("t", "x"))
    assert result.message_queue.queue_id == 0
    assert result.queue_offset == 0


def test_send_response_error_code():
    cmd = RemotingCommand(code=ResponseCode.ERROR, remark="boom")
    with pytest.raises(ResponseError, match="CODE: 1, DESC: boom"):
        process_send_response("b", cmd, _msg("t", "x"))


def test_send_response_without_messages():
    with pytest.raises(ValueError):
        process_send_response("b", RemotingCommand())


def test_pull_response_found_with_offsets():
    cmd = RemotingCommand(
        code=ResponseCode.SUCCESS,
        ext_fields={
            "maxOffset": "100",
            "minOffset": "5",
            "nextBeginOffset": "42",
            "suggestWhichBrokerId": "1",
        },
        body=b"payload",
    )
    result = process_pull_response(cmd)
    assert result.status is PullStatus.FOUND
    assert (result.max_offset, result.min_offset) == (100, 5)
    assert result.next_begin_offset == 42
    assert result.suggest_which_broker_id == 1
    assert result.body == b"payload"


@pytest.mark.parametrize(
    "code,status",
    [
        (ResponseCode.PULL_NOT_FOUND, PullStatus.NO_NEW_MSG),
        (ResponseCode.PULL_RETRY_IMMEDIATELY, PullStatus.NO_MSG_MATCHED),
        (ResponseCode.PULL_OFFSET_MOVED, PullStatus.OFFSET_ILLEGAL),
    ],
)
def test_pull_response_status_mapping(code, status):
    result = process_pull_response(RemotingCommand(code=code))
    assert result.status is status
    assert result.max_offset == 0


def test_pull_response_unknown_code():
    with pytest.raises(ResponseError, match="unknown Response Code: 1, remark: nope"):
        process_pull_response(RemotingCommand(code=ResponseCode.ERROR, remark="nope"))


def test_route_data_skips_unreadable_queues():
    datas = [
        QueueData(broker_name="a", read_queue_nums=3, perm=PERM_READ | PERM_WRITE),
        QueueData(broker_name="b", read_queue_nums=4, perm=PERM_WRITE),
        QueueData(broker_name="c", read_queue_nums=2, perm=PERM_READ),
    ]
    queues = route_data_to_subscribe_info("topic", datas)
    assert [q.broker_name for q in queues] == ["a", "a", "a", "c", "c"]
    assert [q.queue_id for q in queues if q.broker_name == "a"] == list(range(3))
    assert all(q.topic == "topic" for q in queues)


def test_route_data_empty():
    assert route_data_to_subscribe_info("t", []) == []


def test_vip_channel_disabled_returns_address():
    assert broker_vip_channel("10.0.0.1:10911", False) == "10.0.0.1:10911"


def test_vip_channel_enabled():
    assert broker_vip_channel("10.0.0.1:10911", True) == "10.0.0.1:10909"


def test_vip_channel_bad_port():
    assert broker_vip_channel("10.0.0.1:port", True) == ""


def test_vip_channel_missing_port():
    with pytest.raises(ValueError):
        broker_vip_channel("10.0.0.1", True)


def test_vip_channel_from_environment(monkeypatch):
    monkeypatch.setenv(VIP_CHANNEL_ENV, "false")
    assert broker_vip_channel("h:10911") == "h:10911"
    monkeypatch.delenv(VIP_CHANNEL_ENV)
    assert broker_vip_channel("h:10911") == broker_vip_channel("h:10911", True)


def test_client_options_defaults_and_str():
    opts = ClientOptions(client_ip="1.2.3.4", unit_name="u")
    assert opts.instance_name == "DEFAULT"
    assert opts.retry_times == 3
    assert str(opts) == (
        "ClientOption [ClientIP=1.2.3.4, InstanceName=DEFAULT, "
        "UnitMode=false, UnitName=u, VIPChannelEnabled=false]"
    )


def test_change_instance_name_to_pid():
    opts = ClientOptions(client_ip="1.2.3.4")
    opts.change_instance_name_to_pid()
    pid, _, stamp = opts.instance_name.partition("#")
    assert pid.isdigit()
    assert stamp.isdigit()


def test_change_instance_name_keeps_custom_name():
    opts = ClientOptions(client_ip="1.2.3.4", instance_name="mine")
    opts.change_instance_name_to_pid()
    assert opts.instance_name == "mine"