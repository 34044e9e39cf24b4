import os

import pytest

from rmqadmin.errors import IllegalIPError, MultipleIPError, NoNameServerError
from rmqadmin.namesrv import NameServers, check_addresses

SRVS = [
    "192.168.100.1",
    "192.168.100.2",
    "192.168.100.3",
    "192.168.100.4",
    "192.168.100.5",
]


def _passthrough(addrs):
    return lambda: list(addrs)


def test_selector_round_robin():
    srvs = ["127.0.0.1:9876", "127.0.0.1:9879", "12.24.123.243:10911", "12.24.123.243:10915"]
    ns = NameServers(_passthrough(srvs), "passthrough")
    expected = srvs * 2 + [srvs[0]]
    assert [ns.next_address() for _ in expected] == expected


def test_get_namesrv_round_robin():
    ns = NameServers(_passthrough(SRVS), "passthrough")
    assert ns.next_address() == SRVS[0]
    assert ns.next_address() == SRVS[1]


def test_update_name_server_address_from_resolver():
    state = {"addrs": ["127.0.0.1:9876"]}
    ns = NameServers(lambda: list(state["addrs"]), "changing")
    state["addrs"] = SRVS
    ns.update_addresses()
    assert ns.addresses() == SRVS
    assert ns.next_address() == SRVS[0]
    assert ns.next_address() == SRVS[1]


def test_update_name_server_address_use_env(monkeypatch):
    monkeypatch.setenv("NAMESRV_ADDR", "127.0.0.1:9876")

    def env_resolver():
        return os.environ.get("NAMESRV_ADDR", "").split(";")

    ns = NameServers(env_resolver, "env")
    monkeypatch.setenv("NAMESRV_ADDR", ";".join(SRVS))
    ns.update_addresses()
    assert ns.next_address() == SRVS[0]
    assert ns.next_address() == SRVS[1]


def test_update_ignores_empty_resolution():
    state = {"addrs": ["127.0.0.1:9876"]}
    ns = NameServers(lambda: list(state["addrs"]), "changing")
    state["addrs"] = []
    ns.update_addresses()
    assert ns.addresses() == ["127.0.0.1:9876"]


def test_scheme_prefix_is_stripped():
    state = {"addrs": ["127.0.0.1:9876"]}
    ns = NameServers(lambda: list(state["addrs"]), "changing")
    state["addrs"] = ["http://127.0.0.1:9876", "https://127.0.0.1:9879"]
    ns.update_addresses()
    assert ns.next_address() == "127.0.0.1:9876"
    assert ns.next_address() == "127.0.0.1:9879"


def test_len_and_str():
    srvs = ["127.0.0.1:9876", "127.0.0.1:9879"]
    ns = NameServers(_passthrough(srvs), "passthrough")
    assert len(ns) == 2
    assert str(ns) == ";".join(srvs)


def test_empty_resolver_raises_with_description():
    with pytest.raises(NoNameServerError) as info:
        NameServers(lambda: [], "my-resolver")
    assert "my-resolver" in str(info.value)


def test_check_rejects_multiple_ips():
    with pytest.raises(MultipleIPError):
        check_addresses(["127.0.0.1:9876;127.0.0.1:9879"])


def test_check_rejects_illegal_ip():
    with pytest.raises(IllegalIPError):
        check_addresses(["localhost:9876"])


def test_check_rejects_empty_list():
    with pytest.raises(NoNameServerError):
        check_addresses([])


def test_constructor_validates_addresses():
    with pytest.raises(IllegalIPError):
        NameServers(_passthrough(["not-an-ip:9876"]), "passthrough")


def test_check_accepts_valid_addresses():
    addrs = ["127.0.0.1:9876", "12.24.123.243:10911"]
    check_addresses(addrs)
    ns = NameServers(_passthrough(addrs), "passthrough")
    assert ns.addresses() == addrs