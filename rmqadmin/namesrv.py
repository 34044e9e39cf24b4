"""Name server address list with round-robin selection."""

import re
import threading

from rmqadmin.errors import IllegalIPError, MultipleIPError, NoNameServerError

DEFAULT_NAMESRV_ADDR = "http://jmenv.tbsite.net:8080/rocketmq/nsaddr"

_IP_REGEX = re.compile(
    r"^((25[0-5]|2[0-4]\d|((1\d{2})|([1-9]?\d)))\.){3}"
    r"(25[0-5]|2[0-4]\d|((1\d{2})|([1-9]?\d)))"
)


def check_addresses(addrs):
    """Validate a list of ``ip:port`` name server addresses."""
    if not addrs:
        raise NoNameServerError()
    for addr in addrs:
        if ";" in addr:
            raise MultipleIPError()
        host = addr.split(":")[0]
        match = _IP_REGEX.match(host)
        if match is None or match.group(0).count(".") != 3:
            raise IllegalIPError()


class NameServers:
    """Name server addresses supplied by a resolver, handed out round-robin.

    ``resolver`` is a callable returning a list of address strings.
    """

    def __init__(self, resolver, description):
        addrs = list(resolver())
        if not addrs:
            raise NoNameServerError(
                "no name server addr found with resolver: " + description
            )
        check_addresses(addrs)
        self._resolver = resolver
        self._description = description
        self._srvs = addrs
        self._index = 0
        self._lock = threading.Lock()

    def next_address(self):
        """Return the next address, without any http:// or https:// prefix."""
        with self._lock:
            addr = self._srvs[self._index % len(self._srvs)]
            self._index = abs(self._index + 1) % len(self._srvs)
        if addr.startswith("https"):
            return addr.removeprefix("https://")
        return addr.removeprefix("http://")

    def update_addresses(self):
        """Replace the addresses with the resolver's, if it returns any new ones."""
        with self._lock:
            srvs = list(self._resolver())
            if not srvs or srvs == self._srvs:
                return
            self._srvs = srvs

    def addresses(self):
        with self._lock:
            return list(self._srvs)

    def __len__(self):
        return len(self._srvs)

    def __str__(self):
        return ";".join(self._srvs)