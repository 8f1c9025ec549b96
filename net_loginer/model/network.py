import ipaddress
import logging
import socket
from typing import List

import psutil

from net_loginer.configs.common import ADDRESS_PREFIX

logger = logging.getLogger(__name__)


def discover_addresses(prefix: str = ADDRESS_PREFIX) -> List[str]:
    """IPv4 addresses of interfaces that are up, not loopback, and start with ``prefix``.

    Order follows interface enumeration; duplicates are dropped.
    """
    stats = psutil.net_if_stats()
    addresses: List[str] = []
    for name, addrs in psutil.net_if_addrs().items():
        if_stat = stats.get(name)
        if if_stat is None or not if_stat.isup:
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            ip = ipaddress.IPv4Address(addr.address)
            if ip.is_loopback or not addr.address.startswith(prefix):
                continue
            if addr.address not in addresses:
                addresses.append(addr.address)

    logger.info('IP addresses: %s', addresses)
    return addresses
