"""
Picks the IPv4 address to advertise in the transfer URL / QR code.

Hosts often expose several adapters (VPN tunnels, container bridges,
hypervisor NAT) whose addresses a phone on the same Wi-Fi cannot reach, so
instead of taking the first interface every candidate is scored by name and
subnet and the best one wins.
"""

import ipaddress
import logging
import socket

import psutil

from playlist_transfer.config import (
    VIRTUAL_INTERFACE_MARKERS,
    WIFI_INTERFACE_MARKERS,
    ETHERNET_INTERFACE_MARKERS,
    VIRTUAL_PENALTY,
    WIFI_BONUS,
    ETHERNET_BONUS,
    SUBNET_192_168_BONUS,
    SUBNET_172_16_BONUS,
    SUBNET_10_BONUS,
)

logger = logging.getLogger(__name__)


def is_usable_address(address):
    """True for IPv4 addresses that are not loopback, link-local or unspecified."""
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def list_ipv4_interfaces():
    """
    Enumerates the host's interfaces.
    Returns {interface_name: [ipv4, ...]} in the order the OS reports them.
    """
    interfaces = {}
    for name, addrs in psutil.net_if_addrs().items():
        interfaces[name] = [a.address for a in addrs if a.family == socket.AF_INET]
    return interfaces


def _matches_any(name, markers):
    return any(marker in name for marker in markers)


def score_interface(name, address):
    """Scores one interface by its name and its first usable address."""
    lowered = name.lower()
    score = 0

    if _matches_any(lowered, VIRTUAL_INTERFACE_MARKERS):
        score += VIRTUAL_PENALTY
    if _matches_any(lowered, WIFI_INTERFACE_MARKERS):
        score += WIFI_BONUS
    if _matches_any(lowered, ETHERNET_INTERFACE_MARKERS):
        score += ETHERNET_BONUS

    if address.startswith('192.168.'):
        score += SUBNET_192_168_BONUS
    elif address.startswith('10.'):
        score += SUBNET_10_BONUS
    elif address.startswith('172.'):
        try:
            second_octet = int(address.split('.')[1])
            if 16 <= second_octet <= 31:
                score += SUBNET_172_16_BONUS
        except (IndexError, ValueError):
            pass

    return score


def rank_interfaces(interfaces):
    """
    Builds a candidate list from {name: [ipv4, ...]}.
    Interfaces without a usable address are left out.
    """
    candidates = []
    for name, addresses in interfaces.items():
        usable = [a for a in addresses if is_usable_address(a)]
        if not usable:
            continue
        candidates.append({
            'name': name,
            'addresses': usable,
            'score': score_interface(name, usable[0]),
        })
    return candidates


def select_advertised_address(interfaces=None):
    """
    Returns the first usable address of the best scoring interface, or None.
    Ties keep the interface seen first.
    """
    if interfaces is None:
        try:
            interfaces = list_ipv4_interfaces()
        except OSError as e:
            logger.error(f"Could not enumerate network interfaces: {e}")
            return None

    best = None
    for candidate in rank_interfaces(interfaces):
        logger.debug(
            f"Interface candidate {candidate['name']} {candidate['addresses'][0]} score={candidate['score']}"
        )
        if best is None or candidate['score'] > best['score']:
            best = candidate

    if best is None:
        logger.warning("No non-loopback IPv4 interface found")
        return None

    logger.info(f"Advertising {best['addresses'][0]} (interface {best['name']}, score {best['score']})")
    return best['addresses'][0]
