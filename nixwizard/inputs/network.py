"""Network input types: IPv4 addresses, netmasks, hostnames and ports."""

from __future__ import annotations

import re
from enum import IntEnum
from typing import List, Optional

from nixwizard.inputs.base import VALID, InputType, Invalid, Outcome
from nixwizard.lib.options import OptionContext

__all__ = [
    "IPAddressType",
    "NetmaskType",
    "HostnameType",
    "PortType",
    "IPError",
    "MaskError",
    "PortError",
    "parse_ipv4",
    "ip_to_int",
    "mask_to_int",
    "mask_to_prefix",
    "cidr_to_netmask",
    "same_subnet",
]

HOSTNAME_PATTERN = re.compile(r"[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?")
_DIGITS = re.compile(r"[0-9]+")
_FULL_MASK = 0xFFFFFFFF


class IPError(IntEnum):
    MALFORMED = 1
    LEADING_ZERO = 2
    OUT_OF_RANGE = 3
    RESERVED = 4


class MaskError(IntEnum):
    MALFORMED = 1
    PREFIX_OUT_OF_RANGE = 2
    NOT_CONTIGUOUS = 3


class PortError(IntEnum):
    NOT_NUMERIC = 1
    OUT_OF_RANGE = 2


def _octets(value: str) -> Optional[List[str]]:
    parts = value.split(".")
    if len(parts) != 4 or not all(_DIGITS.fullmatch(p) for p in parts):
        return None
    return parts


def parse_ipv4(value: str) -> Optional[List[int]]:
    """Parse a dotted quad, returning None unless it is strictly well formed.

    Leading zeros are rejected ("01") and each octet must be 0..255. Host
    address rules (first/last octet) are checked by ``IPAddressType``.
    """
    parts = _octets(value)
    if parts is None:
        return None
    if any(len(p) > 1 and p.startswith("0") for p in parts):
        return None
    octets = [int(p) for p in parts]
    if any(o > 255 for o in octets):
        return None
    return octets


def ip_to_int(value: str) -> int:
    octets = parse_ipv4(value)
    if octets is None:
        raise ValueError(f"Not an IPv4 address: {value!r}")
    result = 0
    for octet in octets:
        result = (result << 8) | octet
    return result


def cidr_to_netmask(prefix: int) -> str:
    """Convert a prefix length to dotted-decimal notation (24 -> 255.255.255.0)."""
    if not 0 <= prefix <= 32:
        raise ValueError(f"Prefix length out of range: {prefix}")
    bits = (_FULL_MASK << (32 - prefix)) & _FULL_MASK
    return ".".join(str((bits >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def mask_to_int(value: str) -> int:
    """Return a mask given as CIDR ("24") or dotted decimal as a 32-bit int."""
    if _DIGITS.fullmatch(value):
        prefix = int(value)
        if not 0 <= prefix <= 32:
            raise ValueError(f"Prefix length out of range: {value!r}")
        return (_FULL_MASK << (32 - prefix)) & _FULL_MASK
    parts = _octets(value)
    if parts is None or any(int(p) > 255 for p in parts):
        raise ValueError(f"Not a netmask: {value!r}")
    result = 0
    for part in parts:
        result = (result << 8) | int(part)
    return result


def mask_to_prefix(value: str) -> int:
    """Prefix length of a valid mask in either notation."""
    return bin(mask_to_int(value)).count("1")


def same_subnet(first: str, second: str, mask: str) -> bool:
    """Whether two addresses share the network derived from ``mask``."""
    bits = mask_to_int(mask)
    return (ip_to_int(first) & bits) == (ip_to_int(second) & bits)


class IPAddressType(InputType):
    """IPv4 host address.

    Rejects 0.x.x.x and network/broadcast style addresses ending in
    .0 or .255.
    """

    name = "ip"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        parts = _octets(value)
        if parts is None:
            return Invalid(IPError.MALFORMED)
        if any(len(p) > 1 and p.startswith("0") for p in parts):
            return Invalid(IPError.LEADING_ZERO)
        octets = [int(p) for p in parts]
        if any(o > 255 for o in octets):
            return Invalid(IPError.OUT_OF_RANGE)
        if octets[0] < 1 or octets[3] in (0, 255):
            return Invalid(IPError.RESERVED)
        return VALID

    def prompt_hint(self, options: OptionContext) -> str:
        return "(e.g. 192.168.1.10)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid IP address format (example: 192.168.1.1)"


class NetmaskType(InputType):
    """Netmask as a CIDR prefix (1-32) or contiguous dotted decimal."""

    name = "mask"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if _DIGITS.fullmatch(value):
            if 1 <= int(value) <= 32:
                return VALID
            return Invalid(MaskError.PREFIX_OUT_OF_RANGE)

        parts = _octets(value)
        if parts is None or any(int(p) > 255 for p in parts):
            return Invalid(MaskError.MALFORMED)

        bits = mask_to_int(value)
        if bits in (0, _FULL_MASK):
            return Invalid(MaskError.NOT_CONTIGUOUS)
        host_bits = ~bits & _FULL_MASK
        if host_bits & (host_bits + 1):
            return Invalid(MaskError.NOT_CONTIGUOUS)
        return VALID

    def prompt_hint(self, options: OptionContext) -> str:
        return "(24 or 255.255.255.0)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return (
            "Invalid network mask "
            "(use CIDR like 24 or dotted decimal like 255.255.255.0)"
        )


class HostnameType(InputType):
    name = "hostname"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if HOSTNAME_PATTERN.fullmatch(value):
            return VALID
        return Invalid()

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return (
            "Hostname must be 1-63 letters, digits or hyphens "
            "and cannot start or end with a hyphen"
        )


class PortType(InputType):
    """TCP/UDP port, range overridable with ``min``/``max`` options."""

    name = "port"

    def _bounds(self, options: OptionContext) -> tuple:
        return options.get_int("min", 1), options.get_int("max", 65535)

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if not _DIGITS.fullmatch(value):
            return Invalid(PortError.NOT_NUMERIC)
        low, high = self._bounds(options)
        if not low <= int(value) <= high:
            return Invalid(PortError.OUT_OF_RANGE)
        return VALID

    def prompt_hint(self, options: OptionContext) -> str:
        low, high = self._bounds(options)
        return f"({low}-{high})"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        low, high = self._bounds(options)
        return f"Port must be a number between {low} and {high}"
